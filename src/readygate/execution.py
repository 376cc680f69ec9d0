"""Run the trailing command and translate how it ended into an exit code."""

from __future__ import annotations

import logging
import subprocess
from typing import Optional, Sequence

from .status import StatusSink

logger = logging.getLogger("readygate")

EXIT_PERMISSION_DENIED = 126
EXIT_NOT_FOUND = 127
EXIT_UNEXPECTED = 255


def exit_code_from_returncode(returncode: Optional[int]) -> int:
    """Map a :class:`subprocess.Popen` return code to a shell-style exit code.

    ``subprocess`` reports a child killed by signal ``S`` as ``-S``, which
    becomes ``128 + S``. A missing return code maps to 255.
    """

    if returncode is None:
        return EXIT_UNEXPECTED
    if returncode < 0:
        return 128 - returncode
    return returncode


def run_command(argv: Sequence[str], sink: StatusSink) -> int:
    """Run ``argv`` with inherited standard streams and return its exit code."""

    if not argv:
        raise ValueError("command must not be empty")
    command = argv[0]
    logger.debug("Running command", extra={"argv": list(argv)})
    try:
        process = subprocess.Popen(list(argv))
        returncode = process.wait()
    except PermissionError:
        sink.failed(f"Command '{command}' could not be run: permission denied.")
        return EXIT_PERMISSION_DENIED
    except FileNotFoundError:
        sink.failed(f"Command '{command}' not found.")
        return EXIT_NOT_FOUND
    except (OSError, subprocess.SubprocessError) as exc:
        sink.failed(f"Command '{command}' failed with unexpected error: {exc}.")
        return EXIT_UNEXPECTED
    return exit_code_from_returncode(returncode)


__all__ = [
    "EXIT_NOT_FOUND",
    "EXIT_PERMISSION_DENIED",
    "EXIT_UNEXPECTED",
    "exit_code_from_returncode",
    "run_command",
]
