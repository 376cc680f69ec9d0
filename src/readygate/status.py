"""Status events emitted while waiting for services."""

from __future__ import annotations

import logging
import sys
import threading
from enum import Enum
from typing import Optional, TextIO

logger = logging.getLogger("readygate")


class SubLevel(Enum):
    """Kinds of status events and the icon shown for each."""

    STARTING = "*"
    SUCCEEDED = "+"
    FAILED = "-"


class StatusSink:
    """Thread-safe writer for ``[*]``/``[+]``/``[-]`` status lines.

    Starting and succeeded events go to standard output, failures to
    standard error. Streams default to whatever ``sys.stdout`` and
    ``sys.stderr`` are at write time, so pytest capture keeps working.
    """

    def __init__(
        self,
        stdout: Optional[TextIO] = None,
        stderr: Optional[TextIO] = None,
        *,
        enabled: bool = True,
    ) -> None:
        self._stdout = stdout
        self._stderr = stderr
        self._enabled = enabled
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self._enabled

    def _stream_for(self, sublevel: SubLevel) -> TextIO:
        if sublevel is SubLevel.FAILED:
            return self._stderr if self._stderr is not None else sys.stderr
        return self._stdout if self._stdout is not None else sys.stdout

    def emit(self, sublevel: SubLevel, message: str) -> None:
        logger.debug(message, extra={"sublevel": sublevel.name.lower()})
        if not self._enabled:
            return
        line = f"[{sublevel.value}] {message}\n"
        with self._lock:
            stream = self._stream_for(sublevel)
            stream.write(line)
            stream.flush()

    def starting(self, message: str) -> None:
        self.emit(SubLevel.STARTING, message)

    def succeeded(self, message: str) -> None:
        self.emit(SubLevel.SUCCEEDED, message)

    def failed(self, message: str) -> None:
        self.emit(SubLevel.FAILED, message)


__all__ = ["StatusSink", "SubLevel"]
