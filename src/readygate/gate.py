"""Strict/lenient gating between the wait phase and the command phase."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from .config import GateConfig
from .coordinator import wait_for_services
from .execution import run_command
from .status import StatusSink

logger = logging.getLogger("readygate")


@dataclass(frozen=True)
class GateDecision:
    should_run_command: bool
    baseline_exit_code: int


def decide(aggregate: bool, strict: bool, command: Optional[Sequence[str]]) -> GateDecision:
    """Decide whether the command runs and what the exit code is otherwise.

    In lenient mode a given command always runs; in strict mode only when
    every service became reachable.
    """

    return GateDecision(
        should_run_command=bool(command) and (not strict or aggregate),
        baseline_exit_code=0 if aggregate else 1,
    )


def run_gate(config: GateConfig, sink: StatusSink) -> int:
    """Wait for all services, then maybe run the command; return the exit code."""

    report = wait_for_services(config.services, config.timeout_seconds, sink)
    decision = decide(report.success, config.strict, config.command)
    if not decision.should_run_command:
        if config.command:
            logger.debug(
                "Strict mode: not running command",
                extra={"command": list(config.command), "failed": [o.target for o in report.failed]},
            )
        return decision.baseline_exit_code
    return run_command(config.command, sink)


__all__ = ["GateDecision", "decide", "run_gate"]
