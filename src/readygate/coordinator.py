"""Concurrent fan-out of service waits with join-then-reduce aggregation."""

from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from .network import WaitOutcome, wait_for_service
from .status import StatusSink

logger = logging.getLogger("readygate")


@dataclass(frozen=True)
class WaitReport:
    """Outcomes of one wait phase, in the order the targets were given."""

    outcomes: Tuple[WaitOutcome, ...]

    @property
    def success(self) -> bool:
        # An empty report is vacuously successful.
        return all(outcome.ok for outcome in self.outcomes)

    @property
    def failed(self) -> List[WaitOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]


def wait_for_services(targets: Sequence[str], timeout_seconds: int, sink: StatusSink) -> WaitReport:
    """Wait for all ``targets`` concurrently, one worker thread each.

    Workers are never cancelled: every target runs until it is reachable
    or its own deadline passes, and the report is built only after all
    of them have finished.
    """

    if not targets:
        return WaitReport(outcomes=())

    started = time.monotonic()
    with ThreadPoolExecutor(max_workers=len(targets), thread_name_prefix="readygate-wait") as executor:
        futures: List[Tuple[str, Future[WaitOutcome]]] = [
            (target, executor.submit(wait_for_service, target, timeout_seconds, sink)) for target in targets
        ]

    outcomes: List[WaitOutcome] = []
    for target, future in futures:
        try:
            outcomes.append(future.result())
        except Exception as exc:
            logger.exception("Worker for %s crashed", target)
            sink.failed(f"{target} timed out after waiting for {timeout_seconds} seconds ({exc}).")
            outcomes.append(
                WaitOutcome(target=target, elapsed_seconds=time.monotonic() - started, error=exc)
            )

    report = WaitReport(outcomes=tuple(outcomes))
    logger.info(
        "wait-phase-complete",
        extra={
            "targets": len(targets),
            "failed": [outcome.target for outcome in report.failed],
            "success": report.success,
        },
    )
    return report


__all__ = ["WaitReport", "wait_for_services"]
