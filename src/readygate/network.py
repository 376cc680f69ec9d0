"""Address resolution and TCP reachability polling for a single service."""

from __future__ import annotations

import contextlib
import logging
import socket
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from tenacity import (
    RetryCallState,
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    wait_fixed,
)

from .status import StatusSink

logger = logging.getLogger("readygate")

RETRY_INTERVAL_SECONDS = 0.5


class ResolutionError(OSError):
    """Raised when a ``host:port`` target cannot be turned into an address."""


class DeadlineExceeded(TimeoutError):
    """Raised when no time is left for another connection attempt."""


class Deadline:
    """Point in time by which a wait has to succeed, or no limit at all."""

    def __init__(self, expires_at: Optional[float]) -> None:
        self._expires_at = expires_at

    @classmethod
    def forever(cls) -> "Deadline":
        return cls(None)

    @classmethod
    def after(cls, seconds: float) -> "Deadline":
        return cls(time.monotonic() + seconds)

    @classmethod
    def from_timeout(cls, timeout_seconds: int) -> "Deadline":
        """Map a timeout of ``0`` to no deadline, anything else to now + timeout."""

        if timeout_seconds == 0:
            return cls.forever()
        return cls.after(timeout_seconds)

    @property
    def is_forever(self) -> bool:
        return self._expires_at is None

    def remaining(self) -> Optional[float]:
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - time.monotonic())

    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def should_stop(self, retry_state: RetryCallState) -> bool:
        return self.expired()


@dataclass(frozen=True)
class ResolvedAddress:
    family: int
    sockaddr: Tuple[Any, ...]


@dataclass(frozen=True)
class WaitOutcome:
    """Result of waiting for one target."""

    target: str
    elapsed_seconds: float
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "target": self.target,
            "ok": self.ok,
            "elapsed_seconds": round(self.elapsed_seconds, 3),
            "error": None if self.error is None else str(self.error),
        }


def _retrying(deadline: Deadline) -> Retrying:
    return Retrying(
        stop=deadline.should_stop,
        wait=wait_fixed(RETRY_INTERVAL_SECONDS),
        retry=retry_if_exception_type(OSError),
        before_sleep=before_sleep_log(logger, logging.DEBUG),
        reraise=True,
    )


def parse_target(target: str) -> Tuple[str, int]:
    host, sep, port_text = target.rpartition(":")
    if not sep or not host:
        raise ResolutionError(f"invalid socket address syntax: {target!r}")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    try:
        port = int(port_text)
    except ValueError:
        raise ResolutionError(f"invalid port value: {port_text!r}") from None
    if not 0 < port < 65536:
        raise ResolutionError(f"port out of range: {port}")
    return host, port


def _resolve_once(target: str) -> ResolvedAddress:
    host, port = parse_target(target)
    try:
        candidates = socket.getaddrinfo(host, port, type=socket.SOCK_STREAM)
    except ValueError as exc:
        # The IDNA codec rejects empty or overlong labels, e.g. "a..b".
        raise ResolutionError(f"invalid host name {host!r}: {exc}") from exc
    if not candidates:
        raise ResolutionError(f"no addresses found for {target!r}")
    family, _, _, _, sockaddr = candidates[0]
    return ResolvedAddress(family=family, sockaddr=sockaddr)


def resolve_address(target: str, deadline: Deadline) -> ResolvedAddress:
    """Resolve ``target`` to its first socket address, retrying until ``deadline``."""

    return _retrying(deadline)(_resolve_once, target)


def _connect_once(address: ResolvedAddress, deadline: Deadline) -> None:
    remaining = deadline.remaining()
    if remaining is not None and remaining <= 0:
        raise DeadlineExceeded("Time is up")
    with socket.socket(address.family, socket.SOCK_STREAM) as sock:
        sock.settimeout(remaining)
        sock.connect(address.sockaddr)
        with contextlib.suppress(OSError):
            sock.shutdown(socket.SHUT_RDWR)


def wait_for_tcp_socket(target: str, deadline: Deadline) -> None:
    """Block until a TCP connection to ``target`` succeeds or ``deadline`` passes.

    Resolution and connection attempts share the same deadline, so time
    spent resolving is no longer available for connecting. Each attempt
    is bounded by the budget left and failed attempts are retried every
    :data:`RETRY_INTERVAL_SECONDS`. The last error is raised once the
    deadline has passed.
    """

    address = resolve_address(target, deadline)
    _retrying(deadline)(_connect_once, address, deadline)


def wait_for_service(target: str, timeout_seconds: int, sink: StatusSink) -> WaitOutcome:
    """Wait for one service and report progress to ``sink``.

    Resolution and connection errors end up in the returned outcome
    instead of being raised.
    """

    started = time.monotonic()
    if timeout_seconds == 0:
        sink.starting(f"Waiting for {target} without a timeout...")
    else:
        sink.starting(f"Waiting {timeout_seconds} seconds for {target}...")

    deadline = Deadline.from_timeout(timeout_seconds)
    try:
        wait_for_tcp_socket(target, deadline)
    except OSError as exc:
        elapsed = time.monotonic() - started
        sink.failed(f"{target} timed out after waiting for {timeout_seconds} seconds ({exc}).")
        return WaitOutcome(target=target, elapsed_seconds=elapsed, error=exc)

    elapsed = time.monotonic() - started
    sink.succeeded(f"{target} is available after {max(elapsed, 0.1):.1f} seconds.")
    return WaitOutcome(target=target, elapsed_seconds=elapsed)


__all__ = [
    "Deadline",
    "DeadlineExceeded",
    "RETRY_INTERVAL_SECONDS",
    "ResolutionError",
    "ResolvedAddress",
    "WaitOutcome",
    "parse_target",
    "resolve_address",
    "wait_for_service",
    "wait_for_tcp_socket",
]
