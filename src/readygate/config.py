"""Run configuration sourced from the environment and the command line."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, replace
from typing import Iterable, Optional, Tuple

SERVICE_PATTERN = r"^(\[[0-9a-fA-F.:]+\]|[^:]+):([1-9][0-9]{0,4})$"
_SERVICE_MATCHER = re.compile(SERVICE_PATTERN)

DEFAULT_TIMEOUT_SECONDS = 15


def validate_service(text: str) -> str:
    """Check ``host:port`` syntax without doing any DNS lookups."""

    if not _SERVICE_MATCHER.match(text):
        raise ValueError(f'does not match regular expression "{SERVICE_PATTERN}".')
    return text


@dataclass(frozen=True)
class GateConfig:
    """Everything a single run needs to know."""

    services: Tuple[str, ...] = ()
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS
    strict: bool = False
    quiet: bool = False
    command: Tuple[str, ...] = ()

    @classmethod
    def from_env(cls) -> "GateConfig":
        """Create a configuration from ``READYGATE_*`` environment variables."""

        def _get_bool(key: str, default: bool = False) -> bool:
            return os.getenv(key, str(default)).strip().lower() in {"1", "true", "yes", "on"}

        raw_timeout = os.getenv("READYGATE_TIMEOUT", str(DEFAULT_TIMEOUT_SECONDS)).strip()
        try:
            timeout_seconds = int(raw_timeout)
        except ValueError:
            raise ValueError(f"READYGATE_TIMEOUT must be an integer, got {raw_timeout!r}") from None
        if timeout_seconds < 0:
            raise ValueError(f"READYGATE_TIMEOUT must not be negative, got {timeout_seconds}")

        services = []
        for entry in os.getenv("READYGATE_SERVICES", "").split(","):
            entry = entry.strip()
            if not entry:
                continue
            try:
                services.append(validate_service(entry))
            except ValueError as exc:
                raise ValueError(f"Invalid service {entry!r} in READYGATE_SERVICES: {exc}") from None

        return cls(
            services=tuple(services),
            timeout_seconds=timeout_seconds,
            strict=_get_bool("READYGATE_STRICT"),
            quiet=_get_bool("READYGATE_QUIET"),
        )

    def merged(
        self,
        *,
        services: Iterable[str] = (),
        timeout_seconds: Optional[int] = None,
        strict: Optional[bool] = None,
        quiet: Optional[bool] = None,
        command: Iterable[str] = (),
    ) -> "GateConfig":
        """Return a copy with explicitly given values taking precedence."""

        return replace(
            self,
            services=self.services + tuple(services),
            timeout_seconds=self.timeout_seconds if timeout_seconds is None else timeout_seconds,
            strict=self.strict if strict is None else strict,
            quiet=self.quiet if quiet is None else quiet,
            command=tuple(command) or self.command,
        )


__all__ = ["DEFAULT_TIMEOUT_SECONDS", "GateConfig", "SERVICE_PATTERN", "validate_service"]
