"""CLI entry point: wait for TCP services, then run a command."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Tuple

import click
from dotenv import load_dotenv

from .__about__ import __version__
from .config import DEFAULT_TIMEOUT_SECONDS, GateConfig, validate_service
from .gate import run_gate
from .status import StatusSink

logger = logging.getLogger("readygate")


def _configure_logging(verbose: int) -> None:
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s %(message)s")


def _load_env_file(env_file: Optional[str]) -> None:
    if env_file:
        path = Path(env_file)
        if path.exists():
            load_dotenv(path)
            return
        raise click.BadParameter(f"Environment file not found: {env_file}", param_hint="'--env-file'")
    default = Path.cwd() / ".env"
    if default.exists():
        load_dotenv(default)


def _validate_services(ctx: click.Context, param: click.Parameter, value: Tuple[str, ...]) -> Tuple[str, ...]:
    for service in value:
        try:
            validate_service(service)
        except ValueError as exc:
            raise click.BadParameter(f"{service!r} {exc}", ctx=ctx, param=param) from None
    return value


@click.command(
    context_settings={"help_option_names": ["-h", "--help"], "allow_interspersed_args": False},
)
@click.option("-q", "--quiet/--no-quiet", default=None, help="Do not output any status messages")
@click.option(
    "-S",
    "--strict/--no-strict",
    default=None,
    help="Only execute COMMAND if all services are found available [default: always executes]",
)
@click.option(
    "-t",
    "--timeout",
    "timeout_seconds",
    type=click.IntRange(min=0),
    default=None,
    metavar="SECONDS",
    help=f"Timeout in seconds, 0 for no timeout [default: {DEFAULT_TIMEOUT_SECONDS}]",
)
@click.option(
    "-s",
    "--service",
    "services",
    multiple=True,
    metavar="HOST:PORT",
    callback=_validate_services,
    help="Service to test via the TCP protocol; can be passed multiple times",
)
@click.option("--env-file", type=str, help="Path to a .env file with READYGATE_* settings")
@click.option("-v", "--verbose", count=True, help="Increase logging verbosity")
@click.version_option(__version__, "-V", "--version", prog_name="readygate", message="%(prog)s %(version)s")
@click.argument("command", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def cli(
    ctx: click.Context,
    quiet: Optional[bool],
    strict: Optional[bool],
    timeout_seconds: Optional[int],
    services: Tuple[str, ...],
    env_file: Optional[str],
    verbose: int,
    command: Tuple[str, ...],
) -> None:
    """Wait for one or more services to be available before executing a command.

    COMMAND is run after waiting, including its arguments, resolved against
    ${PATH}.
    """

    _configure_logging(verbose)
    _load_env_file(env_file)
    try:
        base = GateConfig.from_env()
    except ValueError as exc:
        raise click.UsageError(str(exc), ctx=ctx) from None

    config = base.merged(
        services=services,
        timeout_seconds=timeout_seconds,
        strict=strict,
        quiet=quiet,
        command=command,
    )
    logger.debug("Resolved configuration", extra={"config": config})
    sink = StatusSink(enabled=not config.quiet)
    ctx.exit(run_gate(config, sink))


__all__ = ["cli", "__version__"]
