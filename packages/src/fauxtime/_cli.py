"""Command-line interface for fauxtime (Typer-based).

Provides :func:`build_cli`, a Typer app for exploring a timer schedule on
a :class:`~fauxtime._virtual.VirtualClock` without writing a test::

    $ fauxtime simulate --timer 5 --timer 10 --step 1 --until 12
    t=5 timer#0 fired (deadline=5)
    t=10 timer#1 fired (deadline=10)

Framework-level options (``--version``, ``--log-level``,
``--log-format``, ``--env-file``) live on the callback and apply to
every command.
"""

from __future__ import annotations

import functools
import logging
from typing import Annotated, get_args

import typer
from pydantic import ValidationError

from fauxtime._logging import configure_logging
from fauxtime._settings import LoggingSettings, Settings
from fauxtime._virtual import VirtualClock

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1

# ---------------------------------------------------------------------------
# Allowed values (extracted from LoggingSettings Literal types)
# ---------------------------------------------------------------------------

_VALID_LOG_LEVELS: tuple[str, ...] = get_args(
    LoggingSettings.model_fields["level"].annotation,
)
_VALID_LOG_FORMATS: tuple[str, ...] = get_args(
    LoggingSettings.model_fields["format"].annotation,
)


def build_cli(version: str) -> typer.Typer:
    """Construct the ``fauxtime`` Typer app.

    Args:
        version: Version string reported by ``--version``.

    Returns:
        A configured :class:`typer.Typer` ready to invoke.
    """
    cli = typer.Typer(
        help=f"fauxtime v{version} — deterministic virtual clock for tests",
    )

    # -- global options -----------------------------------------------------

    @cli.callback(invoke_without_command=True)
    def main(
        ctx: typer.Context,
        version_flag: Annotated[
            bool | None,
            typer.Option(
                "--version",
                is_eager=True,
                help="Show version and exit.",
            ),
        ] = None,
        log_level: Annotated[
            str | None,
            typer.Option("--log-level", help="Override log level."),
        ] = None,
        log_format: Annotated[
            str | None,
            typer.Option("--log-format", help="Override log format."),
        ] = None,
        env_file: Annotated[
            str,
            typer.Option("--env-file", help="Path to .env file."),
        ] = ".env",
    ) -> None:
        if version_flag:
            typer.echo(f"fauxtime v{version}")
            raise typer.Exit()

        if log_level is not None and log_level.upper() not in _VALID_LOG_LEVELS:
            raise typer.BadParameter(
                f"Invalid log level '{log_level}'. "
                f"Choose from: {', '.join(_VALID_LOG_LEVELS)}",
                param_hint="'--log-level'",
            )

        if log_format is not None and log_format.lower() not in _VALID_LOG_FORMATS:
            raise typer.BadParameter(
                f"Invalid log format '{log_format}'. "
                f"Choose from: {', '.join(_VALID_LOG_FORMATS)}",
                param_hint="'--log-format'",
            )

        try:
            settings = Settings(_env_file=env_file)  # type: ignore[call-arg]
        except ValidationError as exc:
            logger.error("Configuration error: %s", exc)
            raise SystemExit(EXIT_CONFIG_ERROR) from exc

        if log_level is not None:
            settings.logging = settings.logging.model_copy(
                update={"level": log_level.upper()},
            )

        if log_format is not None:
            settings.logging = settings.logging.model_copy(
                update={"format": log_format.lower()},
            )

        configure_logging(settings.logging, service="fauxtime", version=version)
        ctx.obj = settings

        if ctx.invoked_subcommand is None:
            typer.echo(ctx.get_help())
            raise typer.Exit()

    # -- simulate -----------------------------------------------------------

    @cli.command()
    def simulate(
        ctx: typer.Context,
        timers: Annotated[
            list[float],
            typer.Option("--timer", help="Arm a timer this many seconds out."),
        ],
        step: Annotated[
            float,
            typer.Option("--step", help="Seconds to advance per tick."),
        ] = 1.0,
        until: Annotated[
            float | None,
            typer.Option(
                "--until",
                help="Stop once this much virtual time has passed "
                "(default: the latest timer).",
            ),
        ] = None,
    ) -> None:
        """Arm timers on a virtual clock and print each fire."""
        if step <= 0:
            raise typer.BadParameter("'--step' must be positive", param_hint="'--step'")

        settings: Settings = ctx.obj
        clock = VirtualClock.from_settings(settings.clock)
        start = clock.now()
        horizon = start + (until if until is not None else max(timers, default=0.0))

        def report(index: int, deadline: float) -> None:
            elapsed = clock.now() - start
            typer.echo(
                f"t={elapsed:g} timer#{index} fired (deadline={deadline - start:g})"
            )

        for index, duration in enumerate(timers):
            fire = functools.partial(report, index, start + duration)
            clock.after_func(duration, fire)
            # Nothing else consumes arm events here; drain as we go so any
            # alarm capacity fits.
            clock.wait_for_alarms(timeout=0)

        while clock.now() < horizon:
            clock.advance(min(step, horizon - clock.now()))

        logger.debug(
            "Simulation ended at t=%g with %d timer(s) pending",
            clock.now() - start,
            clock.pending(),
        )

    return cli
