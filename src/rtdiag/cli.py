"""Command line entry points for rendering diagnostics reports."""

from __future__ import annotations

import json
import sys
from collections.abc import Sequence
from enum import StrEnum
from pathlib import Path
from typing import Annotated

import click
import typer

from rtdiag.report import SystemInformation
from rtdiag.subscribers import default_bus, inspect_subscribers
from rtdiag_common.errors import SettingsError
from rtdiag_common.logging import get_logger, setup_logging
from rtdiag_common.settings import DiagnosticsSettings, load_settings

__all__ = ["app", "main"]

LOGGER = get_logger(__name__)

app = typer.Typer(no_args_is_help=False, add_completion=False)


class ReportFormat(StrEnum):
    """Supported output encodings for the system report."""

    TEXT = "text"
    JSON = "json"


def _load(log_level: str | None) -> DiagnosticsSettings:
    overrides: dict[str, object] = {}
    if log_level is not None:
        overrides["log_level"] = log_level
    try:
        settings = load_settings(**overrides)
    except SettingsError as exc:
        raise typer.BadParameter(exc.message) from exc
    setup_logging(settings.log_level)
    return settings


def _emit(payload: str, out: Path | None) -> None:
    if out is None:
        typer.echo(payload.rstrip("\n"))
        return
    out.parent.mkdir(parents=True, exist_ok=True)
    text = payload if payload.endswith("\n") else f"{payload}\n"
    out.write_text(text, encoding="utf-8")


def _log_progress(current: int, maximum: int) -> None:
    LOGGER.debug(
        "Report progress",
        extra={"operation": "report", "status": "in_progress", "current": current, "max": maximum},
    )


@app.command("report")
def system_report(
    out: Annotated[
        Path | None,
        typer.Option(help="Optional output path. When omitted the report is printed to stdout."),
    ] = None,
    fmt: Annotated[
        ReportFormat,
        typer.Option(
            "--format",
            "-f",
            case_sensitive=False,
            help="Choose text (default) or json output.",
        ),
    ] = ReportFormat.TEXT,
    log_level: Annotated[
        str | None, typer.Option("--log-level", help="Override RTDIAG_LOG_LEVEL.")
    ] = None,
) -> None:
    """Dump installed applications, libraries, plugins and the process environment.

    Parameters
    ----------
    out : Path | None
        Optional output path. Defaults to None (stdout).
    fmt : ReportFormat
        Output format for the report (text or json). Defaults to TEXT.
    log_level : str | None
        Logging level override. Defaults to None.

    Raises
    ------
    typer.BadParameter
        If the settings fail validation.
    """
    settings = _load(log_level)
    report = SystemInformation.from_settings(settings).run(progress=_log_progress)
    if fmt is ReportFormat.JSON:
        payload = json.dumps(report.to_dict(), indent=2)
    else:
        payload = report.text
    _emit(payload, out)


@app.command("subscribers")
def subscriber_report(
    category: Annotated[
        list[str] | None,
        typer.Option(
            "--category",
            "-c",
            help="Event category to list; repeat for several. Defaults to RTDIAG_EVENT_CATEGORIES.",
        ),
    ] = None,
    log_level: Annotated[
        str | None, typer.Option("--log-level", help="Override RTDIAG_LOG_LEVEL.")
    ] = None,
) -> None:
    """List what is subscribed to each whitelisted event category.

    Parameters
    ----------
    category : list[str] | None
        Categories to inspect, in order. Defaults to the configured whitelist.
    log_level : str | None
        Logging level override. Defaults to None.
    """
    settings = _load(log_level)
    categories = category or settings.event_categories
    _emit(inspect_subscribers(default_bus(), categories), None)


def main(argv: Sequence[str] | None = None) -> int:
    """
    Invoke the Typer application while supporting programmatic argv injection.

    Parameters
    ----------
    argv : Sequence[str] | None
        Argument vector override. When None, ``sys.argv[1:]`` is used.

    Returns
    -------
    int
        Process-style exit code emitted by Typer.
    """
    args = list(argv) if argv is not None else sys.argv[1:]
    command = typer.main.get_command(app)
    known_commands = set(getattr(command, "commands", {}).keys())
    forwarded_args = args
    if not args or args[0] not in known_commands | {"--help"}:
        forwarded_args = ["report", *args]
    try:
        command.main(
            args=forwarded_args,
            prog_name="rtdiag",
            standalone_mode=False,
        )
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code
    except SystemExit as exc:  # pragma: no cover - Typer handles user exits
        return int(exc.code or 0)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
