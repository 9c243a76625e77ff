"""Tandem CLI.

Built with Typer. Global options (verbosity, logging) are handled by the
app callback, which runs before any command.

Package structure:
    cli/
    ├── __init__.py       # This file - app assembly and global options
    ├── helpers.py        # Output level, logging state, option parsing
    ├── output.py         # Shared Rich consoles
    └── commands/
        └── run.py        # run command
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from tandem import __version__

from . import helpers as helpers
from .commands import run
from .helpers import (
    OutputLevel,
    configure_global_logging,
    set_log_file,
    set_log_format,
    set_log_level,
    set_output_level,
)
from .output import console

app = typer.Typer(
    name="tandem",
    help="Parallel test runner with failed-first re-runs",
    add_completion=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"Tandem v{__version__}")
        raise typer.Exit()


def verbose_callback(value: bool) -> None:
    if value:
        set_output_level(OutputLevel.VERBOSE)


def quiet_callback(value: bool) -> None:
    if value:
        set_output_level(OutputLevel.QUIET)


def log_level_callback(value: str | None) -> str | None:
    if value:
        set_log_level(value)
    return value


def log_file_callback(value: Path | None) -> Path | None:
    if value:
        set_log_file(value)
    return value


def log_format_callback(value: str | None) -> str | None:
    if value:
        set_log_format(value)
    return value


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        callback=verbose_callback,
        is_eager=True,
        help="Also list skipped tests",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        callback=quiet_callback,
        is_eager=True,
        help="Print errors only; rely on the exit code",
    ),
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            "-L",
            callback=log_level_callback,
            help="Logging level (DEBUG, INFO, WARNING, ERROR)",
            envvar="TANDEM_LOG_LEVEL",
        ),
    ] = None,
    log_file: Annotated[
        Path | None,
        typer.Option(
            "--log-file",
            callback=log_file_callback,
            help="Path for log file output",
            envvar="TANDEM_LOG_FILE",
        ),
    ] = None,
    log_format: Annotated[
        str | None,
        typer.Option(
            "--log-format",
            callback=log_format_callback,
            help="Log format: json, console, or both",
            envvar="TANDEM_LOG_FORMAT",
        ),
    ] = None,
) -> None:
    """Tandem - run test files in parallel processes."""
    configure_global_logging(console)


app.command()(run)


__all__ = ["app", "main", "console", "OutputLevel"]
