"""Shared state and utilities for Tandem CLI commands.

- Output verbosity (quiet / normal / verbose)
- Logging configuration gathered from global options
- Parsing of NAME=VALUE environment options
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Literal

import typer
from rich.console import Console

from tandem.core.config import LogConfig
from tandem.core.logging import configure_logging, get_logger

_logger = get_logger("cli")

# Exit codes of `tandem run`
EXIT_OK = 0
EXIT_TESTS_FAILED = 1
EXIT_USAGE_ERROR = 2
EXIT_INTERRUPTED = 130  # Ctrl-C, as a shell reports SIGINT


class OutputLevel(str, Enum):
    """Output verbosity level."""

    QUIET = "quiet"  # Errors and the exit code only
    NORMAL = "normal"
    VERBOSE = "verbose"  # Also list skipped tests


_output_level: OutputLevel = OutputLevel.NORMAL


def get_output_level() -> OutputLevel:
    return _output_level


def set_output_level(level: OutputLevel) -> None:
    global _output_level
    _output_level = level


def is_verbose() -> bool:
    return _output_level == OutputLevel.VERBOSE


def is_quiet() -> bool:
    return _output_level == OutputLevel.QUIET


@dataclass
class CliLoggingConfig:
    """Logging options collected from the global CLI callbacks."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"
    file: Path | None = None
    format: Literal["json", "console", "both"] = "console"
    explicit: bool = False
    configured: bool = False


_log_config = CliLoggingConfig()


def set_log_level(level: str) -> None:
    _log_config.level = level.upper()  # type: ignore[assignment]
    _log_config.explicit = True


def set_log_file(path: Path | None) -> None:
    _log_config.file = path
    _log_config.explicit = True


def set_log_format(fmt: str) -> None:
    _log_config.format = fmt.lower()  # type: ignore[assignment]
    _log_config.explicit = True


def log_options_explicit() -> bool:
    """True if any --log-* option (or TANDEM_LOG_* variable) was given."""
    return _log_config.explicit


def configure_global_logging(console: Console) -> None:
    """Configure logging from the global CLI options, once per session.

    Raises:
        typer.Exit: If the logging options are inconsistent.
    """
    if _log_config.configured:
        return

    try:
        configure_logging(
            level=_log_config.level,
            format=_log_config.format,
            file_path=_log_config.file,
        )
        _log_config.configured = True
    except (ValueError, AttributeError) as e:
        console.print(f"[red]Logging configuration error:[/red] {e}")
        raise typer.Exit(EXIT_USAGE_ERROR) from None


def apply_log_config(log: LogConfig) -> None:
    """Reconfigure logging from a config file's ``log`` section."""
    configure_logging(
        level=log.level,
        format=log.format,
        file_path=log.file_path,
        max_file_size_mb=log.max_file_size_mb,
        backup_count=log.backup_count,
    )


def reset_logging_state() -> None:
    """Reset logging state so tests can reconfigure it."""
    global _log_config
    _log_config = CliLoggingConfig()


def parse_env_options(values: list[str]) -> dict[str, str]:
    """Parse repeated ``--env NAME=VALUE`` options.

    Raises:
        typer.BadParameter: If a value has no '=' or an empty name.
    """
    env: dict[str, str] = {}
    for item in values:
        name, sep, value = item.partition("=")
        if not sep or not name:
            raise typer.BadParameter(
                f"Expected NAME=VALUE, got '{item}'", param_hint="--env"
            )
        env[name] = value
    return env
