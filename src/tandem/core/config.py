"""Configuration models for Tandem.

Pydantic v2 models for a test run: where to look for tests, how many
processes to keep alive, where to cache outcomes between runs, and how
to launch one test file. A run can be configured from the command line,
from a YAML file, or both (command-line values win).
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from tandem.core.errors import ConfigurationError

DEFAULT_PATTERNS = ["test_*.py", "*_test.py"]


class LogConfig(BaseModel):
    """Configuration for structured logging."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Minimum log level to capture",
    )
    format: Literal["json", "console", "both"] = Field(
        default="console",
        description="Output format: json for structured, console for human-readable, "
        "both for console to stderr and JSON to file",
    )
    file_path: Path | None = Field(
        default=None,
        description="Path for log file output (required if format='both')",
    )
    max_file_size_mb: int = Field(
        default=50,
        gt=0,
        le=1000,
        description="Maximum log file size before rotation (MB)",
    )
    backup_count: int = Field(
        default=5,
        ge=0,
        le=100,
        description="Number of rotated log files to keep",
    )

    @model_validator(mode="after")
    def _check_file_path_required(self) -> LogConfig:
        """Validate that file_path is set when format requires file output."""
        if self.format == "both" and self.file_path is None:
            raise ValueError(
                f"file_path is required when format='{self.format}'"
            )
        return self


class RunnerConfig(BaseModel):
    """Top-level configuration for one test run."""

    paths: list[str] = Field(
        default_factory=list,
        description="Files, directories or glob patterns to search for tests",
    )
    jobs: int = Field(
        default=8,
        ge=1,
        le=256,
        description="Maximum number of test processes running at the same time",
    )
    temp_dir: Path | None = Field(
        default=None,
        description="Existing writable directory. Enables the outcome cache "
        "(stored in a 'Tandem' subdirectory) and failed-first ordering.",
    )
    env: dict[str, str] = Field(
        default_factory=dict,
        description="Environment variables applied to every test process",
    )
    stop_on_fail: bool = Field(
        default=False,
        description="Stop dispatching new tests after the first failure",
    )
    interpreter: list[str] = Field(
        default_factory=lambda: [sys.executable],
        description="Command used to launch a test file",
    )
    interpreter_args: list[str] = Field(
        default_factory=list,
        description="Arguments placed between the interpreter and the test file",
    )
    test_args: list[str] = Field(
        default_factory=list,
        description="Arguments passed to every test file; part of the test signature",
    )
    patterns: list[str] = Field(
        default_factory=lambda: list(DEFAULT_PATTERNS),
        description="File name patterns that identify tests inside directories",
    )
    timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Per-test wall-clock limit. None means no limit.",
    )
    junit_file: Path | None = Field(
        default=None,
        description="Write a JUnit XML report to this file",
    )
    log: LogConfig = Field(
        default_factory=LogConfig,
        description="Structured logging configuration",
    )

    @field_validator("interpreter")
    @classmethod
    def _validate_interpreter(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("interpreter must contain at least the executable")
        return v

    @field_validator("patterns")
    @classmethod
    def _validate_patterns(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("patterns must contain at least one pattern")
        return v

    @classmethod
    def from_yaml(cls, path: Path) -> RunnerConfig:
        """Load run configuration from a YAML file.

        Raises:
            ConfigurationError: If the file cannot be read, is not valid YAML,
                or does not match the schema.
        """
        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise ConfigurationError(f"Cannot read config file '{path}': {e}") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in '{path}': {e}") from e

        try:
            return cls.model_validate(data or {})
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration in '{path}': {e}") from e


__all__ = ["DEFAULT_PATTERNS", "LogConfig", "RunnerConfig"]
