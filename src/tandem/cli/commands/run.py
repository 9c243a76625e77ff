"""Run command for the Tandem CLI.

``tandem run`` discovers tests under the given paths and runs them in
parallel. Options given on the command line override the values of a
``--config`` YAML file.
"""

from __future__ import annotations

import shlex
from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError
from rich.markup import escape

from tandem.core.config import RunnerConfig
from tandem.core.errors import TandemError
from tandem.output import ConsoleOutput, JUnitOutput, LogOutput
from tandem.runner import Runner

from ..helpers import (
    EXIT_INTERRUPTED,
    EXIT_OK,
    EXIT_TESTS_FAILED,
    EXIT_USAGE_ERROR,
    apply_log_config,
    is_quiet,
    is_verbose,
    log_options_explicit,
    parse_env_options,
)
from ..output import console, error_console


def run(
    paths: list[str] | None = typer.Argument(
        None,
        help="Test files, directories or glob patterns",
        show_default=False,
    ),
    jobs: int | None = typer.Option(
        None,
        "--jobs",
        "-j",
        help="Number of tests to run in parallel [default: 8]",
    ),
    temp: Path | None = typer.Option(
        None,
        "--temp",
        help="Writable directory for the outcome cache; enables failed-first ordering",
    ),
    stop_on_fail: bool = typer.Option(
        False,
        "--stop-on-fail",
        help="Stop starting new tests after the first failure",
    ),
    env: list[str] | None = typer.Option(
        None,
        "--env",
        "-e",
        help="NAME=VALUE environment variable for every test (repeatable)",
    ),
    interpreter: str | None = typer.Option(
        None,
        "--interpreter",
        "-p",
        help="Command that runs a test file, e.g. 'python -X dev'",
    ),
    timeout: float | None = typer.Option(
        None,
        "--timeout",
        help="Per-test time limit in seconds",
    ),
    junit: Path | None = typer.Option(
        None,
        "--junit",
        help="Write a JUnit XML report to this file",
    ),
    config_file: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="YAML file with run settings",
    ),
) -> None:
    """Run tests in parallel, failed-first when a temp directory is given."""
    try:
        config = _load_config(
            config_file,
            paths=paths,
            jobs=jobs,
            temp=temp,
            stop_on_fail=stop_on_fail,
            env=env,
            interpreter=interpreter,
            timeout=timeout,
            junit=junit,
        )
        if not config.paths:
            raise typer.BadParameter("No test paths given", param_hint="PATHS")

        if config_file is not None and not log_options_explicit():
            apply_log_config(config.log)

        runner = Runner.from_config(config)
        if not is_quiet():
            runner.output_handlers.append(ConsoleOutput(console, verbose=is_verbose()))
        runner.output_handlers.append(LogOutput())
        if config.junit_file is not None:
            runner.output_handlers.append(JUnitOutput(config.junit_file))

        success = runner.run()
    except TandemError as e:
        error_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(EXIT_USAGE_ERROR) from None

    if runner.interrupt.signalled:
        raise typer.Exit(EXIT_INTERRUPTED)
    raise typer.Exit(EXIT_OK if success else EXIT_TESTS_FAILED)


def _load_config(config_file: Path | None, **overrides: Any) -> RunnerConfig:
    """Merge the config file (if any) with command-line overrides.

    Raises:
        ConfigurationError: If the file is unusable.
        typer.BadParameter: If the merged settings are invalid.
    """
    base = RunnerConfig.from_yaml(config_file) if config_file else RunnerConfig()
    data = base.model_dump()

    if overrides["paths"]:
        data["paths"] = list(overrides["paths"])
    if overrides["jobs"] is not None:
        data["jobs"] = overrides["jobs"]
    if overrides["temp"] is not None:
        data["temp_dir"] = overrides["temp"]
    if overrides["stop_on_fail"]:
        data["stop_on_fail"] = True
    if overrides["env"]:
        data["env"] = {**data["env"], **parse_env_options(overrides["env"])}
    if overrides["interpreter"]:
        data["interpreter"] = shlex.split(overrides["interpreter"])
    if overrides["timeout"] is not None:
        data["timeout_seconds"] = overrides["timeout"]
    if overrides["junit"] is not None:
        data["junit_file"] = overrides["junit"]

    try:
        return RunnerConfig.model_validate(data)
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in e.errors()
        )
        raise typer.BadParameter(errors) from None
