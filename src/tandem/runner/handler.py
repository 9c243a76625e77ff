"""Turns test files into jobs, and finished jobs into test outcomes."""

from __future__ import annotations

import signal
from pathlib import Path
from typing import TYPE_CHECKING

from tandem.core.logging import get_logger
from tandem.runner.job import Job
from tandem.runner.test import Result, Test

if TYPE_CHECKING:
    from tandem.runner.scheduler import Runner

_logger = get_logger("handler")

# A test process exiting with this code reports itself as skipped
SKIP_EXIT_CODE = 177

_STDERR_TAIL_LINES = 20


class TestHandler:
    """Bridge between discovery, jobs and the runner.

    ``initiate`` is the discovery callback: one Test and one Job per file.
    ``assess`` reads a finished Job and reports the outcome back to the
    runner.
    """

    __test__ = False

    def __init__(self, runner: Runner) -> None:
        self._runner = runner

    def initiate(self, file: Path) -> None:
        test = Test(file=file, args=tuple(self._runner.test_args))
        self._runner.prepare_test(test)
        self._runner.add_job(
            Job(
                test,
                self._runner.interpreter,
                env=self._runner.get_environment_variables(),
                timeout_seconds=self._runner.timeout_seconds,
            )
        )

    def assess(self, job: Job) -> None:
        """Complete the job's test from its exit status and report it."""
        result, message = _classify(job)
        test = job.test.complete(
            result,
            message=message,
            duration=job.duration,
            output=job.output,
        )
        _logger.debug(
            "handler.assessed",
            test=test.signature,
            result=result.name,
            exit_code=job.exit_code,
        )
        self._runner.finish_test(test)


def _classify(job: Job) -> tuple[Result, str | None]:
    if job.timed_out:
        return Result.FAILED, f"Timed out after {job.timeout_seconds:g}s"

    if job.exit_signal is not None:
        return Result.FAILED, _with_stderr(
            f"Killed by {_signal_name(job.exit_signal)}", job.error_output
        )

    if job.exit_code == 0:
        return Result.PASSED, None

    if job.exit_code == SKIP_EXIT_CODE:
        reason = job.output.strip().splitlines()
        return Result.SKIPPED, reason[0] if reason else None

    return Result.FAILED, _with_stderr(
        f"Exited with code {job.exit_code}", job.error_output
    )


def _signal_name(sig_num: int) -> str:
    try:
        return signal.Signals(sig_num).name
    except ValueError:
        return f"signal {sig_num}"


def _with_stderr(summary: str, stderr: str) -> str:
    tail = stderr.strip().splitlines()[-_STDERR_TAIL_LINES:]
    if not tail:
        return summary
    return summary + "\n" + "\n".join(tail)
