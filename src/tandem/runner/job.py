"""One test file running as an external process.

A Job is started exactly once, either synchronously (``run`` returns when
the process has exited) or asynchronously (``run`` returns immediately and
the caller polls ``is_running``). Output is redirected to anonymous
temporary files rather than pipes so a chatty test can never block on a
full pipe while the scheduler is only polling.

The concurrency slot a job occupies is passed to ``run`` as a ``Slot`` and
exported to the child as ``TANDEM_THREAD`` so a test can pick a private
scratch resource (a database name, a port range, ...).
"""

from __future__ import annotations

import os
import signal
import subprocess
import tempfile
import time
from dataclasses import dataclass
from enum import Enum
from typing import IO

from tandem.core.errors import ConfigurationError
from tandem.core.logging import get_logger
from tandem.runner.interpreter import Interpreter
from tandem.runner.test import Test

_logger = get_logger("job")

THREAD_ENV_VAR = "TANDEM_THREAD"
GRACEFUL_TERMINATION_TIMEOUT: float = 5.0  # Seconds between SIGTERM and SIGKILL


class RunMode(Enum):
    """How ``Job.run`` starts the process."""

    SYNC = "sync"
    ASYNC = "async"


@dataclass(frozen=True)
class Slot:
    """One of the ``N`` interchangeable concurrency tokens (1-based)."""

    index: int

    def __str__(self) -> str:
        return str(self.index)


class Job:
    """Runs one Test out of process."""

    __test__ = False

    def __init__(
        self,
        test: Test,
        interpreter: Interpreter,
        env: dict[str, str] | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self._test = test
        self._interpreter = interpreter
        self._env: dict[str, str] = dict(env or {})
        self.timeout_seconds = timeout_seconds

        self._slot: Slot | None = None
        self._process: subprocess.Popen[bytes] | None = None
        self._stdout: IO[bytes] | None = None
        self._stderr: IO[bytes] | None = None
        self._started_at: float | None = None

        self.exit_code: int | None = None
        self.exit_signal: int | None = None
        self.output = ""
        self.error_output = ""
        self.duration: float | None = None
        self.timed_out = False

    @property
    def test(self) -> Test:
        return self._test

    @property
    def slot(self) -> Slot | None:
        """Slot assigned by the last ``run`` call, None before it."""
        return self._slot

    @property
    def started(self) -> bool:
        return self._process is not None

    def set_environment_variable(self, name: str, value: str) -> None:
        self._env[name] = value

    def get_environment_variable(self, name: str) -> str | None:
        return self._env.get(name)

    def get_environment(self) -> dict[str, str]:
        """Return a copy of the job-specific environment variables."""
        return dict(self._env)

    def run(self, mode: RunMode = RunMode.SYNC, slot: Slot | None = None) -> None:
        """Start the test process.

        Args:
            mode: SYNC blocks until the process exits; ASYNC returns at once.
            slot: Concurrency slot exported to the child as TANDEM_THREAD.

        Raises:
            RuntimeError: If the job was already started.
            ConfigurationError: If the interpreter cannot be launched.
        """
        if self._process is not None:
            raise RuntimeError(f"Job for '{self._test.signature}' was already started")

        self._slot = slot
        if slot is not None:
            self._env[THREAD_ENV_VAR] = str(slot)

        cmd = self._interpreter.build_command(self._test)
        env = {**os.environ, **self._env}
        self._stdout = tempfile.TemporaryFile()
        self._stderr = tempfile.TemporaryFile()

        _logger.debug(
            "job.starting",
            test=self._test.signature,
            mode=mode.value,
            slot=slot.index if slot else None,
            env=self._env,
        )

        started_at = time.monotonic()
        try:
            # start_new_session keeps Ctrl-C aimed at the runner away from the test
            process = subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=self._stdout,
                stderr=self._stderr,
                cwd=self._test.file.parent,
                env=env,
                start_new_session=True,
            )
        except OSError as e:
            self._stdout.close()
            self._stderr.close()
            self._stdout = self._stderr = None
            _logger.error(
                "job.launch_failed",
                test=self._test.signature,
                command=cmd,
                error=str(e),
            )
            raise ConfigurationError(f"Cannot start '{cmd[0]}': {e.strerror or e}") from e

        self._process = process
        self._started_at = started_at

        if mode is RunMode.SYNC:
            try:
                process.wait(timeout=self.timeout_seconds)
            except subprocess.TimeoutExpired:
                self._kill_on_timeout(process)
            self._collect(process, started_at)

    def is_running(self) -> bool:
        """Non-blocking liveness check.

        Collects the exit status and output the first time the process is
        seen to have exited. Enforces the job's own timeout, if any.
        """
        process, started_at = self._process, self._started_at
        if process is None or started_at is None or self.duration is not None:
            return False

        if process.poll() is None:
            if self._timeout_expired(started_at):
                self._kill_on_timeout(process)
            else:
                return True

        self._collect(process, started_at)
        return False

    def _timeout_expired(self, started_at: float) -> bool:
        if self.timeout_seconds is None:
            return False
        return time.monotonic() - started_at > self.timeout_seconds

    def _kill_on_timeout(self, process: subprocess.Popen[bytes]) -> None:
        """Terminate gracefully, then kill the process group."""
        self.timed_out = True
        _logger.warning(
            "job.timeout",
            test=self._test.signature,
            pid=process.pid,
            timeout_seconds=self.timeout_seconds,
        )
        process.terminate()
        try:
            process.wait(timeout=GRACEFUL_TERMINATION_TIMEOUT)
        except subprocess.TimeoutExpired:
            try:
                os.killpg(os.getpgid(process.pid), signal.SIGKILL)
            except (OSError, ProcessLookupError):
                pass  # Group may already be gone
            process.kill()
            process.wait()

    def _collect(self, process: subprocess.Popen[bytes], started_at: float) -> None:
        """Record exit status, duration and captured output."""
        self.duration = time.monotonic() - started_at

        returncode = process.returncode
        if returncode is not None and returncode < 0:
            self.exit_signal = -returncode
            self.exit_code = None
        else:
            self.exit_code = returncode

        self.output = _drain(self._stdout)
        self.error_output = _drain(self._stderr)
        self._stdout = self._stderr = None

        _logger.debug(
            "job.finished",
            test=self._test.signature,
            exit_code=self.exit_code,
            exit_signal=self.exit_signal,
            duration_seconds=self.duration,
        )


def _drain(stream: IO[bytes] | None) -> str:
    if stream is None:
        return ""
    try:
        stream.seek(0)
        return stream.read().decode("utf-8", errors="replace")
    finally:
        stream.close()
