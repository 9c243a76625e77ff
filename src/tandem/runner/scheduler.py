"""Test runner: the concurrency-slot scheduling loop.

One controlling thread keeps up to ``jobs`` test processes alive at once.
Pending jobs are dispatched in queue order, each holding one of the
``jobs`` slot tokens until it is seen to have exited; in-flight jobs are
polled, not waited on, so completion is reported in wall-clock order.

A lone job (nothing else running or waiting) is started synchronously:
there is nothing to overlap it with, so the loop simply blocks on it.

When a temp directory is configured the pending queue is sorted once by
each test's last cached outcome, so tests that failed last time run first.
The sort is stable: discovery order breaks ties.

Interruption (Ctrl-C or stop-on-fail) is cooperative. The loop stops
dispatching and leaves at its next flag check; processes already started
are never killed by the runner. After a stop-on-fail the runner still
waits for the jobs in flight and reports them; after Ctrl-C it leaves
them running and returns at once.
"""

from __future__ import annotations

import time
from collections import deque
from pathlib import Path
from typing import TYPE_CHECKING

from tandem.core.config import DEFAULT_PATTERNS, RunnerConfig
from tandem.core.errors import ConfigurationError
from tandem.core.logging import RunContext, get_logger, with_context
from tandem.runner.cache import OutcomeCache, prepare_temp_directory
from tandem.runner.discovery import find_tests
from tandem.runner.handler import TestHandler
from tandem.runner.interpreter import Interpreter
from tandem.runner.interrupt import InterruptController
from tandem.runner.job import Job, RunMode, Slot
from tandem.runner.test import Result, Test

if TYPE_CHECKING:
    from tandem.output.base import OutputHandler

_logger = get_logger("runner")

# Blocking waits on several child processes at once are not portable;
# the loop sleeps this long between polls instead.
POLL_INTERVAL_SECONDS: float = 0.02


class Runner:
    """Runs every discovered test to completion, ``jobs`` at a time."""

    def __init__(self, interpreter: Interpreter, jobs: int = 1) -> None:
        if jobs < 1:
            raise ConfigurationError(f"jobs must be at least 1, got {jobs}")

        self.paths: list[str] = []
        self.jobs = jobs
        self.output_handlers: list[OutputHandler] = []
        self.stop_on_fail = False
        self.patterns: list[str] = list(DEFAULT_PATTERNS)
        self.test_args: list[str] = []
        self.timeout_seconds: float | None = None
        self.test_handler = TestHandler(self)
        self.interrupt = InterruptController()

        self._interpreter = interpreter
        self._env_vars: dict[str, str] = {}
        self._cache: OutcomeCache | None = None

        # Run state, reset by run()
        self._pending: deque[Job] = deque()
        self._running: dict[Job, Slot] = {}
        self._result = True
        self._peak_in_flight = 0

    @classmethod
    def from_config(cls, config: RunnerConfig) -> Runner:
        """Build a runner from a validated RunnerConfig.

        Raises:
            ConfigurationError: If the temp directory is unusable.
        """
        runner = cls(
            Interpreter(
                command=list(config.interpreter),
                arguments=list(config.interpreter_args),
            ),
            jobs=config.jobs,
        )
        runner.paths = list(config.paths)
        runner.stop_on_fail = config.stop_on_fail
        runner.patterns = list(config.patterns)
        runner.test_args = list(config.test_args)
        runner.timeout_seconds = config.timeout_seconds
        for name, value in config.env.items():
            runner.set_environment_variable(name, value)
        runner.set_temp_directory(config.temp_dir)
        return runner

    @property
    def interpreter(self) -> Interpreter:
        return self._interpreter

    @property
    def cache(self) -> OutcomeCache | None:
        return self._cache

    def set_environment_variable(self, name: str, value: str) -> None:
        """Set a variable in the environment of every test process."""
        self._env_vars[name] = value

    def get_environment_variables(self) -> dict[str, str]:
        return dict(self._env_vars)

    def set_temp_directory(self, path: Path | None) -> None:
        """Enable (or, with None, disable) the outcome cache.

        Raises:
            ConfigurationError: If ``path`` is not a writable directory or
                the cache subdirectory cannot be created.
        """
        if path is None:
            self._cache = None
            return
        self._cache = OutcomeCache(prepare_temp_directory(path))

    def run(self) -> bool:
        """Run all tests.

        Returns:
            True if no test failed. An interrupted run returns the result
            of the tests that completed before it stopped.
        """
        self._result = True
        self.interrupt.reset()
        self._pending = deque()
        self._running = {}
        self._peak_in_flight = 0

        with with_context(RunContext(component="runner")):
            for handler in self.output_handlers:
                handler.begin()

            for path in self.paths:
                find_tests(path, self.patterns, self.test_handler.initiate)

            if self._cache is not None:
                cache = self._cache
                self._pending = deque(
                    sorted(self._pending, key=lambda job: cache.last_result(job.test))
                )

            _logger.info(
                "runner.started",
                tests=len(self._pending),
                jobs=self.jobs,
                cache_dir=str(self._cache.directory) if self._cache else None,
                stop_on_fail=self.stop_on_fail,
            )

            self.interrupt.arm()
            try:
                self._schedule()
                if self.interrupt.reason == "stop_on_fail":
                    self._drain()
            finally:
                self.interrupt.disarm()

            if self.interrupt.requested:
                _logger.warning(
                    "runner.interrupted",
                    not_started=len(self._pending),
                    still_running=len(self._running),
                )

            for handler in self.output_handlers:
                handler.end()

            _logger.info(
                "runner.finished",
                success=self._result,
                peak_in_flight=self._peak_in_flight,
            )

        return self._result

    def _schedule(self) -> None:
        free_slots = deque(Slot(index) for index in range(1, self.jobs + 1))

        while (self._pending or self._running) and not self.interrupt.requested:
            while free_slots and self._pending and not self.interrupt.requested:
                job = self._pending.popleft()
                slot = free_slots.popleft()
                self._running[job] = slot
                self._peak_in_flight = max(self._peak_in_flight, len(self._running))
                concurrent = len(self._running) + len(self._pending) > 1
                mode = RunMode.ASYNC if self.jobs > 1 and concurrent else RunMode.SYNC
                _logger.debug(
                    "runner.job_dispatched",
                    test=job.test.signature,
                    slot=slot.index,
                    mode=mode.value,
                )
                job.run(mode, slot)

            if len(self._running) > 1:
                time.sleep(POLL_INTERVAL_SECONDS)

            for job, slot in list(self._running.items()):
                if self.interrupt.requested:
                    return

                if not job.is_running():
                    free_slots.append(slot)
                    self.test_handler.assess(job)
                    del self._running[job]

    def _drain(self) -> None:
        """Wait for the jobs still in flight after a stop-on-fail and assess them.

        Nothing new is dispatched. A Ctrl-C abandons the wait.
        """
        while self._running and not self.interrupt.signalled:
            time.sleep(POLL_INTERVAL_SECONDS)
            for job in list(self._running):
                if not job.is_running():
                    self.test_handler.assess(job)
                    del self._running[job]

    def add_job(self, job: Job) -> None:
        """Append a job to the pending queue."""
        self._pending.append(job)

    def prepare_test(self, test: Test) -> None:
        for handler in self.output_handlers:
            handler.prepare(test)

    def finish_test(self, test: Test) -> None:
        """Fold a completed test into the run result and notify the sinks."""
        self._result = self._result and test.result is not Result.FAILED

        for handler in self.output_handlers:
            handler.finish(test)

        if self._cache is not None:
            self._cache.record(test)

        if self.stop_on_fail and test.result is Result.FAILED:
            self.interrupt.request("stop_on_fail")
