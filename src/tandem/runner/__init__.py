"""Test scheduling: discovery, jobs, outcome cache, and the runner loop.

Usage:
    from tandem.runner import Runner, Interpreter

    runner = Runner(Interpreter(), jobs=4)
    runner.paths = ["tests/"]
    runner.set_temp_directory(Path("/tmp"))
    ok = runner.run()
"""

from tandem.runner.cache import OutcomeCache, prepare_temp_directory
from tandem.runner.discovery import find_tests
from tandem.runner.handler import SKIP_EXIT_CODE, TestHandler
from tandem.runner.interpreter import Interpreter
from tandem.runner.interrupt import InterruptController
from tandem.runner.job import THREAD_ENV_VAR, Job, RunMode, Slot
from tandem.runner.scheduler import POLL_INTERVAL_SECONDS, Runner
from tandem.runner.test import Result, Test

__all__ = [
    "POLL_INTERVAL_SECONDS",
    "SKIP_EXIT_CODE",
    "THREAD_ENV_VAR",
    "InterruptController",
    "Interpreter",
    "Job",
    "OutcomeCache",
    "Result",
    "RunMode",
    "Runner",
    "Slot",
    "Test",
    "TestHandler",
    "find_tests",
    "prepare_temp_directory",
]
