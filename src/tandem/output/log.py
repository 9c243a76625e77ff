"""Structured-log observer: one event per lifecycle notification."""

from __future__ import annotations

from tandem.core.logging import get_logger
from tandem.runner.test import Result, Test

_logger = get_logger("output.log")


class LogOutput:
    """Mirrors the run into the structured log (useful with ``--log-format json``)."""

    def begin(self) -> None:
        _logger.info("run.begin")

    def prepare(self, test: Test) -> None:
        _logger.debug("test.prepared", test=test.signature)

    def finish(self, test: Test) -> None:
        log = _logger.warning if test.result is Result.FAILED else _logger.info
        log(
            "test.finished",
            test=test.signature,
            result=test.result.name,
            duration_seconds=test.duration,
            message=test.message,
        )

    def end(self) -> None:
        _logger.info("run.end")
