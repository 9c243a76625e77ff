"""Output sink protocol.

A sink observes one run through four ordered notifications:

- ``begin()`` once, before any test is discovered or started
- ``prepare(test)`` once per test, when it becomes a job
- ``finish(test)`` once per test, with its terminal result, in
  completion order (not discovery order)
- ``end()`` once, after the scheduling loop has stopped, including
  interrupted runs

Sinks are notified in registration order. An exception raised by a sink
aborts the run; sinks must not raise for control flow.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from tandem.runner.test import Test


@runtime_checkable
class OutputHandler(Protocol):
    """Protocol for run observers (console, JUnit file, log, ...)."""

    def begin(self) -> None: ...

    def prepare(self, test: Test) -> None: ...

    def finish(self, test: Test) -> None: ...

    def end(self) -> None: ...
