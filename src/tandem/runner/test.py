"""Test identity and outcome."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path


class Result(IntEnum):
    """Outcome of a test.

    The numeric order is the scheduling priority used by the outcome
    cache: lower values run first on the next run. A test that has never
    run (or has no cache entry) is PREPARED, so previously failing tests
    are dispatched before new ones and passing tests come last.
    """

    FAILED = 0
    PREPARED = 1
    SKIPPED = 2
    PASSED = 3


@dataclass
class Test:
    """One logical test unit: a file plus the arguments it is run with.

    A Test starts PREPARED and is completed exactly once with a terminal
    result. The signature identifies the test across runs.
    """

    __test__ = False

    file: Path
    args: tuple[str, ...] = ()
    result: Result = Result.PREPARED
    message: str | None = None
    duration: float | None = None
    output: str = field(default="", repr=False)

    @property
    def signature(self) -> str:
        return " ".join([str(self.file), *self.args])

    @property
    def name(self) -> str:
        """File name of the test, without its directory."""
        return self.file.name

    @property
    def has_result(self) -> bool:
        return self.result is not Result.PREPARED

    def complete(
        self,
        result: Result,
        message: str | None = None,
        duration: float | None = None,
        output: str = "",
    ) -> Test:
        """Record the terminal outcome of this test.

        Raises:
            ValueError: If ``result`` is PREPARED.
            RuntimeError: If the test already has a terminal outcome.
        """
        if result is Result.PREPARED:
            raise ValueError("PREPARED is not a terminal result")
        if self.has_result:
            raise RuntimeError(
                f"Test '{self.signature}' already completed as {self.result.name}"
            )
        self.result = result
        self.message = message
        self.duration = duration
        self.output = output
        return self
