"""Command used to launch a single test file."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field

from tandem.runner.test import Test


@dataclass
class Interpreter:
    """Executable plus fixed arguments that run one test file.

    The default runs test files with the current Python interpreter.
    """

    command: list[str] = field(default_factory=lambda: [sys.executable])
    arguments: list[str] = field(default_factory=list)

    def build_command(self, test: Test) -> list[str]:
        """Return the argv for running ``test``."""
        return [*self.command, *self.arguments, str(test.file), *test.args]
