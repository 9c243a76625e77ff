"""Rich console reporter.

Prints one character per finished test (``.`` passed, ``s`` skipped,
``F`` failed) as results arrive, then failure details and a summary line
once the run ends.
"""

from __future__ import annotations

import time

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from tandem import __version__
from tandem.runner.test import Result, Test

RESULT_SYMBOLS: dict[Result, tuple[str, str]] = {
    Result.PASSED: (".", "green"),
    Result.SKIPPED: ("s", "yellow"),
    Result.FAILED: ("F", "red"),
}


def format_duration(seconds: float | None) -> str:
    """Format a duration in seconds to a human-readable string.

    Returns:
        e.g. "5.2s", "3m 12s", "1h 30m"; "N/A" for None.
    """
    if seconds is None:
        return "N/A"

    if seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        minutes = int(seconds // 60)
        secs = int(seconds % 60)
        return f"{minutes}m {secs}s"
    else:
        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        return f"{hours}h {minutes}m"


class ConsoleOutput:
    """Progress dots and a final summary on a rich Console."""

    def __init__(
        self,
        console: Console | None = None,
        verbose: bool = False,
        line_width: int = 60,
    ) -> None:
        self.console = console or Console()
        self.verbose = verbose
        self.line_width = line_width
        self._reset()

    def _reset(self) -> None:
        self._started_at = time.monotonic()
        self._prepared = 0
        self._column = 0
        self._counts: dict[Result, int] = {result: 0 for result in RESULT_SYMBOLS}
        self._failed: list[Test] = []
        self._skipped: list[Test] = []

    def begin(self) -> None:
        self._reset()
        self.console.print(f"[bold]Tandem[/bold] {__version__}\n")

    def prepare(self, test: Test) -> None:
        self._prepared += 1

    def finish(self, test: Test) -> None:
        symbol, color = RESULT_SYMBOLS[test.result]
        self._counts[test.result] += 1
        if test.result is Result.FAILED:
            self._failed.append(test)
        elif test.result is Result.SKIPPED:
            self._skipped.append(test)

        self.console.print(f"[{color}]{symbol}[/{color}]", end="")
        self._column += 1
        if self._column >= self.line_width:
            self.console.print()
            self._column = 0

    def end(self) -> None:
        if self._column:
            self.console.print()
        self.console.print()

        for test in self._failed:
            self.console.print(Panel(
                escape(test.message or "Failed"),
                title=f"[red]FAILED[/red] {escape(test.signature)}",
                title_align="left",
                border_style="red",
            ))

        if self.verbose:
            for test in self._skipped:
                reason = f": {escape(test.message)}" if test.message else ""
                self.console.print(f"[yellow]Skipped[/yellow] {escape(test.signature)}{reason}")

        self.console.print(self.summary())

    def summary(self) -> str:
        """Return the one-line run summary (with rich markup)."""
        finished = sum(self._counts.values())
        parts = [f"{finished} test{'s' if finished != 1 else ''}"]
        if self._counts[Result.FAILED]:
            parts.append(f"{self._counts[Result.FAILED]} failed")
        if self._counts[Result.SKIPPED]:
            parts.append(f"{self._counts[Result.SKIPPED]} skipped")
        not_run = self._prepared - finished
        if not_run > 0:
            parts.append(f"{not_run} not run")
        parts.append(format_duration(time.monotonic() - self._started_at))

        details = ", ".join(parts)
        if self._counts[Result.FAILED]:
            return f"[bold red]FAILURES![/bold red] ({details})"
        if not_run > 0:
            return f"[bold yellow]INTERRUPTED[/bold yellow] ({details})"
        return f"[bold green]OK[/bold green] ({details})"
