"""Shared Rich consoles for the Tandem CLI.

Reports go to stdout; errors go to stderr so a redirected report stays clean.
"""

from __future__ import annotations

from rich.console import Console

console = Console()
error_console = Console(stderr=True)
