"""Exception hierarchy for Tandem.

All Tandem-specific exceptions inherit from TandemError, enabling callers
to catch broad (TandemError) or narrow (e.g., InputError) failures.

A failing test is not an error: it is an outcome folded into the run
result. Interruption is not an error either.
"""

from __future__ import annotations


class TandemError(Exception):
    """Base exception for all Tandem errors."""


class ConfigurationError(TandemError):
    """Raised when the runner cannot be configured.

    Examples: temp directory missing or not writable, cache subdirectory
    cannot be created, unparseable YAML config file, interpreter that
    cannot be launched.
    """


class InputError(TandemError):
    """Raised when a literal (non-glob) test path does not exist.

    Glob patterns that match nothing are not an error.
    """
