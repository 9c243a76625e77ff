"""Cooperative cancellation for a test run.

States:
    armed     - SIGINT handler installed, flag clear
    requested - flag set; SIGINT reverted to the OS default so a second
                Ctrl-C terminates the process outright
    disarmed  - original SIGINT handler restored (always done at run end)

The flag can also be set programmatically (stop-on-fail) without touching
the signal handler. Python runs signal handlers in the main thread between
bytecodes, so a pending Ctrl-C is delivered before the next flag read and
``time.sleep`` returns early when one arrives.

When signals cannot be used (not in the main thread, or no SIGINT on the
platform) arming is a no-op and only ``request()`` can interrupt a run.
"""

from __future__ import annotations

import signal
from types import FrameType
from typing import Any

from tandem.core.logging import get_logger

_logger = get_logger("interrupt")


class InterruptController:
    """Owns the interrupted flag of one runner."""

    def __init__(self) -> None:
        self._requested = False
        self._reason: str | None = None
        self._signalled = False
        self._armed = False
        self._previous_handler: Any = None

    @property
    def requested(self) -> bool:
        return self._requested

    @property
    def reason(self) -> str | None:
        """What first requested the interruption, None while not requested."""
        return self._reason

    @property
    def signalled(self) -> bool:
        """True once a SIGINT has been received in this run."""
        return self._signalled

    @property
    def armed(self) -> bool:
        return self._armed

    def reset(self) -> None:
        """Clear the flag for a new run."""
        self._requested = False
        self._reason = None
        self._signalled = False

    def request(self, reason: str = "requested") -> None:
        """Ask the run to stop dispatching and wind down."""
        if not self._requested:
            _logger.info("interrupt.requested", reason=reason)
            self._reason = reason
        self._requested = True

    def arm(self) -> bool:
        """Install the SIGINT handler.

        Returns:
            True if the handler was installed, False if signals are unavailable.
        """
        if self._armed:
            return True
        if not hasattr(signal, "SIGINT"):
            return False
        try:
            self._previous_handler = signal.signal(signal.SIGINT, self._on_sigint)
        except ValueError:
            # signal.signal only works in the main thread of the interpreter
            _logger.debug("interrupt.signals_unavailable")
            return False
        self._armed = True
        return True

    def disarm(self) -> None:
        """Restore the SIGINT handler that was active before ``arm``."""
        if not self._armed:
            return
        previous = self._previous_handler
        # None means the handler was not installed from Python
        signal.signal(signal.SIGINT, previous if previous is not None else signal.SIG_DFL)
        self._previous_handler = None
        self._armed = False

    def _on_sigint(self, signum: int, frame: FrameType | None) -> None:
        signal.signal(signal.SIGINT, signal.SIG_DFL)
        self._signalled = True
        self.request("SIGINT")
