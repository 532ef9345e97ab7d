"""
Shared failure latch for one case run.

A single latch is handed to the element locator, the action facade and the
running test case, so all three always observe the same state. It only returns
to the untripped state through an explicit reset between cases.
"""

from typing import Callable, Optional

from webaccept.monitoring.logger import get_logger


class FailureLatch:
    """Monotonic-until-reset failure flag."""

    def __init__(self, on_trip: Optional[Callable[[], None]] = None) -> None:
        """
        Initialize the latch.

        Args:
            on_trip: Callback invoked every time the latch is tripped,
                typically marking the owning suite as failed
        """
        self._tripped = False
        self._source: Optional[str] = None
        self.on_trip = on_trip
        self.logger = get_logger("webaccept.latch")

    @property
    def tripped(self) -> bool:
        return self._tripped

    @property
    def source(self) -> Optional[str]:
        """Component that tripped the latch first."""
        return self._source

    def trip(self, source: str) -> bool:
        """
        Trip the latch.

        Returns:
            True if this call changed the state, False if it was already tripped
        """
        if self.on_trip is not None:
            self.on_trip()

        if self._tripped:
            return False

        self._tripped = True
        self._source = source
        self.logger.info(f"{source} deactivated, remaining actions of this case are skipped")
        return True

    def reset(self) -> bool:
        """Clear the latch and return its previous state."""
        was_tripped = self._tripped
        self._tripped = False
        self._source = None
        return was_tripped
