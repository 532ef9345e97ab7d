"""
Stopwatch used to time suite and case runs.
"""

import time
from datetime import datetime, timezone
from typing import Callable, Optional


class Timer:
    """Monotonic stopwatch that also remembers the wall-clock start."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._started: Optional[float] = None
        self.started_at: Optional[datetime] = None

    def start(self) -> "Timer":
        self._started = self._clock()
        self.started_at = datetime.now(timezone.utc)
        return self

    def reset(self) -> "Timer":
        """Restart the stopwatch from zero."""
        return self.start()

    @property
    def running(self) -> bool:
        return self._started is not None

    def elapsed(self) -> float:
        """Seconds since start, or 0.0 when the timer was never started."""
        if self._started is None:
            return 0.0
        return self._clock() - self._started
