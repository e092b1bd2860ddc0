"""Clock sources for the timer engine and the document store."""

import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone


class ClockSource(ABC):
    """Monotonic millisecond clock.

    Values never decrease within a process lifetime and are immune to
    wall-clock adjustments. They are not comparable across restarts.
    """

    @abstractmethod
    def now(self) -> float:
        """Get the current timestamp in milliseconds (arbitrary epoch).

        Returns:
            Milliseconds since an arbitrary, fixed point
        """
        pass


class MonotonicClock(ClockSource):
    """ClockSource backed by ``time.monotonic_ns``."""

    def now(self) -> float:
        """Get monotonic milliseconds with sub-millisecond resolution."""
        return time.monotonic_ns() / 1_000_000


def utc_now() -> datetime:
    """Wall-clock time used to timestamp stored records."""
    return datetime.now(timezone.utc)
