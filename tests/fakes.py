"""Deterministic stand-ins for clocks, schedulers and id factories."""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from timeflow.core.clock import ClockSource
from timeflow.core.scheduler import TickCallback, TickScheduler


class FakeClock(ClockSource):
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 0.0):
        self.value = start

    def now(self) -> float:
        return self.value

    def advance(self, ms: float) -> None:
        self.value += ms


class ManualTickScheduler(TickScheduler):
    """Scheduler whose frames are fired explicitly by the test."""

    def __init__(self) -> None:
        self.callback: Optional[TickCallback] = None
        self.cancel_count = 0

    def schedule_next(self, callback: TickCallback) -> None:
        self.callback = callback

    def cancel(self) -> None:
        self.callback = None
        self.cancel_count += 1

    @property
    def pending(self) -> bool:
        return self.callback is not None

    def fire(self) -> None:
        callback, self.callback = self.callback, None
        assert callback is not None, "no tick pending"
        callback()


def sequential_ids(prefix: str = "id") -> Callable[[], str]:
    """Deterministic id factory: id-1, id-2, ..."""
    counter = {"n": 0}

    def factory() -> str:
        counter["n"] += 1
        return f"{prefix}-{counter['n']}"

    return factory


class FakeWallClock:
    """Wall clock that moves one second per call."""

    def __init__(self) -> None:
        self.current = datetime(2025, 1, 1, 9, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current
