"""Timer engine: start/pause/reset/lap state machine on a monotonic clock."""

import logging
from typing import Callable, Optional
from uuid import uuid4

from timeflow.core.clock import ClockSource, MonotonicClock
from timeflow.core.models import Lap, TimerPhase, TimerState
from timeflow.core.scheduler import FrameTickScheduler, TickScheduler

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return str(uuid4())


class TimerEngine:
    """Tracks elapsed time across run segments and records laps.

    Elapsed time is never cached: every call to :meth:`elapsed` re-derives
    the value from the clock, so display updates cannot drift.
    """

    def __init__(
        self,
        clock: Optional[ClockSource] = None,
        scheduler: Optional[TickScheduler] = None,
        id_factory: Callable[[], str] = _new_id,
        on_tick: Optional[Callable[[int], None]] = None,
    ):
        """Initialize the engine in the Idle phase.

        Args:
            clock: Monotonic clock. Defaults to MonotonicClock
            scheduler: Redraw scheduler. Defaults to FrameTickScheduler
            id_factory: Generates lap identifiers
            on_tick: Called with the elapsed milliseconds on every redraw
        """
        self.clock = clock or MonotonicClock()
        self.scheduler = scheduler or FrameTickScheduler()
        self.on_tick = on_tick
        self._id_factory = id_factory
        self._phase = TimerPhase.IDLE
        self._accumulated_ms = 0
        self._start_ts: Optional[float] = None
        self._laps: list[Lap] = []

    @property
    def phase(self) -> TimerPhase:
        return self._phase

    @property
    def accumulated_ms(self) -> int:
        return self._accumulated_ms

    @property
    def laps(self) -> tuple[Lap, ...]:
        return tuple(self._laps)

    @property
    def is_running(self) -> bool:
        return self._phase is TimerPhase.RUNNING

    @property
    def state(self) -> TimerState:
        """Read-only snapshot of the current state."""
        return TimerState(
            phase=self._phase,
            accumulated_ms=self._accumulated_ms,
            start_ts=self._start_ts,
            laps=tuple(self._laps),
        )

    def elapsed(self) -> int:
        """Total tracked milliseconds, including the in-progress segment."""
        if self._phase is TimerPhase.RUNNING and self._start_ts is not None:
            return self._accumulated_ms + round(self.clock.now() - self._start_ts)
        return self._accumulated_ms

    def start(self) -> None:
        """Start or resume tracking. No-op if already running."""
        if self._phase is TimerPhase.RUNNING:
            return
        self._start_ts = self.clock.now()
        self._phase = TimerPhase.RUNNING
        logger.debug(f"Timer started at {self._start_ts:.3f}ms (banked {self._accumulated_ms}ms)")
        self.scheduler.schedule_next(self._tick)

    def pause(self) -> None:
        """Bank the running segment and pause. No-op unless running."""
        if self._phase is not TimerPhase.RUNNING or self._start_ts is None:
            return
        delta = round(self.clock.now() - self._start_ts)
        self._accumulated_ms += delta
        self._start_ts = None
        self._phase = TimerPhase.PAUSED
        self.scheduler.cancel()
        logger.debug(f"Timer paused after {delta}ms segment (banked {self._accumulated_ms}ms)")

    def stop(self) -> None:
        """Pause if running. Does not record a time entry."""
        if self._phase is TimerPhase.RUNNING:
            self.pause()

    def reset(self) -> None:
        """Return to Idle with no banked time and no laps."""
        self.scheduler.cancel()
        self._phase = TimerPhase.IDLE
        self._accumulated_ms = 0
        self._start_ts = None
        self._laps = []
        logger.debug("Timer reset")

    def add_lap(self, note: Optional[str] = None) -> Optional[Lap]:
        """Record a lap at the current elapsed time.

        Args:
            note: Optional note attached to the lap

        Returns:
            The new lap, or None if the timer is not running
        """
        if self._phase is not TimerPhase.RUNNING:
            return None
        at_ms = self.elapsed()
        last_at = self._laps[-1].at_ms if self._laps else 0
        lap = Lap(id=self._id_factory(), at_ms=at_ms, delta_ms=at_ms - last_at, note=note)
        self._laps.append(lap)
        logger.debug(f"Lap {len(self._laps)} at {at_ms}ms (+{lap.delta_ms}ms)")
        return lap

    def close(self) -> None:
        """Tear down the session; no callback survives this call."""
        self.scheduler.cancel()

    def _tick(self) -> None:
        if self._phase is not TimerPhase.RUNNING:
            return
        if self.on_tick is not None:
            self.on_tick(self.elapsed())
        # the listener may have paused or reset the engine
        if self._phase is TimerPhase.RUNNING:
            self.scheduler.schedule_next(self._tick)


def format_elapsed(ms: int, show_milliseconds: bool = False) -> str:
    """Format milliseconds as ``HH:MM:SS`` (optionally with ``.mmm``).

    Args:
        ms: Milliseconds
        show_milliseconds: Append the millisecond part

    Returns:
        Formatted duration
    """
    total_seconds = ms // 1000
    hours = total_seconds // 3600
    minutes = (total_seconds // 60) % 60
    seconds = total_seconds % 60
    text = f"{hours:02d}:{minutes:02d}:{seconds:02d}"
    if show_milliseconds:
        text += f".{ms % 1000:03d}"
    return text
