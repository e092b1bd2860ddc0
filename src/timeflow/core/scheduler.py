"""Redraw scheduling for the running timer."""

import logging
import time
from abc import ABC, abstractmethod
from typing import Callable, Optional

logger = logging.getLogger(__name__)

TickCallback = Callable[[], None]


class TickScheduler(ABC):
    """Requests one "next redraw" callback per display-refresh cycle.

    A scheduler holds at most one pending callback. Scheduling a new
    callback replaces the pending one.
    """

    @abstractmethod
    def schedule_next(self, callback: TickCallback) -> None:
        """Request ``callback`` to run on the next frame.

        Args:
            callback: Function to invoke once on the next frame
        """
        pass

    @abstractmethod
    def cancel(self) -> None:
        """Drop the pending callback, if any. Takes effect immediately."""
        pass

    @property
    @abstractmethod
    def pending(self) -> bool:
        """Whether a callback is waiting for the next frame."""
        pass


class FrameTickScheduler(TickScheduler):
    """Cooperative single-threaded scheduler driven by ``run_pending``.

    The owner calls :meth:`run_pending` from its main loop; each frame the
    pending callback is taken and invoked, and the callback is expected to
    re-schedule itself if it wants another frame.
    """

    def __init__(
        self,
        frame_rate: int = 30,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize the scheduler.

        Args:
            frame_rate: Frames per second
            sleep: Sleep function, injectable for tests

        Raises:
            ValueError: If frame_rate is not positive
        """
        if frame_rate < 1:
            raise ValueError(f"frame_rate must be >= 1, got {frame_rate}")
        self.frame_interval = 1.0 / frame_rate
        self._sleep = sleep
        self._callback: Optional[TickCallback] = None

    def schedule_next(self, callback: TickCallback) -> None:
        self._callback = callback

    def cancel(self) -> None:
        if self._callback is not None:
            logger.debug("Cancelled pending tick")
        self._callback = None

    @property
    def pending(self) -> bool:
        return self._callback is not None

    def run_frame(self) -> bool:
        """Run the pending callback once, without sleeping.

        Returns:
            True if a callback ran, False if nothing was pending
        """
        callback = self._callback
        if callback is None:
            return False
        self._callback = None
        callback()
        return True

    def run_pending(self, max_frames: Optional[int] = None) -> int:
        """Drive frames until nothing is pending.

        Args:
            max_frames: Stop after this many frames (None for no limit)

        Returns:
            Number of frames that ran
        """
        frames = 0
        while self.pending and (max_frames is None or frames < max_frames):
            self._sleep(self.frame_interval)
            if self.run_frame():
                frames += 1
        return frames
