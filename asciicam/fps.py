"""
Rolling frame rate estimate for the live display.
"""

import time
from collections import deque
from typing import Optional


class FPSEstimator:
    """
    Moving average over the most recent instantaneous frame rates.

    The window starts filled with zeros, so the average climbs towards the
    real rate during the first ``window`` ticks.
    """

    def __init__(self, window: int = 10):
        if window < 1:
            raise ValueError("FPS window must hold at least one sample")
        self._samples = deque([0.0] * window, maxlen=window)
        self._last_tick = time.perf_counter()

    @property
    def samples(self) -> list:
        """Current samples, most recent first."""
        return list(self._samples)

    @property
    def average(self) -> float:
        return sum(self._samples) / len(self._samples)

    def update(self, elapsed: float) -> float:
        """
        Record one frame that took ``elapsed`` seconds.

        Args:
            elapsed: Seconds since the previous frame

        Returns:
            Mean of the window after the update
        """
        rate = 1.0 / elapsed if elapsed > 0 else 0.0
        self._samples.appendleft(rate)
        return self.average

    def tick(self, now: Optional[float] = None) -> float:
        """Record a frame at ``now`` (defaults to the current time)."""
        if now is None:
            now = time.perf_counter()
        elapsed = now - self._last_tick
        self._last_tick = now
        return self.update(elapsed)
