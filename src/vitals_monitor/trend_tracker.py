"""
Rolling window of recent readings.

Keeps the last `capacity` readings (oldest evicted first) and computes
short-term deltas for trend detection.
"""

import logging
from collections import deque
from typing import List

from .models import Metric, Reading

logger = logging.getLogger(__name__)


class TrendTracker:
    """Fixed-capacity sliding window of readings, most recent last."""

    def __init__(self, capacity: int = 20):
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._readings: deque = deque()

    def __len__(self) -> int:
        return len(self._readings)

    def push(self, reading: Reading) -> None:
        self._readings.append(reading)
        while len(self._readings) > self.capacity:
            self._readings.popleft()

    def recent(self, n: int) -> List[Reading]:
        """Last n readings in arrival order (most recent last)."""
        if n <= 0:
            return []
        return list(self._readings)[-n:]

    def trend(self, metric: Metric, n: int) -> float:
        """Last value minus first value over the last n samples; 0 with fewer than 2."""
        window = self.recent(n)
        if len(window) < 2:
            return 0.0
        return window[-1].value(metric) - window[0].value(metric)

    def trim(self) -> int:
        """
        Drop readings beyond the nominal capacity.

        Returns:
            Number of readings removed
        """
        removed = 0
        while len(self._readings) > self.capacity:
            self._readings.popleft()
            removed += 1
        if removed:
            logger.info(f"[TRENDS] Trimmed {removed} readings from window")
        return removed

    def clear(self) -> None:
        self._readings.clear()
