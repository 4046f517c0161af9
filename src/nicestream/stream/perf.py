"""Timing helpers for the streaming loop."""

from __future__ import annotations

import time
from collections import deque
from typing import Callable, Optional, TypeVar

from nicestream.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def measure_execution(fn: Callable[[], T], label: Optional[str] = None) -> tuple[T, float]:
    """Call ``fn`` and return ``(result, duration_ms)``; logs at debug when labelled."""
    start = time.perf_counter()
    result = fn()
    duration_ms = (time.perf_counter() - start) * 1000
    if label:
        logger.debug("%s: %.2fms", label, duration_ms)
    return result, duration_ms


class FrameMonitor:
    """Rolling frame-time statistics over the last ``max_history`` frames."""

    def __init__(self, max_history: int = 60, *, clock: Callable[[], float] = time.perf_counter) -> None:
        self._clock = clock
        self._frame_times: deque[float] = deque(maxlen=max_history)
        self._last = clock()
        self.frame_count = 0

    def measure_frame(self) -> float:
        """Record a frame boundary; returns ms since the previous one."""
        now = self._clock()
        duration_ms = (now - self._last) * 1000
        self._last = now
        self._frame_times.append(duration_ms)
        self.frame_count += 1
        return duration_ms

    def average_frame_time(self) -> float:
        if not self._frame_times:
            return 0.0
        return sum(self._frame_times) / len(self._frame_times)

    def fps(self) -> int:
        avg = self.average_frame_time()
        return round(1000 / avg) if avg > 0 else 0

    def reset(self) -> None:
        self.frame_count = 0
        self._frame_times.clear()
        self._last = self._clock()
