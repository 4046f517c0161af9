"""Live point window fed by a DataGenerator."""

from __future__ import annotations

import asyncio
from collections import deque
from typing import Callable, Optional

from nicestream.core.generator import DataGenerator
from nicestream.core.types import Point
from nicestream.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_WINDOW_SIZE = 10_000

OnUpdate = Callable[[Point], None]


class DataStream:
    """Keeps the most recent ``max_points`` points and extends them in real time.

    Appending beyond the cap evicts the oldest points. ``start()`` runs
    ``tick()`` on an asyncio task every ``interval_s`` seconds; listeners added
    with ``add_listener`` are called with each new point.
    """

    def __init__(
        self,
        generator: Optional[DataGenerator] = None,
        *,
        max_points: int = DEFAULT_WINDOW_SIZE,
    ) -> None:
        if max_points < 1:
            raise ValueError(f"max_points must be >= 1, got {max_points}")
        self.generator = generator or DataGenerator()
        self.max_points = max_points
        self._window: deque[Point] = deque(maxlen=max_points)
        self._listeners: list[OnUpdate] = []
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def points(self) -> list[Point]:
        return list(self._window)

    @property
    def last_point(self) -> Optional[Point]:
        return self._window[-1] if self._window else None

    def __len__(self) -> int:
        return len(self._window)

    def add_listener(self, listener: OnUpdate) -> None:
        self._listeners.append(listener)

    def reset(self, count: int = 1000) -> list[Point]:
        """Replace the window with a fresh initial dataset of ``count`` points."""
        initial = self.generator.generate_initial_dataset(count)
        self._window.clear()
        self._window.extend(initial)
        logger.info("reset stream with %d points (kept %d)", len(initial), len(self._window))
        return self.points

    def add_point(self, point: Point) -> None:
        self._window.append(point)
        self._notify(point)

    def clear(self) -> None:
        self._window.clear()

    def tick(self) -> Point:
        """Append the next generated point after the current last point."""
        point = self.generator.generate_next_point(self.last_point)
        self.add_point(point)
        return point

    def _notify(self, point: Point) -> None:
        for listener in self._listeners:
            try:
                listener(point)
            except Exception:
                logger.exception("stream listener failed")

    # -----------------------------
    # Streaming task
    # -----------------------------
    @property
    def is_streaming(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, interval_s: float = 0.1) -> None:
        """Begin ticking every ``interval_s`` seconds. Needs a running event loop."""
        if self.is_streaming:
            return

        async def _run() -> None:
            try:
                while True:
                    await asyncio.sleep(interval_s)
                    self.tick()
            except asyncio.CancelledError:
                return

        self._task = asyncio.create_task(_run())
        logger.info("streaming started (interval %.3fs)", interval_s)

    def stop(self) -> None:
        t = self._task
        self._task = None
        if t is not None and not t.done():
            t.cancel()
            logger.info("streaming stopped")
