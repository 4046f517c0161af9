"""Filter → aggregate → render-prep pipeline over a point sequence.

DataPipeline holds the raw points plus the current FilterSpec and optional
AggregationPeriod. ``refresh()`` recomputes the filtered and aggregated
stages through an OffloadCoordinator; ``render_frame()`` prepares the
aggregated stage for display.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Optional, Sequence

import pandas as pd

from nicestream.core.frames import points_to_frame
from nicestream.core.render_prep import calculate_bounds, decimate, ema, moving_average
from nicestream.core.types import AggregationPeriod, Bounds, FilterSpec, Point
from nicestream.offload.coordinator import OffloadCoordinator
from nicestream.stream.perf import measure_execution
from nicestream.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_RENDER_POINTS = 2_000


@dataclass(frozen=True)
class RenderFrame:
    """Display-ready view of the pipeline output.

    ``points`` is the decimated aggregated series and ``bounds`` covers it.
    The indicator series are computed on the full aggregated series, so
    ``sma`` is shorter than its input and ``ema`` is not.
    """
    points: list[Point]
    bounds: Bounds
    sma: list[Point] = field(default_factory=list)
    ema: list[Point] = field(default_factory=list)
    source_count: int = 0


class DataPipeline:
    """Stateful holder of raw, filtered and aggregated point sequences."""

    def __init__(
        self,
        data: Optional[Sequence[Point]] = None,
        *,
        coordinator: Optional[OffloadCoordinator] = None,
    ) -> None:
        self.coordinator = coordinator or OffloadCoordinator()
        self._data: list[Point] = list(data or [])
        self.filters = FilterSpec()
        self.aggregation_period: Optional[AggregationPeriod] = None
        self.filtered: list[Point] = list(self._data)
        self.aggregated: list[Point] = list(self._data)

    @property
    def data(self) -> list[Point]:
        return self._data

    def set_data(self, points: Sequence[Point]) -> None:
        self._data = list(points)

    def set_filters(self, spec: FilterSpec) -> None:
        self.filters = spec

    def set_aggregation_period(self, period: Optional[AggregationPeriod]) -> None:
        self.aggregation_period = period

    def clear_filters(self) -> None:
        self.filters = FilterSpec()
        self.aggregation_period = None

    async def refresh(self) -> list[Point]:
        """Recompute ``filtered`` then ``aggregated`` from the current data.

        An empty FilterSpec passes the data through; no aggregation period
        passes the filtered points through.
        """
        start = time.perf_counter()
        data = self._data

        if self.filters.is_empty():
            filtered = list(data)
        else:
            filtered = await self.coordinator.filter(data, self.filters)

        if self.aggregation_period is None:
            aggregated = filtered
        else:
            aggregated = await self.coordinator.aggregate(filtered, self.aggregation_period)

        self.filtered = filtered
        self.aggregated = aggregated
        logger.debug(
            "refresh: %d -> %d filtered -> %d aggregated in %.2fms",
            len(data),
            len(filtered),
            len(aggregated),
            (time.perf_counter() - start) * 1000,
        )
        return aggregated

    def render_frame(
        self,
        max_points: int = DEFAULT_MAX_RENDER_POINTS,
        *,
        sma_period: Optional[int] = None,
        ema_period: Optional[int] = None,
    ) -> RenderFrame:
        """Decimate the aggregated series and compute bounds and indicators."""
        source = self.aggregated
        points, _ = measure_execution(lambda: decimate(source, max_points), "decimate")
        return RenderFrame(
            points=points,
            bounds=calculate_bounds(points),
            sma=moving_average(source, sma_period) if sma_period else [],
            ema=ema(source, ema_period) if ema_period else [],
            source_count=len(source),
        )

    def to_dataframe(self) -> pd.DataFrame:
        """Aggregated stage as a DataFrame (timestamp, value, category)."""
        return points_to_frame(self.aggregated)
