# tests/stream/test_pipeline.py
from __future__ import annotations

import pytest

from nicestream.core.aggregation import aggregate_points
from nicestream.core.filtering import filter_points
from nicestream.core.render_prep import calculate_bounds
from nicestream.core.types import ONE_MINUTE, FilterSpec, Point
from nicestream.offload.coordinator import OffloadCoordinator, Resolution
from nicestream.stream.pipeline import DataPipeline


def _points(n: int) -> list[Point]:
    return [Point(i * 1000, float(i % 40)) for i in range(n)]


@pytest.fixture
def pipeline() -> DataPipeline:
    return DataPipeline(_points(600), coordinator=OffloadCoordinator(use_worker=False))


@pytest.mark.asyncio
async def test_refresh_without_filters_or_period_passes_data_through(pipeline: DataPipeline) -> None:
    result = await pipeline.refresh()
    assert result == pipeline.data
    assert pipeline.filtered == pipeline.data


@pytest.mark.asyncio
async def test_refresh_filters_then_aggregates(pipeline: DataPipeline) -> None:
    spec = FilterSpec(min_value=10, max_value=20)
    pipeline.set_filters(spec)
    pipeline.set_aggregation_period(ONE_MINUTE)

    result = await pipeline.refresh()

    expected_filtered = filter_points(pipeline.data, spec)
    assert pipeline.filtered == expected_filtered
    assert result == aggregate_points(expected_filtered, ONE_MINUTE)
    assert pipeline.aggregated is result
    assert pipeline.coordinator.last_resolution is Resolution.INLINE


@pytest.mark.asyncio
async def test_clear_filters_resets_stages(pipeline: DataPipeline) -> None:
    pipeline.set_filters(FilterSpec(min_value=30))
    pipeline.set_aggregation_period(ONE_MINUTE)
    await pipeline.refresh()

    pipeline.clear_filters()
    result = await pipeline.refresh()

    assert pipeline.filters.is_empty()
    assert pipeline.aggregation_period is None
    assert result == pipeline.data


@pytest.mark.asyncio
async def test_set_data_is_picked_up_by_refresh(pipeline: DataPipeline) -> None:
    pipeline.set_data(_points(5))
    assert await pipeline.refresh() == _points(5)


@pytest.mark.asyncio
async def test_render_frame_decimates_and_bounds_cover_rendered_points(pipeline: DataPipeline) -> None:
    await pipeline.refresh()
    frame = pipeline.render_frame(100, sma_period=20, ema_period=12)

    assert len(frame.points) <= 100
    assert frame.source_count == 600
    assert frame.bounds == calculate_bounds(frame.points)
    assert len(frame.sma) == 600 - 20 + 1
    assert len(frame.ema) == 600


@pytest.mark.asyncio
async def test_render_frame_skips_indicators_by_default(pipeline: DataPipeline) -> None:
    await pipeline.refresh()
    frame = pipeline.render_frame()
    assert frame.sma == []
    assert frame.ema == []
    assert len(frame.points) == 600


def test_render_frame_on_empty_pipeline() -> None:
    frame = DataPipeline(coordinator=OffloadCoordinator(use_worker=False)).render_frame(sma_period=5)
    assert frame.points == []
    assert frame.bounds.max_x == 0
    assert frame.sma == []


@pytest.mark.asyncio
async def test_to_dataframe_reflects_aggregated_stage(pipeline: DataPipeline) -> None:
    pipeline.set_aggregation_period(ONE_MINUTE)
    await pipeline.refresh()
    df = pipeline.to_dataframe()
    assert len(df) == len(pipeline.aggregated)
    assert list(df["timestamp"]) == [p.timestamp for p in pipeline.aggregated]
