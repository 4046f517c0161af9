# Demo app for DataStream + DataPipeline
"""Live streaming demo: a generated signal, filtered/aggregated through the
offload coordinator, decimated and drawn with SMA/EMA overlays.

Run with::

    python -m nicestream.stream_view.demo_stream_app
"""

from __future__ import annotations

from multiprocessing import freeze_support

from nicegui import app, ui

from nicestream.config.engine_config import EngineConfig
from nicestream.core.types import AGGREGATION_PERIODS, AggregationPeriod, FilterSpec
from nicestream.stream.data_stream import DataStream
from nicestream.stream.perf import FrameMonitor
from nicestream.stream.pipeline import DataPipeline
from nicestream.stream_view.figure_builder import build_stream_figure
from nicestream.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)

_PERIOD_NONE = "(none)"


def main() -> None:
    configure_logging(level="INFO")

    cfg = EngineConfig.load()
    d = cfg.data

    stream = DataStream(cfg.make_generator(), max_points=d.window_size)
    stream.reset(d.initial_count)
    pipeline = DataPipeline(stream.points, coordinator=cfg.make_coordinator())
    monitor = FrameMonitor()

    app.on_shutdown(pipeline.coordinator.aclose)

    ui.page_title("nicestream demo")

    periods = {p.kind.value: p for p in AGGREGATION_PERIODS}

    with ui.column().classes("w-full gap-2 p-4"):
        with ui.row().classes("items-center gap-4"):
            min_input = ui.number("Min value", value=None)
            max_input = ui.number("Max value", value=None)
            period_select = ui.select(
                [_PERIOD_NONE] + list(periods.keys()),
                value=_PERIOD_NONE,
                label="Aggregation",
            )
            ui.button("Start", on_click=lambda: stream.start(d.stream_interval_s))
            ui.button("Stop", on_click=stream.stop).props("outline")
            status = ui.label("").classes("text-sm text-gray-600")

        plot = ui.plotly(build_stream_figure(pipeline.render_frame(d.max_render_points))).classes("w-full h-96")

    async def _redraw() -> None:
        pipeline.set_data(stream.points)
        pipeline.set_filters(FilterSpec(min_value=min_input.value, max_value=max_input.value))
        period: AggregationPeriod | None = periods.get(period_select.value)
        pipeline.set_aggregation_period(period)
        await pipeline.refresh()
        frame = pipeline.render_frame(
            d.max_render_points,
            sma_period=d.sma_period,
            ema_period=d.ema_period,
        )
        plot.update_figure(build_stream_figure(frame))
        monitor.measure_frame()
        venue = pipeline.coordinator.last_resolution
        status.text = (
            f"{len(stream)} points, {frame.source_count} shown as {len(frame.points)}, "
            f"{monitor.fps()} fps, venue={venue.value if venue else '-'}"
        )

    ui.timer(max(d.stream_interval_s, 0.25), _redraw)
    app.on_startup(lambda: stream.start(d.stream_interval_s))

    ui.run(reload=False, title="nicestream")


if __name__ == "__main__":
    freeze_support()
    main()
