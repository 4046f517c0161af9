"""Plotly figure construction for a RenderFrame.

The figure builder is a read-only consumer of the pipeline output: it never
mutates the points, bounds or indicator series it is given.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Sequence

import plotly.graph_objects as go

from nicestream.core.types import Bounds, Point
from nicestream.stream.pipeline import RenderFrame


@dataclass(frozen=True)
class StreamFigureStyle:
    """Colors and labels for the stream figure."""
    raw_color: str = "#3b82f6"
    sma_color: str = "#f59e0b"
    ema_color: str = "#10b981"
    line_width: int = 2
    x_title: str = "Time"
    y_title: str = "Value"
    y_padding_fraction: float = 0.05


def _to_datetimes(points: Sequence[Point]) -> list[datetime]:
    return [datetime.fromtimestamp(p.timestamp / 1000, tz=timezone.utc) for p in points]


def _y_range(bounds: Bounds, padding_fraction: float) -> list[float]:
    span = bounds.max_y - bounds.min_y or 1.0
    pad = span * padding_fraction
    return [bounds.min_y - pad, bounds.max_y + pad]


def build_stream_figure(frame: RenderFrame, style: StreamFigureStyle | None = None) -> dict:
    """Create a line figure with the raw series and any indicator series.

    Args:
        frame: Output of DataPipeline.render_frame().
        style: Colors and axis titles; defaults to StreamFigureStyle().

    Returns:
        Plotly figure as a dict, ready for ui.plotly() or update_figure().
    """
    style = style or StreamFigureStyle()

    fig = go.Figure()
    fig.add_trace(go.Scattergl(
        x=_to_datetimes(frame.points),
        y=[p.value for p in frame.points],
        mode="lines",
        name=f"Value ({len(frame.points)}/{frame.source_count})",
        line=dict(color=style.raw_color, width=style.line_width),
    ))
    if frame.sma:
        fig.add_trace(go.Scattergl(
            x=_to_datetimes(frame.sma),
            y=[p.value for p in frame.sma],
            mode="lines",
            name="SMA",
            line=dict(color=style.sma_color, width=style.line_width, dash="dash"),
        ))
    if frame.ema:
        fig.add_trace(go.Scattergl(
            x=_to_datetimes(frame.ema),
            y=[p.value for p in frame.ema],
            mode="lines",
            name="EMA",
            line=dict(color=style.ema_color, width=style.line_width, dash="dot"),
        ))

    layout_updates: dict = dict(
        margin=dict(l=40, r=20, t=40, b=40),
        xaxis_title=style.x_title,
        yaxis_title=style.y_title,
        showlegend=True,
        uirevision="keep",
    )
    if frame.points:
        b = frame.bounds
        layout_updates["xaxis_range"] = [
            datetime.fromtimestamp(b.min_x / 1000, tz=timezone.utc),
            datetime.fromtimestamp(b.max_x / 1000, tz=timezone.utc),
        ]
        layout_updates["yaxis_range"] = _y_range(b, style.y_padding_fraction)
    fig.update_layout(**layout_updates)
    return fig.to_dict()
