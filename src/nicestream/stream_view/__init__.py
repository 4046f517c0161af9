"""Plotly/NiceGUI presentation of a streaming pipeline."""

from nicestream.stream_view.figure_builder import StreamFigureStyle, build_stream_figure

__all__ = [
    "StreamFigureStyle",
    "build_stream_figure",
]
