"""Live streaming window and transform pipeline."""

from nicestream.stream.data_stream import DEFAULT_WINDOW_SIZE, DataStream
from nicestream.stream.perf import FrameMonitor, measure_execution
from nicestream.stream.pipeline import DataPipeline, RenderFrame

__all__ = [
    "DEFAULT_WINDOW_SIZE",
    "DataPipeline",
    "DataStream",
    "FrameMonitor",
    "RenderFrame",
    "measure_execution",
]
