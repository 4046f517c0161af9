"""
nicestream: Streaming time-series engine with a NiceGUI demo view.

This package provides:
- DataGenerator: synthetic trend + sinusoid + noise signal
- filter_points / aggregate_points: pure filter and time-bucket mean transforms
- decimate / calculate_bounds / moving_average / ema: render preparation
- OffloadCoordinator: runs large filter/aggregate requests on a worker process
  with timeout-guarded inline fallback
- DataStream / DataPipeline: live point window and transform pipeline
- Logging utilities for library and application use

For logging configuration in standalone scripts/demos:
    ```python
    from nicestream.utils.logging import configure_logging
    configure_logging(level="DEBUG")
    ```

When used as a library, logging is handled by the parent application's
configuration.
"""

import logging

from nicestream.utils.logging import configure_logging, get_logger

from nicestream.core import (
    AGGREGATION_PERIODS,
    AggregationPeriod,
    Bounds,
    DataGenerator,
    FilterSpec,
    GeneratorState,
    Point,
    TimeRange,
    ValidationError,
    aggregate_points,
    calculate_bounds,
    decimate,
    ema,
    filter_points,
    moving_average,
)
from nicestream.offload import OffloadCoordinator
from nicestream.stream import DataPipeline, DataStream, RenderFrame

# NullHandler so logs don't propagate to root when no application has
# configured logging. Applications/demos call configure_logging().
_logger = logging.getLogger("nicestream")
if not _logger.handlers:
    _logger.addHandler(logging.NullHandler())

__all__ = [
    "AGGREGATION_PERIODS",
    "AggregationPeriod",
    "Bounds",
    "DataGenerator",
    "DataPipeline",
    "DataStream",
    "FilterSpec",
    "GeneratorState",
    "OffloadCoordinator",
    "Point",
    "RenderFrame",
    "TimeRange",
    "ValidationError",
    "aggregate_points",
    "calculate_bounds",
    "configure_logging",
    "decimate",
    "ema",
    "filter_points",
    "get_logger",
    "moving_average",
]

__version__ = "0.1.0"
