"""Core data model and pure transforms for nicestream."""

from nicestream.core.aggregation import aggregate_points, bucket_key
from nicestream.core.errors import (
    InvalidCount,
    InvalidPeriod,
    InvalidTimestamp,
    MessageError,
    NicestreamError,
    OffloadFailure,
    ValidationError,
)
from nicestream.core.filtering import filter_points, sanitize_filter_spec
from nicestream.core.frames import frame_to_points, points_to_frame
from nicestream.core.generator import DataGenerator, GeneratorState
from nicestream.core.render_prep import calculate_bounds, decimate, ema, moving_average
from nicestream.core.types import (
    AGGREGATION_PERIODS,
    FIVE_MINUTES,
    ONE_HOUR,
    ONE_MINUTE,
    AggregationPeriod,
    Bounds,
    FilterSpec,
    PeriodKind,
    Point,
    TimeRange,
)

__all__ = [
    "AGGREGATION_PERIODS",
    "AggregationPeriod",
    "Bounds",
    "DataGenerator",
    "FIVE_MINUTES",
    "FilterSpec",
    "GeneratorState",
    "InvalidCount",
    "InvalidPeriod",
    "InvalidTimestamp",
    "MessageError",
    "NicestreamError",
    "ONE_HOUR",
    "ONE_MINUTE",
    "OffloadFailure",
    "PeriodKind",
    "Point",
    "TimeRange",
    "ValidationError",
    "aggregate_points",
    "bucket_key",
    "calculate_bounds",
    "decimate",
    "ema",
    "filter_points",
    "frame_to_points",
    "moving_average",
    "points_to_frame",
    "sanitize_filter_spec",
]
