"""Fixed-width time-bucket aggregation."""

from __future__ import annotations

from typing import Sequence

from nicestream.core.frames import points_to_frame
from nicestream.core.types import AggregationPeriod, Point


def bucket_key(timestamp: int, period: AggregationPeriod) -> int:
    """Left edge of the bucket containing ``timestamp``."""
    return (int(timestamp) // period.milliseconds) * period.milliseconds


def aggregate_points(points: Sequence[Point], period: AggregationPeriod) -> list[Point]:
    """Average points into fixed-width time buckets.

    Buckets are left-closed: a point at ``timestamp`` falls in the bucket
    starting at ``floor(timestamp / ms) * ms``. One output point is emitted per
    non-empty bucket, timestamped at the bucket's left edge, valued at the
    arithmetic mean of all its members (NaN if any member value is missing
    or NaN), and tagged with ``original_count``.

    Args:
        points: Input points, in any order.
        period: Bucket width.

    Returns:
        Aggregated points sorted ascending by timestamp. The ``original_count``
        values sum to ``len(points)``.
    """
    if not points:
        return []

    df = points_to_frame(points)
    ms = period.milliseconds
    df["bucket"] = (df["timestamp"] // ms) * ms

    grouped = df.groupby("bucket", sort=True)["value"]
    sizes = grouped.size()
    # mean over every member: one NaN makes the bucket NaN
    has_missing = df["value"].isna().groupby(df["bucket"], sort=True).any()
    means = grouped.mean().where(~has_missing)

    return [
        Point(
            timestamp=int(bucket),
            value=float(means[bucket]),
            metadata={"aggregated": True, "original_count": int(sizes[bucket])},
        )
        for bucket in means.index
    ]
