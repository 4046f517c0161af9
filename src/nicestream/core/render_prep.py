"""Render-oriented transforms: decimation, bounds and indicator series.

These functions prepare point sequences for display. They never mutate their
input and return new lists.
"""

from __future__ import annotations

import math
import numbers
from typing import Sequence

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from nicestream.core.errors import InvalidPeriod
from nicestream.core.types import Bounds, Point


def _require_positive_int(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, numbers.Integral) or value < 1:
        raise InvalidPeriod(f"Invalid {name}: {value!r}. Must be a positive integer.")


def decimate(points: Sequence[Point], max_points: int) -> list[Point]:
    """Subsample ``points`` to at most ``max_points`` with a uniform stride.

    Keeps every k-th point, k = ceil(len / max_points), starting at index 0.
    There is no averaging, so spikes between sampled indices can be lost.
    """
    _require_positive_int("max_points", max_points)
    if len(points) <= max_points:
        return list(points)
    step = math.ceil(len(points) / max_points)
    return list(points[::step])


def calculate_bounds(points: Sequence[Point]) -> Bounds:
    """Min/max of timestamp and value in one pass; all zeros for no points."""
    if not points:
        return Bounds()

    first = points[0]
    min_x = max_x = first.timestamp
    min_y = max_y = first.value
    for p in points:
        if p.timestamp < min_x:
            min_x = p.timestamp
        elif p.timestamp > max_x:
            max_x = p.timestamp
        if p.value < min_y:
            min_y = p.value
        elif p.value > max_y:
            max_y = p.value
    return Bounds(min_x=min_x, max_x=max_x, min_y=min_y, max_y=max_y)


def moving_average(points: Sequence[Point], period: int) -> list[Point]:
    """Trailing simple moving average.

    Output has ``len(points) - period + 1`` points; output i is the mean of
    inputs ``i .. i+period-1`` and carries the timestamp of input
    ``i+period-1``. Empty when there are fewer than ``period`` points.
    """
    _require_positive_int("period", period)
    if len(points) < period:
        return []

    values = np.asarray([p.value for p in points], dtype=float)
    means = sliding_window_view(values, period).mean(axis=1)
    return [
        Point(timestamp=points[i + period - 1].timestamp, value=float(m))
        for i, m in enumerate(means)
    ]


def ema(points: Sequence[Point], period: int) -> list[Point]:
    """Exponential moving average with multiplier 2 / (period + 1).

    Seeded with the first value and returns one point per input point, unlike
    moving_average. Empty when there are fewer than ``period`` points.
    """
    _require_positive_int("period", period)
    if len(points) < period:
        return []

    multiplier = 2 / (period + 1)
    current = points[0].value
    result = [Point(timestamp=points[0].timestamp, value=current)]
    for p in points[1:]:
        current = (p.value - current) * multiplier + current
        result.append(Point(timestamp=p.timestamp, value=current))
    return result
