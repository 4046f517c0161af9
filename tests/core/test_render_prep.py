"""Unit tests for decimate, calculate_bounds, moving_average and ema."""

from __future__ import annotations

import math

import pytest

from nicestream.core.errors import InvalidPeriod
from nicestream.core.render_prep import calculate_bounds, decimate, ema, moving_average
from nicestream.core.types import Bounds, Point


def _series(values, start=0, step=100):
    return [Point(start + i * step, float(v)) for i, v in enumerate(values)]


# --- decimate ----------------------------------------------------------------


def test_decimate_returns_copy_when_small():
    points = _series(range(10))
    result = decimate(points, 10)
    assert result == points
    assert result is not points


def test_decimate_uses_ceil_stride():
    points = _series(range(10_000))
    result = decimate(points, 1000)
    assert len(result) == 1000
    assert result[0] == points[0]
    assert result[1] == points[10]


def test_decimate_never_exceeds_max():
    for n in (1001, 1500, 2999, 7777):
        points = _series(range(n))
        result = decimate(points, 1000)
        assert len(result) <= 1000
        assert len(result) == math.ceil(n / math.ceil(n / 1000))


def test_decimate_preserves_order():
    points = _series(range(5000))
    stamps = [p.timestamp for p in decimate(points, 300)]
    assert stamps == sorted(stamps)


@pytest.mark.parametrize("bad", [0, -1, 2.5, True])
def test_decimate_rejects_invalid_max(bad):
    with pytest.raises(InvalidPeriod):
        decimate(_series(range(5)), bad)


# --- calculate_bounds --------------------------------------------------------


def test_bounds_of_empty_input_are_zero():
    assert calculate_bounds([]) == Bounds(0, 0, 0, 0)


def test_bounds_single_point():
    assert calculate_bounds([Point(7, 3.5)]) == Bounds(7, 7, 3.5, 3.5)


def test_bounds_unordered_input():
    points = [Point(300, 5.0), Point(100, 9.0), Point(200, -1.0), Point(400, 2.0)]
    assert calculate_bounds(points) == Bounds(min_x=100, max_x=400, min_y=-1.0, max_y=9.0)


# --- moving_average ----------------------------------------------------------


def test_moving_average_length_and_alignment():
    points = _series([1, 2, 3, 4, 5])
    result = moving_average(points, 3)
    assert len(result) == 3
    assert [p.value for p in result] == pytest.approx([2.0, 3.0, 4.0])
    assert [p.timestamp for p in result] == [200, 300, 400]


def test_moving_average_period_one_is_identity_values():
    points = _series([4, 8, 15])
    result = moving_average(points, 1)
    assert [(p.timestamp, p.value) for p in result] == [(p.timestamp, p.value) for p in points]


def test_moving_average_short_input_is_empty():
    assert moving_average(_series([1, 2]), 3) == []


@pytest.mark.parametrize("bad", [0, -3, 1.5])
def test_moving_average_rejects_invalid_period(bad):
    with pytest.raises(InvalidPeriod):
        moving_average(_series(range(10)), bad)


# --- ema ---------------------------------------------------------------------


def test_ema_is_seeded_with_first_value_and_keeps_length():
    points = _series([10, 20, 30, 40])
    result = ema(points, 3)
    assert len(result) == len(points)
    assert result[0].value == 10.0
    # multiplier 0.5: 15, 22.5, 31.25
    assert [p.value for p in result[1:]] == pytest.approx([15.0, 22.5, 31.25])
    assert [p.timestamp for p in result] == [p.timestamp for p in points]


def test_ema_of_constant_series_is_constant():
    result = ema(_series([5] * 30), 12)
    assert all(p.value == pytest.approx(5.0) for p in result)


def test_ema_short_input_is_empty():
    assert ema(_series([1, 2]), 3) == []


def test_ema_rejects_invalid_period():
    with pytest.raises(InvalidPeriod):
        ema(_series(range(10)), 0)


def test_transforms_do_not_mutate_input():
    points = _series(range(50))
    snapshot = list(points)
    decimate(points, 10)
    moving_average(points, 5)
    ema(points, 5)
    calculate_bounds(points)
    assert points == snapshot
