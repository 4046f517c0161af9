"""Predicate-based point filtering.

filter_points is a stable filter: the output keeps the input's relative
order. Malformed bounds never raise; they are sanitized with a logged
warning (non-finite bounds dropped, inverted bounds swapped).
"""

from __future__ import annotations

import math
import numbers
from dataclasses import replace
from typing import Any, Sequence

from nicestream.core.types import FilterSpec, Point
from nicestream.utils.logging import get_logger

logger = get_logger(__name__)


def _is_finite_number(x: Any) -> bool:
    return isinstance(x, numbers.Real) and not isinstance(x, bool) and math.isfinite(x)


def sanitize_filter_spec(spec: FilterSpec) -> FilterSpec:
    """Return a copy of ``spec`` with unusable value bounds repaired."""
    min_value = spec.min_value
    max_value = spec.max_value

    if min_value is not None and not _is_finite_number(min_value):
        logger.warning("min_value %r is not a finite number, ignoring", min_value)
        min_value = None
    if max_value is not None and not _is_finite_number(max_value):
        logger.warning("max_value %r is not a finite number, ignoring", max_value)
        max_value = None

    if min_value is not None and max_value is not None and min_value > max_value:
        logger.warning("min_value %r is greater than max_value %r, swapping", min_value, max_value)
        min_value, max_value = max_value, min_value

    if min_value is spec.min_value and max_value is spec.max_value:
        return spec
    return replace(spec, min_value=min_value, max_value=max_value)


def _keep(point: Point, spec: FilterSpec) -> bool:
    if point is None or not _is_finite_number(point.value):
        return False
    if spec.categories is not None and point.category:
        if point.category not in spec.categories:
            return False
    if spec.min_value is not None and point.value < spec.min_value:
        return False
    if spec.max_value is not None and point.value > spec.max_value:
        return False
    if spec.time_range is not None and not spec.time_range.contains(point.timestamp):
        return False
    return True


def filter_points(points: Sequence[Point], spec: FilterSpec) -> list[Point]:
    """Return the points satisfying every predicate present in ``spec``.

    Args:
        points: Input points, in any order.
        spec: Filter predicates. Category membership only applies to points
            that carry a category; value and time bounds are inclusive.

    Returns:
        New list with the matching points in input order. Points whose value
        is missing or non-finite are dropped unless ``spec`` is empty, in
        which case the input is returned unchanged.
    """
    if spec.is_empty():
        return list(points)
    spec = sanitize_filter_spec(spec)
    return [p for p in points if _keep(p, spec)]
