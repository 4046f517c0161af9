"""Value types shared by the generator, transforms and worker protocol.

This module defines Point, TimeRange, FilterSpec, AggregationPeriod and
Bounds. Every type is a frozen dataclass; the JSON-friendly ``to_dict`` /
``from_dict`` pairs are the wire form used by the offload worker.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Mapping, Optional

from nicestream.core.errors import InvalidPeriod


@dataclass(frozen=True)
class Point:
    """A single (timestamp, value) observation, optionally categorized.

    ``timestamp`` is integer milliseconds since the epoch; a fractional float
    timestamp is truncated to whole milliseconds on construction, as
    ``from_dict`` does. ``metadata`` is a free-form mapping; the generator and
    aggregator use it for markers such as ``generated``, ``degraded`` and
    ``original_count``.
    """
    timestamp: int
    value: float
    category: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None

    def __post_init__(self) -> None:
        ts = self.timestamp
        if isinstance(ts, float) and math.isfinite(ts):
            object.__setattr__(self, "timestamp", int(ts))

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"timestamp": self.timestamp, "value": self.value}
        if self.category is not None:
            d["category"] = self.category
        if self.metadata is not None:
            d["metadata"] = dict(self.metadata)
        return d

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Point":
        """Build a Point from its dict form.

        Raises:
            ValueError: If ``timestamp`` is missing or ``metadata`` is not a dict.
        """
        if "timestamp" not in data:
            raise ValueError("point dict must contain 'timestamp'")
        metadata = data.get("metadata")
        if metadata is not None and not isinstance(metadata, dict):
            raise ValueError(f"point metadata must be a dict, got {type(metadata).__name__}")
        value = data.get("value")
        return cls(
            timestamp=int(data["timestamp"]),
            value=float(value) if isinstance(value, (int, float)) else value,
            category=data.get("category"),
            metadata=dict(metadata) if metadata is not None else None,
        )


@dataclass(frozen=True)
class TimeRange:
    """Inclusive [start, end] interval in milliseconds."""
    start: float
    end: float

    def contains(self, timestamp: float) -> bool:
        return self.start <= timestamp <= self.end


@dataclass(frozen=True)
class FilterSpec:
    """Optional predicates applied by filter_points.

    Absent predicates (None) do not constrain. An all-None spec is the
    identity transform.
    """
    categories: Optional[frozenset[str]] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    time_range: Optional[TimeRange] = None

    def __post_init__(self) -> None:
        if self.categories is not None and not isinstance(self.categories, frozenset):
            object.__setattr__(self, "categories", frozenset(self.categories))

    def is_empty(self) -> bool:
        return (
            self.categories is None
            and self.min_value is None
            and self.max_value is None
            and self.time_range is None
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {}
        if self.categories is not None:
            d["categories"] = sorted(self.categories)
        if self.min_value is not None:
            d["min_value"] = self.min_value
        if self.max_value is not None:
            d["max_value"] = self.max_value
        if self.time_range is not None:
            d["time_range"] = {"start": self.time_range.start, "end": self.time_range.end}
        return d

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FilterSpec":
        categories: Optional[Iterable[str]] = data.get("categories")
        time_range = data.get("time_range")
        if time_range is not None:
            if not isinstance(time_range, Mapping):
                raise ValueError("time_range must be a dict with 'start' and 'end'")
            time_range = TimeRange(start=time_range["start"], end=time_range["end"])
        return cls(
            categories=frozenset(categories) if categories is not None else None,
            min_value=data.get("min_value"),
            max_value=data.get("max_value"),
            time_range=time_range,
        )


class PeriodKind(Enum):
    """Supported aggregation bucket widths."""
    ONE_MINUTE = "1min"
    FIVE_MINUTES = "5min"
    ONE_HOUR = "1hour"


@dataclass(frozen=True)
class AggregationPeriod:
    """Fixed-width time bucket used by aggregate_points."""
    kind: PeriodKind
    label: str
    milliseconds: int

    def __post_init__(self) -> None:
        ms = self.milliseconds
        if isinstance(ms, bool) or not isinstance(ms, int) or ms <= 0:
            raise InvalidPeriod(f"Invalid period milliseconds: {ms!r}. Must be a positive integer.")

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "label": self.label, "milliseconds": self.milliseconds}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AggregationPeriod":
        return cls(
            kind=PeriodKind(data["kind"]),
            label=str(data.get("label", "")),
            milliseconds=data["milliseconds"],
        )

    @classmethod
    def from_kind(cls, kind: PeriodKind | str) -> "AggregationPeriod":
        """Return the preset period for ``kind`` ("1min", "5min", "1hour")."""
        return _PRESETS[PeriodKind(kind)]


ONE_MINUTE = AggregationPeriod(PeriodKind.ONE_MINUTE, "1 Minute", 60 * 1000)
FIVE_MINUTES = AggregationPeriod(PeriodKind.FIVE_MINUTES, "5 Minutes", 5 * 60 * 1000)
ONE_HOUR = AggregationPeriod(PeriodKind.ONE_HOUR, "1 Hour", 60 * 60 * 1000)

AGGREGATION_PERIODS: tuple[AggregationPeriod, ...] = (ONE_MINUTE, FIVE_MINUTES, ONE_HOUR)
_PRESETS = {p.kind: p for p in AGGREGATION_PERIODS}


@dataclass(frozen=True)
class Bounds:
    """Min/max timestamp (x) and value (y) of a point set."""
    min_x: float = 0
    max_x: float = 0
    min_y: float = 0
    max_y: float = 0
