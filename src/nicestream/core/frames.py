"""Conversion between Point lists and pandas DataFrames."""

from __future__ import annotations

from typing import Sequence

import pandas as pd

from nicestream.core.types import Point

FRAME_COLUMNS = ["timestamp", "value", "category"]


def points_to_frame(points: Sequence[Point]) -> pd.DataFrame:
    """Build a DataFrame with one row per point, in input order.

    Columns are ``timestamp`` (int64), ``value`` (float64) and ``category``
    (object, None where absent). Metadata is not carried.
    """
    if not points:
        return pd.DataFrame(
            {
                "timestamp": pd.Series(dtype="int64"),
                "value": pd.Series(dtype="float64"),
                "category": pd.Series(dtype=object),
            }
        )
    return pd.DataFrame(
        {
            "timestamp": pd.Series([int(p.timestamp) for p in points], dtype="int64"),
            "value": pd.to_numeric(pd.Series([p.value for p in points]), errors="coerce").astype("float64"),
            "category": pd.Series([p.category for p in points], dtype=object),
        }
    )


def frame_to_points(df: pd.DataFrame) -> list[Point]:
    """Inverse of points_to_frame; a missing ``category`` column means no categories."""
    if "timestamp" not in df.columns or "value" not in df.columns:
        raise ValueError("df must contain 'timestamp' and 'value' columns")
    categories = df["category"].tolist() if "category" in df.columns else [None] * len(df)
    points: list[Point] = []
    for ts, value, category in zip(df["timestamp"].tolist(), df["value"].tolist(), categories):
        if isinstance(category, float) and pd.isna(category):
            category = None
        points.append(Point(timestamp=int(ts), value=float(value), category=category))
    return points
