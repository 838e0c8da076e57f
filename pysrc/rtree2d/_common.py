# _common.py
"""Common utilities and constants shared across the R-tree implementations."""

from __future__ import annotations

import math
from typing import Any

# Type aliases
Bounds = tuple[float, float, float, float]
"""Axis-aligned rectangle as (min_x, min_y, max_x, max_y)."""

Point = tuple[float, float]
"""2D point as (x, y)."""

DEFAULT_MAX_ENTRIES = 4
"""Default maximum number of entries per node (M)."""


def _is_np_array(x: Any) -> bool:
    """
    Check if x is a NumPy array without importing NumPy.

    This allows dtype checking without forcing NumPy as a hard dependency.

    Args:
        x: Object to check.

    Returns:
        True if x is a NumPy array.
    """
    mod = getattr(x.__class__, "__module__", "")
    return mod.startswith("numpy") and hasattr(x, "ndim") and hasattr(x, "shape")


def validate_point(point: Any) -> Point:
    """
    Validate and normalize a point to a tuple of two finite floats.

    Args:
        point: Point as a sequence of 2 numbers.

    Returns:
        Validated point as tuple.

    Raises:
        ValueError: If the point is malformed or has a non-finite coordinate.
    """
    if isinstance(point, (str, bytes, bytearray)):
        raise ValueError(f"point must be a sequence of two numbers, got {point!r}")
    if type(point) is not tuple:
        point = tuple(point)
    if len(point) != 2:
        raise ValueError("point must be a tuple of two numeric values (x, y)")
    x, y = float(point[0]), float(point[1])
    if not (math.isfinite(x) and math.isfinite(y)):
        raise ValueError(f"point coordinates must be finite, got {point!r}")
    return (x, y)


def validate_bounds(bounds: Any) -> Bounds:
    """
    Validate and normalize bounds to a tuple.

    Corners given in the wrong order are swapped so that min <= max on
    both axes. Infinite values are accepted for unbounded queries.

    Args:
        bounds: Bounds as sequence of 4 numbers.

    Returns:
        Validated bounds as tuple.

    Raises:
        ValueError: If bounds are invalid.
    """
    if isinstance(bounds, (str, bytes, bytearray)):
        raise ValueError(f"bounds must be a sequence of four numbers, got {bounds!r}")
    if type(bounds) is not tuple:
        bounds = tuple(bounds)
    if len(bounds) != 4:
        raise ValueError(
            "bounds must be a tuple of four numeric values (x min, y min, x max, y max)"
        )
    x0, y0, x1, y1 = (float(v) for v in bounds)
    if math.isnan(x0) or math.isnan(y0) or math.isnan(x1) or math.isnan(y1):
        raise ValueError(f"bounds must not contain NaN, got {bounds!r}")
    return (min(x0, x1), min(y0, y1), max(x0, x1), max(y0, y1))


def validate_k(k: Any) -> int:
    """Check that k is an integer (bool excluded, NumPy integers accepted)."""
    if isinstance(k, bool) or not hasattr(k, "__index__"):
        raise TypeError(f"k must be an integer, got {type(k).__name__}")
    return k.__index__()


def validate_fanout(max_entries: int, min_entries: int | None) -> tuple[int, int]:
    """
    Validate node fanout bounds.

    Args:
        max_entries: Maximum entries per node (M).
        min_entries: Minimum entries per non-root node (m). Defaults to M // 2.

    Returns:
        Tuple of (max_entries, min_entries).

    Raises:
        ValueError: If the bounds cannot produce valid splits.
    """
    if max_entries < 2:
        raise ValueError(f"max_entries must be at least 2, got {max_entries}")
    if min_entries is None:
        min_entries = max_entries // 2
    if min_entries < 1 or min_entries > max_entries // 2:
        raise ValueError(
            f"min_entries must be between 1 and {max_entries // 2} "
            f"for max_entries={max_entries}, got {min_entries}"
        )
    return max_entries, min_entries


def validate_np_points(geoms: Any) -> None:
    """
    Validate that a NumPy array holds numeric points shaped (N, 2).

    Args:
        geoms: NumPy array to validate.

    Raises:
        TypeError: If shape or dtype is not usable as 2D points.
    """
    if geoms.ndim != 2 or geoms.shape[1] != 2:
        raise TypeError(
            f"NumPy array of points must have shape (N, 2), got {geoms.shape}"
        )
    if geoms.dtype.kind not in "iuf":
        raise TypeError(
            f"NumPy array dtype {geoms.dtype} is not a numeric coordinate dtype"
        )
