# _geometry.py
"""Pure geometry helpers over point and bounds tuples."""

from __future__ import annotations

import math
from collections.abc import Iterable

from ._common import Bounds, Point


def point_bounds(p: Point) -> Bounds:
    """Return the degenerate rectangle covering a single point."""
    x, y = p
    return (x, y, x, y)


def area(r: Bounds) -> float:
    x0, y0, x1, y1 = r
    return max(0.0, x1 - x0) * max(0.0, y1 - y0)


def union(a: Bounds, b: Bounds) -> Bounds:
    """Smallest rectangle enclosing both a and b."""
    ax0, ay0, ax1, ay1 = a
    bx0, by0, bx1, by1 = b
    return (min(ax0, bx0), min(ay0, by0), max(ax1, bx1), max(ay1, by1))


def union_all(rects: Iterable[Bounds]) -> Bounds:
    """
    Smallest rectangle enclosing every rectangle in rects.

    Raises:
        ValueError: If rects is empty.
    """
    it = iter(rects)
    try:
        out = next(it)
    except StopIteration:
        raise ValueError("union_all() requires at least one rectangle") from None
    for r in it:
        out = union(out, r)
    return out


def enlargement(r: Bounds, other: Bounds) -> float:
    """Area increase of r when extended to also cover other."""
    return area(union(r, other)) - area(r)


def intersects(a: Bounds, b: Bounds) -> bool:
    """Closed-interval overlap test; touching edges intersect."""
    ax0, ay0, ax1, ay1 = a
    bx0, by0, bx1, by1 = b
    return not (ax1 < bx0 or bx1 < ax0 or ay1 < by0 or by1 < ay0)


def contains(r: Bounds, p: Point) -> bool:
    x0, y0, x1, y1 = r
    x, y = p
    return x0 <= x <= x1 and y0 <= y <= y1


def min_dist(r: Bounds, p: Point) -> float:
    """
    Euclidean distance from p to the nearest point of r.

    Zero when p lies on or inside r. Never overestimates the distance from
    p to anything stored under r, which makes it a valid kNN lower bound.
    """
    x0, y0, x1, y1 = r
    x, y = p
    dx = x0 - x if x < x0 else (x - x1 if x > x1 else 0.0)
    dy = y0 - y if y < y0 else (y - y1 if y > y1 else 0.0)
    return math.hypot(dx, dy)


def distance(p: Point, q: Point) -> float:
    return math.hypot(p[0] - q[0], p[1] - q[1])
