# _item.py
from __future__ import annotations

from typing import Any

from ._common import Point


class PointItem:
    """
    Lightweight view of an indexed point and its attached object.

    Attributes:
        x: X coordinate.
        y: Y coordinate.
        obj: The attached Python object, or None.

    Notes:
        - Holds a strong reference to the object when provided.
        - Items are snapshots; mutating one does not move the point.
    """

    __slots__ = ("obj", "x", "y")

    def __init__(self, geom: Point, obj: Any | None = None):
        self.x, self.y = geom
        self.obj = obj

    @property
    def geom(self) -> Point:
        return (self.x, self.y)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PointItem):
            return NotImplemented
        return self.geom == other.geom and self.obj is other.obj

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"PointItem(({self.x}, {self.y}), obj={self.obj!r})"
