# rtree_objects.py
"""RTreeObjects - point R-tree with Python object association."""

from __future__ import annotations

import pickle
from typing import Any

from ._base_rtree import _BaseRTree
from ._common import DEFAULT_MAX_ENTRIES, Point, validate_point
from ._engine import RTreeEngine
from ._insert_result import InsertResult
from ._item import PointItem
from ._logger import logger
from ._observer import TreeObserver


class RTreeObjects(_BaseRTree[PointItem]):
    """
    Point R-tree with Python object association.

    Each indexed point may carry one arbitrary Python object. Points are
    still identified by their exact coordinates, so inserting a point that
    is already indexed keeps the existing object (use attach() to replace it).

    Performance characteristics:
        Inserts: average O(log n)
        Rect queries: average O(log n + k) where k is matches returned
        Nearest neighbor: average O(log n + k)

    Thread-safety:
        Instances are not thread-safe. Use external synchronization if you
        mutate the same tree from multiple threads.

    Args:
        max_entries: Max number of entries per node (M) before splitting.
        min_entries: Min number of entries per non-root node (m). Defaults to M // 2.
        observer: Optional TreeObserver notified of visits, splits and reinsertion.

    Example:
        ```python
        tree = RTreeObjects()
        tree.insert((10.0, 20.0), obj="my data")
        for item in tree.query((5.0, 5.0, 25.0, 25.0)):
            print(f"Point at ({item.x}, {item.y}) with obj={item.obj}")
        ```
    """

    __slots__ = ("_objs",)

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        min_entries: int | None = None,
        *,
        observer: TreeObserver | None = None,
    ):
        super().__init__(max_entries, min_entries, observer=observer)
        self._objs: dict[Point, Any] = {}

    def _wrap(self, point: Point) -> PointItem:
        return PointItem(point, self._objs.get(point))

    # ---- Insertion ----

    def insert(self, point: Point, obj: Any = None) -> bool:
        """
        Insert a single point with an optional associated object.

        Args:
            point: Point as (x, y).
            obj: Optional Python object to associate with this point.

        Returns:
            True if the point was added, False if it was already indexed.

        Raises:
            ValueError: If the point is malformed or has a non-finite coordinate.
        """
        p = validate_point(point)
        if not self._insert_valid(p):
            return False
        self._objs[p] = obj
        return True

    def insert_many(self, geoms: Any, objs: list[Any] | None = None) -> InsertResult:
        """
        Insert a batch of points with optional objects.

        Args:
            geoms: Sequence of (x, y) points or a NumPy array of shape (N, 2).
            objs: Optional list of Python objects aligned with geoms.

        Returns:
            InsertResult with the number added and the number of duplicates.

        Raises:
            ValueError: If any point is invalid or objs length doesn't match.
        """
        points = self._validate_many(geoms)
        if objs is None:
            objs = [None] * len(points)
        elif len(objs) != len(points):
            raise ValueError("objs length must match geoms length")

        added = 0
        for p, obj in zip(points, objs):
            if self._insert_valid(p):
                self._objs[p] = obj
                added += 1
        return InsertResult(count=added, duplicates=len(points) - added)

    # ---- Deletion ----

    def delete(self, point: Point) -> bool:
        """
        Delete the point with exactly these coordinates and drop its object.

        Args:
            point: Point as (x, y).

        Returns:
            True if the point was found and deleted.
        """
        p = validate_point(point)
        if not self._engine.delete(p):
            logger.debug("delete of absent point %r ignored", p)
            return False
        del self._objs[p]
        return True

    def delete_by_object(self, obj: Any) -> int:
        """
        Delete all points carrying the given object (by identity, not equality).

        Args:
            obj: The Python object to search for.

        Returns:
            Number of points deleted.
        """
        matches = [p for p, o in self._objs.items() if o is obj]
        for p in matches:
            self.delete(p)
        return len(matches)

    def clear(self) -> None:
        """Empty the tree in place, preserving its configuration and observer."""
        super().clear()
        self._objs.clear()

    # ---- Mutation ----

    def update(self, old_point: Point, new_point: Point) -> bool:
        """
        Move an indexed point, keeping its object.

        Returns:
            True if the point moved. False (and no change) when old_point is
            absent or new_point is already indexed.
        """
        old = validate_point(old_point)
        new = validate_point(new_point)
        if old == new:
            return old in self._objs
        if new in self._objs or not self._engine.delete(old):
            return False
        self._engine.insert(new)
        self._objs[new] = self._objs.pop(old)
        return True

    # ---- Object Management ----

    def get(self, point: Point) -> Any | None:
        """
        Return the object associated with the point.

        Args:
            point: Point as (x, y).

        Returns:
            The associated object or None if not found.
        """
        return self._objs.get(validate_point(point))

    def attach(self, point: Point, obj: Any) -> None:
        """
        Attach or replace the Python object for an indexed point.

        Raises:
            KeyError: If the point is not indexed.
        """
        p = validate_point(point)
        if p not in self._objs:
            raise KeyError(f"Point {p!r} not found in tree")
        self._objs[p] = obj

    def get_all_objects(self) -> list[Any]:
        """Return all attached Python objects (points without one are skipped)."""
        return [obj for obj in self._objs.values() if obj is not None]

    def get_all_items(self) -> list[PointItem]:
        """Return a PointItem for every indexed point."""
        return [PointItem(p, obj) for p, obj in self._objs.items()]

    # ---- Serialization ----

    def to_bytes(self, include_objects: bool = False) -> bytes:
        """
        Serialize the tree to bytes.

        Object serialization is explicit and off by default for safety.

        Args:
            include_objects: If True, serialize Python objects using pickle (unsafe for untrusted data).

        Returns:
            Bytes representing the serialized tree.
        """
        data = {
            "core": self._engine.to_bytes(),
            "count": len(self),
            "include_objects": include_objects,
            "objs": dict(self._objs) if include_objects else None,
        }
        return pickle.dumps(data)

    @classmethod
    def from_bytes(
        cls,
        data: bytes,
        allow_objects: bool = False,
        observer: TreeObserver | None = None,
    ) -> RTreeObjects:
        """
        Deserialize a tree from bytes.

        Args:
            data: Bytes from to_bytes().
            allow_objects: If True, allow loading pickled Python objects (unsafe for untrusted data).
            observer: Optional observer for the restored tree.

        Returns:
            A new instance. Without serialized objects every point carries None.

        Raises:
            ValueError: If allow_objects=False but data contains objects.
        """
        in_dict = pickle.loads(data)

        if in_dict.get("include_objects", False) and not allow_objects:
            raise ValueError(
                "Serialized data contains Python objects but allow_objects=False. "
                "Set allow_objects=True to load objects (unsafe for untrusted data)."
            )

        tree = cls.__new__(cls)
        tree._engine = RTreeEngine.from_bytes(in_dict["core"], observer)
        if tree._engine.size != in_dict["count"]:
            raise ValueError("Serialized data is inconsistent: point count mismatch")
        # payloads from RTree.to_bytes() carry no "objs" key
        objs = in_dict.get("objs") or {}
        tree._objs = {p: objs.get(p) for p in tree._engine.points()}
        return tree
