# rtree.py
"""RTree - dynamic R-tree spatial index over 2D points."""

from __future__ import annotations

import pickle

from ._base_rtree import _BaseRTree
from ._common import Point, validate_point
from ._engine import RTreeEngine
from ._logger import logger
from ._observer import TreeObserver


class RTree(_BaseRTree[Point]):
    """
    Dynamic spatial index for 2D points.

    Points are identified by their exact coordinates: inserting a point that
    is already indexed is a no-op, and deletion removes the point with
    exactly the given coordinates.

    Performance characteristics:
        Inserts: average O(log n), quadratic in max_entries per split
        Rect queries: average O(log n + k) where k is matches returned
        Nearest neighbor: average O(log n + k)

    Thread-safety:
        Instances are not thread-safe. Use external synchronization if you
        mutate the same tree from multiple threads.

    Args:
        max_entries: Max number of entries per node (M) before splitting.
        min_entries: Min number of entries per non-root node (m). Defaults to M // 2.
        observer: Optional TreeObserver notified of visits, splits and reinsertion.

    Raises:
        ValueError: If the fanout bounds are invalid.

    Example:
        ```python
        tree = RTree(max_entries=4)
        tree.insert((10.0, 20.0))
        results = tree.query((5.0, 5.0, 25.0, 25.0))
        for x, y in results:
            print(f"Point at ({x}, {y})")
        ```
    """

    __slots__ = ()

    def _wrap(self, point: Point) -> Point:
        return point

    # ---- Insertion ----

    def insert(self, point: Point) -> bool:
        """
        Insert a single point.

        Args:
            point: Point as (x, y).

        Returns:
            True if the point was added, False if it was already indexed.

        Raises:
            ValueError: If the point is malformed or has a non-finite coordinate.
        """
        return self._insert_valid(validate_point(point))

    # ---- Deletion ----

    def delete(self, point: Point) -> bool:
        """
        Delete the point with exactly these coordinates.

        Args:
            point: Point as (x, y).

        Returns:
            True if the point was found and deleted.
        """
        deleted = self._engine.delete(validate_point(point))
        if not deleted:
            logger.debug("delete of absent point %r ignored", point)
        return deleted

    # ---- Mutation ----

    def update(self, old_point: Point, new_point: Point) -> bool:
        """
        Move an indexed point to a new location.

        Args:
            old_point: Current coordinates.
            new_point: New coordinates.

        Returns:
            True if the point moved. False (and no change) when old_point is
            absent or new_point is already indexed.

        Example:
            ```python
            tree.insert((1.0, 1.0))
            assert tree.update((1.0, 1.0), (2.0, 2.0)) is True
            ```
        """
        old = validate_point(old_point)
        new = validate_point(new_point)
        if old == new:
            return self._engine.contains(old)
        if self._engine.contains(new) or not self._engine.delete(old):
            return False
        self._engine.insert(new)
        return True

    # ---- Serialization ----

    def to_bytes(self) -> bytes:
        """
        Serialize the tree to bytes.

        The observer is not serialized.

        Returns:
            Bytes representing the serialized tree.
        """
        data = {
            "core": self._engine.to_bytes(),
            "count": len(self),
        }
        return pickle.dumps(data)

    @classmethod
    def from_bytes(cls, data: bytes, observer: TreeObserver | None = None) -> RTree:
        """
        Deserialize a tree from bytes.

        Only load data you trust; the format is pickle based.

        Args:
            data: Bytes from to_bytes().
            observer: Optional observer for the restored tree.

        Returns:
            A new instance.
        """
        in_dict = pickle.loads(data)

        tree = cls.__new__(cls)
        tree._engine = RTreeEngine.from_bytes(in_dict["core"], observer)
        if tree._engine.size != in_dict["count"]:
            raise ValueError("Serialized data is inconsistent: point count mismatch")
        return tree
