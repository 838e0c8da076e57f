# _base_rtree.py
"""Base class shared by RTree and RTreeObjects."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from typing import Any, Generic, TypeVar

from ._common import (
    DEFAULT_MAX_ENTRIES,
    Bounds,
    Point,
    _is_np_array,
    validate_bounds,
    validate_fanout,
    validate_k,
    validate_np_points,
    validate_point,
)
from ._engine import RTreeEngine
from ._insert_result import InsertResult
from ._logger import logger
from ._observer import NULL_OBSERVER, TreeObserver

# Generic parameter
R = TypeVar("R")  # result type, e.g. Point or PointItem


class _BaseRTree(Generic[R], ABC):
    """
    Shared logic for RTree and RTreeObjects.

    Owns the engine, validates every input before it reaches the engine and
    materializes query results. Concrete subclasses must implement:
      - _wrap(point) -> result type handed back to callers
    """

    __slots__ = ("_engine",)

    # ---- Required hooks for subclasses ----

    @abstractmethod
    def _wrap(self, point: Point) -> R:
        """Convert an engine point into the public result type."""

    # ---- Initialization ----

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        min_entries: int | None = None,
        *,
        observer: TreeObserver | None = None,
    ):
        max_entries, min_entries = validate_fanout(max_entries, min_entries)
        self._engine = RTreeEngine(max_entries, min_entries, observer)

    @property
    def max_entries(self) -> int:
        """Maximum entries per node (M)."""
        return self._engine.max_entries

    @property
    def min_entries(self) -> int:
        """Minimum entries per non-root node (m)."""
        return self._engine.min_entries

    @property
    def observer(self) -> TreeObserver:
        return self._engine.observer

    @observer.setter
    def observer(self, observer: TreeObserver | None) -> None:
        self._engine.observer = observer if observer is not None else NULL_OBSERVER

    # ---- Insertion ----

    def _insert_valid(self, point: Point) -> bool:
        added = self._engine.insert(point)
        if not added:
            logger.debug("ignoring duplicate point %r", point)
        return added

    def _validate_many(self, geoms: Any) -> list[Point]:
        if _is_np_array(geoms):
            if geoms.size == 0:
                return []
            validate_np_points(geoms)
            geoms = geoms.tolist()
        # validate everything up front so a bad point leaves the tree untouched
        return [validate_point(p) for p in geoms]

    def insert_many(self, geoms: Any) -> InsertResult:
        """
        Insert a batch of points one by one.

        Every point is validated before the first insertion, so a malformed
        point leaves the tree untouched.

        Args:
            geoms: Sequence of (x, y) points or a NumPy array of shape (N, 2).

        Returns:
            InsertResult with the number added and the number of duplicates.

        Raises:
            ValueError: If any point is malformed or non-finite.
            TypeError: If a NumPy array is not shaped (N, 2).
        """
        points = self._validate_many(geoms)
        added = sum(1 for p in points if self._insert_valid(p))
        return InsertResult(count=added, duplicates=len(points) - added)

    def insert_many_np(self, geoms: Any) -> InsertResult:
        """
        Insert points from a NumPy array of shape (N, 2).

        Args:
            geoms: NumPy array with a numeric dtype.

        Returns:
            InsertResult with the number added and the number of duplicates.

        Raises:
            TypeError: If geoms is not a NumPy array or has the wrong shape/dtype.
            ValueError: If any point is non-finite.
        """
        if not _is_np_array(geoms):
            raise TypeError("insert_many_np requires a NumPy array")

        import numpy as np

        if not isinstance(geoms, np.ndarray):
            raise TypeError("insert_many_np requires a NumPy array")

        return self.insert_many(geoms)

    # ---- Queries ----

    def query(self, rect: Bounds) -> list[R]:
        """
        Return everything inside an axis-aligned rectangle.

        Edges are inclusive. Corners given in the wrong order are normalized.

        Args:
            rect: Query rectangle as (min_x, min_y, max_x, max_y).

        Returns:
            List of results in no particular order.
        """
        wrap = self._wrap
        return [wrap(p) for p in self._engine.query(validate_bounds(rect))]

    def query_np(self, rect: Bounds) -> Any:
        """
        Return the coordinates of all points inside rect as a NumPy array.

        Args:
            rect: Query rectangle as (min_x, min_y, max_x, max_y).

        Returns:
            NDArray[np.float64] with shape (N, 2).

        Raises:
            ImportError: If NumPy is not installed.
        """
        import numpy as np

        found = self._engine.query(validate_bounds(rect))
        return np.asarray(found, dtype=np.float64).reshape(-1, 2)

    def nearest_neighbor(self, point: Point) -> R | None:
        """
        Return the single nearest neighbor to the query point.

        Args:
            point: Query point (x, y).

        Returns:
            The nearest result or None if the tree is empty.
        """
        found = self._engine.nearest_neighbor(validate_point(point))
        return None if found is None else self._wrap(found)

    def nearest_neighbors(self, point: Point, k: int) -> list[R]:
        """
        Return the k nearest neighbors to the query point.

        Args:
            point: Query point (x, y).
            k: Number of neighbors to return. k <= 0 yields an empty list.

        Returns:
            Up to k results in order of non-decreasing distance.
        """
        k = validate_k(k)
        wrap = self._wrap
        return [wrap(p) for p in self._engine.nearest_neighbors(validate_point(point), k)]

    def nearest_neighbors_np(self, point: Point, k: int) -> Any:
        """
        Return the k nearest neighbors as a NumPy array of coordinates.

        Args:
            point: Query point (x, y).
            k: Number of neighbors to return.

        Returns:
            NDArray[np.float64] with shape (min(k, len(tree)), 2), nearest first.

        Raises:
            ImportError: If NumPy is not installed.
        """
        import numpy as np

        found = self._engine.nearest_neighbors(validate_point(point), validate_k(k))
        return np.asarray(found, dtype=np.float64).reshape(-1, 2)

    # ---- Deletion ----

    def clear(self) -> None:
        """Empty the tree in place, preserving its configuration and observer."""
        self._engine.clear()

    # ---- Utilities ----

    def __len__(self) -> int:
        """Return the number of points in the tree."""
        return self._engine.size

    def is_empty(self) -> bool:
        return self._engine.size == 0

    def __contains__(self, point: Point) -> bool:
        """
        Check whether a point with exactly these coordinates is indexed.

        Malformed or non-finite points are never contained.
        """
        try:
            p = validate_point(point)
        except (TypeError, ValueError):
            return False
        return self._engine.contains(p)

    def __iter__(self) -> Iterator[R]:
        """Iterate over a snapshot of every indexed point."""
        wrap = self._wrap
        return iter([wrap(p) for p in self._engine.points()])

    @property
    def bounds(self) -> Bounds | None:
        """MBR of everything indexed, or None when empty."""
        return self._engine.bounds

    @property
    def height(self) -> int:
        """Number of tree levels (0 when empty)."""
        return self._engine.height()

    def get_all_node_boundaries(self) -> list[Bounds]:
        """
        Return the MBR of every node in the tree, root first. Useful for visualization.
        """
        return self._engine.node_boundaries()

    def check_invariants(self) -> None:
        """
        Verify fanout, MBR, parent and depth invariants of the whole tree.

        Raises:
            RuntimeError: If any invariant is violated.
        """
        self._engine.check_invariants()
