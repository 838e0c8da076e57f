# _engine.py
"""Pure-Python R-tree engine backing RTree and RTreeObjects."""

from __future__ import annotations

import heapq
import pickle
from typing import Any

from ._common import Bounds, Point
from ._geometry import (
    area,
    contains,
    distance,
    enlargement,
    intersects,
    min_dist,
    point_bounds,
    union,
    union_all,
)
from ._logger import logger
from ._node import NO_PARENT, Entry, NodeArena, recompute_mbr
from ._observer import NULL_OBSERVER, TreeObserver
from ._split import quadratic_split

# Heap item kinds. Points sort before nodes at equal distance so a
# confirmed point is never held back behind a node that cannot beat it.
_POINT = 0
_NODE = 1


class RTreeEngine:
    """
    Guttman R-tree over 2D points with quadratic split.

    The engine trusts its inputs: points are (float, float) tuples and
    rectangles are normalized bounds. Validation happens in the wrappers.

    Args:
        max_entries: Maximum entries per node (M).
        min_entries: Minimum entries per non-root node (m).
        observer: Optional TreeObserver notified from inside the algorithms.
    """

    __slots__ = ("_arena", "_root", "_size", "max_entries", "min_entries", "observer")

    def __init__(
        self,
        max_entries: int,
        min_entries: int,
        observer: TreeObserver | None = None,
    ):
        self.max_entries = max_entries
        self.min_entries = min_entries
        self.observer = observer if observer is not None else NULL_OBSERVER
        self._arena = NodeArena()
        self._root: int | None = None
        self._size = 0

    # ---- State ----

    @property
    def size(self) -> int:
        return self._size

    @property
    def root(self) -> int | None:
        """Arena index of the root, None when the tree is empty."""
        return self._root

    @property
    def arena(self) -> NodeArena:
        return self._arena

    @property
    def bounds(self) -> Bounds | None:
        if self._root is None:
            return None
        return self._arena[self._root].mbr

    def height(self) -> int:
        """Number of levels; 0 for an empty tree, 1 for a lone leaf root."""
        if self._root is None:
            return 0
        levels = 1
        node = self._arena[self._root]
        while not node.is_leaf:
            node = self._arena[node.entries[0].child]  # type: ignore[index]
            levels += 1
        return levels

    def clear(self) -> None:
        self._arena.clear()
        self._root = None
        self._size = 0

    # ---- Insertion ----

    def insert(self, point: Point) -> bool:
        """
        Insert a point unless it is already indexed.

        Returns:
            True if the point was added, False for a duplicate.
        """
        if self._find_leaf(point) is not None:
            return False
        self._insert_point(point)
        self._size += 1
        return True

    def _insert_point(self, point: Point) -> None:
        arena = self._arena
        if self._root is None:
            idx = arena.alloc(is_leaf=True)
            leaf = arena[idx]
            leaf.entries.append(Entry.for_point(point))
            recompute_mbr(leaf)
            self._root = idx
            return

        idx = self._choose_leaf(point)
        leaf = arena[idx]
        leaf.entries.append(Entry.for_point(point))
        sibling = None
        if len(leaf.entries) > self.max_entries:
            sibling = self._split(idx)
        self._adjust_tree(idx, sibling)

    def _choose_leaf(self, point: Point) -> int:
        """Descend by least enlargement, then least resulting area, then order."""
        arena = self._arena
        target = point_bounds(point)
        idx = self._root
        node = arena[idx]  # type: ignore[index]
        while not node.is_leaf:
            best = None
            best_enl = 0.0
            best_area = 0.0
            for e in node.entries:
                enl = enlargement(e.rect, target)
                grown = area(union(e.rect, target))
                if best is None or enl < best_enl or (enl == best_enl and grown < best_area):
                    best, best_enl, best_area = e, enl, grown
            idx = best.child  # type: ignore[union-attr]
            node = arena[idx]  # type: ignore[index]
        return idx  # type: ignore[return-value]

    def _split(self, idx: int) -> int:
        sib = quadratic_split(self._arena, idx, self.min_entries, self.observer)
        logger.debug(
            "split node %d into %d/%d entries (sibling %d)",
            idx,
            len(self._arena[idx].entries),
            len(self._arena[sib].entries),
            sib,
        )
        return sib

    def _adjust_tree(self, idx: int, sibling: int | None) -> None:
        """Propagate MBR changes and splits from node idx up to the root."""
        arena = self._arena
        while True:
            node = arena[idx]
            recompute_mbr(node)
            parent_idx = node.parent

            if parent_idx == NO_PARENT:
                if sibling is not None:
                    self._grow_root(idx, sibling)
                return

            parent = arena[parent_idx]
            for e in parent.entries:
                if e.child == idx:
                    e.rect = node.mbr  # type: ignore[assignment]
                    break

            if sibling is not None:
                sib_node = arena[sibling]
                sib_node.parent = parent_idx
                parent.entries.append(Entry.for_child(sibling, sib_node.mbr))  # type: ignore[arg-type]
                sibling = None
                if len(parent.entries) > self.max_entries:
                    sibling = self._split(parent_idx)

            idx = parent_idx

    def _grow_root(self, old_root: int, sibling: int) -> None:
        arena = self._arena
        new_root = arena.alloc(is_leaf=False)
        root = arena[new_root]
        for child in (old_root, sibling):
            child_node = arena[child]
            child_node.parent = new_root
            root.entries.append(Entry.for_child(child, child_node.mbr))  # type: ignore[arg-type]
        recompute_mbr(root)
        self._root = new_root
        logger.debug("root split, height is now %d", self.height())

    # ---- Lookup ----

    def contains(self, point: Point) -> bool:
        return self._find_leaf(point) is not None

    def _find_leaf(self, point: Point) -> int | None:
        """
        Return the index of the leaf holding point, or None.

        Only branches whose rectangle contains the point are explored, in
        entry order, backtracking when a branch turns out not to hold it.
        """
        if self._root is None:
            return None
        arena = self._arena
        stack = [self._root]
        while stack:
            idx = stack.pop()
            node = arena[idx]
            if node.is_leaf:
                for e in node.entries:
                    if e.point == point:
                        return idx
                continue
            # reversed so the first matching entry is explored first
            for e in reversed(node.entries):
                if contains(e.rect, point):
                    stack.append(e.child)  # type: ignore[arg-type]
        return None

    # ---- Range search ----

    def query(self, rect: Bounds) -> list[Point]:
        """Return every point inside rect (closed on all sides)."""
        out: list[Point] = []
        if self._root is None:
            return out
        arena = self._arena
        visit = self.observer.on_node_visited
        stack = [self._root]
        while stack:
            node = arena[stack.pop()]
            if not intersects(node.mbr, rect):  # type: ignore[arg-type]
                visit(node, True)
                continue
            visit(node, False)
            if node.is_leaf:
                for e in node.entries:
                    if contains(rect, e.point):  # type: ignore[arg-type]
                        out.append(e.point)  # type: ignore[arg-type]
            else:
                for e in reversed(node.entries):
                    stack.append(e.child)  # type: ignore[arg-type]
        return out

    def points(self) -> list[Point]:
        """Return every indexed point, leaf by leaf."""
        out: list[Point] = []
        if self._root is not None:
            self._collect_points(self._root, out, release=False)
        return out

    def node_boundaries(self) -> list[Bounds]:
        """Return the MBR of every node, root first."""
        out: list[Bounds] = []
        if self._root is None:
            return out
        arena = self._arena
        stack = [self._root]
        while stack:
            node = arena[stack.pop()]
            out.append(node.mbr)  # type: ignore[arg-type]
            if not node.is_leaf:
                for e in reversed(node.entries):
                    stack.append(e.child)  # type: ignore[arg-type]
        return out

    # ---- Nearest neighbors ----

    def nearest_neighbors(self, source: Point, k: int) -> list[Point]:
        """
        Best-first k nearest neighbors.

        Returns:
            Up to k points ordered by non-decreasing distance to source.
        """
        out: list[Point] = []
        if k <= 0 or self._root is None:
            return out
        arena = self._arena
        visit = self.observer.on_node_visited
        seq = 0
        root = arena[self._root]
        heap: list[tuple[float, int, int, Any]] = [
            (min_dist(root.mbr, source), _NODE, seq, self._root)  # type: ignore[arg-type]
        ]
        while heap and len(out) < k:
            _, kind, _, payload = heapq.heappop(heap)
            if kind == _POINT:
                out.append(payload)
                continue
            node = arena[payload]
            visit(node, False)
            if node.is_leaf:
                for e in node.entries:
                    seq += 1
                    heapq.heappush(heap, (distance(e.point, source), _POINT, seq, e.point))  # type: ignore[arg-type]
            else:
                for e in node.entries:
                    seq += 1
                    heapq.heappush(heap, (min_dist(e.rect, source), _NODE, seq, e.child))
        return out

    def nearest_neighbor(self, source: Point) -> Point | None:
        found = self.nearest_neighbors(source, 1)
        return found[0] if found else None

    # ---- Deletion ----

    def delete(self, point: Point) -> bool:
        """
        Remove point if present.

        Returns:
            True if the point was found and removed.
        """
        leaf_idx = self._find_leaf(point)
        if leaf_idx is None:
            return False

        leaf = self._arena[leaf_idx]
        for i, e in enumerate(leaf.entries):
            if e.point == point:
                del leaf.entries[i]
                break
        self._size -= 1

        orphans = self._condense(leaf_idx)
        if orphans:
            logger.debug("reinserting %d orphaned points", len(orphans))
        for p in orphans:
            self.observer.on_reinsert(p)
            self._insert_point(p)
        return True

    def _condense(self, idx: int) -> list[Point]:
        """
        Walk from a leaf to the root detaching underfull nodes.

        Returns:
            The points of every detached subtree, to be reinserted.
        """
        arena = self._arena
        orphans: list[Point] = []
        while idx != self._root:
            node = arena[idx]
            parent_idx = node.parent
            parent = arena[parent_idx]
            if len(node.entries) < self.min_entries:
                self.observer.on_underflow(node)
                parent.entries = [e for e in parent.entries if e.child != idx]
                logger.debug("node %d underflowed with %d entries", idx, len(node.entries))
                self._collect_points(idx, orphans, release=True)
            else:
                recompute_mbr(node)
                for e in parent.entries:
                    if e.child == idx:
                        e.rect = node.mbr  # type: ignore[assignment]
                        break
            idx = parent_idx

        root = arena[idx]
        while not root.is_leaf and len(root.entries) == 1:
            child = root.entries[0].child
            arena.free(idx)
            idx = child  # type: ignore[assignment]
            root = arena[idx]
            root.parent = NO_PARENT
            logger.debug("root collapsed into node %d", idx)
        if root.entries:
            recompute_mbr(root)
            self._root = idx
        else:
            arena.free(idx)
            self._root = None
        return orphans

    def _collect_points(self, idx: int, out: list[Point], release: bool) -> None:
        """Append every point under node idx to out, freeing nodes if release."""
        arena = self._arena
        stack = [idx]
        while stack:
            cur = stack.pop()
            node = arena[cur]
            if node.is_leaf:
                out.extend(e.point for e in node.entries)  # type: ignore[misc]
            else:
                for e in reversed(node.entries):
                    stack.append(e.child)  # type: ignore[arg-type]
            if release:
                arena.free(cur)

    # ---- Invariants ----

    def check_invariants(self) -> None:
        """
        Verify the structural invariants of the whole tree.

        Raises:
            RuntimeError: On the first violation found.
        """
        arena = self._arena
        if self._root is None:
            if self._size != 0:
                raise RuntimeError(f"Internal error: empty tree reports size {self._size}")
            if len(arena) != 0:
                raise RuntimeError(f"Internal error: empty tree owns {len(arena)} nodes")
            return

        root = arena[self._root]
        if root.parent != NO_PARENT:
            raise RuntimeError("Internal error: root has a parent")

        seen = 0
        points: set[Point] = set()
        leaf_depths: set[int] = set()
        stack = [(self._root, 1)]
        while stack:
            idx, depth = stack.pop()
            node = arena[idx]
            seen += 1
            n = len(node.entries)
            if n > self.max_entries:
                raise RuntimeError(f"Internal error: node {idx} holds {n} entries")
            if idx != self._root and n < self.min_entries:
                raise RuntimeError(f"Internal error: node {idx} holds only {n} entries")
            if n == 0:
                raise RuntimeError(f"Internal error: node {idx} is empty")
            if node.mbr != union_all(e.rect for e in node.entries):
                raise RuntimeError(f"Internal error: stale mbr on node {idx}")
            if node.is_leaf:
                leaf_depths.add(depth)
                for e in node.entries:
                    if e.child is not None or e.rect != point_bounds(e.point):  # type: ignore[arg-type]
                        raise RuntimeError(f"Internal error: bad leaf entry in node {idx}")
                    if e.point in points:
                        raise RuntimeError(f"Internal error: point {e.point!r} stored twice")
                    points.add(e.point)  # type: ignore[arg-type]
                continue
            for e in node.entries:
                child = arena[e.child]  # type: ignore[index]
                if child.parent != idx:
                    raise RuntimeError(f"Internal error: node {e.child} has wrong parent")
                if e.rect != child.mbr:
                    raise RuntimeError(f"Internal error: entry rect of node {e.child} is stale")
                stack.append((e.child, depth + 1))  # type: ignore[arg-type]

        if len(leaf_depths) != 1:
            raise RuntimeError(f"Internal error: leaves at depths {sorted(leaf_depths)}")
        if len(points) != self._size:
            raise RuntimeError(
                f"Internal error: size is {self._size} but {len(points)} points are stored"
            )
        if seen != len(arena):
            raise RuntimeError(f"Internal error: {len(arena) - seen} unreachable nodes")

    # ---- Serialization ----

    def to_bytes(self) -> bytes:
        """Serialize the tree shape and points."""
        data = {
            "max_entries": self.max_entries,
            "min_entries": self.min_entries,
            "size": self._size,
            "root": None if self._root is None else self._dump(self._root),
        }
        return pickle.dumps(data)

    def _dump(self, idx: int) -> tuple:
        node = self._arena[idx]
        if node.is_leaf:
            return (True, node.points())
        return (False, [self._dump(e.child) for e in node.entries])  # type: ignore[arg-type]

    @classmethod
    def from_bytes(cls, data: bytes, observer: TreeObserver | None = None) -> RTreeEngine:
        in_dict = pickle.loads(data)
        engine = cls(in_dict["max_entries"], in_dict["min_entries"], observer)
        if in_dict["root"] is not None:
            engine._root = engine._load(in_dict["root"], NO_PARENT)
        engine._size = in_dict["size"]
        return engine

    def _load(self, dumped: tuple, parent: int) -> int:
        is_leaf, payload = dumped
        idx = self._arena.alloc(is_leaf, parent)
        node = self._arena[idx]
        if is_leaf:
            node.entries = [Entry.for_point(tuple(p)) for p in payload]
        else:
            for sub in payload:
                child = self._load(sub, idx)
                node.entries.append(Entry.for_child(child, self._arena[child].mbr))  # type: ignore[arg-type]
        recompute_mbr(node)
        return idx
