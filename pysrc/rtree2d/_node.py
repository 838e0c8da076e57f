# _node.py
"""Node and entry storage for the R-tree engine."""

from __future__ import annotations

from ._common import Bounds, Point
from ._geometry import point_bounds, union_all

NO_PARENT = -1
"""Parent index stored on the root node."""


class Entry:
    """
    One slot of a node.

    A leaf entry holds a point, an internal entry holds the arena index of a
    child node. In both cases rect is the tightest bound of what the entry
    references.
    """

    __slots__ = ("child", "point", "rect")

    def __init__(
        self, rect: Bounds, point: Point | None = None, child: int | None = None
    ):
        self.rect = rect
        self.point = point
        self.child = child

    @classmethod
    def for_point(cls, point: Point) -> Entry:
        return cls(point_bounds(point), point=point)

    @classmethod
    def for_child(cls, child: int, rect: Bounds) -> Entry:
        return cls(rect, child=child)

    def __repr__(self) -> str:
        if self.child is None:
            return f"Entry(point={self.point!r})"
        return f"Entry(child={self.child}, rect={self.rect!r})"


class Node:
    """
    A leaf (entries hold points) or internal node (entries hold children).

    Attributes:
        is_leaf: Tag selecting leaf or internal behavior.
        entries: Ordered list of Entry.
        mbr: Union of the entries' rectangles, None while empty.
        parent: Arena index of the parent, NO_PARENT for the root.
    """

    __slots__ = ("entries", "is_leaf", "mbr", "parent")

    def __init__(self, is_leaf: bool, parent: int = NO_PARENT):
        self.is_leaf = is_leaf
        self.entries: list[Entry] = []
        self.mbr: Bounds | None = None
        self.parent = parent

    def points(self) -> list[Point]:
        """Return the points of a leaf node."""
        return [e.point for e in self.entries]  # type: ignore[misc]

    def __repr__(self) -> str:
        kind = "Leaf" if self.is_leaf else "Internal"
        return f"{kind}(entries={len(self.entries)}, mbr={self.mbr!r}, parent={self.parent})"


def recompute_mbr(node: Node) -> None:
    """Rebuild node.mbr as the union of all current entries' rectangles."""
    node.mbr = union_all(e.rect for e in node.entries) if node.entries else None


class NodeArena:
    """
    Owns every node of a tree, addressed by stable integer indices.

    Freed slots are reused by later allocations, so an index is only
    meaningful while its node is live.
    """

    __slots__ = ("_free", "_nodes")

    def __init__(self):
        self._nodes: list[Node | None] = []
        self._free: list[int] = []

    def alloc(self, is_leaf: bool, parent: int = NO_PARENT) -> int:
        node = Node(is_leaf, parent)
        if self._free:
            idx = self._free.pop()
            self._nodes[idx] = node
        else:
            idx = len(self._nodes)
            self._nodes.append(node)
        return idx

    def free(self, idx: int) -> None:
        if self._nodes[idx] is None:
            raise RuntimeError(f"Internal error: node {idx} freed twice")
        self._nodes[idx] = None
        self._free.append(idx)

    def __getitem__(self, idx: int) -> Node:
        node = self._nodes[idx]
        if node is None:
            raise RuntimeError(f"Internal error: node {idx} is not live")
        return node

    def __len__(self) -> int:
        """Return the number of live nodes."""
        return len(self._nodes) - len(self._free)

    def clear(self) -> None:
        self._nodes.clear()
        self._free.clear()
