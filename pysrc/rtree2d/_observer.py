# _observer.py
"""Optional hook for watching the engine work, e.g. to animate it."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ._common import Point
    from ._node import Node


class TreeObserver:
    """
    Receives notifications from inside the tree algorithms.

    Every method is a no-op here; subclass and override the ones you need.
    Nodes passed in are live engine state and must be treated as read-only.
    Return values are ignored and the tree behaves identically whether or
    not an observer is attached.

    Example:
        ```python
        class CountSplits(TreeObserver):
            def __init__(self):
                self.splits = 0

            def on_split(self, original, sibling):
                self.splits += 1

        obs = CountSplits()
        tree = RTree(observer=obs)
        ```
    """

    def on_node_visited(self, node: Node, pruned: bool) -> None:
        """A query reached node; pruned is True when its subtree was skipped."""

    def on_split(self, original: Node, sibling: Node) -> None:
        """An overflowing node was divided into original and a new sibling."""

    def on_underflow(self, node: Node) -> None:
        """A node fell below the minimum fanout and is being detached."""

    def on_reinsert(self, point: Point) -> None:
        """A point orphaned by a deletion is being inserted again."""


NULL_OBSERVER = TreeObserver()
