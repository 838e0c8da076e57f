# _split.py
"""Quadratic node split."""

from __future__ import annotations

from ._geometry import area, enlargement, union
from ._node import Entry, NodeArena, recompute_mbr
from ._observer import NULL_OBSERVER, TreeObserver


def pick_seeds(entries: list[Entry]) -> tuple[int, int]:
    """
    Return the indices of the pair wasting the most area if grouped together.

    Waste is area(union(a, b)) - area(a) - area(b). All pairs are examined;
    the first maximum in enumeration order wins.
    """
    best = (0, 1)
    max_waste = float("-inf")
    n = len(entries)
    for i in range(n):
        ri = entries[i].rect
        ai = area(ri)
        for j in range(i + 1, n):
            rj = entries[j].rect
            waste = area(union(ri, rj)) - ai - area(rj)
            if waste > max_waste:
                max_waste = waste
                best = (i, j)
    return best


def quadratic_split(
    arena: NodeArena,
    idx: int,
    min_entries: int,
    observer: TreeObserver = NULL_OBSERVER,
) -> int:
    """
    Divide an overflowing node into itself and a new sibling.

    The node keeps the first group, the sibling (allocated with the same
    parent index) gets the second. Both end up with at least min_entries
    entries and fresh MBRs; children of internal nodes are reparented.

    Args:
        arena: Arena owning the node.
        idx: Index of the overflowing node.
        min_entries: Minimum fanout m.
        observer: Notified with on_split once the groups are final.

    Returns:
        Arena index of the new sibling.
    """
    node = arena[idx]
    entries = node.entries
    a, b = pick_seeds(entries)
    remaining = [e for i, e in enumerate(entries) if i != a and i != b]

    group1 = [entries[a]]
    group2 = [entries[b]]
    rect1 = entries[a].rect
    rect2 = entries[b].rect

    while remaining:
        if len(group1) + len(remaining) <= min_entries:
            group1.extend(remaining)
            break
        if len(group2) + len(remaining) <= min_entries:
            group2.extend(remaining)
            break

        # pick next: the entry whose preference between the groups is strongest
        best_i = 0
        max_diff = float("-inf")
        for i, e in enumerate(remaining):
            diff = abs(enlargement(rect1, e.rect) - enlargement(rect2, e.rect))
            if diff > max_diff:
                max_diff = diff
                best_i = i
        e = remaining.pop(best_i)

        d1 = enlargement(rect1, e.rect)
        d2 = enlargement(rect2, e.rect)
        if d1 < d2:
            to_first = True
        elif d2 < d1:
            to_first = False
        else:
            a1 = area(rect1)
            a2 = area(rect2)
            if a1 != a2:
                to_first = a1 < a2
            else:
                to_first = len(group1) < len(group2)

        if to_first:
            group1.append(e)
            rect1 = union(rect1, e.rect)
        else:
            group2.append(e)
            rect2 = union(rect2, e.rect)

    sib_idx = arena.alloc(node.is_leaf, node.parent)
    sibling = arena[sib_idx]
    node.entries = group1
    sibling.entries = group2
    recompute_mbr(node)
    recompute_mbr(sibling)

    if not node.is_leaf:
        for e in group1:
            arena[e.child].parent = idx  # type: ignore[index]
        for e in group2:
            arena[e.child].parent = sib_idx  # type: ignore[index]

    observer.on_split(node, sibling)
    return sib_idx
