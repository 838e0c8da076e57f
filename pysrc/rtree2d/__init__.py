"""rtree2d - Dynamic R-tree spatial indexing for 2D points."""

from ._common import DEFAULT_MAX_ENTRIES, Bounds, Point
from ._insert_result import InsertResult
from ._item import PointItem
from ._logger import set_debug
from ._observer import TreeObserver
from .rtree import RTree
from .rtree_objects import RTreeObjects

__all__ = [
    "DEFAULT_MAX_ENTRIES",
    "Bounds",
    "InsertResult",
    "Point",
    "PointItem",
    "RTree",
    "RTreeObjects",
    "TreeObserver",
    "set_debug",
]
