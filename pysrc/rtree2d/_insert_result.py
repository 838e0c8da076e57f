"""InsertResult dataclass returned by bulk insertion."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class InsertResult:
    """
    Result from bulk insertion operations.

    Attributes:
        count: Number of points newly added to the tree.
        duplicates: Number of points skipped because they were already indexed
            (or repeated within the batch).
    """

    count: int
    duplicates: int

    @property
    def total(self) -> int:
        """Return the number of points that were offered for insertion."""
        return self.count + self.duplicates
