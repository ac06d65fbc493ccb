"""
Square grid laid over the continuous arena.

Cells are addressed by integer (p, q) = floor(x / size), floor(y / size).
The cell size is fixed for a whole match.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

from engine.utils.geometry import Point

# 8-directional (Moore) neighbourhood: 4 orthogonal + 4 diagonal
MOORE_OFFSETS: Tuple[Tuple[int, int], ...] = (
    (0, 1), (0, -1), (1, 0), (-1, 0),
    (1, 1), (1, -1), (-1, 1), (-1, -1),
)


@dataclass(frozen=True, order=True)
class Cell:
    """Integer grid coordinate. Equality, hashing and ordering use (p, q) only."""

    p: int
    q: int
    size: float = field(default=1.0, compare=False, repr=False)

    def center(self) -> Point:
        return Point((self.p + 0.5) * self.size, (self.q + 0.5) * self.size)

    def bounds(self) -> Tuple[Point, Point]:
        """Top-left and bottom-right corners."""
        return (
            Point(self.p * self.size, self.q * self.size),
            Point((self.p + 1) * self.size, (self.q + 1) * self.size),
        )

    def offset(self, dp: int, dq: int) -> "Cell":
        return Cell(self.p + dp, self.q + dq, self.size)

    def distance_squared_to(self, other: "Cell") -> int:
        """Squared Euclidean distance in cell units."""
        dp = self.p - other.p
        dq = self.q - other.q
        return dp * dp + dq * dq


class GridIndex:
    """
    Maps continuous coordinates to cells and back.

    Args:
        cell_size: Side of a cell in world units
        map_size: Side of the square map; cells outside [0, map_size) are out of bounds
    """

    def __init__(self, cell_size: float, map_size: Optional[float] = None):
        if not cell_size > 0:
            raise ValueError("cell_size must be > 0")
        self.cell_size = float(cell_size)
        self.map_size = map_size
        if map_size is not None:
            self.max_index = int(math.ceil(map_size / self.cell_size)) - 1
        else:
            self.max_index = None

    def cell_at(self, x: float, y: float) -> Optional[Cell]:
        """Cell containing (x, y), or None for NaN/infinite coordinates."""
        if not (math.isfinite(x) and math.isfinite(y)):
            return None
        return Cell(int(math.floor(x / self.cell_size)), int(math.floor(y / self.cell_size)), self.cell_size)

    def cell_of(self, point: Optional[Point]) -> Optional[Cell]:
        if point is None:
            return None
        return self.cell_at(point.x, point.y)

    def cell(self, p: int, q: int) -> Cell:
        return Cell(p, q, self.cell_size)

    def in_bounds(self, cell: Cell) -> bool:
        if self.max_index is None:
            return True
        return 0 <= cell.p <= self.max_index and 0 <= cell.q <= self.max_index

    def neighbors(self, cell: Cell) -> List[Cell]:
        """Moore neighbours in a fixed order (out-of-bounds cells included)."""
        return [cell.offset(dp, dq) for dp, dq in MOORE_OFFSETS]

    def cells_within(self, center: Point, radius: float) -> Iterator[Cell]:
        """
        Yield in-bounds cells whose centers lie within ``radius`` of ``center``.

        Cells come out in (p, q) order, so callers iterating them stay deterministic.
        """
        if not (center.is_finite() and math.isfinite(radius)) or radius < 0:
            return
        size = self.cell_size
        p_min = int(math.floor((center.x - radius) / size))
        p_max = int(math.floor((center.x + radius) / size))
        q_min = int(math.floor((center.y - radius) / size))
        q_max = int(math.floor((center.y + radius) / size))
        if self.max_index is not None:
            p_min, q_min = max(p_min, 0), max(q_min, 0)
            p_max, q_max = min(p_max, self.max_index), min(q_max, self.max_index)

        radius_sq = radius * radius
        for p in range(p_min, p_max + 1):
            cx = (p + 0.5) * size - center.x
            for q in range(q_min, q_max + 1):
                cy = (q + 0.5) * size - center.y
                if cx * cx + cy * cy <= radius_sq:
                    yield Cell(p, q, size)
