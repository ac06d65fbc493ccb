"""
Per-tick obstacle rasterization.

Every tick the map is rebuilt from scratch: obstacles move continuously, so a
full rebuild is cheaper to reason about than patching yesterday's map.

Cell categories:
- blocked:   hard obstacles, never entered by the pathfinder
- weak:      obstacles we can destroy with a single hit; passable but preferred
- contested: cells currently swept by a moving unit; passable but avoided
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterator, Optional, Set

from settings import (
    OBSTACLE_SAFETY_MARGIN,
    WEAK_CELL_BIAS,
    CONTESTED_CELL_BIAS,
    SEGMENT_SAMPLE_STEP,
)
from engine.error_handler import logger
from engine.utils.geometry import Point
from world.grid import Cell, GridIndex
from world.model import Faction, UnitKind, UnitSnapshot, WorldSnapshot, one_shot_damage


@dataclass
class ObstacleMap:
    """Blocked / weak / contested cells plus the pathfinder's per-cell bias."""

    grid: GridIndex
    blocked: Set[Cell] = field(default_factory=set)
    weak: Dict[Cell, UnitSnapshot] = field(default_factory=dict)
    contested: Dict[Cell, UnitSnapshot] = field(default_factory=dict)
    bias: Dict[Cell, int] = field(default_factory=dict)
    protected: FrozenSet[Cell] = frozenset()

    def is_blocked(self, cell: Cell) -> bool:
        return cell in self.blocked

    def is_passable(self, cell: Cell) -> bool:
        """In bounds and not hard-blocked."""
        return self.grid.in_bounds(cell) and cell not in self.blocked

    def bias_at(self, cell: Cell) -> int:
        """Positive bias = preferred by the pathfinder, negative = avoided."""
        return self.bias.get(cell, 0)

    def _segment_cells(self, a: Point, b: Point) -> Iterator[Cell]:
        """Cells visited by sampling the segment a-b, without repeats, in order."""
        if not (a.is_finite() and b.is_finite()):
            return
        step = self.grid.cell_size * SEGMENT_SAMPLE_STEP
        length = a.distance_to(b)
        samples = max(1, int(length / step) + 1)
        last: Optional[Cell] = None
        for i in range(samples + 1):
            cell = self.grid.cell_of(a + (b - a) * (i / samples))
            if cell is not None and cell != last:
                last = cell
                yield cell

    def segment_clear(self, a: Point, b: Point) -> bool:
        """
        True if a straight walk from a to b never enters a blocked cell.

        Non-finite endpoints are never clear.
        """
        if not (a.is_finite() and b.is_finite()):
            return False
        for cell in self._segment_cells(a, b):
            if not self.is_passable(cell):
                return False
        return True

    def weak_obstacle_on_segment(self, a: Point, b: Point) -> Optional[UnitSnapshot]:
        """First destructible obstacle along a-b, if any."""
        for cell in self._segment_cells(a, b):
            unit = self.weak.get(cell)
            if unit is not None:
                return unit
        return None


def build_obstacle_map(world: WorldSnapshot, grid: GridIndex) -> ObstacleMap:
    """
    Rasterize every obstacle in the snapshot onto ``grid``.

    The agent's own cell and its neighbours are never blocked, so a crowded
    agent can always take a first step.
    """
    me = world.me
    obstacles = ObstacleMap(grid=grid)

    me_cell = grid.cell_of(me.position)
    if me_cell is not None:
        obstacles.protected = frozenset([me_cell, *grid.neighbors(me_cell)])

    kill_threshold = one_shot_damage(me, world.constants)

    for unit in world.other_units():
        if not unit.is_alive:
            continue
        if not unit.is_finite():
            logger.debug(f"Skipping obstacle {unit.kind.value}#{unit.id} with non-finite geometry")
            continue

        if unit.is_moving and unit.kind in (UnitKind.WIZARD, UnitKind.MINION):
            # Moving units will not be where they are now; steer clear without walling them off.
            for cell in grid.cells_within(unit.position, unit.radius + me.radius):
                if cell not in obstacles.contested:
                    obstacles.contested[cell] = unit
                    obstacles.bias[cell] = obstacles.bias.get(cell, 0) + CONTESTED_CELL_BIAS
            continue

        blocking_radius = unit.radius + me.radius + OBSTACLE_SAFETY_MARGIN
        is_weak = unit.faction != Faction.ALLY and unit.life <= kill_threshold

        for cell in grid.cells_within(unit.position, blocking_radius):
            if is_weak:
                if cell not in obstacles.weak:
                    obstacles.weak[cell] = unit
                    obstacles.bias[cell] = obstacles.bias.get(cell, 0) + WEAK_CELL_BIAS
            else:
                obstacles.blocked.add(cell)

    obstacles.blocked -= obstacles.protected
    return obstacles
