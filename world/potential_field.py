"""
Potential field over the visible part of the grid.

Each visible cell gets an additive desirability score and, independently, a
reachability flag. Cells outside the agent's vision are simply absent: the
cost of a rebuild is bounded by the sensor horizon, not the map size.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, NamedTuple, Optional

from settings import (
    LOOKAHEAD_TICKS,
    REACHABILITY_EPS,
    POSITION_FACTOR,
    ALLY_WIZARD_CAST_RANGE_FACTOR,
    ALLY_WIZARD_CONE,
    ALLY_MELEE_MINION_VISION_FACTOR,
    ALLY_RANGED_MINION_VISION_FACTOR,
    CROWDED_BY_ALLY_FACTOR,
    ENEMY_WIZARD_RANGE_FACTOR,
    ENEMY_BUILDING_RANGE_FACTOR,
    ENEMY_MELEE_MINION_RANGE_FACTOR,
    ENEMY_RANGED_MINION_RANGE_FACTOR,
    CLOSE_TO_TREE_FACTOR,
    CLOSE_TO_TREE_CELLS,
    BONUS_FACTOR,
    BONUS_ATTRACTION_RADIUS,
)
from engine.error_handler import logger
from engine.utils.geometry import Point
from world.grid import Cell, GridIndex
from world.model import Faction, UnitKind, UnitSnapshot, UnitSubtype, WorldSnapshot


class FieldValue(NamedTuple):
    score: float
    reachable: bool


@dataclass
class PotentialField:
    """Score + reachability for every cell within vision this tick."""

    grid: GridIndex
    cells: Dict[Cell, FieldValue] = field(default_factory=dict)

    def __contains__(self, cell: Cell) -> bool:
        return cell in self.cells

    def __len__(self) -> int:
        return len(self.cells)

    def get(self, cell: Cell) -> Optional[FieldValue]:
        return self.cells.get(cell)

    def score_at(self, cell: Cell) -> float:
        """Score of a visible cell; unknown cells score -inf."""
        value = self.cells.get(cell)
        return value.score if value is not None else -math.inf

    def is_reachable(self, cell: Cell) -> bool:
        value = self.cells.get(cell)
        return value is not None and value.reachable

    def best_reachable_cell(self) -> Optional[Cell]:
        """Highest-scored reachable cell; ties go to the smallest (p, q)."""
        best: Optional[Cell] = None
        best_score = -math.inf
        for cell in sorted(self.cells):
            value = self.cells[cell]
            if not value.reachable or not math.isfinite(value.score):
                continue
            if best is None or value.score > best_score:
                best = cell
                best_score = value.score
        return best


def _positional_bias(center: Point, own_base: Point, enemy_base: Point) -> float:
    """Progress along the base-to-base axis, scaled to [0, POSITION_FACTOR]."""
    axis = enemy_base - own_base
    length = axis.length()
    if length == 0.0:
        return 0.0
    progress = (center - own_base).dot(axis) / (length * length)
    return max(0.0, min(1.0, progress)) * POSITION_FACTOR


def _enemy_range_factor(unit: UnitSnapshot) -> float:
    if unit.kind == UnitKind.WIZARD:
        return ENEMY_WIZARD_RANGE_FACTOR
    if unit.kind == UnitKind.BUILDING:
        return ENEMY_BUILDING_RANGE_FACTOR
    if unit.kind == UnitKind.MINION:
        if unit.subtype == UnitSubtype.RANGED:
            return ENEMY_RANGED_MINION_RANGE_FACTOR
        return ENEMY_MELEE_MINION_RANGE_FACTOR
    return 0.0


def _cells_near(grid: GridIndex, visible: Dict[Cell, float], center: Point, radius: float) -> Iterable[Cell]:
    for cell in grid.cells_within(center, radius):
        if cell in visible:
            yield cell


def build_potential_field(
    world: WorldSnapshot,
    grid: GridIndex,
    lookahead_ticks: float = LOOKAHEAD_TICKS,
) -> PotentialField:
    """
    Score every visible cell and flag the ones we could stand on soon.

    Args:
        world: This tick's snapshot
        grid: Grid used for the whole match
        lookahead_ticks: How far ahead moving units are extrapolated for reachability

    Returns:
        A fresh PotentialField (empty if our own position is not finite)
    """
    me = world.me
    result = PotentialField(grid=grid)
    if not me.position.is_finite():
        logger.warning("Own position is not finite; potential field left empty")
        return result

    own_base, enemy_base = world.own_base, world.enemy_base

    score: Dict[Cell, float] = {}
    for cell in grid.cells_within(me.position, me.vision_range):
        score[cell] = _positional_bias(cell.center(), own_base, enemy_base)
    enemy_penalty: Dict[Cell, float] = dict.fromkeys(score, 0.0)
    reachable: Dict[Cell, bool] = dict.fromkeys(score, True)

    for unit in world.other_units():
        if not unit.is_alive:
            continue
        if not unit.is_finite():
            logger.debug(f"Ignoring {unit.kind.value}#{unit.id} with non-finite geometry in field")
            continue

        predicted = unit.predict_position(lookahead_ticks)

        # Reachability: would we overlap this unit a few ticks from now?
        clearance = me.radius + unit.radius + REACHABILITY_EPS
        for cell in _cells_near(grid, score, predicted, clearance):
            reachable[cell] = False

        if unit.kind == UnitKind.TREE:
            for cell in _cells_near(grid, score, unit.position, CLOSE_TO_TREE_CELLS * grid.cell_size):
                score[cell] += CLOSE_TO_TREE_FACTOR
            continue

        if unit.faction == Faction.ALLY:
            if unit.kind == UnitKind.WIZARD:
                for cell in _cells_near(grid, score, predicted, unit.attack_range):
                    if abs(unit.angle_to(cell.center())) < ALLY_WIZARD_CONE:
                        score[cell] += ALLY_WIZARD_CAST_RANGE_FACTOR
                crowd_radius = unit.radius + 1.5 * me.radius
                for cell in _cells_near(grid, score, predicted, crowd_radius):
                    score[cell] += CROWDED_BY_ALLY_FACTOR
            elif unit.kind == UnitKind.MINION:
                bonus = (
                    ALLY_RANGED_MINION_VISION_FACTOR
                    if unit.subtype == UnitSubtype.RANGED
                    else ALLY_MELEE_MINION_VISION_FACTOR
                )
                for cell in _cells_near(grid, score, predicted, unit.vision_range):
                    score[cell] += bonus
        elif unit.faction == Faction.ENEMY:
            factor = _enemy_range_factor(unit)
            for cell in _cells_near(grid, score, predicted, unit.attack_range):
                enemy_penalty[cell] += factor

    for bonus in world.bonuses:
        if not bonus.position.is_finite():
            continue
        for cell in _cells_near(grid, score, bonus.position, BONUS_ATTRACTION_RADIUS):
            distance = cell.center().distance_to(bonus.position)
            score[cell] += BONUS_FACTOR * (1.0 - distance / BONUS_ATTRACTION_RADIUS)

    # Weaker agents weigh enemy coverage up to twice as heavily.
    risk_aversion = 1.0 + (1.0 - me.life_fraction)
    for cell, base_score in score.items():
        total = base_score + enemy_penalty[cell] * risk_aversion
        if math.isfinite(total):
            result.cells[cell] = FieldValue(total, reachable[cell])
        else:
            result.cells[cell] = FieldValue(-math.inf, False)

    return result
