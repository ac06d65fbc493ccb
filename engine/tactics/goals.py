"""
Macro goal policy: where should we be heading this tick?

Order of preference:
1. A bonus (visible, or about to spawn by the time we get there) that no
   closer enemy wizard is going for, unless we are in danger
2. The previous lane waypoint, when life is low or we are in danger
3. The best reachable cell of the potential field, else the next lane waypoint
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from settings import (
    LOW_LIFE_FRACTION,
    DANGER_ATTACKERS,
    BONUS_ARRIVAL_MARGIN_TICKS,
)
from engine.utils.geometry import Point
from engine.tactics.context import TickContext
from world.lanes import LaneType, lane_waypoints, next_waypoint, previous_waypoint
from world.model import UnitKind, UnitSnapshot
from world.potential_field import PotentialField


class GoalKind(Enum):
    BONUS = "bonus"
    RETREAT = "retreat"
    ADVANCE = "advance"


@dataclass(frozen=True)
class MacroGoal:
    kind: GoalKind
    point: Point


class GoalPolicy:
    """
    Picks the macro goal for one tick. Stateless between ticks.

    Args:
        lane: Lane used for advance / retreat waypoints
    """

    def __init__(self, lane: LaneType = LaneType.MIDDLE):
        self.lane = lane

    def attackers(self, ctx: TickContext) -> List[UnitSnapshot]:
        """Hostiles that could hit us where we stand."""
        me = ctx.me
        return [
            unit for unit in ctx.hostiles()
            if unit.kind != UnitKind.TREE
            and me.distance_to(unit.position) <= unit.attack_range + me.radius
        ]

    def in_danger(self, ctx: TickContext) -> bool:
        return len(self.attackers(ctx)) >= DANGER_ATTACKERS

    def is_low_life(self, ctx: TickContext) -> bool:
        return ctx.me.life_fraction < LOW_LIFE_FRACTION

    def waypoints(self, ctx: TickContext) -> List[Point]:
        return lane_waypoints(self.lane, ctx.constants.map_size, ctx.world.own_base)

    def bonus_point(self, ctx: TickContext) -> Optional[Point]:
        """
        Nearest bonus worth going for, visible or anticipated.

        A spawn point counts as anticipated when the next spawn happens no
        later than we could arrive there (plus a margin).
        """
        me = ctx.me
        constants = ctx.constants
        speed = constants.wizard_forward_speed
        candidates: List[Point] = [b.position for b in ctx.world.bonuses if b.position.is_finite()]

        interval = constants.bonus_appearance_interval_ticks
        if interval > 0 and speed > 0:
            ticks_until_spawn = (-ctx.tick_index) % interval
            spawn_tick = ctx.tick_index + ticks_until_spawn
            if ticks_until_spawn > 0 and spawn_tick < ctx.world.tick_count:
                for spawn in constants.bonus_positions:
                    travel_ticks = me.distance_to(spawn) / speed
                    if ticks_until_spawn <= travel_ticks + BONUS_ARRIVAL_MARGIN_TICKS:
                        candidates.append(spawn)

        enemy_wizards = [u for u in ctx.hostiles() if u.kind == UnitKind.WIZARD and u.is_finite()]
        best: Optional[Point] = None
        best_distance = float("inf")
        for point in candidates:
            distance = me.distance_to(point)
            if any(w.distance_to(point) < distance for w in enemy_wizards):
                continue
            if distance < best_distance:
                best = point
                best_distance = distance
        return best

    def choose(self, ctx: TickContext, field: PotentialField) -> MacroGoal:
        """Goal for this tick; always returns something to walk to."""
        danger = self.in_danger(ctx)
        me = ctx.me

        if not danger:
            bonus = self.bonus_point(ctx)
            if bonus is not None:
                return MacroGoal(GoalKind.BONUS, bonus)

        waypoints = self.waypoints(ctx)
        if danger or self.is_low_life(ctx):
            return MacroGoal(GoalKind.RETREAT, previous_waypoint(waypoints, me.position, me.radius))

        best = field.best_reachable_cell()
        if best is not None:
            return MacroGoal(GoalKind.ADVANCE, best.center())
        return MacroGoal(GoalKind.ADVANCE, next_waypoint(waypoints, me.position, me.radius))
