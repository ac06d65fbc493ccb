"""
Target selection.

Picks the hostile worth hitting this tick and answers "can I hit it right now?"
for both weapons. Selection is recomputed from scratch every tick; nothing is
remembered between ticks.
"""

from typing import Iterable, List, Optional, Tuple

from settings import MELEE_THREAT_MARGIN, STRIKE_POINT_RINGS, STRIKE_POINT_RAYS
from engine.utils.geometry import Point
from engine.tactics.context import TickContext
from world.model import GameConstants, UnitKind, UnitSnapshot, UnitSubtype, one_shot_damage


def lowest_life(units: Iterable[UnitSnapshot]) -> Optional[UnitSnapshot]:
    """Unit with the least life; the first one seen wins a tie."""
    best: Optional[UnitSnapshot] = None
    for unit in units:
        if best is None or unit.life < best.life:
            best = unit
    return best


def is_melee_minion(unit: UnitSnapshot) -> bool:
    return unit.kind == UnitKind.MINION and unit.subtype != UnitSubtype.RANGED


class TargetSelector:
    """
    Chooses the best engageable hostile.

    Priority:
    1. A melee minion already close enough to hit us
    2. A wizard we can finish with the next hit
    3. Buildings, then wizards, then ranged minions, then melee minions

    Within a group the lowest current life wins.

    Args:
        constants: Game constants (staff range and sector, damages)
    """

    def __init__(self, constants: GameConstants):
        self.constants = constants
        self._strike_offsets = self._build_strike_offsets(constants)

    @staticmethod
    def _build_strike_offsets(constants: GameConstants) -> List[Tuple[float, float]]:
        """(distance, relative angle) of every strike point, in the agent's frame."""
        offsets = []
        half_sector = constants.staff_sector / 2.0
        for ring in range(1, STRIKE_POINT_RINGS + 1):
            distance = constants.staff_range * ring / STRIKE_POINT_RINGS
            for ray in range(STRIKE_POINT_RAYS):
                if STRIKE_POINT_RAYS == 1:
                    angle = 0.0
                else:
                    angle = -half_sector + constants.staff_sector * ray / (STRIKE_POINT_RAYS - 1)
                offsets.append((distance, angle))
        return offsets

    def engagement_candidates(self, ctx: TickContext, engagement_range: Optional[float] = None) -> List[UnitSnapshot]:
        """Living hostiles (no trees) whose edge is within the engagement range."""
        me = ctx.me
        reach = me.vision_range if engagement_range is None else engagement_range
        candidates = []
        for unit in ctx.hostiles():
            if unit.kind == UnitKind.TREE or not unit.is_finite():
                continue
            if me.distance_to(unit.position) - unit.radius <= reach:
                candidates.append(unit)
        return candidates

    def melee_threats(self, ctx: TickContext, candidates: List[UnitSnapshot]) -> List[UnitSnapshot]:
        me = ctx.me
        return [
            unit for unit in candidates
            if is_melee_minion(unit)
            and me.distance_to(unit.position) <= unit.attack_range + me.radius + MELEE_THREAT_MARGIN
        ]

    def select(self, ctx: TickContext, engagement_range: Optional[float] = None) -> Optional[UnitSnapshot]:
        """
        Best target this tick.

        Args:
            ctx: Current tick
            engagement_range: How far to look; defaults to our vision range

        Returns:
            The chosen hostile, or None when nothing is in range
        """
        candidates = self.engagement_candidates(ctx, engagement_range)
        if not candidates:
            return None

        threat = lowest_life(self.melee_threats(ctx, candidates))
        if threat is not None:
            return threat

        kill_threshold = one_shot_damage(ctx.me, self.constants)
        wizards = [u for u in candidates if u.kind == UnitKind.WIZARD]
        killable = lowest_life(u for u in wizards if u.life <= kill_threshold)
        if killable is not None:
            return killable

        groups = (
            [u for u in candidates if u.kind == UnitKind.BUILDING],
            wizards,
            [u for u in candidates if u.kind == UnitKind.MINION and u.subtype == UnitSubtype.RANGED],
            [u for u in candidates if is_melee_minion(u)],
        )
        for group in groups:
            target = lowest_life(group)
            if target is not None:
                return target
        return None

    def strike_points(self, me: UnitSnapshot) -> List[Point]:
        """World positions the staff reaches from where we stand and face."""
        return [me.position + Point.from_polar(distance, me.angle + angle) for distance, angle in self._strike_offsets]

    def can_strike(self, me: UnitSnapshot, target: UnitSnapshot) -> bool:
        """True if any strike point lands inside the target."""
        radius_sq = target.radius * target.radius
        for point in self.strike_points(me):
            if point.distance_squared_to(target.position) <= radius_sq:
                return True
        return False

    def can_shoot(self, me: UnitSnapshot, target: UnitSnapshot) -> bool:
        """True if a missile cast now would be inside both the cone and the cast range."""
        if not target.position.is_finite():
            return False
        in_cone = abs(me.angle_to(target.position)) < self.constants.staff_sector / 2.0
        in_range = me.distance_to(target.position) - target.radius <= me.attack_range
        return in_cone and in_range

    def missile_parameters(self, me: UnitSnapshot, target: UnitSnapshot) -> Tuple[float, float]:
        """
        Cast angle and minimum cast distance for a missile at ``target``.

        The minimum distance lets the missile pass over anything standing
        between us and the target's near edge.
        """
        cast_angle = me.angle_to(target.position)
        min_distance = me.distance_to(target.position) - target.radius + self.constants.magic_missile_radius
        return cast_angle, max(0.0, min_distance)

    def in_cast_range(self, me: UnitSnapshot, target: UnitSnapshot) -> bool:
        return me.distance_to(target.position) - target.radius <= me.attack_range

