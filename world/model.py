"""
World snapshot type definitions.

Contains the read-only dataclasses the host hands us every tick and the
mutable command object we hand back.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterator, Optional, Tuple

from settings import CELL_SIZE
from engine.utils.geometry import Point, relative_angle


class Faction(Enum):
    """Side of a unit, relative to the agent we control."""
    ALLY = "ally"
    ENEMY = "enemy"
    NEUTRAL = "neutral"


class UnitKind(Enum):
    WIZARD = "wizard"
    MINION = "minion"
    BUILDING = "building"
    TREE = "tree"


class UnitSubtype(Enum):
    """
    Finer classification used by scoring and target selection.

    - MELEE / RANGED: minion fighting styles
    - TOWER / BASE: building roles
    """
    NONE = "none"
    MELEE = "melee"
    RANGED = "ranged"
    TOWER = "tower"
    BASE = "base"


class ActionType(Enum):
    NONE = "none"
    STAFF = "staff"
    MAGIC_MISSILE = "magic_missile"


class StatusType(Enum):
    HASTENED = "hastened"
    EMPOWERED = "empowered"


@dataclass(frozen=True)
class UnitSnapshot:
    """
    One unit as seen this tick.

    Rebuilt from the host snapshot every tick and never mutated.
    ``attack_range`` is the cast range for wizards.
    """
    id: int
    kind: UnitKind
    faction: Faction
    position: Point
    radius: float
    velocity: Point = Point(0.0, 0.0)
    angle: float = 0.0
    life: float = 1.0
    max_life: float = 1.0
    vision_range: float = 0.0
    attack_range: float = 0.0
    remaining_action_cooldown_ticks: int = 0
    remaining_cooldown_by_action: Dict[ActionType, int] = field(default_factory=dict)
    statuses: FrozenSet[StatusType] = frozenset()
    subtype: UnitSubtype = UnitSubtype.NONE
    is_me: bool = False

    @property
    def x(self) -> float:
        return self.position.x

    @property
    def y(self) -> float:
        return self.position.y

    @property
    def is_alive(self) -> bool:
        return self.life > 0

    @property
    def life_fraction(self) -> float:
        if self.max_life <= 0:
            return 0.0
        return max(0.0, min(1.0, self.life / self.max_life))

    @property
    def is_moving(self) -> bool:
        return self.velocity.x != 0.0 or self.velocity.y != 0.0

    def has_status(self, status: StatusType) -> bool:
        return status in self.statuses

    def cooldown_for(self, action: ActionType) -> int:
        return self.remaining_cooldown_by_action.get(action, 0)

    def distance_to(self, point: Point) -> float:
        return self.position.distance_to(point)

    def angle_to(self, point: Point) -> float:
        """Angle from this unit's facing to ``point``, in (-pi, pi]."""
        return relative_angle(self.position, self.angle, point)

    def predict_position(self, ticks: float) -> Point:
        """Forward extrapolation: position + velocity * ticks."""
        return self.position + self.velocity * ticks

    def is_finite(self) -> bool:
        return self.position.is_finite() and self.velocity.is_finite() and math.isfinite(self.radius)


@dataclass(frozen=True)
class BonusSnapshot:
    """A pickup currently lying on the map."""
    id: int
    position: Point
    radius: float = 20.0


@dataclass(frozen=True)
class GameConstants:
    """
    Game-wide constants supplied by the host at match start.

    Defaults mirror the standard arena rules so tests can build scenarios
    without spelling everything out.
    """
    map_size: float = 4000.0
    cell_size: float = CELL_SIZE
    wizard_forward_speed: float = 4.0
    wizard_backward_speed: float = 3.0
    wizard_strafe_speed: float = 3.0
    wizard_max_turn_angle: float = math.pi / 30.0
    hastened_movement_bonus_factor: float = 0.3
    hastened_rotation_bonus_factor: float = 0.5
    empowered_damage_factor: float = 1.5
    staff_damage: float = 12.0
    staff_range: float = 70.0
    staff_sector: float = math.pi / 6.0
    staff_cooldown_ticks: int = 60
    magic_missile_direct_damage: float = 12.0
    magic_missile_radius: float = 10.0
    magic_missile_cooldown_ticks: int = 60
    bonus_appearance_interval_ticks: int = 2500
    random_seed: int = 0

    @property
    def bonus_positions(self) -> Tuple[Point, Point]:
        """Fixed bonus spawn points on the river diagonal."""
        return (
            Point(self.map_size * 0.3, self.map_size * 0.3),
            Point(self.map_size * 0.7, self.map_size * 0.7),
        )


@dataclass(frozen=True)
class WorldSnapshot:
    """Everything the agent can see this tick."""
    tick_index: int
    me: UnitSnapshot
    constants: GameConstants = field(default_factory=GameConstants)
    tick_count: int = 20000
    wizards: Tuple[UnitSnapshot, ...] = ()
    minions: Tuple[UnitSnapshot, ...] = ()
    buildings: Tuple[UnitSnapshot, ...] = ()
    trees: Tuple[UnitSnapshot, ...] = ()
    bonuses: Tuple[BonusSnapshot, ...] = ()
    home_base: Optional[Point] = None

    @property
    def own_base(self) -> Point:
        if self.home_base is not None:
            return self.home_base
        size = self.constants.map_size
        return Point(size * 0.1, size * 0.9)

    @property
    def enemy_base(self) -> Point:
        size = self.constants.map_size
        base = self.own_base
        return Point(size - base.x, size - base.y)

    def other_units(self) -> Iterator[UnitSnapshot]:
        """Every unit except the agent itself."""
        for group in (self.wizards, self.minions, self.buildings, self.trees):
            for unit in group:
                if unit.is_me or (unit.kind == UnitKind.WIZARD and unit.id == self.me.id):
                    continue
                yield unit


@dataclass
class Command:
    """
    Per-tick output handed back to the host.

    The host clamps or rescales out-of-envelope values; this engine is expected
    not to rely on that.
    """
    speed: float = 0.0
    strafe_speed: float = 0.0
    turn: float = 0.0
    action: ActionType = ActionType.NONE
    cast_angle: float = 0.0
    min_cast_distance: float = 0.0
    max_cast_distance: float = 10000.0
    status_target_id: int = -1
    skill_to_learn: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "speed": self.speed,
            "strafe_speed": self.strafe_speed,
            "turn": self.turn,
            "action": self.action.value,
            "cast_angle": self.cast_angle,
            "min_cast_distance": self.min_cast_distance,
            "max_cast_distance": self.max_cast_distance,
            "status_target_id": self.status_target_id,
            "skill_to_learn": self.skill_to_learn,
        }


def one_shot_damage(unit: UnitSnapshot, constants: GameConstants) -> float:
    """Damage of the agent's strongest basic hit this tick."""
    damage = max(constants.staff_damage, constants.magic_missile_direct_damage)
    if unit.has_status(StatusType.EMPOWERED):
        damage *= constants.empowered_damage_factor
    return damage
