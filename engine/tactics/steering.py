"""
Kinematics-aware steering.

Turns "I want to go there" into a (speed, strafe_speed) pair the host will
accept as-is. The legal velocities form a diamond around the agent:
forward max ahead, backward max behind, strafe max to either side. Asking for
anything outside it gets clamped by the host and bent off course, so we pick
the longest vector in the desired direction that stays inside.
"""

import math
from dataclasses import dataclass
from typing import Iterable, List, NamedTuple, Optional

from settings import AVOIDANCE_LOOKAHEAD_TICKS, AVOIDANCE_DIRECTIONS
from engine.utils.geometry import Point, segment_distance
from engine.utils.numeric import bisect_monotone
from world.model import GameConstants, StatusType, UnitSnapshot


class MoveCommand(NamedTuple):
    """Requested motion in the agent's own frame."""
    speed: float
    strafe_speed: float

    def world_velocity(self, facing: float) -> Point:
        """The same motion expressed in world coordinates."""
        return Point.from_polar(self.speed, facing) + Point.from_polar(self.strafe_speed, facing + math.pi / 2)


STOP = MoveCommand(0.0, 0.0)


@dataclass(frozen=True)
class SpeedEnvelope:
    forward: float
    backward: float
    strafe: float


class SteeringController:
    """
    Fits desired directions into the agent's speed envelope.

    Args:
        constants: Game constants (speeds, turn rate, hastened factors)
        avoidance: Rotate the desired direction away from units it would run into
    """

    def __init__(self, constants: GameConstants, avoidance: bool = True):
        self.constants = constants
        self.avoidance = avoidance

    def envelope(self, me: UnitSnapshot) -> SpeedEnvelope:
        """Per-axis speed maxima, scaled up while hastened."""
        factor = 1.0
        if me.has_status(StatusType.HASTENED):
            factor += self.constants.hastened_movement_bonus_factor
        return SpeedEnvelope(
            forward=self.constants.wizard_forward_speed * factor,
            backward=self.constants.wizard_backward_speed * factor,
            strafe=self.constants.wizard_strafe_speed * factor,
        )

    def max_turn(self, me: UnitSnapshot) -> float:
        factor = 1.0
        if me.has_status(StatusType.HASTENED):
            factor += self.constants.hastened_rotation_bonus_factor
        return self.constants.wizard_max_turn_angle * factor

    def fit_to_envelope(self, me: UnitSnapshot, direction: Point) -> MoveCommand:
        """
        Longest move along ``direction`` (a world-frame vector) inside the envelope.

        The length of ``direction`` caps the result: a target two units away
        never produces a four-unit step.

        Args:
            me: The agent (position and facing are used)
            direction: Desired displacement for this tick

        Returns:
            Speed and strafe speed; STOP for a zero or non-finite direction or facing
        """
        if not direction.is_finite() or direction.length_squared() == 0.0 or not math.isfinite(me.angle):
            return STOP

        env = self.envelope(me)
        facing = me.angle
        angle = direction.angle() - facing
        angle = math.atan2(math.sin(angle), math.cos(angle))

        if abs(angle) < math.pi / 2:
            a = Point.from_polar(env.forward, facing)
        else:
            a = -Point.from_polar(env.backward, facing)
        side = math.pi / 2 if angle >= 0 else -math.pi / 2
        b = Point.from_polar(env.strafe, facing + side)

        origin_side = a.is_clockwise_to(b)
        edge = a - b

        def inside(k: float) -> bool:
            return (direction * k - b).is_clockwise_to(edge) == origin_side

        k = bisect_monotone(0.0, 1.0, inside)
        velocity = direction * k

        return MoveCommand(
            speed=velocity.dot(Point.from_polar(1.0, facing)),
            strafe_speed=velocity.dot(Point.from_polar(1.0, facing + math.pi / 2)),
        )

    def steer(
        self,
        me: UnitSnapshot,
        target: Optional[Point],
        obstacles: Iterable[UnitSnapshot] = (),
    ) -> MoveCommand:
        """
        Move towards ``target`` as fast as the envelope allows.

        Args:
            me: The agent
            target: World point to head for; None or non-finite means stand still
            obstacles: Units to steer around (only used when avoidance is on)
        """
        if target is None or not target.is_finite():
            return STOP
        move = self.fit_to_envelope(me, target - me.position)
        if not self.avoidance or move == STOP:
            return move

        blockers = [u for u in obstacles if u.is_alive and u.is_finite()]
        if not blockers or not self._collides(me, move.world_velocity(me.angle), blockers):
            return move

        desired = target - me.position
        for rotation in self._avoidance_rotations():
            candidate = self.fit_to_envelope(me, desired.rotate(rotation))
            if not self._collides(me, candidate.world_velocity(me.angle), blockers):
                return candidate
        return move

    def turn_to(self, me: UnitSnapshot, point: Optional[Point]) -> float:
        """Turn towards ``point``, clamped to this tick's max turn angle."""
        if point is None or not point.is_finite() or not math.isfinite(me.angle):
            return 0.0
        limit = self.max_turn(me)
        return max(-limit, min(limit, me.angle_to(point)))

    @staticmethod
    def _avoidance_rotations() -> List[float]:
        step = 2.0 * math.pi / AVOIDANCE_DIRECTIONS
        rotations = []
        for i in range(1, AVOIDANCE_DIRECTIONS // 2 + 1):
            rotations.append(i * step)
            if i * step < math.pi:
                rotations.append(-i * step)
        return rotations

    @staticmethod
    def _collides(me: UnitSnapshot, velocity: Point, blockers: List[UnitSnapshot]) -> bool:
        end = me.position + velocity * AVOIDANCE_LOOKAHEAD_TICKS
        for unit in blockers:
            clearance = me.radius + unit.radius
            # Already overlapping: only moves that increase the gap count as clear.
            if unit.position.distance_to(me.position) < clearance:
                if unit.position.distance_to(end) < unit.position.distance_to(me.position):
                    return True
                continue
            if segment_distance(me.position, end, unit.position) < clearance:
                return True
        return False
