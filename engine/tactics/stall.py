"""
Stall detection and recovery.

The grid is only an approximation of the arena: sometimes we push against a
unit or a tree edge the obstacle map did not account for and simply do not
move. Every tick we compare where we actually went with where we asked to go;
when they disagree we are STUCK and try escape directions until we move again.
"""

import math
import random
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Deque, Optional

from settings import STALL_EPSILON, MIN_MOTION, ESCAPE_DISTANCE
from engine.error_handler import logger
from engine.utils.debug_sink import RED
from engine.utils.geometry import ORIGIN, Point
from engine.tactics.context import TickContext


class MotionStatus(Enum):
    STANDING = "standing"
    WALKING = "walking"
    STUCK = "stuck"


@dataclass
class MotionState:
    """
    Motion history of one agent; the only state that outlives a tick.

    Attributes:
        positions: The last two observed positions
        requested_velocity: World-frame velocity we asked for last tick
        stall_counter: Consecutive STUCK ticks
        escape: Unit escape direction while STUCK, zero otherwise
        status: Classification of the last observed step
    """
    positions: Deque[Point] = field(default_factory=lambda: deque(maxlen=2))
    requested_velocity: Point = ORIGIN
    stall_counter: int = 0
    escape: Point = ORIGIN
    status: MotionStatus = MotionStatus.STANDING

    def actual_displacement(self) -> Optional[Point]:
        if len(self.positions) < 2:
            return None
        return self.positions[-1] - self.positions[-2]


class StallRecovery:
    """
    Tick component that classifies our motion and picks escape directions.

    Escape order while stuck: perpendicular to the last request, then the
    opposite side, then random directions from a seeded generator so replays
    stay reproducible.

    Args:
        seed: Seed for the random escape directions
        state: Motion history to continue from (a fresh one by default)
    """

    def __init__(self, seed: int = 0, state: Optional[MotionState] = None):
        self.state = state if state is not None else MotionState()
        self.rng = random.Random(seed)

    @property
    def status(self) -> MotionStatus:
        return self.state.status

    @property
    def is_stuck(self) -> bool:
        return self.state.status == MotionStatus.STUCK

    def update(self, ctx: TickContext) -> None:
        position = ctx.me.position
        if not position.is_finite():
            logger.debug(f"Tick {ctx.tick_index}: non-finite position, stall check skipped")
            return

        state = self.state
        state.positions.append(position)
        actual = state.actual_displacement()
        if actual is None:
            return

        if (actual - state.requested_velocity).length() > STALL_EPSILON:
            state.status = MotionStatus.STUCK
            state.stall_counter += 1
            state.escape = self._next_escape()
            logger.debug(f"Tick {ctx.tick_index}: stuck x{state.stall_counter}, escaping towards {state.escape}")
            ctx.debug.draw_line(position, position + state.escape * ESCAPE_DISTANCE, RED)
            return

        state.status = MotionStatus.WALKING if actual.length() > MIN_MOTION else MotionStatus.STANDING
        state.stall_counter = 0
        state.escape = ORIGIN

    def _next_escape(self) -> Point:
        state = self.state
        perpendicular = state.requested_velocity.rotate(math.pi / 2).unit()
        if state.stall_counter == 1 and perpendicular != ORIGIN:
            return perpendicular
        if state.stall_counter == 2 and state.escape != ORIGIN:
            return -state.escape
        return Point.from_polar(1.0, self.rng.uniform(-math.pi, math.pi))

    def escape_point(self, position: Point) -> Optional[Point]:
        """Goal replacing the planned one this tick, or None when not stuck."""
        if not self.is_stuck or self.state.escape == ORIGIN:
            return None
        return position + self.state.escape * ESCAPE_DISTANCE

    def record_request(self, velocity: Point) -> None:
        """Remember the world-frame velocity requested this tick."""
        self.state.requested_velocity = velocity if velocity.is_finite() else ORIGIN
