"""
Per-tick orchestration of the tactics engine.

One call to ``TacticalOrchestrator.move`` is one decision:

    components -> obstacle map + potential field -> macro goal -> path
    -> shortcut -> steering (or stall escape) -> target -> facing -> action

Everything except the stall tracker's motion history is rebuilt every tick.
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional

from settings import IDLE_TICKS
from engine.config import TacticsConfig
from engine.error_handler import logger
from engine.utils.debug_sink import (
    DebugSink,
    GuardedDebugSink,
    NullDebugSink,
    BLUE,
    CYAN,
    GREEN,
    RED,
)
from engine.utils.geometry import ORIGIN, Point
from engine.tactics.context import TickComponent, TickContext
from engine.tactics.goals import GoalKind, GoalPolicy, MacroGoal
from engine.tactics.overlays import LaneOverlay, RangeOverlay
from engine.tactics.pathfinding import PathRequest, Pathfinder, shortcut
from engine.tactics.stall import StallRecovery
from engine.tactics.steering import STOP, MoveCommand, SteeringController
from engine.tactics.targeting import TargetSelector
from telemetry.logger import telemetry
from world.grid import Cell, GridIndex
from world.lanes import LaneType
from world.model import ActionType, Command, GameConstants, UnitSnapshot, WorldSnapshot
from world.obstacle_map import ObstacleMap, build_obstacle_map
from world.potential_field import build_potential_field


@dataclass
class TickDecision:
    """What the orchestrator decided and why; kept for telemetry and debugging."""
    tick_index: int
    goal: Optional[MacroGoal] = None
    path: List[Cell] = field(default_factory=list)
    waypoint: Optional[Point] = None
    escaping: bool = False
    target: Optional[UnitSnapshot] = None
    action: ActionType = ActionType.NONE
    action_target: Optional[UnitSnapshot] = None


class TacticalOrchestrator:
    """
    The agent's brain: composes every tactics component once per tick.

    Args:
        constants: Game constants for the whole match
        lane: Lane used for advance / retreat waypoints
        expansion_budget: Pathfinder expansion cap
        idle_ticks: Opening ticks spent turning in place
        avoidance: Let steering rotate around units in the way
        debug: Optional debug sink; never influences decisions
    """

    def __init__(
        self,
        constants: GameConstants,
        lane: LaneType = LaneType.MIDDLE,
        expansion_budget: Optional[int] = None,
        idle_ticks: int = IDLE_TICKS,
        avoidance: bool = True,
        debug: Optional[DebugSink] = None,
    ):
        self.constants = constants
        self.grid = GridIndex(constants.cell_size, constants.map_size)
        self.pathfinder = Pathfinder() if expansion_budget is None else Pathfinder(expansion_budget)
        self.steering = SteeringController(constants, avoidance=avoidance)
        self.targeting = TargetSelector(constants)
        self.goals = GoalPolicy(lane)
        self.stall = StallRecovery(seed=constants.random_seed)
        self.idle_ticks = idle_ticks
        self.debug: DebugSink = GuardedDebugSink(debug) if debug is not None else NullDebugSink()

        self.components: List[TickComponent] = [self.stall]
        if debug is not None:
            self.components.extend([RangeOverlay(), LaneOverlay(lane)])

        self.last_decision: Optional[TickDecision] = None

    @classmethod
    def from_config(cls, constants: GameConstants, config: TacticsConfig, debug: Optional[DebugSink] = None) -> "TacticalOrchestrator":
        """Build from a TacticsConfig."""
        return cls(
            constants,
            lane=config.lane,
            expansion_budget=config.expansion_budget,
            idle_ticks=config.idle_ticks,
            avoidance=config.avoidance,
            debug=debug,
        )

    def decide(self, world: WorldSnapshot) -> Command:
        """Convenience wrapper returning a fresh Command."""
        command = Command()
        self.move(world, command)
        return command

    def move(self, world: WorldSnapshot, command: Command) -> None:
        """
        Fill ``command`` with this tick's decision.

        Args:
            world: Snapshot of everything visible this tick
            command: Host command object, mutated in place
        """
        self.debug.begin_frame(world.tick_index)
        try:
            self._move(world, command)
        finally:
            self.debug.end_frame()

    def _move(self, world: WorldSnapshot, command: Command) -> None:
        me = world.me
        decision = TickDecision(tick_index=world.tick_index)
        self.last_decision = decision

        if world.tick_index < self.idle_ticks:
            # Opening: look around while the minions spawn.
            command.speed = 0.0
            command.strafe_speed = 0.0
            command.turn = 2.0 * math.pi / max(1, self.idle_ticks)
            self.stall.record_request(ORIGIN)
            return

        self.debug.focus(me.position)

        ctx = TickContext(world=world, grid=self.grid, debug=self.debug)
        for component in self.components:
            component.update(ctx)

        obstacles = build_obstacle_map(world, self.grid)
        potential = build_potential_field(world, self.grid)

        goal = self.goals.choose(ctx, potential)
        target = self.targeting.select(ctx)
        decision.goal = goal
        decision.target = target

        goal_point = goal.point
        if (
            goal.kind == GoalKind.ADVANCE
            and target is not None
            and not self.targeting.in_cast_range(me, target)
            and not self.goals.is_low_life(ctx)
        ):
            # Close in on a target we cannot reach yet.
            goal_point = target.position

        path = self.pathfinder.find_path(PathRequest(me.position, goal_point), obstacles)
        decision.path = path
        waypoint = self._waypoint(me, path, goal_point, obstacles)

        escape = self.stall.escape_point(me.position)
        steer_to = escape if escape is not None else waypoint
        decision.waypoint = steer_to
        decision.escaping = escape is not None

        move = self.steering.steer(me, steer_to, obstacles=world.other_units()) if steer_to is not None else STOP
        command.speed = move.speed
        command.strafe_speed = move.strafe_speed

        if target is not None:
            command.turn = self.steering.turn_to(me, target.position)
        elif steer_to is not None and me.distance_to(steer_to) > me.radius:
            command.turn = self.steering.turn_to(me, steer_to)
        else:
            command.turn = 0.0

        self._choose_action(me, target, obstacles, steer_to, command, decision)

        self.stall.record_request(move.world_velocity(me.angle))
        self._draw(ctx, decision)
        self._log(world, decision, move)

    def _waypoint(
        self,
        me: UnitSnapshot,
        path: List[Cell],
        goal_point: Point,
        obstacles: ObstacleMap,
    ) -> Optional[Point]:
        """Point to steer to: the goal itself when in clear sight, else the shortcut cell."""
        if not path:
            return None
        if self.pathfinder.last_reached_goal and obstacles.segment_clear(me.position, goal_point):
            return goal_point
        cell = shortcut(path, me.position, obstacles)
        return cell.center() if cell is not None else None

    def _choose_action(
        self,
        me: UnitSnapshot,
        target: Optional[UnitSnapshot],
        obstacles: ObstacleMap,
        steer_to: Optional[Point],
        command: Command,
        decision: TickDecision,
    ) -> None:
        command.action = ActionType.NONE
        if me.remaining_action_cooldown_ticks > 0:
            return

        victims: List[UnitSnapshot] = []
        if target is not None:
            victims.append(target)
        if steer_to is not None:
            in_the_way = obstacles.weak_obstacle_on_segment(me.position, steer_to)
            if in_the_way is not None and in_the_way is not target:
                victims.append(in_the_way)

        for victim in victims:
            if me.cooldown_for(ActionType.STAFF) == 0 and self.targeting.can_strike(me, victim):
                command.action = ActionType.STAFF
                command.cast_angle = me.angle_to(victim.position)
                decision.action = command.action
                decision.action_target = victim
                return
            if me.cooldown_for(ActionType.MAGIC_MISSILE) == 0 and self.targeting.can_shoot(me, victim):
                cast_angle, min_distance = self.targeting.missile_parameters(me, victim)
                command.action = ActionType.MAGIC_MISSILE
                command.cast_angle = cast_angle
                command.min_cast_distance = min_distance
                decision.action = command.action
                decision.action_target = victim
                return

    def _draw(self, ctx: TickContext, decision: TickDecision) -> None:
        debug = ctx.debug
        for a, b in zip(decision.path, decision.path[1:]):
            debug.draw_line(a.center(), b.center(), BLUE)
        if decision.goal is not None:
            debug.fill_circle(decision.goal.point, 8.0, GREEN)
        if decision.waypoint is not None:
            debug.draw_line(ctx.me.position, decision.waypoint, RED if decision.escaping else CYAN)
        if decision.target is not None:
            debug.draw_circle(decision.target.position, decision.target.radius + 5.0, RED)

    def _log(self, world: WorldSnapshot, decision: TickDecision, move: MoveCommand) -> None:
        telemetry.log_tick(
            world.tick_index,
            x=round(world.me.x, 2),
            y=round(world.me.y, 2),
            life=world.me.life,
            goal=decision.goal.kind.value if decision.goal else None,
            path_len=len(decision.path),
            expansions=self.pathfinder.last_expansions,
            reached_goal=self.pathfinder.last_reached_goal,
            motion=self.stall.status.value,
            target=decision.target.id if decision.target else None,
            action=decision.action.value,
            speed=round(move.speed, 3),
            strafe=round(move.strafe_speed, 3),
        )
        if decision.escaping:
            logger.debug(f"Tick {world.tick_index}: steering to escape point {decision.waypoint}")
