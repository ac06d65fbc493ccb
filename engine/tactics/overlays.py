"""
Debug overlays drawn at the start of every tick.

Each overlay is a tick component: it only reads the context and writes to
``ctx.debug``. With the default NullDebugSink they cost a few no-op calls.
"""

from engine.utils.debug_sink import LIGHT_GRAY, PINK, ORANGE, BLUE, BLACK
from engine.tactics.context import TickContext
from world.lanes import LaneType, lane_waypoints
from world.model import UnitKind


class RangeOverlay:
    """Our vision and staff reach, plus every hostile's attack range."""

    def update(self, ctx: TickContext) -> None:
        me = ctx.me
        if not me.position.is_finite():
            return
        ctx.debug.draw_circle(me.position, me.vision_range, LIGHT_GRAY)
        ctx.debug.draw_circle(me.position, me.attack_range, BLUE)
        sector = ctx.constants.staff_sector
        ctx.debug.draw_arc(me.position, ctx.constants.staff_range, me.angle - sector / 2, sector, ORANGE)

        for unit in ctx.hostiles():
            if unit.kind == UnitKind.TREE or not unit.is_finite():
                continue
            ctx.debug.draw_circle(unit.position, unit.attack_range, PINK)


class LaneOverlay:
    """Waypoints of the lane we are walking."""

    def __init__(self, lane: LaneType = LaneType.MIDDLE):
        self.lane = lane

    def update(self, ctx: TickContext) -> None:
        waypoints = lane_waypoints(self.lane, ctx.constants.map_size, ctx.world.own_base)
        for index, point in enumerate(waypoints):
            ctx.debug.fill_circle(point, 6.0, LIGHT_GRAY)
            ctx.debug.show_text(point, str(index), BLACK)
