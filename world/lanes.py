"""
Lane waypoints.

Each lane is a polyline from our base to the enemy base. Waypoints are given
for a base in the bottom-left corner and mirrored through the map center when
our base sits on the other side.
"""

from enum import Enum
from typing import Dict, List, Tuple

from settings import WAYPOINT_REACHED_RADIUS_FACTOR
from engine.utils.geometry import Point


class LaneType(Enum):
    TOP = "top"
    MIDDLE = "middle"
    BOTTOM = "bottom"


def _bottom_left_waypoints(map_size: float) -> Dict[LaneType, List[Tuple[float, float]]]:
    s = map_size
    return {
        LaneType.MIDDLE: [
            (100.0, s - 100.0),
            (200.0, s - 600.0),
            (800.0, s - 800.0),
            (s - 550.0, 400.0),
        ],
        LaneType.TOP: [
            (100.0, s - 100.0),
            (100.0, s - 400.0),
            (200.0, s - 800.0),
            (200.0, s * 0.75),
            (200.0, s * 0.5),
            (200.0, s * 0.25),
            (200.0, 200.0),
            (s * 0.25, 200.0),
            (s * 0.5, 200.0),
            (s * 0.75, 200.0),
            (s - 200.0, 200.0),
        ],
        LaneType.BOTTOM: [
            (100.0, s - 100.0),
            (400.0, s - 100.0),
            (800.0, s - 200.0),
            (s * 0.25, s - 200.0),
            (s * 0.5, s - 200.0),
            (s * 0.75, s - 200.0),
            (s - 200.0, s - 200.0),
            (s - 200.0, s * 0.75),
            (s - 200.0, s * 0.5),
            (s - 200.0, s * 0.25),
            (s - 200.0, 200.0),
        ],
    }


def lane_waypoints(lane: LaneType, map_size: float, own_base: Point) -> List[Point]:
    """
    Waypoints of ``lane`` ordered from our base towards the enemy base.

    Args:
        lane: Which lane to walk
        map_size: Side of the square map
        own_base: Position of our base; decides whether the lane is mirrored
    """
    raw = _bottom_left_waypoints(map_size)[lane]
    mirrored = own_base.x > map_size / 2
    if mirrored:
        return [Point(map_size - x, map_size - y) for x, y in raw]
    return [Point(x, y) for x, y in raw]


def next_waypoint(waypoints: List[Point], position: Point, radius: float) -> Point:
    """
    Next waypoint to walk to when pushing forward.

    Skips every waypoint that is already behind us (closer to the lane's end
    than we are) and steps past the one we are standing on.
    """
    last = waypoints[-1]
    reached = radius * WAYPOINT_REACHED_RADIUS_FACTOR
    for index, waypoint in enumerate(waypoints[:-1]):
        if waypoint.distance_to(position) <= reached:
            return waypoints[index + 1]
        if last.distance_to(waypoint) < last.distance_to(position):
            return waypoint
    return last


def previous_waypoint(waypoints: List[Point], position: Point, radius: float) -> Point:
    """Waypoint to fall back to when retreating; mirror image of next_waypoint."""
    first = waypoints[0]
    reached = radius * WAYPOINT_REACHED_RADIUS_FACTOR
    for index in range(len(waypoints) - 1, 0, -1):
        waypoint = waypoints[index]
        if waypoint.distance_to(position) <= reached:
            return waypoints[index - 1]
        if first.distance_to(waypoint) < first.distance_to(position):
            return waypoint
    return first
