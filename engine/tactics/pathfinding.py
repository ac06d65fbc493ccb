"""
Tactical pathfinding module.

Bounded-effort A* over the obstacle grid. Supports 8-directional movement.

- Edge cost is the squared cell distance (1 orthogonal, 2 diagonal) so the hot
  loop never takes a square root.
- The heuristic is the squared distance to the goal minus the obstacle map's
  bias, so destructible cells are preferred and cells swept by moving units are
  avoided without being walled off.
- Expansions are capped. If the goal is not reached in time the path leads to
  the closest cell we did explore: forward progress beats failing outright.
"""

import heapq
import itertools
import math
from dataclasses import dataclass
from typing import Dict, List, Optional

from settings import EXPANSION_BUDGET
from engine.utils.geometry import Point
from world.grid import Cell
from world.obstacle_map import ObstacleMap


@dataclass(frozen=True)
class PathRequest:
    """Where we are and where we want to go, in world coordinates."""
    start: Optional[Point]
    goal: Optional[Point]


class Pathfinder:
    """
    A* with a hard expansion budget.

    After each search ``last_expansions`` and ``last_reached_goal`` describe
    how it went (handy for debugging and telemetry).
    """

    def __init__(self, expansion_budget: int = EXPANSION_BUDGET):
        if expansion_budget < 1:
            raise ValueError("expansion_budget must be >= 1")
        self.expansion_budget = expansion_budget
        self.last_expansions = 0
        self.last_reached_goal = False

    def find_path(self, request: PathRequest, obstacles: ObstacleMap) -> List[Cell]:
        """
        Find a path for a request in world coordinates.

        Returns:
            Cells from the cell containing ``request.start`` to the goal cell (or the
            closest explored cell); empty if start or goal is undefined
        """
        start = obstacles.grid.cell_of(request.start)
        goal = obstacles.grid.cell_of(request.goal)
        if start is None or goal is None:
            self.last_expansions = 0
            self.last_reached_goal = False
            return []
        return self.find_cell_path(start, goal, obstacles)

    def find_cell_path(self, start: Cell, goal: Cell, obstacles: ObstacleMap) -> List[Cell]:
        """A* from ``start`` to ``goal``; see the module docstring for the rules."""
        self.last_expansions = 0
        self.last_reached_goal = False

        if start == goal:
            self.last_reached_goal = True
            return [start]

        grid = obstacles.grid
        sequence = itertools.count()  # stable tie-break: first pushed, first popped

        open_heap: List[tuple] = []
        g_score: Dict[Cell, int] = {start: 0}
        came_from: Dict[Cell, Optional[Cell]] = {start: None}
        closed: set = set()

        heapq.heappush(open_heap, (start.distance_squared_to(goal) - obstacles.bias_at(start), next(sequence), start))

        best_cell = start
        best_distance = start.distance_squared_to(goal)

        while open_heap and self.last_expansions < self.expansion_budget:
            _, _, current = heapq.heappop(open_heap)
            if current in closed:
                continue
            closed.add(current)
            self.last_expansions += 1

            distance = current.distance_squared_to(goal)
            if distance < best_distance:
                best_cell = current
                best_distance = distance

            if current == goal:
                self.last_reached_goal = True
                break

            current_g = g_score[current]
            for neighbor in grid.neighbors(current):
                if neighbor in closed or not obstacles.is_passable(neighbor):
                    continue

                tentative_g = current_g + current.distance_squared_to(neighbor)
                if tentative_g < g_score.get(neighbor, math.inf):
                    g_score[neighbor] = tentative_g
                    came_from[neighbor] = current
                    priority = tentative_g + neighbor.distance_squared_to(goal) - obstacles.bias_at(neighbor)
                    heapq.heappush(open_heap, (priority, next(sequence), neighbor))

        end = goal if self.last_reached_goal else best_cell
        path: List[Cell] = []
        node: Optional[Cell] = end
        while node is not None:
            path.append(node)
            node = came_from.get(node)
        path.reverse()
        return path


def shortcut(path: List[Cell], start: Point, obstacles: ObstacleMap) -> Optional[Cell]:
    """
    Farthest path node we can walk to in a straight line from ``start``.

    Falls back to the next node of the path when nothing further is in clear
    sight, and to None for an empty path.
    """
    if not path:
        return None
    if len(path) == 1:
        return path[0]
    for index in range(len(path) - 1, 0, -1):
        if obstacles.segment_clear(start, path[index].center()):
            return path[index]
    return path[1]
