"""
Arena tactics engine.

One decision per tick, built from small components that each do one job.
Organized into separate modules so each piece can be tested on its own.
"""

from .context import TickComponent, TickContext
from .goals import GoalKind, GoalPolicy, MacroGoal
from .orchestrator import TacticalOrchestrator, TickDecision
from .pathfinding import PathRequest, Pathfinder, shortcut
from .stall import MotionState, MotionStatus, StallRecovery
from .steering import MoveCommand, SpeedEnvelope, SteeringController
from .targeting import TargetSelector, lowest_life

__all__ = [
    # Context
    "TickComponent",
    "TickContext",
    # Goals
    "GoalKind",
    "GoalPolicy",
    "MacroGoal",
    # Orchestration
    "TacticalOrchestrator",
    "TickDecision",
    # Pathfinding
    "PathRequest",
    "Pathfinder",
    "shortcut",
    # Stall recovery
    "MotionState",
    "MotionStatus",
    "StallRecovery",
    # Steering
    "MoveCommand",
    "SpeedEnvelope",
    "SteeringController",
    # Targeting
    "TargetSelector",
    "lowest_life",
]
