"""
Per-tick context shared by every tactics component.

Instead of components caching "current self / world / constants" between
calls, the orchestrator builds one TickContext per tick and passes it in.
"""

from dataclasses import dataclass, field
from typing import List, Protocol

from engine.utils.debug_sink import DebugSink, NullDebugSink
from world.grid import GridIndex
from world.model import Faction, GameConstants, UnitSnapshot, WorldSnapshot


@dataclass(frozen=True)
class TickContext:
    """Read-only view of one decision cycle."""

    world: WorldSnapshot
    grid: GridIndex
    debug: DebugSink = field(default_factory=NullDebugSink)

    @property
    def me(self) -> UnitSnapshot:
        return self.world.me

    @property
    def constants(self) -> GameConstants:
        return self.world.constants

    @property
    def tick_index(self) -> int:
        return self.world.tick_index

    def hostiles(self) -> List[UnitSnapshot]:
        return [u for u in self.world.other_units() if u.faction == Faction.ENEMY and u.is_alive]

    def allies(self) -> List[UnitSnapshot]:
        return [u for u in self.world.other_units() if u.faction == Faction.ALLY and u.is_alive]


class TickComponent(Protocol):
    """A part of the agent that observes every tick before the decision is made."""

    def update(self, ctx: TickContext) -> None:
        """Observe this tick."""
        ...
