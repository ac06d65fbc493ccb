"""
Pytest configuration and shared fixtures.

This file is automatically discovered by pytest and provides fixtures
available to all test files.
"""

import os

# Headless pygame: must be set before pygame is imported anywhere.
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")

import pytest  # noqa: E402
import pygame  # noqa: E402
from typing import Generator  # noqa: E402

from engine.utils.geometry import Point  # noqa: E402
from engine.tactics.context import TickContext  # noqa: E402
from telemetry.logger import telemetry  # noqa: E402
from world.grid import GridIndex  # noqa: E402
from world.model import (  # noqa: E402
    Faction,
    GameConstants,
    UnitKind,
    UnitSnapshot,
    UnitSubtype,
    WorldSnapshot,
)


@pytest.fixture(scope="session", autouse=True)
def pygame_init() -> Generator[None, None, None]:
    """
    Initialize pygame for the test session.
    This runs once before all tests and cleans up after.
    """
    pygame.init()
    yield
    pygame.quit()


@pytest.fixture(autouse=True)
def telemetry_off() -> Generator[None, None, None]:
    """Keep the global telemetry logger from writing files during tests."""
    previous = telemetry.path
    telemetry.path = None
    yield
    telemetry.path = previous


def make_me(x: float = 100.0, y: float = 100.0, **overrides) -> UnitSnapshot:
    """The controlled wizard with sensible defaults."""
    values = dict(
        id=1,
        kind=UnitKind.WIZARD,
        faction=Faction.ALLY,
        position=Point(x, y),
        radius=35.0,
        life=100.0,
        max_life=100.0,
        vision_range=600.0,
        attack_range=500.0,
        is_me=True,
    )
    values.update(overrides)
    return UnitSnapshot(**values)


def make_unit(
    kind: UnitKind,
    x: float,
    y: float,
    faction: Faction = Faction.ENEMY,
    unit_id: int = 100,
    **overrides,
) -> UnitSnapshot:
    """Any other unit; radius and ranges default by kind."""
    defaults = {
        UnitKind.WIZARD: dict(radius=35.0, vision_range=600.0, attack_range=500.0),
        UnitKind.MINION: dict(radius=25.0, vision_range=400.0, attack_range=50.0, subtype=UnitSubtype.MELEE),
        UnitKind.BUILDING: dict(radius=50.0, vision_range=600.0, attack_range=600.0, subtype=UnitSubtype.TOWER),
        UnitKind.TREE: dict(radius=30.0),
    }[kind]
    values = dict(
        id=unit_id,
        kind=kind,
        faction=Faction.NEUTRAL if kind == UnitKind.TREE else faction,
        position=Point(x, y),
        life=100.0,
        max_life=100.0,
        **defaults,
    )
    values.update(overrides)
    return UnitSnapshot(**values)


def make_world(me: UnitSnapshot = None, tick_index: int = 500, **groups) -> WorldSnapshot:
    """World snapshot around ``me`` (default: make_me())."""
    return WorldSnapshot(
        tick_index=tick_index,
        me=me if me is not None else make_me(),
        constants=groups.pop("constants", GameConstants()),
        **{key: tuple(value) for key, value in groups.items()},
    )


def make_context(world: WorldSnapshot, **kwargs) -> TickContext:
    grid = GridIndex(world.constants.cell_size, world.constants.map_size)
    return TickContext(world=world, grid=grid, **kwargs)


@pytest.fixture
def constants() -> GameConstants:
    return GameConstants()


@pytest.fixture
def grid(constants) -> GridIndex:
    return GridIndex(constants.cell_size, constants.map_size)


@pytest.fixture
def me() -> UnitSnapshot:
    return make_me()


@pytest.fixture
def sample_surface() -> pygame.Surface:
    """
    Create a sample pygame surface for tests that need a screen.
    """
    return pygame.Surface((400, 400))
