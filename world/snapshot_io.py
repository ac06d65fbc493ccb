"""
Loading world snapshots from JSON (replay files).

A replay file holds one JSON object per line:

    {"tick": 130, "me": {...}, "wizards": [...], "minions": [...],
     "buildings": [...], "trees": [...], "bonuses": [...],
     "constants": {...}, "tick_count": 20000, "home_base": [400, 3600]}

Units are flat objects: ``id``, ``faction``, ``x``, ``y``, ``radius`` and
optionally ``vx``, ``vy``, ``angle``, ``life``, ``max_life``,
``vision_range``, ``attack_range``, ``cooldown``, ``cooldowns``
(action -> ticks), ``statuses``, ``subtype``. Anything malformed raises
SnapshotError.
"""

import json
import math
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

from engine.error_handler import SnapshotError
from engine.utils.geometry import Point
from world.model import (
    ActionType,
    BonusSnapshot,
    Faction,
    GameConstants,
    StatusType,
    UnitKind,
    UnitSnapshot,
    UnitSubtype,
    WorldSnapshot,
)

_GROUPS = {
    "wizards": UnitKind.WIZARD,
    "minions": UnitKind.MINION,
    "buildings": UnitKind.BUILDING,
    "trees": UnitKind.TREE,
}


def _number(data: Dict[str, Any], key: str, default: Optional[float] = None) -> float:
    value = data.get(key, default)
    if value is None:
        raise SnapshotError(f"Missing required field '{key}'", context=key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SnapshotError(f"Field '{key}' must be a number, got {value!r}", context=key)
    return float(value)


def _integer(data: Dict[str, Any], key: str, default: Optional[int] = None) -> int:
    # Counters must be finite; positions may carry NaN through to the engine.
    value = _number(data, key, default)
    if not math.isfinite(value):
        raise SnapshotError(f"Field '{key}' must be finite, got {value!r}", context=key)
    return int(value)


def _enum(enum_type, value: Any, key: str):
    try:
        return enum_type(value)
    except (ValueError, TypeError):
        raise SnapshotError(f"Unknown {key} {value!r}", context=key)


def unit_from_dict(data: Dict[str, Any], kind: UnitKind, is_me: bool = False) -> UnitSnapshot:
    """Build one UnitSnapshot from its flat JSON form."""
    if not isinstance(data, dict):
        raise SnapshotError(f"Unit must be an object, got {type(data).__name__}")

    raw_cooldowns = data.get("cooldowns", {})
    if not isinstance(raw_cooldowns, dict):
        raise SnapshotError("cooldowns must be an object", context="cooldowns")
    cooldowns = {
        _enum(ActionType, action, "action"): _integer(raw_cooldowns, action)
        for action in raw_cooldowns
    }
    raw_statuses = data.get("statuses", [])
    if not isinstance(raw_statuses, list):
        raise SnapshotError("statuses must be a list", context="statuses")
    statuses = frozenset(_enum(StatusType, s, "status") for s in raw_statuses)

    return UnitSnapshot(
        id=_integer(data, "id"),
        kind=_enum(UnitKind, data.get("kind", kind.value), "kind"),
        faction=_enum(Faction, data.get("faction", Faction.NEUTRAL.value), "faction"),
        position=Point(_number(data, "x"), _number(data, "y")),
        radius=_number(data, "radius"),
        velocity=Point(_number(data, "vx", 0.0), _number(data, "vy", 0.0)),
        angle=_number(data, "angle", 0.0),
        life=_number(data, "life", 1.0),
        max_life=_number(data, "max_life", _number(data, "life", 1.0)),
        vision_range=_number(data, "vision_range", 0.0),
        attack_range=_number(data, "attack_range", 0.0),
        remaining_action_cooldown_ticks=_integer(data, "cooldown", 0),
        remaining_cooldown_by_action=cooldowns,
        statuses=statuses,
        subtype=_enum(UnitSubtype, data.get("subtype", UnitSubtype.NONE.value), "subtype"),
        is_me=is_me,
    )


def constants_from_dict(data: Optional[Dict[str, Any]]) -> GameConstants:
    """GameConstants with the given overrides; unknown keys are rejected."""
    if not data:
        return GameConstants()
    if not isinstance(data, dict):
        raise SnapshotError("constants must be an object")
    known = {f.name for f in fields(GameConstants)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise SnapshotError(f"Unknown constants: {', '.join(unknown)}", context="constants")
    for key, value in data.items():
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            raise SnapshotError(f"Constant '{key}' must be a finite number, got {value!r}", context="constants")
    for key in ("map_size", "cell_size"):
        if key in data and data[key] <= 0:
            raise SnapshotError(f"Constant '{key}' must be > 0, got {data[key]!r}", context="constants")
    return GameConstants(**data)


def world_from_dict(data: Dict[str, Any], constants: Optional[GameConstants] = None) -> WorldSnapshot:
    """
    Build a WorldSnapshot from one replay record.

    Args:
        data: Parsed JSON object
        constants: Constants to use when the record carries none

    Raises:
        SnapshotError: On missing or malformed fields
    """
    if not isinstance(data, dict):
        raise SnapshotError(f"Snapshot must be an object, got {type(data).__name__}")
    if "me" not in data:
        raise SnapshotError("Snapshot has no 'me' unit", context="me")

    if "constants" in data:
        constants = constants_from_dict(data["constants"])
    elif constants is None:
        constants = GameConstants()

    groups = {}
    for key, kind in _GROUPS.items():
        raw = data.get(key, [])
        if not isinstance(raw, list):
            raise SnapshotError(f"'{key}' must be a list", context=key)
        groups[key] = tuple(unit_from_dict(item, kind) for item in raw)

    raw_bonuses = data.get("bonuses", [])
    if not isinstance(raw_bonuses, list) or not all(isinstance(b, dict) for b in raw_bonuses):
        raise SnapshotError("'bonuses' must be a list of objects", context="bonuses")
    bonuses = tuple(
        BonusSnapshot(
            id=_integer(b, "id"),
            position=Point(_number(b, "x"), _number(b, "y")),
            radius=_number(b, "radius", 20.0),
        )
        for b in raw_bonuses
    )

    home_base = data.get("home_base")
    if home_base is not None:
        if not isinstance(home_base, (list, tuple)) or len(home_base) != 2:
            raise SnapshotError("home_base must be [x, y]", context="home_base")
        xy = dict(zip(("x", "y"), home_base))
        home_base = Point(_number(xy, "x"), _number(xy, "y"))

    return WorldSnapshot(
        tick_index=_integer(data, "tick"),
        me=unit_from_dict(data["me"], UnitKind.WIZARD, is_me=True),
        constants=constants,
        tick_count=_integer(data, "tick_count", 20000),
        home_base=home_base,
        bonuses=bonuses,
        **groups,
    )


def read_snapshots(path: Path, constants: Optional[GameConstants] = None) -> Iterator[WorldSnapshot]:
    """
    Yield every snapshot of a JSON-lines replay file. Blank lines are skipped.

    Raises:
        SnapshotError: With the offending line number in ``context``
    """
    with path.open("r", encoding="utf-8") as f:
        for line_number, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                data = json.loads(line)
                world = world_from_dict(data, constants)
            except json.JSONDecodeError as e:
                raise SnapshotError(f"{path}:{line_number}: invalid JSON ({e.msg})", context=f"line {line_number}") from e
            except SnapshotError as e:
                raise SnapshotError(f"{path}:{line_number}: {e}", context=f"line {line_number}") from e
            if constants is None:
                constants = world.constants
            yield world
