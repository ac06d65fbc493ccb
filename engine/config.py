"""
Tactics configuration: runtime overrides for the tunables in settings.py.
"""

import json
from pathlib import Path
from typing import Optional, Dict, Any

from settings import EXPANSION_BUDGET, IDLE_TICKS, TELEMETRY_SAMPLE_EVERY_N_TICKS
from engine.error_handler import ConfigError, log_error
from world.lanes import LaneType

# Config file location
CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"
CONFIG_FILE = CONFIG_DIR / "tactics.json"


class TacticsConfig:
    """Per-run tactics settings."""

    def __init__(self) -> None:
        self.lane: LaneType = LaneType.MIDDLE
        self.expansion_budget: int = EXPANSION_BUDGET
        self.idle_ticks: int = IDLE_TICKS
        self.avoidance: bool = True  # rotate around units the straight line would hit
        self.telemetry_sample_every_n_ticks: int = TELEMETRY_SAMPLE_EVERY_N_TICKS

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary for saving."""
        return {
            "lane": self.lane.value,
            "expansion_budget": self.expansion_budget,
            "idle_ticks": self.idle_ticks,
            "avoidance": self.avoidance,
            "telemetry_sample_every_n_ticks": self.telemetry_sample_every_n_ticks,
        }

    def from_dict(self, data: Dict[str, Any]) -> None:
        """
        Load config from dictionary. Missing keys keep their defaults.

        Raises:
            ConfigError: If a value has the wrong type or is out of range
        """
        if not isinstance(data, dict):
            raise ConfigError(f"Config must be a JSON object, got {type(data).__name__}")

        lane = data.get("lane", self.lane.value)
        try:
            self.lane = LaneType(lane)
        except ValueError:
            raise ConfigError(f"Unknown lane {lane!r}", context="lane")

        self.expansion_budget = self._positive_int(data, "expansion_budget", self.expansion_budget, minimum=1)
        self.idle_ticks = self._positive_int(data, "idle_ticks", self.idle_ticks, minimum=0)
        self.telemetry_sample_every_n_ticks = self._positive_int(
            data, "telemetry_sample_every_n_ticks", self.telemetry_sample_every_n_ticks, minimum=0
        )

        avoidance = data.get("avoidance", self.avoidance)
        if not isinstance(avoidance, bool):
            raise ConfigError(f"avoidance must be true or false, got {avoidance!r}", context="avoidance")
        self.avoidance = avoidance

    @staticmethod
    def _positive_int(data: Dict[str, Any], key: str, default: int, minimum: int) -> int:
        value = data.get(key, default)
        # bool is an int subclass; reject it explicitly
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"{key} must be an integer, got {value!r}", context=key)
        if value < minimum:
            raise ConfigError(f"{key} must be >= {minimum}, got {value}", context=key)
        return value

    def save(self, path: Optional[Path] = None) -> bool:
        """Save config to file."""
        target = path or CONFIG_FILE
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with target.open("w", encoding="utf-8") as f:
                json.dump(self.to_dict(), f, indent=2)
            return True
        except OSError as e:
            log_error(e, "save_config")
            return False

    def load(self, path: Optional[Path] = None) -> bool:
        """
        Load config from file.

        Returns:
            False if the file does not exist (defaults stay in place)

        Raises:
            ConfigError: If the file exists but cannot be parsed or validated
        """
        source = path or CONFIG_FILE
        if not source.exists():
            return False

        try:
            with source.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Cannot read config {source}: {e}", context=str(source)) from e
        self.from_dict(data)
        return True


# Global config instance
_config = TacticsConfig()


def get_config() -> TacticsConfig:
    """Get the global config instance."""
    return _config


def load_config(path: Optional[Path] = None) -> TacticsConfig:
    """
    Replace the global config with a fresh one read from ``path``.

    Falls back to CONFIG_FILE; a missing file leaves the defaults.
    """
    global _config
    config = TacticsConfig()
    config.load(path)
    _config = config
    return _config


def save_config(path: Optional[Path] = None) -> bool:
    """Save the global config."""
    return _config.save(path)
