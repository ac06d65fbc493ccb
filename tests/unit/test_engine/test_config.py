"""
Unit tests for the tactics configuration.
"""

import json

import pytest
import engine.config as config_module
from engine.config import TacticsConfig
from engine.error_handler import ConfigError
from settings import EXPANSION_BUDGET, IDLE_TICKS
from world.lanes import LaneType


class TestTacticsConfig:
    """Tests for TacticsConfig."""

    def test_defaults(self):
        config = TacticsConfig()
        assert config.lane == LaneType.MIDDLE
        assert config.expansion_budget == EXPANSION_BUDGET
        assert config.idle_ticks == IDLE_TICKS
        assert config.avoidance is True

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "nested" / "tactics.json"
        config = TacticsConfig()
        config.from_dict({"lane": "bottom", "expansion_budget": 80, "avoidance": False})
        assert config.save(path)

        loaded = TacticsConfig()
        assert loaded.load(path)
        assert loaded.to_dict() == config.to_dict()
        assert loaded.lane == LaneType.BOTTOM

    def test_missing_file_keeps_defaults(self, tmp_path):
        config = TacticsConfig()
        assert not config.load(tmp_path / "absent.json")
        assert config.expansion_budget == EXPANSION_BUDGET

    def test_partial_dict_keeps_other_defaults(self):
        config = TacticsConfig()
        config.from_dict({"idle_ticks": 0})
        assert config.idle_ticks == 0
        assert config.lane == LaneType.MIDDLE

    @pytest.mark.parametrize("data", [
        {"lane": "river"},
        {"expansion_budget": 0},
        {"expansion_budget": "many"},
        {"idle_ticks": True},
        {"idle_ticks": -1},
        {"avoidance": "yes"},
        ["not", "an", "object"],
    ])
    def test_invalid_values(self, data):
        with pytest.raises(ConfigError):
            TacticsConfig().from_dict(data)

    def test_unparsable_file(self, tmp_path):
        path = tmp_path / "tactics.json"
        path.write_text("{lane: top", encoding="utf-8")
        with pytest.raises(ConfigError):
            TacticsConfig().load(path)

    def test_file_written_as_json(self, tmp_path):
        path = tmp_path / "tactics.json"
        TacticsConfig().save(path)
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["lane"] == "middle"


class TestGlobalConfig:
    """Tests for the module-level config accessors."""

    def test_load_config_replaces_global(self, tmp_path):
        path = tmp_path / "tactics.json"
        path.write_text(json.dumps({"idle_ticks": 7}), encoding="utf-8")

        loaded = config_module.load_config(path)

        assert loaded.idle_ticks == 7
        assert config_module.get_config() is loaded

        # A later load starts from defaults again
        assert config_module.load_config(tmp_path / "absent.json").idle_ticks == IDLE_TICKS

    def test_default_file(self, tmp_path, monkeypatch):
        path = tmp_path / "config" / "tactics.json"
        monkeypatch.setattr(config_module, "CONFIG_FILE", path)
        config_module.load_config()
        config_module.get_config().lane = LaneType.TOP

        assert config_module.save_config()
        assert config_module.load_config().lane == LaneType.TOP
