"""
Tests for the replay command line.
"""

import json

import pytest

import main


def _write_replay(path, ticks=(200, 201, 202)):
    me = {"id": 1, "faction": "ally", "x": 100, "y": 100, "radius": 35, "life": 100,
          "vision_range": 600, "attack_range": 500}
    tower = {"id": 7, "faction": "enemy", "x": 500, "y": 100, "radius": 50, "life": 200,
             "attack_range": 600, "subtype": "tower"}
    lines = [json.dumps({"tick": t, "me": me, "buildings": [tower]}) for t in ticks]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


class TestReplay:
    """Tests for main.main."""

    def test_writes_one_command_per_tick(self, tmp_path):
        replay = tmp_path / "replay.jsonl"
        out = tmp_path / "commands.jsonl"
        _write_replay(replay)

        assert main.main([str(replay), "--out", str(out)]) == 0

        rows = [json.loads(line) for line in out.read_text(encoding="utf-8").splitlines()]
        assert [row["tick"] for row in rows] == [200, 201, 202]
        # Still in the opening spin
        assert all(row["speed"] == 0.0 and row["action"] == "none" for row in rows)

    def test_config_and_telemetry(self, tmp_path):
        replay = tmp_path / "replay.jsonl"
        out = tmp_path / "commands.jsonl"
        config = tmp_path / "tactics.json"
        log = tmp_path / "telemetry.jsonl"
        _write_replay(replay)
        config.write_text(json.dumps({"idle_ticks": 0, "telemetry_sample_every_n_ticks": 1}), encoding="utf-8")

        code = main.main([str(replay), "--out", str(out), "--config", str(config), "--telemetry", str(log)])

        assert code == 0
        first = json.loads(out.read_text(encoding="utf-8").splitlines()[0])
        assert first["action"] == "magic_missile"
        events = [json.loads(line)["event"] for line in log.read_text(encoding="utf-8").splitlines()]
        assert events.count("tick") == 3
        assert events[-1] == "replay_done"

    def test_bad_replay_returns_error_code(self, tmp_path):
        replay = tmp_path / "replay.jsonl"
        replay.write_text("{broken\n", encoding="utf-8")
        assert main.main([str(replay), "--out", str(tmp_path / "out.jsonl")]) == 1

    @pytest.mark.parametrize("record", [
        {"tick": 200, "me": {"id": 1, "x": 100, "y": 100, "radius": 35, "cooldown": float("nan")}},
        {"tick": 200, "me": {"id": 1, "x": 100, "y": 100, "radius": 35}, "bonuses": [5]},
        {"tick": 200, "me": {"id": 1, "x": 100, "y": 100, "radius": 35}, "constants": {"cell_size": 0}},
        {"tick": 200, "me": {"id": 1, "x": 100, "y": 100, "radius": 35}, "home_base": ["a", "b"]},
    ])
    def test_malformed_snapshot_returns_error_code(self, tmp_path, record):
        """Bad snapshot values end the run with code 1, not a traceback."""
        replay = tmp_path / "replay.jsonl"
        replay.write_text(json.dumps(record) + "\n", encoding="utf-8")
        assert main.main([str(replay), "--out", str(tmp_path / "out.jsonl")]) == 1

    def test_invalid_config_returns_error_code(self, tmp_path):
        replay = tmp_path / "replay.jsonl"
        config = tmp_path / "tactics.json"
        _write_replay(replay)
        config.write_text(json.dumps({"lane": "river"}), encoding="utf-8")
        assert main.main([str(replay), "--config", str(config)]) == 1

    def test_missing_replay_returns_error_code(self, tmp_path):
        assert main.main([str(tmp_path / "absent.jsonl")]) == 1
