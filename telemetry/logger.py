"""
JSON-lines telemetry for tactics decisions.

Every record is one line: wall-clock stamps, the event name and whatever
fields the caller passes. Per-tick records go through ``log_tick``, which
counts calls and only writes every ``sample_every_n_ticks``-th one.
"""
from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from settings import TELEMETRY_SAMPLE_EVERY_N_TICKS

TICK_EVENT = "tick"


def _now_iso() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%S", time.localtime())


@dataclass
class TelemetryLogger:
    """Append-only JSON-lines log of tick decisions. Off until ``init`` is called."""

    path: Optional[Path] = None
    enabled: bool = True
    flush_each_write: bool = False
    sample_every_n_ticks: int = TELEMETRY_SAMPLE_EVERY_N_TICKS
    records_written: int = 0
    _tick_counter: int = 0
    _started_at: float = field(default_factory=time.time)

    @property
    def active(self) -> bool:
        return self.enabled and self.path is not None

    def init(self, path: Path) -> None:
        self.path = path
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Existing logs are appended to
        self.path.touch(exist_ok=True)
        self.log("telemetry_init", file=str(self.path), sample_every_n_ticks=self.sample_every_n_ticks)

    def _row(self, event: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        now = time.time()
        return {
            "t": now,
            "ts": _now_iso(),
            "uptime": round(now - self._started_at, 3),
            "event": event,
            **fields,
        }

    def log(self, event: str, **fields: Any) -> None:
        if not self.active:
            return
        try:
            line = json.dumps(self._row(event, fields), ensure_ascii=False, default=str)
            with self.path.open("a", encoding="utf-8") as f:
                f.write(line + "\n")
                if self.flush_each_write:
                    f.flush()
        except (OSError, TypeError, ValueError):
            # Telemetry must never cost us a tick.
            return
        self.records_written += 1

    def tick(self) -> int:
        self._tick_counter += 1
        return self._tick_counter

    def should_log_tick(self) -> bool:
        return self.sample_every_n_ticks > 0 and self._tick_counter % self.sample_every_n_ticks == 0

    def log_tick(self, tick_index: int, **fields: Any) -> bool:
        """
        Count one decision and write its record if this tick is sampled.

        Returns True when a record was written.
        """
        self.tick()
        if not self.active or not self.should_log_tick():
            return False
        before = self.records_written
        self.log(TICK_EVENT, tick=tick_index, **fields)
        return self.records_written > before


# global singleton (easy import everywhere)
telemetry = TelemetryLogger()
