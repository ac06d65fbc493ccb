"""
Replay runner: feed recorded world snapshots through the tactics engine.

Usage:
    python main.py replay.jsonl
    python main.py replay.jsonl --out commands.jsonl --frames frames/
    python main.py replay.jsonl --config config/tactics.json --telemetry logs/telemetry.jsonl
"""
import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

import pygame

from engine.config import load_config
from engine.error_handler import TacticsError, configure_file_logging, log_error, logger
from engine.utils.debug_sink import DebugSink, PygameDebugSink
from engine.tactics.orchestrator import TacticalOrchestrator
from telemetry.logger import telemetry
from world.snapshot_io import read_snapshots

FRAME_SIZE = 800


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the arena tactics engine over a snapshot replay")
    parser.add_argument("replay", type=Path, help="JSON-lines file with one world snapshot per line")
    parser.add_argument("--out", type=Path, default=None, help="Write commands here (default: stdout)")
    parser.add_argument("--config", type=Path, default=None, help="Tactics config JSON (default: config/tactics.json when present)")
    parser.add_argument("--frames", type=Path, default=None, help="Render each tick's debug overlay as PNG into this directory")
    parser.add_argument("--telemetry", type=Path, default=None, help="Append sampled tick records to this JSON-lines file")
    parser.add_argument("--log-dir", type=Path, default=None, help="Also write a dated debug log into this directory")
    return parser.parse_args(argv)


def run(args: argparse.Namespace) -> int:
    if args.log_dir is not None:
        log_file = configure_file_logging(args.log_dir)
        logger.info(f"Logging to {log_file}")

    config = load_config(args.config)

    if args.telemetry is not None:
        telemetry.sample_every_n_ticks = config.telemetry_sample_every_n_ticks
        telemetry.init(args.telemetry)

    debug: Optional[DebugSink] = None
    if args.frames is not None:
        pygame.init()
        surface = pygame.Surface((FRAME_SIZE, FRAME_SIZE))
        debug = PygameDebugSink(surface, frame_dir=args.frames)

    out = args.out.open("w", encoding="utf-8") if args.out is not None else sys.stdout
    orchestrator: Optional[TacticalOrchestrator] = None
    ticks = 0
    try:
        for world in read_snapshots(args.replay):
            if orchestrator is None:
                orchestrator = TacticalOrchestrator.from_config(world.constants, config, debug=debug)
            command = orchestrator.decide(world)
            out.write(json.dumps({"tick": world.tick_index, **command.to_dict()}) + "\n")
            ticks += 1
    finally:
        if out is not sys.stdout:
            out.close()
        if debug is not None:
            pygame.quit()

    logger.info(f"Replayed {ticks} ticks from {args.replay}")
    telemetry.log("replay_done", ticks=ticks, replay=str(args.replay))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    try:
        return run(args)
    except (TacticsError, OSError) as e:
        log_error(e, "replay")
        return 1


if __name__ == "__main__":
    sys.exit(main())
