#!/usr/bin/env python3
"""
Performance profiling script for the tactics engine.

Every tick has a hard real-time deadline, so we care about the slowest ticks,
not just the average. This runs the orchestrator over a replay (or a seeded
synthetic crowd) and reports timings and memory.

Usage:
    # Profile a synthetic skirmish (default)
    python tools/profile_bot.py --method cprofile --ticks 2000

    # Profile a recorded replay
    python tools/profile_bot.py --method cprofile --replay replay.jsonl

    # Per-tick timing percentiles + process memory (psutil)
    python tools/profile_bot.py --method timing --ticks 2000

    # Inspect a saved profile
    python tools/profile_bot.py --method analyze --analyze-file profile_results.prof
"""

import argparse
import cProfile
import math
import os
import pstats
import random
import sys
import time
from pathlib import Path
from typing import Iterator, List, Optional

import psutil

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from engine.utils.geometry import Point  # noqa: E402
from engine.tactics.orchestrator import TacticalOrchestrator  # noqa: E402
from world.model import (  # noqa: E402
    Faction,
    GameConstants,
    UnitKind,
    UnitSnapshot,
    UnitSubtype,
    WorldSnapshot,
)
from world.snapshot_io import read_snapshots  # noqa: E402


def synthetic_worlds(ticks: int, seed: int = 0, crowd: int = 40) -> Iterator[WorldSnapshot]:
    """
    A wizard walking up the middle lane through a seeded crowd.

    Minions drift, trees stay put; positions are regenerated each tick around
    the agent so the obstacle map and field are never trivially empty.
    """
    rng = random.Random(seed)
    constants = GameConstants(random_seed=seed)
    position = Point(400.0, constants.map_size - 400.0)

    for tick in range(ticks):
        me = UnitSnapshot(
            id=1, kind=UnitKind.WIZARD, faction=Faction.ALLY, position=position, radius=35.0,
            life=100.0, max_life=100.0, vision_range=600.0, attack_range=500.0,
            angle=-math.pi / 4, is_me=True,
        )
        minions: List[UnitSnapshot] = []
        trees: List[UnitSnapshot] = []
        for i in range(crowd):
            offset = Point(rng.uniform(-600.0, 600.0), rng.uniform(-600.0, 600.0))
            if i % 4 == 0:
                trees.append(UnitSnapshot(
                    id=1000 + i, kind=UnitKind.TREE, faction=Faction.NEUTRAL,
                    position=position + offset, radius=rng.uniform(20.0, 50.0), life=100.0, max_life=100.0,
                ))
            else:
                minions.append(UnitSnapshot(
                    id=2000 + i, kind=UnitKind.MINION,
                    faction=Faction.ENEMY if i % 2 else Faction.ALLY,
                    position=position + offset, radius=25.0,
                    velocity=Point(rng.uniform(-3.0, 3.0), rng.uniform(-3.0, 3.0)),
                    life=rng.uniform(10.0, 100.0), max_life=100.0,
                    vision_range=400.0, attack_range=50.0 if i % 3 else 300.0,
                    subtype=UnitSubtype.MELEE if i % 3 else UnitSubtype.RANGED,
                ))
        yield WorldSnapshot(
            tick_index=tick, me=me, constants=constants,
            minions=tuple(minions), trees=tuple(trees),
        )
        position = position + Point(2.0, -2.0)


def _worlds(replay: Optional[Path], ticks: int, seed: int) -> List[WorldSnapshot]:
    if replay is not None:
        return list(read_snapshots(replay))
    return list(synthetic_worlds(ticks, seed=seed))


def profile_with_cprofile(worlds: List[WorldSnapshot], output_file: str = "profile_results.prof"):
    """
    Profile the orchestrator using cProfile (built-in Python profiler).

    Args:
        worlds: Snapshots to replay, in order
        output_file: Where to save the profile results
    """
    print(f"Starting cProfile over {len(worlds)} ticks...")
    orchestrator = TacticalOrchestrator(worlds[0].constants, idle_ticks=0)
    profiler = cProfile.Profile()

    profiler.enable()
    try:
        for world in worlds:
            orchestrator.decide(world)
    finally:
        profiler.disable()

    profiler.dump_stats(output_file)
    print(f"\nProfile data saved to {output_file}")
    print(f"\nTo view results:")
    print(f"  python tools/profile_bot.py --method analyze --analyze-file {output_file}")
    print(f"\nOr use snakeviz for visual browser:")
    print(f"  snakeviz {output_file}")


def profile_timing(worlds: List[WorldSnapshot]):
    """
    Per-tick wall time percentiles plus process memory.

    Args:
        worlds: Snapshots to replay, in order
    """
    process = psutil.Process(os.getpid())
    rss_before = process.memory_info().rss

    orchestrator = TacticalOrchestrator(worlds[0].constants, idle_ticks=0)
    durations: List[float] = []
    for world in worlds:
        start = time.perf_counter()
        orchestrator.decide(world)
        durations.append((time.perf_counter() - start) * 1000.0)

    rss_after = process.memory_info().rss
    durations.sort()

    def percentile(p: float) -> float:
        index = min(len(durations) - 1, int(round(p / 100.0 * (len(durations) - 1))))
        return durations[index]

    print(f"Ticks:   {len(durations)}")
    print(f"Mean:    {sum(durations) / len(durations):.3f} ms")
    print(f"p50:     {percentile(50):.3f} ms")
    print(f"p95:     {percentile(95):.3f} ms")
    print(f"p99:     {percentile(99):.3f} ms")
    print(f"Max:     {durations[-1]:.3f} ms")
    print(f"Memory:  {rss_after / (1024 * 1024):.1f} MB RSS ({(rss_after - rss_before) / 1024:+.0f} KB during run)")
    print(f"CPU:     {process.cpu_percent(interval=0.1):.1f}% (sampled after run)")


def analyze_profile(profile_file: str = "profile_results.prof", sort_by: str = "cumulative", lines: int = 50):
    """
    Analyze a cProfile output file.

    Args:
        profile_file: Path to .prof file
        sort_by: How to sort results (cumulative, time, calls, etc.)
        lines: Number of lines to show
    """
    stats = pstats.Stats(profile_file)
    stats.sort_stats(sort_by)
    stats.print_stats(lines)

    print(f"\nTop functions by {sort_by}:")
    stats.print_callers(lines)


def main():
    parser = argparse.ArgumentParser(description="Profile tactics engine performance")
    parser.add_argument(
        "--method",
        choices=["cprofile", "timing", "analyze"],
        default="cprofile",
        help="Profiling method to use"
    )
    parser.add_argument("--ticks", type=int, default=1000, help="Synthetic ticks to run (default: 1000)")
    parser.add_argument("--seed", type=int, default=0, help="Seed for the synthetic crowd")
    parser.add_argument("--replay", type=Path, default=None, help="Replay file to use instead of synthetic ticks")
    parser.add_argument("--output", type=str, default=None, help="Output file path")
    parser.add_argument(
        "--analyze-file",
        type=str,
        default="profile_results.prof",
        help="Profile file to analyze (for analyze method)"
    )
    parser.add_argument(
        "--sort-by",
        type=str,
        default="cumulative",
        choices=["cumulative", "time", "calls", "tottime"],
        help="How to sort results (for analyze method)"
    )
    parser.add_argument("--lines", type=int, default=50, help="Number of lines to show (for analyze method)")

    args = parser.parse_args()

    if args.method == "analyze":
        analyze_profile(args.analyze_file, args.sort_by, args.lines)
        return

    worlds = _worlds(args.replay, args.ticks, args.seed)
    if not worlds:
        print("No snapshots to profile")
        sys.exit(1)

    if args.method == "cprofile":
        profile_with_cprofile(worlds, args.output or "profile_results.prof")
    elif args.method == "timing":
        profile_timing(worlds)


if __name__ == "__main__":
    main()
