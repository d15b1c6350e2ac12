"""
Performance Benchmark
=====================

Measures headless tick throughput and how long a scripted auto-player
survives, for performance tuning and difficulty balancing.

Usage:
    python -m tools.benchmark_speed [--rounds N] [--ticks T] [--frame-ms MS]
"""

from __future__ import annotations

import argparse
import sys
import time
from typing import Optional

import numpy as np

from drip_catch.drip_core.config_loader import load_config
from drip_catch.drip_core.game import LeakGame
from drip_catch.drip_core.phases import GamePhase
from drip_catch.drip_core.state_snapshot import GameSnapshot


def auto_player(snapshot: GameSnapshot) -> Optional[str]:
    """
    Chase the lowest falling drop; carry a full bucket to the deposit.

    Returns:
        "left", "right" or None.
    """
    if snapshot.bucket_filled:
        target = 0
    elif snapshot.drops:
        target = max(snapshot.drops, key=lambda d: d[1])[0]
    else:
        return None
    if target < snapshot.player_position:
        return "left"
    if target > snapshot.player_position:
        return "right"
    return None


def benchmark_rounds(
    num_rounds: int = 20,
    max_ticks: int = 50000,
    frame_ms: float = 16.0,
    seed: int = 42
) -> dict:
    """
    Play full rounds with the auto-player and time them.

    Args:
        num_rounds: Number of rounds to play.
        max_ticks: Tick limit per round.
        frame_ms: Simulated milliseconds between ticks.
        seed: Random seed for the first round (incremented per round).

    Returns:
        Dict with timing and score statistics.
    """
    config = load_config()
    scores = []
    ticks_per_round = []
    total_ticks = 0

    start = time.perf_counter()

    for round_idx in range(num_rounds):
        game = LeakGame(config=config, seed=seed + round_idx)
        game.request_start()

        ticks = 0
        while ticks < max_ticks:
            action = auto_player(game.snapshot())
            if action == "left":
                game.move_left()
            elif action == "right":
                game.move_right()
            game.tick(ticks * frame_ms)
            ticks += 1
            if game.phase == GamePhase.GAME_OVER:
                break

        scores.append(game.score)
        ticks_per_round.append(ticks)
        total_ticks += ticks

    elapsed = time.perf_counter() - start

    scores_arr = np.array(scores)
    ticks_arr = np.array(ticks_per_round)
    return {
        "num_rounds": num_rounds,
        "total_ticks": total_ticks,
        "elapsed_seconds": elapsed,
        "ticks_per_second": total_ticks / elapsed if elapsed > 0 else float("inf"),
        "ms_per_tick": (elapsed * 1000) / max(1, total_ticks),
        "score_mean": float(scores_arr.mean()),
        "score_std": float(scores_arr.std()),
        "score_min": int(scores_arr.min()),
        "score_max": int(scores_arr.max()),
        "round_seconds_mean": float(ticks_arr.mean() * frame_ms / 1000),
    }


def benchmark_snapshots(num_snapshots: int = 10000, seed: int = 42) -> dict:
    """Time snapshot construction on a game in progress."""
    game = LeakGame(seed=seed)
    game.request_start()
    for frame in range(400):
        game.tick(frame * 16.0)

    start = time.perf_counter()
    for _ in range(num_snapshots):
        game.snapshot()
    elapsed = time.perf_counter() - start

    return {
        "num_snapshots": num_snapshots,
        "elapsed_seconds": elapsed,
        "us_per_snapshot": (elapsed * 1e6) / num_snapshots,
    }


def main():
    parser = argparse.ArgumentParser(description="Benchmark Drip Catch simulation speed")
    parser.add_argument("--rounds", type=int, default=20, help="Rounds to play")
    parser.add_argument("--ticks", type=int, default=50000, help="Tick limit per round")
    parser.add_argument("--frame-ms", type=float, default=16.0, help="Milliseconds per tick")
    parser.add_argument("--seed", type=int, default=42, help="Base random seed")
    parser.add_argument("--quick", action="store_true", help="Quick benchmark (fewer rounds)")

    args = parser.parse_args()

    rounds = 3 if args.quick else args.rounds

    print("=" * 60)
    print("DRIP CATCH PERFORMANCE BENCHMARK")
    print("=" * 60)
    print()

    print(f"Playing {rounds} rounds with the auto-player...")
    result = benchmark_rounds(
        num_rounds=rounds,
        max_ticks=args.ticks,
        frame_ms=args.frame_ms,
        seed=args.seed
    )
    print(f"  Ticks/sec:   {result['ticks_per_second']:.1f}")
    print(f"  ms/tick:     {result['ms_per_tick']:.4f}")
    print(f"  Score:       {result['score_mean']:.1f} +/- {result['score_std']:.1f} "
          f"(min {result['score_min']}, max {result['score_max']})")
    print(f"  Round length: {result['round_seconds_mean']:.1f}s simulated")
    print()

    print("Timing snapshots...")
    snap = benchmark_snapshots(seed=args.seed)
    print(f"  us/snapshot: {snap['us_per_snapshot']:.2f}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
