"""
Replay Checker
==============

Re-runs a recorded replay and reports whether it reproduces the recorded
sound cues and final score. Can also record a fresh auto-player session.

Usage:
    python -m tools.check_replay REPLAY.json [--config PATH]
    python -m tools.check_replay --record --seed 7 --frames 5000 [--out DIR]
"""

from __future__ import annotations

import argparse
import sys
from typing import Optional

from drip_catch.drip_core.config_loader import load_config
from drip_catch.drip_core.phases import GamePhase
from drip_catch.drip_core.replay_recorder import (
    generate_replay_filename,
    load_replay,
    record_session,
    verify_replay,
)
from tools.benchmark_speed import auto_player


def _session_agent(snapshot):
    """Auto-player that restarts whenever the round is over."""
    if snapshot.phase in (GamePhase.ATTRACT, GamePhase.GAME_OVER):
        return "start"
    return auto_player(snapshot)


def check(path: str, config_path: Optional[str] = None) -> int:
    """Verify one replay file. Returns a process exit code."""
    config = load_config(config_path)
    try:
        data = load_replay(path)
        ok = verify_replay(data, config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        return 2

    print(f"Replay:  {path}")
    print(f"  Agent:  {data.get('agent')}")
    print(f"  Seed:   {data.get('seed')}")
    print(f"  Events: {data.get('total_events', len(data['events']))}")
    print(f"  Score:  {data.get('final_score')} (high {data.get('high_score')})")
    print(f"  Result: {'REPRODUCED' if ok else 'MISMATCH'}")
    return 0 if ok else 1


def record(seed: int, frames: int, out_dir: Optional[str] = None) -> int:
    path = generate_replay_filename("auto", seed=seed, directory=out_dir)
    data = record_session(_session_agent, seed=seed, frames=frames, save_path=str(path), agent_name="auto")
    print(f"Recorded {data['total_events']} events to {path} (score {data['final_score']})")
    return 0


def main():
    parser = argparse.ArgumentParser(description="Verify or record Drip Catch replays")
    parser.add_argument("replay", type=str, nargs="?", help="Path to replay JSON file")
    parser.add_argument("--config", type=str, default=None, help="Config YAML the replay was recorded with")
    parser.add_argument("--record", action="store_true", help="Record an auto-player session instead")
    parser.add_argument("--seed", type=int, default=0, help="Seed for --record")
    parser.add_argument("--frames", type=int, default=5000, help="Frames for --record")
    parser.add_argument("--out", type=str, default=None, help="Output directory for --record")

    args = parser.parse_args()

    if args.record:
        return record(args.seed, args.frames, args.out)
    if not args.replay:
        parser.error("a replay path is required unless --record is given")
    return check(args.replay, args.config)


if __name__ == "__main__":
    sys.exit(main())
