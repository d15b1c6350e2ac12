"""
Replay Recorder
===============

A simple wrapper to record LeakGame sessions for exact replay.

The simulation is a pure function of its seed, its config and the sequence
of inputs, so a replay only stores those plus the cues observed, which are
used to verify the reproduction.

Usage:
    from drip_catch.drip_core import LeakGame, ReplayRecorder

    recorder = ReplayRecorder(LeakGame(seed=42), seed=42)
    recorder.request_start()
    for frame in range(2000):
        recorder.tick(frame * 16.0)

    recorder.save("my_replay.json")

The saved replay can be checked with:
    python -m tools.check_replay my_replay.json
"""

from __future__ import annotations

import hashlib
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from drip_catch.drip_core.config_loader import GameConfig, get_config
from drip_catch.drip_core.effects import TickEffects
from drip_catch.drip_core.game import LeakGame
from drip_catch.drip_core.state_snapshot import GameSnapshot

logger = logging.getLogger(__name__)

REPLAY_VERSION = 1

# Inputs an agent may return from record_session's callback
INPUT_OPS = ("start", "left", "right")


def generate_replay_filename(
    agent_name: str = "replay",
    seed: Optional[int] = None,
    directory: Optional[Union[str, Path]] = None
) -> Path:
    """
    Generate a timestamped replay filename.

    Format: {agent_name}_{YYYYMMDD_HHMMSS}_s{seed}.json

    Args:
        agent_name: Name of the player or agent.
        seed: Random seed (optional, included if provided).
        directory: Directory for the file. Defaults to current directory.

    Returns:
        Path object for the replay file.
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

    if seed is not None:
        filename = f"{agent_name}_{timestamp}_s{seed}.json"
    else:
        filename = f"{agent_name}_{timestamp}.json"

    if directory:
        return Path(directory) / filename
    return Path(filename)


def compute_config_hash(config: Optional[GameConfig] = None) -> str:
    """Short hash of every gameplay parameter, for replay validation."""
    if config is None:
        config = get_config()
    payload = json.dumps(config.to_dict(), sort_keys=True)
    return hashlib.md5(payload.encode()).hexdigest()[:8]


class ReplayRecorder:
    """
    Wrapper that records game inputs for replay.

    Forwards ``tick``, ``request_start``, ``move_left`` and ``move_right``
    to the wrapped game and logs each call with the cues it produced.

    Attributes:
        game: The wrapped LeakGame.
        recording: Whether currently recording.
    """

    def __init__(
        self,
        game: LeakGame,
        seed: Optional[int] = None,
        agent_name: str = "human"
    ):
        """
        Initialize the replay recorder.

        Args:
            game: Game to wrap. Must have been created with ``seed``.
            seed: Seed the game was created with (stored for replay).
            agent_name: Name stored in the replay metadata.
        """
        self.game = game
        self.agent_name = agent_name
        self._seed = seed
        self._recording = True
        self._events: List[Dict[str, Any]] = []
        self._config_hash = compute_config_hash(game.config)

    @property
    def recording(self) -> bool:
        """Whether currently recording."""
        return self._recording

    @property
    def events(self) -> List[Dict[str, Any]]:
        return [dict(e) for e in self._events]

    def stop(self) -> None:
        self._recording = False

    def _record(self, op: str, effects: TickEffects, now: Optional[float] = None) -> TickEffects:
        if self._recording:
            event: Dict[str, Any] = {"op": op, "cues": effects.cue_names}
            if now is not None:
                event["now"] = now
            self._events.append(event)
        return effects

    def tick(self, now: float) -> TickEffects:
        return self._record("tick", self.game.tick(now), now)

    def request_start(self) -> TickEffects:
        return self._record("start", self.game.request_start())

    def move_left(self) -> TickEffects:
        return self._record("left", self.game.move_left())

    def move_right(self) -> TickEffects:
        return self._record("right", self.game.move_right())

    def snapshot(self) -> GameSnapshot:
        return self.game.snapshot()

    def get_replay_data(self) -> Dict[str, Any]:
        """
        Get the current replay data as a dictionary.

        Returns:
            Dictionary containing all replay data.
        """
        return {
            "version": REPLAY_VERSION,
            "seed": self._seed,
            "agent": self.agent_name,
            "config_hash": self._config_hash,
            "events": self.events,
            "final_score": self.game.score,
            "high_score": self.game.high_score,
            "final_phase": self.game.phase.value,
            "total_events": len(self._events),
        }

    def save(
        self,
        path: Optional[Union[str, Path]] = None,
        overwrite: bool = True,
        directory: Optional[Union[str, Path]] = None
    ) -> Path:
        """
        Save the replay to a JSON file.

        Args:
            path: Path to save the replay. If None, auto-generates a timestamped name.
            overwrite: If True, overwrite existing file.
            directory: Directory for auto-generated filename (only used if path is None).

        Returns:
            Path where the replay was saved.
        """
        if path is None:
            path = generate_replay_filename(
                agent_name=self.agent_name,
                seed=self._seed,
                directory=directory
            )
        else:
            path = Path(path)

        if path.exists() and not overwrite:
            raise FileExistsError(f"Replay file already exists: {path}")

        path.parent.mkdir(parents=True, exist_ok=True)

        replay_data = self.get_replay_data()
        with open(path, "w") as f:
            json.dump(replay_data, f, indent=2)

        logger.info(
            "Replay saved: %s (seed=%s, events=%d, score=%d)",
            path, self._seed, len(self._events), replay_data["final_score"]
        )
        return path


def load_replay(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load replay data from a JSON file.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file is not a replay.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Replay file not found: {path}")
    with open(path, "r") as f:
        data = json.load(f)
    if not isinstance(data, dict) or "events" not in data:
        raise ValueError(f"Not a replay file: {path}")
    return data


def replay_events(
    events: List[Dict[str, Any]],
    config: Optional[GameConfig] = None,
    seed: Optional[int] = None
) -> ReplayRecorder:
    """
    Re-run recorded inputs on a fresh game.

    Args:
        events: Events from ``get_replay_data()["events"]``.
        config: Config the replay was recorded with.
        seed: Seed the replay was recorded with.

    Returns:
        Recorder wrapping the replayed game, holding the re-observed cues.

    Raises:
        ValueError: On an unknown event op.
    """
    recorder = ReplayRecorder(LeakGame(config=config, seed=seed), seed=seed)
    for event in events:
        op = event.get("op")
        if op == "tick":
            recorder.tick(float(event["now"]))
        elif op == "start":
            recorder.request_start()
        elif op == "left":
            recorder.move_left()
        elif op == "right":
            recorder.move_right()
        else:
            raise ValueError(f"Unknown replay event: {event}")
    return recorder


def verify_replay(
    data: Dict[str, Any],
    config: Optional[GameConfig] = None
) -> bool:
    """
    Check that a replay reproduces its recorded cues and final score.

    Raises:
        ValueError: If the replay has no seed or was recorded with a
            different config.
    """
    if config is None:
        config = get_config()
    if data.get("seed") is None:
        raise ValueError("Replay has no seed and cannot be reproduced")
    expected_hash = data.get("config_hash")
    if expected_hash is not None and expected_hash != compute_config_hash(config):
        raise ValueError(
            f"Replay config hash {expected_hash} does not match "
            f"current config {compute_config_hash(config)}"
        )

    replayed = replay_events(data["events"], config=config, seed=data.get("seed"))
    recorded_cues = [e.get("cues", []) for e in data["events"]]
    replayed_cues = [e["cues"] for e in replayed.events]
    return (
        recorded_cues == replayed_cues
        and replayed.game.score == data.get("final_score", replayed.game.score)
    )


def record_session(
    agent_fn: Callable[[GameSnapshot], Optional[str]],
    seed: int,
    frames: int,
    frame_ms: float = 16.0,
    config: Optional[GameConfig] = None,
    save_path: Optional[str] = None,
    agent_name: str = "agent"
) -> Dict[str, Any]:
    """
    Convenience function to record a scripted session.

    Each frame the agent sees the latest snapshot and may return one of
    ``"start"``, ``"left"``, ``"right"`` or None; the game then ticks.

    Args:
        agent_fn: Function that takes a snapshot and returns an input.
        seed: Random seed for the session.
        frames: Number of frames to run.
        frame_ms: Milliseconds between frames.
        config: Game configuration. Uses default if None.
        save_path: If provided, save replay to this path.
        agent_name: Name of the agent.

    Returns:
        Replay data dictionary.
    """
    recorder = ReplayRecorder(LeakGame(config=config, seed=seed), seed=seed, agent_name=agent_name)

    for frame in range(frames):
        action = agent_fn(recorder.snapshot())
        if action == "start":
            recorder.request_start()
        elif action == "left":
            recorder.move_left()
        elif action == "right":
            recorder.move_right()
        elif action is not None:
            raise ValueError(f"Unknown input {action!r}, expected one of {INPUT_OPS}")
        recorder.tick(frame * frame_ms)

    if save_path:
        recorder.save(save_path)

    return recorder.get_replay_data()
