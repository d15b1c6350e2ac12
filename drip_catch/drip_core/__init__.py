"""
Drip Core - The heart of the game.

This module provides the tick-driven simulation core and all supporting
systems (leak scheduling, drop tracking, scoring, rewards, difficulty, RNG).

Main exports:
- LeakGame: Phase machine and public tick/input API
- GameConfig: Configuration loaded from game_config.yaml
- GameSnapshot: Read-only state for renderers
- Cue / TickEffects: Sound cues emitted per call
- RandomSource / SequenceRandom: Injectable randomness
- ReplayRecorder: Record and verify sessions
"""

from drip_catch.drip_core.config_loader import GameConfig, load_config, parse_config
from drip_catch.drip_core.effects import Cue, LandingResult, TickEffects
from drip_catch.drip_core.game import LeakGame
from drip_catch.drip_core.game_state import Drop, GameState, LeakState, WarningPhase
from drip_catch.drip_core.phases import GamePhase
from drip_catch.drip_core.rng import RandomSource, SequenceRandom
from drip_catch.drip_core.state_snapshot import GameSnapshot
from drip_catch.drip_core.replay_recorder import (
    ReplayRecorder,
    load_replay,
    record_session,
    replay_events,
    verify_replay,
    generate_replay_filename,
)

__all__ = [
    "GameConfig",
    "load_config",
    "parse_config",
    "Cue",
    "LandingResult",
    "TickEffects",
    "LeakGame",
    "Drop",
    "GameState",
    "LeakState",
    "WarningPhase",
    "GamePhase",
    "RandomSource",
    "SequenceRandom",
    "GameSnapshot",
    "ReplayRecorder",
    "load_replay",
    "record_session",
    "replay_events",
    "verify_replay",
    "generate_replay_filename",
]
