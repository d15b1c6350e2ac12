"""
Configuration Loader
====================

Loads and validates game_config.yaml, providing typed access to all parameters.
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BoardConfig:
    """Stations and leak columns."""
    positions: Tuple[str, ...]   # Ordered stations, index 0 is the deposit
    leak_columns: Tuple[int, ...]
    start_position: int          # Station the player starts each round at
    water_levels: int            # Number of flood levels shown as lives drain

    @property
    def num_positions(self) -> int:
        return len(self.positions)


@dataclass(frozen=True)
class LivesConfig:
    """Life pool."""
    max_lives: int


@dataclass(frozen=True)
class PhaseConfig:
    """Blink sequences for the non-playing phases."""
    attract_blink_interval: float
    start_blink_count: int
    start_blink_interval: float
    game_over_blink_count: int
    game_over_blink_interval: float


@dataclass(frozen=True)
class LeakTiming:
    """Spawn interval for a single leak column."""
    column: int
    base_interval: float
    jitter: float


@dataclass(frozen=True)
class LeakConfig:
    """Leak warning and spawn scheduling parameters."""
    timing: Tuple[LeakTiming, ...]
    min_leak_interval: float
    warning_blink_interval: float
    warning_blink_count: int
    landing_gap: float           # Minimum gap after a landing before the next drop
    initial_spawn_delay: float
    initial_spawn_spread: float
    defer_window: float
    defer_delay: float

    def timing_for(self, column: int) -> Optional[LeakTiming]:
        """Timing entry for a column, or None if the column has none."""
        for entry in self.timing:
            if entry.column == column:
                return entry
        return None


@dataclass(frozen=True)
class DropConfig:
    """Drop descent and speed ramp."""
    max_stage: int
    fall_time_per_stage: float
    stage_min_time: float
    stage_spawn_threshold: int
    speed_factor_initial: float
    speed_factor_floor: float
    speed_increase_per_drop: float
    speed_factor_max: float


@dataclass(frozen=True)
class ConcurrencyRule:
    """Drops allowed in flight once the score reaches a threshold."""
    score: int
    max_drops: int


@dataclass(frozen=True)
class DifficultyConfig:
    """Score-driven concurrency table."""
    concurrent_drops_by_score: Tuple[ConcurrencyRule, ...]

    @property
    def max_cap(self) -> int:
        """Largest concurrency cap reachable in a round."""
        return max([1] + [rule.max_drops for rule in self.concurrent_drops_by_score])


@dataclass(frozen=True)
class RewardConfig:
    """Reward unlock schedule range."""
    ids: Tuple[str, ...]
    score_start: int
    score_end: int
    score_jitter: int


@dataclass(frozen=True)
class ScoringConfig:
    """Deposit scoring and dump animation."""
    points_per_deposit: int
    bucket_dump_duration: float
    bucket_dump_blink_interval: float


@dataclass(frozen=True)
class GameConfig:
    """
    Complete game configuration loaded from YAML.

    All values are immutable to prevent accidental modification during runtime.
    """
    board: BoardConfig
    lives: LivesConfig
    phases: PhaseConfig
    leaks: LeakConfig
    drops: DropConfig
    difficulty: DifficultyConfig
    rewards: RewardConfig
    scoring: ScoringConfig

    @property
    def max_lives(self) -> int:
        return self.lives.max_lives

    @property
    def max_stage(self) -> int:
        return self.drops.max_stage

    def to_dict(self) -> Dict[str, Any]:
        """Plain-dict form, used for hashing and replay metadata."""
        return asdict(self)


def _parse_leak_timing(entry: dict) -> LeakTiming:
    """Parse a single per-column timing entry from YAML."""
    if "column" not in entry:
        raise ValueError(f"Leak timing entry needs a 'column', got {entry}")
    return LeakTiming(
        column=int(entry["column"]),
        base_interval=float(entry["base_interval"]),
        jitter=float(entry.get("jitter", 0.0))
    )


def _parse_concurrency_rule(entry: dict) -> ConcurrencyRule:
    """Parse a {score, max} concurrency rule from YAML."""
    return ConcurrencyRule(
        score=int(entry["score"]),
        max_drops=int(entry["max"])
    )


def _validate_config(config: GameConfig) -> None:
    """Validate configuration consistency."""
    board = config.board

    if board.num_positions < 2:
        raise ValueError("board.positions needs the deposit station and at least one column")

    # Each leak column must have a station under it
    for column in board.leak_columns:
        if not 1 <= column < board.num_positions:
            raise ValueError(
                f"Leak column {column} has no station "
                f"(positions 1..{board.num_positions - 1})"
            )

    if len(set(board.leak_columns)) != len(board.leak_columns):
        raise ValueError(f"Duplicate leak columns: {board.leak_columns}")

    if not 0 <= board.start_position < board.num_positions:
        raise ValueError(f"start_position {board.start_position} out of range")

    for entry in config.leaks.timing:
        if entry.column not in board.leak_columns:
            raise ValueError(f"Leak timing for unknown column {entry.column}")

    if config.lives.max_lives < 1:
        raise ValueError(f"max_lives must be >= 1, got {config.lives.max_lives}")

    if config.leaks.warning_blink_count < 1:
        raise ValueError("leaks.warning_blink_count must be >= 1")

    drops = config.drops
    if drops.max_stage < 0:
        raise ValueError(f"drops.max_stage must be >= 0, got {drops.max_stage}")

    if not 0 <= drops.stage_spawn_threshold <= drops.max_stage:
        raise ValueError(
            f"stage_spawn_threshold ({drops.stage_spawn_threshold}) must be in "
            f"[0, max_stage={drops.max_stage}]"
        )

    if drops.speed_factor_floor <= 0:
        raise ValueError("drops.speed_factor_floor must be positive")

    if drops.speed_factor_max < drops.speed_factor_initial:
        raise ValueError(
            f"speed_factor_max ({drops.speed_factor_max}) is below "
            f"speed_factor_initial ({drops.speed_factor_initial})"
        )

    for rule in config.difficulty.concurrent_drops_by_score:
        if rule.max_drops < 1:
            raise ValueError(f"Concurrency cap must be >= 1, got {rule}")

    if len(set(config.rewards.ids)) != len(config.rewards.ids):
        raise ValueError("Reward ids must be unique")


def parse_config(raw: Dict[str, Any]) -> GameConfig:
    """
    Build a validated GameConfig from the raw YAML mapping.

    Args:
        raw: Parsed YAML document.

    Returns:
        Validated GameConfig instance.

    Raises:
        ValueError: If a value is missing or inconsistent.
    """
    try:
        board_data = raw["board"]
        board = BoardConfig(
            positions=tuple(str(p) for p in board_data["positions"]),
            leak_columns=tuple(int(c) for c in board_data["leak_columns"]),
            start_position=int(board_data.get("start_position", 0)),
            water_levels=int(board_data.get("water_levels", raw["lives"]["max_lives"]))
        )

        lives = LivesConfig(max_lives=int(raw["lives"]["max_lives"]))

        phase_data = raw["phases"]
        phases = PhaseConfig(
            attract_blink_interval=float(phase_data["attract_blink_interval"]),
            start_blink_count=int(phase_data["start_blink_count"]),
            start_blink_interval=float(phase_data["start_blink_interval"]),
            game_over_blink_count=int(phase_data["game_over_blink_count"]),
            game_over_blink_interval=float(phase_data["game_over_blink_interval"])
        )

        leak_data = raw["leaks"]
        leaks = LeakConfig(
            timing=tuple(_parse_leak_timing(e) for e in leak_data.get("timing", [])),
            min_leak_interval=float(leak_data["min_leak_interval"]),
            warning_blink_interval=float(leak_data["warning_blink_interval"]),
            warning_blink_count=int(leak_data.get("warning_blink_count", 3)),
            landing_gap=float(leak_data.get("landing_gap", 0.0)),
            initial_spawn_delay=float(leak_data.get("initial_spawn_delay", 600.0)),
            initial_spawn_spread=float(leak_data.get("initial_spawn_spread", 1200.0)),
            defer_window=float(leak_data.get("defer_window", 50.0)),
            defer_delay=float(leak_data.get("defer_delay", 120.0))
        )

        drop_data = raw["drops"]
        max_stage = int(drop_data["max_stage"])
        drops = DropConfig(
            max_stage=max_stage,
            fall_time_per_stage=float(drop_data["fall_time_per_stage"]),
            stage_min_time=float(drop_data["stage_min_time"]),
            stage_spawn_threshold=int(drop_data.get("stage_spawn_threshold", max_stage)),
            speed_factor_initial=float(drop_data.get("speed_factor_initial", 1.0)),
            speed_factor_floor=float(drop_data.get("speed_factor_floor", 0.4)),
            speed_increase_per_drop=float(drop_data["speed_increase_per_drop"]),
            speed_factor_max=float(drop_data["speed_factor_max"])
        )

        difficulty_data = raw.get("difficulty", {})
        difficulty = DifficultyConfig(
            concurrent_drops_by_score=tuple(
                _parse_concurrency_rule(e)
                for e in difficulty_data.get("concurrent_drops_by_score", [])
            )
        )

        reward_data = raw.get("rewards", {})
        rewards = RewardConfig(
            ids=tuple(str(i) for i in reward_data.get("ids", [])),
            score_start=int(reward_data.get("score_start", 5)),
            score_end=int(reward_data.get("score_end", 50)),
            score_jitter=int(reward_data.get("score_jitter", 0))
        )

        scoring_data = raw.get("scoring", {})
        scoring = ScoringConfig(
            points_per_deposit=int(scoring_data.get("points_per_deposit", 1)),
            bucket_dump_duration=float(scoring_data.get("bucket_dump_duration", 0.0)),
            bucket_dump_blink_interval=float(scoring_data.get("bucket_dump_blink_interval", 120.0))
        )
    except KeyError as e:
        raise ValueError(f"Missing config key: {e}") from e

    config = GameConfig(
        board=board,
        lives=lives,
        phases=phases,
        leaks=leaks,
        drops=drops,
        difficulty=difficulty,
        rewards=rewards,
        scoring=scoring
    )

    _validate_config(config)
    return config


def load_config(config_path: Optional[str] = None) -> GameConfig:
    """
    Load and validate game configuration from YAML.

    Args:
        config_path: Path to game_config.yaml. If None, uses default location.

    Returns:
        Validated GameConfig instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If config validation fails.
    """
    if config_path is None:
        config_path = os.path.join(
            os.path.dirname(os.path.dirname(__file__)),
            "game_config.yaml"
        )

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r") as f:
        raw = yaml.safe_load(f)

    if not isinstance(raw, dict):
        raise ValueError(f"Config file {config_path} is not a mapping")

    logger.debug("Loading game config from %s", config_path)
    return parse_config(raw)


# Module-level singleton for convenience
_cached_config: Optional[GameConfig] = None


def get_config() -> GameConfig:
    """Get the cached game configuration, loading if necessary."""
    global _cached_config
    if _cached_config is None:
        _cached_config = load_config()
    return _cached_config


def reload_config(config_path: Optional[str] = None) -> GameConfig:
    """Reload the configuration (useful for testing)."""
    global _cached_config
    _cached_config = load_config(config_path)
    return _cached_config
