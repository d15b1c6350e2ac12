"""
State Snapshot
==============

Packs game state into an immutable snapshot for renderers and recorders.

Drops are exposed as fixed-size numpy arrays padded to the largest
concurrency cap, with a mask for the live entries. Every snapshot owns
fresh arrays, so a renderer may keep one across ticks.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from drip_catch.drip_core.config_loader import GameConfig, get_config
from drip_catch.drip_core.game_state import GameState
from drip_catch.drip_core.phases import GamePhase


@dataclass(frozen=True, eq=False)
class GameSnapshot:
    """
    Read-only view of the game at one instant.

    Array fields are flagged read-only.
    """
    phase: GamePhase
    player_position: int
    bucket_filled: bool
    lives: int
    max_lives: int
    score: int
    high_score: int
    speed_factor: float
    max_concurrent_drops: int
    water_level: int

    # Drops (fixed size, padded)
    drop_column: np.ndarray           # (MAX_DROPS,) int16, -1 when empty
    drop_stage: np.ndarray            # (MAX_DROPS,) int16, -1 when empty
    drop_mask: np.ndarray             # (MAX_DROPS,) bool

    # Per-column crack flags in leak column order
    leak_columns: Tuple[int, ...]
    crack_warnings: np.ndarray        # (NUM_COLUMNS,) bool

    rewards_unlocked: Tuple[str, ...]
    text_display: Tuple[Tuple[str, bool], ...]
    bucket_dump_active: bool
    bucket_dump_blink_on: bool
    attract_on: bool

    @property
    def drop_count(self) -> int:
        return int(self.drop_mask.sum())

    @property
    def drops(self) -> List[Tuple[int, int]]:
        """Active drops as (column, stage) pairs."""
        return [
            (int(col), int(stage))
            for col, stage, live in zip(self.drop_column, self.drop_stage, self.drop_mask)
            if live
        ]

    def crack_visible(self, column: int) -> bool:
        """Crack flag for a column; False for unknown columns."""
        if column not in self.leak_columns:
            return False
        return bool(self.crack_warnings[self.leak_columns.index(column)])

    def text(self, key: str) -> bool:
        return dict(self.text_display).get(key, False)

    def to_dict(self) -> Dict[str, Any]:
        """Plain-Python form for JSON serialization."""
        return {
            "phase": self.phase.value,
            "player_position": self.player_position,
            "bucket_filled": self.bucket_filled,
            "lives": self.lives,
            "max_lives": self.max_lives,
            "score": self.score,
            "high_score": self.high_score,
            "speed_factor": self.speed_factor,
            "max_concurrent_drops": self.max_concurrent_drops,
            "water_level": self.water_level,
            "drops": [list(d) for d in self.drops],
            "crack_warnings": {
                str(col): bool(flag)
                for col, flag in zip(self.leak_columns, self.crack_warnings)
            },
            "rewards_unlocked": list(self.rewards_unlocked),
            "text_display": dict(self.text_display),
            "bucket_dump_active": self.bucket_dump_active,
            "bucket_dump_blink_on": self.bucket_dump_blink_on,
            "attract_on": self.attract_on,
        }


def _frozen(array: np.ndarray) -> np.ndarray:
    array.setflags(write=False)
    return array


class SnapshotBuilder:
    """Builds game state snapshots."""

    def __init__(self, config: Optional[GameConfig] = None):
        if config is None:
            config = get_config()

        self._config = config
        self._max_drops = config.difficulty.max_cap
        self._leak_columns = tuple(config.board.leak_columns)
        self._max_lives = config.lives.max_lives

    @property
    def max_drops(self) -> int:
        return self._max_drops

    def build(self, state: GameState) -> GameSnapshot:
        """Build a snapshot from current game state."""
        drop_column = np.full(self._max_drops, -1, dtype=np.int16)
        drop_stage = np.full(self._max_drops, -1, dtype=np.int16)
        drop_mask = np.zeros(self._max_drops, dtype=bool)

        count = min(len(state.drops), self._max_drops)
        for i, drop in enumerate(state.drops[:count]):
            drop_column[i] = drop.column
            drop_stage[i] = drop.stage
            drop_mask[i] = True

        crack_warnings = np.array(
            [state.crack_warnings.get(col, False) for col in self._leak_columns],
            dtype=bool
        )

        attract_on = (
            state.phase == GamePhase.ATTRACT
            and state.attract_blink is not None
            and state.attract_blink.on
        )

        return GameSnapshot(
            phase=state.phase,
            player_position=state.player_position,
            bucket_filled=state.bucket_filled,
            lives=state.lives,
            max_lives=self._max_lives,
            score=state.score,
            high_score=state.high_score,
            speed_factor=state.speed_factor,
            max_concurrent_drops=state.max_concurrent_drops,
            water_level=state.water_level,
            drop_column=_frozen(drop_column),
            drop_stage=_frozen(drop_stage),
            drop_mask=_frozen(drop_mask),
            leak_columns=self._leak_columns,
            crack_warnings=_frozen(crack_warnings),
            rewards_unlocked=tuple(state.rewards_unlocked),
            text_display=tuple(sorted(state.text_display.items())),
            bucket_dump_active=state.bucket_dump.active,
            bucket_dump_blink_on=state.bucket_dump.blink_on,
            attract_on=attract_on
        )
