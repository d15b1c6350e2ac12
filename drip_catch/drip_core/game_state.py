"""
Game State
==========

Mutable records owned by a single running game: the root GameState, one
LeakState per column and the in-flight Drops. Components mutate these only
through their own operations; external readers get a GameSnapshot instead.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from drip_catch.drip_core.config_loader import GameConfig
from drip_catch.drip_core.phases import BlinkSequence, GamePhase, Toggle


class WarningPhase(str, Enum):
    IDLE = "idle"
    BLINKING = "blinking"
    WAITING = "waiting"


@dataclass
class LeakState:
    """Warning/spawn state of one leak column."""
    column: int
    next_spawn_at: float = 0.0
    warning_phase: WarningPhase = WarningPhase.IDLE
    warning_on: bool = False
    blinks_remaining: int = 0
    next_warning_toggle: float = 0.0
    pending_drop: bool = False
    expected_landing: Optional[float] = None
    crack_hold: bool = False
    active_drop_id: Optional[int] = None

    def clear_warning(self) -> None:
        """Drop any warning in progress and return to idle."""
        self.pending_drop = False
        self.warning_on = False
        self.warning_phase = WarningPhase.IDLE
        self.blinks_remaining = 0
        self.next_warning_toggle = 0.0

    def release_hold(self) -> None:
        self.crack_hold = False
        self.active_drop_id = None

    @property
    def crack_visible(self) -> bool:
        return self.crack_hold or self.warning_on


@dataclass
class Drop:
    """A falling drop; ``stage`` runs 0..max_stage."""
    id: int
    column: int
    stage: int
    next_stage_at: float
    expected_landing: float

    def __repr__(self) -> str:
        return f"Drop(id={self.id}, col={self.column}, stage={self.stage})"


@dataclass
class BucketDump:
    """Spill animation shown after emptying the bucket at the deposit."""
    active: bool = False
    until: float = 0.0
    blink: Optional[Toggle] = None

    @property
    def blink_on(self) -> bool:
        return self.active and self.blink is not None and self.blink.on


@dataclass
class GameState:
    """Root state of one game, across rounds."""
    phase: GamePhase
    player_position: int
    lives: int
    leaks: List[LeakState]
    crack_warnings: Dict[int, bool]
    speed_factor: float
    bucket_filled: bool = False
    score: int = 0
    high_score: int = 0
    max_concurrent_drops: int = 1
    water_level: int = 0
    drops: List[Drop] = field(default_factory=list)
    reward_schedule: Dict[str, int] = field(default_factory=dict)
    rewards_unlocked: List[str] = field(default_factory=list)
    last_drop_column: Optional[int] = None
    text_display: Dict[str, bool] = field(
        default_factory=lambda: {"new": False, "game": False, "over": False}
    )
    bucket_dump: BucketDump = field(default_factory=BucketDump)
    start_blink: Optional[BlinkSequence] = None
    game_over_blink: Optional[BlinkSequence] = None
    attract_blink: Optional[Toggle] = None
    last_frame_time: float = 0.0
    next_drop_id: int = 1

    def find_leak(self, column: int) -> Optional[LeakState]:
        """Leak for a column, or None if there is no such column."""
        for leak in self.leaks:
            if leak.column == column:
                return leak
        return None

    def find_drop(self, drop_id: Optional[int]) -> Optional[Drop]:
        for drop in self.drops:
            if drop.id == drop_id:
                return drop
        return None

    @property
    def active_drop_count(self) -> int:
        return len(self.drops)

    def allocate_drop_id(self) -> int:
        drop_id = self.next_drop_id
        self.next_drop_id += 1
        return drop_id

    def set_text(self, **flags: bool) -> None:
        """Update any of the ``new``/``game``/``over`` text flags."""
        for key, value in flags.items():
            if key in self.text_display:
                self.text_display[key] = bool(value)


def create_leaks(config: GameConfig, next_spawn_at: float = 0.0) -> List[LeakState]:
    """One idle LeakState per configured column."""
    return [
        LeakState(column=column, next_spawn_at=next_spawn_at)
        for column in config.board.leak_columns
    ]


def create_initial_state(config: GameConfig, high_score: int = 0) -> GameState:
    """
    Fresh game state in the attract phase.

    Args:
        config: Game configuration.
        high_score: Cross-round high score to carry over.

    Returns:
        New GameState.
    """
    return GameState(
        phase=GamePhase.ATTRACT,
        player_position=config.board.start_position,
        lives=config.lives.max_lives,
        leaks=create_leaks(config),
        crack_warnings={column: False for column in config.board.leak_columns},
        speed_factor=config.drops.speed_factor_initial,
        high_score=high_score
    )
