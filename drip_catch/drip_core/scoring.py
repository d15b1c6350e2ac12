"""
Scoring System
==============

Empties the bucket at the deposit station, awards points and keeps the
cross-round high score.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from drip_catch.drip_core.config_loader import GameConfig, get_config
from drip_catch.drip_core.game_state import BucketDump, GameState
from drip_catch.drip_core.phases import Toggle
from drip_catch.drip_core.rules import PlayerRules


@dataclass
class ScoreEvent:
    """Record of a scoring event."""
    points: int
    score: int
    time: float

    def __repr__(self) -> str:
        return f"ScoreEvent(+{self.points} -> {self.score})"


class ScoreTracker:
    """
    Deposit scoring.

    A filled bucket carried to the deposit station is emptied for
    ``points_per_deposit`` points and starts the spill blink.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        """
        Initialize score tracker.

        Args:
            config: Game configuration. Uses default if None.
        """
        if config is None:
            config = get_config()

        self._config = config.scoring
        self._deposit_position = PlayerRules(config).deposit_position

    def ready_to_dump(self, state: GameState) -> bool:
        return state.bucket_filled and state.player_position == self._deposit_position

    def dump_bucket(self, state: GameState, now: float) -> Optional[ScoreEvent]:
        """
        Empty the bucket if the player is at the deposit with a filled bucket.

        Args:
            state: Game state, updated in place.
            now: Current timestamp.

        Returns:
            ScoreEvent if points were awarded, else None.
        """
        if not self.ready_to_dump(state):
            return None

        state.bucket_filled = False
        points = self._config.points_per_deposit
        state.score += points

        duration = self._config.bucket_dump_duration
        if duration > 0:
            interval = self._config.bucket_dump_blink_interval
            state.bucket_dump = BucketDump(
                active=True,
                until=now + duration,
                blink=Toggle(interval=interval, on=True, next_toggle=now + interval)
            )
        else:
            state.bucket_dump = BucketDump()

        return ScoreEvent(points=points, score=state.score, time=now)

    @staticmethod
    def update_dump_blink(state: GameState, now: float) -> None:
        """Advance the spill blink and end it once its duration has passed."""
        dump = state.bucket_dump
        if not dump.active:
            return
        if dump.blink is not None:
            dump.blink.update(now)
        if now >= dump.until:
            state.bucket_dump = BucketDump()

    @staticmethod
    def record_high_score(state: GameState) -> int:
        """Fold the round's score into the high score."""
        state.high_score = max(state.high_score, state.score)
        return state.high_score
