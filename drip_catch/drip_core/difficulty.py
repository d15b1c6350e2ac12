"""
Difficulty Controller
=====================

Stateless derivations of the difficulty ramp: how many drops may be in
flight for a given score, how long each fall stage lasts at a given speed,
and how the speed factor grows with every landing.
"""

from __future__ import annotations

from typing import Optional

from drip_catch.drip_core.config_loader import GameConfig, get_config


class DifficultyController:
    """
    Derives concurrency cap and fall timing from score and speed factor.

    Holds no per-round state; the game recomputes the cap after every score
    change and the speed factor lives on the GameState.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        """
        Initialize difficulty controller.

        Args:
            config: Game configuration. Uses default if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._rules = config.difficulty.concurrent_drops_by_score
        self._drops = config.drops

    def concurrency_limit(self, score: int) -> int:
        """
        Maximum drops allowed in flight at ``score``.

        The largest cap among the rules whose threshold the score has
        reached; never below 1.
        """
        limit = 1
        for rule in self._rules:
            if score >= rule.score:
                limit = max(limit, rule.max_drops)
        return limit

    def stage_duration(self, speed_factor: float) -> float:
        """Milliseconds a drop spends on one stage at ``speed_factor``."""
        effective = max(self._drops.speed_factor_floor, speed_factor)
        return max(self._drops.stage_min_time, self._drops.fall_time_per_stage / effective)

    def fall_duration(self, speed_factor: float, from_stage: int = 0) -> float:
        """Time from entering ``from_stage`` until the drop lands."""
        remaining = self._drops.max_stage - from_stage + 1
        return self.stage_duration(speed_factor) * max(0, remaining)

    def bumped_speed(self, speed_factor: float) -> float:
        """Speed factor after one landing, capped at the configured ceiling."""
        return min(
            self._drops.speed_factor_max,
            speed_factor + self._drops.speed_increase_per_drop
        )
