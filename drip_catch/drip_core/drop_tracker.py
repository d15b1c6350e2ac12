"""
Drop Tracker
============

Advances falling drops stage by stage and resolves each landing as a catch
or a miss.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from drip_catch.drip_core.config_loader import GameConfig, get_config
from drip_catch.drip_core.difficulty import DifficultyController
from drip_catch.drip_core.effects import Cue, LandingResult, TickEffects
from drip_catch.drip_core.game_state import Drop, GameState
from drip_catch.drip_core.leak_scheduler import LeakScheduler
from drip_catch.drip_core.rules import LifeRules

logger = logging.getLogger(__name__)

GameOverCallback = Callable[[GameState, float, TickEffects], None]


class DropTracker:
    """
    Active drop collection maintenance.

    Each tick:
    - Drops whose stage timer expired move down one stage
    - A drop past the last stage is removed and its landing resolved
    - Surviving drops are re-timed from the current speed factor
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        difficulty: Optional[DifficultyController] = None,
        scheduler: Optional[LeakScheduler] = None,
        life_rules: Optional[LifeRules] = None,
        on_game_over: Optional[GameOverCallback] = None
    ):
        """
        Initialize drop tracker.

        Args:
            config: Game configuration. Uses default if None.
            difficulty: Difficulty controller for fall timing and speed ramp.
            scheduler: Leak scheduler used to re-arm leaks after landings.
            life_rules: Life bookkeeping for misses.
            on_game_over: Called when a miss takes the last life.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._max_stage = config.drops.max_stage
        self._difficulty = difficulty if difficulty is not None else DifficultyController(config)
        self._scheduler = scheduler if scheduler is not None else LeakScheduler(
            config, difficulty=self._difficulty
        )
        self._life_rules = life_rules if life_rules is not None else LifeRules(config)
        self._on_game_over = on_game_over

    @property
    def max_stage(self) -> int:
        return self._max_stage

    def update(self, state: GameState, now: float, effects: TickEffects) -> List[LandingResult]:
        """
        Advance every due drop by one stage.

        Args:
            state: Game state, updated in place.
            now: Current timestamp.
            effects: Collects emitted cues and landings.

        Returns:
            Landings resolved during this update.
        """
        landings: List[LandingResult] = []

        # Snapshot the list: landings remove drops and a miss clears them all
        for drop in list(state.drops):
            if drop not in state.drops:
                continue
            if now < drop.next_stage_at:
                continue

            drop.stage += 1
            if drop.stage > self._max_stage:
                had_simultaneous = state.active_drop_count > 1
                state.drops.remove(drop)
                landings.append(self.resolve_landing(state, drop, now, had_simultaneous, effects))
                continue

            duration = self._difficulty.stage_duration(state.speed_factor)
            drop.next_stage_at = now + duration
            drop.expected_landing = now + duration * (self._max_stage - drop.stage + 1)
            effects.emit(Cue.DROP_STEP)

        return landings

    def resolve_landing(
        self,
        state: GameState,
        drop: Drop,
        now: float,
        had_simultaneous: bool,
        effects: TickEffects
    ) -> LandingResult:
        """
        Resolve a drop that has left the last stage.

        Caught iff the player stands under the column with an empty bucket.
        A miss costs a life and wipes the board.

        Args:
            state: Game state, updated in place.
            drop: The drop, already removed from the active collection.
            now: Current timestamp.
            had_simultaneous: True if other drops were falling at removal.
            effects: Collects emitted cues.

        Returns:
            LandingResult for the drop.
        """
        caught = state.player_position == drop.column and not state.bucket_filled

        if caught:
            state.bucket_filled = True
            effects.emit(Cue.BUCKET_FILL)
        else:
            loss = self._life_rules.lose_life(state)
            if loss.game_over and self._on_game_over is not None:
                self._on_game_over(state, now, effects)
            self.clear_after_miss(state)
            effects.emit(Cue.DROP_MISS)

        leak = state.find_leak(drop.column)
        if leak is not None:
            leak.clear_warning()
            leak.expected_landing = now
            self._scheduler.rearm(leak, now)
            leak.release_hold()

        state.last_drop_column = drop.column
        state.speed_factor = self._difficulty.bumped_speed(state.speed_factor)

        result = LandingResult(
            drop_id=drop.id,
            column=drop.column,
            caught=caught,
            time=now,
            had_simultaneous=had_simultaneous
        )
        effects.landings.append(result)
        logger.debug("%r (lives=%d, speed=%.4f)", result, state.lives, state.speed_factor)
        return result

    def clear_after_miss(self, state: GameState) -> None:
        """Remove every falling drop and return all leaks to idle."""
        state.drops.clear()
        self._scheduler.reset_all(state)
