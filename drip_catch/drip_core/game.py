"""
Core Game
=========

Game phase machine combining leak scheduling, drop tracking, scoring,
rewards and rules behind the tick-driven public API.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from drip_catch.drip_core.config_loader import GameConfig, get_config
from drip_catch.drip_core.difficulty import DifficultyController
from drip_catch.drip_core.drop_tracker import DropTracker
from drip_catch.drip_core.effects import Cue, TickEffects
from drip_catch.drip_core.game_state import (
    BucketDump,
    GameState,
    create_initial_state,
    create_leaks,
)
from drip_catch.drip_core.leak_scheduler import LeakScheduler
from drip_catch.drip_core.phases import BlinkSequence, GamePhase, Toggle
from drip_catch.drip_core.rewards import RewardScheduler
from drip_catch.drip_core.rng import RandomSource, make_random_source
from drip_catch.drip_core.rules import GameRules
from drip_catch.drip_core.scoring import ScoreTracker
from drip_catch.drip_core.state_snapshot import GameSnapshot, SnapshotBuilder

logger = logging.getLogger(__name__)


class LeakGame:
    """
    Main game simulation class.

    Orchestrates:
    - Leak scheduler (warnings and drop release)
    - Drop tracker (descent and landings)
    - Scoring and bucket dumps
    - Reward unlocks
    - Difficulty ramp
    - Phase transitions (attract -> starting -> playing -> game over)

    One tick = one host frame. The host supplies a monotonic timestamp in
    milliseconds and forwards the returned cues to its audio collaborator.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        seed: Optional[int] = None,
        rng: Optional[RandomSource] = None
    ):
        """
        Initialize game.

        Args:
            config: Game configuration. Uses default if None.
            seed: Random seed for reproducibility.
            rng: Random source to use instead of a seeded one (tests).
        """
        if config is None:
            config = get_config()

        self._config = config
        self._rng = make_random_source(seed, rng)

        # Initialize subsystems
        self._difficulty = DifficultyController(config)
        self._rules = GameRules(config)
        self._scheduler = LeakScheduler(config, self._rng, self._difficulty)
        self._tracker = DropTracker(
            config,
            difficulty=self._difficulty,
            scheduler=self._scheduler,
            life_rules=self._rules.lives,
            on_game_over=self._enter_game_over
        )
        self._rewards = RewardScheduler(config, self._rng)
        self._scorer = ScoreTracker(config)
        self._snapshot_builder = SnapshotBuilder(config)

        self._phase_updaters: Dict[GamePhase, Callable[[float, TickEffects], None]] = {
            GamePhase.ATTRACT: self._update_attract,
            GamePhase.STARTING: self._update_starting,
            GamePhase.PLAYING: self._update_playing,
            GamePhase.GAME_OVER: self._update_game_over,
        }

        self._state: GameState = create_initial_state(config)
        self._enter_attract()

    @property
    def config(self) -> GameConfig:
        """Game configuration."""
        return self._config

    @property
    def rng(self) -> RandomSource:
        """Shared random source."""
        return self._rng

    @property
    def state(self) -> GameState:
        """
        Live game state.

        Exposed for tests and tools; renderers should use ``snapshot()``.
        """
        return self._state

    @property
    def phase(self) -> GamePhase:
        return self._state.phase

    @property
    def score(self) -> int:
        """Current score."""
        return self._state.score

    @property
    def lives(self) -> int:
        return self._state.lives

    @property
    def high_score(self) -> int:
        return self._state.high_score

    @property
    def is_over(self) -> bool:
        """True if the round has ended."""
        return self._state.phase == GamePhase.GAME_OVER

    def reset(self, seed: Optional[int] = None) -> GameSnapshot:
        """
        Reset game to the attract phase, clearing the high score.

        Args:
            seed: New random seed. Keeps the current one if None.

        Returns:
            Initial game snapshot.
        """
        self._rng.reset(seed)
        self._state = create_initial_state(self._config)
        self._enter_attract()
        return self.snapshot()

    # ------------------------------------------------------------------
    # Public input API
    # ------------------------------------------------------------------

    def tick(self, now: float) -> TickEffects:
        """
        Advance the simulation by one frame.

        Args:
            now: Monotonic timestamp in milliseconds.

        Returns:
            TickEffects with the cues emitted this frame, in order.
        """
        effects = TickEffects()
        score_before = self._state.score

        self._phase_updaters[self._state.phase](now, effects)

        self._state.last_frame_time = now
        effects.delta_score = self._state.score - score_before
        return effects

    def request_start(self) -> TickEffects:
        """
        Begin a new round from the attract or game-over phase.

        Ignored while a round is starting or in play. The countdown's first
        toggle is scheduled on the next tick.
        """
        effects = TickEffects()
        if self._state.phase in (GamePhase.STARTING, GamePhase.PLAYING):
            return effects

        high_score = self._state.high_score
        self._state = create_initial_state(self._config, high_score=high_score)
        self._state.phase = GamePhase.STARTING
        self._state.start_blink = BlinkSequence.for_count(
            self._config.phases.start_blink_count,
            self._config.phases.start_blink_interval
        )
        self._state.set_text(new=True, game=True, over=False)
        effects.emit(Cue.START_FANFARE)
        logger.debug("Round starting (high score %d)", high_score)
        return effects

    def move_left(self) -> TickEffects:
        """Move one station towards the deposit."""
        return self._move(-1)

    def move_right(self) -> TickEffects:
        """Move one station away from the deposit."""
        return self._move(1)

    def _move(self, delta: int) -> TickEffects:
        effects = TickEffects()
        if self._rules.player.move(self._state, delta):
            effects.emit(Cue.MOVE_BLIP)
        return effects

    def snapshot(self) -> GameSnapshot:
        """Read-only snapshot for renderers."""
        return self._snapshot_builder.build(self._state)

    # ------------------------------------------------------------------
    # Phase updaters
    # ------------------------------------------------------------------

    def _enter_attract(self) -> None:
        state = self._state
        state.phase = GamePhase.ATTRACT
        state.attract_blink = Toggle(interval=self._config.phases.attract_blink_interval)
        state.set_text(new=False, game=False, over=False)

    def _update_attract(self, now: float, effects: TickEffects) -> None:
        if self._state.attract_blink is not None:
            self._state.attract_blink.update(now)

    def _update_starting(self, now: float, effects: TickEffects) -> None:
        state = self._state
        blink = state.start_blink
        if blink is None:
            self._begin_playing(now)
            return
        if blink.update(now):
            state.set_text(new=blink.on, game=blink.on)
        # A zero-length countdown is finished before its first toggle
        if blink.finished:
            state.start_blink = None
            self._begin_playing(now)

    def _begin_playing(self, now: float) -> None:
        """Reset per-round state and enter the playing phase."""
        state = self._state
        config = self._config

        state.phase = GamePhase.PLAYING
        state.bucket_filled = False
        state.score = 0
        state.lives = config.lives.max_lives
        state.water_level = 0
        state.drops.clear()
        state.bucket_dump = BucketDump()
        state.speed_factor = config.drops.speed_factor_initial

        state.leaks = create_leaks(config)
        for leak in state.leaks:
            leak.next_spawn_at = self._scheduler.initial_spawn_at(now)
        state.crack_warnings = {column: False for column in config.board.leak_columns}
        state.last_drop_column = None

        state.max_concurrent_drops = self._difficulty.concurrency_limit(state.score)
        state.reward_schedule = self._rewards.build_schedule()
        state.rewards_unlocked = []
        state.set_text(new=False, game=False, over=False)
        logger.debug("Round playing at %.1f", now)

    def _update_playing(self, now: float, effects: TickEffects) -> None:
        state = self._state

        self._scheduler.update(state, now, effects)
        self._tracker.update(state, now, effects)

        # A miss on this tick may have ended the round
        if state.phase != GamePhase.PLAYING:
            return

        event = self._scorer.dump_bucket(state, now)
        if event is not None:
            effects.emit(Cue.BUCKET_DUMP)
            self._on_score_changed()
            effects.emit(Cue.SCORE)
        self._scorer.update_dump_blink(state, now)

    def _on_score_changed(self) -> None:
        state = self._state
        self._rewards.unlock(state.score, state.reward_schedule, state.rewards_unlocked)
        state.max_concurrent_drops = self._difficulty.concurrency_limit(state.score)

    def _enter_game_over(self, state: GameState, now: float, effects: TickEffects) -> None:
        state.phase = GamePhase.GAME_OVER
        self._scorer.record_high_score(state)
        state.game_over_blink = BlinkSequence.for_count(
            self._config.phases.game_over_blink_count,
            self._config.phases.game_over_blink_interval,
            now
        )
        state.set_text(game=True, over=True)
        effects.emit(Cue.GAME_OVER)
        logger.debug("Game over at %.1f: score %d, high score %d",
                     now, state.score, state.high_score)

    def _update_game_over(self, now: float, effects: TickEffects) -> None:
        state = self._state
        blink = state.game_over_blink
        if blink is None:
            return
        if blink.update(now):
            state.set_text(game=blink.on, over=blink.on)
        if blink.finished:
            state.game_over_blink = None
            state.set_text(game=True, over=True)

    def get_info(self) -> Dict[str, Any]:
        """Summary counters for tools and logs."""
        state = self._state
        return {
            "phase": state.phase.value,
            "time": state.last_frame_time,
            "score": state.score,
            "high_score": state.high_score,
            "lives": state.lives,
            "speed_factor": state.speed_factor,
            "active_drops": state.active_drop_count,
            "max_concurrent_drops": state.max_concurrent_drops,
            "rewards_unlocked": len(state.rewards_unlocked),
        }
