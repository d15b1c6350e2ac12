"""
Leak Scheduler
==============

Per-column state machine that decides when a leak starts warning, how the
warning blinks, and when the drop is finally released.

Warning lifecycle per leak::

    IDLE --(next_spawn_at reached)--> BLINKING --(blinks done)--> WAITING
    WAITING --(release gate open)--> drop created, back to IDLE

Columns are visited in a freshly shuffled order every tick so no column is
favoured when several become eligible together.
"""

from __future__ import annotations

import logging
from typing import Optional

from drip_catch.drip_core.config_loader import GameConfig, get_config
from drip_catch.drip_core.difficulty import DifficultyController
from drip_catch.drip_core.effects import Cue, TickEffects
from drip_catch.drip_core.game_state import Drop, GameState, LeakState, WarningPhase
from drip_catch.drip_core.rng import RandomSource

logger = logging.getLogger(__name__)


class LeakScheduler:
    """
    Leak warning and drop release timing.

    Owns no state of its own: every decision is a function of the
    GameState, the timestamp and the shared random source.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        rng: Optional[RandomSource] = None,
        difficulty: Optional[DifficultyController] = None
    ):
        """
        Initialize leak scheduler.

        Args:
            config: Game configuration. Uses default if None.
            rng: Shared random source. A fresh unseeded one if None.
            difficulty: Difficulty controller for fall timing.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._leaks = config.leaks
        self._drops = config.drops
        self._rng = rng if rng is not None else RandomSource()
        self._difficulty = difficulty if difficulty is not None else DifficultyController(config)

    # ------------------------------------------------------------------
    # Timing
    # ------------------------------------------------------------------

    def spawn_delay(self, leak: LeakState, now: float) -> float:
        """
        Delay until the leak may warn again.

        ``max(min_leak_interval, base ± jitter)``, raised so the next drop
        cannot start before ``expected_landing + landing_gap``.
        """
        minimum = self._leaks.min_leak_interval
        timing = self._leaks.timing_for(leak.column)
        base = timing.base_interval if timing is not None else minimum
        jitter = timing.jitter if timing is not None else 0.0

        delay = max(minimum, base + self._rng.jitter() * jitter)

        gap = self._leaks.landing_gap
        if gap > 0 and leak.expected_landing is not None:
            earliest = leak.expected_landing + gap
            if now + delay < earliest:
                delay = earliest - now
        return delay

    def initial_spawn_at(self, now: float) -> float:
        """First spawn time for a leak at the start of a round."""
        return (
            now
            + self._leaks.initial_spawn_delay
            + self._rng.random() * self._leaks.initial_spawn_spread
        )

    def rearm(self, leak: LeakState, now: float) -> None:
        """Schedule the leak's next warning from ``now``."""
        leak.next_spawn_at = now + self.spawn_delay(leak, now)

    # ------------------------------------------------------------------
    # Per-tick update
    # ------------------------------------------------------------------

    def update(self, state: GameState, now: float, effects: TickEffects) -> None:
        """
        Advance every leak by one tick.

        Args:
            state: Game state, updated in place.
            now: Current timestamp.
            effects: Collects emitted cues.
        """
        for column in state.crack_warnings:
            state.crack_warnings[column] = False

        for leak in self._rng.shuffled(state.leaks):
            if leak.pending_drop:
                if leak.warning_phase == WarningPhase.BLINKING:
                    self._advance_blink(leak, now)
                if leak.warning_phase == WarningPhase.WAITING:
                    self.try_release(state, leak, now, effects)
            elif now >= leak.next_spawn_at:
                self.begin_warning(state, leak, now)

            if leak.column in state.crack_warnings:
                state.crack_warnings[leak.column] = leak.crack_visible

    def should_defer(self, state: GameState, leak: LeakState, now: float) -> bool:
        """
        True if the column that released the last drop should yield.

        Applies only when a sibling leak is due within the defer window.
        """
        if state.last_drop_column is None or leak.column != state.last_drop_column:
            return False
        window = self._leaks.defer_window
        return any(
            other is not leak and now >= other.next_spawn_at - window
            for other in state.leaks
        )

    def begin_warning(self, state: GameState, leak: LeakState, now: float) -> bool:
        """
        Start the blink sequence for an idle leak.

        Returns:
            True if the warning started, False if deferred or still busy.
        """
        if leak.active_drop_id is not None and state.find_drop(leak.active_drop_id) is not None:
            # One drop per leak in flight
            return False

        if self.should_defer(state, leak, now):
            leak.next_spawn_at = now + self._leaks.defer_delay
            return False

        leak.pending_drop = True
        leak.warning_phase = WarningPhase.BLINKING
        leak.warning_on = True
        leak.blinks_remaining = self._leaks.warning_blink_count
        leak.next_warning_toggle = now + self._leaks.warning_blink_interval
        leak.release_hold()
        return True

    def _advance_blink(self, leak: LeakState, now: float) -> None:
        if now < leak.next_warning_toggle:
            return
        leak.warning_on = not leak.warning_on
        leak.next_warning_toggle = now + self._leaks.warning_blink_interval
        if not leak.warning_on:
            leak.blinks_remaining = max(0, leak.blinks_remaining - 1)
            if leak.blinks_remaining <= 0:
                leak.warning_phase = WarningPhase.WAITING
                leak.warning_on = False

    # ------------------------------------------------------------------
    # Release
    # ------------------------------------------------------------------

    def ready_for_next_drop(self, state: GameState) -> bool:
        """
        Whether another drop may join the ones already falling.

        A second drop is only allowed once every falling drop has reached
        the spawn threshold stage.
        """
        active = state.drops
        cap = state.max_concurrent_drops
        if not active:
            return True
        if len(active) >= cap or cap <= 1:
            return False
        threshold = self._drops.stage_spawn_threshold
        return all(drop.stage >= threshold for drop in active)

    def try_release(
        self,
        state: GameState,
        leak: LeakState,
        now: float,
        effects: TickEffects
    ) -> Optional[Drop]:
        """
        Release a drop from a waiting leak if the gate allows it.

        A refused leak stays WAITING and retries on the next tick.

        Returns:
            The new Drop, or None if refused.
        """
        if state.active_drop_count >= state.max_concurrent_drops:
            return None
        if not self.ready_for_next_drop(state):
            return None

        duration = self._difficulty.stage_duration(state.speed_factor)
        drop = Drop(
            id=state.allocate_drop_id(),
            column=leak.column,
            stage=0,
            next_stage_at=now + duration,
            expected_landing=now + duration * (self._drops.max_stage + 1)
        )
        state.drops.append(drop)

        leak.clear_warning()
        leak.expected_landing = drop.expected_landing
        self.rearm(leak, now)
        leak.crack_hold = True
        leak.active_drop_id = drop.id
        state.last_drop_column = leak.column

        effects.emit(Cue.DROP_STEP)
        logger.debug("Drop %d released from column %d at %.1f", drop.id, leak.column, now)
        return drop

    def reset_all(self, state: GameState) -> None:
        """Return every leak to idle and clear all crack flags (after a miss)."""
        for leak in state.leaks:
            leak.clear_warning()
            leak.expected_landing = None
            leak.release_hold()
        for column in state.crack_warnings:
            state.crack_warnings[column] = False
        state.last_drop_column = None
