"""
Tests for drop descent and landing resolution.
"""

import pytest

from drip_catch.drip_core.config_loader import load_config
from drip_catch.drip_core.difficulty import DifficultyController
from drip_catch.drip_core.drop_tracker import DropTracker
from drip_catch.drip_core.effects import Cue, TickEffects
from drip_catch.drip_core.game_state import Drop, WarningPhase, create_initial_state
from drip_catch.drip_core.leak_scheduler import LeakScheduler
from drip_catch.drip_core.phases import GamePhase
from drip_catch.drip_core.rng import SequenceRandom
from drip_catch.drip_core.rules import LifeRules


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def game_over_calls():
    return []


@pytest.fixture
def tracker(config, game_over_calls):
    difficulty = DifficultyController(config)
    scheduler = LeakScheduler(config, SequenceRandom(), difficulty)

    def on_game_over(state, now, effects):
        game_over_calls.append(now)
        state.phase = GamePhase.GAME_OVER

    return DropTracker(
        config,
        difficulty=difficulty,
        scheduler=scheduler,
        life_rules=LifeRules(config),
        on_game_over=on_game_over
    )


@pytest.fixture
def state(config):
    """Playing state with one drop spawned on column 1 at t=0."""
    state = create_initial_state(config)
    state.phase = GamePhase.PLAYING
    for leak in state.leaks:
        leak.next_spawn_at = 1_000_000.0
    drop = Drop(id=1, column=1, stage=0, next_stage_at=385.0, expected_landing=1540.0)
    state.drops.append(drop)
    leak = state.find_leak(1)
    leak.crack_hold = True
    leak.active_drop_id = 1
    leak.expected_landing = 1540.0
    state.last_drop_column = 1
    return state


def _update(tracker, state, now):
    effects = TickEffects()
    tracker.update(state, now, effects)
    return effects


class TestStageAdvance:
    """Test stage progression."""

    def test_no_advance_before_due(self, tracker, state):
        effects = _update(tracker, state, 384.0)

        assert state.drops[0].stage == 0
        assert len(effects) == 0

    def test_stages_step_by_one(self, tracker, state):
        drop = state.drops[0]
        for stage, now in enumerate([385.0, 770.0, 1155.0], start=1):
            effects = _update(tracker, state, now)
            assert drop.stage == stage
            assert drop.next_stage_at == pytest.approx(now + 385.0)
            assert effects.cues == [Cue.DROP_STEP]

        assert drop.expected_landing == pytest.approx(1540.0)

    def test_late_tick_advances_only_one_stage(self, tracker, state):
        """A long gap between ticks still moves a drop a single stage."""
        _update(tracker, state, 1200.0)

        assert state.drops[0].stage == 1

    def test_lands_at_fourth_stage_time(self, tracker, state):
        """Spawned at t=0 with speed 1, the drop resolves at 4 x 385 = 1540."""
        for now in (385.0, 770.0, 1155.0):
            _update(tracker, state, now)

        _update(tracker, state, 1539.0)
        assert len(state.drops) == 1
        assert state.drops[0].stage == 3

        effects = _update(tracker, state, 1540.0)
        assert state.drops == []
        assert len(effects.landings) == 1
        assert effects.landings[0].time == 1540.0

    def test_retimed_from_current_speed(self, tracker, state):
        """Speed changes mid-flight apply from the next stage."""
        state.speed_factor = 1.6

        _update(tracker, state, 385.0)

        drop = state.drops[0]
        assert drop.next_stage_at == pytest.approx(385.0 + 385.0 / 1.6)
        assert drop.expected_landing == pytest.approx(385.0 + 3 * 385.0 / 1.6)


def _bring_to_last_stage(tracker, state):
    for now in (385.0, 770.0, 1155.0):
        _update(tracker, state, now)


class TestLandingCatch:
    """Test catch resolution."""

    def test_catch_fills_bucket(self, tracker, state):
        state.player_position = 1
        _bring_to_last_stage(tracker, state)

        effects = _update(tracker, state, 1540.0)

        assert state.bucket_filled
        assert state.lives == 3
        assert effects.cues == [Cue.BUCKET_FILL]
        assert effects.landings[0].caught

    def test_catch_rearms_leak(self, tracker, state):
        state.player_position = 1
        _bring_to_last_stage(tracker, state)

        _update(tracker, state, 1540.0)

        leak = state.find_leak(1)
        assert not leak.crack_hold
        assert leak.active_drop_id is None
        assert leak.expected_landing == 1540.0
        assert leak.warning_phase == WarningPhase.IDLE
        # max(950, 1800) beats 1540 + 700 gap
        assert leak.next_spawn_at == pytest.approx(1540.0 + 1800.0)
        assert state.last_drop_column == 1

    def test_speed_bumped_on_catch(self, tracker, state):
        state.player_position = 1
        _bring_to_last_stage(tracker, state)

        _update(tracker, state, 1540.0)

        assert state.speed_factor == pytest.approx(1.0035)


class TestLandingMiss:
    """Test miss resolution."""

    def test_full_bucket_misses(self, tracker, state):
        """Player under the drop with a full bucket still loses a life."""
        state.player_position = 1
        state.bucket_filled = True
        _bring_to_last_stage(tracker, state)

        effects = _update(tracker, state, 1540.0)

        assert state.lives == 2
        assert state.drops == []
        assert Cue.DROP_MISS in effects
        assert Cue.BUCKET_FILL not in effects
        assert not effects.landings[0].caught
        assert state.bucket_filled

    def test_wrong_position_misses(self, tracker, state):
        state.player_position = 3
        _bring_to_last_stage(tracker, state)

        _update(tracker, state, 1540.0)

        assert state.lives == 2
        assert state.water_level == 1

    def test_miss_wipes_board(self, tracker, state):
        """All drops cleared and every leak returned to idle."""
        state.player_position = 0
        state.max_concurrent_drops = 2
        state.drops.append(Drop(id=2, column=3, stage=1, next_stage_at=9000.0, expected_landing=9999.0))
        blinking = state.find_leak(4)
        blinking.pending_drop = True
        blinking.warning_phase = WarningPhase.BLINKING
        blinking.warning_on = True
        state.crack_warnings = {1: True, 2: False, 3: True, 4: True}
        _bring_to_last_stage(tracker, state)

        effects = _update(tracker, state, 1540.0)

        assert state.drops == []
        assert all(leak.warning_phase == WarningPhase.IDLE for leak in state.leaks)
        assert not any(leak.pending_drop for leak in state.leaks)
        assert not any(state.crack_warnings.values())
        assert effects.landings[0].had_simultaneous
        assert effects.cues[-1] == Cue.DROP_MISS

    def test_speed_bumped_on_miss(self, tracker, state):
        _bring_to_last_stage(tracker, state)
        state.speed_factor = 1.5999

        _update(tracker, state, 1540.0)

        assert state.speed_factor == pytest.approx(1.6)

    def test_last_life_triggers_game_over(self, tracker, state, game_over_calls):
        state.lives = 1
        _bring_to_last_stage(tracker, state)

        _update(tracker, state, 1540.0)

        assert state.lives == 0
        assert state.water_level == 3
        assert game_over_calls == [1540.0]
        assert state.phase == GamePhase.GAME_OVER

    def test_lives_floor_at_zero(self, tracker, state):
        state.lives = 0
        _bring_to_last_stage(tracker, state)

        _update(tracker, state, 1540.0)

        assert state.lives == 0

    def test_unknown_leak_column_is_skipped(self, tracker, state):
        """Landing for a column without a leak resolves without error."""
        state.drops[0].column = 9
        _bring_to_last_stage(tracker, state)

        effects = _update(tracker, state, 1540.0)

        assert effects.landings[0].column == 9
        assert state.last_drop_column == 9
