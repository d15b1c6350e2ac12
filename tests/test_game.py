"""
Tests for the LeakGame phase machine and public API.
"""

import random
from dataclasses import replace

import pytest

from drip_catch.drip_core.config_loader import load_config
from drip_catch.drip_core.effects import Cue
from drip_catch.drip_core.game import LeakGame
from drip_catch.drip_core.game_state import WarningPhase
from drip_catch.drip_core.phases import GamePhase
from drip_catch.drip_core.rng import SequenceRandom


# With SequenceRandom() every draw is 0.5: zero jitter, leaks due at
# 2200 + 600 + 0.5 * 1200.
PLAY_START = 2200.0
LEAKS_DUE = 3400.0
FIRST_RELEASE = 4380.0
FIRST_LANDING = 5920.0


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def game(config):
    return LeakGame(config, rng=SequenceRandom())


def _start_round(game):
    game.request_start()
    game.tick(0.0)
    for k in range(1, 11):
        game.tick(220.0 * k)


def _tick_all(game, times):
    return [game.tick(t) for t in times]


def _release_first_drop(game):
    _tick_all(game, [LEAKS_DUE + 140.0 * k for k in range(8)])


def _fall_to_last_stage(game):
    _tick_all(game, [4765.0, 5150.0, 5535.0])


class TestAttract:
    """Test the idle attract phase."""

    def test_starts_in_attract(self, game):
        assert game.phase == GamePhase.ATTRACT
        assert not game.is_over

    def test_attract_blinks(self, game):
        game.tick(0.0)
        assert game.snapshot().attract_on

        game.tick(650.0)
        assert not game.snapshot().attract_on

        game.tick(1300.0)
        assert game.snapshot().attract_on

    def test_moves_ignored(self, game):
        effects = game.move_left()

        assert len(effects) == 0
        assert game.state.player_position == 2


class TestStarting:
    """Test the start countdown."""

    def test_request_start_emits_fanfare(self, game):
        effects = game.request_start()

        assert effects.cues == [Cue.START_FANFARE]
        assert game.phase == GamePhase.STARTING
        assert game.snapshot().text("new")
        assert game.snapshot().text("game")

    def test_countdown_blinks_text(self, game):
        game.request_start()
        game.tick(0.0)

        game.tick(220.0)
        assert not game.snapshot().text("new")

        game.tick(440.0)
        assert game.snapshot().text("new")

    def test_playing_after_five_blinks(self, game):
        game.request_start()
        game.tick(0.0)
        for k in range(1, 10):
            game.tick(220.0 * k)
            assert game.phase == GamePhase.STARTING

        game.tick(PLAY_START)

        assert game.phase == GamePhase.PLAYING
        assert not any(dict(game.snapshot().text_display).values())
        assert all(leak.next_spawn_at == LEAKS_DUE for leak in game.state.leaks)

    def test_request_start_ignored_while_starting(self, game):
        game.request_start()

        assert len(game.request_start()) == 0
        assert game.phase == GamePhase.STARTING

    def test_player_can_move_during_countdown(self, game):
        game.request_start()

        effects = game.move_right()

        assert effects.cues == [Cue.MOVE_BLIP]
        assert game.state.player_position == 3


class TestPlaying:
    """Test a round in progress."""

    def test_request_start_ignored(self, game):
        _start_round(game)

        assert len(game.request_start()) == 0
        assert game.phase == GamePhase.PLAYING

    def test_round_values_reset(self, game, config):
        _start_round(game)

        assert game.score == 0
        assert game.lives == config.lives.max_lives
        assert game.state.max_concurrent_drops == 1
        assert game.state.speed_factor == 1.0
        assert len(game.state.reward_schedule) == 13

    def test_all_leaks_warn_when_due(self, game):
        _start_round(game)

        game.tick(LEAKS_DUE)

        assert all(leak.warning_phase == WarningPhase.BLINKING for leak in game.state.leaks)
        assert game.snapshot().crack_warnings.all()

    def test_first_drop_released(self, game):
        _start_round(game)
        _release_first_drop(game)

        snapshot = game.snapshot()
        assert snapshot.drops == [(1, 0)]
        waiting = [l.column for l in game.state.leaks if l.warning_phase == WarningPhase.WAITING]
        assert sorted(waiting) == [2, 3, 4]

    def test_move_blip_only_on_movement(self, game):
        _start_round(game)
        game.move_left()
        game.move_left()

        effects = game.move_left()

        assert game.state.player_position == 0
        assert len(effects) == 0


class TestCatchAndDump:
    """Test a caught drop carried to the deposit."""

    def test_catch_then_dump(self, game):
        _start_round(game)
        _release_first_drop(game)
        game.move_left()
        _fall_to_last_stage(game)

        effects = game.tick(FIRST_LANDING)

        assert effects.cues == [Cue.BUCKET_FILL]
        assert game.state.bucket_filled
        assert game.state.find_leak(1).next_spawn_at == pytest.approx(7720.0)

        game.move_left()
        effects = game.tick(FIRST_LANDING + 1.0)

        # Column 4 was waiting and takes the freed slot on the same tick
        assert effects.cue_names == ["drop-step", "bucket-dump", "score"]
        assert effects.delta_score == 1
        assert game.score == 1
        assert not game.state.bucket_filled

    def test_dump_blink_expires(self, game):
        _start_round(game)
        game.state.bucket_filled = True
        game.state.player_position = 0

        game.tick(2300.0)
        assert game.snapshot().bucket_dump_active
        assert game.snapshot().bucket_dump_blink_on

        game.tick(2420.0)
        assert not game.snapshot().bucket_dump_blink_on

        game.tick(3000.0)
        assert not game.snapshot().bucket_dump_active

    def test_no_dump_away_from_deposit(self, game):
        _start_round(game)
        game.state.bucket_filled = True

        effects = game.tick(2300.0)

        assert game.score == 0
        assert Cue.BUCKET_DUMP not in effects


class TestMiss:
    """Test life loss."""

    def test_miss_wipes_board(self, game):
        _start_round(game)
        _release_first_drop(game)
        _fall_to_last_stage(game)

        effects = game.tick(FIRST_LANDING)

        assert effects.cues == [Cue.DROP_MISS]
        assert game.lives == 2
        assert game.state.water_level == 1
        assert game.state.drops == []
        assert all(leak.warning_phase == WarningPhase.IDLE for leak in game.state.leaks)
        assert game.state.speed_factor == pytest.approx(1.0035)
        assert game.phase == GamePhase.PLAYING


class TestGameOver:
    """Test the end of a round."""

    def _lose_last_life(self, game):
        _start_round(game)
        game.state.lives = 1
        game.state.score = 7
        game.state.high_score = 5
        _release_first_drop(game)
        _fall_to_last_stage(game)
        return game.tick(FIRST_LANDING)

    def test_last_miss_ends_round(self, game):
        effects = self._lose_last_life(game)

        assert effects.cue_names == ["game-over", "drop-miss"]
        assert game.phase == GamePhase.GAME_OVER
        assert game.is_over
        assert game.lives == 0
        assert game.high_score == 7

    def test_game_over_text_blinks_then_holds(self, game):
        self._lose_last_life(game)
        assert game.snapshot().text("over")

        game.tick(FIRST_LANDING + 260.0)
        assert not game.snapshot().text("over")

        for k in range(2, 13):
            game.tick(FIRST_LANDING + 260.0 * k)
        assert game.state.game_over_blink is None
        assert game.snapshot().text("game")
        assert game.snapshot().text("over")

        game.tick(FIRST_LANDING + 260.0 * 20)
        assert game.snapshot().text("over")

    def test_no_play_after_game_over(self, game):
        self._lose_last_life(game)

        effects = game.tick(FIRST_LANDING + 5000.0)

        assert game.state.drops == []
        assert Cue.DROP_STEP not in effects
        assert len(game.move_left()) == 0

    def test_restart_keeps_high_score(self, game, config):
        self._lose_last_life(game)

        effects = game.request_start()

        assert effects.cues == [Cue.START_FANFARE]
        assert game.phase == GamePhase.STARTING
        assert game.high_score == 7
        assert game.score == 0
        assert game.lives == config.lives.max_lives

    def test_reset_clears_high_score(self, game):
        self._lose_last_life(game)

        snapshot = game.reset()

        assert snapshot.phase == GamePhase.ATTRACT
        assert snapshot.high_score == 0


class TestDifficulty:
    """Test score-driven concurrency and speed."""

    def _deposit(self, game, now):
        game.state.bucket_filled = True
        game.state.player_position = 0
        return game.tick(now)

    def test_concurrency_raised_with_score(self, game):
        _start_round(game)
        game.state.score = 9

        effects = self._deposit(game, 2300.0)

        assert game.score == 10
        assert effects.delta_score == 1
        assert game.state.max_concurrent_drops == 2

        game.state.score = 29
        self._deposit(game, 2400.0)

        assert game.state.max_concurrent_drops == 3

    def test_rewards_unlock_with_score(self, game):
        _start_round(game)
        game.state.score = 4

        self._deposit(game, 2300.0)
        assert len(game.state.rewards_unlocked) == 1

        game.state.score = 49
        self._deposit(game, 2400.0)
        assert len(game.state.rewards_unlocked) == 13
        assert sorted(game.snapshot().rewards_unlocked) == sorted(game.config.rewards.ids)


class TestInfo:
    """Test summary counters."""

    def test_get_info(self, game):
        _start_round(game)
        info = game.get_info()

        assert info["phase"] == "playing"
        assert info["score"] == 0
        assert info["lives"] == 3
        assert info["active_drops"] == 0
        assert info["max_concurrent_drops"] == 1


def _scripted_session(seed, frames=4000, frame_ms=16.0):
    """Run a random-input session and return every tick's cue names."""
    game = LeakGame(seed=seed)
    chooser = random.Random(seed)
    cues = []
    for frame in range(frames):
        if game.phase in (GamePhase.ATTRACT, GamePhase.GAME_OVER):
            game.request_start()
        action = chooser.choice([None, None, "left", "right"])
        if action == "left":
            game.move_left()
        elif action == "right":
            game.move_right()
        cues.append(game.tick(frame * frame_ms).cue_names)
    return game, cues


class TestDeterminism:
    """Same seed and inputs give the same game."""

    def test_same_seed_same_cues(self):
        game1, cues1 = _scripted_session(42)
        game2, cues2 = _scripted_session(42)

        assert cues1 == cues2
        assert game1.score == game2.score
        assert game1.high_score == game2.high_score


class TestInvariants:
    """Properties that hold on every tick of randomly played rounds."""

    @pytest.mark.parametrize("seed", [1, 7, 2024])
    def test_invariants_hold(self, seed, config):
        game = LeakGame(config, seed=seed)
        chooser = random.Random(seed)
        last_stage = {}
        last_cap = 1
        last_unlocked = []

        for frame in range(6000):
            if game.phase in (GamePhase.ATTRACT, GamePhase.GAME_OVER) and chooser.random() < 0.05:
                game.request_start()
                last_stage = {}
                last_cap = 1
                last_unlocked = []
            action = chooser.choice([None, None, None, "left", "right"])
            if action == "left":
                game.move_left()
            elif action == "right":
                game.move_right()

            effects = game.tick(frame * 16.0)
            state = game.state

            assert 0 <= state.lives <= config.lives.max_lives
            if state.lives == 0:
                assert state.phase == GamePhase.GAME_OVER

            assert len(state.drops) <= max(1, state.max_concurrent_drops)
            columns = [drop.column for drop in state.drops]
            assert len(columns) == len(set(columns))

            for drop in state.drops:
                assert 0 <= drop.stage <= config.drops.max_stage
                if drop.id in last_stage:
                    assert drop.stage - last_stage[drop.id] in (0, 1)
            last_stage = {drop.id: drop.stage for drop in state.drops}

            if state.phase == GamePhase.PLAYING:
                assert state.max_concurrent_drops >= last_cap
                last_cap = state.max_concurrent_drops
                assert state.rewards_unlocked[:len(last_unlocked)] == last_unlocked
                last_unlocked = list(state.rewards_unlocked)

            if any(not landing.caught for landing in effects.landings):
                assert state.drops == []
                assert all(leak.warning_phase == WarningPhase.IDLE for leak in state.leaks)

            assert config.drops.speed_factor_floor <= state.speed_factor <= config.drops.speed_factor_max


class TestZeroLengthBlinks:
    """Countdowns configured with no blinks finish immediately."""

    def _game(self, config, **phase_overrides):
        phases = replace(config.phases, **phase_overrides)
        return LeakGame(replace(config, phases=phases), rng=SequenceRandom())

    def test_start_without_countdown(self, config):
        game = self._game(config, start_blink_count=0)
        game.request_start()

        game.tick(0.0)

        assert game.phase == GamePhase.PLAYING
        assert game.state.start_blink is None
        assert all(leak.next_spawn_at == 1200.0 for leak in game.state.leaks)

    def test_game_over_without_blinks_holds_text(self, config):
        game = self._game(config, game_over_blink_count=0)
        _start_round(game)
        game.state.lives = 1
        _release_first_drop(game)
        _fall_to_last_stage(game)
        game.tick(FIRST_LANDING)

        game.tick(FIRST_LANDING + 16.0)

        assert game.phase == GamePhase.GAME_OVER
        assert game.state.game_over_blink is None
        assert game.snapshot().text("game")
        assert game.snapshot().text("over")
