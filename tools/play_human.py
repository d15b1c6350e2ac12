"""
Human Play Mode
================

Play Drip Catch on a simulated LCD handheld. The screen is drawn only from
game snapshots and the sound cues returned by the core.

Controls:
    - Left/Right or A/D: Move the bucket
    - Space/Enter: Start a new game
    - R: Reset (clears the high score)
    - ESC: Quit

Usage:
    python -m tools.play_human [--seed SEED] [--width WIDTH] [--height HEIGHT]
"""

from __future__ import annotations

import argparse
import sys
from typing import Dict, List, Optional, Tuple

import numpy as np

try:
    import pygame
    PYGAME_AVAILABLE = True
except ImportError:
    PYGAME_AVAILABLE = False

from drip_catch.drip_core.config_loader import load_config, GameConfig
from drip_catch.drip_core.effects import Cue, TickEffects
from drip_catch.drip_core.game import LeakGame
from drip_catch.drip_core.phases import GamePhase
from drip_catch.drip_core.state_snapshot import GameSnapshot


# Cue -> (frequency Hz, duration ms)
CUE_TONES: Dict[Cue, Tuple[float, int]] = {
    Cue.DROP_STEP: (880.0, 25),
    Cue.BUCKET_FILL: (1320.0, 60),
    Cue.BUCKET_DUMP: (660.0, 120),
    Cue.DROP_MISS: (220.0, 250),
    Cue.GAME_OVER: (165.0, 600),
    Cue.START_FANFARE: (990.0, 300),
    Cue.SCORE: (1760.0, 40),
    Cue.MOVE_BLIP: (1100.0, 15),
}


class CueSounds:
    """
    Square-wave beeps for the core's sound cues.

    Silently disabled when no audio device is available.
    """

    def __init__(self, sample_rate: int = 22050, volume: float = 0.2):
        self._sounds: Dict[Cue, "pygame.mixer.Sound"] = {}
        try:
            pygame.mixer.init(frequency=sample_rate, size=-16, channels=1)
        except pygame.error as e:
            print(f"Sound disabled: {e}")
            return

        mixer = pygame.mixer.get_init()
        if mixer is None:
            print("Sound disabled: mixer unavailable")
            return

        # pygame.init() may already have opened the mixer in stereo
        sample_rate, _, channels = mixer
        for cue, (freq, duration) in CUE_TONES.items():
            samples = int(sample_rate * duration / 1000)
            t = np.arange(samples) / sample_rate
            wave = (np.sign(np.sin(2 * np.pi * freq * t)) * volume * 32767).astype(np.int16)
            if channels > 1:
                wave = np.repeat(wave[:, None], channels, axis=1)
            self._sounds[cue] = pygame.sndarray.make_sound(np.ascontiguousarray(wave))

    @property
    def enabled(self) -> bool:
        return bool(self._sounds)

    def play(self, effects: TickEffects) -> None:
        for cue in effects:
            sound = self._sounds.get(cue)
            if sound is not None:
                sound.play()


class LCDRenderer:
    """
    Segment-style renderer.

    Every element has a fixed place on the "glass" and is either lit or
    unlit, like the handheld it imitates.
    """

    def __init__(self, config: GameConfig, window_width: int, window_height: int):
        self._config = config
        self._window_width = window_width
        self._window_height = window_height

        # Colors - reflective LCD palette
        self._bg = (196, 206, 180)
        self._lit = (34, 40, 30)
        self._unlit = (182, 192, 168)
        self._water = (60, 90, 120)

        pygame.font.init()
        self._font_large = pygame.font.Font(None, 44)
        self._font_medium = pygame.font.Font(None, 28)
        self._font_small = pygame.font.Font(None, 20)

        self._calculate_layout()

    def _calculate_layout(self) -> None:
        """Place stations, pipe and drop stages on the glass."""
        num_positions = self._config.board.num_positions
        margin = 30
        self._station_width = (self._window_width - 2 * margin) // num_positions
        self._margin = margin

        self._pipe_y = 110
        self._player_y = self._window_height - 170
        stage_count = self._config.max_stage + 1
        self._stage_gap = (self._player_y - self._pipe_y - 60) / max(1, stage_count)

    def _station_x(self, position: int) -> int:
        return self._margin + position * self._station_width + self._station_width // 2

    def _stage_y(self, stage: int) -> int:
        return int(self._pipe_y + 40 + stage * self._stage_gap)

    def _color(self, lit: bool) -> Tuple[int, int, int]:
        return self._lit if lit else self._unlit

    def render(self, screen: pygame.Surface, snapshot: GameSnapshot, last_cue: Optional[str]) -> None:
        """Render one frame from a snapshot."""
        screen.fill(self._bg)

        self._draw_scores(screen, snapshot)
        self._draw_pipe(screen, snapshot)
        self._draw_drops(screen, snapshot)
        self._draw_player(screen, snapshot)
        self._draw_water(screen, snapshot)
        self._draw_rewards(screen, snapshot)
        self._draw_text(screen, snapshot)

        if last_cue:
            cue_text = self._font_small.render(last_cue, True, self._unlit)
            screen.blit(cue_text, (self._margin, self._window_height - 24))

    def _draw_scores(self, screen: pygame.Surface, snapshot: GameSnapshot) -> None:
        score = self._font_large.render(f"{snapshot.score:04d}", True, self._lit)
        screen.blit(score, (self._window_width - score.get_width() - self._margin, 20))

        high = self._font_small.render(f"HI {snapshot.high_score:04d}", True, self._lit)
        screen.blit(high, (self._window_width - high.get_width() - self._margin, 60))

        # Lives as small buckets
        for i in range(snapshot.max_lives):
            rect = pygame.Rect(self._margin + i * 26, 24, 18, 14)
            pygame.draw.rect(screen, self._color(i < snapshot.lives), rect, 0 if i < snapshot.lives else 2)

    def _draw_pipe(self, screen: pygame.Surface, snapshot: GameSnapshot) -> None:
        left = self._station_x(1) - self._station_width // 2
        right = self._window_width - self._margin
        pygame.draw.rect(screen, self._lit, pygame.Rect(left, self._pipe_y, right - left, 10))

        for column in snapshot.leak_columns:
            x = self._station_x(column)
            crack = [(x - 8, self._pipe_y + 10), (x, self._pipe_y + 22), (x + 8, self._pipe_y + 10)]
            pygame.draw.lines(screen, self._color(snapshot.crack_visible(column)), False, crack, 3)

    def _draw_drops(self, screen: pygame.Surface, snapshot: GameSnapshot) -> None:
        live = {(col, stage) for col, stage in snapshot.drops}
        for column in snapshot.leak_columns:
            x = self._station_x(column)
            for stage in range(self._config.max_stage + 1):
                y = self._stage_y(stage)
                lit = (column, stage) in live
                pygame.draw.ellipse(screen, self._color(lit), pygame.Rect(x - 7, y - 10, 14, 20))

    def _draw_player(self, screen: pygame.Surface, snapshot: GameSnapshot) -> None:
        for position in range(self._config.board.num_positions):
            x = self._station_x(position)
            lit = position == snapshot.player_position
            body = pygame.Rect(x - 14, self._player_y, 28, 44)
            pygame.draw.rect(screen, self._color(lit), body, 0 if lit else 2)

            bucket = pygame.Rect(x - 18, self._player_y - 18, 36, 16)
            bucket_lit = lit and snapshot.bucket_filled
            pygame.draw.rect(screen, self._color(bucket_lit), bucket, 0 if bucket_lit else 2)

        # Deposit station spill
        x = self._station_x(0)
        spill = snapshot.bucket_dump_active and snapshot.bucket_dump_blink_on
        pygame.draw.circle(screen, self._color(spill), (x, self._player_y + 70), 12, 0 if spill else 2)

    def _draw_water(self, screen: pygame.Surface, snapshot: GameSnapshot) -> None:
        levels = self._config.board.water_levels
        base_y = self._window_height - 40
        for level in range(levels):
            rect = pygame.Rect(self._margin, base_y - (level + 1) * 12, self._window_width - 2 * self._margin, 8)
            lit = level < snapshot.water_level
            pygame.draw.rect(screen, self._water if lit else self._unlit, rect)

    def _draw_rewards(self, screen: pygame.Surface, snapshot: GameSnapshot) -> None:
        unlocked = set(snapshot.rewards_unlocked)
        for i, reward_id in enumerate(self._config.rewards.ids):
            x = self._margin + 8 + i * 18
            pygame.draw.circle(screen, self._color(reward_id in unlocked), (x, 80), 6)

    def _draw_text(self, screen: pygame.Surface, snapshot: GameSnapshot) -> None:
        words: List[str] = [
            label for key, label in (("new", "NEW"), ("game", "GAME"), ("over", "OVER"))
            if snapshot.text(key)
        ]
        if snapshot.phase == GamePhase.ATTRACT and snapshot.attract_on:
            words = ["PRESS", "START"]
        if not words:
            return
        text = self._font_large.render(" ".join(words), True, self._lit)
        x = (self._window_width - text.get_width()) // 2
        screen.blit(text, (x, self._window_height // 2 - 20))


class HumanPlayer:
    """
    Keyboard-driven game loop.

    Feeds pygame's millisecond clock to ``LeakGame.tick`` once per frame.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        seed: Optional[int] = None,
        window_width: int = 520,
        window_height: int = 620,
        target_fps: int = 60,
        sound: bool = True
    ):
        if not PYGAME_AVAILABLE:
            raise ImportError("pygame required. Install: pip install pygame")

        if config is None:
            config = load_config()

        self._config = config
        self._seed = seed
        self._target_fps = target_fps

        self._game = LeakGame(config=config, seed=seed)

        pygame.init()
        self._screen = pygame.display.set_mode((window_width, window_height))
        pygame.display.set_caption("Drip Catch")
        self._clock = pygame.time.Clock()

        self._renderer = LCDRenderer(config, window_width, window_height)
        self._sounds = CueSounds() if sound else None

        self._running = True
        self._last_cue: Optional[str] = None
        self._last_phase = self._game.phase

    def run(self) -> int:
        """Run the game loop. Returns the high score."""
        print("=== Drip Catch ===")
        print("Left/Right (A/D) to move, Space/Enter to start")
        print("R to reset, ESC to quit")
        print()

        while self._running:
            self._handle_events()
            self._handle(self._game.tick(float(pygame.time.get_ticks())))
            self._report_phase_change()
            self._renderer.render(self._screen, self._game.snapshot(), self._last_cue)
            pygame.display.flip()
            self._clock.tick(self._target_fps)

        pygame.quit()
        return self._game.high_score

    def _handle(self, effects: TickEffects) -> None:
        if self._sounds is not None:
            self._sounds.play(effects)
        if effects.cues:
            self._last_cue = effects.cue_names[-1]
        if effects.delta_score > 0:
            print(f"  +{effects.delta_score} (Total: {self._game.score})")

    def _handle_events(self) -> None:
        """Process pygame events."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self._running = False

            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    self._running = False
                elif event.key in (pygame.K_LEFT, pygame.K_a):
                    self._handle(self._game.move_left())
                elif event.key in (pygame.K_RIGHT, pygame.K_d):
                    self._handle(self._game.move_right())
                elif event.key in (pygame.K_SPACE, pygame.K_RETURN):
                    self._handle(self._game.request_start())
                elif event.key == pygame.K_r:
                    self._game.reset(seed=self._seed)
                    print("\n=== Game Reset ===\n")

    def _report_phase_change(self) -> None:
        phase = self._game.phase
        if phase == self._last_phase:
            return
        if phase == GamePhase.GAME_OVER:
            print(f"\nGAME OVER - Score: {self._game.score} (High: {self._game.high_score})")
        elif phase == GamePhase.PLAYING:
            print("Go!")
        self._last_phase = phase


def main():
    parser = argparse.ArgumentParser(description="Play Drip Catch interactively")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--width", type=int, default=520, help="Window width (default: 520)")
    parser.add_argument("--height", type=int, default=620, help="Window height (default: 620)")
    parser.add_argument("--fps", type=int, default=60, help="Target FPS")
    parser.add_argument("--mute", action="store_true", help="Disable sound cues")

    args = parser.parse_args()

    try:
        config = load_config()
        player = HumanPlayer(
            config=config,
            seed=args.seed,
            window_width=args.width,
            window_height=args.height,
            target_fps=args.fps,
            sound=not args.mute
        )
        high_score = player.run()
        print(f"\nHigh Score: {high_score}")
        return 0
    except ImportError as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
