"""
Game Rules
==========

Handles life loss, the flood water level and player movement bounds.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from drip_catch.drip_core.config_loader import GameConfig, get_config
from drip_catch.drip_core.game_state import GameState
from drip_catch.drip_core.phases import GamePhase


@dataclass
class LifeLossResult:
    """Result of losing a life."""
    lives: int
    water_level: int
    game_over: bool


class LifeRules:
    """
    Life pool bookkeeping.

    - Lives are bounded to [0, max_lives]
    - Each lost life raises the water one level, up to the number of levels
    - Reaching zero lives ends the round
    """

    def __init__(self, config: Optional[GameConfig] = None):
        if config is None:
            config = get_config()

        self._max_lives = config.lives.max_lives
        self._water_levels = config.board.water_levels

    @property
    def max_lives(self) -> int:
        return self._max_lives

    def water_level_for(self, lives: int) -> int:
        """Flood level shown for a remaining life count."""
        lost = self._max_lives - lives
        return min(self._water_levels, max(0, lost))

    def lose_life(self, state: GameState) -> LifeLossResult:
        """
        Take one life from ``state``.

        Args:
            state: Game state, updated in place.

        Returns:
            LifeLossResult; ``game_over`` is True once no lives remain.
        """
        state.lives = max(0, min(self._max_lives, state.lives - 1))
        state.water_level = self.water_level_for(state.lives)
        return LifeLossResult(
            lives=state.lives,
            water_level=state.water_level,
            game_over=state.lives <= 0
        )


class PlayerRules:
    """
    Player station movement.

    Maps left/right requests to a station index clamped to the board.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        if config is None:
            config = get_config()

        self._num_positions = config.board.num_positions

    @property
    def deposit_position(self) -> int:
        """Station where a filled bucket is emptied."""
        return 0

    def clamp(self, position: int) -> int:
        return max(0, min(self._num_positions - 1, position))

    @staticmethod
    def can_control(phase: GamePhase) -> bool:
        """Movement is accepted while starting and playing only."""
        return phase in (GamePhase.STARTING, GamePhase.PLAYING)

    def move(self, state: GameState, delta: int) -> bool:
        """
        Shift the player by ``delta`` stations.

        Returns:
            True if the player actually moved.
        """
        if not self.can_control(state.phase):
            return False
        target = self.clamp(state.player_position + delta)
        if target == state.player_position:
            return False
        state.player_position = target
        return True


class GameRules:
    """
    Combined interface for all game rules.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        """
        Initialize game rules.

        Args:
            config: Game configuration. Uses default if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self.lives = LifeRules(config)
        self.player = PlayerRules(config)
