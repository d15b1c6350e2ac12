"""
Phases
======

Top-level game phases and the countdown blink used by Starting and GameOver.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class GamePhase(str, Enum):
    ATTRACT = "attract"
    STARTING = "starting"
    PLAYING = "playing"
    GAME_OVER = "game-over"


@dataclass
class BlinkSequence:
    """
    Fixed number of on/off toggles at a constant interval.

    ``next_toggle`` of None means the first toggle is scheduled on the next
    update, relative to that update's timestamp.
    """
    remaining: int
    interval: float
    on: bool = True
    next_toggle: Optional[float] = None

    @classmethod
    def for_count(
        cls,
        count: int,
        interval: float,
        now: Optional[float] = None
    ) -> "BlinkSequence":
        """Sequence of ``count`` full blinks (two toggles each)."""
        next_toggle = None if now is None else now + interval
        return cls(remaining=count * 2, interval=interval, next_toggle=next_toggle)

    @property
    def finished(self) -> bool:
        return self.remaining <= 0

    def update(self, now: float) -> bool:
        """
        Advance the sequence.

        Args:
            now: Current timestamp.

        Returns:
            True if a toggle happened on this update.
        """
        if self.next_toggle is None:
            self.next_toggle = now + self.interval
            return False
        if self.finished or now < self.next_toggle:
            return False
        self.on = not self.on
        self.next_toggle = now + self.interval
        self.remaining -= 1
        return True


@dataclass
class Toggle:
    """Endless on/off toggle (attract mode, bucket dump spill)."""
    interval: float
    on: bool = True
    next_toggle: Optional[float] = None

    def update(self, now: float) -> bool:
        if self.next_toggle is None:
            self.next_toggle = now + self.interval
            return False
        if now < self.next_toggle:
            return False
        self.on = not self.on
        self.next_toggle = now + self.interval
        return True
