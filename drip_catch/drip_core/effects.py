"""
Tick Effects
============

Cue identifiers and the per-call result handed to the audio collaborator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List


class Cue(str, Enum):
    """Discrete "play this sound" events emitted by the core."""
    DROP_STEP = "drop-step"
    BUCKET_FILL = "bucket-fill"
    BUCKET_DUMP = "bucket-dump"
    DROP_MISS = "drop-miss"
    GAME_OVER = "game-over"
    START_FANFARE = "start-fanfare"
    SCORE = "score"
    MOVE_BLIP = "move-blip"


@dataclass
class LandingResult:
    """Outcome of a drop reaching the floor."""
    drop_id: int
    column: int
    caught: bool
    time: float
    had_simultaneous: bool = False

    def __repr__(self) -> str:
        outcome = "caught" if self.caught else "missed"
        return f"LandingResult(drop={self.drop_id}, col={self.column}, {outcome})"


@dataclass
class TickEffects:
    """
    Ordered side effects of one core call.

    ``cues`` keeps emission order; the audio collaborator plays them
    fire-and-forget.
    """
    cues: List[Cue] = field(default_factory=list)
    landings: List[LandingResult] = field(default_factory=list)
    delta_score: int = 0

    def emit(self, cue: Cue) -> None:
        self.cues.append(cue)

    @property
    def cue_names(self) -> List[str]:
        """Cue identifiers as plain strings."""
        return [cue.value for cue in self.cues]

    def __iter__(self) -> Iterator[Cue]:
        return iter(self.cues)

    def __len__(self) -> int:
        return len(self.cues)

    def __contains__(self, cue: object) -> bool:
        return cue in self.cues
