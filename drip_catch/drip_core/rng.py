"""
RNG - Injectable Random Source
==============================

All randomness in the simulation (leak visit order, spawn jitter, reward
assignment) flows through a single RandomSource so a game can be replayed
exactly from its seed, or driven by a fixed sequence in tests.
"""

from __future__ import annotations

import random
from typing import Iterable, List, Optional, Sequence, TypeVar

T = TypeVar("T")


class RandomSource:
    """
    Seedable uniform source with the shuffle and jitter primitives used by
    scheduling.

    Subclasses only need to override ``random()``; everything else is
    derived from it so the whole draw order is reproducible.
    """

    def __init__(self, seed: Optional[int] = None):
        """
        Initialize random source.

        Args:
            seed: Random seed for reproducibility. Random if None.
        """
        self._seed = seed
        self._rng = random.Random(seed)

    @property
    def seed(self) -> Optional[int]:
        """Seed the source was created or last reset with."""
        return self._seed

    def random(self) -> float:
        """Uniform float in [0, 1)."""
        return self._rng.random()

    def uniform(self, low: float, high: float) -> float:
        """Uniform float in [low, high)."""
        return low + (high - low) * self.random()

    def jitter(self) -> float:
        """Uniform float in [-1, 1), used to perturb intervals."""
        return self.random() * 2.0 - 1.0

    def shuffled(self, items: Iterable[T]) -> List[T]:
        """
        Return a shuffled copy of ``items`` (Fisher-Yates).

        The input is never modified.
        """
        result = list(items)
        for i in range(len(result) - 1, 0, -1):
            j = int(self.random() * (i + 1))
            result[i], result[j] = result[j], result[i]
        return result

    def reset(self, seed: Optional[int] = None) -> None:
        """
        Reset the source with optional new seed.

        Args:
            seed: New random seed. Keeps current if None.
        """
        if seed is not None:
            self._seed = seed
        self._rng = random.Random(self._seed)


class SequenceRandom(RandomSource):
    """
    Deterministic source that replays a fixed list of uniform values.

    Values cycle once the sequence is exhausted. With the default of 0.5,
    jitter is always zero and every shuffle yields the same permutation.
    """

    def __init__(self, values: Sequence[float] = (0.5,)):
        super().__init__(seed=None)
        if not values:
            raise ValueError("SequenceRandom needs at least one value")
        for value in values:
            if not 0.0 <= value < 1.0:
                raise ValueError(f"Sequence values must be in [0, 1), got {value}")
        self._values = tuple(float(v) for v in values)
        self._index = 0

    def random(self) -> float:
        value = self._values[self._index % len(self._values)]
        self._index += 1
        return value

    @property
    def draws(self) -> int:
        """Number of values consumed so far."""
        return self._index

    def reset(self, seed: Optional[int] = None) -> None:
        self._index = 0


def make_random_source(
    seed: Optional[int] = None,
    rng: Optional[RandomSource] = None
) -> RandomSource:
    """Return ``rng`` if given, else a fresh seeded RandomSource."""
    if rng is not None:
        return rng
    return RandomSource(seed)
