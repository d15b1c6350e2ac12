"""
Reward Scheduler
================

Assigns each reward identifier a score threshold at the start of a round and
unlocks rewards as the score passes them.
"""

from __future__ import annotations

import logging
import math
from typing import Dict, List, Optional

from drip_catch.drip_core.config_loader import GameConfig, get_config
from drip_catch.drip_core.rng import RandomSource

logger = logging.getLogger(__name__)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class RewardScheduler:
    """
    Score-threshold unlock sequence.

    Thresholds are spread linearly between ``score_start`` and ``score_end``
    over a shuffled order of ids, each nudged by up to ``score_jitter`` and
    clamped back into range. Unlocks are monotonic for the round.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        rng: Optional[RandomSource] = None
    ):
        if config is None:
            config = get_config()

        self._config = config.rewards
        self._rng = rng if rng is not None else RandomSource()

    def build_schedule(self) -> Dict[str, int]:
        """
        Build a fresh id -> target score schedule.

        Returns:
            Mapping in shuffled assignment order.
        """
        ids = self._rng.shuffled(self._config.ids)
        if not ids:
            return {}

        start = self._config.score_start
        end = max(start, self._config.score_end)
        jitter = max(0, self._config.score_jitter)
        count = len(ids)

        schedule: Dict[str, int] = {}
        for idx, reward_id in enumerate(ids):
            # Linear spread from start to end across the shuffled order
            offset = 0.0 if count <= 1 else idx * (end - start) / (count - 1)
            target = _round_half_up(start + offset)
            if jitter > 0:
                target += _round_half_up(self._rng.jitter() * jitter)
            schedule[reward_id] = max(start, min(end, target))
        return schedule

    def unlock(
        self,
        score: int,
        schedule: Dict[str, int],
        unlocked: List[str]
    ) -> List[str]:
        """
        Unlock every scheduled reward whose target ``score`` has reached.

        Args:
            score: Current score.
            schedule: id -> target score.
            unlocked: Already-unlocked ids; extended in place.

        Returns:
            Ids newly unlocked by this call.
        """
        already = set(unlocked)
        newly = [
            reward_id for reward_id, target in schedule.items()
            if score >= target and reward_id not in already
        ]
        if newly:
            unlocked.extend(newly)
            logger.debug("Rewards unlocked at score %d: %s", score, newly)
        return newly
