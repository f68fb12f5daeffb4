"""XP and level accounting.

This module is the only writer of a learner's XP total.  Level is never
stored; it is derived from XP on read.
"""

from __future__ import annotations

import logging
from uuid import UUID

from progression.core.config import SETTINGS, Rewards
from progression.core.metrics import XP_AWARDED
from progression.models.gamification import XpAward
from progression.repos.store import Store
from progression.services.cache import LEADERBOARD_CACHE_PREFIX, cache_service

logger = logging.getLogger(__name__)


def level_for_xp(xp: int, *, rewards: Rewards = SETTINGS.rewards) -> int:
    return xp // rewards.xp_per_level + 1


def xp_for_next_level(level: int, *, rewards: Rewards = SETTINGS.rewards) -> int:
    """Total XP at which `level` ends and the next one begins."""
    return level * rewards.xp_per_level


def streak_bonus_for(
    current_streak: int, *, rewards: Rewards = SETTINGS.rewards
) -> int:
    if current_streak <= 1:
        return 0
    return min(current_streak * rewards.streak_bonus_per_day, rewards.streak_bonus_cap)


async def add_xp(
    store: Store,
    learner_id: UUID,
    base_amount: int,
    reason: str,
    *,
    rewards: Rewards = SETTINGS.rewards,
) -> XpAward:
    """Add `base_amount` plus the current streak bonus to the learner's XP.

    Record the day's activity before calling this so the bonus reflects
    today's streak.
    """
    if base_amount < 0:
        raise ValueError("base_amount must be non-negative")

    streak = await store.streaks.get(learner_id)
    bonus = streak_bonus_for(streak.current_streak, rewards=rewards)
    total = base_amount + bonus
    new_total = await store.profiles.increment_xp(learner_id, total)

    async def _publish() -> None:
        XP_AWARDED.labels(reason=reason).inc(total)
        await cache_service.delete_pattern(f"{LEADERBOARD_CACHE_PREFIX}*")

    await store.after_commit(_publish)

    new_level = level_for_xp(new_total, rewards=rewards)
    logger.info(
        "XP awarded learner=%s reason=%s base=%d bonus=%d total=%d level=%d",
        learner_id,
        reason,
        base_amount,
        bonus,
        new_total,
        new_level,
    )
    return XpAward(
        reason=reason,
        base_amount=base_amount,
        streak_bonus=bonus,
        total_awarded=total,
        new_total=new_total,
        new_level=new_level,
    )
