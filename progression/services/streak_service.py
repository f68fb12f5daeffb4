"""Daily activity streaks.

`advance` is the pure rule; `record_activity` applies it through the
repo's atomic read-modify-write so two requests for the same learner
cannot interleave between reading and writing the streak.
"""

from __future__ import annotations

import datetime
import logging
from dataclasses import replace
from uuid import UUID

from progression.models.gamification import Streak, StreakUpdate
from progression.repos.store import Store

logger = logging.getLogger(__name__)


def today_utc() -> datetime.date:
    return datetime.datetime.now(datetime.UTC).date()


def advance(streak: Streak, activity_date: datetime.date) -> Streak:
    """Return the streak after activity on `activity_date`.

    Same day or an earlier date: unchanged.  The next calendar day:
    +1.  Any later day, or the first activity ever: restart at 1.
    """
    last = streak.last_activity_date
    if last is not None and activity_date <= last:
        return streak

    if last is not None and (activity_date - last).days == 1:
        current = streak.current_streak + 1
    else:
        current = 1

    return replace(
        streak,
        current_streak=current,
        longest_streak=max(streak.longest_streak, current),
        last_activity_date=activity_date,
    )


async def record_activity(
    store: Store, learner_id: UUID, activity_date: datetime.date
) -> StreakUpdate:
    before, after = await store.streaks.apply(
        learner_id, lambda s: advance(s, activity_date)
    )
    increased = after.current_streak > before.current_streak
    if after != before:
        logger.info(
            "Streak updated learner=%s current=%d longest=%d",
            learner_id,
            after.current_streak,
            after.longest_streak,
        )
    return StreakUpdate(
        current_streak=after.current_streak,
        longest_streak=after.longest_streak,
        streak_increased=increased,
        last_activity_date=after.last_activity_date,
    )
