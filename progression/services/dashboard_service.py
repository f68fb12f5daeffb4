"""Read-side views for learner dashboards.

Nothing here writes to the store.  The leaderboard is the only cached
view; see cache.py for the invalidation story.
"""

from __future__ import annotations

import datetime
import json
import logging
from dataclasses import dataclass
from uuid import UUID

from progression.core.config import SETTINGS, Rewards
from progression.core.metrics import CACHE_OPERATIONS
from progression.models.gamification import Badge, LeaderboardEntry
from progression.models.progress import Certificate, CourseProgress
from progression.repos.store import Store
from progression.services.cache import (
    LEADERBOARD_CACHE_PREFIX,
    LEADERBOARD_CACHE_TTL,
    cache_service,
)
from progression.services.errors import CertificateUnavailable, NotEnrolled, NotFound
from progression.services.quiz_service import percentage_of
from progression.services.xp_service import level_for_xp, xp_for_next_level

logger = logging.getLogger(__name__)

DEFAULT_LEADERBOARD_SIZE = 50


@dataclass(frozen=True, slots=True)
class EarnedBadge:
    name: str
    description: str
    icon: str
    earned_at: int


@dataclass(frozen=True, slots=True)
class LearnerProfile:
    learner_id: UUID
    xp: int
    level: int
    xp_for_next_level: int
    current_streak: int
    longest_streak: int
    last_activity_date: datetime.date | None
    badges: tuple[EarnedBadge, ...]
    badge_catalog: tuple[Badge, ...]


async def course_progress(
    store: Store, learner_id: UUID, course_id: UUID
) -> CourseProgress:
    if await store.catalog.get_course(course_id) is None:
        raise NotFound("course", course_id)

    lessons = await store.catalog.list_lessons(course_id)
    completions = await store.completions.list_for_lessons(
        learner_id, [le.id for le in lessons]
    )
    done = sum(1 for c in completions if c.completed)
    total = len(lessons)
    return CourseProgress(
        course_id=course_id,
        completed_lessons=done,
        total_lessons=total,
        percent_complete=percentage_of(done, total),
    )


async def certificate(store: Store, learner_id: UUID, course_id: UUID) -> Certificate:
    course = await store.catalog.get_course(course_id)
    if course is None:
        raise NotFound("course", course_id)
    if await store.enrollments.get(learner_id, course_id) is None:
        raise NotEnrolled(learner_id, course_id)

    lessons = await store.catalog.list_lessons(course_id)
    completions = [
        c
        for c in await store.completions.list_for_lessons(
            learner_id, [le.id for le in lessons]
        )
        if c.completed
    ]
    if not lessons or len(completions) < len(lessons):
        raise CertificateUnavailable(course_id, len(completions), len(lessons))

    return Certificate(
        learner_id=learner_id,
        course_id=course_id,
        course_title=course.title,
        completed_at=max(c.completed_at or 0 for c in completions),
    )


async def gamification_profile(
    store: Store, learner_id: UUID, *, rewards: Rewards = SETTINGS.rewards
) -> LearnerProfile:
    profile = await store.profiles.get(learner_id)
    streak = await store.streaks.get(learner_id)
    catalog = await store.badges.list_all()
    by_id = {b.id: b for b in catalog}

    earned = tuple(
        EarnedBadge(
            name=by_id[g.badge_id].name,
            description=by_id[g.badge_id].description,
            icon=by_id[g.badge_id].icon,
            earned_at=g.earned_at,
        )
        for g in await store.badges.list_grants(learner_id)
        if g.badge_id in by_id
    )

    level = level_for_xp(profile.xp, rewards=rewards)
    return LearnerProfile(
        learner_id=learner_id,
        xp=profile.xp,
        level=level,
        xp_for_next_level=xp_for_next_level(level, rewards=rewards),
        current_streak=streak.current_streak,
        longest_streak=streak.longest_streak,
        last_activity_date=streak.last_activity_date,
        badges=earned,
        badge_catalog=tuple(catalog),
    )


async def leaderboard(
    store: Store,
    limit: int = DEFAULT_LEADERBOARD_SIZE,
    *,
    rewards: Rewards = SETTINGS.rewards,
) -> list[LeaderboardEntry]:
    """Top learners by XP, rank 1 first.  Read-through cached per limit."""
    cache_key = f"{LEADERBOARD_CACHE_PREFIX}{limit}"

    cached = await cache_service.get(cache_key)
    if cached is not None:
        CACHE_OPERATIONS.labels(operation="hit").inc()
        return [
            LeaderboardEntry(
                rank=e["rank"],
                learner_id=UUID(e["learner_id"]),
                xp=e["xp"],
                level=e["level"],
            )
            for e in json.loads(cached)
        ]

    CACHE_OPERATIONS.labels(operation="miss").inc()
    profiles = await store.profiles.top(limit)
    entries = [
        LeaderboardEntry(
            rank=i,
            learner_id=p.learner_id,
            xp=p.xp,
            level=level_for_xp(p.xp, rewards=rewards),
        )
        for i, p in enumerate(profiles, start=1)
    ]

    await cache_service.set(
        cache_key,
        json.dumps(
            [
                {
                    "rank": e.rank,
                    "learner_id": str(e.learner_id),
                    "xp": e.xp,
                    "level": e.level,
                }
                for e in entries
            ]
        ),
        LEADERBOARD_CACHE_TTL,
    )
    return entries
