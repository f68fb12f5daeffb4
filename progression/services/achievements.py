"""Achievement flows: what happens when a learner finishes something.

These functions compose the single-purpose components in a fixed order:

  ledger / grader -> streak -> XP -> event badges -> XP-milestone badges

Streak activity is recorded before XP so the award carries today's
bonus.  On Postgres every step runs in the request's transaction, so a
failure part-way leaves none of the updates behind.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from uuid import UUID

from progression.core.config import SETTINGS, Rewards
from progression.models.gamification import StreakUpdate, XpAward
from progression.models.quiz import QuizAttempt
from progression.repos.store import Store
from progression.services import (
    badge_service,
    completion_ledger,
    quiz_service,
    streak_service,
    xp_service,
)

logger = logging.getLogger(__name__)

FIRST_LESSON_BADGE = "Busy Bee"
QUIZ_PASSED_BADGE = "Quiz Whiz"
COURSE_COMPLETED_BADGE = "Honey Hunter"


@dataclass(frozen=True, slots=True)
class LessonAchievement:
    lesson_id: UUID
    course_id: UUID
    completed: bool
    xp_gained: int
    streak_bonus: int
    streak: StreakUpdate | None
    course_completed: bool
    badges_granted: tuple[str, ...]
    total_xp: int
    level: int


@dataclass(frozen=True, slots=True)
class QuizSubmission:
    attempt: QuizAttempt
    xp_gained: int
    streak_bonus: int
    streak: StreakUpdate
    badges_granted: tuple[str, ...]
    total_xp: int
    level: int


async def _grant(store: Store, learner_id: UUID, name: str, granted: list[str]) -> None:
    result = await badge_service.grant_badge_if_absent(store, learner_id, name)
    if result.granted:
        granted.append(result.badge_name)


async def complete_lesson(
    store: Store,
    learner_id: UUID,
    lesson_id: UUID,
    completed: bool,
    today: datetime.date | None = None,
    *,
    rewards: Rewards = SETTINGS.rewards,
) -> LessonAchievement:
    result = await completion_ledger.set_lesson_completion(
        store, learner_id, lesson_id, completed, rewards=rewards
    )

    streak = None
    if result.completed:
        streak = await streak_service.record_activity(
            store, learner_id, today or streak_service.today_utc()
        )

    awards: list[XpAward] = []
    badges: list[str] = []

    if result.xp_granted > 0:
        awards.append(
            await xp_service.add_xp(
                store,
                learner_id,
                result.xp_granted,
                "lesson_completed",
                rewards=rewards,
            )
        )
        await _grant(store, learner_id, FIRST_LESSON_BADGE, badges)

    course_completed = False
    if result.course_completed_now:
        now = int(datetime.datetime.now(datetime.UTC).timestamp())
        course_completed = await store.completions.record_course_completion(
            learner_id, result.course_id, now
        )
        if course_completed:
            awards.append(
                await xp_service.add_xp(
                    store,
                    learner_id,
                    rewards.course_completion_xp,
                    "course_completed",
                    rewards=rewards,
                )
            )
            await _grant(store, learner_id, COURSE_COMPLETED_BADGE, badges)

    if awards:
        total_xp = awards[-1].new_total
        badges.extend(
            await badge_service.grant_threshold_badges(store, learner_id, total_xp)
        )
    else:
        total_xp = (await store.profiles.get(learner_id)).xp

    return LessonAchievement(
        lesson_id=lesson_id,
        course_id=result.course_id,
        completed=result.completed,
        xp_gained=sum(a.total_awarded for a in awards),
        streak_bonus=sum(a.streak_bonus for a in awards),
        streak=streak,
        course_completed=course_completed,
        badges_granted=tuple(badges),
        total_xp=total_xp,
        level=xp_service.level_for_xp(total_xp, rewards=rewards),
    )


async def submit_quiz(
    store: Store,
    learner_id: UUID,
    quiz_id: UUID,
    answers: Mapping[str, str | None],
    attempt_id: UUID | None = None,
    today: datetime.date | None = None,
    *,
    rewards: Rewards = SETTINGS.rewards,
) -> QuizSubmission:
    attempt = await quiz_service.grade_attempt(
        store, learner_id, quiz_id, answers, attempt_id
    )
    streak = await streak_service.record_activity(
        store, learner_id, today or streak_service.today_utc()
    )

    badges: list[str] = []
    award = None
    quiz_xp = attempt.score // rewards.quiz_xp_divisor
    if quiz_xp > 0:
        award = await xp_service.add_xp(
            store, learner_id, quiz_xp, "quiz_graded", rewards=rewards
        )
    if attempt.passed:
        await _grant(store, learner_id, QUIZ_PASSED_BADGE, badges)

    if award is not None:
        total_xp = award.new_total
        badges.extend(
            await badge_service.grant_threshold_badges(store, learner_id, total_xp)
        )
    else:
        total_xp = (await store.profiles.get(learner_id)).xp

    return QuizSubmission(
        attempt=attempt,
        xp_gained=award.total_awarded if award is not None else 0,
        streak_bonus=award.streak_bonus if award is not None else 0,
        streak=streak,
        badges_granted=tuple(badges),
        total_xp=total_xp,
        level=xp_service.level_for_xp(total_xp, rewards=rewards),
    )
