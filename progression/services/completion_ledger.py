"""Per-lesson completion ledger.

The ledger decides *whether* lesson XP is due; it never touches the XP
total itself.  Callers pass `xp_granted` on to xp_service.add_xp.
"""

from __future__ import annotations

import datetime
import logging
from uuid import UUID

from progression.core.config import SETTINGS, Rewards
from progression.models.progress import CompletionResult
from progression.repos.store import Store
from progression.services.errors import NotEnrolled, NotFound
from progression.services.prerequisites import is_course_complete

logger = logging.getLogger(__name__)


async def set_lesson_completion(
    store: Store,
    learner_id: UUID,
    lesson_id: UUID,
    completed: bool,
    *,
    rewards: Rewards = SETTINGS.rewards,
) -> CompletionResult:
    lesson = await store.catalog.get_lesson(lesson_id)
    if lesson is None:
        raise NotFound("lesson", lesson_id)
    if await store.enrollments.get(learner_id, lesson.course_id) is None:
        logger.warning(
            "Completion rejected, not enrolled learner=%s course=%s",
            learner_id,
            lesson.course_id,
        )
        raise NotEnrolled(learner_id, lesson.course_id)

    if not completed:
        await store.completions.mark_incomplete(learner_id, lesson_id)
        logger.info(
            "Lesson marked incomplete learner=%s lesson=%s", learner_id, lesson_id
        )
        return CompletionResult(
            lesson_id=lesson_id,
            course_id=lesson.course_id,
            completed=False,
            xp_granted=0,
            course_completed_now=False,
        )

    now = int(datetime.datetime.now(datetime.UTC).timestamp())
    mark = await store.completions.mark_completed(learner_id, lesson_id, now)
    xp_granted = rewards.lesson_xp if mark.xp_flipped else 0

    # Only a call that actually flipped this lesson to complete can have
    # moved the course from below 100% to 100%.
    course_completed_now = False
    if not mark.was_completed:
        course_completed_now = await is_course_complete(
            store, learner_id, lesson.course_id
        )

    logger.info(
        "Lesson completed learner=%s lesson=%s xp_granted=%d course_completed=%s",
        learner_id,
        lesson_id,
        xp_granted,
        course_completed_now,
    )
    return CompletionResult(
        lesson_id=lesson_id,
        course_id=lesson.course_id,
        completed=True,
        xp_granted=xp_granted,
        course_completed_now=course_completed_now,
    )
