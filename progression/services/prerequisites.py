"""Prerequisite resolution.

A prerequisite course counts as satisfied once the learner has completed
every one of its lessons.  Only a course's direct prerequisites gate
enrollment; prerequisites of prerequisites are not walked.
"""

from __future__ import annotations

import logging
from uuid import UUID

from progression.models.course import BlockingCourse, Eligibility
from progression.repos.store import Store
from progression.services.errors import NotFound

logger = logging.getLogger(__name__)


async def is_course_complete(store: Store, learner_id: UUID, course_id: UUID) -> bool:
    """True when every lesson of the course is completed (vacuous for none)."""
    lessons = await store.catalog.list_lessons(course_id)
    if not lessons:
        return True
    completions = await store.completions.list_for_lessons(
        learner_id, [le.id for le in lessons]
    )
    done = {c.lesson_id for c in completions if c.completed}
    return all(le.id in done for le in lessons)


async def can_enroll(store: Store, learner_id: UUID, course_id: UUID) -> Eligibility:
    course = await store.catalog.get_course(course_id)
    if course is None:
        raise NotFound("course", course_id)

    if not course.prerequisite_ids:
        return Eligibility(eligible=True)

    enrolled = await store.enrollments.list_course_ids(learner_id)
    blocking: list[BlockingCourse] = []
    for prereq_id in course.prerequisite_ids:
        if await is_course_complete(store, learner_id, prereq_id):
            continue
        prereq = await store.catalog.get_course(prereq_id)
        blocking.append(
            BlockingCourse(
                course_id=prereq_id,
                title=prereq.title if prereq is not None else "",
                is_enrolled=prereq_id in enrolled,
            )
        )

    if blocking:
        logger.info(
            "Enrollment blocked learner=%s course=%s blocking=%d",
            learner_id,
            course_id,
            len(blocking),
        )
    return Eligibility(eligible=not blocking, blocking=tuple(blocking))
