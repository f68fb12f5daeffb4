from __future__ import annotations

import datetime
import logging
from uuid import UUID

from progression.core.metrics import ENROLLMENTS
from progression.models.course import Enrollment
from progression.repos.store import Store
from progression.services.errors import AlreadyEnrolled, IneligibleEnrollment, NotFound
from progression.services.prerequisites import can_enroll

logger = logging.getLogger(__name__)


async def enroll(store: Store, learner_id: UUID, course_id: UUID) -> Enrollment:
    """Enroll a learner after checking the course's direct prerequisites.

    Enrollments are permanent; there is no un-enroll.
    """
    course = await store.catalog.get_course(course_id)
    if course is None or not course.is_published:
        raise NotFound("course", course_id)

    if await store.enrollments.get(learner_id, course_id) is not None:
        ENROLLMENTS.labels(result="already_enrolled").inc()
        raise AlreadyEnrolled(learner_id, course_id)

    eligibility = await can_enroll(store, learner_id, course_id)
    if not eligibility.eligible:
        ENROLLMENTS.labels(result="ineligible").inc()
        raise IneligibleEnrollment(course_id, eligibility.blocking)

    enrollment = Enrollment(
        learner_id=learner_id,
        course_id=course_id,
        enrolled_at=int(datetime.datetime.now(datetime.UTC).timestamp()),
    )
    if not await store.enrollments.add_if_absent(enrollment):
        # Lost a race with a concurrent enroll for the same pair.
        ENROLLMENTS.labels(result="already_enrolled").inc()
        raise AlreadyEnrolled(learner_id, course_id)

    async def _record() -> None:
        ENROLLMENTS.labels(result="enrolled").inc()

    await store.after_commit(_record)
    logger.info("Enrolled learner=%s course=%s", learner_id, course_id)
    return enrollment
