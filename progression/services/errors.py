"""Domain errors raised by the engine services.

Services raise these; progression/api/errors.py maps each `kind` to an
HTTP status.  Extra context (blocking prerequisites, unknown question
ids, progress numbers) travels on the exception so the API can put it in
the response body.
"""

from __future__ import annotations

import datetime
from typing import Any
from uuid import UUID

from progression.models.course import BlockingCourse


class EngineError(Exception):
    kind = "engine_error"

    def details(self) -> dict[str, Any]:
        return {}


class NotFound(EngineError):
    kind = "not_found"

    def __init__(self, entity: str, entity_id: Any) -> None:
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class NotEnrolled(EngineError):
    kind = "not_enrolled"

    def __init__(self, learner_id: UUID, course_id: UUID) -> None:
        super().__init__(f"learner {learner_id} is not enrolled in course {course_id}")
        self.learner_id = learner_id
        self.course_id = course_id


class IneligibleEnrollment(EngineError):
    kind = "ineligible"

    def __init__(self, course_id: UUID, blocking: tuple[BlockingCourse, ...]) -> None:
        super().__init__(f"prerequisites not met for course {course_id}")
        self.course_id = course_id
        self.blocking = blocking

    def details(self) -> dict[str, Any]:
        return {
            "blocking": [
                {
                    "course_id": str(b.course_id),
                    "title": b.title,
                    "is_enrolled": b.is_enrolled,
                }
                for b in self.blocking
            ]
        }


class AlreadyEnrolled(EngineError):
    kind = "already_enrolled"

    def __init__(self, learner_id: UUID, course_id: UUID) -> None:
        super().__init__(f"learner {learner_id} already enrolled in course {course_id}")


class AlreadyGraded(EngineError):
    kind = "already_graded"

    def __init__(self, attempt_id: UUID) -> None:
        super().__init__(f"attempt {attempt_id} is already graded")
        self.attempt_id = attempt_id


class InvalidAnswerSet(EngineError):
    kind = "invalid_answer_set"

    def __init__(self, unknown_ids: list[str]) -> None:
        super().__init__("answers reference questions outside this quiz")
        self.unknown_ids = unknown_ids

    def details(self) -> dict[str, Any]:
        return {"unknown_ids": self.unknown_ids}


class CertificateUnavailable(EngineError):
    kind = "certificate_unavailable"

    def __init__(
        self, course_id: UUID, completed_lessons: int, total_lessons: int
    ) -> None:
        super().__init__(f"course {course_id} is not complete")
        self.completed_lessons = completed_lessons
        self.total_lessons = total_lessons

    def details(self) -> dict[str, Any]:
        return {
            "completed_lessons": self.completed_lessons,
            "total_lessons": self.total_lessons,
        }


class InvalidActivityDate(EngineError):
    kind = "invalid_activity_date"

    def __init__(self, activity_date: datetime.date, today: datetime.date) -> None:
        super().__init__(f"activity can only be recorded for today ({today})")
        self.activity_date = activity_date
        self.today = today

    def details(self) -> dict[str, Any]:
        return {"today": self.today.isoformat()}
