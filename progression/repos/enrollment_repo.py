from __future__ import annotations

from typing import Protocol
from uuid import UUID

from progression.models.course import Enrollment


class EnrollmentRepo(Protocol):
    async def get(self, learner_id: UUID, course_id: UUID) -> Enrollment | None: ...
    async def add_if_absent(self, enrollment: Enrollment) -> bool: ...
    async def list_course_ids(self, learner_id: UUID) -> set[UUID]: ...


class InMemoryEnrollmentRepo:
    def __init__(self) -> None:
        self._store: dict[tuple[UUID, UUID], Enrollment] = {}

    async def get(self, learner_id: UUID, course_id: UUID) -> Enrollment | None:
        return self._store.get((learner_id, course_id))

    async def add_if_absent(self, enrollment: Enrollment) -> bool:
        key = (enrollment.learner_id, enrollment.course_id)
        if key in self._store:
            return False
        self._store[key] = enrollment
        return True

    async def list_course_ids(self, learner_id: UUID) -> set[UUID]:
        return {course_id for (lid, course_id) in self._store if lid == learner_id}
