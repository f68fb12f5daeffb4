"""Completion ledger storage.

The "award once" rule is enforced here, not in the service: the
`mark_completed` primitive both sets `completed` and flips `xp_awarded`
in one atomic step, reporting whether *this* call did the flip.  Two
near-simultaneous completions of the same lesson therefore cannot both
see `xp_awarded=False`.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Protocol
from uuid import UUID

from progression.models.progress import CourseCompletion, LessonCompletion, MarkResult


class CompletionRepo(Protocol):
    async def get(
        self, learner_id: UUID, lesson_id: UUID
    ) -> LessonCompletion | None: ...
    async def mark_completed(
        self, learner_id: UUID, lesson_id: UUID, now: int
    ) -> MarkResult: ...
    async def mark_incomplete(
        self, learner_id: UUID, lesson_id: UUID
    ) -> LessonCompletion | None: ...
    async def list_for_lessons(
        self, learner_id: UUID, lesson_ids: list[UUID]
    ) -> list[LessonCompletion]: ...
    async def record_course_completion(
        self, learner_id: UUID, course_id: UUID, now: int
    ) -> bool: ...
    async def get_course_completion(
        self, learner_id: UUID, course_id: UUID
    ) -> CourseCompletion | None: ...


class InMemoryCompletionRepo:
    # Every mutating method runs without an await between its read and its
    # write, so on the single-threaded event loop each one is atomic.

    def __init__(self) -> None:
        self._store: dict[tuple[UUID, UUID], LessonCompletion] = {}
        self._courses: dict[tuple[UUID, UUID], CourseCompletion] = {}

    async def get(self, learner_id: UUID, lesson_id: UUID) -> LessonCompletion | None:
        return self._store.get((learner_id, lesson_id))

    async def mark_completed(
        self, learner_id: UUID, lesson_id: UUID, now: int
    ) -> MarkResult:
        key = (learner_id, lesson_id)
        existing = self._store.get(key) or LessonCompletion(
            learner_id=learner_id, lesson_id=lesson_id
        )
        updated = replace(
            existing,
            completed=True,
            xp_awarded=True,
            completed_at=now if not existing.completed else existing.completed_at,
        )
        self._store[key] = updated
        return MarkResult(
            completion=updated,
            was_completed=existing.completed,
            xp_flipped=not existing.xp_awarded,
        )

    async def mark_incomplete(
        self, learner_id: UUID, lesson_id: UUID
    ) -> LessonCompletion | None:
        key = (learner_id, lesson_id)
        existing = self._store.get(key)
        if existing is None:
            return None
        # xp_awarded is left untouched: undo never revokes XP.
        updated = replace(existing, completed=False, completed_at=None)
        self._store[key] = updated
        return updated

    async def list_for_lessons(
        self, learner_id: UUID, lesson_ids: list[UUID]
    ) -> list[LessonCompletion]:
        return [
            self._store[(learner_id, lid)]
            for lid in lesson_ids
            if (learner_id, lid) in self._store
        ]

    async def record_course_completion(
        self, learner_id: UUID, course_id: UUID, now: int
    ) -> bool:
        key = (learner_id, course_id)
        if key in self._courses:
            return False
        self._courses[key] = CourseCompletion(
            learner_id=learner_id, course_id=course_id, completed_at=now
        )
        return True

    async def get_course_completion(
        self, learner_id: UUID, course_id: UUID
    ) -> CourseCompletion | None:
        return self._courses.get((learner_id, course_id))
