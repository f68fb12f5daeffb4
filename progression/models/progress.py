from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True, slots=True)
class LessonCompletion:
    """Per-learner, per-lesson ledger entry.

    `completed` toggles freely.  `xp_awarded` only ever goes from False to
    True: once set, the lesson's XP has been counted and undoing the
    completion does not claw it back.
    """

    learner_id: UUID
    lesson_id: UUID
    completed: bool = False
    xp_awarded: bool = False
    completed_at: int | None = None


@dataclass(frozen=True, slots=True)
class MarkResult:
    """Outcome of the store's conditional completion write."""

    completion: LessonCompletion
    was_completed: bool
    xp_flipped: bool


@dataclass(frozen=True, slots=True)
class CourseCompletion:
    """First time a learner's lesson set for a course reached 100%."""

    learner_id: UUID
    course_id: UUID
    completed_at: int


@dataclass(frozen=True, slots=True)
class CompletionResult:
    lesson_id: UUID
    course_id: UUID
    completed: bool
    xp_granted: int
    course_completed_now: bool


@dataclass(frozen=True, slots=True)
class CourseProgress:
    course_id: UUID
    completed_lessons: int
    total_lessons: int
    percent_complete: int

    @property
    def is_complete(self) -> bool:
        return self.total_lessons > 0 and self.completed_lessons == self.total_lessons


@dataclass(frozen=True, slots=True)
class Certificate:
    learner_id: UUID
    course_id: UUID
    course_title: str
    completed_at: int
