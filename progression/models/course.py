from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID, uuid4


@dataclass(frozen=True, slots=True)
class Course:
    """Catalog entry.  Authored outside the engine; read-only here."""

    id: UUID
    title: str
    is_published: bool = True
    # Direct prerequisites only; the edge set is assumed acyclic.
    prerequisite_ids: tuple[UUID, ...] = ()

    @staticmethod
    def new(
        *,
        title: str,
        is_published: bool = True,
        prerequisite_ids: tuple[UUID, ...] = (),
    ) -> Course:
        return Course(
            id=uuid4(),
            title=title,
            is_published=is_published,
            prerequisite_ids=prerequisite_ids,
        )


@dataclass(frozen=True, slots=True)
class Lesson:
    id: UUID
    course_id: UUID
    title: str
    position: int

    @staticmethod
    def new(*, course_id: UUID, title: str, position: int) -> Lesson:
        return Lesson(id=uuid4(), course_id=course_id, title=title, position=position)


@dataclass(frozen=True, slots=True)
class Enrollment:
    learner_id: UUID
    course_id: UUID
    enrolled_at: int


@dataclass(frozen=True, slots=True)
class BlockingCourse:
    """An unsatisfied prerequisite, as reported by the eligibility check."""

    course_id: UUID
    title: str
    is_enrolled: bool


@dataclass(frozen=True, slots=True)
class Eligibility:
    eligible: bool
    blocking: tuple[BlockingCourse, ...] = ()
