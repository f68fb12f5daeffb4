from __future__ import annotations

from typing import Protocol
from uuid import UUID

from progression.models.course import Course, Lesson


class CatalogRepo(Protocol):
    """Read-only view of courses and lessons authored outside the engine."""

    async def get_course(self, course_id: UUID) -> Course | None: ...
    async def get_lesson(self, lesson_id: UUID) -> Lesson | None: ...
    async def list_lessons(self, course_id: UUID) -> list[Lesson]: ...


class InMemoryCatalogRepo:
    def __init__(self) -> None:
        self._courses: dict[UUID, Course] = {}
        self._lessons: dict[UUID, Lesson] = {}

    # --- seeding (stands in for the external authoring screens) ---

    def add_course(self, course: Course) -> None:
        if course.id in course.prerequisite_ids:
            raise ValueError("a course cannot be its own prerequisite")
        self._courses[course.id] = course

    def add_lesson(self, lesson: Lesson) -> None:
        if lesson.course_id not in self._courses:
            raise KeyError("course not found")
        self._lessons[lesson.id] = lesson

    # --- CatalogRepo ---

    async def get_course(self, course_id: UUID) -> Course | None:
        return self._courses.get(course_id)

    async def get_lesson(self, lesson_id: UUID) -> Lesson | None:
        return self._lessons.get(lesson_id)

    async def list_lessons(self, course_id: UUID) -> list[Lesson]:
        lessons = [le for le in self._lessons.values() if le.course_id == course_id]
        return sorted(lessons, key=lambda le: le.position)
