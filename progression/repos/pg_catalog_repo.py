"""PostgreSQL implementation of CatalogRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from progression.db.tables import CoursePrerequisiteRow, CourseRow, LessonRow
from progression.models.course import Course, Lesson


class PgCatalogRepo:
    """Satisfies the CatalogRepo Protocol using PostgreSQL."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_course(self, course_id: UUID) -> Course | None:
        stmt = select(CourseRow).where(CourseRow.id == course_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        prereq_stmt = select(CoursePrerequisiteRow.prerequisite_course_id).where(
            CoursePrerequisiteRow.course_id == course_id
        )
        prereq_ids = (await self._session.execute(prereq_stmt)).scalars().all()
        return _row_to_course(row, tuple(prereq_ids))

    async def get_lesson(self, lesson_id: UUID) -> Lesson | None:
        stmt = select(LessonRow).where(LessonRow.id == lesson_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_lesson(row)

    async def list_lessons(self, course_id: UUID) -> list[Lesson]:
        stmt = (
            select(LessonRow)
            .where(LessonRow.course_id == course_id)
            .order_by(LessonRow.position)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_lesson(r) for r in rows]


def _row_to_course(row: CourseRow, prerequisite_ids: tuple[UUID, ...]) -> Course:
    return Course(
        id=row.id,
        title=row.title,
        is_published=row.is_published,
        prerequisite_ids=prerequisite_ids,
    )


def _row_to_lesson(row: LessonRow) -> Lesson:
    return Lesson(
        id=row.id,
        course_id=row.course_id,
        title=row.title,
        position=row.position,
    )
