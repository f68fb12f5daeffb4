"""PostgreSQL implementation of EnrollmentRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from progression.db.tables import EnrollmentRow
from progression.models.course import Enrollment


class PgEnrollmentRepo:
    """Satisfies the EnrollmentRepo Protocol using PostgreSQL."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, learner_id: UUID, course_id: UUID) -> Enrollment | None:
        stmt = select(EnrollmentRow).where(
            EnrollmentRow.learner_id == learner_id,
            EnrollmentRow.course_id == course_id,
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return Enrollment(
            learner_id=row.learner_id,
            course_id=row.course_id,
            enrolled_at=row.enrolled_at,
        )

    async def add_if_absent(self, enrollment: Enrollment) -> bool:
        stmt = (
            insert(EnrollmentRow)
            .values(
                learner_id=enrollment.learner_id,
                course_id=enrollment.course_id,
                enrolled_at=enrollment.enrolled_at,
            )
            .on_conflict_do_nothing(index_elements=["learner_id", "course_id"])
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    async def list_course_ids(self, learner_id: UUID) -> set[UUID]:
        stmt = select(EnrollmentRow.course_id).where(
            EnrollmentRow.learner_id == learner_id
        )
        return set((await self._session.execute(stmt)).scalars().all())
