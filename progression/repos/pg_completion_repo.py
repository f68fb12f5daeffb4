"""PostgreSQL implementation of CompletionRepo.

`mark_completed` runs inside the request transaction:

1. INSERT the ledger row if missing (ON CONFLICT DO NOTHING);
2. SELECT ... FOR UPDATE to read the prior `completed` flag;
3. UPDATE completed / completed_at;
4. UPDATE ... SET xp_awarded = true WHERE xp_awarded = false RETURNING.

Step 4 is the award-once guard.  The row lock from step 2 serializes
concurrent completions of the same lesson, and the WHERE clause means
only the first of them gets a row back.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from progression.db.tables import CourseCompletionRow, LessonProgressRow
from progression.models.progress import CourseCompletion, LessonCompletion, MarkResult


class PgCompletionRepo:
    """Satisfies the CompletionRepo Protocol using PostgreSQL."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, learner_id: UUID, lesson_id: UUID) -> LessonCompletion | None:
        stmt = select(LessonProgressRow).where(
            LessonProgressRow.learner_id == learner_id,
            LessonProgressRow.lesson_id == lesson_id,
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_completion(row)

    async def mark_completed(
        self, learner_id: UUID, lesson_id: UUID, now: int
    ) -> MarkResult:
        await self._session.execute(
            insert(LessonProgressRow)
            .values(
                learner_id=learner_id,
                lesson_id=lesson_id,
                completed=False,
                xp_awarded=False,
            )
            .on_conflict_do_nothing(index_elements=["learner_id", "lesson_id"])
        )

        locked = (
            await self._session.execute(
                select(LessonProgressRow.completed, LessonProgressRow.completed_at)
                .where(
                    LessonProgressRow.learner_id == learner_id,
                    LessonProgressRow.lesson_id == lesson_id,
                )
                .with_for_update()
            )
        ).one()
        was_completed, previous_completed_at = locked

        await self._session.execute(
            update(LessonProgressRow)
            .where(
                LessonProgressRow.learner_id == learner_id,
                LessonProgressRow.lesson_id == lesson_id,
            )
            .values(
                completed=True,
                completed_at=previous_completed_at if was_completed else now,
            )
        )

        flipped = (
            await self._session.execute(
                update(LessonProgressRow)
                .where(
                    LessonProgressRow.learner_id == learner_id,
                    LessonProgressRow.lesson_id == lesson_id,
                    LessonProgressRow.xp_awarded.is_(False),
                )
                .values(xp_awarded=True)
                .returning(LessonProgressRow.lesson_id)
            )
        ).scalar_one_or_none()

        completion = LessonCompletion(
            learner_id=learner_id,
            lesson_id=lesson_id,
            completed=True,
            xp_awarded=True,
            completed_at=previous_completed_at if was_completed else now,
        )
        return MarkResult(
            completion=completion,
            was_completed=was_completed,
            xp_flipped=flipped is not None,
        )

    async def mark_incomplete(
        self, learner_id: UUID, lesson_id: UUID
    ) -> LessonCompletion | None:
        stmt = (
            update(LessonProgressRow)
            .where(
                LessonProgressRow.learner_id == learner_id,
                LessonProgressRow.lesson_id == lesson_id,
            )
            .values(completed=False, completed_at=None)
            .returning(LessonProgressRow)
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_completion(row)

    async def list_for_lessons(
        self, learner_id: UUID, lesson_ids: list[UUID]
    ) -> list[LessonCompletion]:
        if not lesson_ids:
            return []
        stmt = select(LessonProgressRow).where(
            LessonProgressRow.learner_id == learner_id,
            LessonProgressRow.lesson_id.in_(lesson_ids),
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_completion(r) for r in rows]

    async def record_course_completion(
        self, learner_id: UUID, course_id: UUID, now: int
    ) -> bool:
        stmt = (
            insert(CourseCompletionRow)
            .values(learner_id=learner_id, course_id=course_id, completed_at=now)
            .on_conflict_do_nothing(index_elements=["learner_id", "course_id"])
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    async def get_course_completion(
        self, learner_id: UUID, course_id: UUID
    ) -> CourseCompletion | None:
        stmt = select(CourseCompletionRow).where(
            CourseCompletionRow.learner_id == learner_id,
            CourseCompletionRow.course_id == course_id,
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return CourseCompletion(
            learner_id=row.learner_id,
            course_id=row.course_id,
            completed_at=row.completed_at,
        )


def _row_to_completion(row: LessonProgressRow) -> LessonCompletion:
    return LessonCompletion(
        learner_id=row.learner_id,
        lesson_id=row.lesson_id,
        completed=row.completed,
        xp_awarded=row.xp_awarded,
        completed_at=row.completed_at,
    )
