"""PostgreSQL implementations of ProfileRepo and StreakRepo."""

from __future__ import annotations

from collections.abc import Callable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from progression.db.tables import GamificationProfileRow, StreakRow
from progression.models.gamification import GamificationProfile, Streak


class PgProfileRepo:
    """Satisfies the ProfileRepo Protocol using PostgreSQL."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, learner_id: UUID) -> GamificationProfile:
        stmt = select(GamificationProfileRow).where(
            GamificationProfileRow.learner_id == learner_id
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return GamificationProfile(learner_id=learner_id)
        return GamificationProfile(learner_id=row.learner_id, xp=row.xp)

    async def increment_xp(self, learner_id: UUID, amount: int) -> int:
        """Add `amount` in one upsert; the increment happens server-side."""
        stmt = insert(GamificationProfileRow).values(learner_id=learner_id, xp=amount)
        stmt = stmt.on_conflict_do_update(
            index_elements=["learner_id"],
            set_={"xp": GamificationProfileRow.xp + stmt.excluded.xp},
        ).returning(GamificationProfileRow.xp)
        return (await self._session.execute(stmt)).scalar_one()

    async def top(self, limit: int) -> list[GamificationProfile]:
        stmt = (
            select(GamificationProfileRow)
            .order_by(
                GamificationProfileRow.xp.desc(), GamificationProfileRow.learner_id
            )
            .limit(limit)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [GamificationProfile(learner_id=r.learner_id, xp=r.xp) for r in rows]


class PgStreakRepo:
    """Satisfies the StreakRepo Protocol using PostgreSQL."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, learner_id: UUID) -> Streak:
        stmt = select(StreakRow).where(StreakRow.learner_id == learner_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return Streak(learner_id=learner_id)
        return _row_to_streak(row)

    async def apply(
        self, learner_id: UUID, step: Callable[[Streak], Streak]
    ) -> tuple[Streak, Streak]:
        await self._session.execute(
            insert(StreakRow)
            .values(learner_id=learner_id, current_streak=0, longest_streak=0)
            .on_conflict_do_nothing(index_elements=["learner_id"])
        )
        stmt = (
            select(StreakRow)
            .where(StreakRow.learner_id == learner_id)
            .with_for_update()
        )
        row = (await self._session.execute(stmt)).scalar_one()
        before = _row_to_streak(row)
        after = step(before)

        row.current_streak = after.current_streak
        row.longest_streak = after.longest_streak
        row.last_activity_date = after.last_activity_date
        await self._session.flush()
        return before, after


def _row_to_streak(row: StreakRow) -> Streak:
    return Streak(
        learner_id=row.learner_id,
        current_streak=row.current_streak,
        longest_streak=row.longest_streak,
        last_activity_date=row.last_activity_date,
    )
