"""PostgreSQL implementation of BadgeRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from progression.db.tables import BadgeGrantRow, BadgeRow
from progression.models.gamification import Badge, BadgeGrant


class PgBadgeRepo:
    """Satisfies the BadgeRepo Protocol using PostgreSQL."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_name(self, name: str) -> Badge | None:
        stmt = select(BadgeRow).where(BadgeRow.name == name)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_badge(row)

    async def list_all(self) -> list[Badge]:
        stmt = select(BadgeRow).order_by(
            BadgeRow.xp_required.asc().nulls_last(), BadgeRow.name
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_badge(r) for r in rows]

    async def grant_if_absent(self, learner_id: UUID, badge_id: UUID, now: int) -> bool:
        stmt = (
            insert(BadgeGrantRow)
            .values(learner_id=learner_id, badge_id=badge_id, earned_at=now)
            .on_conflict_do_nothing(index_elements=["learner_id", "badge_id"])
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    async def list_grants(self, learner_id: UUID) -> list[BadgeGrant]:
        stmt = (
            select(BadgeGrantRow)
            .where(BadgeGrantRow.learner_id == learner_id)
            .order_by(BadgeGrantRow.earned_at)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [
            BadgeGrant(
                learner_id=r.learner_id, badge_id=r.badge_id, earned_at=r.earned_at
            )
            for r in rows
        ]


def _row_to_badge(row: BadgeRow) -> Badge:
    return Badge(
        id=row.id,
        name=row.name,
        description=row.description,
        icon=row.icon,
        xp_required=row.xp_required,
    )
