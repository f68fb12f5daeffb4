from __future__ import annotations

from typing import Protocol
from uuid import UUID

from progression.models.gamification import Badge, BadgeGrant

# Catalog the platform seeds on first deploy (see the initial migration).
DEFAULT_BADGES: tuple[tuple[str, str, str, int | None], ...] = (
    ("Busy Bee", "Complete your first lesson", "award", None),
    ("Star Bee", "Earn 100 XP", "star", 100),
    ("Quiz Whiz", "Pass your first quiz", "zap", None),
    ("Honey Hunter", "Complete a course", "trophy", None),
    ("Super Bee", "Reach level 5", "crown", 500),
)


class BadgeRepo(Protocol):
    async def get_by_name(self, name: str) -> Badge | None: ...
    async def list_all(self) -> list[Badge]: ...
    async def grant_if_absent(
        self, learner_id: UUID, badge_id: UUID, now: int
    ) -> bool: ...
    async def list_grants(self, learner_id: UUID) -> list[BadgeGrant]: ...


class InMemoryBadgeRepo:
    def __init__(self) -> None:
        self._by_name: dict[str, Badge] = {}
        self._grants: dict[tuple[UUID, UUID], BadgeGrant] = {}

    def add(self, badge: Badge) -> None:
        if badge.name in self._by_name:
            raise ValueError("badge name already exists")
        self._by_name[badge.name] = badge

    def seed_defaults(self) -> None:
        for name, description, icon, xp_required in DEFAULT_BADGES:
            if name not in self._by_name:
                self.add(
                    Badge.new(
                        name=name,
                        description=description,
                        icon=icon,
                        xp_required=xp_required,
                    )
                )

    async def get_by_name(self, name: str) -> Badge | None:
        return self._by_name.get(name)

    async def list_all(self) -> list[Badge]:
        return sorted(
            self._by_name.values(),
            key=lambda b: (b.xp_required is None, b.xp_required or 0, b.name),
        )

    async def grant_if_absent(self, learner_id: UUID, badge_id: UUID, now: int) -> bool:
        key = (learner_id, badge_id)
        if key in self._grants:
            return False
        self._grants[key] = BadgeGrant(
            learner_id=learner_id, badge_id=badge_id, earned_at=now
        )
        return True

    async def list_grants(self, learner_id: UUID) -> list[BadgeGrant]:
        grants = [g for (lid, _), g in self._grants.items() if lid == learner_id]
        return sorted(grants, key=lambda g: g.earned_at)
