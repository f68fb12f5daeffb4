from __future__ import annotations

from collections.abc import Callable
from typing import Protocol
from uuid import UUID

from progression.models.gamification import GamificationProfile, Streak


class ProfileRepo(Protocol):
    async def get(self, learner_id: UUID) -> GamificationProfile: ...
    async def increment_xp(self, learner_id: UUID, amount: int) -> int: ...
    async def top(self, limit: int) -> list[GamificationProfile]: ...


class StreakRepo(Protocol):
    async def get(self, learner_id: UUID) -> Streak: ...
    async def apply(
        self, learner_id: UUID, step: Callable[[Streak], Streak]
    ) -> tuple[Streak, Streak]:
        """Atomically replace the learner's streak with step(current).

        Returns (before, after).
        """
        ...


class InMemoryProfileRepo:
    def __init__(self) -> None:
        self._store: dict[UUID, GamificationProfile] = {}

    async def get(self, learner_id: UUID) -> GamificationProfile:
        return self._store.get(learner_id) or GamificationProfile(learner_id=learner_id)

    async def increment_xp(self, learner_id: UUID, amount: int) -> int:
        current = self._store.get(learner_id) or GamificationProfile(
            learner_id=learner_id
        )
        updated = GamificationProfile(learner_id=learner_id, xp=current.xp + amount)
        self._store[learner_id] = updated
        return updated.xp

    async def top(self, limit: int) -> list[GamificationProfile]:
        ranked = sorted(
            self._store.values(), key=lambda p: (-p.xp, str(p.learner_id))
        )
        return ranked[:limit]


class InMemoryStreakRepo:
    def __init__(self) -> None:
        self._store: dict[UUID, Streak] = {}

    async def get(self, learner_id: UUID) -> Streak:
        return self._store.get(learner_id) or Streak(learner_id=learner_id)

    async def apply(
        self, learner_id: UUID, step: Callable[[Streak], Streak]
    ) -> tuple[Streak, Streak]:
        # step is synchronous, so read-compute-write has no suspension point.
        before = self._store.get(learner_id) or Streak(learner_id=learner_id)
        after = step(before)
        self._store[learner_id] = after
        return before, after
