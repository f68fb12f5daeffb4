"""Repository bundle handed to the services.

Services take a `Store` rather than seven separate repos so the API
layer can swap the whole persistence backend in one place: the
process-wide in-memory store when DATABASE_URL is unset, or Postgres
repos bound to the request's session.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from progression.repos.badge_repo import BadgeRepo, InMemoryBadgeRepo
from progression.repos.catalog_repo import CatalogRepo, InMemoryCatalogRepo
from progression.repos.completion_repo import CompletionRepo, InMemoryCompletionRepo
from progression.repos.enrollment_repo import EnrollmentRepo, InMemoryEnrollmentRepo
from progression.repos.pg_badge_repo import PgBadgeRepo
from progression.repos.pg_catalog_repo import PgCatalogRepo
from progression.repos.pg_completion_repo import PgCompletionRepo
from progression.repos.pg_enrollment_repo import PgEnrollmentRepo
from progression.repos.pg_profile_repo import PgProfileRepo, PgStreakRepo
from progression.repos.pg_quiz_repo import PgAttemptRepo, PgQuizRepo
from progression.repos.profile_repo import (
    InMemoryProfileRepo,
    InMemoryStreakRepo,
    ProfileRepo,
    StreakRepo,
)
from progression.repos.quiz_repo import (
    AttemptRepo,
    InMemoryAttemptRepo,
    InMemoryQuizRepo,
    QuizRepo,
)


@dataclass(frozen=True, slots=True)
class Store:
    catalog: CatalogRepo
    enrollments: EnrollmentRepo
    completions: CompletionRepo
    profiles: ProfileRepo
    streaks: StreakRepo
    badges: BadgeRepo
    quizzes: QuizRepo
    attempts: AttemptRepo
    # Side effects held until the request transaction commits.  None runs
    # them at once (the in-memory repos have nothing to commit).
    commit_hooks: list[Callable[[], Awaitable[None]]] | None = None

    async def after_commit(self, hook: Callable[[], Awaitable[None]]) -> None:
        if self.commit_hooks is None:
            await hook()
        else:
            self.commit_hooks.append(hook)

    async def run_commit_hooks(self) -> None:
        hooks = self.commit_hooks or []
        while hooks:
            await hooks.pop(0)()


def memory_store() -> Store:
    """Fresh in-memory store with the default badge catalog seeded."""
    badges = InMemoryBadgeRepo()
    badges.seed_defaults()
    return Store(
        catalog=InMemoryCatalogRepo(),
        enrollments=InMemoryEnrollmentRepo(),
        completions=InMemoryCompletionRepo(),
        profiles=InMemoryProfileRepo(),
        streaks=InMemoryStreakRepo(),
        badges=badges,
        quizzes=InMemoryQuizRepo(),
        attempts=InMemoryAttemptRepo(),
    )


def pg_store(session: AsyncSession) -> Store:
    return Store(
        catalog=PgCatalogRepo(session),
        enrollments=PgEnrollmentRepo(session),
        completions=PgCompletionRepo(session),
        profiles=PgProfileRepo(session),
        streaks=PgStreakRepo(session),
        badges=PgBadgeRepo(session),
        quizzes=PgQuizRepo(session),
        attempts=PgAttemptRepo(session),
        commit_hooks=[],
    )
