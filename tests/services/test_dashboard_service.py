from __future__ import annotations

import asyncio
from uuid import uuid4

import pytest

from progression.repos.store import Store
from progression.services import badge_service, dashboard_service, xp_service
from progression.services.cache import cache_service
from progression.services.completion_ledger import set_lesson_completion
from progression.services.errors import CertificateUnavailable, NotEnrolled, NotFound
from tests.conftest import enroll, seed_course


def _complete(store: Store, learner, lessons) -> None:
    async def _run() -> None:
        for le in lessons:
            await set_lesson_completion(store, learner, le.id, True)

    asyncio.run(_run())


# ---- course progress ----


def test_progress_rounds_half_up(store: Store) -> None:
    learner = uuid4()
    course, lessons = seed_course(store, lessons=3)
    enroll(store, learner, course.id)
    _complete(store, learner, lessons[:2])

    progress = asyncio.run(dashboard_service.course_progress(store, learner, course.id))
    assert (progress.completed_lessons, progress.total_lessons) == (2, 3)
    assert progress.percent_complete == 67
    assert progress.is_complete is False


def test_progress_of_empty_course_is_zero(store: Store) -> None:
    course, _ = seed_course(store, lessons=0)
    progress = asyncio.run(
        dashboard_service.course_progress(store, uuid4(), course.id)
    )
    assert progress.percent_complete == 0
    assert progress.is_complete is False


def test_progress_for_unknown_course(store: Store) -> None:
    with pytest.raises(NotFound):
        asyncio.run(dashboard_service.course_progress(store, uuid4(), uuid4()))


# ---- certificate ----


def test_certificate_after_all_lessons(store: Store) -> None:
    learner = uuid4()
    course, lessons = seed_course(store, "Beekeeping 101", lessons=2)
    enroll(store, learner, course.id)
    _complete(store, learner, lessons)

    cert = asyncio.run(dashboard_service.certificate(store, learner, course.id))
    assert cert.course_title == "Beekeeping 101"
    assert cert.learner_id == learner
    assert cert.completed_at > 0


def test_certificate_unavailable_reports_progress(store: Store) -> None:
    learner = uuid4()
    course, lessons = seed_course(store, lessons=3)
    enroll(store, learner, course.id)
    _complete(store, learner, lessons[:1])

    with pytest.raises(CertificateUnavailable) as exc_info:
        asyncio.run(dashboard_service.certificate(store, learner, course.id))
    assert exc_info.value.details() == {"completed_lessons": 1, "total_lessons": 3}


def test_certificate_requires_enrollment(store: Store) -> None:
    course, _ = seed_course(store)
    with pytest.raises(NotEnrolled):
        asyncio.run(dashboard_service.certificate(store, uuid4(), course.id))


def test_no_certificate_for_course_without_lessons(store: Store) -> None:
    learner = uuid4()
    course, _ = seed_course(store, lessons=0)
    enroll(store, learner, course.id)
    with pytest.raises(CertificateUnavailable):
        asyncio.run(dashboard_service.certificate(store, learner, course.id))


# ---- gamification profile ----


def test_profile_of_new_learner(store: Store) -> None:
    learner = uuid4()
    profile = asyncio.run(dashboard_service.gamification_profile(store, learner))
    assert (profile.xp, profile.level, profile.xp_for_next_level) == (0, 1, 100)
    assert profile.current_streak == 0
    assert profile.last_activity_date is None
    assert profile.badges == ()
    assert len(profile.badge_catalog) == 5


def test_profile_lists_earned_badges(store: Store) -> None:
    learner = uuid4()

    async def _run():
        await xp_service.add_xp(store, learner, 230, "manual")
        await badge_service.grant_badge_if_absent(store, learner, "Quiz Whiz")
        return await dashboard_service.gamification_profile(store, learner)

    profile = asyncio.run(_run())
    assert (profile.xp, profile.level, profile.xp_for_next_level) == (230, 3, 300)
    assert [b.name for b in profile.badges] == ["Quiz Whiz"]
    assert profile.badges[0].icon == "zap"


# ---- leaderboard ----


def test_leaderboard_ranks_by_xp(store: Store) -> None:
    a, b, c = uuid4(), uuid4(), uuid4()

    async def _run():
        await xp_service.add_xp(store, a, 40, "manual")
        await xp_service.add_xp(store, b, 250, "manual")
        await xp_service.add_xp(store, c, 120, "manual")
        return await dashboard_service.leaderboard(store, 2)

    board = asyncio.run(_run())
    assert [(e.rank, e.learner_id, e.xp, e.level) for e in board] == [
        (1, b, 250, 3),
        (2, c, 120, 2),
    ]


def test_leaderboard_is_cached_until_xp_changes(store: Store) -> None:
    a, b = uuid4(), uuid4()

    async def _run():
        await xp_service.add_xp(store, a, 50, "manual")
        first = await dashboard_service.leaderboard(store, 10)
        cached = await cache_service.get("leaderboard:10")
        # A write behind the service's back is not seen while cached.
        await store.profiles.increment_xp(b, 500)
        stale = await dashboard_service.leaderboard(store, 10)
        await xp_service.add_xp(store, a, 1, "manual")
        fresh = await dashboard_service.leaderboard(store, 10)
        return first, cached, stale, fresh

    first, cached, stale, fresh = asyncio.run(_run())
    assert cached is not None
    assert stale == first
    assert [e.learner_id for e in fresh] == [b, a]
    assert fresh[1].xp == 51
