from __future__ import annotations

import asyncio
import datetime
from dataclasses import replace
from uuid import uuid4

import pytest
from prometheus_client import REGISTRY

from progression.core.config import Rewards
from progression.repos.store import Store
from progression.services import streak_service
from progression.services.cache import cache_service
from progression.services.xp_service import (
    add_xp,
    level_for_xp,
    streak_bonus_for,
    xp_for_next_level,
)

# ---- levels ----


@pytest.mark.parametrize(
    ("xp", "level"), [(0, 1), (99, 1), (100, 2), (199, 2), (250, 3), (1000, 11)]
)
def test_level_for_xp(xp: int, level: int) -> None:
    assert level_for_xp(xp) == level


def test_level_never_decreases_as_xp_grows() -> None:
    levels = [level_for_xp(xp) for xp in range(0, 1200, 7)]
    assert levels == sorted(levels)


def test_xp_for_next_level_is_where_level_ends() -> None:
    assert xp_for_next_level(1) == 100
    assert xp_for_next_level(3) == 300
    assert level_for_xp(xp_for_next_level(3)) == 4


def test_custom_xp_per_level() -> None:
    rewards = Rewards(xp_per_level=50)
    assert level_for_xp(120, rewards=rewards) == 3
    assert xp_for_next_level(3, rewards=rewards) == 150


# ---- streak bonus ----


@pytest.mark.parametrize(
    ("streak", "bonus"), [(0, 0), (1, 0), (2, 10), (3, 15), (5, 25), (6, 25), (30, 25)]
)
def test_streak_bonus_table(streak: int, bonus: int) -> None:
    assert streak_bonus_for(streak) == bonus


# ---- add_xp ----


def test_add_xp_without_streak_has_no_bonus(store: Store) -> None:
    learner = uuid4()
    award = asyncio.run(add_xp(store, learner, 15, "lesson_completed"))
    assert award.base_amount == 15
    assert award.streak_bonus == 0
    assert award.total_awarded == 15
    assert award.new_total == 15
    assert award.new_level == 1


def test_add_xp_applies_current_streak_bonus(store: Store) -> None:
    learner = uuid4()
    start = datetime.date(2025, 3, 1)

    async def _run():
        for offset in range(3):
            await streak_service.record_activity(
                store, learner, start + datetime.timedelta(days=offset)
            )
        return await add_xp(store, learner, 15, "lesson_completed")

    award = asyncio.run(_run())
    assert award.streak_bonus == 15
    assert award.total_awarded == 30


def test_add_xp_accumulates_and_levels_up(store: Store) -> None:
    learner = uuid4()

    async def _run():
        await add_xp(store, learner, 60, "manual")
        return await add_xp(store, learner, 60, "manual")

    award = asyncio.run(_run())
    assert award.new_total == 120
    assert award.new_level == 2


def test_add_xp_zero_is_allowed(store: Store) -> None:
    award = asyncio.run(add_xp(store, uuid4(), 0, "manual"))
    assert award.new_total == 0


def test_add_xp_rejects_negative_amount(store: Store) -> None:
    with pytest.raises(ValueError, match="non-negative"):
        asyncio.run(add_xp(store, uuid4(), -5, "manual"))


def test_add_xp_invalidates_leaderboard_cache(store: Store) -> None:
    async def _run() -> str | None:
        await cache_service.set("leaderboard:10", "[]", 60)
        await add_xp(store, uuid4(), 5, "manual")
        return await cache_service.get("leaderboard:10")

    assert asyncio.run(_run()) is None


def _xp_counter(reason: str) -> float:
    return REGISTRY.get_sample_value("xp_awarded_total", {"reason": reason}) or 0.0


def test_transactional_store_defers_cache_and_metric_until_commit(
    store: Store,
) -> None:
    pending = replace(store, commit_hooks=[])
    before = _xp_counter("deferred")

    async def _award() -> str | None:
        await cache_service.set("leaderboard:10", "[]", 60)
        await add_xp(pending, uuid4(), 5, "deferred")
        return await cache_service.get("leaderboard:10")

    assert asyncio.run(_award()) == "[]"
    assert _xp_counter("deferred") == before

    asyncio.run(pending.run_commit_hooks())
    assert asyncio.run(cache_service.get("leaderboard:10")) is None
    assert _xp_counter("deferred") == before + 5
    assert pending.commit_hooks == []


def test_rolled_back_award_is_never_counted(store: Store) -> None:
    pending = replace(store, commit_hooks=[])
    before = _xp_counter("rolled_back")

    asyncio.run(add_xp(pending, uuid4(), 5, "rolled_back"))
    # The request failed: hooks are dropped with the store.
    assert _xp_counter("rolled_back") == before
