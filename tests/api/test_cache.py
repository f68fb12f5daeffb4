"""Leaderboard read-through cache, exercised over HTTP.

1. First GET is a miss and populates the cache
2. Second GET is a hit and returns the same board
3. Any XP award invalidates every cached board
4. Each limit is cached under its own key
"""

from __future__ import annotations

import asyncio
from uuid import uuid4

from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from progression.repos.store import Store
from progression.services.cache import cache_service
from tests.conftest import auth, mint_token


def _cache_ops(operation: str) -> float:
    value = REGISTRY.get_sample_value(
        "cache_operations_total", {"operation": operation}
    )
    return value or 0.0


def _award(client: TestClient, learner, amount: int) -> None:
    resp = client.post(
        f"/v1/learners/{learner}/xp",
        json={"amount": amount},
        headers=auth(mint_token(roles=["admin"])),
    )
    assert resp.status_code == 200


def test_cache_miss_then_hit(client: TestClient) -> None:
    _award(client, uuid4(), 40)
    headers = auth(mint_token())

    misses, hits = _cache_ops("miss"), _cache_ops("hit")
    first = client.get("/v1/leaderboard", headers=headers)
    second = client.get("/v1/leaderboard", headers=headers)

    assert first.json() == second.json()
    assert _cache_ops("miss") - misses == 1
    assert _cache_ops("hit") - hits == 1


def test_xp_award_invalidates_board(client: TestClient) -> None:
    leader, challenger = uuid4(), uuid4()
    _award(client, leader, 100)
    headers = auth(mint_token())

    before = client.get("/v1/leaderboard", headers=headers).json()
    assert before[0]["learner_id"] == str(leader)

    _award(client, challenger, 150)
    after = client.get("/v1/leaderboard", headers=headers).json()
    assert after[0]["learner_id"] == str(challenger)
    assert [e["rank"] for e in after] == [1, 2]


def test_stale_board_served_while_cached(client: TestClient, store: Store) -> None:
    headers = auth(mint_token())
    client.get("/v1/leaderboard", headers=headers)

    # Bypasses xp_service, so nothing invalidates the cached board.
    asyncio.run(store.profiles.increment_xp(uuid4(), 10))
    assert client.get("/v1/leaderboard", headers=headers).json() == []


def test_each_limit_has_its_own_entry(client: TestClient) -> None:
    for amount in (10, 20, 30):
        _award(client, uuid4(), amount)
    headers = auth(mint_token())

    top1 = client.get("/v1/leaderboard?limit=1", headers=headers).json()
    top3 = client.get("/v1/leaderboard?limit=3", headers=headers).json()
    assert len(top1) == 1
    assert len(top3) == 3

    assert asyncio.run(cache_service.get("leaderboard:1")) is not None
    assert asyncio.run(cache_service.get("leaderboard:3")) is not None
