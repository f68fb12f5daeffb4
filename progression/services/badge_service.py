"""Badge grants.

This module knows nothing about *when* a badge is earned; callers decide
that (see achievements.py).  It only guarantees a learner holds each
badge at most once, via the store's grant-if-absent write.
"""

from __future__ import annotations

import datetime
import logging
from uuid import UUID

from progression.core.metrics import BADGES_GRANTED
from progression.models.gamification import BadgeGrantResult
from progression.repos.store import Store
from progression.services.errors import NotFound

logger = logging.getLogger(__name__)


def _now() -> int:
    return int(datetime.datetime.now(datetime.UTC).timestamp())


async def _count_grant(store: Store, badge_name: str) -> None:
    async def _inc() -> None:
        BADGES_GRANTED.labels(badge=badge_name).inc()

    await store.after_commit(_inc)


async def grant_badge_if_absent(
    store: Store, learner_id: UUID, badge_name: str
) -> BadgeGrantResult:
    badge = await store.badges.get_by_name(badge_name)
    if badge is None:
        raise NotFound("badge", badge_name)

    granted = await store.badges.grant_if_absent(learner_id, badge.id, _now())
    if granted:
        await _count_grant(store, badge.name)
        logger.info("Badge granted learner=%s badge=%s", learner_id, badge.name)
    return BadgeGrantResult(badge_name=badge.name, granted=granted)


async def grant_threshold_badges(store: Store, learner_id: UUID, xp: int) -> list[str]:
    """Grant every XP-milestone badge the learner has reached.

    Returns the names of badges newly granted by this call.
    """
    newly: list[str] = []
    now = _now()
    for badge in await store.badges.list_all():
        if badge.xp_required is None or badge.xp_required > xp:
            continue
        if await store.badges.grant_if_absent(learner_id, badge.id, now):
            await _count_grant(store, badge.name)
            logger.info(
                "Badge granted learner=%s badge=%s xp=%d", learner_id, badge.name, xp
            )
            newly.append(badge.name)
    return newly
