"""Learner gamification endpoints: activity, XP, badges, profile, leaderboard.

The raw XP and badge routes are admin-only; learners earn both through
lesson completion and quiz submission instead.  Learners record
activity for the current UTC day only; admins may backfill any date.
"""

from __future__ import annotations

import datetime
import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from progression.api.dependencies import (
    get_store,
    require_role,
    require_user,
    resolve_learner,
)
from progression.api.errors import http_error
from progression.models.principal import Principal
from progression.repos.store import Store
from progression.services import (
    badge_service,
    dashboard_service,
    streak_service,
    xp_service,
)
from progression.services.errors import EngineError, InvalidActivityDate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["gamification"])

_DEFAULT_LIMIT = dashboard_service.DEFAULT_LEADERBOARD_SIZE


class ActivityIn(BaseModel):
    date: datetime.date | None = None


class StreakOut(BaseModel):
    current_streak: int
    longest_streak: int
    streak_increased: bool
    last_activity_date: datetime.date | None


class XpIn(BaseModel):
    amount: int = Field(ge=0)
    reason: str = Field(default="manual", min_length=1, max_length=64)


class XpAwardOut(BaseModel):
    reason: str
    base_amount: int
    streak_bonus: int
    total_awarded: int
    new_total: int
    new_level: int
    badges_granted: list[str]


class BadgeIn(BaseModel):
    badge_name: str = Field(min_length=1)


class BadgeGrantOut(BaseModel):
    badge_name: str
    granted: bool


class EarnedBadgeOut(BaseModel):
    name: str
    description: str
    icon: str
    earned_at: int


class CatalogBadgeOut(BaseModel):
    name: str
    description: str
    icon: str
    xp_required: int | None


class ProfileOut(BaseModel):
    learner_id: UUID
    xp: int
    level: int
    xp_for_next_level: int
    current_streak: int
    longest_streak: int
    last_activity_date: datetime.date | None
    badges: list[EarnedBadgeOut]
    badge_catalog: list[CatalogBadgeOut]


class LeaderboardEntryOut(BaseModel):
    rank: int
    learner_id: UUID
    xp: int
    level: int


@router.post("/learners/{learner_id}/activity", response_model=StreakOut)
async def record_activity(
    learner_id: UUID,
    body: ActivityIn,
    principal: Annotated[Principal, Depends(require_user)],
    store: Annotated[Store, Depends(get_store)],
) -> StreakOut:
    learner = resolve_learner(principal, learner_id)
    today = streak_service.today_utc()
    activity_date = body.date or today
    # Only admins may backfill; learners record the current UTC day.
    if activity_date != today and not principal.is_platform_admin():
        logger.warning(
            "Activity date rejected learner=%s date=%s", learner, activity_date
        )
        raise http_error(InvalidActivityDate(activity_date, today))
    update = await streak_service.record_activity(store, learner, activity_date)
    return StreakOut(
        current_streak=update.current_streak,
        longest_streak=update.longest_streak,
        streak_increased=update.streak_increased,
        last_activity_date=update.last_activity_date,
    )


@router.post("/learners/{learner_id}/xp", response_model=XpAwardOut)
async def add_xp(
    learner_id: UUID,
    body: XpIn,
    principal: Annotated[Principal, Depends(require_role("admin"))],
    store: Annotated[Store, Depends(get_store)],
) -> XpAwardOut:
    logger.info(
        "Manual XP award by admin=%s learner=%s amount=%d",
        principal.learner_id,
        learner_id,
        body.amount,
    )
    award = await xp_service.add_xp(store, learner_id, body.amount, body.reason)
    badges = await badge_service.grant_threshold_badges(
        store, learner_id, award.new_total
    )
    return XpAwardOut(
        reason=award.reason,
        base_amount=award.base_amount,
        streak_bonus=award.streak_bonus,
        total_awarded=award.total_awarded,
        new_total=award.new_total,
        new_level=award.new_level,
        badges_granted=badges,
    )


@router.post("/learners/{learner_id}/badges", response_model=BadgeGrantOut)
async def grant_badge(
    learner_id: UUID,
    body: BadgeIn,
    _principal: Annotated[Principal, Depends(require_role("admin"))],
    store: Annotated[Store, Depends(get_store)],
) -> BadgeGrantOut:
    try:
        result = await badge_service.grant_badge_if_absent(
            store, learner_id, body.badge_name
        )
    except EngineError as e:
        raise http_error(e) from None
    return BadgeGrantOut(badge_name=result.badge_name, granted=result.granted)


@router.get("/learners/{learner_id}/gamification", response_model=ProfileOut)
async def get_profile(
    learner_id: UUID,
    principal: Annotated[Principal, Depends(require_user)],
    store: Annotated[Store, Depends(get_store)],
) -> ProfileOut:
    learner = resolve_learner(principal, learner_id)
    profile = await dashboard_service.gamification_profile(store, learner)
    return ProfileOut(
        learner_id=profile.learner_id,
        xp=profile.xp,
        level=profile.level,
        xp_for_next_level=profile.xp_for_next_level,
        current_streak=profile.current_streak,
        longest_streak=profile.longest_streak,
        last_activity_date=profile.last_activity_date,
        badges=[
            EarnedBadgeOut(
                name=b.name,
                description=b.description,
                icon=b.icon,
                earned_at=b.earned_at,
            )
            for b in profile.badges
        ],
        badge_catalog=[
            CatalogBadgeOut(
                name=b.name,
                description=b.description,
                icon=b.icon,
                xp_required=b.xp_required,
            )
            for b in profile.badge_catalog
        ],
    )


@router.get("/leaderboard", response_model=list[LeaderboardEntryOut])
async def get_leaderboard(
    _principal: Annotated[Principal, Depends(require_user)],
    store: Annotated[Store, Depends(get_store)],
    limit: Annotated[int, Query(ge=1, le=100)] = _DEFAULT_LIMIT,
) -> list[LeaderboardEntryOut]:
    entries = await dashboard_service.leaderboard(store, limit)
    return [
        LeaderboardEntryOut(
            rank=e.rank, learner_id=e.learner_id, xp=e.xp, level=e.level
        )
        for e in entries
    ]
