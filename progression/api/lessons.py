"""Lesson completion endpoint.

  Client -> POST /v1/lessons/{lesson_id}/completion {"completed": true}
  -> ledger upsert (lesson XP on the first completion only)
  -> streak activity for today
  -> XP award + "Busy Bee", course bonus + "Honey Hunter" when it applies
  -> XP-milestone badges
  -> 200 with everything the UI needs to celebrate
"""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from progression.api.dependencies import get_store, require_user, resolve_learner
from progression.api.errors import http_error
from progression.api.gamification import StreakOut
from progression.models.principal import Principal
from progression.repos.store import Store
from progression.services import achievements
from progression.services.errors import EngineError

router = APIRouter(prefix="/v1/lessons", tags=["lessons"])


class CompletionIn(BaseModel):
    completed: bool
    learner_id: UUID | None = None


class CompletionOut(BaseModel):
    lesson_id: UUID
    course_id: UUID
    completed: bool
    xp_gained: int
    streak_bonus: int
    streak: StreakOut | None
    course_completed: bool
    badges_granted: list[str]
    total_xp: int
    level: int


@router.post("/{lesson_id}/completion", response_model=CompletionOut)
async def set_completion(
    lesson_id: UUID,
    body: CompletionIn,
    principal: Annotated[Principal, Depends(require_user)],
    store: Annotated[Store, Depends(get_store)],
) -> CompletionOut:
    learner = resolve_learner(principal, body.learner_id)
    try:
        outcome = await achievements.complete_lesson(
            store, learner, lesson_id, body.completed
        )
    except EngineError as e:
        raise http_error(e) from None

    streak = None
    if outcome.streak is not None:
        streak = StreakOut(
            current_streak=outcome.streak.current_streak,
            longest_streak=outcome.streak.longest_streak,
            streak_increased=outcome.streak.streak_increased,
            last_activity_date=outcome.streak.last_activity_date,
        )
    return CompletionOut(
        lesson_id=outcome.lesson_id,
        course_id=outcome.course_id,
        completed=outcome.completed,
        xp_gained=outcome.xp_gained,
        streak_bonus=outcome.streak_bonus,
        streak=streak,
        course_completed=outcome.course_completed,
        badges_granted=list(outcome.badges_granted),
        total_xp=outcome.total_xp,
        level=outcome.level,
    )
