"""Quiz delivery and grading endpoints.

GET  /v1/quizzes/{quiz_id}/questions   questions without answers
POST /v1/quizzes/{quiz_id}/attempts    open an attempt (optional)
POST /v1/quizzes/{quiz_id}/grade       grade server-side, award XP/badges
GET  /v1/quizzes/{quiz_id}/attempts    past graded attempts, newest first

`QuestionOut` has no answer field, so a correct answer cannot leak
through delivery even by accident.  Correct answers only appear in
grading results, after the attempt is locked.
"""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from progression.api.dependencies import get_store, require_user, resolve_learner
from progression.api.errors import http_error
from progression.api.gamification import StreakOut
from progression.models.principal import Principal
from progression.models.quiz import QuizAttempt
from progression.repos.store import Store
from progression.services import achievements, quiz_service
from progression.services.errors import EngineError

router = APIRouter(prefix="/v1/quizzes", tags=["quizzes"])


class QuestionOut(BaseModel):
    id: UUID
    text: str
    type: str
    options: list[str]
    points: int


class AttemptStartedOut(BaseModel):
    id: UUID
    quiz_id: UUID
    status: str
    started_at: int


class GradeIn(BaseModel):
    # question id -> chosen option; omitted questions count as unanswered
    answers: dict[str, str | None] = Field(default_factory=dict)
    attempt_id: UUID | None = None
    learner_id: UUID | None = None


class QuestionResultOut(BaseModel):
    question_id: UUID
    question_text: str
    submitted_answer: str | None
    correct_answer: str
    is_correct: bool
    points: int


class AttemptOut(BaseModel):
    id: UUID
    quiz_id: UUID
    status: str
    score: int
    max_score: int
    percentage: int
    passed: bool
    started_at: int
    graded_at: int | None
    results: list[QuestionResultOut]


class GradeOut(BaseModel):
    attempt: AttemptOut
    xp_gained: int
    streak_bonus: int
    streak: StreakOut
    badges_granted: list[str]
    total_xp: int
    level: int


def _attempt_out(attempt: QuizAttempt) -> AttemptOut:
    return AttemptOut(
        id=attempt.id,
        quiz_id=attempt.quiz_id,
        status=attempt.status,
        score=attempt.score,
        max_score=attempt.max_score,
        percentage=attempt.percentage,
        passed=attempt.passed,
        started_at=attempt.started_at,
        graded_at=attempt.graded_at,
        results=[
            QuestionResultOut(
                question_id=r.question_id,
                question_text=r.question_text,
                submitted_answer=r.submitted_answer,
                correct_answer=r.correct_answer,
                is_correct=r.is_correct,
                points=r.points,
            )
            for r in attempt.results
        ],
    )


@router.get("/{quiz_id}/questions", response_model=list[QuestionOut])
async def get_questions(
    quiz_id: UUID,
    principal: Annotated[Principal, Depends(require_user)],
    store: Annotated[Store, Depends(get_store)],
) -> list[QuestionOut]:
    try:
        questions = await quiz_service.get_questions(
            store, principal.learner_id, quiz_id
        )
    except EngineError as e:
        raise http_error(e) from None
    return [
        QuestionOut(
            id=q.id, text=q.text, type=q.type, options=list(q.options), points=q.points
        )
        for q in questions
    ]


@router.post(
    "/{quiz_id}/attempts",
    response_model=AttemptStartedOut,
    status_code=status.HTTP_201_CREATED,
)
async def start_attempt(
    quiz_id: UUID,
    principal: Annotated[Principal, Depends(require_user)],
    store: Annotated[Store, Depends(get_store)],
) -> AttemptStartedOut:
    try:
        attempt = await quiz_service.start_attempt(store, principal.learner_id, quiz_id)
    except EngineError as e:
        raise http_error(e) from None
    return AttemptStartedOut(
        id=attempt.id,
        quiz_id=attempt.quiz_id,
        status=attempt.status,
        started_at=attempt.started_at,
    )


@router.post("/{quiz_id}/grade", response_model=GradeOut)
async def grade(
    quiz_id: UUID,
    body: GradeIn,
    principal: Annotated[Principal, Depends(require_user)],
    store: Annotated[Store, Depends(get_store)],
) -> GradeOut:
    learner = resolve_learner(principal, body.learner_id)
    try:
        outcome = await achievements.submit_quiz(
            store, learner, quiz_id, body.answers, body.attempt_id
        )
    except EngineError as e:
        raise http_error(e) from None
    return GradeOut(
        attempt=_attempt_out(outcome.attempt),
        xp_gained=outcome.xp_gained,
        streak_bonus=outcome.streak_bonus,
        streak=StreakOut(
            current_streak=outcome.streak.current_streak,
            longest_streak=outcome.streak.longest_streak,
            streak_increased=outcome.streak.streak_increased,
            last_activity_date=outcome.streak.last_activity_date,
        ),
        badges_granted=list(outcome.badges_granted),
        total_xp=outcome.total_xp,
        level=outcome.level,
    )


@router.get("/{quiz_id}/attempts", response_model=list[AttemptOut])
async def list_attempts(
    quiz_id: UUID,
    principal: Annotated[Principal, Depends(require_user)],
    store: Annotated[Store, Depends(get_store)],
) -> list[AttemptOut]:
    try:
        attempts = await quiz_service.list_attempts(
            store, principal.learner_id, quiz_id
        )
    except EngineError as e:
        raise http_error(e) from None
    return [_attempt_out(a) for a in attempts]
