"""Quiz delivery and server-side grading.

Delivery returns `DeliveredQuestion`, which has no answer field, and is
built only from QuizRepo.list_questions.  The answer key is loaded in
exactly one place, `grade_attempt`, after the submission has been
validated.

Attempt lifecycle: in_progress -> graded.  A graded attempt is never
written again; a retake is a new attempt.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Mapping
from dataclasses import dataclass, replace
from uuid import UUID

from progression.core.metrics import QUIZ_ATTEMPTS, QUIZ_PERCENTAGE
from progression.models.quiz import QuestionResult, Quiz, QuizAttempt
from progression.repos.store import Store
from progression.services.errors import (
    AlreadyGraded,
    InvalidAnswerSet,
    NotEnrolled,
    NotFound,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DeliveredQuestion:
    id: UUID
    text: str
    type: str
    options: tuple[str, ...]
    points: int


def _now() -> int:
    return int(datetime.datetime.now(datetime.UTC).timestamp())


def percentage_of(part: int, whole: int) -> int:
    """100 * part / whole rounded half-up, in integers; 0 when whole is 0."""
    if whole <= 0:
        return 0
    return (200 * part + whole) // (2 * whole)


async def _quiz_for_learner(store: Store, learner_id: UUID, quiz_id: UUID) -> Quiz:
    quiz = await store.quizzes.get_quiz(quiz_id)
    if quiz is None:
        raise NotFound("quiz", quiz_id)
    if await store.enrollments.get(learner_id, quiz.course_id) is None:
        logger.warning(
            "Quiz access rejected, not enrolled learner=%s quiz=%s",
            learner_id,
            quiz_id,
        )
        raise NotEnrolled(learner_id, quiz.course_id)
    return quiz


async def get_questions(
    store: Store, learner_id: UUID, quiz_id: UUID
) -> list[DeliveredQuestion]:
    await _quiz_for_learner(store, learner_id, quiz_id)
    questions = await store.quizzes.list_questions(quiz_id)
    return [
        DeliveredQuestion(
            id=q.id, text=q.text, type=q.type, options=q.options, points=q.points
        )
        for q in questions
    ]


async def start_attempt(store: Store, learner_id: UUID, quiz_id: UUID) -> QuizAttempt:
    await _quiz_for_learner(store, learner_id, quiz_id)
    attempt = QuizAttempt.start(
        quiz_id=quiz_id, learner_id=learner_id, started_at=_now()
    )
    await store.attempts.add(attempt)
    logger.info(
        "Quiz attempt started learner=%s quiz=%s attempt=%s",
        learner_id,
        quiz_id,
        attempt.id,
    )
    return attempt


async def grade_attempt(
    store: Store,
    learner_id: UUID,
    quiz_id: UUID,
    answers: Mapping[str, str | None],
    attempt_id: UUID | None = None,
) -> QuizAttempt:
    """Grade a submission and persist it as a graded attempt.

    `answers` maps question id (as a string) to the chosen option.
    Questions left out are recorded as unanswered and score nothing.
    Without `attempt_id` a new attempt is created and graded at once.
    A quiz worth no points grades as 0% and never passes.
    """
    quiz = await _quiz_for_learner(store, learner_id, quiz_id)
    questions = await store.quizzes.list_questions(quiz_id)

    known = {str(q.id) for q in questions}
    submitted = {str(k): v for k, v in answers.items()}
    unknown = sorted(k for k in submitted if k not in known)
    if unknown:
        logger.warning(
            "Quiz submission rejected learner=%s quiz=%s unknown=%d",
            learner_id,
            quiz_id,
            len(unknown),
        )
        raise InvalidAnswerSet(unknown)

    if attempt_id is not None:
        attempt = await store.attempts.get(attempt_id)
        if (
            attempt is None
            or attempt.learner_id != learner_id
            or attempt.quiz_id != quiz_id
        ):
            raise NotFound("attempt", attempt_id)
        if attempt.is_graded:
            raise AlreadyGraded(attempt_id)
    else:
        attempt = QuizAttempt.start(
            quiz_id=quiz_id, learner_id=learner_id, started_at=_now()
        )
        await store.attempts.add(attempt)

    answer_key = await store.quizzes.get_answer_key(quiz_id)

    results: list[QuestionResult] = []
    score = 0
    max_score = 0
    for q in questions:
        given = submitted.get(str(q.id))
        correct = answer_key[q.id]
        is_correct = given is not None and given == correct
        if is_correct:
            score += q.points
        max_score += q.points
        results.append(
            QuestionResult(
                question_id=q.id,
                question_text=q.text,
                submitted_answer=given,
                correct_answer=correct,
                is_correct=is_correct,
                points=q.points,
            )
        )

    percentage = percentage_of(score, max_score)
    graded = replace(
        attempt,
        status="graded",
        graded_at=_now(),
        answers=tuple((q.id, submitted.get(str(q.id))) for q in questions),
        score=score,
        max_score=max_score,
        percentage=percentage,
        passed=max_score > 0 and percentage >= quiz.passing_score_percent,
        results=tuple(results),
    )
    if not await store.attempts.finish(graded):
        raise AlreadyGraded(attempt.id)

    async def _record() -> None:
        QUIZ_ATTEMPTS.labels(result="passed" if graded.passed else "failed").inc()
        QUIZ_PERCENTAGE.observe(percentage)

    await store.after_commit(_record)
    logger.info(
        "Quiz graded learner=%s quiz=%s attempt=%s score=%d/%d pct=%d passed=%s",
        learner_id,
        quiz_id,
        graded.id,
        score,
        max_score,
        percentage,
        graded.passed,
    )
    return graded


async def list_attempts(
    store: Store, learner_id: UUID, quiz_id: UUID
) -> list[QuizAttempt]:
    """Graded attempts for this learner and quiz, newest first."""
    await _quiz_for_learner(store, learner_id, quiz_id)
    return await store.attempts.list_for_learner(learner_id, quiz_id)
