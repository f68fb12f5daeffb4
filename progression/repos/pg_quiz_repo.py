"""PostgreSQL implementations of QuizRepo and AttemptRepo.

Correct answers live on the quiz_questions row.  `list_questions`
selects the learner-visible columns explicitly so the answer column is
never loaded outside `get_answer_key`.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from progression.db.tables import QuizAttemptRow, QuizQuestionRow, QuizRow
from progression.models.quiz import Question, QuestionResult, Quiz, QuizAttempt


class PgQuizRepo:
    """Satisfies the QuizRepo Protocol using PostgreSQL."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_quiz(self, quiz_id: UUID) -> Quiz | None:
        stmt = select(QuizRow).where(QuizRow.id == quiz_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return Quiz(
            id=row.id,
            course_id=row.course_id,
            title=row.title,
            passing_score_percent=row.passing_score_percent,
        )

    async def list_questions(self, quiz_id: UUID) -> list[Question]:
        stmt = (
            select(
                QuizQuestionRow.id,
                QuizQuestionRow.quiz_id,
                QuizQuestionRow.text,
                QuizQuestionRow.type,
                QuizQuestionRow.options,
                QuizQuestionRow.points,
                QuizQuestionRow.position,
            )
            .where(QuizQuestionRow.quiz_id == quiz_id)
            .order_by(QuizQuestionRow.position)
        )
        rows = (await self._session.execute(stmt)).all()
        return [
            Question(
                id=r.id,
                quiz_id=r.quiz_id,
                text=r.text,
                type=r.type,
                options=tuple(r.options or ()),
                points=r.points,
                position=r.position,
            )
            for r in rows
        ]

    async def get_answer_key(self, quiz_id: UUID) -> dict[UUID, str]:
        stmt = select(QuizQuestionRow.id, QuizQuestionRow.correct_answer).where(
            QuizQuestionRow.quiz_id == quiz_id
        )
        rows = (await self._session.execute(stmt)).all()
        return {qid: answer for qid, answer in rows}


class PgAttemptRepo:
    """Satisfies the AttemptRepo Protocol using PostgreSQL."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, attempt_id: UUID) -> QuizAttempt | None:
        stmt = select(QuizAttemptRow).where(QuizAttemptRow.id == attempt_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_attempt(row)

    async def add(self, attempt: QuizAttempt) -> None:
        row = QuizAttemptRow(
            id=attempt.id,
            quiz_id=attempt.quiz_id,
            learner_id=attempt.learner_id,
            status=attempt.status,
            started_at=attempt.started_at,
            graded_at=attempt.graded_at,
            answers=_answers_to_json(attempt.answers),
            score=attempt.score,
            max_score=attempt.max_score,
            percentage=attempt.percentage,
            passed=attempt.passed,
            results=[_result_to_json(r) for r in attempt.results],
        )
        self._session.add(row)
        await self._session.flush()

    async def finish(self, attempt: QuizAttempt) -> bool:
        """Conditional write: only an in_progress attempt can become graded."""
        stmt = (
            update(QuizAttemptRow)
            .where(
                QuizAttemptRow.id == attempt.id,
                QuizAttemptRow.status == "in_progress",
            )
            .values(
                status="graded",
                graded_at=attempt.graded_at,
                answers=_answers_to_json(attempt.answers),
                score=attempt.score,
                max_score=attempt.max_score,
                percentage=attempt.percentage,
                passed=attempt.passed,
                results=[_result_to_json(r) for r in attempt.results],
            )
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    async def list_for_learner(
        self, learner_id: UUID, quiz_id: UUID
    ) -> list[QuizAttempt]:
        stmt = (
            select(QuizAttemptRow)
            .where(
                QuizAttemptRow.learner_id == learner_id,
                QuizAttemptRow.quiz_id == quiz_id,
                QuizAttemptRow.status == "graded",
            )
            .order_by(QuizAttemptRow.graded_at.desc())
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_attempt(r) for r in rows]


def _answers_to_json(answers: tuple[tuple[UUID, str | None], ...]) -> dict[str, Any]:
    return {str(qid): answer for qid, answer in answers}


def _result_to_json(result: QuestionResult) -> dict[str, Any]:
    return {
        "question_id": str(result.question_id),
        "question_text": result.question_text,
        "submitted_answer": result.submitted_answer,
        "correct_answer": result.correct_answer,
        "is_correct": result.is_correct,
        "points": result.points,
    }


def _result_from_json(data: dict[str, Any]) -> QuestionResult:
    return QuestionResult(
        question_id=UUID(data["question_id"]),
        question_text=data["question_text"],
        submitted_answer=data["submitted_answer"],
        correct_answer=data["correct_answer"],
        is_correct=data["is_correct"],
        points=data["points"],
    )


def _row_to_attempt(row: QuizAttemptRow) -> QuizAttempt:
    return QuizAttempt(
        id=row.id,
        quiz_id=row.quiz_id,
        learner_id=row.learner_id,
        status=row.status,
        started_at=row.started_at,
        graded_at=row.graded_at,
        answers=tuple((UUID(k), v) for k, v in (row.answers or {}).items()),
        score=row.score,
        max_score=row.max_score,
        percentage=row.percentage,
        passed=row.passed,
        results=tuple(_result_from_json(r) for r in (row.results or [])),
    )
