"""Quiz and attempt storage.

`list_questions` and `get_answer_key` are separate capabilities on
purpose: delivery code only ever calls the former, which has no access
path to correct answers.  Only the grading service calls the latter.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Protocol
from uuid import UUID

from progression.models.quiz import AnswerKeyEntry, Question, Quiz, QuizAttempt


class QuizRepo(Protocol):
    async def get_quiz(self, quiz_id: UUID) -> Quiz | None: ...
    async def list_questions(self, quiz_id: UUID) -> list[Question]: ...
    async def get_answer_key(self, quiz_id: UUID) -> dict[UUID, str]: ...


class AttemptRepo(Protocol):
    async def get(self, attempt_id: UUID) -> QuizAttempt | None: ...
    async def add(self, attempt: QuizAttempt) -> None: ...
    async def finish(self, attempt: QuizAttempt) -> bool: ...
    async def list_for_learner(
        self, learner_id: UUID, quiz_id: UUID
    ) -> list[QuizAttempt]: ...


class InMemoryQuizRepo:
    def __init__(self) -> None:
        self._quizzes: dict[UUID, Quiz] = {}
        self._questions: dict[UUID, Question] = {}
        self._answer_key: dict[UUID, AnswerKeyEntry] = {}

    def add_quiz(self, quiz: Quiz) -> None:
        self._quizzes[quiz.id] = quiz

    def add_question(self, question: Question, correct_answer: str) -> None:
        if question.quiz_id not in self._quizzes:
            raise KeyError("quiz not found")
        self._questions[question.id] = question
        self._answer_key[question.id] = AnswerKeyEntry(
            question_id=question.id, correct_answer=correct_answer
        )

    async def get_quiz(self, quiz_id: UUID) -> Quiz | None:
        return self._quizzes.get(quiz_id)

    async def list_questions(self, quiz_id: UUID) -> list[Question]:
        questions = [q for q in self._questions.values() if q.quiz_id == quiz_id]
        return sorted(questions, key=lambda q: q.position)

    async def get_answer_key(self, quiz_id: UUID) -> dict[UUID, str]:
        return {
            qid: entry.correct_answer
            for qid, entry in self._answer_key.items()
            if self._questions[qid].quiz_id == quiz_id
        }


class InMemoryAttemptRepo:
    def __init__(self) -> None:
        self._store: dict[UUID, QuizAttempt] = {}

    async def get(self, attempt_id: UUID) -> QuizAttempt | None:
        return self._store.get(attempt_id)

    async def add(self, attempt: QuizAttempt) -> None:
        if attempt.id in self._store:
            raise ValueError("attempt already exists")
        self._store[attempt.id] = attempt

    async def finish(self, attempt: QuizAttempt) -> bool:
        """Store a graded attempt over its in-progress record.

        Returns False when the stored attempt is already graded; graded
        attempts are immutable.
        """
        existing = self._store.get(attempt.id)
        if existing is None or existing.is_graded:
            return False
        self._store[attempt.id] = replace(attempt, status="graded")
        return True

    async def list_for_learner(
        self, learner_id: UUID, quiz_id: UUID
    ) -> list[QuizAttempt]:
        # Newest-added first so same-second ties still come out newest first.
        attempts = [
            a
            for a in reversed(self._store.values())
            if a.learner_id == learner_id and a.quiz_id == quiz_id and a.is_graded
        ]
        return sorted(attempts, key=lambda a: a.graded_at or 0, reverse=True)
