"""Quiz domain models.

The answer key is deliberately its own type.  `Question` carries what a
learner may see; `AnswerKeyEntry` carries the correct answer and is only
ever loaded by the grader.  No model holds both.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID, uuid4

QUESTION_TYPES = ("mcq", "true_false")


@dataclass(frozen=True, slots=True)
class Quiz:
    id: UUID
    course_id: UUID
    title: str
    passing_score_percent: int = 60

    @staticmethod
    def new(*, course_id: UUID, title: str, passing_score_percent: int = 60) -> Quiz:
        return Quiz(
            id=uuid4(),
            course_id=course_id,
            title=title,
            passing_score_percent=passing_score_percent,
        )


@dataclass(frozen=True, slots=True)
class Question:
    id: UUID
    quiz_id: UUID
    text: str
    type: str  # mcq|true_false
    options: tuple[str, ...]
    points: int = 10
    position: int = 0

    @staticmethod
    def new(
        *,
        quiz_id: UUID,
        text: str,
        type: str = "mcq",
        options: tuple[str, ...] = (),
        points: int = 10,
        position: int = 0,
    ) -> Question:
        return Question(
            id=uuid4(),
            quiz_id=quiz_id,
            text=text,
            type=type,
            options=options,
            points=points,
            position=position,
        )


@dataclass(frozen=True, slots=True)
class AnswerKeyEntry:
    question_id: UUID
    correct_answer: str


@dataclass(frozen=True, slots=True)
class QuestionResult:
    question_id: UUID
    question_text: str
    submitted_answer: str | None
    correct_answer: str
    is_correct: bool
    points: int


@dataclass(frozen=True, slots=True)
class QuizAttempt:
    id: UUID
    quiz_id: UUID
    learner_id: UUID
    status: str = "in_progress"  # in_progress|graded
    started_at: int = 0
    graded_at: int | None = None
    answers: tuple[tuple[UUID, str | None], ...] = ()
    score: int = 0
    max_score: int = 0
    percentage: int = 0
    passed: bool = False
    results: tuple[QuestionResult, ...] = ()

    @staticmethod
    def start(*, quiz_id: UUID, learner_id: UUID, started_at: int) -> QuizAttempt:
        return QuizAttempt(
            id=uuid4(), quiz_id=quiz_id, learner_id=learner_id, started_at=started_at
        )

    @property
    def is_graded(self) -> bool:
        return self.status == "graded"
