from __future__ import annotations

import asyncio
import sys
from collections.abc import Iterator
from pathlib import Path
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient

# Ensure repo root is on sys.path so `import progression` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from progression.api.dependencies import get_store  # noqa: E402
from progression.main import app  # noqa: E402
from progression.models.course import Course, Enrollment, Lesson  # noqa: E402
from progression.models.quiz import Question, Quiz  # noqa: E402
from progression.repos.store import Store, memory_store  # noqa: E402
from progression.services import token_service  # noqa: E402
from progression.services.cache import cache_service  # noqa: E402


@pytest.fixture(autouse=True)
def store() -> Iterator[Store]:
    """Fresh in-memory store per test, wired into the app."""
    fresh = memory_store()

    async def _override() -> Store:
        return fresh

    app.dependency_overrides[get_store] = _override
    yield fresh
    app.dependency_overrides.pop(get_store, None)


@pytest.fixture(autouse=True)
def reset_cache() -> None:
    """Clear cache between tests."""
    if hasattr(cache_service, "_store"):
        cache_service._store.clear()  # type: ignore[union-attr]


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def mint_token(
    learner_id: UUID | None = None,
    roles: list[str] | None = None,
) -> str:
    """Create a valid ES256 JWT for testing."""
    return token_service.create_access_token(
        sub=str(learner_id or uuid4()), roles=roles
    )


def auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def learner_id() -> UUID:
    return uuid4()


@pytest.fixture
def token(learner_id: UUID) -> str:
    """Token for `learner_id` with the default (student) role."""
    return mint_token(learner_id)


@pytest.fixture
def admin_token() -> str:
    return mint_token(roles=["admin"])


# ---------------------------------------------------------------------------
# Catalog seeding helpers (the engine never writes the catalog itself)
# ---------------------------------------------------------------------------


def seed_course(
    store: Store,
    title: str = "Intro to Pollination",
    *,
    lessons: int = 3,
    prerequisites: tuple[UUID, ...] = (),
    is_published: bool = True,
) -> tuple[Course, list[Lesson]]:
    course = Course.new(
        title=title, is_published=is_published, prerequisite_ids=prerequisites
    )
    store.catalog.add_course(course)  # type: ignore[attr-defined]
    seeded = []
    for i in range(lessons):
        lesson = Lesson.new(course_id=course.id, title=f"{title} {i + 1}", position=i)
        store.catalog.add_lesson(lesson)  # type: ignore[attr-defined]
        seeded.append(lesson)
    return course, seeded


def seed_quiz(
    store: Store,
    course_id: UUID,
    answers: list[tuple[str, int]],
    *,
    passing_score_percent: int = 60,
) -> tuple[Quiz, list[Question]]:
    """Seed a quiz whose questions have the given (correct answer, points)."""
    quiz = Quiz.new(
        course_id=course_id,
        title="Checkpoint",
        passing_score_percent=passing_score_percent,
    )
    store.quizzes.add_quiz(quiz)  # type: ignore[attr-defined]
    questions = []
    for i, (correct, points) in enumerate(answers):
        question = Question.new(
            quiz_id=quiz.id,
            text=f"Question {i + 1}",
            options=("A", "B", "C", "D"),
            points=points,
            position=i,
        )
        store.quizzes.add_question(question, correct)  # type: ignore[attr-defined]
        questions.append(question)
    return quiz, questions


def enroll(store: Store, learner_id: UUID, course_id: UUID) -> None:
    """Enroll directly, skipping the prerequisite check."""
    asyncio.run(
        store.enrollments.add_if_absent(
            Enrollment(learner_id=learner_id, course_id=course_id, enrolled_at=0)
        )
    )
