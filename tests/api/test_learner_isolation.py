"""A student token only ever acts on its own learner.

Admins may act for anyone through the path, a `learner_id` query
parameter or a `learner_id` body field.
"""

from __future__ import annotations

from uuid import UUID, uuid4

from fastapi.testclient import TestClient

from progression.repos.store import Store
from tests.conftest import auth, enroll, mint_token, seed_course, seed_quiz


def test_student_cannot_grade_for_another_learner(
    client: TestClient, store: Store, token: str, learner_id: UUID
) -> None:
    other = uuid4()
    course, _ = seed_course(store)
    enroll(store, learner_id, course.id)
    enroll(store, other, course.id)
    quiz, _ = seed_quiz(store, course.id, [("A", 10)])

    resp = client.post(
        f"/v1/quizzes/{quiz.id}/grade",
        json={"answers": {}, "learner_id": str(other)},
        headers=auth(token),
    )
    assert resp.status_code == 403


def test_student_may_name_themselves(
    client: TestClient, store: Store, token: str, learner_id: UUID
) -> None:
    course, _ = seed_course(store)
    resp = client.post(
        f"/v1/courses/{course.id}/enroll",
        params={"learner_id": str(learner_id)},
        headers=auth(token),
    )
    assert resp.status_code == 201


def test_admin_grades_for_learner(client: TestClient, store: Store) -> None:
    learner = uuid4()
    course, _ = seed_course(store)
    enroll(store, learner, course.id)
    quiz, qs = seed_quiz(store, course.id, [("A", 10)])

    resp = client.post(
        f"/v1/quizzes/{quiz.id}/grade",
        json={"answers": {str(qs[0].id): "A"}, "learner_id": str(learner)},
        headers=auth(mint_token(roles=["admin"])),
    )
    assert resp.status_code == 200
    assert resp.json()["total_xp"] == 5

    history = client.get(
        f"/v1/quizzes/{quiz.id}/attempts", headers=auth(mint_token(learner))
    ).json()
    assert len(history) == 1


def test_progress_is_not_shared_between_learners(
    client: TestClient, store: Store
) -> None:
    a, b = uuid4(), uuid4()
    course, lessons = seed_course(store, lessons=2)
    enroll(store, a, course.id)
    enroll(store, b, course.id)

    client.post(
        f"/v1/lessons/{lessons[0].id}/completion",
        json={"completed": True},
        headers=auth(mint_token(a)),
    )
    progress_b = client.get(
        f"/v1/courses/{course.id}/progress", headers=auth(mint_token(b))
    ).json()
    assert progress_b["completed_lessons"] == 0
