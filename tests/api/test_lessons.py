"""Tests for the lesson completion endpoint."""

from __future__ import annotations

from uuid import UUID, uuid4

from fastapi.testclient import TestClient

from progression.repos.store import Store
from tests.conftest import auth, enroll, mint_token, seed_course


def _set(client: TestClient, token: str, lesson_id, completed: bool = True, **extra):
    return client.post(
        f"/v1/lessons/{lesson_id}/completion",
        json={"completed": completed, **extra},
        headers=auth(token),
    )


def test_completion_rejects_missing_token(client: TestClient) -> None:
    resp = client.post(f"/v1/lessons/{uuid4()}/completion", json={"completed": True})
    assert resp.status_code == 401


def test_first_completion_response(
    client: TestClient, store: Store, token: str, learner_id: UUID
) -> None:
    course, lessons = seed_course(store, lessons=2)
    enroll(store, learner_id, course.id)

    resp = _set(client, token, lessons[0].id)
    assert resp.status_code == 200
    body = resp.json()
    assert body["lesson_id"] == str(lessons[0].id)
    assert body["course_id"] == str(course.id)
    assert body["completed"] is True
    assert body["xp_gained"] == 15
    assert body["streak"]["current_streak"] == 1
    assert body["streak"]["streak_increased"] is True
    assert body["course_completed"] is False
    assert body["badges_granted"] == ["Busy Bee"]
    assert (body["total_xp"], body["level"]) == (15, 1)


def test_completing_last_lesson_completes_course(
    client: TestClient, store: Store, token: str, learner_id: UUID
) -> None:
    course, lessons = seed_course(store, lessons=2)
    enroll(store, learner_id, course.id)

    _set(client, token, lessons[0].id)
    body = _set(client, token, lessons[1].id).json()
    assert body["course_completed"] is True
    assert body["xp_gained"] == 15 + 50
    assert body["badges_granted"] == ["Honey Hunter"]
    assert body["total_xp"] == 80


def test_toggle_does_not_regrant_xp(
    client: TestClient, store: Store, token: str, learner_id: UUID
) -> None:
    course, lessons = seed_course(store, lessons=2)
    enroll(store, learner_id, course.id)

    _set(client, token, lessons[0].id)
    undo = _set(client, token, lessons[0].id, completed=False).json()
    redo = _set(client, token, lessons[0].id).json()

    assert undo["completed"] is False
    assert undo["streak"] is None
    assert undo["total_xp"] == 15
    assert redo["xp_gained"] == 0
    assert redo["badges_granted"] == []
    assert redo["total_xp"] == 15


def test_completion_requires_enrollment(
    client: TestClient, store: Store, token: str
) -> None:
    _, lessons = seed_course(store)
    resp = _set(client, token, lessons[0].id)
    assert resp.status_code == 403
    assert resp.json()["detail"]["error"] == "not_enrolled"


def test_unknown_lesson(client: TestClient, token: str) -> None:
    resp = _set(client, token, uuid4())
    assert resp.status_code == 404


def test_completed_flag_is_required(client: TestClient, token: str) -> None:
    resp = client.post(
        f"/v1/lessons/{uuid4()}/completion", json={}, headers=auth(token)
    )
    assert resp.status_code == 422


def test_admin_completes_for_learner(client: TestClient, store: Store) -> None:
    learner = uuid4()
    course, lessons = seed_course(store)
    enroll(store, learner, course.id)

    resp = _set(
        client,
        mint_token(roles=["admin"]),
        lessons[0].id,
        learner_id=str(learner),
    )
    assert resp.status_code == 200

    profile = client.get(
        f"/v1/learners/{learner}/gamification", headers=auth(mint_token(learner))
    ).json()
    assert profile["xp"] == 15


def test_student_cannot_complete_for_someone_else(
    client: TestClient, store: Store, token: str
) -> None:
    other = uuid4()
    course, lessons = seed_course(store)
    enroll(store, other, course.id)

    resp = _set(client, token, lessons[0].id, learner_id=str(other))
    assert resp.status_code == 403
