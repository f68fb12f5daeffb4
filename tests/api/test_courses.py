"""Tests for course eligibility, enrollment, progress and certificate endpoints."""

from __future__ import annotations

from uuid import UUID, uuid4

from fastapi.testclient import TestClient

from progression.repos.store import Store
from tests.conftest import auth, enroll, mint_token, seed_course


def _complete_all(client: TestClient, token: str, lessons) -> None:
    for le in lessons:
        resp = client.post(
            f"/v1/lessons/{le.id}/completion",
            json={"completed": True},
            headers=auth(token),
        )
        assert resp.status_code == 200


# ---- 401: unauthenticated ----


def test_enroll_rejects_missing_token(client: TestClient, store: Store) -> None:
    course, _ = seed_course(store)
    resp = client.post(f"/v1/courses/{course.id}/enroll")
    assert resp.status_code == 401


# ---- eligibility ----


def test_eligibility_open_course(
    client: TestClient, store: Store, token: str
) -> None:
    course, _ = seed_course(store)
    resp = client.get(f"/v1/courses/{course.id}/eligibility", headers=auth(token))
    assert resp.status_code == 200
    assert resp.json() == {
        "course_id": str(course.id),
        "eligible": True,
        "blocking": [],
    }


def test_eligibility_lists_blocking_prerequisites(
    client: TestClient, store: Store, token: str, learner_id: UUID
) -> None:
    basics, _ = seed_course(store, "Hive Basics")
    advanced, _ = seed_course(store, "Advanced Hives", prerequisites=(basics.id,))
    enroll(store, learner_id, basics.id)

    resp = client.get(f"/v1/courses/{advanced.id}/eligibility", headers=auth(token))
    body = resp.json()
    assert body["eligible"] is False
    assert body["blocking"] == [
        {"course_id": str(basics.id), "title": "Hive Basics", "is_enrolled": True}
    ]


def test_eligibility_unknown_course(client: TestClient, token: str) -> None:
    resp = client.get(f"/v1/courses/{uuid4()}/eligibility", headers=auth(token))
    assert resp.status_code == 404
    assert resp.json()["detail"]["error"] == "not_found"


# ---- 201: enrollment ----


def test_enroll_success(
    client: TestClient, store: Store, token: str, learner_id: UUID
) -> None:
    course, _ = seed_course(store)
    resp = client.post(f"/v1/courses/{course.id}/enroll", headers=auth(token))
    assert resp.status_code == 201
    body = resp.json()
    assert body["learner_id"] == str(learner_id)
    assert body["course_id"] == str(course.id)
    assert body["enrolled_at"] > 0


def test_enroll_twice_conflicts(client: TestClient, store: Store, token: str) -> None:
    course, _ = seed_course(store)
    client.post(f"/v1/courses/{course.id}/enroll", headers=auth(token))
    resp = client.post(f"/v1/courses/{course.id}/enroll", headers=auth(token))
    assert resp.status_code == 409
    assert resp.json()["detail"]["error"] == "already_enrolled"


def test_enroll_ineligible_conflicts_with_blocking_list(
    client: TestClient, store: Store, token: str
) -> None:
    basics, _ = seed_course(store, "Hive Basics")
    advanced, _ = seed_course(store, "Advanced Hives", prerequisites=(basics.id,))

    resp = client.post(f"/v1/courses/{advanced.id}/enroll", headers=auth(token))
    assert resp.status_code == 409
    detail = resp.json()["detail"]
    assert detail["error"] == "ineligible"
    assert [b["course_id"] for b in detail["blocking"]] == [str(basics.id)]


def test_enroll_after_prerequisite_completed(
    client: TestClient, store: Store, token: str
) -> None:
    basics, lessons = seed_course(store, "Hive Basics", lessons=2)
    advanced, _ = seed_course(store, "Advanced Hives", prerequisites=(basics.id,))

    client.post(f"/v1/courses/{basics.id}/enroll", headers=auth(token))
    _complete_all(client, token, lessons)
    resp = client.post(f"/v1/courses/{advanced.id}/enroll", headers=auth(token))
    assert resp.status_code == 201


def test_enroll_unpublished_course_not_found(
    client: TestClient, store: Store, token: str
) -> None:
    draft, _ = seed_course(store, "Draft", is_published=False)
    resp = client.post(f"/v1/courses/{draft.id}/enroll", headers=auth(token))
    assert resp.status_code == 404


def test_enroll_malformed_course_id(client: TestClient, token: str) -> None:
    resp = client.post("/v1/courses/not-a-uuid/enroll", headers=auth(token))
    assert resp.status_code == 422


# ---- progress ----


def test_progress_counts_completed_lessons(
    client: TestClient, store: Store, token: str, learner_id: UUID
) -> None:
    course, lessons = seed_course(store, lessons=3)
    enroll(store, learner_id, course.id)
    _complete_all(client, token, lessons[:1])

    resp = client.get(f"/v1/courses/{course.id}/progress", headers=auth(token))
    assert resp.status_code == 200
    assert resp.json() == {
        "course_id": str(course.id),
        "completed_lessons": 1,
        "total_lessons": 3,
        "percent_complete": 33,
    }


# ---- certificate ----


def test_certificate_issued_on_completion(
    client: TestClient, store: Store, token: str, learner_id: UUID
) -> None:
    course, lessons = seed_course(store, "Beekeeping 101", lessons=2)
    enroll(store, learner_id, course.id)
    _complete_all(client, token, lessons)

    resp = client.get(f"/v1/courses/{course.id}/certificate", headers=auth(token))
    assert resp.status_code == 200
    body = resp.json()
    assert body["course_title"] == "Beekeeping 101"
    assert body["learner_id"] == str(learner_id)


def test_certificate_unavailable_until_complete(
    client: TestClient, store: Store, token: str, learner_id: UUID
) -> None:
    course, lessons = seed_course(store, lessons=2)
    enroll(store, learner_id, course.id)
    _complete_all(client, token, lessons[:1])

    resp = client.get(f"/v1/courses/{course.id}/certificate", headers=auth(token))
    assert resp.status_code == 409
    detail = resp.json()["detail"]
    assert detail["error"] == "certificate_unavailable"
    assert (detail["completed_lessons"], detail["total_lessons"]) == (1, 2)


def test_certificate_requires_enrollment(
    client: TestClient, store: Store, token: str
) -> None:
    course, _ = seed_course(store)
    resp = client.get(f"/v1/courses/{course.id}/certificate", headers=auth(token))
    assert resp.status_code == 403
    assert resp.json()["detail"]["error"] == "not_enrolled"


# ---- acting for another learner ----


def test_admin_enrolls_another_learner(client: TestClient, store: Store) -> None:
    course, _ = seed_course(store)
    learner = uuid4()
    admin = mint_token(roles=["admin"])

    resp = client.post(
        f"/v1/courses/{course.id}/enroll",
        params={"learner_id": str(learner)},
        headers=auth(admin),
    )
    assert resp.status_code == 201
    assert resp.json()["learner_id"] == str(learner)


def test_student_cannot_read_another_learners_progress(
    client: TestClient, store: Store, token: str
) -> None:
    course, _ = seed_course(store)
    resp = client.get(
        f"/v1/courses/{course.id}/progress",
        params={"learner_id": str(uuid4())},
        headers=auth(token),
    )
    assert resp.status_code == 403
