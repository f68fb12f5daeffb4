"""Request context middleware: X-Request-ID on every response, and the
authenticated learner id on every log line emitted while handling it."""

from __future__ import annotations

import logging
import uuid

import pytest
from fastapi.testclient import TestClient

from tests.conftest import auth, mint_token


def test_request_id_generated_when_not_provided(client: TestClient) -> None:
    resp = client.get("/health")
    uuid.UUID(resp.headers["x-request-id"])


def test_request_id_echoed_when_provided(client: TestClient) -> None:
    resp = client.get("/health", headers={"X-Request-ID": "trace-abc-123"})
    assert resp.headers["x-request-id"] == "trace-abc-123"


def test_request_id_present_on_unauthenticated_response(client: TestClient) -> None:
    resp = client.get("/v1/leaderboard")
    assert resp.status_code == 401
    assert resp.headers.get("x-request-id") is not None


def test_summary_line_logged_with_status(
    client: TestClient, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.INFO, logger="progression.middleware.request_context"):
        client.get("/health", headers={"X-Request-ID": "summary-1"})

    lines = [
        r
        for r in caplog.records
        if r.name == "progression.middleware.request_context"
    ]
    assert lines
    assert lines[-1].status_code == 200  # type: ignore[attr-defined]
    assert lines[-1].path == "/health"  # type: ignore[attr-defined]
    assert lines[-1].request_id == "summary-1"  # type: ignore[attr-defined]


def test_service_logs_carry_learner_id(
    client: TestClient, caplog: pytest.LogCaptureFixture
) -> None:
    learner = uuid.uuid4()
    admin = mint_token(roles=["admin"])
    with caplog.at_level(logging.INFO, logger="progression.services.xp_service"):
        resp = client.post(
            f"/v1/learners/{learner}/xp",
            json={"amount": 10, "reason": "manual"},
            headers=auth(admin),
        )
    assert resp.status_code == 200

    award_lines = [
        r for r in caplog.records if r.name == "progression.services.xp_service"
    ]
    assert award_lines
    assert str(learner) in award_lines[-1].getMessage()

