"""Unit tests for the POST /sla/check trigger and the health endpoint."""

from __future__ import annotations

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from src.main import app
from src.sla.application import SLAEvaluationService
from src.sla.interfaces.controllers import get_evaluation_service
from tests.helpers.sla_fakes import (
    T0,
    InMemoryRosterSource,
    InMemoryTicketSource,
    RecordingSender,
    make_ticket,
)


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def client(sender: RecordingSender):
    service = SLAEvaluationService(
        InMemoryTicketSource([make_ticket()]), InMemoryRosterSource(), sender
    )
    app.dependency_overrides[get_evaluation_service] = lambda: service
    # No context manager: lifespan (database, scheduler) stays off
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_check_returns_run_summary(client: TestClient, sender: RecordingSender) -> None:
    now = (T0 + timedelta(hours=2)).isoformat()

    response = client.post("/sla/check", json={"now": now})

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "completed"
    assert body["breaches_sent"] == 1
    assert body["escalations_sent"] == 1
    assert body["failures"] == []
    assert len(sender.sent) == 2


def test_check_without_body(client: TestClient) -> None:
    response = client.post("/sla/check")

    assert response.status_code == 200
    assert response.json()["tickets_evaluated"] == 1


def test_correlation_id_echoed(client: TestClient) -> None:
    response = client.post("/sla/check", headers={"X-Correlation-ID": "cron-42"})

    assert response.headers["X-Correlation-ID"] == "cron-42"


def test_invalid_timeout_rejected(client: TestClient) -> None:
    response = client.post("/sla/check", json={"timeout_seconds": 0})

    assert response.status_code == 422


def test_failed_run_returns_503() -> None:
    service = SLAEvaluationService(
        InMemoryTicketSource([], fail_load=True), InMemoryRosterSource(), RecordingSender()
    )
    app.dependency_overrides[get_evaluation_service] = lambda: service
    try:
        response = TestClient(app).post("/sla/check")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 503
    assert response.json()["status"] == "failed"
    assert response.json()["error"] == "database unavailable"


def test_service_unavailable_before_startup() -> None:
    response = TestClient(app).post("/sla/check")

    assert response.status_code == 503


def test_health_reports_components() -> None:
    response = TestClient(app).get("/health")

    assert response.status_code == 200
    assert response.json()["checks"]["sla_scheduler"] == "stopped"
