"""API tests with the SLA services swapped for in-memory fakes."""

import json

import pytest
from fastapi.testclient import TestClient

from cinetix.config import Priority, TicketStatus
from cinetix.main import app
from cinetix.sla.application import SLACountdownService, EscalationRunResult
from cinetix.sla.interfaces.controllers import (
    get_countdown_service, get_stream_countdown_service, get_escalation_runner
)

from conftest import NOW, FakeTicketRepository, FakeSettingsProvider, make_ticket

URGENT = make_ticket(hours_ago=3, priority=Priority.URGENT)
ANSWERED = make_ticket(hours_ago=20, priority=Priority.HIGH, status=TicketStatus.RESOLVED, first_response_after=5)
WAITING = make_ticket(hours_ago=1, priority=Priority.LOW)


@pytest.fixture
def client():
    repo = FakeTicketRepository([URGENT, ANSWERED, WAITING])

    def countdown_service():
        return SLACountdownService(repo, FakeSettingsProvider(), clock=lambda: NOW)

    async def run():
        return EscalationRunResult(
            checked_at=NOW,
            tickets_checked=2,
            breaches_detected=1,
            breaches_flagged=1,
            notifications_sent=1,
            escalated_ticket_ids=[URGENT.id]
        )

    app.dependency_overrides[get_countdown_service] = countdown_service
    app.dependency_overrides[get_stream_countdown_service] = countdown_service
    app.dependency_overrides[get_escalation_runner] = lambda: run
    yield TestClient(app)
    app.dependency_overrides.clear()


def _events(body: str):
    return [
        json.loads(line[len("data: "):])
        for line in body.splitlines()
        if line.startswith("data: ")
    ]


class TestSLAEndpoints:
    def test_settings_defaults(self, client):
        response = client.get("/sla/settings")

        assert response.status_code == 200
        assert response.json() == {
            "urgent": 2, "high": 8, "medium": 24, "low": 72,
            "escalation_enabled": False, "escalation_email": None
        }

    def test_ticket_sla(self, client):
        response = client.get(f"/sla/tickets/{URGENT.id}")

        assert response.status_code == 200
        data = response.json()
        assert data["target_hours"] == 2
        assert data["countdown"]["state"] == "breached"
        assert data["countdown"]["time_remaining"] == "-1h 0m"
        assert data["indicator"]["label"] == "1h overdue"
        assert data["organization_name"] == "Roxy Cinema"

    def test_answered_ticket_badge(self, client):
        data = client.get(f"/sla/tickets/{ANSWERED.id}").json()

        assert data["countdown"]["is_active"] is False
        assert data["response_badge"]["label"] == "Met SLA"
        assert data["indicator"] is None

    def test_unknown_ticket_404(self, client):
        response = client.get("/sla/tickets/does-not-exist")

        assert response.status_code == 404

    def test_open_tickets(self, client):
        data = client.get("/sla/tickets", params={"limit": 10}).json()

        assert data["summary"]["total_tickets"] == 2
        assert data["summary"]["breached_count"] == 1
        assert data["summary"]["counting_count"] == 1
        assert [t["ticket_id"] for t in data["tickets"]] == [URGENT.id, WAITING.id]

    def test_open_tickets_rejects_bad_limit(self, client):
        assert client.get("/sla/tickets", params={"limit": 0}).status_code == 422

    def test_countdown_stream(self, client):
        response = client.get(f"/sla/tickets/{WAITING.id}/countdown/stream", params={"max_ticks": 1})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        events = _events(response.text)
        assert len(events) == 1
        assert events[0]["state"] == "counting"
        assert events[0]["remaining_seconds"] == 71 * 3600

    def test_countdown_stream_ends_when_inactive(self, client):
        response = client.get(f"/sla/tickets/{ANSWERED.id}/countdown/stream")

        events = _events(response.text)
        assert [e["state"] for e in events] == ["inactive"]

    def test_countdown_stream_unknown_ticket(self, client):
        response = client.get("/sla/tickets/does-not-exist/countdown/stream")

        assert response.status_code == 404

    def test_run_escalations(self, client):
        response = client.post("/sla/escalations/run")

        assert response.status_code == 200
        data = response.json()
        assert data["notifications_sent"] == 1
        assert data["escalated_ticket_ids"] == [URGENT.id]
        assert data["skipped_reason"] is None


class TestRoot:
    def test_root_lists_sla_endpoints(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["modules"]["sla"]["prefix"] == "/sla"

    def test_correlation_id_echoed(self, client):
        response = client.get("/", headers={"X-Correlation-ID": "abc-123"})

        assert response.headers["X-Correlation-ID"] == "abc-123"


class TestErrorMapping:
    def test_repository_failure_is_500(self, client):
        from cinetix.core import RepositoryException

        def broken_service():
            raise RepositoryException("connection reset")

        app.dependency_overrides[get_countdown_service] = broken_service
        response = client.get("/sla/settings")

        assert response.status_code == 500
        body = response.json()
        assert body["detail"] == "connection reset"
        assert body["error"]["error_type"] == "RepositoryException"
        assert "correlation_id" in body

    def test_dispatch_failure_is_502(self, client):
        from cinetix.core import NotificationException

        async def failing_run():
            raise NotificationException("dispatch returned 503")

        app.dependency_overrides[get_escalation_runner] = lambda: failing_run
        response = client.post("/sla/escalations/run")

        assert response.status_code == 502
        assert response.json()["detail"] == "Escalation Dispatch: dispatch returned 503"
