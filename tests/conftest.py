"""Shared fixtures and in-memory fakes for the SLA tests."""

from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional
from uuid import uuid4

import pytest

from cinetix.config import Priority, TicketStatus
from cinetix.core import NotificationException, RepositoryException
from cinetix.sla.application import (
    ITicketRepository, ISLASettingsProvider, IEscalationNotifier
)
from cinetix.sla.domain import Ticket, EscalationNotice, SLASettings

NOW = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)


def make_ticket(
    hours_ago: float = 1,
    priority: str = Priority.MEDIUM,
    status: str = TicketStatus.OPEN,
    first_response_after: Optional[float] = None,
    organization_name: Optional[str] = "Roxy Cinema",
    sla_breached: bool = False,
    subject: str = "Seat map not loading"
) -> Ticket:
    created_at = NOW - timedelta(hours=hours_ago)
    first_response_at = None
    if first_response_after is not None:
        first_response_at = created_at + timedelta(hours=first_response_after)
    return Ticket(
        id=str(uuid4()),
        subject=subject,
        priority=priority,
        status=status,
        created_at=created_at,
        first_response_at=first_response_at,
        sla_breached=sla_breached,
        organization_name=organization_name
    )


class FakeTicketRepository(ITicketRepository):
    def __init__(self, tickets: Optional[List[Ticket]] = None):
        self.tickets: Dict[str, Ticket] = {t.id: t for t in tickets or []}
        self.breached_ids: List[str] = []
        self.fail_mark_breached = False
        self.fail_listing = False

    async def get_by_id(self, ticket_id):
        return self.tickets.get(ticket_id)

    async def list_awaiting_first_response(self):
        if self.fail_listing:
            raise RepositoryException("connection reset")
        waiting = [t for t in self.tickets.values() if t.awaiting_first_response]
        return sorted(waiting, key=lambda t: t.created_at)

    async def list_active(self, limit=100, offset=0):
        active = sorted(
            (t for t in self.tickets.values() if t.is_active),
            key=lambda t: t.created_at
        )
        return active[offset:offset + limit]

    async def mark_breached(self, ticket_id):
        if self.fail_mark_breached:
            raise RepositoryException("update failed")
        self.breached_ids.append(ticket_id)


class FakeSettingsProvider(ISLASettingsProvider):
    def __init__(self, sla_settings: Optional[SLASettings] = None, error: Optional[Exception] = None):
        self.sla_settings = sla_settings
        self.error = error

    async def get_settings(self):
        if self.error:
            raise self.error
        return self.sla_settings


class RecordingNotifier(IEscalationNotifier):
    def __init__(self):
        self.sent: List[EscalationNotice] = []
        self.failures_remaining = 0

    async def send(self, notice):
        if self.failures_remaining:
            self.failures_remaining -= 1
            raise NotificationException("dispatch returned 502")
        self.sent.append(notice)


@pytest.fixture
def escalating_settings() -> SLASettings:
    return SLASettings(escalation_enabled=True, escalation_email="ops@cinetix.example")


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()
