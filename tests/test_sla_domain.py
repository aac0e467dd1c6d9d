"""Tests for SLA settings, tickets and escalation notices."""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from cinetix.config import Priority, TicketStatus
from cinetix.sla.domain import SLASettings, Ticket, EscalationNotice

from conftest import NOW, make_ticket


class TestSLASettings:
    def test_defaults(self):
        sla_settings = SLASettings()

        assert (sla_settings.urgent, sla_settings.high, sla_settings.medium, sla_settings.low) == (2, 8, 24, 72)
        assert not sla_settings.escalation_enabled
        assert not sla_settings.can_escalate

    def test_unknown_priority_uses_medium(self):
        sla_settings = SLASettings(medium=12)

        assert sla_settings.target_hours_for("critical") == 12
        assert sla_settings.target_hours_for("") == 12

    def test_zero_target_rejected(self):
        with pytest.raises(ValidationError):
            SLASettings(urgent=0)

    def test_blank_email_is_unset(self):
        sla_settings = SLASettings(escalation_enabled=True, escalation_email="   ")

        assert sla_settings.escalation_email is None
        assert not sla_settings.can_escalate

    def test_can_escalate_needs_switch_and_address(self):
        assert SLASettings(escalation_enabled=True, escalation_email="ops@cinetix.example").can_escalate
        assert not SLASettings(escalation_enabled=False, escalation_email="ops@cinetix.example").can_escalate

    def test_settings_are_frozen(self):
        sla_settings = SLASettings()
        with pytest.raises(ValidationError):
            sla_settings.urgent = 4


class TestTicket:
    def test_response_before_creation_rejected(self):
        with pytest.raises(ValueError):
            Ticket(
                id="t-1",
                subject="Refund",
                priority=Priority.HIGH,
                status=TicketStatus.OPEN,
                created_at=NOW,
                first_response_at=NOW - timedelta(minutes=1)
            )

    def test_awaiting_first_response(self):
        assert make_ticket().awaiting_first_response
        assert not make_ticket(first_response_after=0.5).awaiting_first_response
        assert not make_ticket(status=TicketStatus.RESOLVED).awaiting_first_response

    def test_cinema_name_fallback(self):
        assert make_ticket(organization_name=None).cinema_name == "Unknown Cinema"
        assert make_ticket(organization_name="Roxy Cinema").cinema_name == "Roxy Cinema"


class TestEscalationNotice:
    def test_payload_uses_dispatch_parameter_names(self):
        ticket = make_ticket(hours_ago=3, priority=Priority.URGENT)
        notice = EscalationNotice.for_ticket(ticket, "ops@cinetix.example", hours_overdue=1)

        assert notice.to_payload() == {
            "ticketId": ticket.id,
            "ticketSubject": "Seat map not loading",
            "cinemaName": "Roxy Cinema",
            "priority": "urgent",
            "createdAt": ticket.created_at.isoformat(),
            "escalationEmail": "ops@cinetix.example",
            "hoursOverdue": 1,
        }
