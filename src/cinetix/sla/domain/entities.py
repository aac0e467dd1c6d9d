"""
SLA Domain Entities
====================

Pure Python domain entities for SLA monitoring.

Following Domain-Driven Design principles, these entities contain
business logic and are free of infrastructure concerns.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from cinetix.config import (
    ACTIVE_STATUSES, FINISHED_STATUSES, UNKNOWN_CINEMA_NAME
)


@dataclass
class Ticket:
    """
    Support ticket raised by a cinema.

    Holds only the fields that matter for first-response SLA tracking.
    """

    id: str
    subject: str
    priority: str
    status: str
    created_at: datetime

    first_response_at: Optional[datetime] = None
    sla_breached: bool = False
    organization_name: Optional[str] = None

    def __post_init__(self):
        """Validate ticket on initialization."""
        if self.first_response_at and self.first_response_at < self.created_at:
            raise ValueError("first_response_at cannot be before created_at")

    @property
    def is_active(self) -> bool:
        """Check if ticket is still open or being worked on."""
        return self.status in ACTIVE_STATUSES

    @property
    def is_finished(self) -> bool:
        """Check if ticket has been resolved or closed."""
        return self.status in FINISHED_STATUSES

    @property
    def awaiting_first_response(self) -> bool:
        """The countdown only runs for active tickets nobody has answered."""
        return self.is_active and self.first_response_at is None

    @property
    def cinema_name(self) -> str:
        return self.organization_name or UNKNOWN_CINEMA_NAME


@dataclass(frozen=True)
class EscalationNotice:
    """
    Outbound escalation for a ticket that missed its first-response target.

    Carries exactly what the dispatch needs to build the email.
    """

    ticket_id: str
    ticket_subject: str
    cinema_name: str
    priority: str
    created_at: datetime
    escalation_email: str
    hours_overdue: int

    @classmethod
    def for_ticket(
        cls,
        ticket: Ticket,
        escalation_email: str,
        hours_overdue: int
    ) -> "EscalationNotice":
        return cls(
            ticket_id=ticket.id,
            ticket_subject=ticket.subject,
            cinema_name=ticket.cinema_name,
            priority=ticket.priority,
            created_at=ticket.created_at,
            escalation_email=escalation_email,
            hours_overdue=hours_overdue
        )

    def to_payload(self) -> dict:
        """Parameter set expected by the send-sla-escalation function."""
        return {
            "ticketId": self.ticket_id,
            "ticketSubject": self.ticket_subject,
            "cinemaName": self.cinema_name,
            "priority": self.priority,
            "createdAt": self.created_at.isoformat(),
            "escalationEmail": self.escalation_email,
            "hoursOverdue": self.hours_overdue,
        }
