"""
SLA Application DTOs
=====================

Data Transfer Objects for SLA API layer.

These Pydantic models handle serialization for API responses.
Following YAGNI - only what's needed.
"""

from pydantic import BaseModel, Field
from typing import List, Optional, Literal
from datetime import datetime

from cinetix.sla.application.services import TicketSLAView, EscalationRunResult
from cinetix.sla.domain import SLASettings, SLACountdown


# ========== Type Aliases for Literals ==========
TicketStatusStr = Literal["open", "in_progress", "resolved", "closed"]
CountdownStateStr = Literal["counting", "warning", "breached", "inactive"]
BadgeStateStr = Literal["met", "breached", "responded"]


# ========== Response DTOs ==========

class SLASettingsResponse(BaseModel):
    """Response model for the platform SLA settings."""
    urgent: int = Field(..., description="Target response hours for urgent tickets")
    high: int = Field(..., description="Target response hours for high tickets")
    medium: int = Field(..., description="Target response hours for medium tickets")
    low: int = Field(..., description="Target response hours for low tickets")
    escalation_enabled: bool = Field(..., description="Whether breaches are escalated")
    escalation_email: Optional[str] = Field(None, description="Escalation destination")

    @classmethod
    def from_settings(cls, sla_settings: SLASettings) -> "SLASettingsResponse":
        return cls(**sla_settings.model_dump())


class CountdownResponse(BaseModel):
    """Response model for a live countdown."""
    time_remaining: str = Field(..., description="Signed display string, e.g. '1h 5m' or '-3m 2s'")
    is_breached: bool
    is_warning: bool
    percent_remaining: float = Field(..., ge=0, le=100)
    remaining_seconds: int = Field(..., description="Negative once the target has passed")
    target_hours: int
    is_active: bool
    state: CountdownStateStr

    @classmethod
    def from_countdown(cls, countdown: SLACountdown) -> "CountdownResponse":
        return cls(**countdown.to_dict())


class ResponseBadgeResponse(BaseModel):
    """Response model for the met/breached badge."""
    label: str = Field(..., description="'Met SLA', 'Breached SLA' or 'Responded in Nh'")
    state: BadgeStateStr
    within_sla: bool
    response_hours: int
    target_hours: int


class IndicatorResponse(BaseModel):
    """Response model for the hour-granular indicator."""
    label: str = Field(..., description="e.g. '3h left', '45m left', '2h overdue'")
    hours_elapsed: int
    is_breached: bool
    is_warning: bool


class TicketSLAResponse(BaseModel):
    """Response model for ticket SLA information."""
    ticket_id: str
    subject: str
    priority: str
    status: TicketStatusStr
    organization_name: Optional[str] = None
    created_at: datetime
    first_response_at: Optional[datetime] = None
    sla_breached: bool = False

    target_hours: int
    deadline: datetime
    countdown: CountdownResponse
    response_badge: Optional[ResponseBadgeResponse] = None
    indicator: Optional[IndicatorResponse] = None

    @classmethod
    def from_view(cls, view: TicketSLAView) -> "TicketSLAResponse":
        ticket = view.ticket
        badge = view.response_badge
        indicator = view.indicator
        return cls(
            ticket_id=ticket.id,
            subject=ticket.subject,
            priority=ticket.priority,
            status=ticket.status,
            organization_name=ticket.organization_name,
            created_at=ticket.created_at,
            first_response_at=ticket.first_response_at,
            sla_breached=ticket.sla_breached,
            target_hours=view.target_hours,
            deadline=view.deadline,
            countdown=CountdownResponse.from_countdown(view.countdown),
            response_badge=ResponseBadgeResponse(
                label=badge.label,
                state=badge.state,
                within_sla=badge.within_sla,
                response_hours=badge.response_hours,
                target_hours=badge.target_hours
            ) if badge else None,
            indicator=IndicatorResponse(
                label=indicator.label,
                hours_elapsed=indicator.hours_elapsed,
                is_breached=indicator.is_breached,
                is_warning=indicator.is_warning
            ) if indicator else None
        )


class OpenTicketsSummary(BaseModel):
    """Summary statistics for open tickets."""
    total_tickets: int
    breached_count: int
    warning_count: int
    counting_count: int
    responded_count: int


class OpenTicketsResponse(BaseModel):
    """Response model for the open tickets board."""
    tickets: List[TicketSLAResponse]
    summary: OpenTicketsSummary

    @classmethod
    def from_views(cls, views: List[TicketSLAView]) -> "OpenTicketsResponse":
        counts = {"breached": 0, "warning": 0, "counting": 0, "inactive": 0}
        for view in views:
            counts[view.countdown.state] += 1
        return cls(
            tickets=[TicketSLAResponse.from_view(view) for view in views],
            summary=OpenTicketsSummary(
                total_tickets=len(views),
                breached_count=counts["breached"],
                warning_count=counts["warning"],
                counting_count=counts["counting"],
                responded_count=counts["inactive"]
            )
        )


class EscalationRunResponse(BaseModel):
    """Response model for one breach escalation check."""
    checked_at: datetime
    tickets_checked: int
    breaches_detected: int
    breaches_flagged: int
    notifications_sent: int
    notifications_failed: int
    skipped_reason: Optional[str] = Field(
        None,
        description="settings_unavailable, escalation_disabled or tickets_unavailable"
    )
    escalated_ticket_ids: List[str] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: EscalationRunResult) -> "EscalationRunResponse":
        return cls(
            checked_at=result.checked_at,
            tickets_checked=result.tickets_checked,
            breaches_detected=result.breaches_detected,
            breaches_flagged=result.breaches_flagged,
            notifications_sent=result.notifications_sent,
            notifications_failed=result.notifications_failed,
            skipped_reason=result.skipped_reason,
            escalated_ticket_ids=list(result.escalated_ticket_ids)
        )
