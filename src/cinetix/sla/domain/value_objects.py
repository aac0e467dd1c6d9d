"""
SLA Value Objects
==================

Immutable value objects for SLA domain.

Value objects are defined by their attributes rather than an identity.
They are immutable and can be freely shared.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cinetix.config import (
    Priority, TicketStatus, SLABadgeState,
    DEFAULT_SLA_TARGET_HOURS, FALLBACK_PRIORITY, FINISHED_STATUSES,
    WARNING_THRESHOLD_PERCENT
)


class SLASettings(BaseModel):
    """
    Platform-wide SLA settings.

    Target first-response hours per priority plus the escalation switch
    and destination. Read-only to the SLA service.
    """
    model_config = ConfigDict(frozen=True)

    urgent: int = Field(default=DEFAULT_SLA_TARGET_HOURS[Priority.URGENT], ge=1)
    high: int = Field(default=DEFAULT_SLA_TARGET_HOURS[Priority.HIGH], ge=1)
    medium: int = Field(default=DEFAULT_SLA_TARGET_HOURS[Priority.MEDIUM], ge=1)
    low: int = Field(default=DEFAULT_SLA_TARGET_HOURS[Priority.LOW], ge=1)
    escalation_enabled: bool = False
    escalation_email: Optional[str] = None

    @field_validator("escalation_email")
    @classmethod
    def normalize_email(cls, v: Optional[str]) -> Optional[str]:
        """Treat blank addresses as unset."""
        if v is None:
            return None
        v = v.strip()
        return v or None

    def target_hours_for(self, priority: str) -> int:
        """
        Get the target response hours for a priority.

        Unrecognized priorities use the medium bucket.
        """
        targets = {
            Priority.URGENT: self.urgent,
            Priority.HIGH: self.high,
            Priority.MEDIUM: self.medium,
            Priority.LOW: self.low,
        }
        return targets.get(priority, targets[FALLBACK_PRIORITY])

    @property
    def can_escalate(self) -> bool:
        """Escalation needs both the switch and a destination address."""
        return self.escalation_enabled and self.escalation_email is not None


@dataclass(frozen=True)
class SLACountdown:
    """Live countdown for a ticket still waiting on its first response."""
    time_remaining: str
    is_breached: bool
    is_warning: bool
    percent_remaining: float
    remaining_seconds: int
    target_hours: int
    is_active: bool = True

    @property
    def state(self) -> str:
        if not self.is_active:
            return SLABadgeState.INACTIVE
        if self.is_breached:
            return SLABadgeState.BREACHED
        if self.is_warning:
            return SLABadgeState.WARNING
        return SLABadgeState.COUNTING

    def to_dict(self) -> dict:
        return {
            "time_remaining": self.time_remaining,
            "is_breached": self.is_breached,
            "is_warning": self.is_warning,
            "percent_remaining": self.percent_remaining,
            "remaining_seconds": self.remaining_seconds,
            "target_hours": self.target_hours,
            "is_active": self.is_active,
            "state": self.state,
        }


@dataclass(frozen=True)
class ResponseBadge:
    """Met/breached badge computed once a first response exists."""
    label: str
    state: str
    within_sla: bool
    response_hours: int
    target_hours: int


@dataclass(frozen=True)
class SLAIndicator:
    """Hour-granular summary of a waiting ticket ("3h left", "2h overdue")."""
    label: str
    hours_elapsed: int
    is_breached: bool
    is_warning: bool


class SLACalculator:
    """
    Pure functions for SLA calculations.

    Stateless utility class - every function takes the current time
    as an argument so results are deterministic.
    """

    @staticmethod
    def deadline(created_at: datetime, target_hours: int) -> datetime:
        """First-response deadline of a ticket."""
        return created_at + timedelta(hours=target_hours)

    @staticmethod
    def remaining_seconds(
        created_at: datetime,
        target_hours: int,
        current_time: datetime
    ) -> int:
        """Whole seconds left until the deadline, negative once past it."""
        delta = SLACalculator.deadline(created_at, target_hours) - current_time
        return int(delta.total_seconds())

    @staticmethod
    def elapsed_hours(created_at: datetime, current_time: datetime) -> int:
        """Whole hours elapsed since creation, truncated toward zero."""
        return int((current_time - created_at).total_seconds() / 3600)

    @staticmethod
    def format_remaining(seconds: int) -> str:
        """
        Render a signed duration for the countdown badge.

        Examples:
            9000  -> "2h 30m"
            125   -> "2m 5s"
            0     -> "0s"
            -3720 -> "-1h 2m"
        """
        sign = "-" if seconds < 0 else ""
        magnitude = abs(seconds)
        hours = magnitude // 3600
        minutes = (magnitude % 3600) // 60
        secs = magnitude % 60

        if hours > 0:
            return f"{sign}{hours}h {minutes}m"
        if minutes > 0:
            return f"{sign}{minutes}m {secs}s"
        return f"{sign}{secs}s"

    @staticmethod
    def countdown(
        created_at: datetime,
        target_hours: int,
        current_time: datetime,
        first_response_at: Optional[datetime] = None,
        status: str = TicketStatus.OPEN
    ) -> SLACountdown:
        """
        Calculate the live countdown for a ticket.

        Once a first response exists or the ticket is resolved/closed
        the countdown is inactive.
        """
        if first_response_at is not None or status in FINISHED_STATUSES:
            return SLACountdown(
                time_remaining="",
                is_breached=False,
                is_warning=False,
                percent_remaining=100.0,
                remaining_seconds=0,
                target_hours=target_hours,
                is_active=False
            )

        remaining = SLACalculator.remaining_seconds(created_at, target_hours, current_time)
        total = target_hours * 3600
        percent = max(0.0, min(100.0, remaining / total * 100))

        is_breached = remaining <= 0
        is_warning = not is_breached and percent <= WARNING_THRESHOLD_PERCENT

        return SLACountdown(
            time_remaining=SLACalculator.format_remaining(remaining),
            is_breached=is_breached,
            is_warning=is_warning,
            percent_remaining=percent,
            remaining_seconds=remaining,
            target_hours=target_hours
        )

    @staticmethod
    def response_badge(
        created_at: datetime,
        first_response_at: Optional[datetime],
        target_hours: int,
        status: str
    ) -> Optional[ResponseBadge]:
        """
        Calculate the met/breached badge for a responded ticket.

        Returns None while no response exists.
        """
        if first_response_at is None:
            return None

        response_hours = SLACalculator.elapsed_hours(created_at, first_response_at)
        within_sla = response_hours <= target_hours

        if status in FINISHED_STATUSES:
            label = "Met SLA" if within_sla else "Breached SLA"
            state = SLABadgeState.MET if within_sla else SLABadgeState.BREACHED
        else:
            label = f"Responded in {response_hours}h"
            state = SLABadgeState.RESPONDED

        return ResponseBadge(
            label=label,
            state=state,
            within_sla=within_sla,
            response_hours=response_hours,
            target_hours=target_hours
        )

    @staticmethod
    def indicator(
        created_at: datetime,
        target_hours: int,
        current_time: datetime
    ) -> SLAIndicator:
        """Calculate the hour-granular indicator for a waiting ticket."""
        hours_elapsed = SLACalculator.elapsed_hours(created_at, current_time)
        hours_remaining = target_hours - hours_elapsed
        minutes_elapsed = int((current_time - created_at).total_seconds() / 60)
        minutes_remaining = target_hours * 60 - minutes_elapsed

        is_breached = hours_remaining <= 0
        is_warning = not is_breached and minutes_remaining <= target_hours * 60 * WARNING_THRESHOLD_PERCENT / 100

        if is_breached:
            label = f"{abs(hours_remaining)}h overdue"
        elif minutes_remaining < 60:
            label = f"{max(0, minutes_remaining)}m left"
        else:
            label = f"{hours_remaining}h left"

        return SLAIndicator(
            label=label,
            hours_elapsed=hours_elapsed,
            is_breached=is_breached,
            is_warning=is_warning
        )
