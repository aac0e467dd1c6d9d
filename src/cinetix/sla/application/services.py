"""
SLA Application Services
=========================

Application services orchestrate business logic and coordinate between
domain entities and repositories.

Following SOLID principles:
- Single Responsibility: Each service has one clear purpose
- Dependency Inversion: Depend on abstractions (repositories), not concrete implementations
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import AsyncIterator, Callable, List, Optional

from cinetix.sla.domain import (
    Ticket, EscalationNotice,
    SLACalculator, SLASettings, SLACountdown, ResponseBadge, SLAIndicator
)
from cinetix.core import TicketNotFoundException
from cinetix.shared.infrastructure.logging import get_logger, log_latency

logger = get_logger(__name__)


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


# ========== Repository Interfaces (Dependency Inversion) ==========

class ITicketRepository(ABC):
    """Interface for support ticket data access."""

    @abstractmethod
    async def get_by_id(self, ticket_id: str) -> Optional[Ticket]:
        """Get ticket by ID."""

    @abstractmethod
    async def list_awaiting_first_response(self) -> List[Ticket]:
        """List open/in-progress tickets that have no first response yet."""

    @abstractmethod
    async def list_active(self, limit: int = 100, offset: int = 0) -> List[Ticket]:
        """List open/in-progress tickets, oldest first."""

    @abstractmethod
    async def mark_breached(self, ticket_id: str) -> None:
        """Persist the breached flag on a ticket."""


class ISLASettingsProvider(ABC):
    """Interface for SLA settings access."""

    @abstractmethod
    async def get_settings(self) -> Optional[SLASettings]:
        """Get current SLA settings, None when none are configured."""


class IEscalationNotifier(ABC):
    """Interface for the outbound escalation dispatch."""

    @abstractmethod
    async def send(self, notice: EscalationNotice) -> None:
        """Send one escalation. Raises NotificationException on failure."""


class INotificationLedger(ABC):
    """
    Record of tickets that already had an escalation sent.

    Keeps the checker from notifying the same breach twice. A ticket is
    claimed before its escalation goes out and released again if the send
    fails, so concurrent checkers never both send.
    """

    @abstractmethod
    async def has_notified(self, ticket_id: str) -> bool:
        """Check if an escalation was already sent for the ticket."""

    @abstractmethod
    async def claim(self, ticket_id: str, notified_at: datetime) -> bool:
        """Reserve the ticket for escalation. False if already claimed."""

    @abstractmethod
    async def release(self, ticket_id: str) -> None:
        """Drop a claim whose escalation was not sent."""


# ========== Results ==========

@dataclass
class TicketSLAView:
    """Everything a badge needs to render one ticket's SLA."""
    ticket: Ticket
    target_hours: int
    deadline: datetime
    countdown: SLACountdown
    response_badge: Optional[ResponseBadge] = None
    indicator: Optional[SLAIndicator] = None


@dataclass
class EscalationRunResult:
    """Outcome of one breach escalation check."""
    checked_at: datetime
    tickets_checked: int = 0
    breaches_detected: int = 0
    breaches_flagged: int = 0
    notifications_sent: int = 0
    notifications_failed: int = 0
    skipped_reason: Optional[str] = None
    escalated_ticket_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["checked_at"] = self.checked_at.isoformat()
        return data


# ========== Application Services ==========

class SLACountdownService:
    """
    Service for live SLA countdowns.

    Coordinates between domain calculations and data access.
    """

    def __init__(
        self,
        ticket_repository: ITicketRepository,
        settings_provider: ISLASettingsProvider,
        clock: Callable[[], datetime] = utc_now
    ):
        self._ticket_repo = ticket_repository
        self._settings_provider = settings_provider
        self._clock = clock

    async def get_settings(self) -> SLASettings:
        """Current settings, falling back to defaults when none are stored."""
        sla_settings = await self._settings_provider.get_settings()
        return sla_settings or SLASettings()

    def evaluate(
        self,
        ticket: Ticket,
        sla_settings: SLASettings,
        current_time: Optional[datetime] = None
    ) -> TicketSLAView:
        """Calculate countdown, response badge and indicator for a ticket."""
        current_time = current_time or self._clock()
        target_hours = sla_settings.target_hours_for(ticket.priority)

        countdown = SLACalculator.countdown(
            ticket.created_at, target_hours, current_time,
            ticket.first_response_at, ticket.status
        )
        badge = SLACalculator.response_badge(
            ticket.created_at, ticket.first_response_at, target_hours, ticket.status
        )
        indicator = None
        if ticket.awaiting_first_response:
            indicator = SLACalculator.indicator(ticket.created_at, target_hours, current_time)

        return TicketSLAView(
            ticket=ticket,
            target_hours=target_hours,
            deadline=SLACalculator.deadline(ticket.created_at, target_hours),
            countdown=countdown,
            response_badge=badge,
            indicator=indicator
        )

    async def _load_ticket(self, ticket_id: str) -> Ticket:
        ticket = await self._ticket_repo.get_by_id(ticket_id)
        if ticket is None:
            raise TicketNotFoundException(ticket_id)
        return ticket

    async def get_ticket_sla(self, ticket_id: str) -> TicketSLAView:
        """
        Calculate the SLA view for one ticket.

        Raises:
            TicketNotFoundException: If the ticket does not exist
        """
        ticket = await self._load_ticket(ticket_id)
        sla_settings = await self.get_settings()
        return self.evaluate(ticket, sla_settings)

    async def list_open_ticket_slas(
        self,
        limit: int = 100,
        offset: int = 0
    ) -> List[TicketSLAView]:
        """Calculate SLA views for every open ticket."""
        tickets = await self._ticket_repo.list_active(limit=limit, offset=offset)
        sla_settings = await self.get_settings()
        current_time = self._clock()
        return [self.evaluate(ticket, sla_settings, current_time) for ticket in tickets]

    async def stream_countdown(
        self,
        ticket_id: str,
        tick_seconds: float = 1.0,
        max_ticks: Optional[int] = None,
        refresh_ticks: int = 60
    ) -> AsyncIterator[SLACountdown]:
        """
        Yield a freshly computed countdown once per tick.

        The ticket is re-read every `refresh_ticks` ticks so a recorded
        response ends the stream. The stream stops right after yielding an
        inactive countdown.
        """
        ticket = await self._load_ticket(ticket_id)
        sla_settings = await self.get_settings()
        ticks = 0

        while True:
            if ticks and refresh_ticks and ticks % refresh_ticks == 0:
                ticket = await self._load_ticket(ticket_id)

            countdown = self.evaluate(ticket, sla_settings).countdown
            yield countdown
            ticks += 1

            if not countdown.is_active:
                return
            if max_ticks is not None and ticks >= max_ticks:
                return
            await asyncio.sleep(tick_seconds)


class SLABreachEscalationService:
    """
    Service for detecting first-response breaches and escalating them.

    Run periodically (once per minute). Never raises: every failure is
    logged and retried on the next run.
    """

    def __init__(
        self,
        ticket_repository: ITicketRepository,
        settings_provider: ISLASettingsProvider,
        notifier: IEscalationNotifier,
        ledger: INotificationLedger,
        clock: Callable[[], datetime] = utc_now
    ):
        self._ticket_repo = ticket_repository
        self._settings_provider = settings_provider
        self._notifier = notifier
        self._ledger = ledger
        self._clock = clock

    async def check_and_notify(
        self,
        current_time: Optional[datetime] = None
    ) -> EscalationRunResult:
        """
        Evaluate all tickets awaiting a first response.

        Flags breached tickets and sends one escalation per breach.

        Returns:
            EscalationRunResult summary of the run
        """
        current_time = current_time or self._clock()
        result = EscalationRunResult(checked_at=current_time)

        try:
            sla_settings = await self._settings_provider.get_settings()
        except Exception as e:
            logger.warning(
                "SLA settings unavailable, skipping escalation check",
                extra={"error": str(e)}
            )
            result.skipped_reason = "settings_unavailable"
            return result

        if sla_settings is None or not sla_settings.can_escalate:
            logger.debug("SLA escalation disabled, nothing to check")
            result.skipped_reason = "escalation_disabled"
            return result

        try:
            tickets = await self._ticket_repo.list_awaiting_first_response()
        except Exception as e:
            logger.warning(
                "Open tickets unavailable, skipping escalation check",
                extra={"error": str(e)}
            )
            result.skipped_reason = "tickets_unavailable"
            return result

        with log_latency(logger, "sla_escalation_check", tickets=len(tickets)):
            for ticket in tickets:
                result.tickets_checked += 1
                try:
                    await self._evaluate_ticket(ticket, sla_settings, current_time, result)
                except Exception as e:
                    result.notifications_failed += 1
                    logger.error(
                        "SLA escalation failed",
                        extra={"ticket_id": ticket.id, "error": str(e)}
                    )

        if result.breaches_detected:
            logger.info(
                "SLA escalation check complete",
                extra={
                    "tickets_checked": result.tickets_checked,
                    "breaches_detected": result.breaches_detected,
                    "notifications_sent": result.notifications_sent,
                    "notifications_failed": result.notifications_failed
                }
            )
        return result

    async def _evaluate_ticket(
        self,
        ticket: Ticket,
        sla_settings: SLASettings,
        current_time: datetime,
        result: EscalationRunResult
    ) -> None:
        """Escalate a single ticket if it missed its target."""
        if await self._ledger.has_notified(ticket.id):
            return

        hours_elapsed = SLACalculator.elapsed_hours(ticket.created_at, current_time)
        target_hours = sla_settings.target_hours_for(ticket.priority)
        if hours_elapsed <= target_hours:
            return

        result.breaches_detected += 1
        await self._flag_breach(ticket, result)

        if not await self._ledger.claim(ticket.id, current_time):
            logger.info("SLA escalation already claimed", extra={"ticket_id": ticket.id})
            return

        notice = EscalationNotice.for_ticket(
            ticket,
            escalation_email=sla_settings.escalation_email,
            hours_overdue=hours_elapsed - target_hours
        )

        try:
            await self._notifier.send(notice)
        except Exception:
            # Released claims are retried on the next run
            await self._release_claim(ticket.id)
            raise

        result.notifications_sent += 1
        result.escalated_ticket_ids.append(ticket.id)
        logger.info(
            "SLA escalation sent",
            extra={"ticket_id": ticket.id, "hours_overdue": notice.hours_overdue}
        )

    async def _release_claim(self, ticket_id: str) -> None:
        try:
            await self._ledger.release(ticket_id)
        except Exception as e:
            logger.error(
                "Failed to release SLA escalation claim",
                extra={"ticket_id": ticket_id, "error": str(e)}
            )

    async def _flag_breach(self, ticket: Ticket, result: EscalationRunResult) -> None:
        """Persist the breached flag; a failed write does not block the send."""
        if ticket.sla_breached:
            return
        try:
            await self._ticket_repo.mark_breached(ticket.id)
        except Exception as e:
            logger.error(
                "Failed to flag ticket as breached",
                extra={"ticket_id": ticket.id, "error": str(e)}
            )
            return
        ticket.sla_breached = True
        result.breaches_flagged += 1
