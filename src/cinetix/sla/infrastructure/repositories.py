"""
SLA Infrastructure Repositories
=================================

Concrete implementations of repository interfaces using SQLAlchemy.

This layer contains the data access logic - how we store and retrieve
tickets, settings and sent escalations.
"""

from datetime import datetime, timezone
from typing import AsyncContextManager, Callable, List, Optional
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cinetix.sla.application import (
    ITicketRepository, ISLASettingsProvider, INotificationLedger
)
from cinetix.sla.domain import Ticket, SLASettings
from cinetix.sla.infrastructure.models import (
    SupportTicketModel, PlatformSettingsModel, SLAEscalationModel
)
from cinetix.config import ACTIVE_STATUSES, DEFAULT_SLA_TARGET_HOURS, Priority
from cinetix.core import RepositoryException
from cinetix.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

SessionFactory = Callable[[], AsyncContextManager[AsyncSession]]


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Drivers without timezone support hand back naive UTC datetimes."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def _parse_uuid(ticket_id: str) -> Optional[UUID]:
    try:
        return UUID(str(ticket_id))
    except ValueError:
        return None


class SQLAlchemySupportTicketRepository(ITicketRepository):
    """
    SQLAlchemy implementation of the support ticket repository.

    Reads tickets joined with their organization and writes the
    breached flag.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    @staticmethod
    def _to_domain(model: SupportTicketModel) -> Ticket:
        return Ticket(
            id=str(model.id),
            subject=model.subject,
            priority=model.priority,
            status=model.status,
            created_at=_as_utc(model.created_at),
            first_response_at=_as_utc(model.first_response_at),
            sla_breached=bool(model.sla_breached),
            organization_name=model.organization.name if model.organization else None
        )

    def _to_domain_list(self, models) -> List[Ticket]:
        tickets = []
        for model in models:
            try:
                tickets.append(self._to_domain(model))
            except ValueError as e:
                logger.warning(
                    "Skipping inconsistent ticket",
                    extra={"ticket_id": str(model.id), "error": str(e)}
                )
        return tickets

    async def get_by_id(self, ticket_id: str) -> Optional[Ticket]:
        """Get ticket by ID, None for unknown or malformed IDs."""
        ticket_uuid = _parse_uuid(ticket_id)
        if ticket_uuid is None:
            return None

        stmt = select(SupportTicketModel).where(SupportTicketModel.id == ticket_uuid)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def list_awaiting_first_response(self) -> List[Ticket]:
        """List open/in-progress tickets nobody has responded to."""
        stmt = (
            select(SupportTicketModel)
            .where(
                SupportTicketModel.status.in_(ACTIVE_STATUSES),
                SupportTicketModel.first_response_at.is_(None)
            )
            .order_by(SupportTicketModel.created_at.asc())
        )
        result = await self._session.execute(stmt)
        return self._to_domain_list(result.scalars().all())

    async def list_active(self, limit: int = 100, offset: int = 0) -> List[Ticket]:
        """List open/in-progress tickets, oldest first."""
        stmt = (
            select(SupportTicketModel)
            .where(SupportTicketModel.status.in_(ACTIVE_STATUSES))
            .order_by(SupportTicketModel.created_at.asc())
            .limit(limit)
            .offset(offset)
        )
        result = await self._session.execute(stmt)
        return self._to_domain_list(result.scalars().all())

    async def mark_breached(self, ticket_id: str) -> None:
        """Set sla_breached on a ticket. Repeated calls are harmless."""
        ticket_uuid = _parse_uuid(ticket_id)
        if ticket_uuid is None:
            raise RepositoryException(f"Invalid ticket ID: {ticket_id}")

        stmt = (
            update(SupportTicketModel)
            .where(SupportTicketModel.id == ticket_uuid)
            .values(sla_breached=True)
        )
        await self._session.execute(stmt)
        await self._session.flush()


class SQLAlchemySLASettingsProvider(ISLASettingsProvider):
    """
    SLA settings provider backed by the platform_settings table.

    Null or zero targets fall back to the CineTix defaults.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_settings(self) -> Optional[SLASettings]:
        stmt = select(PlatformSettingsModel).limit(1)
        result = await self._session.execute(stmt)
        row = result.scalar_one_or_none()
        if row is None:
            return None

        return SLASettings(
            urgent=row.sla_response_time_urgent or DEFAULT_SLA_TARGET_HOURS[Priority.URGENT],
            high=row.sla_response_time_high or DEFAULT_SLA_TARGET_HOURS[Priority.HIGH],
            medium=row.sla_response_time_medium or DEFAULT_SLA_TARGET_HOURS[Priority.MEDIUM],
            low=row.sla_response_time_low or DEFAULT_SLA_TARGET_HOURS[Priority.LOW],
            escalation_enabled=bool(row.sla_escalation_enabled),
            escalation_email=row.sla_escalation_email
        )


class SessionScopedTicketRepository(ITicketRepository):
    """
    Ticket repository that opens a short session for every call.

    For long-lived readers such as countdown streams, which must not keep a
    pooled connection checked out between reads.
    """

    def __init__(self, session_factory: SessionFactory):
        self._session_factory = session_factory

    async def get_by_id(self, ticket_id: str) -> Optional[Ticket]:
        async with self._session_factory() as session:
            return await SQLAlchemySupportTicketRepository(session).get_by_id(ticket_id)

    async def list_awaiting_first_response(self) -> List[Ticket]:
        async with self._session_factory() as session:
            return await SQLAlchemySupportTicketRepository(session).list_awaiting_first_response()

    async def list_active(self, limit: int = 100, offset: int = 0) -> List[Ticket]:
        async with self._session_factory() as session:
            return await SQLAlchemySupportTicketRepository(session).list_active(limit=limit, offset=offset)

    async def mark_breached(self, ticket_id: str) -> None:
        async with self._session_factory() as session:
            await SQLAlchemySupportTicketRepository(session).mark_breached(ticket_id)
            await session.commit()


class SessionScopedSLASettingsProvider(ISLASettingsProvider):
    """Settings provider that reads platform_settings in a short session per call."""

    def __init__(self, session_factory: SessionFactory):
        self._session_factory = session_factory

    async def get_settings(self) -> Optional[SLASettings]:
        async with self._session_factory() as session:
            return await SQLAlchemySLASettingsProvider(session).get_settings()


class SQLAlchemyNotificationLedger(INotificationLedger):
    """
    Notification ledger stored in the sla_escalations table.

    Shared by every service instance and survives restarts. Each call runs
    in its own short transaction, independent of the scan's session, so a
    claim is visible to other instances before the escalation is sent.
    The table's primary key decides which instance wins a claim.
    """

    def __init__(self, session_factory: SessionFactory):
        self._session_factory = session_factory

    async def has_notified(self, ticket_id: str) -> bool:
        ticket_uuid = _parse_uuid(ticket_id)
        if ticket_uuid is None:
            return False

        stmt = select(SLAEscalationModel.ticket_id).where(SLAEscalationModel.ticket_id == ticket_uuid)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return result.scalar_one_or_none() is not None

    async def claim(self, ticket_id: str, notified_at: datetime) -> bool:
        ticket_uuid = _parse_uuid(ticket_id)
        if ticket_uuid is None:
            raise RepositoryException(f"Invalid ticket ID: {ticket_id}")

        async with self._session_factory() as session:
            session.add(SLAEscalationModel(ticket_id=ticket_uuid, notified_at=notified_at))
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                return False
        return True

    async def release(self, ticket_id: str) -> None:
        ticket_uuid = _parse_uuid(ticket_id)
        if ticket_uuid is None:
            return

        stmt = delete(SLAEscalationModel).where(SLAEscalationModel.ticket_id == ticket_uuid)
        async with self._session_factory() as session:
            await session.execute(stmt)
            await session.commit()
