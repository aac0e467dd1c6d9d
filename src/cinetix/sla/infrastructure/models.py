"""
SLA Infrastructure Models
==========================

SQLAlchemy ORM models for SLA module.

These map the CineTix platform tables the SLA service reads and writes,
plus the escalation ledger table owned by this service.
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import String, DateTime, Boolean, Integer, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cinetix.infrastructure.database import Base
from cinetix.config import Priority, TicketStatus


class OrganizationModel(Base):
    """
    Database model for a cinema organization (tenant).

    Maps to the 'organizations' table.
    """
    __tablename__ = "organizations"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)


class SupportTicketModel(Base):
    """
    Database model for a support ticket.

    Maps to the 'support_tickets' table.
    """
    __tablename__ = "support_tickets"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    organization_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid, ForeignKey("organizations.id"), nullable=True, index=True
    )

    subject: Mapped[str] = mapped_column(String(500), nullable=False)
    priority: Mapped[str] = mapped_column(String(50), nullable=False, default=Priority.MEDIUM)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default=TicketStatus.OPEN, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    first_response_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    sla_breached: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    organization: Mapped[Optional[OrganizationModel]] = relationship(lazy="joined")


class PlatformSettingsModel(Base):
    """
    Database model for platform-wide settings (SLA columns only).

    Maps to the 'platform_settings' table; the service reads the first row.
    """
    __tablename__ = "platform_settings"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    sla_response_time_urgent: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    sla_response_time_high: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    sla_response_time_medium: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    sla_response_time_low: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    sla_escalation_enabled: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True, default=False)
    sla_escalation_email: Mapped[Optional[str]] = mapped_column(String(320), nullable=True)


class SLAEscalationModel(Base):
    """
    Database model for a sent escalation.

    Maps to the 'sla_escalations' table. One row per ticket; shared by all
    service instances so a breach is escalated once across restarts.
    """
    __tablename__ = "sla_escalations"

    ticket_id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    notified_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
