"""
SLA Infrastructure Layer
=========================

Infrastructure implementations for SLA monitoring:
- Models: SQLAlchemy ORM models
- Repositories: Data access layer (tickets, settings, escalation ledger)
- Ledgers: In-memory notification ledger
- External: Escalation dispatch, settings file watcher, scheduler
"""

from cinetix.sla.infrastructure.models import (
    OrganizationModel,
    SupportTicketModel,
    PlatformSettingsModel,
    SLAEscalationModel,
)
from cinetix.sla.infrastructure.repositories import (
    SQLAlchemySupportTicketRepository,
    SQLAlchemySLASettingsProvider,
    SQLAlchemyNotificationLedger,
    SessionScopedTicketRepository,
    SessionScopedSLASettingsProvider,
    SessionFactory,
)
from cinetix.sla.infrastructure.ledgers import InMemoryNotificationLedger
from cinetix.sla.infrastructure.external import (
    SLASettingsManager,
    FileSLASettingsProvider,
    ZeptoMailEscalationNotifier,
    WebhookEscalationNotifier,
    SLAScheduler,
)
from cinetix.sla.infrastructure.templates import EscalationEmailTemplate

__all__ = [
    "OrganizationModel",
    "SupportTicketModel",
    "PlatformSettingsModel",
    "SLAEscalationModel",
    "SQLAlchemySupportTicketRepository",
    "SQLAlchemySLASettingsProvider",
    "SQLAlchemyNotificationLedger",
    "SessionScopedTicketRepository",
    "SessionScopedSLASettingsProvider",
    "SessionFactory",
    "InMemoryNotificationLedger",
    "SLASettingsManager",
    "FileSLASettingsProvider",
    "ZeptoMailEscalationNotifier",
    "WebhookEscalationNotifier",
    "SLAScheduler",
    "EscalationEmailTemplate",
]
