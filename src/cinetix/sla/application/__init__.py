"""
SLA Application Layer
======================

Application layer for SLA monitoring module.

Contains:
- Services: Orchestrate business logic and coordinate with repositories
- DTOs: Data transfer objects for API serialization

This layer depends on the domain layer and repository interfaces,
but not on concrete infrastructure implementations.
"""

from cinetix.sla.application.services import (
    SLACountdownService,
    SLABreachEscalationService,
    TicketSLAView,
    EscalationRunResult,
    ITicketRepository,
    ISLASettingsProvider,
    IEscalationNotifier,
    INotificationLedger,
    utc_now,
)
from cinetix.sla.application.dto import (
    SLASettingsResponse,
    CountdownResponse,
    ResponseBadgeResponse,
    IndicatorResponse,
    TicketSLAResponse,
    OpenTicketsSummary,
    OpenTicketsResponse,
    EscalationRunResponse,
)

__all__ = [
    # DTOs
    "SLASettingsResponse",
    "CountdownResponse",
    "ResponseBadgeResponse",
    "IndicatorResponse",
    "TicketSLAResponse",
    "OpenTicketsSummary",
    "OpenTicketsResponse",
    "EscalationRunResponse",
    # Services
    "SLACountdownService",
    "SLABreachEscalationService",
    "TicketSLAView",
    "EscalationRunResult",
    "utc_now",
    # Repository Interfaces
    "ITicketRepository",
    "ISLASettingsProvider",
    "IEscalationNotifier",
    "INotificationLedger",
]
