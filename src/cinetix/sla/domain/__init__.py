"""
SLA Domain Layer
================

Domain layer for SLA monitoring module.

Contains:
- Entities: Core business objects with identity (Ticket, EscalationNotice)
- Value Objects: Immutable objects defined by attributes (SLASettings, SLACountdown)
- Domain Services: Stateless business logic (SLACalculator)

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from cinetix.sla.domain.entities import Ticket, EscalationNotice
from cinetix.sla.domain.value_objects import (
    SLACalculator,
    SLASettings,
    SLACountdown,
    ResponseBadge,
    SLAIndicator,
)

__all__ = [
    # Entities
    "Ticket",
    "EscalationNotice",
    # Value Objects & Services
    "SLACalculator",
    "SLASettings",
    "SLACountdown",
    "ResponseBadge",
    "SLAIndicator",
]
