"""
Core Module
============

Exception hierarchy shared by every layer of the SLA service.
"""

from cinetix.core.exceptions import (
    ApplicationException,
    RepositoryException,
    ResourceNotFoundException,
    TicketNotFoundException,
    ConfigurationException,
    ExternalServiceException,
    NotificationException,
)

__all__ = [
    "ApplicationException",
    "RepositoryException",
    "ResourceNotFoundException",
    "TicketNotFoundException",
    "ConfigurationException",
    "ExternalServiceException",
    "NotificationException",
]
