"""
Core Exceptions
================

Exceptions raised by the SLA service.

Repositories and dispatch adapters raise these; the escalation checker
catches them at its tick boundary and the API maps them to HTTP errors.
"""

from typing import Optional


class ApplicationException(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"error_type": type(self).__name__, "message": self.message, **self.details}


class RepositoryException(ApplicationException):
    """Data access failed or was given an unusable identifier."""


class ResourceNotFoundException(ApplicationException):
    """Exception when a requested resource is not found."""

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.resource_type = resource_type
        self.resource_id = resource_id
        message = f"{resource_type}"
        if resource_id:
            message += f" with id '{resource_id}'"
        message += " not found"
        super().__init__(message, details)


class TicketNotFoundException(ResourceNotFoundException):
    """No support ticket with the given id."""

    def __init__(self, ticket_id: str):
        super().__init__("Ticket", ticket_id, {"ticket_id": ticket_id})


class ConfigurationException(ApplicationException):
    """SLA settings file or escalation template is missing or invalid."""


class ExternalServiceException(ApplicationException):
    """Base exception for external service failures."""

    def __init__(
        self,
        service_name: str,
        message: str,
        details: Optional[dict] = None
    ):
        self.service_name = service_name
        super().__init__(f"{service_name}: {message}", details)


class NotificationException(ExternalServiceException):
    """
    The escalation could not be handed to the dispatch.

    The ticket stays out of the notification ledger, so the next
    check retries it.
    """

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__("Escalation Dispatch", message, details)
