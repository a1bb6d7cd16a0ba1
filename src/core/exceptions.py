"""
Core Exceptions
================

Custom exceptions for the application following clean architecture principles.

These exceptions define domain-specific errors that can be caught and handled
appropriately at the application boundaries.
"""

from typing import Optional


class ApplicationException(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class DomainException(ApplicationException):
    """Base exception for domain logic violations."""


class RepositoryException(ApplicationException):
    """Base exception for repository/data access errors."""


class ConfigurationException(ApplicationException):
    """Exception for configuration errors."""


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


class InvalidPolicyException(DomainException):
    """Raised when a priority policy yields a non-positive SLA duration."""

    def __init__(
        self,
        allowed_hours: float,
        sla_type: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.allowed_hours = allowed_hours
        self.sla_type = sla_type
        label = f"{sla_type} " if sla_type else ""
        super().__init__(
            f"Invalid {label}SLA duration: {allowed_hours!r} hours",
            details or {"allowed_hours": allowed_hours, "sla_type": sla_type}
        )


class LoadFailureException(RepositoryException):
    """Raised when tickets or the escalation roster cannot be loaded."""


class PersistException(RepositoryException):
    """Raised when a breach flag cannot be written."""

    def __init__(
        self,
        ticket_id: str,
        sla_type: str,
        message: str,
        details: Optional[dict] = None
    ):
        self.ticket_id = ticket_id
        self.sla_type = sla_type
        super().__init__(
            f"Failed to mark {sla_type} breach for ticket {ticket_id}: {message}",
            details or {"ticket_id": ticket_id, "sla_type": sla_type}
        )


class SendException(ExternalServiceException):
    """Raised when a notification cannot be delivered."""

    def __init__(
        self,
        message: str,
        recipients: Optional[list] = None,
        status_code: Optional[int] = None,
        details: Optional[dict] = None
    ):
        self.recipients = list(recipients or [])
        self.status_code = status_code
        super().__init__(
            "Email Service",
            message,
            details or {"recipient_count": len(self.recipients), "status_code": status_code}
        )
