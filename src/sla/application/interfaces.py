"""
SLA Collaborator Interfaces
============================

Abstractions the SLA run depends on (Dependency Inversion).

Concrete implementations live in the infrastructure layer; tests provide
in-memory or mocked ones.
"""

from abc import ABC, abstractmethod
from typing import List

from src.sla.domain import Ticket, EscalationRule, SLAConfig


class ITicketSource(ABC):
    """Read active tickets and record breach flags."""

    @abstractmethod
    async def list_active_tickets_with_policy(self) -> List[Ticket]:
        """Active tickets that have a priority, with contacts and policy resolved."""

    @abstractmethod
    async def mark_breached(self, ticket_id: str, sla_type: str) -> None:
        """
        Set the breach flag for one SLA clock.

        Raises:
            PersistException: If the flag could not be written
        """


class IRosterSource(ABC):
    """Read escalation recipients and rules."""

    @abstractmethod
    async def list_escalation_recipients(self) -> List[str]:
        """Addresses of users holding an escalation-eligible role."""

    @abstractmethod
    async def list_escalation_rules(self) -> List[EscalationRule]:
        """Active escalation rules ordered by level."""


class INotificationSender(ABC):
    """Deliver a single notification."""

    @property
    def is_configured(self) -> bool:
        """Whether delivery credentials are available."""
        return True

    @abstractmethod
    async def send(self, to: List[str], subject: str, body: str) -> None:
        """
        Send one message to one or more addresses.

        Raises:
            SendException: If delivery failed
        """


class ISLAConfigProvider(ABC):
    """Interface for SLA configuration access."""

    @abstractmethod
    def get_config(self) -> SLAConfig:
        """Get current SLA configuration."""
