"""
SLA Domain Entities
====================

Pure Python domain entities for SLA monitoring.

Following Domain-Driven Design principles, these entities contain
business logic and are free of infrastructure concerns. The ticket
source adapter assembles them once per run, so the evaluation code never
deals with raw rows.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from src.config import SLAType
from src.sla.domain.value_objects import PriorityPolicy


@dataclass(frozen=True)
class Contact:
    """A person that can receive SLA notifications."""
    id: str
    email: str
    full_name: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.full_name or self.email


@dataclass
class Ticket:
    """
    Ticket entity representing a support ticket under SLA.

    Only the fields the SLA engine reads are carried. The two breach flags
    are the idempotency guard: once true they are never reset here.
    """

    # Core attributes
    id: str
    ticket_number: str
    subject: str
    status: str
    created_at: datetime
    requester: Contact

    # Optional SLA tracking fields
    priority: Optional[PriorityPolicy] = None
    assignee: Optional[Contact] = None
    first_response_at: Optional[datetime] = None
    sla_breach_response: bool = False
    sla_breach_resolution: bool = False

    @property
    def has_policy(self) -> bool:
        return self.priority is not None

    @property
    def direct_recipient(self) -> str:
        """Assignee email, falling back to the requester when unassigned."""
        if self.assignee is not None and self.assignee.email:
            return self.assignee.email
        return self.requester.email

    def is_timer_applicable(self, sla_type: str) -> bool:
        """
        Whether the given SLA clock is still running.

        The response clock stops for good once a first response exists;
        the resolution clock runs for as long as the ticket is active.
        """
        if sla_type == SLAType.RESPONSE:
            return self.first_response_at is None
        if sla_type == SLAType.RESOLUTION:
            return True
        raise ValueError(f"Unknown SLA type: {sla_type!r}")

    def is_breached(self, sla_type: str) -> bool:
        """Whether a breach was already recorded for the given clock."""
        if sla_type == SLAType.RESPONSE:
            return self.sla_breach_response
        if sla_type == SLAType.RESOLUTION:
            return self.sla_breach_resolution
        raise ValueError(f"Unknown SLA type: {sla_type!r}")

    def applicable_timers(self) -> List[str]:
        """SLA clocks to evaluate for this ticket, response first."""
        return [
            sla_type for sla_type in (SLAType.RESPONSE, SLAType.RESOLUTION)
            if self.is_timer_applicable(sla_type)
        ]


@dataclass(frozen=True)
class EscalationRule:
    """
    Escalation rule picked when a breach is escalated to management.

    A rule with no priority applies to every priority. A rule with no
    addresses of its own escalates to the default roster.
    """
    id: str
    name: str
    escalation_level: int = 1
    escalate_after_hours: float = 0.0
    priority_id: Optional[str] = None
    notify_emails: List[str] = field(default_factory=list)

    def matches(self, priority_id: Optional[str], hours_overdue: float) -> bool:
        """Rule applies to this priority and enough time has passed since breach."""
        priority_matches = self.priority_id is None or self.priority_id == priority_id
        return priority_matches and hours_overdue >= self.escalate_after_hours
