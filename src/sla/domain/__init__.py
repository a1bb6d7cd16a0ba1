"""
SLA Domain Layer
================

Domain layer for SLA monitoring module.

Contains:
- Entities: Core business objects with identity (Ticket, Contact, EscalationRule)
- Value Objects: Immutable objects defined by attributes (PriorityPolicy, SLADeadline)
- Domain Services: Stateless business logic (SLACalculator)

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from src.sla.domain.entities import Ticket, Contact, EscalationRule
from src.sla.domain.value_objects import (
    SLACalculator,
    SLAConfig,
    SLADeadline,
    PriorityPolicy,
    NotYetDue,
    DeadlineWarning,
    DeadlineBreach,
    AlreadyHandled,
    TimerClassification,
    format_minutes,
)

__all__ = [
    # Entities
    "Ticket",
    "Contact",
    "EscalationRule",
    # Value Objects & Services
    "SLACalculator",
    "SLAConfig",
    "SLADeadline",
    "PriorityPolicy",
    "NotYetDue",
    "DeadlineWarning",
    "DeadlineBreach",
    "AlreadyHandled",
    "TimerClassification",
    "format_minutes",
]
