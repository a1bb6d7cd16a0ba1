"""
SLA Application Layer
======================

Application layer for SLA monitoring module.

Contains:
- Services: Run orchestration and escalation coordination
- DTOs: Data transfer objects for the trigger surface
- Interfaces: Collaborator contracts implemented by infrastructure

This layer depends on the domain layer and collaborator interfaces,
but not on concrete infrastructure implementations.
"""

from src.sla.application.dto import (
    SLACheckRequest,
    RunSummary,
    TicketFailure,
)
from src.sla.application.interfaces import (
    ITicketSource,
    IRosterSource,
    INotificationSender,
    ISLAConfigProvider,
)
from src.sla.application.escalation import (
    EscalationCoordinator,
    EscalationTarget,
    TimerOutcome,
    select_escalation_target,
)
from src.sla.application.services import SLAEvaluationService

__all__ = [
    # DTOs
    "SLACheckRequest",
    "RunSummary",
    "TicketFailure",
    # Services
    "SLAEvaluationService",
    "EscalationCoordinator",
    "EscalationTarget",
    "TimerOutcome",
    "select_escalation_target",
    # Collaborator Interfaces
    "ITicketSource",
    "IRosterSource",
    "INotificationSender",
    "ISLAConfigProvider",
]
