"""
SLA Infrastructure Layer
=========================

Infrastructure implementations for SLA monitoring:
- Models: SQLAlchemy ORM models
- Repositories: Ticket source, breach flags and escalation roster
- External: Email delivery, config watcher, scheduler
"""

from src.sla.infrastructure.models import (
    TicketModel,
    TicketPriorityModel,
    ProfileModel,
    UserRoleModel,
    EscalationRuleModel,
)
from src.sla.infrastructure.repositories import (
    SQLAlchemyTicketSource,
    SQLAlchemyRosterSource,
)
from src.sla.infrastructure.external import (
    SLAConfigManager,
    EmailClient,
    SLAScheduler,
)

__all__ = [
    "TicketModel",
    "TicketPriorityModel",
    "ProfileModel",
    "UserRoleModel",
    "EscalationRuleModel",
    "SQLAlchemyTicketSource",
    "SQLAlchemyRosterSource",
    "SLAConfigManager",
    "EmailClient",
    "SLAScheduler",
]
