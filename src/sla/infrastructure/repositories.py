"""
SLA Infrastructure Repositories
=================================

Concrete implementations of the SLA collaborator interfaces using SQLAlchemy.

This layer contains the data access logic - how tickets, the escalation
roster and the breach flags are read from and written to the database.
Rows are turned into typed domain objects here, once, so the evaluation
code never inspects raw records.
"""

from typing import Callable, List, Optional, Sequence
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import joinedload

from src.config import SLAType, ACTIVE_STATUSES
from src.core import LoadFailureException, PersistException
from src.sla.application.interfaces import ITicketSource, IRosterSource
from src.sla.domain import Contact, EscalationRule, PriorityPolicy, Ticket
from src.sla.infrastructure.models import (
    EscalationRuleModel,
    ProfileModel,
    TicketModel,
    TicketPriorityModel,
    UserRoleModel,
)
from src.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

_BREACH_COLUMNS = {
    SLAType.RESPONSE: "sla_breach_response",
    SLAType.RESOLUTION: "sla_breach_resolution",
}


def _utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_contact(model: ProfileModel) -> Contact:
    return Contact(id=str(model.id), email=model.email, full_name=model.full_name)


def _to_policy(model: TicketPriorityModel) -> PriorityPolicy:
    return PriorityPolicy(
        id=str(model.id),
        name=model.name,
        response_time_hours=model.response_time_hours,
        resolution_time_hours=model.resolution_time_hours,
    )


def ticket_to_domain(model: TicketModel) -> Ticket:
    """Map a ticket row with its joined profiles and priority to the domain entity."""
    return Ticket(
        id=str(model.id),
        ticket_number=model.ticket_number,
        subject=model.subject,
        status=model.status,
        created_at=_utc(model.created_at),
        requester=_to_contact(model.requester),
        assignee=_to_contact(model.assignee) if model.assignee is not None else None,
        priority=_to_policy(model.priority) if model.priority is not None else None,
        first_response_at=_utc(model.first_response_at),
        sla_breach_response=bool(model.sla_breach_response),
        sla_breach_resolution=bool(model.sla_breach_resolution),
    )


def rule_to_domain(model: EscalationRuleModel) -> EscalationRule:
    """Map an escalation rule row to the domain value."""
    return EscalationRule(
        id=str(model.id),
        name=model.name,
        escalation_level=model.escalation_level,
        escalate_after_hours=model.escalate_after_hours,
        priority_id=str(model.priority_id) if model.priority_id else None,
        notify_emails=[e for e in (model.notify_emails or []) if e],
    )


class SQLAlchemyTicketSource(ITicketSource):
    """
    SQLAlchemy implementation of the ticket source.

    Reads fresh rows on every call and writes nothing but breach flags.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        statuses_provider: Optional[Callable[[], Sequence[str]]] = None,
    ):
        self._session_factory = session_factory
        self._statuses_provider = statuses_provider

    def _statuses(self) -> List[str]:
        if self._statuses_provider is None:
            return list(ACTIVE_STATUSES)
        return list(self._statuses_provider())

    async def list_active_tickets_with_policy(self) -> List[Ticket]:
        """Active tickets with a priority, joined with requester, assignee and policy."""
        stmt = (
            select(TicketModel)
            .options(
                joinedload(TicketModel.requester),
                joinedload(TicketModel.assignee),
                joinedload(TicketModel.priority),
            )
            .where(
                TicketModel.status.in_(self._statuses()),
                TicketModel.priority_id.is_not(None),
            )
            .order_by(TicketModel.created_at.asc())
        )

        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                models = result.scalars().unique().all()
        except SQLAlchemyError as e:
            raise LoadFailureException(f"Failed to load tickets: {e}") from e

        logger.debug("Loaded active tickets", extra={"ticket_count": len(models)})
        return [ticket_to_domain(model) for model in models]

    async def mark_breached(self, ticket_id: str, sla_type: str) -> None:
        """Set one breach flag and commit immediately."""
        column = _BREACH_COLUMNS.get(sla_type)
        if column is None:
            raise PersistException(ticket_id, sla_type, "unknown SLA type")

        try:
            ticket_uuid = UUID(ticket_id)
        except ValueError:
            raise PersistException(ticket_id, sla_type, "invalid ticket ID")

        stmt = (
            update(TicketModel)
            .where(TicketModel.id == ticket_uuid)
            .values({column: True})
        )

        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as e:
            raise PersistException(ticket_id, sla_type, str(e)) from e

        if result.rowcount == 0:
            raise PersistException(ticket_id, sla_type, "ticket not found")


class SQLAlchemyRosterSource(IRosterSource):
    """
    SQLAlchemy implementation of the escalation roster.

    Recipients are the profiles of users holding one of the configured roles.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        roles: Sequence[str],
    ):
        self._session_factory = session_factory
        self._roles = list(roles)

    async def list_escalation_recipients(self) -> List[str]:
        """Distinct, non-empty addresses of escalation-eligible users."""
        if not self._roles:
            return []

        stmt = (
            select(ProfileModel.email)
            .join(UserRoleModel, UserRoleModel.user_id == ProfileModel.id)
            .where(UserRoleModel.role.in_(self._roles))
        )

        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                emails = result.scalars().all()
        except SQLAlchemyError as e:
            raise LoadFailureException(f"Failed to load escalation roster: {e}") from e

        # Preserve first-seen order while dropping blanks and duplicates
        return list(dict.fromkeys(e for e in emails if e))

    async def list_escalation_rules(self) -> List[EscalationRule]:
        """Active escalation rules ordered by level, then wait time."""
        stmt = (
            select(EscalationRuleModel)
            .where(EscalationRuleModel.is_active.is_(True))
            .order_by(
                EscalationRuleModel.escalation_level.asc(),
                EscalationRuleModel.escalate_after_hours.asc(),
            )
        )

        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [rule_to_domain(model) for model in result.scalars().all()]
