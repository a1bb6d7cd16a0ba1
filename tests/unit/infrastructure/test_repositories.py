"""Unit tests for the SQLAlchemy ticket source and roster adapters.

Sessions are mocked; these tests cover row mapping and error translation,
not SQL against a live database.
"""

from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from src.core import LoadFailureException, PersistException
from src.sla.infrastructure.repositories import (
    SQLAlchemyRosterSource,
    SQLAlchemyTicketSource,
    rule_to_domain,
    ticket_to_domain,
)


def session_factory(session: AsyncMock) -> MagicMock:
    """async_sessionmaker stand-in yielding the given session."""
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=session)
    context.__aexit__ = AsyncMock(return_value=False)
    return MagicMock(return_value=context)


def scalar_result(values) -> MagicMock:
    result = MagicMock()
    result.scalars.return_value.all.return_value = values
    result.scalars.return_value.unique.return_value.all.return_value = values
    return result


def db_error() -> OperationalError:
    return OperationalError("SELECT 1", {}, Exception("connection reset"))


def profile(email: str, name=None):
    return SimpleNamespace(id=uuid4(), email=email, full_name=name)


def ticket_row(**overrides):
    values = dict(
        id=uuid4(),
        ticket_number="TKT-0042",
        subject="VPN down",
        status="open",
        created_at=datetime(2024, 1, 15, 8, 0),
        first_response_at=None,
        sla_breach_response=None,
        sla_breach_resolution=True,
        requester=profile("req@example.com", "Rita"),
        assignee=None,
        priority=SimpleNamespace(
            id=uuid4(), name="High", response_time_hours=2.0, resolution_time_hours=8.0
        ),
    )
    values.update(overrides)
    return SimpleNamespace(**values)


class TestTicketMapping:
    def test_maps_row_to_entity(self) -> None:
        row = ticket_row()

        ticket = ticket_to_domain(row)

        assert ticket.id == str(row.id)
        assert ticket.created_at.tzinfo == timezone.utc
        assert ticket.priority.hours_for("response") == 2.0
        assert ticket.priority.id == str(row.priority.id)
        assert ticket.assignee is None
        assert ticket.direct_recipient == "req@example.com"

    def test_null_breach_flag_reads_as_false(self) -> None:
        ticket = ticket_to_domain(ticket_row())

        assert ticket.sla_breach_response is False
        assert ticket.sla_breach_resolution is True

    def test_assignee_and_missing_priority(self) -> None:
        ticket = ticket_to_domain(
            ticket_row(assignee=profile("agent@example.com"), priority=None)
        )

        assert ticket.direct_recipient == "agent@example.com"
        assert ticket.has_policy is False


class TestRuleMapping:
    def test_blank_addresses_dropped_and_null_priority_kept(self) -> None:
        row = SimpleNamespace(
            id=uuid4(),
            name="Catch-all",
            escalation_level=2,
            escalate_after_hours=1.5,
            priority_id=None,
            notify_emails=["boss@example.com", ""],
        )

        rule = rule_to_domain(row)

        assert rule.priority_id is None
        assert rule.notify_emails == ["boss@example.com"]
        assert rule.escalation_level == 2

    def test_null_address_list(self) -> None:
        row = SimpleNamespace(
            id=uuid4(), name="R", escalation_level=1, escalate_after_hours=0,
            priority_id=uuid4(), notify_emails=None,
        )

        assert rule_to_domain(row).notify_emails == []


class TestSQLAlchemyTicketSource:
    async def test_list_active_maps_rows(self) -> None:
        session = AsyncMock()
        session.execute = AsyncMock(return_value=scalar_result([ticket_row()]))
        source = SQLAlchemyTicketSource(session_factory(session))

        tickets = await source.list_active_tickets_with_policy()

        assert [t.ticket_number for t in tickets] == ["TKT-0042"]
        session.execute.assert_awaited_once()

    async def test_list_active_uses_status_provider(self) -> None:
        session = AsyncMock()
        session.execute = AsyncMock(return_value=scalar_result([]))
        provider = MagicMock(return_value=["open"])
        source = SQLAlchemyTicketSource(session_factory(session), statuses_provider=provider)

        await source.list_active_tickets_with_policy()

        provider.assert_called_once()

    async def test_list_active_translates_db_errors(self) -> None:
        session = AsyncMock()
        session.execute = AsyncMock(side_effect=db_error())
        source = SQLAlchemyTicketSource(session_factory(session))

        with pytest.raises(LoadFailureException):
            await source.list_active_tickets_with_policy()

    async def test_mark_breached_commits(self) -> None:
        session = AsyncMock()
        session.execute = AsyncMock(return_value=MagicMock(rowcount=1))
        source = SQLAlchemyTicketSource(session_factory(session))

        await source.mark_breached(str(uuid4()), "resolution")

        session.execute.assert_awaited_once()
        session.commit.assert_awaited_once()

    async def test_mark_breached_missing_ticket(self) -> None:
        session = AsyncMock()
        session.execute = AsyncMock(return_value=MagicMock(rowcount=0))
        source = SQLAlchemyTicketSource(session_factory(session))

        with pytest.raises(PersistException, match="ticket not found"):
            await source.mark_breached(str(uuid4()), "response")

    async def test_mark_breached_db_error(self) -> None:
        session = AsyncMock()
        session.execute = AsyncMock(side_effect=db_error())
        source = SQLAlchemyTicketSource(session_factory(session))

        with pytest.raises(PersistException) as exc_info:
            await source.mark_breached(str(uuid4()), "response")

        assert exc_info.value.sla_type == "response"

    @pytest.mark.parametrize(
        ("ticket_id", "sla_type"),
        [("not-a-uuid", "response"), (str(uuid4()), "first_contact")],
    )
    async def test_mark_breached_rejects_bad_input(self, ticket_id, sla_type) -> None:
        session = AsyncMock()
        source = SQLAlchemyTicketSource(session_factory(session))

        with pytest.raises(PersistException):
            await source.mark_breached(ticket_id, sla_type)

        session.execute.assert_not_awaited()


class TestSQLAlchemyRosterSource:
    async def test_recipients_deduplicated_in_order(self) -> None:
        session = AsyncMock()
        session.execute = AsyncMock(return_value=scalar_result(
            ["hr@example.com", "", "admin@example.com", "hr@example.com", None]
        ))
        roster = SQLAlchemyRosterSource(session_factory(session), ["admin", "hr_manager"])

        recipients = await roster.list_escalation_recipients()

        assert recipients == ["hr@example.com", "admin@example.com"]

    async def test_no_roles_means_empty_roster(self) -> None:
        session = AsyncMock()
        roster = SQLAlchemyRosterSource(session_factory(session), [])

        assert await roster.list_escalation_recipients() == []
        session.execute.assert_not_awaited()

    async def test_roster_db_error(self) -> None:
        session = AsyncMock()
        session.execute = AsyncMock(side_effect=db_error())
        roster = SQLAlchemyRosterSource(session_factory(session), ["admin"])

        with pytest.raises(LoadFailureException):
            await roster.list_escalation_recipients()

    async def test_rules_mapped(self) -> None:
        row = SimpleNamespace(
            id=uuid4(), name="Level 2", escalation_level=2, escalate_after_hours=4.0,
            priority_id=None, notify_emails=["vp@example.com"],
        )
        session = AsyncMock()
        session.execute = AsyncMock(return_value=scalar_result([row]))
        roster = SQLAlchemyRosterSource(session_factory(session), ["admin"])

        rules = await roster.list_escalation_rules()

        assert [r.name for r in rules] == ["Level 2"]
