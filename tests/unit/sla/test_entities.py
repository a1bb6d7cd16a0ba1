"""Unit tests for the Ticket and EscalationRule entities."""

from __future__ import annotations

import pytest

from src.sla.domain import Contact, EscalationRule
from tests.helpers.sla_fakes import REQUESTER, T0, make_ticket


class TestTicket:
    def test_direct_recipient_prefers_assignee(self) -> None:
        assert make_ticket().direct_recipient == "agent@example.com"

    def test_direct_recipient_falls_back_to_requester(self) -> None:
        assert make_ticket(assignee=None).direct_recipient == REQUESTER.email

    def test_both_timers_apply_without_first_response(self) -> None:
        assert make_ticket().applicable_timers() == ["response", "resolution"]

    def test_response_timer_stops_after_first_response(self) -> None:
        ticket = make_ticket(first_response_at=T0)

        assert ticket.applicable_timers() == ["resolution"]
        assert not ticket.is_timer_applicable("response")

    def test_breach_flags_are_per_clock(self) -> None:
        ticket = make_ticket(sla_breach_response=True)

        assert ticket.is_breached("response")
        assert not ticket.is_breached("resolution")

    def test_unknown_clock_raises(self) -> None:
        with pytest.raises(ValueError):
            make_ticket().is_breached("nonsense")


def test_contact_display_name_falls_back_to_email() -> None:
    assert Contact(id="1", email="x@example.com").display_name == "x@example.com"


class TestEscalationRule:
    def test_rule_without_priority_matches_any(self) -> None:
        rule = EscalationRule(id="r1", name="Catch-all")

        assert rule.matches("prio-urgent", 0.0)
        assert rule.matches(None, 0.0)

    def test_rule_for_other_priority_does_not_match(self) -> None:
        rule = EscalationRule(id="r1", name="Urgent only", priority_id="prio-urgent")

        assert not rule.matches("prio-normal", 5.0)

    def test_rule_waits_for_escalate_after_hours(self) -> None:
        rule = EscalationRule(id="r1", name="Late", escalate_after_hours=2)

        assert not rule.matches(None, 1.99)
        assert rule.matches(None, 2.0)
