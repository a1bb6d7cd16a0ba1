"""
SLA Escalation Coordinator
===========================

Turns a timer classification into notifications and the breach flag write.

Delivery guarantees:
- Warnings are not flag-guarded and repeat on every run until the clock is
  breached or stopped (at-least-once, possibly repeated).
- A breach is sent to the ticket owner, then escalated, then recorded.
  The flag is written after the sends so a crash in between produces a
  duplicate on the next run instead of a silently lost breach.
- Every step is attempted even if an earlier one failed.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from src.config import RecipientClass
from src.core import PersistException, SendException
from src.sla.application.dto import TicketFailure
from src.sla.application.interfaces import INotificationSender, ITicketSource
from src.sla.application.messages import (
    build_breach_message,
    build_escalation_message,
    build_warning_message,
)
from src.sla.domain import (
    DeadlineBreach,
    DeadlineWarning,
    EscalationRule,
    Ticket,
    TimerClassification,
)
from src.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

DEFAULT_ESCALATION_NAME = "Default Escalation"


@dataclass
class TimerOutcome:
    """Effects produced for one ticket and one SLA clock."""
    warnings_sent: int = 0
    breaches_sent: int = 0
    escalations_sent: int = 0
    failures: List[TicketFailure] = field(default_factory=list)

    def merge(self, other: "TimerOutcome") -> None:
        self.warnings_sent += other.warnings_sent
        self.breaches_sent += other.breaches_sent
        self.escalations_sent += other.escalations_sent
        self.failures.extend(other.failures)


@dataclass(frozen=True)
class EscalationTarget:
    """Who receives the escalation for one breach, and under which rule."""
    recipients: List[str]
    level: int
    rule_name: str


def select_escalation_target(
    priority_id: Optional[str],
    hours_overdue: float,
    roster: Sequence[str],
    rules: Sequence[EscalationRule],
) -> EscalationTarget:
    """
    Pick the single escalation for a breach.

    The highest-level matching rule wins (ties go to the rule with the
    longest wait). Without a matching rule the breach goes to the default
    roster at level 1.
    """
    matching = [rule for rule in rules if rule.matches(priority_id, hours_overdue)]
    if not matching:
        return EscalationTarget(list(roster), 1, DEFAULT_ESCALATION_NAME)

    rule = max(matching, key=lambda r: (r.escalation_level, r.escalate_after_hours))
    recipients = list(rule.notify_emails) if rule.notify_emails else list(roster)
    return EscalationTarget(recipients, rule.escalation_level, rule.name)


class EscalationCoordinator:
    """
    Applies the side effects that follow from a timer classification.

    Stateless apart from its collaborators; safe to share between
    concurrently evaluated tickets.
    """

    def __init__(
        self,
        sender: INotificationSender,
        ticket_source: ITicketSource,
    ):
        self._sender = sender
        self._ticket_source = ticket_source

    async def handle(
        self,
        ticket: Ticket,
        sla_type: str,
        classification: TimerClassification,
        roster: Sequence[str],
        rules: Sequence[EscalationRule] = (),
    ) -> TimerOutcome:
        """Send what the classification calls for and report what happened."""
        if isinstance(classification, DeadlineWarning):
            return await self._handle_warning(ticket, sla_type, classification)
        if isinstance(classification, DeadlineBreach):
            return await self._handle_breach(ticket, sla_type, classification, roster, rules)
        return TimerOutcome()

    async def _handle_warning(
        self,
        ticket: Ticket,
        sla_type: str,
        warning: DeadlineWarning,
    ) -> TimerOutcome:
        outcome = TimerOutcome()
        message = build_warning_message(ticket, sla_type, warning.minutes)

        if await self._send(ticket, sla_type, RecipientClass.DIRECT,
                            [ticket.direct_recipient], message.subject, message.body, outcome):
            outcome.warnings_sent += 1
            logger.info(
                "SLA warning sent",
                extra={
                    "ticket_id": ticket.id,
                    "ticket_number": ticket.ticket_number,
                    "sla_type": sla_type,
                    "minutes_left": warning.minutes,
                }
            )
        return outcome

    async def _handle_breach(
        self,
        ticket: Ticket,
        sla_type: str,
        breach: DeadlineBreach,
        roster: Sequence[str],
        rules: Sequence[EscalationRule],
    ) -> TimerOutcome:
        outcome = TimerOutcome()

        # 1. Owner notification
        message = build_breach_message(ticket, sla_type, breach.minutes)
        if await self._send(ticket, sla_type, RecipientClass.DIRECT,
                            [ticket.direct_recipient], message.subject, message.body, outcome):
            outcome.breaches_sent += 1
            logger.info(
                "SLA breach sent",
                extra={
                    "ticket_id": ticket.id,
                    "ticket_number": ticket.ticket_number,
                    "sla_type": sla_type,
                    "minutes_overdue": breach.minutes,
                }
            )

        # 2. Management escalation
        priority_id = ticket.priority.id if ticket.priority else None
        target = select_escalation_target(priority_id, breach.hours, roster, rules)
        if target.recipients:
            message = build_escalation_message(
                ticket, sla_type, breach.minutes, target.level, target.rule_name
            )
            if await self._send(ticket, sla_type, RecipientClass.ESCALATION,
                                target.recipients, message.subject, message.body, outcome):
                outcome.escalations_sent += 1
                logger.info(
                    "SLA escalation sent",
                    extra={
                        "ticket_id": ticket.id,
                        "ticket_number": ticket.ticket_number,
                        "sla_type": sla_type,
                        "escalation_level": target.level,
                        "rule_name": target.rule_name,
                        "recipient_count": len(target.recipients),
                    }
                )
        else:
            logger.info(
                "No escalation recipients, escalation skipped",
                extra={"ticket_id": ticket.id, "sla_type": sla_type}
            )

        # 3. Record the breach after the sends were attempted
        try:
            await self._ticket_source.mark_breached(ticket.id, sla_type)
        except PersistException as e:
            self._record_persist_failure(ticket, sla_type, e.message, outcome)
        except Exception as e:
            self._record_persist_failure(
                ticket, sla_type,
                f"Failed to mark {sla_type} breach for ticket {ticket.id}: {e}",
                outcome, exc_info=True,
            )

        return outcome

    @staticmethod
    def _record_persist_failure(
        ticket: Ticket,
        sla_type: str,
        reason: str,
        outcome: TimerOutcome,
        exc_info: bool = False,
    ) -> None:
        logger.error(
            "Failed to record SLA breach",
            extra={
                "ticket_id": ticket.id,
                "ticket_number": ticket.ticket_number,
                "sla_type": sla_type,
                "error": reason,
            },
            exc_info=exc_info,
        )
        outcome.failures.append(TicketFailure(
            ticket_id=ticket.id,
            ticket_number=ticket.ticket_number,
            sla_type=sla_type,
            reason=reason,
        ))

    async def _send(
        self,
        ticket: Ticket,
        sla_type: str,
        recipient_class: str,
        to: List[str],
        subject: str,
        body: str,
        outcome: TimerOutcome,
    ) -> bool:
        """Attempt one send; record a failure instead of raising."""
        try:
            await self._sender.send(to, subject, body)
            return True
        except SendException as e:
            error, exc_info = e.message, False
        except Exception as e:
            error, exc_info = str(e) or type(e).__name__, True

        logger.error(
            "Failed to send SLA notification",
            extra={
                "ticket_id": ticket.id,
                "ticket_number": ticket.ticket_number,
                "sla_type": sla_type,
                "recipient_class": recipient_class,
                "error": error,
            },
            exc_info=exc_info,
        )
        outcome.failures.append(TicketFailure(
            ticket_id=ticket.id,
            ticket_number=ticket.ticket_number,
            sla_type=sla_type,
            reason=f"{recipient_class} notification failed: {error}",
        ))
        return False
