"""
SLA Application Services
=========================

Application services orchestrate business logic and coordinate between
domain entities and collaborators.

Following SOLID principles:
- Single Responsibility: the run orchestrates, the coordinator applies effects
- Dependency Inversion: depend on abstractions, not concrete adapters
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Sequence
from uuid import uuid4

from src.config import RunState, ACTIVE_STATUSES, DEFAULT_WARNING_FRACTION
from src.core import (
    ConfigurationException,
    InvalidPolicyException,
    LoadFailureException,
)
from src.sla.application.dto import RunSummary, TicketFailure
from src.sla.application.escalation import EscalationCoordinator, TimerOutcome
from src.sla.application.interfaces import (
    INotificationSender,
    IRosterSource,
    ISLAConfigProvider,
    ITicketSource,
)
from src.sla.domain import EscalationRule, SLACalculator, Ticket
from src.shared.infrastructure.logging import get_context_logger, log_latency


@dataclass(frozen=True)
class _RunSnapshot:
    """Configuration read once at the start of a run."""
    warning_fraction: float
    active_statuses: List[str]


class SLAEvaluationService:
    """
    Runs one SLA check over all active tickets.

    Idle -> Loading -> Evaluating -> Completed | Failed.

    The service keeps no state between runs; idempotency lives entirely in
    the tickets' breach flags, so repeated or overlapping invocations are
    safe.
    """

    def __init__(
        self,
        ticket_source: ITicketSource,
        roster_source: IRosterSource,
        sender: INotificationSender,
        config_provider: Optional[ISLAConfigProvider] = None,
        warning_fraction: float = DEFAULT_WARNING_FRACTION,
        max_concurrency: int = 10,
        run_timeout_seconds: Optional[float] = None,
    ):
        if max_concurrency < 1:
            raise ConfigurationException("max_concurrency must be at least 1")
        self._ticket_source = ticket_source
        self._roster_source = roster_source
        self._sender = sender
        self._config_provider = config_provider
        self._warning_fraction = warning_fraction
        self._max_concurrency = max_concurrency
        self._run_timeout_seconds = run_timeout_seconds
        self._coordinator = EscalationCoordinator(sender, ticket_source)

    async def run(
        self,
        now: Optional[datetime] = None,
        timeout_seconds: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> RunSummary:
        """
        Evaluate every active ticket and send due notifications.

        Args:
            now: Evaluate as of this instant (defaults to the current UTC time)
            timeout_seconds: Stop starting new tickets after this long
            cancel_event: Stop starting new tickets once this is set

        Returns:
            RunSummary describing what was sent and what failed
        """
        run_id = str(uuid4())
        logger = get_context_logger(__name__, run_id)
        started_at = datetime.now(timezone.utc)
        if now is None:
            now = started_at
        elif now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)

        summary = RunSummary(run_id=run_id, status=RunState.IDLE, started_at=started_at)
        logger.info("SLA check started", extra={"evaluated_at": now.isoformat()})

        if not self._sender.is_configured:
            logger.warning("Email delivery not configured, skipping SLA notifications")
            return self._fail(summary, "email delivery not configured")

        try:
            snapshot = self._snapshot()
        except ConfigurationException as e:
            logger.error("Invalid SLA configuration", extra={"error": e.message})
            return self._fail(summary, e.message)

        # === Loading ===
        summary.status = RunState.LOADING
        try:
            tickets, roster = await self._load(logger)
        except LoadFailureException as e:
            logger.error("SLA check aborted, load failed", extra={"error": e.message})
            return self._fail(summary, e.message)

        rules = await self._load_rules(logger)
        logger.info(
            "SLA inputs loaded",
            extra={
                "ticket_count": len(tickets),
                "escalation_recipients": len(roster),
                "escalation_rules": len(rules),
            }
        )

        # === Evaluating ===
        summary.status = RunState.EVALUATING
        candidates = [
            t for t in tickets
            if t.has_policy and t.status in snapshot.active_statuses
        ]

        timeout = timeout_seconds if timeout_seconds is not None else self._run_timeout_seconds
        loop = asyncio.get_running_loop()
        stop_at = loop.time() + timeout if timeout else None
        semaphore = asyncio.Semaphore(self._max_concurrency)

        def should_stop() -> bool:
            if cancel_event is not None and cancel_event.is_set():
                return True
            return stop_at is not None and loop.time() >= stop_at

        async def worker(ticket: Ticket) -> Optional[TimerOutcome]:
            async with semaphore:
                if should_stop():
                    return None
                return await self._evaluate_ticket(
                    ticket, now, snapshot, roster, rules, logger
                )

        results = await asyncio.gather(*(worker(t) for t in candidates))

        # Reduce per-ticket outcomes after all workers finished
        total = TimerOutcome()
        for result in results:
            if result is None:
                summary.tickets_skipped += 1
                continue
            summary.tickets_evaluated += 1
            total.merge(result)

        summary.warnings_sent = total.warnings_sent
        summary.breaches_sent = total.breaches_sent
        summary.escalations_sent = total.escalations_sent
        summary.failures = total.failures
        summary.cancelled = summary.tickets_skipped > 0 or should_stop()
        summary.status = RunState.COMPLETED
        summary.finished_at = datetime.now(timezone.utc)

        logger.info(
            "SLA check complete",
            extra={
                "tickets_evaluated": summary.tickets_evaluated,
                "tickets_skipped": summary.tickets_skipped,
                "warnings_sent": summary.warnings_sent,
                "breaches_sent": summary.breaches_sent,
                "escalations_sent": summary.escalations_sent,
                "failure_count": len(summary.failures),
                "cancelled": summary.cancelled,
            }
        )
        return summary

    def _snapshot(self) -> _RunSnapshot:
        """Read configuration once so it cannot change mid-run."""
        fraction = self._warning_fraction
        statuses = list(ACTIVE_STATUSES)
        if self._config_provider is not None:
            config = self._config_provider.get_config()
            if config.warning_fraction is not None:
                fraction = config.warning_fraction
            statuses = list(config.active_statuses)

        if not 0 < fraction < 1:
            raise ConfigurationException(
                f"warning_fraction must be between 0 and 1, got {fraction!r}"
            )
        return _RunSnapshot(warning_fraction=fraction, active_statuses=statuses)

    async def _load(self, logger) -> tuple[List[Ticket], List[str]]:
        """Fetch tickets and roster; any failure is fatal for the run."""
        try:
            with log_latency(logger, "sla_load"):
                tickets = await self._ticket_source.list_active_tickets_with_policy()
                roster = await self._roster_source.list_escalation_recipients()
        except LoadFailureException:
            raise
        except Exception as e:
            raise LoadFailureException(f"Failed to load SLA inputs: {e}") from e
        return list(tickets), list(roster)

    async def _load_rules(self, logger) -> List[EscalationRule]:
        """Escalation rules are optional; a failure falls back to the roster."""
        try:
            return list(await self._roster_source.list_escalation_rules())
        except Exception as e:
            logger.error(
                "Failed to load escalation rules, using default roster",
                extra={"error": str(e)}
            )
            return []

    async def _evaluate_ticket(
        self,
        ticket: Ticket,
        now: datetime,
        snapshot: _RunSnapshot,
        roster: Sequence[str],
        rules: Sequence[EscalationRule],
        logger,
    ) -> TimerOutcome:
        """Evaluate each running SLA clock of one ticket independently."""
        outcome = TimerOutcome()

        for sla_type in ticket.applicable_timers():
            try:
                allowed_hours = ticket.priority.hours_for(sla_type)
                sla_deadline = SLACalculator.compute(
                    ticket.created_at, allowed_hours, snapshot.warning_fraction
                )
                classification = SLACalculator.classify(
                    now,
                    sla_deadline.deadline,
                    sla_deadline.warning_at,
                    ticket.is_breached(sla_type),
                )
                outcome.merge(await self._coordinator.handle(
                    ticket, sla_type, classification, roster, rules
                ))
            except InvalidPolicyException as e:
                logger.error(
                    "Invalid SLA policy, timer skipped",
                    extra={
                        "ticket_id": ticket.id,
                        "ticket_number": ticket.ticket_number,
                        "sla_type": sla_type,
                        "allowed_hours": e.allowed_hours,
                    }
                )
                outcome.failures.append(TicketFailure(
                    ticket_id=ticket.id,
                    ticket_number=ticket.ticket_number,
                    sla_type=sla_type,
                    reason=f"invalid policy: {sla_type} duration {e.allowed_hours!r} hours",
                ))
            except Exception as e:
                logger.exception(
                    "SLA evaluation failed",
                    extra={
                        "ticket_id": ticket.id,
                        "ticket_number": ticket.ticket_number,
                        "sla_type": sla_type,
                    }
                )
                outcome.failures.append(TicketFailure(
                    ticket_id=ticket.id,
                    ticket_number=ticket.ticket_number,
                    sla_type=sla_type,
                    reason=f"evaluation failed: {e}",
                ))

        return outcome

    @staticmethod
    def _fail(summary: RunSummary, reason: str) -> RunSummary:
        summary.status = RunState.FAILED
        summary.error = reason
        summary.finished_at = datetime.now(timezone.utc)
        return summary
