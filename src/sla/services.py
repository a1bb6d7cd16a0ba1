"""
SLA Services
============

Wiring for the SLA run.

Builds an SLAEvaluationService from the concrete database, email and
config adapters. Shared by the HTTP trigger, the background scheduler and
the command-line script so all three run the exact same check.
"""

from datetime import datetime
from typing import Optional

from src.config import Settings, settings as default_settings
from src.infrastructure.database import get_session_maker
from src.sla.application import RunSummary, SLAEvaluationService
from src.sla.infrastructure.external import EmailClient, SLAConfigManager
from src.sla.infrastructure.repositories import (
    SQLAlchemyRosterSource,
    SQLAlchemyTicketSource,
)
from src.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


def build_email_client(app_settings: Optional[Settings] = None) -> EmailClient:
    """Email client configured from settings."""
    s = app_settings or default_settings
    return EmailClient(
        api_url=s.email_api_url,
        api_key=s.email_api_key,
        from_address=s.email_from,
        timeout_seconds=s.email_timeout_seconds,
    )


def build_evaluation_service(
    config_manager: SLAConfigManager,
    email_client: EmailClient,
    app_settings: Optional[Settings] = None,
) -> SLAEvaluationService:
    """
    Assemble the SLA run from database-backed sources.

    Requires init_database() to have been called.
    """
    s = app_settings or default_settings
    session_maker = get_session_maker()

    ticket_source = SQLAlchemyTicketSource(
        session_maker,
        statuses_provider=lambda: config_manager.config.active_statuses,
    )
    roster_source = SQLAlchemyRosterSource(session_maker, s.sla_escalation_roles)

    return SLAEvaluationService(
        ticket_source=ticket_source,
        roster_source=roster_source,
        sender=email_client,
        config_provider=config_manager,
        warning_fraction=s.sla_warning_fraction,
        max_concurrency=s.sla_max_concurrency,
        run_timeout_seconds=s.sla_run_timeout_seconds,
    )


async def run_sla_check(
    service: SLAEvaluationService,
    now: Optional[datetime] = None,
    timeout_seconds: Optional[float] = None,
) -> RunSummary:
    """Run one SLA check and log a failed run at error level."""
    summary = await service.run(now=now, timeout_seconds=timeout_seconds)
    if summary.status == "failed":
        logger.error(
            "SLA check failed",
            extra={"run_id": summary.run_id, "error": summary.error}
        )
    elif summary.failures:
        logger.warning(
            "SLA check completed with failures",
            extra={"run_id": summary.run_id, "failure_count": len(summary.failures)}
        )
    return summary
