"""
SLA Controllers (API Routes)
=============================

FastAPI routes for the SLA check trigger.

Controllers are thin - they delegate to application services.
"""

from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Request, Response, status

from src.sla.application import RunSummary, SLACheckRequest, SLAEvaluationService
from src.sla.services import run_sla_check
from src.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/sla", tags=["SLA Monitoring"])


# ========== Example payloads for Swagger ==========

RUN_SUMMARY_EXAMPLE = {
    "run_id": "6f1c1f8e-3c55-4c3e-9c1e-1b2f0b1f3a10",
    "status": "completed",
    "started_at": "2024-01-15T10:00:00Z",
    "finished_at": "2024-01-15T10:00:02Z",
    "tickets_evaluated": 42,
    "tickets_skipped": 0,
    "warnings_sent": 3,
    "breaches_sent": 1,
    "escalations_sent": 1,
    "failures": [],
    "cancelled": False,
    "error": None
}


# ========== Dependencies ==========

def get_evaluation_service(request: Request) -> SLAEvaluationService:
    """Get the SLA evaluation service built at startup."""
    service = getattr(request.app.state, "sla_evaluation_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="SLA evaluation service not available"
        )
    return service


# ========== Route Handlers ==========

@router.post(
    "/check",
    response_model=RunSummary,
    summary="Run an SLA breach check",
    description="""
    Evaluate all active tickets against their priority SLA and send
    warning, breach and escalation emails.

    Safe to call repeatedly: a breach is notified once and then recorded on
    the ticket. Warnings repeat on every call while a ticket is inside its
    warning window.

    **Optional body**:
    - `now`: evaluate as of this instant (testing)
    - `timeout_seconds`: stop starting new tickets after this long

    Returns **503** when the run could not start (delivery not configured or
    tickets could not be loaded).
    """,
    responses={
        200: {
            "description": "SLA check completed",
            "content": {"application/json": {"example": RUN_SUMMARY_EXAMPLE}}
        },
        503: {"description": "SLA check failed before evaluation"}
    }
)
async def check_sla(
    response: Response,
    payload: Optional[SLACheckRequest] = Body(default=None),
    service: SLAEvaluationService = Depends(get_evaluation_service),
) -> RunSummary:
    payload = payload or SLACheckRequest()
    summary = await run_sla_check(
        service, now=payload.now, timeout_seconds=payload.timeout_seconds
    )
    if summary.status == "failed":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return summary


# Export router for inclusion in main app
sla_router = router
