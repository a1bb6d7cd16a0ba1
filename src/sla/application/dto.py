"""
SLA Application DTOs
=====================

Data Transfer Objects for the SLA run trigger.

These Pydantic models handle serialization/deserialization and validation
for the run request and the run summary. Following YAGNI - only what's needed.
"""

from pydantic import BaseModel, Field, field_validator
from typing import List, Optional, Literal
from datetime import datetime, timezone


# ========== Type Aliases for Literals ==========
SLATypeStr = Literal["response", "resolution"]
RunStateStr = Literal["idle", "loading", "evaluating", "completed", "failed"]


# ========== Request DTOs ==========

class SLACheckRequest(BaseModel):
    """Optional overrides for a single SLA run."""
    now: Optional[datetime] = Field(
        default=None,
        description="Evaluate as of this instant instead of the current time"
    )
    timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        description="Stop starting new tickets after this many seconds"
    )

    @field_validator("now")
    @classmethod
    def ensure_timezone(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Naive timestamps are interpreted as UTC."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


# ========== Response DTOs ==========

class TicketFailure(BaseModel):
    """A per-ticket problem recorded during a run."""
    ticket_id: str = Field(..., description="Internal ticket ID")
    ticket_number: Optional[str] = Field(None, description="Human-readable ticket number")
    sla_type: Optional[SLATypeStr] = Field(None, description="SLA clock involved, if any")
    reason: str = Field(..., description="What went wrong")


class RunSummary(BaseModel):
    """Outcome of one SLA run."""
    run_id: str = Field(..., description="Correlation ID of the run")
    status: RunStateStr = Field(..., description="Final run state")
    started_at: datetime
    finished_at: Optional[datetime] = None
    tickets_evaluated: int = Field(default=0, description="Tickets fully evaluated")
    tickets_skipped: int = Field(default=0, description="Tickets not started due to cancellation")
    warnings_sent: int = 0
    breaches_sent: int = 0
    escalations_sent: int = 0
    failures: List[TicketFailure] = Field(default_factory=list)
    cancelled: bool = False
    error: Optional[str] = Field(None, description="Reason a run failed before evaluation")

    @property
    def ran_clean(self) -> bool:
        """Completed without any recorded failure or cancellation."""
        return self.status == "completed" and not self.failures and not self.cancelled
