"""
SLA Value Objects
==================

Immutable value objects for SLA domain.

Value objects are defined by their attributes rather than an identity.
They are immutable and can be freely shared between concurrent evaluations.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Union

from pydantic import BaseModel, Field, field_validator

from src.config import (
    SLAType, ACTIVE_STATUSES, DEFAULT_WARNING_FRACTION
)
from src.core import ConfigurationException, InvalidPolicyException


@dataclass(frozen=True)
class PriorityPolicy:
    """
    Named priority tier with its two allowed durations in hours.

    Owned by the help desk configuration; read-only for the engine.
    """
    name: str
    response_time_hours: float
    resolution_time_hours: float
    id: Optional[str] = None

    def hours_for(self, sla_type: str) -> float:
        """Allowed duration for the given SLA clock."""
        if sla_type == SLAType.RESPONSE:
            return self.response_time_hours
        if sla_type == SLAType.RESOLUTION:
            return self.resolution_time_hours
        raise ValueError(f"Unknown SLA type: {sla_type!r}")


@dataclass(frozen=True)
class SLADeadline:
    """Absolute deadline and warning threshold for one SLA clock."""
    deadline: datetime
    warning_at: datetime


# ========== Timer classifications ==========

def _whole_minutes(delta: timedelta) -> int:
    return int(round(delta.total_seconds() / 60))


def format_minutes(minutes: int) -> str:
    """Render a minute count as ``"2h 5m"`` or ``"40 minutes"``."""
    hours, mins = divmod(minutes, 60)
    if hours > 0:
        return f"{hours}h {mins}m"
    return f"{mins} minutes"


@dataclass(frozen=True)
class NotYetDue:
    """Timer is before its warning threshold."""


@dataclass(frozen=True)
class AlreadyHandled:
    """Breach for this timer was already notified in an earlier run."""


@dataclass(frozen=True)
class DeadlineWarning:
    """Timer is inside its warning window."""
    remaining: timedelta

    @property
    def minutes(self) -> int:
        return _whole_minutes(self.remaining)


@dataclass(frozen=True)
class DeadlineBreach:
    """Timer has passed its deadline and has not been notified yet."""
    overdue: timedelta

    @property
    def minutes(self) -> int:
        return _whole_minutes(self.overdue)

    @property
    def hours(self) -> float:
        return self.overdue.total_seconds() / 3600


TimerClassification = Union[NotYetDue, DeadlineWarning, DeadlineBreach, AlreadyHandled]


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SLACalculator:
    """
    Pure functions for SLA calculations.

    Stateless utility class - all deadline and classification logic in one
    place. All arithmetic happens on UTC instants, never local wall-clock.
    """

    @staticmethod
    def compute(
        created_at: datetime,
        allowed_hours: float,
        warning_fraction: float = DEFAULT_WARNING_FRACTION,
    ) -> SLADeadline:
        """
        Calculate the deadline and warning threshold for an SLA clock.

        Args:
            created_at: When the clock started
            allowed_hours: Allowed duration in hours
            warning_fraction: Fraction of the duration after which to warn

        Returns:
            SLADeadline with absolute UTC instants

        Raises:
            InvalidPolicyException: If allowed_hours is not a positive number
            ConfigurationException: If warning_fraction is outside (0, 1)
        """
        if allowed_hours is None or not math.isfinite(allowed_hours) or allowed_hours <= 0:
            raise InvalidPolicyException(allowed_hours)
        if not 0 < warning_fraction < 1:
            raise ConfigurationException(
                f"warning_fraction must be between 0 and 1, got {warning_fraction!r}"
            )

        start = _as_utc(created_at)
        return SLADeadline(
            deadline=start + timedelta(hours=allowed_hours),
            warning_at=start + timedelta(hours=allowed_hours * warning_fraction),
        )

    @staticmethod
    def classify(
        now: datetime,
        deadline: datetime,
        warning_at: datetime,
        already_breached: bool,
    ) -> TimerClassification:
        """
        Classify an SLA clock at the given instant.

        Breach takes precedence over warning; a clock whose breach was
        already recorded is never classified as a breach again.
        """
        if already_breached:
            return AlreadyHandled()

        now = _as_utc(now)
        deadline = _as_utc(deadline)

        if now >= deadline:
            return DeadlineBreach(overdue=now - deadline)
        if now >= _as_utc(warning_at):
            return DeadlineWarning(remaining=deadline - now)
        return NotYetDue()


class SLAConfig(BaseModel):
    """
    SLA configuration overlay loaded from YAML.

    Values here override the environment defaults for the next run;
    unset values fall back to the environment.
    """
    warning_fraction: Optional[float] = Field(
        default=None,
        gt=0.0,
        lt=1.0,
        description="Fraction of the allowed time after which to warn"
    )
    active_statuses: List[str] = Field(
        default_factory=lambda: list(ACTIVE_STATUSES),
        description="Ticket statuses whose SLA clocks are evaluated"
    )

    @field_validator("active_statuses")
    @classmethod
    def validate_active_statuses(cls, v: List[str]) -> List[str]:
        """Active status list must not be empty."""
        cleaned = [s.strip() for s in v if s and s.strip()]
        if not cleaned:
            raise ValueError("active_statuses must contain at least one status")
        return cleaned


__all__ = [
    "PriorityPolicy",
    "SLADeadline",
    "SLACalculator",
    "SLAConfig",
    "NotYetDue",
    "DeadlineWarning",
    "DeadlineBreach",
    "AlreadyHandled",
    "TimerClassification",
    "format_minutes",
]
