"""Unit tests for deadline computation and timer classification."""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone

import pytest

from src.core import ConfigurationException, InvalidPolicyException
from src.sla.domain import (
    AlreadyHandled,
    DeadlineBreach,
    DeadlineWarning,
    NotYetDue,
    PriorityPolicy,
    SLACalculator,
    format_minutes,
)

CREATED = datetime(2024, 1, 15, 8, 0, tzinfo=timezone.utc)


class TestCompute:
    def test_deadline_and_warning_threshold(self) -> None:
        result = SLACalculator.compute(CREATED, 4)

        assert result.deadline == CREATED + timedelta(hours=4)
        assert result.warning_at == CREATED + timedelta(hours=3, minutes=12)

    def test_fractional_hours(self) -> None:
        result = SLACalculator.compute(CREATED, 0.5, warning_fraction=0.5)

        assert result.deadline == CREATED + timedelta(minutes=30)
        assert result.warning_at == CREATED + timedelta(minutes=15)

    def test_warning_threshold_strictly_before_deadline(self) -> None:
        result = SLACalculator.compute(CREATED, 1, warning_fraction=0.99)

        assert CREATED < result.warning_at < result.deadline

    def test_naive_created_at_is_treated_as_utc(self) -> None:
        naive = datetime(2024, 1, 15, 8, 0)

        result = SLACalculator.compute(naive, 2)

        assert result.deadline == CREATED + timedelta(hours=2)
        assert result.deadline.tzinfo is not None

    def test_offset_created_at_is_normalised(self) -> None:
        plus_two = timezone(timedelta(hours=2))
        local = datetime(2024, 1, 15, 10, 0, tzinfo=plus_two)

        result = SLACalculator.compute(local, 1)

        assert result.deadline == CREATED + timedelta(hours=1)

    @pytest.mark.parametrize("hours", [0, -1, None, math.inf, math.nan])
    def test_invalid_duration_raises(self, hours) -> None:
        with pytest.raises(InvalidPolicyException) as exc_info:
            SLACalculator.compute(CREATED, hours)

        assert exc_info.value.allowed_hours is hours

    @pytest.mark.parametrize("fraction", [0, 1, 1.5, -0.2])
    def test_fraction_outside_open_interval_raises(self, fraction) -> None:
        with pytest.raises(ConfigurationException):
            SLACalculator.compute(CREATED, 4, warning_fraction=fraction)


class TestClassify:
    deadline = CREATED + timedelta(hours=4)
    warning_at = CREATED + timedelta(hours=3, minutes=12)

    def classify(self, now: datetime, breached: bool = False):
        return SLACalculator.classify(now, self.deadline, self.warning_at, breached)

    def test_not_yet_due_before_warning(self) -> None:
        assert self.classify(CREATED + timedelta(hours=1)) == NotYetDue()

    def test_warning_at_threshold_is_inclusive(self) -> None:
        result = self.classify(self.warning_at)

        assert isinstance(result, DeadlineWarning)
        assert result.remaining == timedelta(minutes=48)
        assert result.minutes == 48

    def test_breach_at_deadline_is_inclusive(self) -> None:
        result = self.classify(self.deadline)

        assert isinstance(result, DeadlineBreach)
        assert result.overdue == timedelta(0)

    def test_breach_reports_overdue(self) -> None:
        result = self.classify(self.deadline + timedelta(minutes=75))

        assert isinstance(result, DeadlineBreach)
        assert result.minutes == 75
        assert result.hours == pytest.approx(1.25)

    def test_recorded_breach_is_already_handled(self) -> None:
        result = self.classify(self.deadline + timedelta(hours=10), breached=True)

        assert result == AlreadyHandled()

    def test_recorded_flag_wins_even_before_deadline(self) -> None:
        assert self.classify(CREATED, breached=True) == AlreadyHandled()

    def test_minutes_round_to_nearest(self) -> None:
        result = self.classify(self.deadline - timedelta(minutes=10, seconds=31))

        assert result.minutes == 11

    def test_classification_is_monotonic_in_time(self) -> None:
        order = {NotYetDue: 0, DeadlineWarning: 1, DeadlineBreach: 2}
        previous = -1
        instant = CREATED
        while instant <= self.deadline + timedelta(hours=2):
            rank = order[type(self.classify(instant))]
            assert rank >= previous
            previous = rank
            instant += timedelta(minutes=7)

    def test_naive_now_is_treated_as_utc(self) -> None:
        naive_now = (self.deadline + timedelta(minutes=5)).replace(tzinfo=None)

        result = self.classify(naive_now)

        assert isinstance(result, DeadlineBreach)
        assert result.minutes == 5


class TestFormatMinutes:
    @pytest.mark.parametrize(
        ("minutes", "expected"),
        [(0, "0 minutes"), (45, "45 minutes"), (60, "1h 0m"), (125, "2h 5m")],
    )
    def test_rendering(self, minutes: int, expected: str) -> None:
        assert format_minutes(minutes) == expected


class TestPriorityPolicy:
    policy = PriorityPolicy(name="High", response_time_hours=2, resolution_time_hours=8)

    def test_hours_for_each_clock(self) -> None:
        assert self.policy.hours_for("response") == 2
        assert self.policy.hours_for("resolution") == 8

    def test_unknown_clock_raises(self) -> None:
        with pytest.raises(ValueError):
            self.policy.hours_for("first_contact")
