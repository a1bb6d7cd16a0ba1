"""Shared fixtures for SLA engine tests."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from tests.helpers.sla_fakes import T0, InMemoryRosterSource, RecordingSender


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def roster_source() -> InMemoryRosterSource:
    return InMemoryRosterSource()


@pytest.fixture
def at():
    """Instant ``hours`` and ``minutes`` after T0."""
    def _at(hours: float = 0.0, minutes: float = 0.0) -> datetime:
        return T0 + timedelta(hours=hours, minutes=minutes)
    return _at
