"""Shared fixtures for clubcal tests."""

from collections.abc import Callable, Iterable
from datetime import UTC, datetime, timedelta
from typing import Any, Optional

import pytest

from clubcal.models import EventDefinition
from clubcal.recurrence import RecurrenceRule


class FakeRule(RecurrenceRule):
    """Recurrence rule over an explicit, finite list of instants."""

    def __init__(self, instants: Iterable[datetime]):
        self.instants = sorted(instants)
        self.after_calls = 0

    def between(self, start: datetime, end: datetime) -> list[datetime]:
        return [i for i in self.instants if start <= i <= end]

    def after(self, instant: datetime) -> Optional[datetime]:
        self.after_calls += 1
        return next((i for i in self.instants if i > instant), None)


class WeeklyFakeRule(FakeRule):
    """Unbounded weekly series starting at ``first``."""

    def __init__(self, first: datetime):
        super().__init__([])
        self.first = first

    def between(self, start: datetime, end: datetime) -> list[datetime]:
        result = []
        current = self.first
        while current <= end:
            if current >= start:
                result.append(current)
            current += timedelta(weeks=1)
        return result

    def after(self, instant: datetime) -> Optional[datetime]:
        self.after_calls += 1
        current = self.first
        while current <= instant:
            current += timedelta(weeks=1)
        return current


@pytest.fixture
def now() -> datetime:
    """Fixed reference instant (a Monday noon, UTC)."""
    return datetime(2025, 10, 6, 12, 0, tzinfo=UTC)


@pytest.fixture
def make_definition() -> Callable[..., EventDefinition]:
    """Factory for EventDefinition with sensible defaults."""

    def _make(**kwargs: Any) -> EventDefinition:
        kwargs.setdefault("uid", "event-1")
        kwargs.setdefault("summary", "Team: Event")
        return EventDefinition(**kwargs)

    return _make


@pytest.fixture
def fake_rule() -> type[FakeRule]:
    """Rule class generating an explicit list of instants."""
    return FakeRule


@pytest.fixture
def weekly_rule() -> type[WeeklyFakeRule]:
    """Rule class generating an unbounded weekly series."""
    return WeeklyFakeRule


@pytest.fixture(autouse=True)
def clean_clubcal_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep CLUBCAL_* variables from the host out of tests."""
    for name in ("CLUBCAL_CONFIG", "CLUBCAL_DEBUG", "CLUBCAL_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
