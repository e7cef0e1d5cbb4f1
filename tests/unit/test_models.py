"""Unit tests for clubcal models."""

from datetime import timedelta
from zoneinfo import ZoneInfo

import pytest

from clubcal.models import EventDefinition, EventType, TypeFilter

pytestmark = pytest.mark.unit


class TestEventDefinition:
    """Tests for EventDefinition."""

    def test_key_prefers_uid(self, now):
        """Test the UID is the key when present."""
        assert EventDefinition(uid="abc", summary="x", start=now).key == "abc"

    def test_key_synthesized_from_title_and_start(self, now):
        """Test a stable key is built when UID is missing."""
        first = EventDefinition(summary="Sauna", start=now)
        second = EventDefinition(summary="Sauna", start=now)
        assert first.key == second.key == f"Sauna-{now.isoformat()}"

    def test_key_without_start(self):
        """Test key synthesis tolerates a missing start."""
        assert EventDefinition(summary="Sauna").key == "Sauna-"

    def test_flags(self, now, fake_rule):
        """Test recurring and override flags."""
        assert not EventDefinition(start=now).is_recurring
        assert EventDefinition(start=now, recurrence_rule=fake_rule([now])).is_recurring
        assert EventDefinition(start=now, recurrence_id=now).is_override

    def test_is_excepted_compares_instants(self, now):
        """Test exception matching across time zones."""
        local = now.astimezone(ZoneInfo("Europe/Helsinki"))
        definition = EventDefinition(start=now, exception_instants={local})
        assert definition.is_excepted(now)
        assert not definition.is_excepted(now + timedelta(microseconds=1))

    def test_is_excepted_without_exceptions(self, now):
        """Test nothing is excepted by default."""
        assert not EventDefinition(start=now).is_excepted(now)

    def test_rejects_non_rule_recurrence(self, now):
        """Test recurrence_rule must implement RecurrenceRule."""
        with pytest.raises(ValueError):
            EventDefinition(start=now, recurrence_rule="FREQ=WEEKLY")


class TestTypeFilter:
    """Tests for TypeFilter.accepts."""

    @pytest.mark.parametrize(
        ("type_filter", "event_type", "expected"),
        [
            (TypeFilter.ALL, EventType.MATCH, True),
            (TypeFilter.ALL, EventType.OTHER, True),
            (TypeFilter.MATCH_ONLY, EventType.MATCH, True),
            (TypeFilter.MATCH_ONLY, EventType.OTHER, False),
            (TypeFilter.OTHER_ONLY, EventType.MATCH, False),
            (TypeFilter.OTHER_ONLY, EventType.OTHER, True),
        ],
    )
    def test_accepts(self, type_filter, event_type, expected):
        """Test filter decisions for every combination."""
        assert type_filter.accepts(event_type) is expected

    def test_values(self):
        """Test wire values of the filter enum."""
        assert [f.value for f in TypeFilter] == ["all", "matchOnly", "otherOnly"]

