"""iCalendar feed reading into EventDefinition records."""

import logging
from datetime import date, datetime
from typing import Any, Optional

from icalendar import Calendar
from icalendar import Event as ICalEvent

from .datetime_utils import DEFAULT_TIMEZONE, ensure_timezone_aware
from .exceptions import FeedParseError
from .models import EventDefinition, FeedEvents
from .recurrence import DateutilRecurrenceRule

logger = logging.getLogger(__name__)


def _as_list(prop: Any) -> list[Any]:
    """icalendar returns a single property or a list when it repeats."""
    if prop is None:
        return []
    if isinstance(prop, list):
        return prop
    return [prop]


def _text(component: ICalEvent, name: str) -> str:
    value = component.get(name)
    return str(value) if value is not None else ""


class ICSFeedReader:
    """Turns raw iCalendar text into the EventDefinitions of one feed."""

    def __init__(self, default_timezone: str = DEFAULT_TIMEZONE):
        """Initialize reader.

        Args:
            default_timezone: Zone for date-only and floating (naive) values
        """
        self.default_timezone = default_timezone

    def read(self, ics_content: str, name: str = "") -> FeedEvents:
        """Parse ``ics_content`` into a FeedEvents labelled ``name``.

        Raises:
            FeedParseError: If the text is not an iCalendar document
        """
        if not ics_content or not ics_content.strip():
            raise FeedParseError("Empty ICS content", feed_name=name)

        try:
            calendar = Calendar.from_ical(ics_content.encode("utf-8"))
        except (ValueError, IndexError, KeyError) as e:
            raise FeedParseError(f"Invalid ICS content: {e}", feed_name=name) from e

        if getattr(calendar, "name", None) != "VCALENDAR":
            raise FeedParseError("Content is not a VCALENDAR", feed_name=name)

        definitions = []
        for component in calendar.walk("VEVENT"):
            definition = self.parse_event(component)
            if definition is not None:
                definitions.append(definition)

        logger.debug("Feed %s: read %d VEVENT definitions", name or "<unnamed>", len(definitions))
        return FeedEvents(name=name, definitions=definitions)

    def parse_event(self, component: ICalEvent) -> Optional[EventDefinition]:
        """Convert one VEVENT.

        Returns None for components without any content and for overrides whose
        RECURRENCE-ID cannot be read.
        """
        uid = _text(component, "UID") or None
        summary = _text(component, "SUMMARY")
        start = self._instant(component.get("DTSTART"))

        if uid is None and not summary and start is None:
            logger.debug("Skipping empty VEVENT")
            return None

        recurrence_id = None
        if "RECURRENCE-ID" in component:
            recurrence_id = self._instant(component.get("RECURRENCE-ID"))
            if recurrence_id is None:
                logger.warning(
                    "Dropping override of %s: unusable RECURRENCE-ID %r",
                    uid or summary,
                    component.get("RECURRENCE-ID"),
                )
                return None

        recurrence_rule = None
        rule_lines = self._rule_lines(component)
        if rule_lines:
            if start is None:
                logger.warning("Series %s has RRULE but no usable DTSTART", uid or summary)
            else:
                recurrence_rule = DateutilRecurrenceRule(rule_lines, start)

        return EventDefinition(
            uid=uid,
            summary=summary,
            description=_text(component, "DESCRIPTION"),
            location=_text(component, "LOCATION"),
            start=start,
            recurrence_rule=recurrence_rule,
            exception_instants=self._exception_instants(component),
            recurrence_id=recurrence_id,
        )

    def _instant(self, prop: Any) -> Optional[datetime]:
        """Extract an aware datetime from a date/datetime property, None if unusable."""
        if prop is None:
            return None
        try:
            value = prop.dt
        except (AttributeError, ValueError):
            # broken properties raise on attribute access
            return None
        if not isinstance(value, (date, datetime)):
            return None
        return ensure_timezone_aware(value, self.default_timezone)

    def _rule_lines(self, component: ICalEvent) -> list[str]:
        lines = []
        for prop in _as_list(component.get("RRULE")):
            if hasattr(prop, "to_ical"):
                raw = prop.to_ical()
                lines.append(raw.decode("utf-8") if isinstance(raw, bytes) else str(raw))
            else:
                lines.append(str(prop))
        return [line for line in lines if line.strip()]

    def _exception_instants(self, component: ICalEvent) -> set[datetime]:
        instants: set[datetime] = set()
        for prop in _as_list(component.get("EXDATE")):
            try:
                values = prop.dts
            except (AttributeError, ValueError):
                logger.warning("Ignoring unparsable EXDATE %r", prop)
                continue
            for value in values:
                instant = self._instant(value)
                if instant is None:
                    logger.warning("Ignoring unparsable EXDATE value %r", value)
                    continue
                instants.add(instant)
        return instants


def parse_feed(
    ics_content: str, name: str = "", default_timezone: str = DEFAULT_TIMEZONE
) -> FeedEvents:
    """Parse one feed with a fresh ``ICSFeedReader``."""
    return ICSFeedReader(default_timezone).read(ics_content, name)
