"""Datetime normalization helpers for iCalendar values."""

import logging
from datetime import UTC, date, datetime
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "Europe/Helsinki"


def resolve_timezone(tz_name: Optional[str]) -> Any:
    """Return a tzinfo for ``tz_name``, falling back to UTC for unknown names."""
    if not tz_name:
        return UTC
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r, using UTC", tz_name)
        return UTC


def ensure_timezone_aware(value: date | datetime, tz_name: Optional[str] = None) -> datetime:
    """Coerce a date or datetime into a timezone-aware datetime.

    Date-only values (all-day events) become midnight in ``tz_name``. Naive
    (floating) datetimes are interpreted in ``tz_name``. Aware values are
    returned unchanged.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=resolve_timezone(tz_name))
        return value
    return datetime.combine(value, datetime.min.time(), tzinfo=resolve_timezone(tz_name))


def to_utc(dt: datetime) -> datetime:
    """Normalize an aware datetime to UTC; naive values are assumed UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def serialize_iso(dt: datetime) -> str:
    """Serialize an instant as a UTC ISO 8601 string with a ``Z`` suffix."""
    return to_utc(dt).isoformat().replace("+00:00", "Z")
