"""Recurrence rule capability backed by dateutil.

The occurrence resolver only ever asks a rule two questions: which instants
fall inside a window, and which instant comes first after a given one.
``RecurrenceRule`` is that narrow interface; ``DateutilRecurrenceRule`` answers
it with ``dateutil.rrule`` and tests substitute their own subclasses.
"""

import re
from abc import ABC, abstractmethod
from datetime import UTC, datetime, time
from typing import Optional

from dateutil.rrule import rrule, rruleset, rrulestr

from .exceptions import RecurrenceRuleError

# UNTIL without a trailing Z: a DATE or a floating DATE-TIME
_LOCAL_UNTIL_RE = re.compile(r"\bUNTIL=(\d{8}(?:T\d{6})?)(?=;|$)", re.IGNORECASE)


def localize_until(line: str, dtstart: datetime) -> str:
    """Rewrite a local UNTIL in ``line`` as UTC, read in the zone of ``dtstart``.

    All-day and floating series carry a DATE or floating UNTIL, while dateutil
    only accepts a UTC UNTIL next to an aware DTSTART. A DATE UNTIL covers its
    whole day.

    Raises:
        ValueError: If the UNTIL value is not a valid date
    """
    match = _LOCAL_UNTIL_RE.search(line)
    if match is None or dtstart.tzinfo is None:
        return line
    value = match.group(1).upper()
    if "T" in value:
        local = datetime.strptime(value, "%Y%m%dT%H%M%S")
    else:
        local = datetime.combine(
            datetime.strptime(value, "%Y%m%d").date(), time(23, 59, 59)
        )
    until = local.replace(tzinfo=dtstart.tzinfo).astimezone(UTC)
    return line[: match.start(1)] + until.strftime("%Y%m%dT%H%M%SZ") + line[match.end(1) :]


class RecurrenceRule(ABC):
    """Capability interface over a recurring series."""

    @abstractmethod
    def between(self, start: datetime, end: datetime) -> list[datetime]:
        """Return every generated instant in ``[start, end]``, bounds inclusive.

        Raises:
            RecurrenceRuleError: If the rule cannot be evaluated
        """

    @abstractmethod
    def after(self, instant: datetime) -> Optional[datetime]:
        """Return the earliest generated instant strictly after ``instant``.

        Returns None when the series is exhausted.

        Raises:
            RecurrenceRuleError: If the rule cannot be evaluated
        """


class DateutilRecurrenceRule(RecurrenceRule):
    """RRULE text evaluated with ``dateutil.rrule``.

    Parsing is deferred until the first query. A broken RRULE surfaces as a
    ``RecurrenceRuleError`` when the resolver asks for instants.

    Exception dates are not folded into the ruleset; they belong to the event
    definition and are filtered by the resolver.
    """

    def __init__(self, rule_lines: list[str], dtstart: datetime):
        """Initialize rule.

        Args:
            rule_lines: One or more RRULE values (e.g. "FREQ=WEEKLY;BYDAY=TU")
            dtstart: Timezone-aware series start
        """
        self.rule_lines = [line.strip() for line in rule_lines if line and line.strip()]
        self.dtstart = dtstart
        self._ruleset: Optional[rruleset] = None

    def __repr__(self) -> str:
        return f"DateutilRecurrenceRule({self.rule_lines!r}, dtstart={self.dtstart.isoformat()})"

    def _get_ruleset(self) -> rruleset:
        if self._ruleset is not None:
            return self._ruleset

        if not self.rule_lines:
            raise RecurrenceRuleError("Empty RRULE")

        rule_set = rruleset()
        for line in self.rule_lines:
            text = line if line.upper().startswith("RRULE:") else f"RRULE:{line}"
            try:
                parsed = rrulestr(localize_until(text, self.dtstart), dtstart=self.dtstart)
            except (ValueError, TypeError) as e:
                raise RecurrenceRuleError(f"Invalid RRULE {line!r}: {e}") from e
            if not isinstance(parsed, rrule):
                raise RecurrenceRuleError(f"Unsupported RRULE {line!r}")
            rule_set.rrule(parsed)

        self._ruleset = rule_set
        return rule_set

    def between(self, start: datetime, end: datetime) -> list[datetime]:
        rule_set = self._get_ruleset()
        try:
            return list(rule_set.between(start, end, inc=True))
        except (ValueError, TypeError) as e:
            raise RecurrenceRuleError(f"Cannot expand RRULE {self.rule_lines!r}: {e}") from e

    def after(self, instant: datetime) -> Optional[datetime]:
        rule_set = self._get_ruleset()
        try:
            return rule_set.after(instant, inc=False)
        except (ValueError, TypeError) as e:
            raise RecurrenceRuleError(f"Cannot evaluate RRULE {self.rule_lines!r}: {e}") from e
