"""Expansion of event definitions into candidate occurrence instants."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Union

from dateutil.relativedelta import relativedelta

from .exceptions import RecurrenceRuleError
from .models import EventDefinition, RetrievalMode

logger = logging.getLogger(__name__)

DEFAULT_SKIP_LIMIT = 20

WindowLength = Union[timedelta, relativedelta]


@dataclass(frozen=True)
class ResolutionWindow:
    """Time bounds for one aggregation pass.

    In windowed mode an instant qualifies when it lies in ``[start, end]``.
    In next-only mode it qualifies when it is strictly after ``now``.
    """

    now: datetime
    start: datetime
    end: datetime
    mode: RetrievalMode = RetrievalMode.WINDOWED

    @classmethod
    def from_length(
        cls,
        now: datetime,
        length: WindowLength,
        mode: RetrievalMode = RetrievalMode.WINDOWED,
    ) -> ResolutionWindow:
        """Build the window ``[now, now + length]``."""
        return cls(now=now, start=now, end=now + length, mode=mode)

    def admits(self, instant: datetime) -> bool:
        """Check whether ``instant`` belongs to this window under its mode."""
        if self.mode == RetrievalMode.NEXT_ONLY:
            return instant > self.now
        return self.start <= instant <= self.end


class OccurrenceResolver:
    """Produces pre-override candidate instants for a single definition."""

    def __init__(self, skip_limit: int = DEFAULT_SKIP_LIMIT):
        """Initialize resolver.

        Args:
            skip_limit: Maximum excepted candidates skipped while searching for
                the next occurrence before the series counts as exhausted
        """
        self.skip_limit = max(0, skip_limit)

    def resolve(self, definition: EventDefinition, window: ResolutionWindow) -> list[datetime]:
        """Return candidate instants of ``definition`` for ``window``.

        Override records never resolve on their own. Output is unsorted.
        """
        if definition.is_override:
            return []
        if window.mode == RetrievalMode.NEXT_ONLY:
            return self.resolve_next(definition, window.now)
        return self.resolve_window(definition, window.start, window.end)

    def resolve_window(
        self, definition: EventDefinition, window_start: datetime, window_end: datetime
    ) -> list[datetime]:
        """Return every instant of ``definition`` in ``[window_start, window_end]``."""
        if definition.recurrence_rule is None:
            start = definition.start
            if start is None:
                logger.debug("Skipping %r: no start time", definition.summary)
                return []
            if window_start <= start <= window_end:
                return [start]
            return []

        try:
            generated = definition.recurrence_rule.between(window_start, window_end)
        except RecurrenceRuleError as e:
            logger.warning("Skipping series %s: %s", definition.key, e)
            return []

        candidates = [instant for instant in generated if not definition.is_excepted(instant)]
        if len(candidates) != len(generated):
            logger.debug(
                "Series %s: %d of %d instants excepted",
                definition.key,
                len(generated) - len(candidates),
                len(generated),
            )
        return candidates

    def resolve_next(self, definition: EventDefinition, now: datetime) -> list[datetime]:
        """Return the earliest non-excepted instant strictly after ``now``, if any."""
        rule = definition.recurrence_rule
        if rule is None:
            start = definition.start
            if start is not None and start > now:
                return [start]
            return []

        try:
            candidate = rule.after(now)
            skipped = 0
            while candidate is not None and definition.is_excepted(candidate):
                skipped += 1
                if skipped > self.skip_limit:
                    logger.debug(
                        "Series %s: gave up after skipping %d excepted instants",
                        definition.key,
                        self.skip_limit,
                    )
                    return []
                candidate = rule.after(candidate)
        except RecurrenceRuleError as e:
            logger.warning("Skipping series %s: %s", definition.key, e)
            return []

        return [] if candidate is None else [candidate]
