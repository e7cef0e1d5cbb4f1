"""Aggregation of parsed feeds into a sorted list of classified occurrences.

The aggregator is pure: it reads only its arguments (the reference instant
``now`` included) and owns every intermediate structure for the duration of
one call.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Optional

from dateutil.relativedelta import relativedelta

from .datetime_utils import to_utc
from .models import (
    EventDefinition,
    EventType,
    FeedEvents,
    Occurrence,
    RetrievalMode,
    TypeFilter,
)
from .occurrence_resolver import (
    DEFAULT_SKIP_LIMIT,
    OccurrenceResolver,
    ResolutionWindow,
    WindowLength,
)
from .override_merger import MergedFields, OverrideIndex, OverrideMerger
from .team_parser import parse_teams
from .title_classifier import DEFAULT_RULES, ClassifierRules, classify_title, strip_prefix

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_LENGTH: WindowLength = relativedelta(months=1)


def sort_occurrences(occurrences: Iterable[Occurrence]) -> list[Occurrence]:
    """Sort ascending by start; ties fall back to title, then feed label."""
    return sorted(occurrences, key=lambda occ: (to_utc(occ.start), occ.title, occ.source))


def keep_earliest_per_uid(occurrences: Iterable[Occurrence]) -> list[Occurrence]:
    """Reduce to the earliest occurrence of every uid."""
    earliest: dict[str, Occurrence] = {}
    for occ in occurrences:
        current = earliest.get(occ.uid)
        if current is None or to_utc(occ.start) < to_utc(current.start):
            earliest[occ.uid] = occ
    return list(earliest.values())


class Aggregator:
    """Resolves, merges, classifies, filters and sorts occurrences from feeds."""

    def __init__(
        self,
        rules: ClassifierRules = DEFAULT_RULES,
        skip_limit: int = DEFAULT_SKIP_LIMIT,
    ):
        """Initialize aggregator.

        Args:
            rules: Anchor token and keyword families for classification
            skip_limit: Bound on excepted instants skipped in next-only mode
        """
        self.rules = rules
        self.resolver = OccurrenceResolver(skip_limit=skip_limit)

    def aggregate(
        self,
        feeds: Sequence[FeedEvents],
        now: datetime,
        window_length: WindowLength = DEFAULT_WINDOW_LENGTH,
        mode: RetrievalMode = RetrievalMode.WINDOWED,
        type_filter: TypeFilter = TypeFilter.ALL,
    ) -> list[Occurrence]:
        """Produce the sorted occurrences of every feed.

        Args:
            feeds: Parsed definitions per feed
            now: Reference instant (timezone-aware)
            window_length: Window length after ``now`` for windowed mode
            mode: Windowed or next-only retrieval
            type_filter: Which event types to keep

        Returns:
            Occurrences sorted ascending by start
        """
        window = ResolutionWindow.from_length(now, window_length, mode)

        collected: list[Occurrence] = []
        for feed in feeds:
            collected.extend(self._feed_occurrences(feed, window, type_filter))

        if mode == RetrievalMode.NEXT_ONLY:
            collected = keep_earliest_per_uid(collected)

        result = sort_occurrences(collected)
        logger.debug(
            "Aggregated %d occurrences from %d feeds (mode=%s, filter=%s)",
            len(result),
            len(feeds),
            mode.value,
            type_filter.value,
        )
        return result

    def _feed_occurrences(
        self, feed: FeedEvents, window: ResolutionWindow, type_filter: TypeFilter
    ) -> list[Occurrence]:
        merger = OverrideMerger(OverrideIndex.build(feed.definitions))
        if len(merger.index):
            logger.debug("Feed %s: %d RECURRENCE-ID overrides", feed.name, len(merger.index))

        occurrences = []
        for definition in feed.definitions:
            if definition.is_override:
                continue
            for instant in self.resolver.resolve(definition, window):
                fields = merger.merge(definition, instant, window)
                if fields is None:
                    continue
                occurrence = self.build_occurrence(definition, fields, feed.name)
                if type_filter.accepts(occurrence.event_type):
                    occurrences.append(occurrence)
        return occurrences

    def build_occurrence(
        self, definition: EventDefinition, fields: MergedFields, source: str = ""
    ) -> Occurrence:
        """Classify merged fields and attach team structure for matches."""
        visible_title = strip_prefix(fields.title)
        event_type, sub_type = classify_title(visible_title, self.rules)

        occurrence = Occurrence(
            uid=definition.key,
            start=fields.start,
            title=fields.title,
            visible_title=visible_title,
            description=fields.description,
            location=fields.location,
            event_type=event_type,
            sub_type=sub_type,
            is_recurring=definition.is_recurring,
            source=source,
        )
        if event_type == EventType.MATCH:
            occurrence = occurrence.with_teams(parse_teams(visible_title, self.rules.anchor))
        return occurrence


def aggregate(
    feeds: Sequence[FeedEvents],
    now: datetime,
    window_length: WindowLength = DEFAULT_WINDOW_LENGTH,
    mode: RetrievalMode = RetrievalMode.WINDOWED,
    type_filter: TypeFilter = TypeFilter.ALL,
    rules: Optional[ClassifierRules] = None,
    skip_limit: int = DEFAULT_SKIP_LIMIT,
) -> list[Occurrence]:
    """Convenience wrapper around ``Aggregator.aggregate``."""
    aggregator = Aggregator(rules or DEFAULT_RULES, skip_limit)
    return aggregator.aggregate(feeds, now, window_length, mode, type_filter)
