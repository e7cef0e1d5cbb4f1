"""RECURRENCE-ID override processing.

An override record replaces the fields of one occurrence of a series. It is
keyed by the series UID and the instant the occurrence was originally
scheduled for, so lookups always use the pre-override candidate instant.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .datetime_utils import to_utc
from .models import EventDefinition, OverrideFields
from .occurrence_resolver import ResolutionWindow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MergedFields:
    """Display fields of one occurrence after override substitution."""

    start: datetime
    title: str
    description: str
    location: str
    overridden: bool = False


class OverrideIndex:
    """Mapping ``uid -> (original instant -> override fields)`` for one feed."""

    def __init__(self) -> None:
        self._overrides: dict[str, dict[datetime, OverrideFields]] = {}

    def __len__(self) -> int:
        return sum(len(by_instant) for by_instant in self._overrides.values())

    @classmethod
    def build(cls, definitions: Iterable[EventDefinition]) -> OverrideIndex:
        """Collect every override record of a feed.

        Records without a UID can never be matched to a master and are
        dropped. A later record for the same slot replaces an earlier one.
        """
        index = cls()
        for definition in definitions:
            if definition.recurrence_id is None:
                continue
            if not definition.uid:
                logger.debug("Ignoring override %r without UID", definition.summary)
                continue
            index.add(
                definition.uid,
                definition.recurrence_id,
                OverrideFields(
                    start=definition.start,
                    summary=definition.summary,
                    description=definition.description,
                    location=definition.location,
                ),
            )
        return index

    def add(self, uid: str, original_instant: datetime, fields: OverrideFields) -> None:
        """Register ``fields`` as the override for ``uid`` at ``original_instant``."""
        self._overrides.setdefault(uid, {})[to_utc(original_instant)] = fields
        logger.debug("RECURRENCE-ID override registered: %s at %s", uid, original_instant)

    def lookup(self, uid: str, original_instant: datetime) -> Optional[OverrideFields]:
        """Return the override for ``uid`` at ``original_instant``, if any."""
        by_instant = self._overrides.get(uid)
        if not by_instant:
            return None
        return by_instant.get(to_utc(original_instant))


class OverrideMerger:
    """Substitutes override fields into resolved candidates."""

    def __init__(self, index: OverrideIndex):
        self.index = index

    def merge(
        self,
        definition: EventDefinition,
        original_instant: datetime,
        window: ResolutionWindow,
    ) -> Optional[MergedFields]:
        """Build the display fields for one candidate of ``definition``.

        Args:
            definition: Master (or single) definition the candidate belongs to
            original_instant: Candidate instant before any override
            window: Window the final start must still satisfy

        Returns:
            Merged fields, or None when an override moved the occurrence out
            of the window (displaced occurrences are dropped, not clamped)
        """
        override = self.index.lookup(definition.key, original_instant)
        if override is None:
            fields = MergedFields(
                start=original_instant,
                title=definition.summary,
                description=definition.description,
                location=definition.location,
            )
        else:
            fields = MergedFields(
                start=override.start or original_instant,
                title=override.summary or definition.summary,
                description=override.description or definition.description,
                location=override.location or definition.location,
                overridden=True,
            )

        if not window.admits(fields.start):
            logger.debug(
                "Dropping %s occurrence %s: override moved it to %s outside the window",
                definition.key,
                original_instant,
                fields.start,
            )
            return None
        return fields
