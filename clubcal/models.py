"""Data models for club calendar aggregation."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .datetime_utils import to_utc
from .recurrence import RecurrenceRule


class EventType(str, Enum):
    """Top-level occurrence classification."""

    MATCH = "match"
    OTHER = "other"


class SubType(str, Enum):
    """Fine-grained occurrence classification."""

    MATCH = "match"
    TOURNAMENT = "tournament"
    PRACTICE = "practice"
    SOCIAL = "social"
    OTHER = "other"


class RetrievalMode(str, Enum):
    """How occurrences are selected from each series."""

    WINDOWED = "windowed"
    NEXT_ONLY = "next-only"


class TypeFilter(str, Enum):
    """Which classified occurrences survive aggregation."""

    ALL = "all"
    MATCH_ONLY = "matchOnly"
    OTHER_ONLY = "otherOnly"

    def accepts(self, event_type: EventType) -> bool:
        """Check whether an occurrence of ``event_type`` passes this filter."""
        if self is TypeFilter.MATCH_ONLY:
            return event_type == EventType.MATCH
        if self is TypeFilter.OTHER_ONLY:
            return event_type == EventType.OTHER
        return True


class EventDefinition(BaseModel):
    """One VEVENT as defined by the source feed, recurring or not."""

    uid: Optional[str] = Field(default=None, description="UID, unique per feed")
    summary: str = Field(default="", description="Raw title, may carry a 'Label: ' prefix")
    description: str = Field(default="", description="Event description")
    location: str = Field(default="", description="Event location")
    start: Optional[datetime] = Field(default=None, description="DTSTART as an aware instant")

    # Recurrence
    recurrence_rule: Optional[RecurrenceRule] = Field(
        default=None, description="Rule generating the series; None for single events"
    )
    exception_instants: set[datetime] = Field(
        default_factory=set, description="EXDATE instants suppressed from the series"
    )
    recurrence_id: Optional[datetime] = Field(
        default=None, description="RECURRENCE-ID: original instant this record overrides"
    )

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @property
    def key(self) -> str:
        """Identity used for override lookup and next-only deduplication.

        Falls back to a key synthesized from title and raw start so that
        UID-less entries stay stable within one aggregation pass.
        """
        if self.uid:
            return self.uid
        start_part = self.start.isoformat() if self.start else ""
        return f"{self.summary}-{start_part}"

    @property
    def is_recurring(self) -> bool:
        """Check if this definition generates a series."""
        return self.recurrence_rule is not None

    @property
    def is_override(self) -> bool:
        """Check if this record replaces one occurrence of another series."""
        return self.recurrence_id is not None

    def is_excepted(self, instant: datetime) -> bool:
        """Check whether ``instant`` exactly matches an exception instant."""
        if not self.exception_instants:
            return False
        target = to_utc(instant)
        return any(to_utc(ex) == target for ex in self.exception_instants)


class OverrideFields(BaseModel):
    """Fields carried by a RECURRENCE-ID instance; absent values fall back to the master."""

    start: Optional[datetime] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None


class FeedEvents(BaseModel):
    """Parsed definitions of one feed, labelled with the feed name."""

    name: str = Field(..., description="Feed label, e.g. the sport")
    definitions: list[EventDefinition] = Field(default_factory=list)


class TeamInfo(BaseModel):
    """Home/away structure parsed from a match title."""

    home_team: str
    away_team: str
    home_is_own_club: bool
    opponent: str


class Occurrence(BaseModel):
    """A resolved, classified, display-ready event instance."""

    uid: str = Field(..., description="Key of the definition this occurrence came from")
    start: datetime = Field(..., description="Start after override substitution")
    title: str = Field(..., description="Raw title after override substitution")
    visible_title: str = Field(..., description="Title without its 'Label: ' prefix")
    description: str = ""
    location: str = ""
    event_type: EventType
    sub_type: SubType
    is_recurring: bool = False
    source: str = Field(default="", description="Feed label the occurrence came from")

    # Match structure, set only when event_type is MATCH and the title parsed
    home_team: Optional[str] = None
    away_team: Optional[str] = None
    home_is_own_club: Optional[bool] = None
    opponent: Optional[str] = None

    @property
    def has_team_info(self) -> bool:
        """Check whether match structure was parsed for this occurrence."""
        return self.home_team is not None and self.away_team is not None

    def with_teams(self, teams: Optional[TeamInfo]) -> "Occurrence":
        """Return a copy carrying ``teams``, or self when there is nothing to add."""
        if teams is None:
            return self
        return self.model_copy(update=teams.model_dump())
