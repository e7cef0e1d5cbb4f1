"""Exception hierarchy for clubcal.

Engine code raises these where a caller can reasonably recover (skip a rule,
fail one feed, reject a config file) instead of letting library-specific
errors from icalendar or dateutil leak out.
"""


class ClubCalError(Exception):
    """Base exception for all clubcal errors."""


class FeedError(ClubCalError):
    """A calendar feed could not be turned into event definitions.

    Attributes:
        feed_name: Label of the feed that failed, when known
    """

    def __init__(self, message: str, feed_name: str | None = None):
        super().__init__(message)
        self.feed_name = feed_name


class FeedParseError(FeedError):
    """Feed text is not a readable iCalendar document."""


class FeedLoadError(FeedError):
    """Reading or parsing one feed failed.

    Raised once per failing feed so that callers see a single aggregate
    failure regardless of whether the file read or the ICS parse broke.
    """


class RecurrenceRuleError(ClubCalError):
    """A recurrence rule is malformed or uses unsupported features.

    The occurrence resolver treats this as "zero candidates" for the series.
    """


class ConfigError(ClubCalError):
    """Configuration file is present but unusable."""
