"""clubcal - sports club calendar feed aggregation.

Turns already-fetched iCalendar feeds into a sorted, classified list of
occurrences: recurring series are expanded inside a window (or reduced to the
next occurrence), EXDATEs and RECURRENCE-ID overrides are applied, and match
titles are parsed into home/away teams.
"""

__version__ = "0.1.0"

from typing import Optional

from .aggregator import Aggregator, aggregate
from .models import (
    EventDefinition,
    EventType,
    FeedEvents,
    Occurrence,
    RetrievalMode,
    SubType,
    TeamInfo,
    TypeFilter,
)
from .team_parser import parse_teams
from .title_classifier import ClassifierRules, classify_title, strip_prefix

__all__ = [
    "Aggregator",
    "ClassifierRules",
    "EventDefinition",
    "EventType",
    "FeedEvents",
    "Occurrence",
    "RetrievalMode",
    "SubType",
    "TeamInfo",
    "TypeFilter",
    "aggregate",
    "classify_title",
    "parse_teams",
    "strip_prefix",
]


def _init_logging(level_name: Optional[str]) -> None:
    """Initialize root logging to stream to console.

    Installs a colorized console handler when none is present and sets the
    root level. CLUBCAL_DEBUG (truthy: "1", "true", "yes", "on") forces DEBUG.
    """
    import logging
    import os
    import sys

    from colorlog import ColoredFormatter

    debug_env = os.environ.get("CLUBCAL_DEBUG", "")
    if debug_env.strip().lower() in ("1", "true", "yes", "on"):
        level_name = "DEBUG"

    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(stream=sys.stderr)
        # HH:MM:SS  LEVEL   logger.name: message, only the level colorized
        fmt = "%(asctime)s %(log_color)s%(levelname)-7s%(reset)s %(name)s: %(message)s"
        log_colors = {
            "DEBUG": "cyan",
            "INFO": "green",
            "WARNING": "yellow",
            "ERROR": "red",
            "CRITICAL": "bold_red",
        }
        handler.setFormatter(ColoredFormatter(fmt, datefmt="%H:%M:%S", log_colors=log_colors))
        root.addHandler(handler)

    level = logging.INFO
    if isinstance(level_name, str):
        level = getattr(logging, level_name.upper(), logging.INFO)
    root.setLevel(level)
    logging.getLogger(__name__).debug(
        "Logging initialized at level %s", logging.getLevelName(level)
    )
