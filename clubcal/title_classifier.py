"""Title classification into event type and subtype.

Classification is a plain keyword heuristic evaluated in fixed priority
order. It is independent of ``team_parser``: a title can be a
match here while team parsing finds no home/away structure in it.
"""

import re
from dataclasses import dataclass

from .models import EventType, SubType

DEFAULT_CLUB_NAME = "HPV"

DEFAULT_TOURNAMENT_KEYWORDS = ("tournament", "turnaus")
DEFAULT_PRACTICE_KEYWORDS = (
    "practice",
    "training",
    "treeni",
    "reeni",
    "harjoit",
    "harkat",
    "harkka",
)
DEFAULT_SOCIAL_KEYWORDS = (
    "sauna",
    "trip",
    "cruise",
    "recreation",
    "laiva",
    "risteily",
    "virkistys",
)

DASH_CHARACTERS = ("-", "–", "—")

_PREFIX_RE = re.compile(r"^[^:]+:\s*")


@dataclass(frozen=True)
class ClassifierRules:
    """Anchor token and keyword families used by ``classify_title``.

    Keywords are stored lowercased; matching is substring-based.
    """

    anchor: str = DEFAULT_CLUB_NAME
    tournament_keywords: tuple[str, ...] = DEFAULT_TOURNAMENT_KEYWORDS
    practice_keywords: tuple[str, ...] = DEFAULT_PRACTICE_KEYWORDS
    social_keywords: tuple[str, ...] = DEFAULT_SOCIAL_KEYWORDS

    def __post_init__(self) -> None:
        for name in ("tournament_keywords", "practice_keywords", "social_keywords"):
            lowered = tuple(k.strip().lower() for k in getattr(self, name) if k and k.strip())
            object.__setattr__(self, name, lowered)


DEFAULT_RULES = ClassifierRules()


def strip_prefix(title: str) -> str:
    """Remove a leading ``"Label: "`` prefix from a raw title.

    >>> strip_prefix("HPV Jääkiekko: HPV - Vihu")
    'HPV - Vihu'
    """
    return _PREFIX_RE.sub("", title or "", count=1)


def _contains_any(text: str, keywords: tuple[str, ...]) -> bool:
    return any(keyword in text for keyword in keywords)


def classify_title(
    visible_title: str, rules: ClassifierRules = DEFAULT_RULES
) -> tuple[EventType, SubType]:
    """Map a visible title to ``(event_type, sub_type)``; first matching rule wins.

    1. anchor token and a dash anywhere in the title: match
    2. tournament keyword: tournament
    3. practice keyword: practice
    4. social keyword: social
    5. anything else: other
    """
    text = (visible_title or "").lower()

    anchor = rules.anchor.lower()
    if anchor and anchor in text and any(dash in text for dash in DASH_CHARACTERS):
        return EventType.MATCH, SubType.MATCH
    if _contains_any(text, rules.tournament_keywords):
        return EventType.OTHER, SubType.TOURNAMENT
    if _contains_any(text, rules.practice_keywords):
        return EventType.OTHER, SubType.PRACTICE
    if _contains_any(text, rules.social_keywords):
        return EventType.OTHER, SubType.SOCIAL
    return EventType.OTHER, SubType.OTHER
