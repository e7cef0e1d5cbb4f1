"""Home/away team parsing from match titles.

The club's own name (the anchor) is located in the title and the opponent is
read from the side of the nearest adjacent hyphen, e.g. ``"HPV - Lions"`` is a
home match against Lions and ``"Lions-HPV"`` an away match. Titles using an
explicit ``vs`` / ``v`` separator are accepted as a fallback.
"""

import logging
import re
from typing import Optional

from .models import TeamInfo
from .title_classifier import DEFAULT_CLUB_NAME

logger = logging.getLogger(__name__)

_DASHES_RE = re.compile(r"[–—]")
_WHITESPACE_RE = re.compile(r"\s+")
_VS_SEPARATOR_RE = re.compile(r"\s(?:vs|v)\s", re.IGNORECASE)


def clean_title(raw: str) -> str:
    """Unify dashes to ``-``, collapse whitespace and trim."""
    text = _DASHES_RE.sub("-", raw or "")
    return _WHITESPACE_RE.sub(" ", text).strip()


def _anchor_pattern(anchor: str) -> re.Pattern[str]:
    # [^\W_] is "Unicode letter or digit"; the anchor must not touch one on either side
    return re.compile(rf"(?<![^\W_]){re.escape(anchor)}(?![^\W_])", re.IGNORECASE)


def _adjacent_hyphen(title: str, index: int, step: int) -> int:
    """Return the index of a hyphen next to ``index`` (one space allowed), or -1."""
    i = index
    if 0 <= i < len(title) and title[i] == " ":
        i += step
    if 0 <= i < len(title) and title[i] == "-":
        return i
    return -1


def _oriented(opponent: str, own_club: str, own_is_home: bool) -> TeamInfo:
    if own_is_home:
        return TeamInfo(
            home_team=own_club, away_team=opponent, home_is_own_club=True, opponent=opponent
        )
    return TeamInfo(
        home_team=opponent, away_team=own_club, home_is_own_club=False, opponent=opponent
    )


def _parse_vs(title: str, anchor: str) -> Optional[TeamInfo]:
    segments = [segment.strip() for segment in _VS_SEPARATOR_RE.split(title)]
    if len(segments) != 2 or not all(segments):
        return None

    first, second = segments
    anchor_key = anchor.casefold()
    first_is_own = first.casefold() == anchor_key
    second_is_own = second.casefold() == anchor_key
    if first_is_own == second_is_own:
        return None
    if first_is_own:
        return _oriented(second, anchor, own_is_home=True)
    return _oriented(first, anchor, own_is_home=False)


def parse_teams(title: str, anchor: str = DEFAULT_CLUB_NAME) -> Optional[TeamInfo]:
    """Extract home/away structure from a visible match title.

    Args:
        title: Visible title (prefix already stripped)
        anchor: The club's own name; also used as the own-club team name

    Returns:
        TeamInfo, or None when the title has no recognizable structure
    """
    if not title or not anchor:
        return None

    text = clean_title(title)
    match = _anchor_pattern(anchor).search(text)
    if match is None:
        return None

    left_hyphen = _adjacent_hyphen(text, match.start() - 1, -1)
    if left_hyphen != -1:
        opponent = text[:left_hyphen].strip()
        return _oriented(opponent, anchor, own_is_home=False) if opponent else None

    right_hyphen = _adjacent_hyphen(text, match.end(), 1)
    if right_hyphen != -1:
        opponent = text[right_hyphen + 1 :].strip()
        return _oriented(opponent, anchor, own_is_home=True) if opponent else None

    teams = _parse_vs(text, anchor)
    if teams is None:
        logger.debug("No team structure in %r", title)
    return teams
