"""JSON-ready representation of occurrences for API and CLI output."""

from typing import Any

from .datetime_utils import serialize_iso
from .models import Occurrence


def occurrence_to_api_model(occurrence: Occurrence) -> dict[str, Any]:
    """Convert an occurrence to the public camelCase API shape.

    Team keys are present only for matches whose title parsed into a home/away
    structure; a match without them is still a match.
    """
    model: dict[str, Any] = {
        "uid": occurrence.uid,
        "start": serialize_iso(occurrence.start),
        "title": occurrence.title,
        "visibleTitle": occurrence.visible_title,
        "description": occurrence.description,
        "location": occurrence.location,
        "eventType": occurrence.event_type.value,
        "subType": occurrence.sub_type.value,
        "isRecurring": occurrence.is_recurring,
        "source": occurrence.source,
    }
    if occurrence.has_team_info:
        model.update(
            homeTeam=occurrence.home_team,
            awayTeam=occurrence.away_team,
            homeIsOwnClub=occurrence.home_is_own_club,
            opponent=occurrence.opponent,
        )
    return model


def occurrences_to_api_models(occurrences: list[Occurrence]) -> list[dict[str, Any]]:
    """Serialize a sequence of occurrences, preserving order."""
    return [occurrence_to_api_model(occ) for occ in occurrences]
