"""Integration tests for the clubcal HTTP API."""

from datetime import UTC, datetime

import pytest
from aiohttp.test_utils import TestClient, TestServer

from clubcal.config_loader import Config
from clubcal.server import create_app

NOW = datetime(2025, 10, 6, 12, 0, tzinfo=UTC)

SALIBANDY_ICS = """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//clubcal//test//EN
BEGIN:VEVENT
UID:match-1
SUMMARY:HPV Salibandy: HPV - Lions
LOCATION:Sports Hall
DTSTART:20251009T120000Z
END:VEVENT
BEGIN:VEVENT
UID:practice-1
SUMMARY:Team: Weekly Practice
DTSTART:20251006T170000Z
RRULE:FREQ=WEEKLY
EXDATE:20251013T170000Z
END:VEVENT
END:VCALENDAR
"""

JAAKIEKKO_ICS = """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//clubcal//test//EN
BEGIN:VEVENT
UID:hockey-1
SUMMARY:HPV Jääkiekko: Vihu – HPV
DTSTART:20251008T150000Z
RRULE:FREQ=WEEKLY;COUNT=4
END:VEVENT
BEGIN:VEVENT
UID:hockey-1
SUMMARY:HPV Jääkiekko: Vihu – HPV (siirretty)
DTSTART:20251016T150000Z
RECURRENCE-ID:20251015T150000Z
END:VEVENT
BEGIN:VEVENT
UID:sauna-1
SUMMARY:Saunailta
DTSTART:20251010T160000Z
END:VEVENT
END:VCALENDAR
"""


def as_crlf(text: str) -> str:
    return text.replace("\n", "\r\n")


@pytest.fixture
def config(tmp_path):
    """Config with three feed sets, one of them pointing at a missing file."""
    (tmp_path / "salibandy.ics").write_text(as_crlf(SALIBANDY_ICS), encoding="utf-8")
    (tmp_path / "jaakiekko.ics").write_text(as_crlf(JAAKIEKKO_ICS), encoding="utf-8")
    return Config.from_dict(
        {
            "window_months": 0,
            "window_days": 15,
            "default_kind": "salibandy",
            "feeds": {
                "salibandy": ["salibandy.ics"],
                "jaakiekko": [{"name": "jääkiekko", "path": "jaakiekko.ics"}],
                "broken": ["missing.ics"],
            },
        },
        base_dir=tmp_path,
    )


@pytest.fixture
async def client(config):
    """Test client for an app pinned to a fixed reference instant."""
    app = create_app(config, time_provider=lambda: NOW)
    async with TestClient(TestServer(app)) as test_client:
        yield test_client


@pytest.mark.integration
class TestEventsEndpoint:
    """Integration tests for /api/events."""

    async def test_default_kind_windowed(self, client):
        """Test the match plus two practices, the excepted week skipped."""
        response = await client.get("/api/events")
        assert response.status == 200
        events = await response.json()

        assert [(e["uid"], e["start"]) for e in events] == [
            ("practice-1", "2025-10-06T17:00:00Z"),
            ("match-1", "2025-10-09T12:00:00Z"),
            ("practice-1", "2025-10-20T17:00:00Z"),
        ]
        practice, match, _ = events
        assert (match["eventType"], match["subType"]) == ("match", "match")
        assert (practice["eventType"], practice["subType"]) == ("other", "practice")
        assert match["visibleTitle"] == "HPV - Lions"
        assert match["homeTeam"] == "HPV"
        assert match["awayTeam"] == "Lions"
        assert match["homeIsOwnClub"] is True
        assert match["location"] == "Sports Hall"
        assert practice["isRecurring"] is True
        assert "homeTeam" not in practice

    async def test_type_filter(self, client):
        """Test type=matches and type=others."""
        matches = await (await client.get("/api/events?type=matches")).json()
        others = await (await client.get("/api/events?type=others")).json()
        assert [e["uid"] for e in matches] == ["match-1"]
        assert {e["uid"] for e in others} == {"practice-1"}

    async def test_override_and_away_match(self, client):
        """Test a RECURRENCE-ID override and away-side team parsing."""
        events = await (await client.get("/api/events?kind=jaakiekko&type=matches")).json()
        assert [e["start"] for e in events] == [
            "2025-10-08T15:00:00Z",
            "2025-10-16T15:00:00Z",
        ]
        moved = events[1]
        assert moved["title"].endswith("(siirretty)")
        assert moved["source"] == "jääkiekko"
        assert moved["homeTeam"] == "Vihu"
        assert moved["homeIsOwnClub"] is False

    async def test_social_event(self, client):
        """Test social classification from the Finnish keyword."""
        events = await (await client.get("/api/events?kind=jaakiekko&type=others")).json()
        assert [(e["uid"], e["subType"]) for e in events] == [("sauna-1", "social")]

    async def test_all_kinds_fail_with_one_broken_feed(self, client):
        """Test kind=all fails as a whole when one of its feeds is missing."""
        response = await client.get("/api/events?kind=all&mode=next")
        assert response.status == 500

    async def test_next_mode(self, client):
        """Test next-only mode for one feed set."""
        events = await (await client.get("/api/events?kind=jaakiekko&mode=next")).json()
        uids = [e["uid"] for e in events]
        assert sorted(uids) == ["hockey-1", "sauna-1"]
        assert len(uids) == len(set(uids))
        hockey = next(e for e in events if e["uid"] == "hockey-1")
        assert hockey["start"] == "2025-10-08T15:00:00Z"

    async def test_unknown_kind_uses_default(self, client):
        """Test an unknown kind falls back to the default feed set."""
        events = await (await client.get("/api/events?kind=curling")).json()
        assert {e["uid"] for e in events} == {"match-1", "practice-1"}

    async def test_feed_failure_returns_500(self, client):
        """Test a missing feed file yields the generic error body."""
        response = await client.get("/api/events?kind=broken")
        assert response.status == 500
        assert await response.json() == {"error": "Failed to load calendar data"}
        assert response.headers["Access-Control-Allow-Origin"] == "*"


@pytest.mark.integration
class TestHttpBehaviour:
    """Integration tests for CORS, preflight and health."""

    async def test_cors_headers(self, client):
        """Test CORS headers on a normal response."""
        response = await client.get("/api/events")
        assert response.headers["Access-Control-Allow-Origin"] == "*"
        assert "GET" in response.headers["Access-Control-Allow-Methods"]

    async def test_options_preflight(self, client):
        """Test OPTIONS answers 200 with CORS headers."""
        response = await client.options("/api/events")
        assert response.status == 200
        assert response.headers["Access-Control-Allow-Origin"] == "*"

    async def test_request_id_echoed(self, client):
        """Test the correlation ID is echoed back."""
        response = await client.get("/api/health", headers={"X-Request-ID": "abc-123"})
        assert response.headers["X-Request-ID"] == "abc-123"

    async def test_health(self, client):
        """Test the health endpoint reports the reference time."""
        response = await client.get("/api/health")
        assert response.status == 200
        assert await response.json() == {
            "status": "ok",
            "server_time_iso": "2025-10-06T12:00:00Z",
        }

    async def test_unknown_route(self, client):
        """Test unknown paths are 404 and still carry CORS headers."""
        response = await client.get("/api/nope")
        assert response.status == 404
        assert response.headers["Access-Control-Allow-Origin"] == "*"
