"""HTTP layer for clubcal.

Serves aggregated occurrences at ``/api/events``. Query parameters:

- ``kind``: feed set from configuration (``all`` combines every set); unknown
  values fall back to the default set
- ``type``: ``all`` | ``matches`` | ``others``
- ``mode``: ``windowed`` | ``next``
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any, Optional

from aiohttp import web

from .aggregator import Aggregator
from .config_loader import Config
from .datetime_utils import serialize_iso
from .exceptions import FeedLoadError
from .feed_loader import FeedLoader
from .middleware import correlation_id_middleware, cors_middleware
from .models import RetrievalMode, TypeFilter
from .serialization import occurrences_to_api_models

logger = logging.getLogger(__name__)

TimeProvider = Callable[[], datetime]

CONFIG_KEY = web.AppKey("config", Config)
LOADER_KEY = web.AppKey("feed_loader", FeedLoader)
AGGREGATOR_KEY = web.AppKey("aggregator", Aggregator)
TIME_PROVIDER_KEY = web.AppKey("time_provider", Callable[[], datetime])

_TYPE_FILTER_ALIASES = {
    "all": TypeFilter.ALL,
    "kaikki": TypeFilter.ALL,
    "matches": TypeFilter.MATCH_ONLY,
    "match": TypeFilter.MATCH_ONLY,
    "matchonly": TypeFilter.MATCH_ONLY,
    "ottelut": TypeFilter.MATCH_ONLY,
    "others": TypeFilter.OTHER_ONLY,
    "other": TypeFilter.OTHER_ONLY,
    "otheronly": TypeFilter.OTHER_ONLY,
    "muut": TypeFilter.OTHER_ONLY,
}

_MODE_ALIASES = {
    "windowed": RetrievalMode.WINDOWED,
    "window": RetrievalMode.WINDOWED,
    "next": RetrievalMode.NEXT_ONLY,
    "next-only": RetrievalMode.NEXT_ONLY,
    "nextonly": RetrievalMode.NEXT_ONLY,
}


def now_utc() -> datetime:
    return datetime.now(UTC)


def parse_type_filter(value: Optional[str]) -> TypeFilter:
    """Map a ``type`` query value to a TypeFilter; unknown values mean all."""
    return _TYPE_FILTER_ALIASES.get((value or "").strip().lower(), TypeFilter.ALL)


def parse_mode(value: Optional[str]) -> RetrievalMode:
    """Map a ``mode`` query value to a RetrievalMode; unknown values mean windowed."""
    return _MODE_ALIASES.get((value or "").strip().lower(), RetrievalMode.WINDOWED)


async def events_handler(request: web.Request) -> web.Response:
    """Return the aggregated occurrences of the requested feed set."""
    app = request.app
    config = app[CONFIG_KEY]

    kind = request.query.get("kind")
    type_filter = parse_type_filter(request.query.get("type"))
    mode = parse_mode(request.query.get("mode"))
    sources = config.sources_for(kind)

    logger.debug(
        "/api/events kind=%r -> %d sources, type=%s, mode=%s",
        kind,
        len(sources),
        type_filter.value,
        mode.value,
    )

    try:
        feeds = await app[LOADER_KEY].load(sources)
    except FeedLoadError:
        logger.exception("Failed to load calendar feeds for kind=%r", kind)
        return web.json_response({"error": "Failed to load calendar data"}, status=500)

    occurrences = app[AGGREGATOR_KEY].aggregate(
        feeds,
        app[TIME_PROVIDER_KEY](),
        window_length=config.window_length,
        mode=mode,
        type_filter=type_filter,
    )
    return web.json_response(occurrences_to_api_models(occurrences))


async def health_handler(request: web.Request) -> web.Response:
    """Liveness probe."""
    return web.json_response(
        {"status": "ok", "server_time_iso": serialize_iso(request.app[TIME_PROVIDER_KEY]())}
    )


def create_app(
    config: Config,
    loader: Optional[FeedLoader] = None,
    time_provider: Optional[TimeProvider] = None,
) -> web.Application:
    """Build the aiohttp application.

    Args:
        config: Application configuration
        loader: Feed loader; defaults to one using the configured timezone
        time_provider: Source of the reference instant; defaults to UTC now
    """
    app = web.Application(middlewares=[correlation_id_middleware, cors_middleware])
    app[CONFIG_KEY] = config
    app[LOADER_KEY] = loader or FeedLoader(default_timezone=config.timezone)
    app[AGGREGATOR_KEY] = Aggregator(config.classifier_rules, config.next_skip_limit)
    app[TIME_PROVIDER_KEY] = time_provider or now_utc

    app.router.add_get("/api/events", events_handler)
    app.router.add_get("/api/health", health_handler)
    return app


def run_server(config: Config, port: Optional[int] = None, **kwargs: Any) -> None:
    """Run the HTTP server until interrupted."""
    app = create_app(config)
    bind_port = port or config.server_port
    logger.info("Serving clubcal on %s:%d", config.server_bind, bind_port)
    web.run_app(app, host=config.server_bind, port=bind_port, print=None, **kwargs)
