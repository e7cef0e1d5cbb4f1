"""Concurrent loading of already-downloaded feed files.

Every configured source is read and parsed independently; all of them must
finish before aggregation starts, and a failure in any one surfaces as a
single ``FeedLoadError`` naming that feed.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from .datetime_utils import DEFAULT_TIMEZONE
from .exceptions import FeedError, FeedLoadError
from .ics_reader import ICSFeedReader
from .models import FeedEvents

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeedSource:
    """One feed file and the label its occurrences carry."""

    name: str
    path: Path


class FeedLoader:
    """Reads and parses feed files with bounded concurrency."""

    def __init__(self, default_timezone: str = DEFAULT_TIMEZONE, concurrency: int = 3):
        """Initialize loader.

        Args:
            default_timezone: Zone for date-only and floating ICS values
            concurrency: Maximum number of feeds read at the same time
        """
        self.reader = ICSFeedReader(default_timezone)
        self.concurrency = max(1, concurrency)

    def load_source(self, source: FeedSource) -> FeedEvents:
        """Read and parse one source synchronously.

        Raises:
            FeedLoadError: If the file cannot be read or parsed
        """
        try:
            content = source.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise FeedLoadError(
                f"Cannot read feed {source.name!r} from {source.path}: {e}", feed_name=source.name
            ) from e

        try:
            return self.reader.read(content, source.name)
        except FeedError as e:
            raise FeedLoadError(
                f"Cannot parse feed {source.name!r}: {e}", feed_name=source.name
            ) from e

    async def load(self, sources: Sequence[FeedSource]) -> list[FeedEvents]:
        """Load every source concurrently, preserving source order.

        Raises:
            FeedLoadError: For the first failing source (all are attempted)
        """
        if not sources:
            logger.warning("No feed sources to load")
            return []

        semaphore = asyncio.Semaphore(self.concurrency)

        async def _load_one(source: FeedSource) -> FeedEvents:
            async with semaphore:
                return await asyncio.to_thread(self.load_source, source)

        results = await asyncio.gather(
            *(_load_one(source) for source in sources), return_exceptions=True
        )

        feeds: list[FeedEvents] = []
        failures: list[FeedLoadError] = []
        for source, result in zip(sources, results):
            if isinstance(result, FeedLoadError):
                logger.error("Feed %s failed: %s", source.name, result)
                failures.append(result)
            elif isinstance(result, BaseException):
                raise result
            else:
                logger.debug("Feed %s: %d definitions", source.name, len(result.definitions))
                feeds.append(result)

        if failures:
            raise failures[0]
        return feeds
