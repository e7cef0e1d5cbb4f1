"""clubcal.config_loader

Lightweight config loader for clubcal.

- Prefers YAML (PyYAML), falls back to JSON.
- Exposes a typed dataclass `Config` and a `load_config()` helper that accepts
  an optional path override (or the CLUBCAL_CONFIG environment variable).
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dateutil.relativedelta import relativedelta

from .datetime_utils import DEFAULT_TIMEZONE
from .exceptions import ConfigError
from .feed_loader import FeedSource
from .occurrence_resolver import DEFAULT_SKIP_LIMIT
from .title_classifier import (
    DEFAULT_CLUB_NAME,
    DEFAULT_PRACTICE_KEYWORDS,
    DEFAULT_SOCIAL_KEYWORDS,
    DEFAULT_TOURNAMENT_KEYWORDS,
    ClassifierRules,
)

logger = logging.getLogger(__name__)

ALL_KINDS = "all"


@dataclass
class Config:
    """Typed configuration for clubcal.

    Fields:
        club_name: anchor token for classification and team parsing
        timezone: zone for date-only and floating ICS values
        window_months / window_days: windowed-mode length after now
        next_skip_limit: excepted instants skipped in next-only mode
        feeds: feed sets by kind, each a list of FeedSource
        default_kind: kind used when a request names an unknown one
        *_keywords: classifier keyword families
        server_bind / server_port: HTTP server address
        log_level: logging level name
    """

    club_name: str = DEFAULT_CLUB_NAME
    timezone: str = DEFAULT_TIMEZONE
    window_months: int = 1
    window_days: int = 0
    next_skip_limit: int = DEFAULT_SKIP_LIMIT
    feeds: dict[str, list[FeedSource]] = field(default_factory=dict)
    default_kind: str | None = None
    tournament_keywords: tuple[str, ...] = DEFAULT_TOURNAMENT_KEYWORDS
    practice_keywords: tuple[str, ...] = DEFAULT_PRACTICE_KEYWORDS
    social_keywords: tuple[str, ...] = DEFAULT_SOCIAL_KEYWORDS
    server_bind: str = "0.0.0.0"  # nosec: B104
    server_port: int = 8080
    log_level: str = "INFO"

    @property
    def window_length(self) -> relativedelta:
        """Windowed-mode length; falls back to one month when both parts are zero."""
        if self.window_months <= 0 and self.window_days <= 0:
            return relativedelta(months=1)
        return relativedelta(months=self.window_months, days=self.window_days)

    @property
    def classifier_rules(self) -> ClassifierRules:
        return ClassifierRules(
            anchor=self.club_name,
            tournament_keywords=self.tournament_keywords,
            practice_keywords=self.practice_keywords,
            social_keywords=self.social_keywords,
        )

    def resolve_kind(self, kind: str | None) -> str | None:
        """Map a requested kind to a configured one (``all`` passes through)."""
        if kind:
            normalized = kind.strip().lower()
            if normalized == ALL_KINDS or normalized in self.feeds:
                return normalized
        if self.default_kind in self.feeds:
            return self.default_kind
        return next(iter(self.feeds), None)

    def sources_for(self, kind: str | None) -> list[FeedSource]:
        """Return the feed sources of ``kind`` after fallback resolution."""
        resolved = self.resolve_kind(kind)
        if resolved is None:
            return []
        if resolved == ALL_KINDS:
            return [source for sources in self.feeds.values() for source in sources]
        return list(self.feeds[resolved])

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None, base_dir: Path | None = None) -> Config:
        """Create Config from a plain mapping, applying defaults and validation.

        Numeric-like values are coerced to int with a warning when that fails,
        keyword lists are normalized to tuples of strings and feed paths are
        resolved relative to ``base_dir``.
        """
        if data is None:
            data = {}

        def _coerce_int(key: str, default: int) -> int:
            raw = data.get(key, default)
            try:
                return int(raw)
            except (TypeError, ValueError):
                logger.warning("Config %s=%r is not an int; using default %d", key, raw, default)
                return default

        def _keywords(key: str, default: tuple[str, ...]) -> tuple[str, ...]:
            raw = data.get(key)
            if raw is None:
                return default
            if isinstance(raw, str):
                return (raw,)
            if not isinstance(raw, (list, tuple)):
                logger.warning("Config %s is not a list; using defaults", key)
                return default
            return tuple(str(k) for k in raw)

        skip_limit = _coerce_int("next_skip_limit", DEFAULT_SKIP_LIMIT)
        if skip_limit < 0:
            logger.warning("next_skip_limit %d below minimum; coercing to 0", skip_limit)
            skip_limit = 0

        club_name = str(data.get("club_name") or DEFAULT_CLUB_NAME).strip()
        feeds = _parse_feeds(data.get("feeds"), base_dir)

        default_kind = data.get("default_kind")
        if default_kind is not None:
            default_kind = str(default_kind).strip().lower()
            if default_kind not in feeds:
                logger.warning("default_kind %r is not a configured feed set", default_kind)

        log_level = data.get("log_level", "INFO")
        log_level = str(log_level).upper() if log_level is not None else "INFO"

        return cls(
            club_name=club_name or DEFAULT_CLUB_NAME,
            timezone=str(data.get("timezone") or DEFAULT_TIMEZONE),
            window_months=_coerce_int("window_months", 1),
            window_days=_coerce_int("window_days", 0),
            next_skip_limit=skip_limit,
            feeds=feeds,
            default_kind=default_kind,
            tournament_keywords=_keywords("tournament_keywords", DEFAULT_TOURNAMENT_KEYWORDS),
            practice_keywords=_keywords("practice_keywords", DEFAULT_PRACTICE_KEYWORDS),
            social_keywords=_keywords("social_keywords", DEFAULT_SOCIAL_KEYWORDS),
            server_bind=str(data.get("server_bind") or "0.0.0.0"),  # nosec: B104
            server_port=_coerce_int("server_port", 8080),
            log_level=log_level,
        )


def _parse_feeds(raw: Any, base_dir: Path | None) -> dict[str, list[FeedSource]]:
    """Normalize the ``feeds`` mapping.

    Each kind maps to a list whose entries are either a path string or a
    mapping with ``path`` and optional ``name`` (defaults to the kind).
    """
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError("Config `feeds` must be a mapping of kind -> feed list")

    feeds: dict[str, list[FeedSource]] = {}
    for kind, entries in raw.items():
        kind_key = str(kind).strip().lower()
        if kind_key == ALL_KINDS:
            raise ConfigError(f"Feed set name {ALL_KINDS!r} is reserved")
        if isinstance(entries, (str, dict)):
            entries = [entries]
        if not isinstance(entries, list):
            raise ConfigError(f"Feed set {kind!r} must be a list")

        sources = []
        for entry in entries:
            if isinstance(entry, str):
                name, path_raw = kind_key, entry
            elif isinstance(entry, dict) and entry.get("path"):
                name, path_raw = str(entry.get("name") or kind_key), str(entry["path"])
            else:
                raise ConfigError(f"Feed entry {entry!r} in {kind!r} has no path")
            path = Path(path_raw).expanduser()
            if base_dir is not None and not path.is_absolute():
                path = base_dir / path
            sources.append(FeedSource(name=name, path=path))
        feeds[kind_key] = sources
    return feeds


def _load_yaml_or_json(path: Path) -> Any:
    """Load a mapping from a YAML or JSON file.

    YAML is a superset of JSON, so PyYAML handles both; the JSON parser is only
    consulted to give a clearer error when YAML parsing fails on a .json file.
    """
    text = path.read_text(encoding="utf-8")
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        if path.suffix.lower() == ".json":
            try:
                return json.loads(text)
            except json.JSONDecodeError as json_exc:
                raise ConfigError(f"Unable to parse config {path}: {json_exc}") from json_exc
        raise ConfigError(f"Unable to parse config {path}: {exc}") from exc


def load_config(path: str | None = None) -> Config:
    """Load configuration from a YAML/JSON file and return a Config instance.

    Args:
        path: Optional path to the config file. Defaults to $CLUBCAL_CONFIG,
              then ./clubcal.yaml.

    Behavior:
    - If file is missing: returns Config() with defaults.
    - If file exists but top-level is not a mapping: raises ConfigError.
    """
    path = path or os.environ.get("CLUBCAL_CONFIG")
    p = Path(path) if path else Path.cwd() / "clubcal.yaml"
    logger.debug("Attempting to load config from %s", p)
    if not p.exists():
        logger.info("Config file %s not found; using defaults", p)
        return Config()

    raw = _load_yaml_or_json(p)
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        logger.warning("Config file %s parsed but top-level is not a mapping: %r", p, raw)
        raise ConfigError("Config file must contain a mapping at top level")
    cfg = Config.from_dict(raw, base_dir=p.parent)
    logger.info("Loaded configuration from %s", p)
    logger.debug("Configuration values: %s", cfg)
    return cfg
