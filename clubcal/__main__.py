"""Command-line entry for clubcal.

Without ``--serve`` the configured feeds are loaded, aggregated once and
printed as JSON. With ``--serve`` the HTTP API is started instead.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from datetime import UTC, datetime
from typing import NoReturn, Optional

from . import _init_logging
from .aggregator import Aggregator
from .config_loader import Config, load_config
from .exceptions import ClubCalError
from .feed_loader import FeedLoader
from .logging_config import configure_logging
from .serialization import occurrences_to_api_models
from .server import parse_mode, parse_type_filter, run_server


def _create_parser() -> argparse.ArgumentParser:
    """Create argument parser for the clubcal CLI.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="clubcal",
        description="clubcal - sports club calendar feed aggregation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m clubcal --kind salibandy               # Print upcoming events as JSON
  python -m clubcal --type matches --mode next     # Next match of every series
  python -m clubcal --serve --port 3000            # Start the HTTP API on port 3000
        """,
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="Config file (default: $CLUBCAL_CONFIG or ./clubcal.yaml)",
    )
    parser.add_argument("--kind", help="Feed set to read (default: configured default_kind)")
    parser.add_argument("--type", dest="type_filter", help="all | matches | others (default: all)")
    parser.add_argument("--mode", help="windowed | next (default: windowed)")
    parser.add_argument("--serve", action="store_true", help="Run the HTTP API instead of printing")
    parser.add_argument(
        "--port", type=int, metavar="PORT", help="Port for --serve (default: from config)"
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


async def _print_once(config: Config, args: argparse.Namespace) -> None:
    loader = FeedLoader(default_timezone=config.timezone)
    feeds = await loader.load(config.sources_for(args.kind))
    occurrences = Aggregator(config.classifier_rules, config.next_skip_limit).aggregate(
        feeds,
        datetime.now(UTC),
        window_length=config.window_length,
        mode=parse_mode(args.mode),
        type_filter=parse_type_filter(args.type_filter),
    )
    json.dump(occurrences_to_api_models(occurrences), sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")


def main(argv: Optional[list[str]] = None) -> NoReturn:
    """Run the clubcal CLI."""
    args = _create_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except ClubCalError as exc:
        print(f"clubcal: invalid configuration: {exc}", file=sys.stderr)
        sys.exit(2)

    _init_logging(config.log_level)
    configure_logging(
        debug_mode=args.debug or config.log_level == "DEBUG", default_level=config.log_level
    )

    if args.serve:
        run_server(config, port=args.port)
        sys.exit(0)

    try:
        asyncio.run(_print_once(config, args))
    except ClubCalError as exc:
        print(f"clubcal: {exc}", file=sys.stderr)
        sys.exit(1)
    sys.exit(0)


if __name__ == "__main__":
    main()
