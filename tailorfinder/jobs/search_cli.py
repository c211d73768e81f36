"""CLI job that activates the directory screen once and prints the result."""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from tailorfinder.core.config import ConfigError, get_settings
from tailorfinder.core.screen import DirectoryScreen
from tailorfinder.engine.derive import NOT_PROVIDED_MESSAGE
from tailorfinder.engine.distance import format_distance
from tailorfinder.models import DirectoryResult
from tailorfinder.sources.location import FixedLocationProvider, parse_ll

logger = logging.getLogger(__name__)


def run_search(
    *,
    query: str,
    filter_id: Optional[str],
    ll: Optional[str],
    deny_location: bool,
) -> DirectoryResult:
    settings = get_settings()
    snapshot = parse_ll(ll) if ll else None
    # No position given reads as "not shared", not as a failed fix.
    location_provider = FixedLocationProvider(snapshot, granted=snapshot is not None and not deny_location)
    denied_message = NOT_PROVIDED_MESSAGE if snapshot is None and not deny_location else None

    screen = DirectoryScreen.from_settings(settings, location_provider, location_denied_message=denied_message)
    screen.set_query(query)
    if filter_id:
        screen.select_filter(filter_id)

    logger.info("Searching providers query=%r filter=%s ll=%s", query, filter_id, ll)
    return asyncio.run(screen.activate())


def render_lines(result: DirectoryResult) -> List[str]:
    lines = []
    for row in result.rows:
        record = row.record
        parts = [record.name]
        label = format_distance(row.distance_km)
        if label:
            parts.append(label)
        if record.city:
            parts.append(record.city)
        if record.phone:
            parts.append(record.phone)
        lines.append(" | ".join(parts))
    if not result.rows and result.message:
        lines.append(result.message)
    elif result.location_notice:
        lines.append(result.location_notice)
    return lines


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Search the tailor directory")
    parser.add_argument("query", nargs="?", default="", help="Text to match against tailor names")
    parser.add_argument("--filter", dest="filter_id", help="Spatial filter id, e.g. within-5km")
    parser.add_argument(
        "--ll",
        help="Current position as '@lat,lng' (e.g. '@51.5074,-0.1278')",
        default=None,
    )
    parser.add_argument("--deny-location", action="store_true", help="Behave as if location permission was refused")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    args = build_parser().parse_args(argv)

    try:
        result = run_search(
            query=args.query,
            filter_id=args.filter_id,
            ll=args.ll,
            deny_location=args.deny_location,
        )
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        return 2
    except (KeyError, ValueError) as exc:
        logger.error("Invalid arguments: %s", exc)
        return 2
    except Exception as exc:  # pragma: no cover - CLI fallback
        logger.error("Search failed: %s", exc, exc_info=True)
        return 1

    for line in render_lines(result):
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
