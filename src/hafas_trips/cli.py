"""CLI for decoding captured trip responses and running live trip queries."""

import asyncio
import json
import logging
import sys
from dataclasses import asdict
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

import aiohttp

from hafas_trips.adapters.config import AppConfig
from hafas_trips.adapters.hafas_legacy import HafasTripRepository, TripResponseDecoder
from hafas_trips.application.services import TripPagingService
from hafas_trips.domain.exceptions import TripQueryError
from hafas_trips.domain.models import (
    IndividualLeg,
    Location,
    PublicLeg,
    QueryTripsResult,
    Trip,
)

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, frozenset | set):
        return sorted(_json_default(v) for v in value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def result_to_dict(result: QueryTripsResult, trips: list[Trip] | None = None) -> dict[str, Any]:
    """Plain dict of a result; ``trips`` replaces the result's own trips (merged pages)."""
    data = asdict(result)
    if trips is not None:
        data["trips"] = [asdict(trip) for trip in trips]
    return data


def format_time(value: datetime | None) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else "--:--"


def format_location(location: Location | None) -> str:
    if location is None:
        return "?"
    return location.display_name()


def format_leg(leg: PublicLeg | IndividualLeg) -> str:
    if isinstance(leg, IndividualLeg):
        return (
            f"  {format_time(leg.departure_time)} {format_location(leg.departure_location)}"
            f" -> {format_time(leg.arrival_time)} {format_location(leg.arrival_location)}"
            f" [{leg.type.value}]"
        )

    line = f"{leg.line.label or '?'} ({leg.line.product.value})"
    direction = f" to {format_location(leg.direction)}" if leg.direction else ""
    parts = [
        f"  {format_time(leg.departure_time)} {format_location(leg.departure_location)}"
        f" -> {format_time(leg.arrival_time)} {format_location(leg.arrival_location)}"
        f" [{line}{direction}]"
    ]
    delay = leg.departure.departure_delay_seconds
    if delay:
        parts.append(f"    departure delayed by {delay // 60} min")
    if leg.departure.departure_cancelled or leg.arrival.arrival_cancelled:
        parts.append("    cancelled")
    if leg.intermediate_stops:
        parts.append(f"    {len(leg.intermediate_stops)} intermediate stop(s)")
    if leg.message:
        parts.append(f"    ! {leg.message}")
    return "\n".join(parts)


def print_trips(result: QueryTripsResult, trips: list[Trip]) -> None:
    """Print a plain summary of a result."""
    if not result.is_ok:
        print(f"No trips: {result.status.value}")
        return

    print(f"{format_location(result.origin)} -> {format_location(result.destination)}")
    print(f"Found {len(trips)} trip(s):")
    for i, trip in enumerate(trips, 1):
        print(
            f"\n[{i}] {format_time(trip.first_departure_time)} -> "
            f"{format_time(trip.last_arrival_time)}, {trip.num_changes} change(s)"
            + (f" ({trip.id})" if trip.id else "")
        )
        for leg in trip.legs:
            print(format_leg(leg))

    if result.context is not None:
        more = "yes" if result.context.can_query_more else "no"
        print(f"\nMore trips available: {more}")


def decode_file(path: str, continuation: bool, config: AppConfig) -> QueryTripsResult:
    """Decode a captured response body (GZIP or raw) from disk."""
    body = Path(path).read_bytes()
    decoder = TripResponseDecoder(config.build_profile())
    return decoder.decode_body(
        body,
        request_url=f"file://{Path(path).resolve()}",
        size_hint=config.default_buffer_size,
        continuation=continuation,
    )


async def run_query(
    url: str, config: AppConfig, later: int = 0, earlier: int = 0
) -> tuple[QueryTripsResult, list[Trip]]:
    """Run a prepared query URL and page through further results."""
    async with aiohttp.ClientSession() as session:
        service = TripPagingService(HafasTripRepository(config, session=session))
        result = await service.first_page(url)

        for _ in range(earlier):
            if service.context is None or not service.context.can_query_more:
                break
            await service.earlier()
        for _ in range(later):
            if service.context is None or not service.context.can_query_more:
                break
            await service.later()

        return result, service.trips


def _emit(result: QueryTripsResult, trips: list[Trip], as_json: bool) -> None:
    if as_json:
        print(
            json.dumps(
                result_to_dict(result, trips), indent=2, ensure_ascii=False, default=_json_default
            )
        )
    else:
        print_trips(result, trips)


async def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Legacy HAFAS binary trip query tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Decode a captured response body
  hafas-trips decode response.bin

  # Decode a captured continuation page as JSON
  hafas-trips decode later.bin --continuation --json

  # Run a prepared query and fetch two later pages
  hafas-trips query "https://reiseauskunft.bahn.de/bin/query.exe/dn?..." --later 2
        """,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # Decode command
    decode_parser = subparsers.add_parser("decode", help="Decode a captured response file")
    decode_parser.add_argument("file", help="Path to the response body (GZIP or raw)")
    decode_parser.add_argument(
        "--continuation",
        action="store_true",
        help="Treat the file as the answer to an earlier/later request",
    )
    decode_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # Query command
    query_parser = subparsers.add_parser("query", help="Run a prepared trip query URL")
    query_parser.add_argument("url", help="Complete query URL")
    query_parser.add_argument("--json", action="store_true", help="Output as JSON")
    query_parser.add_argument(
        "--later", type=int, default=0, help="Number of later pages to fetch"
    )
    query_parser.add_argument(
        "--earlier", type=int, default=0, help="Number of earlier pages to fetch"
    )

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    configure_logging(args.verbose)

    try:
        config = AppConfig()

        if args.command == "decode":
            result = decode_file(args.file, args.continuation, config)
            _emit(result, result.trips, args.json)

        elif args.command == "query":
            result, trips = await run_query(args.url, config, args.later, args.earlier)
            _emit(result, trips, args.json)

    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(1)
    except (TripQueryError, aiohttp.ClientError, OSError, ValueError) as e:
        logger.error(f"{type(e).__name__}: {e}")
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def cli_main() -> None:
    """Synchronous entry point for the CLI command."""
    asyncio.run(main())


if __name__ == "__main__":
    cli_main()
