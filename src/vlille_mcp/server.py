import argparse
import asyncio
import logging
import sys
from datetime import UTC, datetime

from pydantic import BaseModel

from vlille_mcp.app import mcp
from vlille_mcp.data.errors import FeedUnavailable
from vlille_mcp.models.responses import GetStationsResponse
from vlille_mcp.services import station_service
from vlille_mcp.tools import station_tools  # noqa: F401  (registers tools)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: str
    snapshot_captured_at: str | None = None
    snapshot_age_seconds: float | None = None


@mcp.tool()
def health() -> HealthResponse:
    """Check if the V'Lille MCP server is running and healthy.

    Returns the server status, version, current timestamp, and when the
    cached station data was last fetched (null before the first fetch).
    """
    from vlille_mcp import __version__

    snapshot = station_service.get_cached_snapshot()
    return HealthResponse(
        status="ok",
        version=__version__,
        timestamp=datetime.now(UTC).isoformat(),
        snapshot_captured_at=snapshot.captured_at.isoformat() if snapshot else None,
        snapshot_age_seconds=station_service.get_snapshot_age(),
    )


async def run_stations(min_bikes: int) -> int:
    """Query stations once and print them as JSON."""
    try:
        stations = await station_service.query(min_bikes)
    except FeedUnavailable as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    snapshot = station_service.get_cached_snapshot()
    response = GetStationsResponse(
        stations=stations,
        count=len(stations),
        min_bikes=max(0, min_bikes),
        captured_at=snapshot.captured_at.isoformat(),
    )
    print(response.model_dump_json(indent=2))
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="vlille-mcp",
        description="V'Lille Stations MCP Server",
    )
    subparsers = parser.add_subparsers(dest="command")

    # stations command
    stations_parser = subparsers.add_parser(
        "stations",
        help="Fetch stations once and print them as JSON",
    )
    stations_parser.add_argument(
        "--min",
        type=int,
        default=0,
        dest="min_bikes",
        help="Only show stations with at least this many bikes (default: 0)",
    )
    stations_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    if args.command == "stations":
        # Configure logging (stderr, so stdout stays valid JSON)
        log_level = logging.DEBUG if args.verbose else logging.INFO
        logging.basicConfig(
            level=log_level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            stream=sys.stderr,
        )

        sys.exit(asyncio.run(run_stations(args.min_bikes)))
    else:
        # Default: run MCP server
        mcp.run()


if __name__ == "__main__":
    main()
