"""MCP tools for querying bike-share stations."""

from mcp.server.fastmcp.exceptions import ToolError

from vlille_mcp.app import mcp
from vlille_mcp.data.errors import FeedUnavailable
from vlille_mcp.models.responses import GetStationsResponse
from vlille_mcp.services.station_service import filter_stations, get_snapshot


@mcp.tool()
async def get_stations(min_bikes: int = 0) -> GetStationsResponse:
    """Get V'Lille bike-share stations with live bike and dock availability.

    Data comes from the operator's GBFS feed and is refreshed at most once a
    minute, so counts may be up to a minute old.

    Examples:
        get_stations()  # All stations, including empty ones
        get_stations(min_bikes=3)  # Stations with at least 3 bikes to rent

    Args:
        min_bikes: Only return stations with at least this many bikes available
                   (default 0 returns every station; negative values count as 0).

    Returns:
        GetStationsResponse with stations in feed order. Each station has an id,
        bike and dock counts, and name, coordinates and address when known.
    """
    min_bikes = max(0, min_bikes)

    try:
        snapshot = await get_snapshot()
    except FeedUnavailable as e:
        raise ToolError(str(e)) from e

    stations = filter_stations(snapshot.stations, min_bikes)
    return GetStationsResponse(
        stations=stations,
        count=len(stations),
        min_bikes=min_bikes,
        captured_at=snapshot.captured_at.isoformat(),
    )
