"""Station snapshot service: fetch, join and cache the GBFS station feeds.

The joined snapshot is refreshed at most once per TTL window. Concurrent
callers share a single in-flight refresh, and a failed refresh never replaces
a previously cached snapshot: callers get the stale snapshot instead.
"""

import asyncio
import logging
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime

from vlille_mcp.data.cache import FeedCache
from vlille_mcp.data.config import GBFSConfig, get_gbfs_config
from vlille_mcp.data.errors import FeedError, FeedUnavailable, FetchError
from vlille_mcp.data.gbfs_client import GBFSClient
from vlille_mcp.models.gbfs import StationInformation, StationStatus
from vlille_mcp.models.responses import Snapshot, StationView

logger = logging.getLogger(__name__)

STATION_INFORMATION_FEED = "station_information"
STATION_STATUS_FEED = "station_status"

# Module-level cache (lazy-initialized)
_snapshot_cache: FeedCache[Snapshot] | None = None
_config: GBFSConfig | None = None


def _get_config() -> GBFSConfig:
    """Get or create the GBFS config singleton."""
    global _config
    if _config is None:
        _config = get_gbfs_config()
    return _config


def _get_snapshot_cache() -> FeedCache[Snapshot]:
    """Get or create the snapshot cache singleton."""
    global _snapshot_cache
    if _snapshot_cache is None:
        config = _get_config()
        _snapshot_cache = FeedCache[Snapshot](ttl=config.cache_ttl_seconds)
    return _snapshot_cache


def merge_stations(
    information: Iterable[StationInformation],
    statuses: Iterable[StationStatus],
    language: str = "en",
) -> list[StationView]:
    """Left-join station statuses with station information on station_id.

    Every status produces exactly one view, in status order. Statuses without
    matching information keep only id and counts. Duplicate ids keep the last
    occurrence, at the position of the first.

    Args:
        information: station_information records.
        statuses: station_status records.
        language: Language used to resolve localized station names.

    Returns:
        Merged station views.
    """
    info_by_id = {info.station_id: info for info in information}

    merged: dict[str, StationView] = {}
    for status in statuses:
        info = info_by_id.get(status.station_id)
        merged[status.station_id] = StationView(
            id=status.station_id,
            name=info.display_name(language) if info else None,
            lat=info.lat if info else None,
            lon=info.lon if info else None,
            bikes=status.num_bikes_available,
            docks=status.num_docks_available,
            address=info.address if info else None,
        )
    return list(merged.values())


def filter_stations(stations: Sequence[StationView], min_bikes: int) -> list[StationView]:
    """Select stations with at least `min_bikes` bikes, keeping order.

    Stations with no recorded bike count count as 0.
    """
    return [station for station in stations if (station.bikes or 0) >= min_bikes]


async def _fetch_snapshot(config: GBFSConfig, previous: Snapshot | None) -> Snapshot:
    """Fetch discovery and both station feeds, then join them."""
    async with GBFSClient(config) as client:
        discovery = await client.fetch_discovery()
        information_url = discovery.feed_url(STATION_INFORMATION_FEED, config.feed_language)
        status_url = discovery.feed_url(STATION_STATUS_FEED, config.feed_language)

        try:
            async with asyncio.TaskGroup() as tg:
                information_task = tg.create_task(
                    client.fetch_station_information(information_url)
                )
                status_task = tg.create_task(client.fetch_station_status(status_url))
        except* FeedError as group:
            # the sibling fetch is cancelled by now; surface the first failure
            raise group.exceptions[0] from None

    information = information_task.result()
    statuses = status_task.result()

    stations = merge_stations(information, statuses, config.feed_language)

    captured_at = datetime.now(UTC)
    if previous is not None and previous.captured_at > captured_at:
        # wall clock stepped back; snapshots never go back in time
        captured_at = previous.captured_at

    logger.info(
        f"Refreshed station snapshot: {len(stations)} stations "
        f"({len(information)} with information)"
    )
    return Snapshot(stations=tuple(stations), captured_at=captured_at)


async def _refresh_snapshot(cache: FeedCache[Snapshot], config: GBFSConfig) -> Snapshot:
    """Run one refresh within the configured wall-clock budget."""
    try:
        return await asyncio.wait_for(
            _fetch_snapshot(config, cache.peek()),
            timeout=config.refresh_timeout_seconds,
        )
    except TimeoutError as e:
        raise FetchError(
            f"Refresh exceeded {config.refresh_timeout_seconds}s budget"
        ) from e


async def get_snapshot() -> Snapshot:
    """Get the current station snapshot, refreshing it if the TTL expired.

    Returns:
        The cached snapshot while it is fresh; otherwise a newly fetched one,
        or the previous snapshot if the refresh fails.

    Raises:
        FeedUnavailable: If the refresh fails and nothing was ever cached.
    """
    config = _get_config()
    cache = _get_snapshot_cache()

    try:
        return await cache.get_or_refresh(lambda: _refresh_snapshot(cache, config))
    except FeedError as e:
        stale = cache.peek()
        if stale is None:
            raise FeedUnavailable(f"Station feed unavailable: {e}") from e
        logger.warning(
            f"Station refresh failed, serving snapshot from {stale.captured_at.isoformat()}: {e}"
        )
        return stale


async def query(min_bikes: int = 0) -> list[StationView]:
    """Get stations having at least `min_bikes` bikes available.

    Args:
        min_bikes: Minimum number of available bikes. Negative values count as 0.

    Returns:
        Matching stations in feed order.

    Raises:
        FeedUnavailable: If no snapshot can be served.
    """
    min_bikes = max(0, min_bikes)
    snapshot = await get_snapshot()
    stations = filter_stations(snapshot.stations, min_bikes)
    logger.debug(f"{len(stations)}/{len(snapshot.stations)} stations with >= {min_bikes} bikes")
    return stations


def get_snapshot_age() -> float | None:
    """Seconds since the cached snapshot was fetched, None if nothing is cached."""
    if _snapshot_cache is None:
        return None
    return _snapshot_cache.age()


def get_cached_snapshot() -> Snapshot | None:
    """Get the cached snapshot without refreshing, fresh or stale."""
    if _snapshot_cache is None:
        return None
    return _snapshot_cache.peek()


def clear_cache() -> None:
    """Clear the cached snapshot.

    Useful for testing or forcing fresh data on next request.
    """
    if _snapshot_cache:
        _snapshot_cache.clear()


def reset_service() -> None:
    """Reset the service state completely.

    Clears the cache and resets config. Useful for testing.
    """
    global _snapshot_cache, _config
    _snapshot_cache = None
    _config = None
    # Clear the lru_cache on get_gbfs_config so it re-reads .env/environment
    # (hasattr check handles case where function is mocked in tests)
    if hasattr(get_gbfs_config, "cache_clear"):
        get_gbfs_config.cache_clear()
