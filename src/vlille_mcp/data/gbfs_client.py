import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from vlille_mcp.data.config import GBFSConfig
from vlille_mcp.data.errors import DiscoveryError, FetchError
from vlille_mcp.models.gbfs import DiscoveryDocument, StationInformation, StationStatus

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class GBFSClient:
    """Async HTTP client for fetching GBFS discovery and station feeds.

    Usage:
        async with GBFSClient(config) as client:
            discovery = await client.fetch_discovery()
            url = discovery.feed_url("station_status", config.feed_language)
            statuses = await client.fetch_station_status(url)
    """

    def __init__(self, config: GBFSConfig):
        """Initialize the client.

        Args:
            config: Configuration with discovery URL and timeouts.
        """
        self._config = config
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "GBFSClient":
        """Enter async context - create HTTP client."""
        self._client = httpx.AsyncClient(
            timeout=self._config.http_timeout_seconds,
            follow_redirects=True,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context - close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def fetch_json(self, url: str) -> dict[str, Any]:
        """Fetch a URL and decode its JSON object body.

        Raises:
            RuntimeError: If client not initialized.
            FetchError: If the request fails, times out, returns a non-2xx
                status, or the body is not a JSON object.
        """
        if not self._client:
            raise RuntimeError("Client not initialized - use 'async with'")

        try:
            response = await self._client.get(url)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise FetchError(f"Request to {url} failed: {e}") from e
        except ValueError as e:
            raise FetchError(f"Invalid JSON from {url}: {e}") from e

        if not isinstance(payload, dict):
            raise FetchError(f"Expected a JSON object from {url}, got {type(payload).__name__}")
        return payload

    async def fetch_discovery(self) -> DiscoveryDocument:
        """Fetch and parse the gbfs.json discovery document.

        Raises:
            RuntimeError: If client not initialized.
            DiscoveryError: If the document can't be fetched or parsed.
        """
        url = self._config.discovery_url
        try:
            payload = await self.fetch_json(url)
        except FetchError as e:
            raise DiscoveryError(str(e)) from e

        try:
            return DiscoveryDocument.from_payload(payload)
        except ValueError as e:
            raise DiscoveryError(f"Malformed discovery document at {url}: {e}") from e

    async def fetch_station_information(self, url: str) -> list[StationInformation]:
        """Fetch and parse the station_information feed.

        Raises:
            FetchError: If the feed can't be fetched or has no station list.
        """
        payload = await self.fetch_json(url)
        return _parse_stations(payload, StationInformation, url)

    async def fetch_station_status(self, url: str) -> list[StationStatus]:
        """Fetch and parse the station_status feed.

        Raises:
            FetchError: If the feed can't be fetched or has no station list.
        """
        payload = await self.fetch_json(url)
        return _parse_stations(payload, StationStatus, url)


def _parse_stations(payload: dict[str, Any], model: type[M], url: str) -> list[M]:
    """Validate data.stations record by record, skipping malformed ones."""
    data = payload.get("data")
    stations = data.get("stations") if isinstance(data, dict) else None
    if not isinstance(stations, list):
        raise FetchError(f"Feed at {url} has no 'data.stations' list")

    parsed: list[M] = []
    for index, raw in enumerate(stations):
        try:
            parsed.append(model.model_validate(raw))
        except ValidationError as e:
            logger.warning(
                f"Skipping malformed {model.__name__} record #{index} from {url}: "
                f"{e.error_count()} validation error(s)"
            )
    return parsed
