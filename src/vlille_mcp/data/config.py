from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class GBFSConfig(BaseSettings):
    """Configuration for GBFS feed access and snapshot caching.

    Automatically loads from environment variables and .env file.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    discovery_url: str = Field(
        default="https://media.ilevia.fr/opendata/gbfs.json", alias="VLILLE_GBFS_URL"
    )
    feed_language: str = Field(default="en", alias="VLILLE_FEED_LANGUAGE")
    cache_ttl_seconds: float = Field(default=60, alias="VLILLE_CACHE_TTL")

    # per-request timeout, and the budget for a whole discovery + feeds refresh
    http_timeout_seconds: float = Field(default=10.0, alias="VLILLE_HTTP_TIMEOUT")
    refresh_timeout_seconds: float = Field(default=30.0, alias="VLILLE_REFRESH_TIMEOUT")


@lru_cache
def get_gbfs_config() -> GBFSConfig:
    """Get GBFS configuration (cached singleton).

    Returns:
        GBFSConfig with values from .env file or environment variables.
    """
    return GBFSConfig()
