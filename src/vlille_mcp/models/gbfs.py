"""Pydantic models for GBFS payloads.

These models cover the discovery document and the two station feeds we join.
Full GBFS has many more fields, but we only model what we need.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from vlille_mcp.data.errors import FeedNotFound


class FeedEntry(BaseModel):
    """A named feed advertised by the discovery document."""

    model_config = ConfigDict(extra="ignore")

    name: str
    url: str


class LanguageFeeds(BaseModel):
    """Feeds published for one language (GBFS 1.x/2.x)."""

    model_config = ConfigDict(extra="ignore")

    feeds: list[FeedEntry]


class DiscoveryDocument(BaseModel):
    """The gbfs.json root document.

    GBFS 1.x/2.x nest feeds by language (data.<lang>.feeds) and land in
    `languages`; GBFS 3.x lists them directly (data.feeds) and land in `feeds`.
    """

    model_config = ConfigDict(extra="ignore")

    languages: dict[str, LanguageFeeds] = {}
    feeds: list[FeedEntry] | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> "DiscoveryDocument":
        """Build a document from decoded gbfs.json, validating its shape.

        Raises:
            ValueError: If the payload doesn't look like gbfs.json
                (pydantic.ValidationError is a ValueError).
        """
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict):
            raise ValueError("discovery document has no 'data' object")

        if "feeds" in data:
            return cls.model_validate({"feeds": data["feeds"]})
        return cls.model_validate({"languages": data})

    def feed_url(self, name: str, language: str) -> str:
        """Get the URL of the feed with exactly this name.

        Args:
            name: Feed name, e.g. "station_status".
            language: Language to look in. Ignored for GBFS 3.x documents.

        Raises:
            FeedNotFound: If the language or the feed is missing.
        """
        if self.feeds is not None:
            feeds = self.feeds
        elif language in self.languages:
            feeds = self.languages[language].feeds
        else:
            raise FeedNotFound(name, language)

        for feed in feeds:
            if feed.name == name:
                return feed.url
        raise FeedNotFound(name, language)


class LocalizedString(BaseModel):
    """GBFS 3.x localized text."""

    model_config = ConfigDict(extra="ignore")

    text: str
    language: str | None = None


class StationInformation(BaseModel):
    """Static description of a station (station_information feed)."""

    model_config = ConfigDict(extra="ignore")

    station_id: str
    name: str | list[LocalizedString]
    lat: float
    lon: float
    address: str | None = None

    @field_validator("station_id", mode="before")
    @classmethod
    def coerce_station_id(cls, value: Any) -> Any:
        # some operators publish numeric ids
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    def display_name(self, language: str) -> str | None:
        """Resolve the station name, picking the language for GBFS 3.x names."""
        if isinstance(self.name, str):
            return self.name
        for entry in self.name:
            if entry.language == language:
                return entry.text
        return self.name[0].text if self.name else None


class StationStatus(BaseModel):
    """Current availability of a station (station_status feed)."""

    model_config = ConfigDict(extra="ignore")

    station_id: str
    num_bikes_available: int | None = Field(default=None, ge=0)
    num_docks_available: int | None = Field(default=None, ge=0)

    @field_validator("station_id", mode="before")
    @classmethod
    def coerce_station_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value
