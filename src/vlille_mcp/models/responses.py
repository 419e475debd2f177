from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class StationView(BaseModel):
    """A station status merged with its static description.

    One exists per station_status record; descriptive fields stay None when
    station_information has no matching station.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str | None = None
    lat: float | None = None
    lon: float | None = None
    bikes: int | None = Field(default=None, description="Bikes available for rental")
    docks: int | None = Field(default=None, description="Empty docks available for returns")
    address: str | None = None


class Snapshot(BaseModel):
    """The joined station list, as captured at one refresh."""

    model_config = ConfigDict(frozen=True)

    stations: tuple[StationView, ...]
    captured_at: datetime


class GetStationsResponse(BaseModel):
    stations: list[StationView]
    count: int = Field(description="Number of stations returned")
    min_bikes: int = Field(description="Minimum bike count applied (after clamping)")
    captured_at: str = Field(description="When the underlying data was fetched (ISO 8601, UTC)")
