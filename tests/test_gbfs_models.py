"""Tests for the GBFS payload models."""

import pytest
from pydantic import ValidationError

from vlille_mcp.data.errors import FeedNotFound
from vlille_mcp.models.gbfs import DiscoveryDocument, StationInformation, StationStatus


def _v2_document() -> DiscoveryDocument:
    return DiscoveryDocument.from_payload(
        {
            "last_updated": 1700000000,
            "ttl": 60,
            "data": {
                "fr": {
                    "feeds": [
                        {"name": "station_information", "url": "https://x/fr/info.json"},
                        {"name": "station_status", "url": "https://x/fr/status.json"},
                    ]
                }
            },
        }
    )


class TestDiscoveryDocument:
    """Tests for discovery document parsing and feed lookup."""

    def test_v2_feed_lookup_by_language(self) -> None:
        doc = _v2_document()

        assert doc.feed_url("station_status", "fr") == "https://x/fr/status.json"

    def test_v2_missing_language(self) -> None:
        doc = _v2_document()

        with pytest.raises(FeedNotFound, match="language 'en'") as exc_info:
            doc.feed_url("station_status", "en")
        assert exc_info.value.feed_name == "station_status"
        assert exc_info.value.language == "en"

    def test_missing_feed_name(self) -> None:
        doc = _v2_document()

        with pytest.raises(FeedNotFound, match="free_bike_status"):
            doc.feed_url("free_bike_status", "fr")

    def test_feed_names_match_exactly(self) -> None:
        doc = DiscoveryDocument.from_payload(
            {"data": {"en": {"feeds": [{"name": "Station_Status", "url": "https://x/s.json"}]}}}
        )

        with pytest.raises(FeedNotFound):
            doc.feed_url("station_status", "en")

    def test_v3_feeds_without_language(self) -> None:
        doc = DiscoveryDocument.from_payload(
            {
                "last_updated": "2024-01-01T00:00:00+01:00",
                "ttl": 0,
                "version": "3.0",
                "data": {
                    "feeds": [
                        {"name": "station_information", "url": "https://x/info.json"},
                        {"name": "station_status", "url": "https://x/status.json"},
                    ]
                },
            }
        )

        assert doc.feed_url("station_information", "en") == "https://x/info.json"
        assert doc.feed_url("station_status", "fr") == "https://x/status.json"

    def test_rejects_payload_without_data(self) -> None:
        with pytest.raises(ValueError):
            DiscoveryDocument.from_payload({"ttl": 60})

    def test_rejects_non_object_payload(self) -> None:
        with pytest.raises(ValueError):
            DiscoveryDocument.from_payload(["not", "a", "document"])


class TestStationRecords:
    """Tests for station information and status validation."""

    def test_information_requires_coordinates(self) -> None:
        with pytest.raises(ValidationError):
            StationInformation.model_validate({"station_id": "1", "name": "No coords"})

    def test_information_ignores_unknown_fields(self) -> None:
        info = StationInformation.model_validate(
            {"station_id": "1", "name": "Rihour", "lat": 50.6, "lon": 3.06, "is_virtual_station": False}
        )

        assert info.display_name("en") == "Rihour"

    def test_localized_name_falls_back_to_first(self) -> None:
        info = StationInformation.model_validate(
            {"station_id": "1", "name": [{"text": "République", "language": "fr"}], "lat": 50.6, "lon": 3.06}
        )

        assert info.display_name("en") == "République"

    def test_status_numeric_id(self) -> None:
        status = StationStatus.model_validate({"station_id": 42, "num_bikes_available": 1})

        assert status.station_id == "42"

    def test_status_rejects_negative_counts(self) -> None:
        with pytest.raises(ValidationError):
            StationStatus.model_validate({"station_id": "1", "num_docks_available": -3})


class TestUnusedFieldsAreIgnored:
    """Fields outside the join never reject a payload."""

    def test_discovery_with_unexpected_metadata_types(self) -> None:
        doc = DiscoveryDocument.from_payload(
            {
                "last_updated": [2024],
                "ttl": "sixty",
                "version": 2.3,
                "data": {"en": {"feeds": [{"name": "station_status", "url": "https://x/s.json"}]}},
            }
        )

        assert doc.feed_url("station_status", "en") == "https://x/s.json"

    def test_information_with_odd_capacity(self) -> None:
        info = StationInformation.model_validate(
            {"station_id": "1", "name": "Rihour", "lat": 50.6, "lon": 3.06, "capacity": "unknown"}
        )

        assert info.station_id == "1"

    def test_status_with_odd_flags(self) -> None:
        status = StationStatus.model_validate(
            {
                "station_id": "1",
                "num_bikes_available": 4,
                "num_docks_available": 6,
                "is_renting": "sometimes",
                "is_returning": None,
                "last_reported": {"when": "now"},
            }
        )

        assert status.num_bikes_available == 4
        assert status.num_docks_available == 6
