"""Tests for the MCP server, health tool and CLI."""

import json
from datetime import UTC, datetime
from unittest.mock import AsyncMock, patch

import pytest

from vlille_mcp import __version__
from vlille_mcp.data.errors import FeedUnavailable
from vlille_mcp.models.responses import Snapshot, StationView
from vlille_mcp.server import health, run_stations
from vlille_mcp.services import station_service


@pytest.fixture(autouse=True)
def reset_service():
    """Reset the service state before and after each test."""
    station_service.reset_service()
    yield
    station_service.reset_service()


def test_health_returns_ok_status():
    """Health check should return status ok."""
    response = health()
    assert response.status == "ok"


def test_health_returns_version():
    """Health check should return the current version."""
    response = health()
    assert response.version == __version__


def test_health_returns_timestamp():
    """Health check should return a valid ISO timestamp."""
    response = health()
    assert response.timestamp is not None
    # Should be parseable as ISO format
    assert "T" in response.timestamp


def test_health_without_snapshot():
    """Before the first fetch there is no snapshot information."""
    response = health()
    assert response.snapshot_captured_at is None
    assert response.snapshot_age_seconds is None


def test_health_reports_snapshot():
    captured_at = datetime(2025, 3, 14, 9, 30, tzinfo=UTC)
    station_service._get_snapshot_cache().set(Snapshot(stations=(), captured_at=captured_at))

    response = health()

    assert response.snapshot_captured_at == captured_at.isoformat()
    assert response.snapshot_age_seconds is not None
    assert response.snapshot_age_seconds >= 0


@pytest.mark.asyncio
async def test_run_stations_prints_json(capsys):
    captured_at = datetime(2025, 3, 14, 9, 30, tzinfo=UTC)
    station_service._get_snapshot_cache().set(
        Snapshot(
            stations=(StationView(id="A", name="Gare", bikes=5, docks=10), StationView(id="B", bikes=0)),
            captured_at=captured_at,
        )
    )

    exit_code = await run_stations(1)

    assert exit_code == 0
    output = json.loads(capsys.readouterr().out)
    assert output["count"] == 1
    assert output["min_bikes"] == 1
    assert output["stations"][0]["id"] == "A"
    assert output["captured_at"] == captured_at.isoformat()


@pytest.mark.asyncio
async def test_run_stations_reports_unavailable_feed(capsys):
    with patch(
        "vlille_mcp.services.station_service.query",
        new=AsyncMock(side_effect=FeedUnavailable("Station feed unavailable: boom")),
    ):
        exit_code = await run_stations(0)

    assert exit_code == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "Station feed unavailable" in captured.err
