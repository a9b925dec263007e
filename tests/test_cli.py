from __future__ import annotations

from typing import Any, Dict, List

import pytest
from typer.testing import CliRunner

from cli.app import app
from cli.config import CLIConfig, load_config


class StubClient:
    def __init__(self, config) -> None:
        self.config = config
        self.station_payload: Dict[str, Any] = {
            "id": "st-1",
            "address": "Zeppelinstrasse 1",
            "city": "Potsdam",
            "latitude": 52.4,
            "longitude": 13.06,
            "available": 1,
            "matching": 2,
            "usable": True,
            "favorite": True,
            "distance_km": 1.2,
            "distance_label": "1.20 km",
        }
        self.listing_calls: List[tuple] = []
        self.filter_calls: List[tuple] = []
        self.toggled: List[str] = []
        self.closed = False

    def list_stations(self, query=None, lat=None, lon=None) -> Dict[str, Any]:
        self.listing_calls.append((query, lat, lon))
        return {"stations": [self.station_payload], "total": 1, "notice": None}

    def get_station(self, station_id: str) -> Dict[str, Any]:
        payload = dict(self.station_payload, id=station_id)
        payload.update(
            {
                "free_connectors": 1,
                "directions_url": "https://www.google.com/maps/dir/?api=1&destination=Zeppelinstrasse%201",
                "connectors": [
                    {
                        "id": "evse-1",
                        "plug_name": "CCS",
                        "max_power_kw": 150,
                        "available": False,
                        "parking_sensor": {"illegally_parked": True, "sensor_issue": False},
                    },
                    {"id": "evse-2", "plug_name": "Typ2", "max_power_kw": 22, "available": True},
                ],
            }
        )
        return payload

    def list_favorites(self) -> List[Dict[str, Any]]:
        return [self.station_payload]

    def toggle_favorite(self, station_id: str) -> Dict[str, Any]:
        self.toggled.append(station_id)
        return {"station_id": station_id, "favorite": len(self.toggled) % 2 == 1}

    def get_filters(self) -> Dict[str, Any]:
        return {"speed_tier": "all", "plug_types": [], "require_parking_sensor": False}

    def set_filters(self, speed_tier, plug_types, require_parking_sensor) -> Dict[str, Any]:
        self.filter_calls.append((speed_tier, list(plug_types), require_parking_sensor))
        return {
            "speed_tier": speed_tier,
            "plug_types": list(plug_types),
            "require_parking_sensor": require_parking_sensor,
        }

    def refresh(self) -> Dict[str, Any]:
        return {"status": "failed", "station_count": 4, "issue_count": 0, "detail": "No data key found in response"}

    def geocode(self, query: str) -> List[Dict[str, Any]]:
        return [{"display_name": query, "latitude": 52.39, "longitude": 13.06}]

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def stub(monkeypatch) -> StubClient:
    client = StubClient(config=None)

    def factory(config):
        client.config = config
        return client

    monkeypatch.setattr("cli.app.ApiClient", factory)
    return client


def test_stations_listing(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["stations", "--query", "zeppelin", "--lat", "52.4", "--lon", "13.0"])

    assert result.exit_code == 0
    assert "Stations (1)" in result.stdout
    assert "1.20 km away" in result.stdout
    assert "1/2 available" in result.stdout
    assert stub.listing_calls == [("zeppelin", 52.4, 13.0)]
    assert stub.closed is True


def test_stations_rejects_partial_position(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["stations", "--lat", "52.4"])

    assert result.exit_code != 0
    assert stub.listing_calls == []


def test_station_detail(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["station", "st-9"])

    assert result.exit_code == 0
    assert "id: st-9" in result.stdout
    assert "evse-1: CCS 150 kW, occupied (bay blocked)" in result.stdout
    assert "evse-2: Typ2 22 kW, available" in result.stdout


def test_favorite_toggle_messages(runner: CliRunner, stub: StubClient) -> None:
    added = runner.invoke(app, ["favorite", "st-1"])
    removed = runner.invoke(app, ["favorite", "st-1"])

    assert "Added st-1 to favorites." in added.stdout
    assert "Removed st-1 from favorites." in removed.stdout
    assert stub.toggled == ["st-1", "st-1"]


def test_filter_set_passes_options(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(
        app,
        ["filter", "set", "--speed", "from_100", "--plug", "CCS", "--plug", "Typ2", "--sensor"],
    )

    assert result.exit_code == 0
    assert stub.filter_calls == [("from_100", ["CCS", "Typ2"], True)]
    assert "plug_types: CCS, Typ2" in result.stdout


def test_filter_show(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["filter", "show"])

    assert result.exit_code == 0
    assert "plug_types: any" in result.stdout


def test_refresh_reports_failure_detail(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["refresh"])

    assert result.exit_code == 0
    assert "Refresh failed: 4 stations" in result.stdout
    assert "No data key found in response" in result.stdout


def test_base_url_option_reaches_client(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["--base-url", "http://finder.test/", "geocode", "Potsdam"])

    assert result.exit_code == 0
    assert stub.config.base_url == "http://finder.test"
    assert "Potsdam (52.39, 13.06)" in result.stdout


def test_load_config_reads_environment(monkeypatch) -> None:
    monkeypatch.setenv("FINDER_API_URL", "finder.local:9000/")
    monkeypatch.setenv("CLI_TIMEOUT", "nope")

    config = load_config()

    assert config.base_url == "http://finder.local:9000"
    assert config.timeout == 30.0


def test_load_config_prefers_explicit_arguments(monkeypatch) -> None:
    monkeypatch.setenv("FINDER_API_URL", "http://ignored")
    monkeypatch.setenv("CLI_TIMEOUT", "5")

    assert load_config(base_url="https://finder.test//", timeout=2.0) == CLIConfig(
        base_url="https://finder.test", timeout=2.0
    )
    assert load_config().timeout == 5.0
