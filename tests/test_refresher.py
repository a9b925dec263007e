"""Tests for the periodic refresh loop."""

from __future__ import annotations

import threading
import time

import httpx

from app.schemas import RefreshStatus
from datastore.preferences import PreferencesStore
from errors import FetchError
from integrations.station_feed import StationFeedClient
from models.filters import SpeedTier
from models.stations import Connector, Coordinates, Station
from services.directory import StationDirectory
from services.parser import ParseIssue, ParseReport
from services.refresher import RefreshLoop


def _station(station_id: str, power: int = 22) -> Station:
    connector = Connector(id="evse-1", max_power_kw=power, status="AVAILABLE", plug_type="IEC_62196_T2")
    return Station(
        id=station_id,
        address=f"{station_id} Strasse",
        city="Potsdam",
        coordinates=Coordinates(52.4, 13.06),
        connectors={connector.id: connector},
    )


class FakeFeed:
    def __init__(self, reports: list[ParseReport | Exception]) -> None:
        self.reports = list(reports)
        self.calls = 0
        self.closed = False

    def fetch_stations(self) -> ParseReport:
        self.calls += 1
        outcome = self.reports[0] if len(self.reports) == 1 else self.reports.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def close(self) -> None:
        self.closed = True


class BlockingFeed(FakeFeed):
    def __init__(self) -> None:
        super().__init__([ParseReport(stations=[_station("st-1")])])
        self.entered = threading.Event()
        self.release = threading.Event()

    def fetch_stations(self) -> ParseReport:
        self.entered.set()
        self.release.wait(5)
        return super().fetch_stations()


def _loop(feed: FakeFeed, interval: float = 60.0) -> RefreshLoop:
    preferences = PreferencesStore()
    directory = StationDirectory(preferences=preferences)
    return RefreshLoop(feed=feed, directory=directory, interval=interval)


def test_refresh_replaces_directory_with_fresh_data() -> None:
    report = ParseReport(
        stations=[_station("st-1"), _station("st-2", power=150)],
        issues=[ParseIssue(index=2, station_id="st-bad", reason="coordinates are not numeric")],
    )
    loop = _loop(FakeFeed([report]))
    loop.preferences.save_speed(SpeedTier.from_100)
    loop.preferences.save_favorites({"st-1"})

    result = loop.refresh_once()

    snapshot = loop.directory.snapshot()
    assert result.status is RefreshStatus.refreshed
    assert result.station_count == 2
    assert result.issue_count == 1
    assert result.refreshed_at == snapshot.refreshed_at
    assert snapshot.selection.speed_tier is SpeedTier.from_100
    assert snapshot.favorites == frozenset({"st-1"})
    assert [station.id for station in snapshot.filtered] == ["st-2"]


def test_fetch_failure_keeps_previous_state() -> None:
    feed = FakeFeed([ParseReport(stations=[_station("st-1")]), FetchError("No data key found in response")])
    loop = _loop(feed)
    loop.refresh_once()
    before = loop.directory.snapshot()

    result = loop.refresh_once()

    assert result.status is RefreshStatus.failed
    assert result.detail == "No data key found in response"
    assert result.station_count == 1
    assert loop.directory.snapshot() is before


def test_overlapping_tick_is_skipped() -> None:
    feed = BlockingFeed()
    loop = _loop(feed)
    results = []
    worker = threading.Thread(target=lambda: results.append(loop.refresh_once()))
    worker.start()
    assert feed.entered.wait(5)

    skipped = loop.refresh_once()
    feed.release.set()
    worker.join(5)

    assert skipped.status is RefreshStatus.skipped
    assert results[0].status is RefreshStatus.refreshed
    assert feed.calls == 1


def test_background_loop_ticks_until_stopped() -> None:
    feed = FakeFeed([ParseReport(stations=[_station("st-1")])])
    loop = _loop(feed, interval=0.01)

    loop.start()
    deadline = time.monotonic() + 5
    while feed.calls < 2 and time.monotonic() < deadline:
        time.sleep(0.01)
    loop.shutdown()

    assert feed.calls >= 2
    assert loop.running is False
    assert feed.closed is True
    assert [station.id for station in loop.directory.snapshot().stations] == ["st-1"]


def _wait_for(condition, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while not condition() and time.monotonic() < deadline:
        time.sleep(0.01)
    return condition()


def test_background_loop_survives_unexpected_errors(caplog) -> None:
    feed = FakeFeed([RuntimeError("feed exploded"), ParseReport(stations=[_station("st-1")])])
    loop = _loop(feed, interval=0.01)

    loop.start()
    try:
        assert _wait_for(lambda: len(loop.directory.snapshot().stations) == 1)
        assert loop.running is True
    finally:
        loop.shutdown()

    assert feed.calls >= 2
    assert any("Unexpected error during station refresh" in record.getMessage() for record in caplog.records)


def test_malformed_station_in_feed_does_not_stop_refreshing() -> None:
    payload = {
        "data": [
            {
                "id": "st-1",
                "address": "Zeppelinstrasse 1",
                "coordinates": {"latitude": "52.40", "longitude": "13.06"},
                "evses": [
                    {
                        "id": "evse-1",
                        "status": "AVAILABLE",
                        "connectors": [{"max_power": 22, "standard": "IEC_62196_T2"}],
                    }
                ],
            },
            {
                "id": "st-bad",
                "address": "Am Kanal 2",
                "coordinates": {"latitude": "52.41", "longitude": "13.06"},
                "evses": 5,
            },
        ]
    }
    client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200, json=payload)))
    feed = StationFeedClient(base_url="https://feed.test/stations", api_key="k", client=client)
    loop = _loop(feed, interval=0.01)

    result = loop.refresh_once()
    loop.start()
    try:
        assert _wait_for(lambda: loop.directory.snapshot().refreshed_at != result.refreshed_at)
        assert loop.running is True
    finally:
        loop.shutdown()

    assert result.status is RefreshStatus.refreshed
    assert result.issue_count == 1
    assert [station.id for station in loop.directory.snapshot().stations] == ["st-1"]
