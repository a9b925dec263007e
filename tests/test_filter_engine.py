"""Tests for station filtering, searching and ordering."""

from __future__ import annotations

from models.filters import FilterSelection, SpeedTier
from models.stations import Connector, Coordinates, SensorStatus, Station
from services.filter_engine import apply_filter, search_stations, sort_stations
from services.geo import directions_url, distance_km, format_distance

USER = Coordinates(52.0, 13.0)


def _station(
    station_id: str,
    address: str,
    *,
    latitude: float = 52.0,
    status: str = "AVAILABLE",
    power: int = 22,
    plug: str = "IEC_62196_T2",
    sensor: SensorStatus | None = None,
) -> Station:
    connector = Connector(
        id=f"{station_id}-evse",
        max_power_kw=power,
        status=status,
        plug_type=plug,
        parking_sensor=sensor,
        illegally_parked=sensor.illegally_parked if sensor is not None else False,
    )
    return Station(
        id=station_id,
        address=address,
        city="Potsdam",
        coordinates=Coordinates(latitude, 13.0),
        connectors={connector.id: connector},
    )


def _stations() -> list[Station]:
    return [
        _station("slow", "Am Neuen Markt 1", power=11),
        _station("fast", "Zeppelinstrasse 3", power=150, plug="IEC_62196_T2_COMBO"),
        _station("border", "Lindenstrasse 50", power=50, plug="CHADEMO"),
        _station("sensor", "Dortustrasse 9", power=22, sensor=SensorStatus(sensor_issue=True)),
    ]


def test_default_filter_keeps_everything_in_order() -> None:
    stations = _stations()

    assert apply_filter(stations, FilterSelection()) == stations


def test_boundary_power_passes_both_sides_of_fifty() -> None:
    stations = _stations()

    upto = apply_filter(stations, FilterSelection(speed_tier=SpeedTier.upto_50))
    from_fifty = apply_filter(stations, FilterSelection(speed_tier=SpeedTier.from_50))

    assert [station.id for station in upto] == ["slow", "border", "sensor"]
    assert [station.id for station in from_fifty] == ["fast", "border"]


def test_plug_filter_uses_friendly_names() -> None:
    selection = FilterSelection(plug_types=frozenset({"CCS", "CHAdeMO"}))

    assert [station.id for station in apply_filter(_stations(), selection)] == ["fast", "border"]


def test_parking_sensor_filter_requires_installed_sensor() -> None:
    selection = FilterSelection(require_parking_sensor=True)

    assert [station.id for station in apply_filter(_stations(), selection)] == ["sensor"]


def test_apply_filter_is_idempotent() -> None:
    selection = FilterSelection(speed_tier=SpeedTier.from_50, plug_types=frozenset({"CCS"}))

    once = apply_filter(_stations(), selection)

    assert apply_filter(once, selection) == once


def test_sort_puts_available_before_exhausted_with_position() -> None:
    near_but_busy = _station("A", "Aachener Strasse 1", latitude=52.009, status="OCCUPIED")
    far_but_free = _station("B", "Berliner Strasse 1", latitude=52.09)

    ordered = sort_stations([near_but_busy, far_but_free], FilterSelection(), USER)

    assert [station.id for station in ordered] == ["B", "A"]


def test_sort_by_distance_within_group() -> None:
    far = _station("far", "Alpha 1", latitude=52.2)
    near = _station("near", "Zulu 1", latitude=52.01)

    ordered = sort_stations([far, near], FilterSelection(), USER)

    assert [station.id for station in ordered] == ["near", "far"]


def test_sort_by_address_without_position() -> None:
    busy = _station("busy", "Alpha 1", status="OCCUPIED")
    second = _station("z", "Zulu 1")
    first = _station("m", "Mike 1")

    ordered = sort_stations([busy, second, first], FilterSelection())

    assert [station.id for station in ordered] == ["m", "z", "busy"]


def test_search_is_case_insensitive_substring() -> None:
    stations = _stations()

    assert [station.id for station in search_stations(stations, "STRASSE")] == ["fast", "border", "sensor"]
    assert search_stations(stations, "  ") == stations
    assert search_stations(stations, None) == stations


def test_distance_helpers() -> None:
    one_degree = distance_km(Coordinates(0.0, 0.0), Coordinates(1.0, 0.0))

    assert 111.0 < one_degree < 111.4
    assert format_distance(0.4567) == "457 m"
    assert format_distance(12.346) == "12.35 km"
    assert directions_url("Am Kanal 2, Potsdam") == (
        "https://www.google.com/maps/dir/?api=1&destination=Am%20Kanal%202%2C%20Potsdam"
    )
