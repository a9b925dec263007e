"""Station-level filtering, searching and ordering."""

from __future__ import annotations

from typing import Iterable, List, Optional

from models.filters import FilterSelection
from models.stations import Coordinates, Station
from services.availability import count_available, plug_matches, speed_matches
from services.geo import distance_km


def apply_filter(stations: Iterable[Station], selection: FilterSelection) -> List[Station]:
    """Keep stations offering at least one connector of the wanted plug and speed.

    With ``require_parking_sensor`` a station also needs a connector with a
    sensor installed. Input order is preserved.
    """
    return [station for station in stations if _station_matches(station, selection)]


def search_stations(stations: Iterable[Station], query: Optional[str]) -> List[Station]:
    needle = (query or "").strip().lower()
    if not needle:
        return list(stations)
    return [station for station in stations if needle in station.address.lower()]


def sort_stations(
    stations: Iterable[Station],
    selection: FilterSelection,
    position: Optional[Coordinates] = None,
) -> List[Station]:
    """Order stations with free connectors first, then by distance or address."""

    def sort_key(station: Station) -> tuple:
        exhausted = count_available(station, selection) == 0
        if position is not None:
            return (exhausted, distance_km(position, station.coordinates))
        return (exhausted, station.address)

    return sorted(stations, key=sort_key)


def _station_matches(station: Station, selection: FilterSelection) -> bool:
    if selection.require_parking_sensor and not station.has_parking_sensor:
        return False
    return any(
        plug_matches(connector, selection) and speed_matches(connector, selection)
        for connector in station.connectors.values()
    )
