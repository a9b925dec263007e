"""In-memory view state: stations, filter, favorites and derived listings."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import lru_cache
from threading import Lock
from typing import FrozenSet, Iterable, List, Optional, Tuple

from datastore.preferences import PreferencesStore, build_default_preferences
from errors import LocationPermissionError
from models.filters import FilterSelection
from models.stations import Coordinates, Station
from services.availability import AvailabilityCounts, availability_counts
from services.filter_engine import apply_filter, search_stations, sort_stations
from services.geo import distance_km
from settings import get_settings

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class DirectorySnapshot:
    """Consistent view of everything derived from one refresh or user action."""

    stations: Tuple[Station, ...] = ()
    selection: FilterSelection = field(default_factory=FilterSelection)
    favorites: FrozenSet[str] = frozenset()
    filtered: Tuple[Station, ...] = ()
    refreshed_at: Optional[datetime] = None

@dataclass(frozen=True)
class StationView:
    station: Station
    counts: AvailabilityCounts
    usable: bool
    favorite: bool
    distance_km: Optional[float] = None

class StationDirectory:
    """Owns the authoritative station list and re-derives views on every change.

    State lives in an immutable :class:`DirectorySnapshot` that is swapped as a
    whole, so readers never observe a half-applied refresh.
    """

    def __init__(self, preferences: PreferencesStore, location_enabled: bool = True) -> None:
        self.preferences = preferences
        self.location_enabled = location_enabled
        self._lock = Lock()
        self._snapshot = DirectorySnapshot(
            selection=preferences.load_filter(),
            favorites=preferences.load_favorites(),
        )

    def snapshot(self) -> DirectorySnapshot:
        with self._lock:
            return self._snapshot

    def replace(self, stations: Iterable[Station]) -> DirectorySnapshot:
        """Swap in a freshly fetched station list with the currently saved preferences.

        Preferences are read under the same lock that guards user edits, so a
        filter or favorite change made during a refresh is never overwritten.
        """
        station_list = tuple(stations)
        with self._lock:
            selection = self.preferences.load_filter()
            self._snapshot = DirectorySnapshot(
                stations=station_list,
                selection=selection,
                favorites=self.preferences.load_favorites(),
                filtered=tuple(apply_filter(station_list, selection)),
                refreshed_at=datetime.now(timezone.utc),
            )
            return self._snapshot

    def set_filter(self, selection: FilterSelection) -> DirectorySnapshot:
        with self._lock:
            self.preferences.save_filter(selection)
            current = self._snapshot
            self._snapshot = DirectorySnapshot(
                stations=current.stations,
                selection=selection,
                favorites=current.favorites,
                filtered=tuple(apply_filter(current.stations, selection)),
                refreshed_at=current.refreshed_at,
            )
            snapshot = self._snapshot
        logger.info(
            "Filter selection updated: speed=%s plugs=%s sensor=%s",
            selection.speed_tier.value,
            ",".join(sorted(selection.plug_types)) or "-",
            selection.require_parking_sensor,
        )
        return snapshot

    def toggle_favorite(self, station_id: str) -> bool:
        """Flip favorite membership; returns whether the station is now a favorite."""
        with self._lock:
            updated = self.preferences.toggle_favorite(station_id)
            self._set_favorites(updated)
        return station_id in updated

    def remove_favorite(self, station_id: str) -> None:
        with self._lock:
            self._set_favorites(self.preferences.remove_favorite(station_id))

    def station(self, station_id: str, snapshot: Optional[DirectorySnapshot] = None) -> Station:
        current = snapshot if snapshot is not None else self.snapshot()
        for station in current.stations:
            if station.id == station_id:
                return station
        raise KeyError(f"Station {station_id!r} not found.")

    def favorite_stations(self) -> List[Station]:
        snapshot = self.snapshot()
        return [station for station in snapshot.stations if station.id in snapshot.favorites]

    def resolve_position(self, position: Optional[Coordinates]) -> Optional[Coordinates]:
        if position is not None and not self.location_enabled:
            raise LocationPermissionError(
                "Location access is disabled; stations are ordered by address."
            )
        return position

    def listing(
        self,
        query: Optional[str] = None,
        position: Optional[Coordinates] = None,
        snapshot: Optional[DirectorySnapshot] = None,
    ) -> List[StationView]:
        """Searched and sorted view over the filtered stations."""
        if snapshot is None:
            snapshot = self.snapshot()
        matches = search_stations(snapshot.filtered, query)
        ordered = sort_stations(matches, snapshot.selection, position)
        return [self._summarize(snapshot, station, position) for station in ordered]

    def summarize(
        self,
        station: Station,
        position: Optional[Coordinates] = None,
        snapshot: Optional[DirectorySnapshot] = None,
    ) -> StationView:
        return self._summarize(snapshot if snapshot is not None else self.snapshot(), station, position)

    def _set_favorites(self, favorites: FrozenSet[str]) -> None:
        current = self._snapshot
        self._snapshot = DirectorySnapshot(
            stations=current.stations,
            selection=current.selection,
            favorites=favorites,
            filtered=current.filtered,
            refreshed_at=current.refreshed_at,
        )

    @staticmethod
    def _summarize(
        snapshot: DirectorySnapshot,
        station: Station,
        position: Optional[Coordinates],
    ) -> StationView:
        counts = availability_counts(station, snapshot.selection)
        return StationView(
            station=station,
            counts=counts,
            usable=counts.available > 0,
            favorite=station.id in snapshot.favorites,
            distance_km=distance_km(position, station.coordinates) if position is not None else None,
        )

@lru_cache
def build_default_directory() -> StationDirectory:
    settings = get_settings()
    return StationDirectory(
        preferences=build_default_preferences(),
        location_enabled=settings.location_enabled,
    )
