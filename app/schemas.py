"""Pydantic schemas for the HTTP API layer and persisted preferences."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from models.filters import FilterSelection, SpeedTier


class PreferencesRecord(BaseModel):
    """Key-value document persisted by the preferences store."""

    selected_speed: str = SpeedTier.all.value
    selected_plugs: List[str] = Field(default_factory=list)
    selected_parking_sensor: bool = False
    favorites: List[str] = Field(default_factory=list)


class RefreshStatus(str, Enum):
    """Outcome of a single refresh cycle."""

    refreshed = "refreshed"
    skipped = "skipped"
    failed = "failed"


class FilterPayload(BaseModel):
    """Filter selection as exchanged over HTTP."""

    speed_tier: SpeedTier = SpeedTier.all
    plug_types: List[str] = Field(default_factory=list)
    require_parking_sensor: bool = False

    @classmethod
    def from_selection(cls, selection: FilterSelection) -> "FilterPayload":
        return cls(
            speed_tier=selection.speed_tier,
            plug_types=sorted(selection.plug_types),
            require_parking_sensor=selection.require_parking_sensor,
        )

    def to_selection(self) -> FilterSelection:
        return FilterSelection(
            speed_tier=self.speed_tier,
            plug_types=frozenset(self.plug_types),
            require_parking_sensor=self.require_parking_sensor,
        )


class SensorView(BaseModel):
    status: str
    illegally_parked: bool
    sensor_issue: bool
    last_change: str


class ConnectorView(BaseModel):
    id: str
    max_power_kw: int = Field(..., ge=0)
    status: str
    plug_type: str
    plug_name: str
    available: bool
    matches_filter: bool
    parking_sensor: Optional[SensorView] = None


class StationSummary(BaseModel):
    """One row of the station listing."""

    id: str
    address: str
    city: str
    latitude: float
    longitude: float
    available: int = Field(..., ge=0, description="Connectors matching the filter and free now.")
    matching: int = Field(..., ge=0, description="Connectors matching the filter.")
    usable: bool
    favorite: bool
    distance_km: Optional[float] = None
    distance_label: Optional[str] = None


class StationDetail(StationSummary):
    free_connectors: int = Field(..., ge=0)
    directions_url: str
    connectors: List[ConnectorView] = Field(default_factory=list)


class StationListing(BaseModel):
    stations: List[StationSummary] = Field(default_factory=list)
    total: int = Field(..., ge=0)
    refreshed_at: Optional[datetime] = None
    notice: Optional[str] = Field(
        default=None, description="Informational message, e.g. when location use is disabled."
    )


class FavoriteToggleResponse(BaseModel):
    station_id: str
    favorite: bool


class RefreshResponse(BaseModel):
    status: RefreshStatus
    station_count: int = Field(..., ge=0)
    issue_count: int = Field(default=0, ge=0)
    detail: Optional[str] = None
    refreshed_at: Optional[datetime] = None


class GeocodeResultView(BaseModel):
    display_name: str
    latitude: float
    longitude: float
