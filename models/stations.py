"""Value records for charging stations and their connectors."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional


class ConnectorStatus(str, Enum):
    """Connector states the resolver cares about. Other raw values pass through."""

    available = "AVAILABLE"
    occupied = "OCCUPIED"


@dataclass(frozen=True, slots=True)
class Coordinates:
    latitude: float
    longitude: float


@dataclass(frozen=True, slots=True)
class SensorStatus:
    """Parking-bay sensor report attached to a connector."""

    status: str = ""
    illegally_parked: bool = False
    sensor_issue: bool = False
    last_change: str = ""


@dataclass(frozen=True, slots=True)
class Connector:
    """A single charging point (EVSE) and its live status."""

    id: str
    max_power_kw: int
    status: str
    plug_type: str
    parking_sensor: Optional[SensorStatus] = None
    illegally_parked: bool = False

    @property
    def has_parking_sensor(self) -> bool:
        return self.parking_sensor is not None

    @property
    def sensor_issue(self) -> bool:
        return self.parking_sensor is not None and self.parking_sensor.sensor_issue


@dataclass(frozen=True, slots=True)
class Station:
    """A charging location. Rebuilt from scratch on every feed refresh."""

    id: str
    address: str
    city: str
    coordinates: Coordinates
    connectors: Mapping[str, Connector] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.connectors, MappingProxyType):
            object.__setattr__(self, "connectors", MappingProxyType(dict(self.connectors)))

    @property
    def free_connectors(self) -> int:
        """Connectors reporting AVAILABLE that are not blocked by a parked vehicle."""
        return sum(
            1
            for connector in self.connectors.values()
            if connector.status == ConnectorStatus.available and not connector.illegally_parked
        )

    @property
    def has_parking_sensor(self) -> bool:
        return any(connector.has_parking_sensor for connector in self.connectors.values())
