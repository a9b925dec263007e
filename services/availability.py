"""Connector availability resolution against a filter selection."""

from __future__ import annotations

from dataclasses import dataclass

from models.filters import FilterSelection, SpeedTier
from models.stations import Connector, ConnectorStatus, Station


@dataclass(frozen=True)
class AvailabilityCounts:
    """Connectors free right now versus connectors matching the filter."""

    available: int = 0
    matching: int = 0

    @property
    def label(self) -> str:
        return f"{self.available}/{self.matching} available"


def plug_matches(connector: Connector, selection: FilterSelection) -> bool:
    codes = selection.plug_codes
    return not codes or connector.plug_type in codes


def speed_matches(connector: Connector, selection: FilterSelection) -> bool:
    tier = selection.speed_tier
    if tier is SpeedTier.all:
        return True
    threshold = tier.threshold_kw
    if tier is SpeedTier.upto_50:
        return connector.max_power_kw <= threshold
    return connector.max_power_kw >= threshold


def sensor_filter_matches(connector: Connector, selection: FilterSelection) -> bool:
    if not selection.require_parking_sensor:
        return True
    return connector.has_parking_sensor and not connector.sensor_issue


def is_available(connector: Connector) -> bool:
    """Whether the connector can be used now, independent of any filter.

    A working parking sensor can veto an AVAILABLE status when the bay is
    illegally occupied. A faulty sensor is ignored.
    """
    available = connector.status == ConnectorStatus.available
    if connector.has_parking_sensor and not connector.sensor_issue:
        return available and not connector.illegally_parked
    return available


def matches_filter(connector: Connector, selection: FilterSelection) -> bool:
    return (
        plug_matches(connector, selection)
        and speed_matches(connector, selection)
        and sensor_filter_matches(connector, selection)
    )


def is_usable(connector: Connector, selection: FilterSelection) -> bool:
    return matches_filter(connector, selection) and is_available(connector)


def station_is_usable(station: Station, selection: FilterSelection) -> bool:
    return any(is_usable(connector, selection) for connector in station.connectors.values())


def count_matching(station: Station, selection: FilterSelection) -> int:
    return sum(1 for connector in station.connectors.values() if matches_filter(connector, selection))


def count_available(station: Station, selection: FilterSelection) -> int:
    return sum(1 for connector in station.connectors.values() if is_usable(connector, selection))


def availability_counts(station: Station, selection: FilterSelection) -> AvailabilityCounts:
    return AvailabilityCounts(
        available=count_available(station, selection),
        matching=count_matching(station, selection),
    )
