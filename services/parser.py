"""Conversion of raw station feed payloads into station records."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional

from errors import ParseError
from models.stations import Connector, Coordinates, SensorStatus, Station

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("id", "address", "coordinates")


@dataclass(frozen=True)
class ParseIssue:
    """A station entry that was skipped because it could not be parsed."""

    index: int
    station_id: Optional[str]
    reason: str


@dataclass
class ParseReport:
    stations: List[Station] = field(default_factory=list)
    issues: List[ParseIssue] = field(default_factory=list)


def parse_station(raw: Any) -> Station:
    """Build a :class:`Station` from one entry of the feed's ``data`` list.

    Each EVSE becomes one connector keyed by its id. ``parking_sensor`` may be
    ``false`` (no sensor), an object (sensor installed) or absent (no sensor).
    A repeated EVSE id overwrites the earlier entry and is logged.
    """
    if not isinstance(raw, Mapping):
        raise ParseError("station entry is not an object")

    missing = [name for name in _REQUIRED_FIELDS if raw.get(name) is None]
    if missing:
        raise ParseError(f"station missing required fields: {', '.join(missing)}")

    station_id = str(raw["id"])
    coordinates = _parse_coordinates(raw["coordinates"])

    connectors: dict[str, Connector] = {}
    for evse in _as_list(raw.get("evses"), "evses"):
        connector = _parse_evse(evse, station_id)
        if connector is None:
            continue
        if connector.id in connectors:
            logger.warning(
                "Duplicate connector id in feed; keeping the later entry",
                extra={"station_id": station_id, "connector_id": connector.id},
            )
        connectors[connector.id] = connector

    return Station(
        id=station_id,
        address=str(raw["address"]),
        city=str(raw.get("city") or ""),
        coordinates=coordinates,
        connectors=connectors,
    )


def parse_stations(items: Iterable[Any]) -> ParseReport:
    """Parse a batch, isolating failures to the offending station."""
    report = ParseReport()
    for index, raw in enumerate(items):
        try:
            report.stations.append(parse_station(raw))
        except ParseError as exc:
            station_id = raw.get("id") if isinstance(raw, Mapping) else None
            report.issues.append(
                ParseIssue(
                    index=index,
                    station_id=str(station_id) if station_id is not None else None,
                    reason=str(exc),
                )
            )
            logger.warning(
                "Skipping malformed station",
                extra={"station_id": station_id, "reason": str(exc)},
            )
    return report


def _as_list(raw: Any, name: str) -> list:
    if raw is None:
        return []
    if not isinstance(raw, (list, tuple)):
        raise ParseError(f"{name} must be a list")
    return list(raw)


def _parse_coordinates(raw: Any) -> Coordinates:
    if not isinstance(raw, Mapping):
        raise ParseError("coordinates must be an object")
    try:
        latitude = float(raw["latitude"])
        longitude = float(raw["longitude"])
    except KeyError as exc:
        raise ParseError(f"coordinates missing {exc.args[0]}") from exc
    except (TypeError, ValueError) as exc:
        raise ParseError("coordinates are not numeric") from exc
    return Coordinates(latitude=latitude, longitude=longitude)


def _parse_sensor(raw: Any) -> Optional[SensorStatus]:
    if raw is None or raw is False or not isinstance(raw, Mapping):
        return None
    return SensorStatus(
        status=str(raw.get("status") or ""),
        illegally_parked=bool(raw.get("illegally_parked") or False),
        sensor_issue=bool(raw.get("sensor_issue") or False),
        last_change=str(raw.get("utc_last_state_change") or ""),
    )


def _parse_power(raw: Any) -> int:
    if raw is None:
        return 0
    if isinstance(raw, bool):
        raise ParseError("max_power is not numeric")
    try:
        power = int(float(raw))
    except (TypeError, ValueError) as exc:
        raise ParseError("max_power is not numeric") from exc
    if power < 0:
        raise ParseError("max_power must not be negative")
    return power


def _parse_evse(raw: Any, station_id: str) -> Optional[Connector]:
    if not isinstance(raw, Mapping):
        raise ParseError("evse entry is not an object")
    evse_id = raw.get("id")
    if evse_id is None:
        raise ParseError("evse missing id")

    plugs = [plug for plug in _as_list(raw.get("connectors"), "connectors") if isinstance(plug, Mapping)]
    if not plugs:
        logger.debug(
            "EVSE without connectors ignored",
            extra={"station_id": station_id, "connector_id": evse_id},
        )
        return None
    if len(plugs) > 1:
        logger.debug(
            "EVSE lists several plugs; using the last one",
            extra={"station_id": station_id, "connector_id": evse_id},
        )
    plug = plugs[-1]

    sensor = _parse_sensor(raw.get("parking_sensor"))
    return Connector(
        id=str(evse_id),
        max_power_kw=_parse_power(plug.get("max_power")),
        status=str(raw.get("status") or ""),
        plug_type=str(plug.get("standard") or ""),
        parking_sensor=sensor,
        illegally_parked=sensor.illegally_parked if sensor is not None else False,
    )
