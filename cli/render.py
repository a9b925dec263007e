from __future__ import annotations

from typing import Any, Dict, Iterable, List

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _availability_label(station: Dict[str, Any]) -> str:
    available = station.get("available", 0)
    matching = station.get("matching", 0)
    return f"{available}/{matching} available"


def _station_line(station: Dict[str, Any]) -> str:
    marker = "*" if station.get("favorite") else " "
    parts = [f"{marker} {station.get('address')}, {station.get('city')}"]
    if station.get("distance_label"):
        parts.append(f"{station['distance_label']} away")
    parts.append(_availability_label(station))
    return f"{' | '.join(parts)}  [{station.get('id')}]"


def render_listing(payload: Dict[str, Any]) -> None:
    echo_heading(f"Stations ({payload.get('total', 0)})")
    notice = payload.get("notice")
    if notice:
        typer.secho(notice, fg=typer.colors.YELLOW)
    stations = payload.get("stations") or []
    if not stations:
        typer.echo("No stations match the current filter.")
        return
    for station in stations:
        color = typer.colors.GREEN if station.get("usable") else None
        typer.secho(_station_line(station), fg=color)


def render_favorites(stations: List[Dict[str, Any]]) -> None:
    echo_heading("Favorites")
    if not stations:
        typer.echo("No favorites saved.")
        return
    for station in stations:
        typer.echo(_station_line(station))


def render_station(payload: Dict[str, Any]) -> None:
    echo_heading(payload.get("address") or "Station")
    echo_key_values(
        [
            ("id", payload.get("id")),
            ("city", payload.get("city")),
            ("coordinates", f"{payload.get('latitude')}, {payload.get('longitude')}"),
            ("availability", _availability_label(payload)),
            ("free_connectors", payload.get("free_connectors")),
            ("favorite", "yes" if payload.get("favorite") else "no"),
            ("directions", payload.get("directions_url")),
        ]
    )
    if payload.get("distance_label"):
        typer.echo(f"distance: {payload['distance_label']}")

    typer.echo()
    echo_heading("Connectors")
    connectors = payload.get("connectors") or []
    if not connectors:
        typer.echo("No connectors reported.")
        return
    for connector in connectors:
        state = "available" if connector.get("available") else "occupied"
        line = (
            f"  - {connector.get('id')}: {connector.get('plug_name')} "
            f"{connector.get('max_power_kw')} kW, {state}"
        )
        sensor = connector.get("parking_sensor")
        if sensor:
            if sensor.get("sensor_issue"):
                line += " (sensor fault)"
            elif sensor.get("illegally_parked"):
                line += " (bay blocked)"
        typer.echo(line)


def render_filters(payload: Dict[str, Any]) -> None:
    echo_heading("Filter")
    plugs = payload.get("plug_types") or []
    echo_key_values(
        [
            ("speed_tier", payload.get("speed_tier")),
            ("plug_types", ", ".join(plugs) if plugs else "any"),
            ("require_parking_sensor", payload.get("require_parking_sensor")),
        ]
    )


def render_refresh(payload: Dict[str, Any]) -> None:
    status = payload.get("status")
    color = typer.colors.GREEN if status == "refreshed" else typer.colors.YELLOW
    typer.secho(f"Refresh {status}: {payload.get('station_count')} stations", fg=color)
    if payload.get("issue_count"):
        typer.echo(f"skipped malformed stations: {payload['issue_count']}")
    if payload.get("detail"):
        typer.echo(f"detail: {payload['detail']}")


def render_geocode(results: List[Dict[str, Any]]) -> None:
    if not results:
        typer.echo("No address found.")
        return
    for result in results:
        typer.echo(f"{result.get('display_name')} ({result.get('latitude')}, {result.get('longitude')})")
