from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import typer
import uvicorn

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import (
    render_favorites,
    render_filters,
    render_geocode,
    render_listing,
    render_refresh,
    render_station,
)
from models.filters import PLUG_TYPE_CODES, SpeedTier


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Find EV charging stations with live connector availability.",
    context_settings={"help_option_names": ["-h", "--help"]},
)
filter_app = typer.Typer(help="Show or change the persisted station filter.")
app.add_typer(filter_app, name="filter")


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        typer.secho("CLI state is uninitialized.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Station finder API base URL (defaults to FINDER_API_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each API response.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("stations")
def stations_command(
    ctx: typer.Context,
    query: Optional[str] = typer.Option(None, "--query", "-q", help="Filter by address substring."),
    lat: Optional[float] = typer.Option(None, "--lat", help="Your latitude, to sort by distance."),
    lon: Optional[float] = typer.Option(None, "--lon", help="Your longitude, to sort by distance."),
) -> None:
    """List stations matching the current filter, free ones first."""
    if (lat is None) != (lon is None):
        raise typer.BadParameter("--lat and --lon must be given together.")
    state = _get_state(ctx)
    payload = state.client.list_stations(query=query, lat=lat, lon=lon)
    render_listing(payload)


@app.command("station")
def station_command(
    ctx: typer.Context,
    station_id: str = typer.Argument(..., help="Station identifier from the listing."),
) -> None:
    """Show connector details for one station."""
    state = _get_state(ctx)
    render_station(state.client.get_station(station_id))


@app.command("favorites")
def favorites_command(ctx: typer.Context) -> None:
    """List favorite stations."""
    state = _get_state(ctx)
    render_favorites(state.client.list_favorites())


@app.command("favorite")
def favorite_command(
    ctx: typer.Context,
    station_id: str = typer.Argument(..., help="Station identifier to add or remove."),
) -> None:
    """Toggle a station in the favorites list."""
    state = _get_state(ctx)
    payload = state.client.toggle_favorite(station_id)
    if payload.get("favorite"):
        typer.secho(f"Added {station_id} to favorites.", fg=typer.colors.GREEN)
    else:
        typer.echo(f"Removed {station_id} from favorites.")


@filter_app.command("show")
def filter_show_command(ctx: typer.Context) -> None:
    """Print the active filter."""
    state = _get_state(ctx)
    render_filters(state.client.get_filters())


@filter_app.command("set")
def filter_set_command(
    ctx: typer.Context,
    speed: SpeedTier = typer.Option(SpeedTier.all, "--speed", "-s", help="Charging speed tier."),
    plugs: Optional[List[str]] = typer.Option(
        None,
        "--plug",
        "-p",
        help=f"Plug type, repeatable ({', '.join(PLUG_TYPE_CODES)}).",
    ),
    sensor: bool = typer.Option(
        False,
        "--sensor/--no-sensor",
        help="Only show stations with a working parking sensor.",
    ),
) -> None:
    """Replace the active filter."""
    state = _get_state(ctx)
    payload = state.client.set_filters(
        speed_tier=speed.value,
        plug_types=plugs or [],
        require_parking_sensor=sensor,
    )
    render_filters(payload)


@app.command("refresh")
def refresh_command(ctx: typer.Context) -> None:
    """Fetch fresh station data now instead of waiting for the next tick."""
    state = _get_state(ctx)
    render_refresh(state.client.refresh())


@app.command("geocode")
def geocode_command(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="Address to look up."),
) -> None:
    """Resolve an address to coordinates usable with --lat/--lon."""
    state = _get_state(ctx)
    render_geocode(state.client.geocode(query))


@app.command("serve")
def serve_command(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind."),
    port: int = typer.Option(8000, "--port", help="Port to listen on."),
) -> None:
    """Run the station finder API with its background refresh loop."""
    uvicorn.run("app.main:app", host=host, port=port)
