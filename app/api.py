"""HTTP route definitions for the service."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.schemas import (
    ConnectorView,
    FavoriteToggleResponse,
    FilterPayload,
    GeocodeResultView,
    RefreshResponse,
    SensorView,
    StationDetail,
    StationListing,
    StationSummary,
)
from errors import GeocodingError, LocationPermissionError
from integrations.geocoder import GeocoderClient, build_default_geocoder
from models.filters import FilterSelection, format_plug_type
from models.stations import Coordinates, Station
from services.availability import is_available, matches_filter
from services.directory import StationDirectory, StationView, build_default_directory
from services.geo import directions_url, format_distance
from services.refresher import RefreshLoop, build_default_refresher

router = APIRouter()


def get_directory() -> StationDirectory:
    return build_default_directory()


def get_refresher() -> RefreshLoop:
    return build_default_refresher()


def get_geocoder() -> GeocoderClient:
    return build_default_geocoder()


def _position(lat: Optional[float], lon: Optional[float]) -> Optional[Coordinates]:
    if lat is None and lon is None:
        return None
    if lat is None or lon is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Both lat and lon are required to sort by distance.",
        )
    return Coordinates(latitude=lat, longitude=lon)


def _summary(view: StationView) -> StationSummary:
    station = view.station
    return StationSummary(
        id=station.id,
        address=station.address,
        city=station.city,
        latitude=station.coordinates.latitude,
        longitude=station.coordinates.longitude,
        available=view.counts.available,
        matching=view.counts.matching,
        usable=view.usable,
        favorite=view.favorite,
        distance_km=view.distance_km,
        distance_label=format_distance(view.distance_km) if view.distance_km is not None else None,
    )


def _detail(view: StationView, selection: FilterSelection) -> StationDetail:
    station: Station = view.station
    connectors = [
        ConnectorView(
            id=connector.id,
            max_power_kw=connector.max_power_kw,
            status=connector.status,
            plug_type=connector.plug_type,
            plug_name=format_plug_type(connector.plug_type),
            available=is_available(connector),
            matches_filter=matches_filter(connector, selection),
            parking_sensor=(
                SensorView(
                    status=connector.parking_sensor.status,
                    illegally_parked=connector.parking_sensor.illegally_parked,
                    sensor_issue=connector.parking_sensor.sensor_issue,
                    last_change=connector.parking_sensor.last_change,
                )
                if connector.parking_sensor is not None
                else None
            ),
        )
        for connector in sorted(station.connectors.values(), key=lambda item: item.status)
    ]
    return StationDetail(
        **_summary(view).model_dump(),
        free_connectors=station.free_connectors,
        directions_url=directions_url(station.address),
        connectors=connectors,
    )


@router.get(
    "/stations",
    response_model=StationListing,
    summary="List filtered stations, free ones first.",
)
async def list_stations(
    q: Optional[str] = Query(None, description="Case-insensitive address search."),
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lon: Optional[float] = Query(None, ge=-180, le=180),
    directory: StationDirectory = Depends(get_directory),
) -> StationListing:
    notice: Optional[str] = None
    try:
        position = directory.resolve_position(_position(lat, lon))
    except LocationPermissionError as exc:
        position = None
        notice = str(exc)

    snapshot = directory.snapshot()
    views = directory.listing(query=q, position=position, snapshot=snapshot)
    return StationListing(
        stations=[_summary(view) for view in views],
        total=len(views),
        refreshed_at=snapshot.refreshed_at,
        notice=notice,
    )


@router.get(
    "/stations/{station_id}",
    response_model=StationDetail,
    summary="Show one station with per-connector availability.",
)
async def get_station(
    station_id: str,
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lon: Optional[float] = Query(None, ge=-180, le=180),
    directory: StationDirectory = Depends(get_directory),
) -> StationDetail:
    snapshot = directory.snapshot()
    try:
        station = directory.station(station_id, snapshot)
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    try:
        position = directory.resolve_position(_position(lat, lon))
    except LocationPermissionError:
        position = None
    return _detail(directory.summarize(station, position, snapshot), snapshot.selection)


@router.get(
    "/favorites",
    response_model=List[StationSummary],
    summary="List favorite stations.",
)
async def list_favorites(
    directory: StationDirectory = Depends(get_directory),
) -> List[StationSummary]:
    return [_summary(directory.summarize(station)) for station in directory.favorite_stations()]


@router.post(
    "/favorites/{station_id}",
    response_model=FavoriteToggleResponse,
    summary="Toggle a station in the favorites set.",
)
async def toggle_favorite(
    station_id: str,
    directory: StationDirectory = Depends(get_directory),
) -> FavoriteToggleResponse:
    favorite = directory.toggle_favorite(station_id)
    return FavoriteToggleResponse(station_id=station_id, favorite=favorite)


@router.delete(
    "/favorites/{station_id}",
    response_model=FavoriteToggleResponse,
    summary="Remove a station from the favorites set.",
)
async def delete_favorite(
    station_id: str,
    directory: StationDirectory = Depends(get_directory),
) -> FavoriteToggleResponse:
    directory.remove_favorite(station_id)
    return FavoriteToggleResponse(station_id=station_id, favorite=False)


@router.get(
    "/filters",
    response_model=FilterPayload,
    summary="Current filter selection.",
)
async def get_filters(
    directory: StationDirectory = Depends(get_directory),
) -> FilterPayload:
    return FilterPayload.from_selection(directory.snapshot().selection)


@router.put(
    "/filters",
    response_model=FilterPayload,
    summary="Replace and persist the filter selection.",
)
async def put_filters(
    payload: FilterPayload,
    directory: StationDirectory = Depends(get_directory),
) -> FilterPayload:
    snapshot = directory.set_filter(payload.to_selection())
    return FilterPayload.from_selection(snapshot.selection)


@router.post(
    "/refresh",
    response_model=RefreshResponse,
    summary="Run one refresh cycle now.",
)
def refresh_now(
    refresher: RefreshLoop = Depends(get_refresher),
) -> RefreshResponse:
    result = refresher.refresh_once()
    return RefreshResponse(
        status=result.status,
        station_count=result.station_count,
        issue_count=result.issue_count,
        detail=result.detail,
        refreshed_at=result.refreshed_at,
    )


@router.get(
    "/geocode",
    response_model=List[GeocodeResultView],
    summary="Look up an address in Germany.",
)
def geocode(
    q: str = Query(..., min_length=1),
    geocoder: GeocoderClient = Depends(get_geocoder),
) -> List[GeocodeResultView]:
    try:
        results = geocoder.search_address(q)
    except GeocodingError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(exc),
        ) from exc
    return [
        GeocodeResultView(
            display_name=result.display_name,
            latitude=result.latitude,
            longitude=result.longitude,
        )
        for result in results
    ]


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}
