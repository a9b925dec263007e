"""Address search against an OpenStreetMap Nominatim endpoint."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional

import httpx

from errors import GeocodingError
from settings import Settings, get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeocodeResult:
    display_name: str
    latitude: float
    longitude: float


class GeocoderClient:

    def __init__(
        self,
        base_url: str,
        user_agent: str,
        timeout: float = 10.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._client = client or httpx.Client(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            headers={"User-Agent": user_agent},
        )

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "GeocoderClient":
        settings = settings or get_settings()
        return cls(
            base_url=settings.geocoder_url,
            user_agent=settings.geocoder_user_agent,
            timeout=settings.http_timeout,
        )

    def close(self) -> None:
        self._client.close()

    def search_address(self, query: str) -> List[GeocodeResult]:
        params = {
            "q": query,
            "format": "json",
            "addressdetails": 1,
            "limit": 1,
            "countrycodes": "de",
        }
        try:
            response = self._client.get("/search", params=params)
        except httpx.HTTPError as exc:
            raise GeocodingError(str(exc)) from exc

        if response.status_code != httpx.codes.OK:
            raise GeocodingError(response.reason_phrase, status_code=response.status_code)

        try:
            entries = response.json()
        except ValueError as exc:
            raise GeocodingError("invalid JSON from geocoder", status_code=response.status_code) from exc

        results: List[GeocodeResult] = []
        for entry in entries if isinstance(entries, list) else []:
            try:
                results.append(
                    GeocodeResult(
                        display_name=str(entry.get("display_name", "")),
                        latitude=float(entry["lat"]),
                        longitude=float(entry["lon"]),
                    )
                )
            except (AttributeError, KeyError, TypeError, ValueError):
                logger.debug("Dropping geocoder entry without coordinates", extra={"query": query})
        return results


@lru_cache
def build_default_geocoder() -> GeocoderClient:
    return GeocoderClient.from_settings()
