"""HTTP client for the upstream charging station feed."""

from __future__ import annotations

import logging
import time
from typing import Optional

import httpx

from errors import FetchError
from services.parser import ParseReport, parse_stations
from settings import Settings, get_settings

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-Api-Key"


class StationFeedClient:
    """Fetches the station collection and parses it into station records."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 10.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.base_url = base_url
        self._api_key = api_key
        self._client = client or httpx.Client(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "StationFeedClient":
        settings = settings or get_settings()
        return cls(
            base_url=settings.station_api_url,
            api_key=settings.station_api_key,
            timeout=settings.http_timeout,
        )

    def close(self) -> None:
        self._client.close()

    def fetch_stations(self) -> ParseReport:
        """Return all stations; raises :class:`FetchError` on any transport or shape problem."""
        start_time = time.perf_counter()
        try:
            response = self._client.get(self.base_url, headers={API_KEY_HEADER: self._api_key})
        except httpx.HTTPError as exc:
            raise FetchError(f"Station feed request failed: {exc}") from exc

        if response.status_code != httpx.codes.OK:
            raise FetchError(
                f"Failed to load charging stations (status {response.status_code})"
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise FetchError("Station feed returned invalid JSON") from exc

        if not isinstance(payload, dict) or "data" not in payload:
            raise FetchError("No data key found in response")
        items = payload["data"]
        if not isinstance(items, list):
            raise FetchError("Station feed 'data' is not a list")

        report = parse_stations(items)
        logger.info(
            "Fetched station feed",
            extra={
                "station_count": len(report.stations),
                "issue_count": len(report.issues),
                "elapsed_ms": int((time.perf_counter() - start_time) * 1000),
            },
        )
        return report
