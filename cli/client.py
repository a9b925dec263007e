from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the station finder service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def list_stations(
        self,
        query: Optional[str] = None,
        lat: Optional[float] = None,
        lon: Optional[float] = None,
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {}
        if query:
            params["q"] = query
        if lat is not None and lon is not None:
            params["lat"] = lat
            params["lon"] = lon
        return self._request("GET", "/stations", params=params)

    def get_station(self, station_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/stations/{station_id}", not_found=f"Station {station_id} was not found.")

    def list_favorites(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/favorites")

    def toggle_favorite(self, station_id: str) -> Dict[str, Any]:
        return self._request("POST", f"/favorites/{station_id}")

    def get_filters(self) -> Dict[str, Any]:
        return self._request("GET", "/filters")

    def set_filters(
        self,
        speed_tier: str,
        plug_types: Iterable[str],
        require_parking_sensor: bool,
    ) -> Dict[str, Any]:
        body = {
            "speed_tier": speed_tier,
            "plug_types": list(plug_types),
            "require_parking_sensor": require_parking_sensor,
        }
        return self._request("PUT", "/filters", json=body)

    def refresh(self) -> Dict[str, Any]:
        return self._request("POST", "/refresh")

    def geocode(self, query: str) -> List[Dict[str, Any]]:
        return self._request("GET", "/geocode", params={"q": query})

    def _request(self, method: str, path: str, not_found: Optional[str] = None, **kwargs: Any) -> Any:
        try:
            response = self._client.request(method, path, **kwargs)
            if not_found is not None and response.status_code == 404:
                raise typer.BadParameter(not_found)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.TransportError as exc:
            typer.secho(
                f"Could not reach {self._config.base_url}: {exc}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(code=1) from exc
        return response.json()

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
