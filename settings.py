from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_STATION_API_URL_ENV = "STATION_API_BASE_URL"
_STATION_API_KEY_ENV = "STATION_API_KEY"
_GEOCODER_URL_ENV = "GEOCODER_BASE_URL"
_GEOCODER_USER_AGENT_ENV = "GEOCODER_USER_AGENT"
_PREFERENCES_PATH_ENV = "PREFERENCES_PATH"
_REFRESH_INTERVAL_ENV = "REFRESH_INTERVAL_SECONDS"
_HTTP_TIMEOUT_ENV = "HTTP_TIMEOUT_SECONDS"
_LOCATION_ENABLED_ENV = "LOCATION_ENABLED"
_LOG_LEVEL_ENV = "LOG_LEVEL"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    station_api_url: str
    station_api_key: str
    geocoder_url: str
    geocoder_user_agent: str
    preferences_path: Optional[str]
    refresh_interval: float
    http_timeout: float
    location_enabled: bool
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_positive_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip().lower()
    if candidate in _TRUTHY:
        return True
    if candidate in _FALSY:
        return False
    return default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        station_api_url=_read_str_env(_STATION_API_URL_ENV, "http://localhost:8080/stations"),
        station_api_key=_read_str_env(_STATION_API_KEY_ENV, ""),
        geocoder_url=_read_str_env(_GEOCODER_URL_ENV, "https://nominatim.openstreetmap.org"),
        geocoder_user_agent=_read_str_env(_GEOCODER_USER_AGENT_ENV, "charging-station-finder/0.1"),
        preferences_path=_read_optional_env(_PREFERENCES_PATH_ENV, "./tmp/preferences.json"),
        refresh_interval=_read_positive_float(_REFRESH_INTERVAL_ENV, 60.0),
        http_timeout=_read_positive_float(_HTTP_TIMEOUT_ENV, 10.0),
        location_enabled=_read_bool(_LOCATION_ENABLED_ENV, True),
        log_level=_read_log_level("INFO"),
    )
