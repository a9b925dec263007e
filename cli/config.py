from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_BASE_URL = "http://localhost:8000"
# A manual refresh waits on the upstream feed, so allow more than its own timeout.
DEFAULT_TIMEOUT = 30.0

_BASE_URL_ENV = "FINDER_API_URL"
_TIMEOUT_ENV = "CLI_TIMEOUT"


@dataclass(frozen=True)
class CLIConfig:
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT


def normalize_base_url(url: str) -> str:
    """Strip trailing slashes and assume plain HTTP when no scheme is given."""
    cleaned = url.strip().rstrip("/")
    if "://" not in cleaned:
        cleaned = f"http://{cleaned}"
    return cleaned


def _timeout_from_env() -> float:
    raw = (os.getenv(_TIMEOUT_ENV) or "").strip()
    try:
        seconds = float(raw)
    except ValueError:
        return DEFAULT_TIMEOUT
    return seconds if seconds > 0 else DEFAULT_TIMEOUT


def load_config(
    base_url: Optional[str] = None,
    timeout: Optional[float] = None,
) -> CLIConfig:
    url = base_url or os.getenv(_BASE_URL_ENV) or DEFAULT_BASE_URL
    return CLIConfig(
        base_url=normalize_base_url(url),
        timeout=timeout if timeout is not None else _timeout_from_env(),
    )
