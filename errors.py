"""Exception hierarchy shared by the parser, integrations and services."""

from __future__ import annotations


class StationFinderError(Exception):
    """Base class for recoverable station finder failures."""


class ParseError(StationFinderError, ValueError):
    """A station or connector payload is missing required data."""


class FetchError(StationFinderError):
    """The station feed could not be retrieved or had an unexpected shape."""


class GeocodingError(StationFinderError):
    """The address search endpoint rejected the request."""

    def __init__(self, reason: str, status_code: int | None = None) -> None:
        super().__init__(f"Error: {reason}, no geocoder connection")
        self.reason = reason
        self.status_code = status_code


class LocationPermissionError(StationFinderError, PermissionError):
    """The user position may not be used; callers fall back to address order."""
