from __future__ import annotations

import math
from urllib.parse import quote

from models.stations import Coordinates

EARTH_RADIUS_KM = 6371.0
_DIRECTIONS_URL = "https://www.google.com/maps/dir/?api=1&destination={destination}"


def distance_km(origin: Coordinates, target: Coordinates) -> float:
    """Great-circle distance between two points in kilometres."""
    lat1 = math.radians(origin.latitude)
    lat2 = math.radians(target.latitude)
    dlat = lat2 - lat1
    dlon = math.radians(target.longitude - origin.longitude)
    a = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


def format_distance(distance: float) -> str:
    if distance < 1:
        return f"{distance * 1000:.0f} m"
    return f"{distance:.2f} km"


def directions_url(address: str) -> str:
    return _DIRECTIONS_URL.format(destination=quote(address, safe=""))
