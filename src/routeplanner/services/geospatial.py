"""Geospatial helper functions."""

from __future__ import annotations

import math
from typing import Iterable

from ..errors import InvalidCoordinateError, InvalidDemandError
from ..models.domain import Stop

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def stop_distance_km(origin: Stop, destination: Stop) -> float:
    return haversine_km(origin.latitude, origin.longitude, destination.latitude, destination.longitude)


def planar_distance(x1: float, y1: float, x2: float, y2: float) -> float:
    """Euclidean distance in raw coordinate space (degrees), used for clustering."""

    return math.hypot(x2 - x1, y2 - y1)


def estimate_duration_sec(distance_km: float, speed_kmh: float) -> float:
    return distance_km / speed_kmh * 3600.0


def validate_stops(stops: Iterable[Stop]) -> None:
    """Raise for non-finite coordinates or a negative demand."""

    for stop in stops:
        if not (math.isfinite(stop.latitude) and math.isfinite(stop.longitude)):
            raise InvalidCoordinateError(stop.stop_id, stop.latitude, stop.longitude)
        if not math.isfinite(stop.demand) or stop.demand < 0:
            raise InvalidDemandError(f"Stop '{stop.stop_id}' has invalid demand {stop.demand}; must be >= 0.")
