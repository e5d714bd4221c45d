"""Geospatial helper functions."""

from __future__ import annotations

import math
from typing import Sequence

from ..models.domain import GeoPoint

EARTH_RADIUS_M = 6371000.0


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance in meters between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def bearing_degrees(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate the initial bearing from (lat1, lon1) to (lat2, lon2)."""

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_lambda = math.radians(lon2 - lon1)
    y = math.sin(delta_lambda) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(delta_lambda)
    bearing = math.degrees(math.atan2(y, x))
    return (bearing + 360) % 360


def bounding_box(points: Sequence[GeoPoint]) -> list[float]:
    """Return ``[min_lon, min_lat, max_lon, max_lat]`` as used by GeoJSON."""
    if not points:
        return []
    lons = [point.lon for point in points]
    lats = [point.lat for point in points]
    return [min(lons), min(lats), max(lons), max(lats)]


def _encode_number(value: int, out: list[str]) -> None:
    value = ~(value << 1) if value < 0 else value << 1
    while value >= 0x20:
        out.append(chr((0x20 | (value & 0x1F)) + 63))
        value >>= 5
    out.append(chr(value + 63))


def encode_polyline(
    points: Sequence[GeoPoint],
    elevations: Sequence[float] | None = None,
    multiplier: float = 1e5,
) -> str:
    """Encode points with the polyline algorithm.

    Coordinates are scaled by ``multiplier``; when elevations are given each
    point carries a third value in centimeters.
    """
    if multiplier < 1:
        raise ValueError("points_encoded_multiplier must be at least 1")
    with_elevation = elevations is not None and len(elevations) == len(points)
    out: list[str] = []
    prev_lat = prev_lon = prev_ele = 0
    for index, point in enumerate(points):
        lat = int(math.floor(point.lat * multiplier + 0.5))
        lon = int(math.floor(point.lon * multiplier + 0.5))
        _encode_number(lat - prev_lat, out)
        _encode_number(lon - prev_lon, out)
        prev_lat, prev_lon = lat, lon
        if with_elevation:
            ele = int(math.floor(elevations[index] * 100 + 0.5))
            _encode_number(ele - prev_ele, out)
            prev_ele = ele
    return "".join(out)
