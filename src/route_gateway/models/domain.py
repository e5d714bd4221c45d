"""Domain models for points and bulk routing input."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List

from .errors import InvalidArgumentError


@dataclass(frozen=True, slots=True)
class GeoPoint:
    """A WGS84 coordinate. Requests use (lat, lon); GeoJSON output flips it to [lon, lat]."""

    lat: float
    lon: float

    def __post_init__(self) -> None:
        if not (math.isfinite(self.lat) and math.isfinite(self.lon)):
            raise InvalidArgumentError(f"Point coordinates must be finite numbers: {self.lat},{self.lon}")
        if not (-90.0 <= self.lat <= 90.0 and -180.0 <= self.lon <= 180.0):
            raise InvalidArgumentError(f"Point is out of range: {self.lat},{self.lon}")

    @classmethod
    def parse(cls, value: str) -> "GeoPoint":
        """Parse the query-string form ``"lat,lon"``."""
        parts = [part.strip() for part in value.split(",")]
        if len(parts) < 2:
            raise InvalidArgumentError(f"Cannot parse point '{value}'")
        try:
            lat, lon = float(parts[0]), float(parts[1])
        except ValueError as exc:
            raise InvalidArgumentError(f"Cannot parse point '{value}'") from exc
        return cls(lat=lat, lon=lon)

    def __str__(self) -> str:
        return f"{self.lat},{self.lon}"


@dataclass(frozen=True, slots=True)
class Destination:
    id: str
    point: GeoPoint


@dataclass(slots=True)
class BulkRequest:
    """One origin routed against many destinations."""

    origin: GeoPoint | None
    destinations: List[Destination]
