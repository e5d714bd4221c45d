"""Routing domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional

from ...models.domain import GeoPoint
from .hints import Hints


@dataclass(slots=True)
class RoutingRequest:
    """Canonical request handed to the routing engine.

    Built once per inbound call. Only ``profile`` is reassigned afterwards,
    by the profile resolution step.
    """

    points: List[GeoPoint]
    profile: str = ""
    algorithm: str = ""
    locale: str = "en"
    headings: List[float] = field(default_factory=list)
    point_hints: List[str] = field(default_factory=list)
    curbsides: List[str] = field(default_factory=list)
    # None means "not specified"; an empty list means "no restrictions".
    snap_preventions: Optional[List[str]] = None
    path_details: List[str] = field(default_factory=list)
    hints: Hints = field(default_factory=Hints)
    custom_model: Optional[dict[str, Any]] = None

    def has_snap_preventions(self) -> bool:
        return self.snap_preventions is not None


@dataclass(slots=True)
class Instruction:
    sign: int
    text: str
    distance: float
    time: int
    interval: tuple[int, int]
    street_name: str = ""
    heading: Optional[float] = None


@dataclass(slots=True)
class ResponsePath:
    distance: float
    time: int
    weight: float
    points: List[GeoPoint]
    elevations: List[float] = field(default_factory=list)
    instructions: Optional[List[Instruction]] = None
    details: dict[str, list[list[Any]]] = field(default_factory=dict)
    snapped_waypoints: List[GeoPoint] = field(default_factory=list)
    ascend: float = 0.0
    descend: float = 0.0

    def has_elevation(self) -> bool:
        return bool(self.elevations) and len(self.elevations) == len(self.points)


@dataclass(slots=True)
class RouteOutcome:
    """Either ordered paths (best first) or ordered errors, never both."""

    paths: List[ResponsePath] = field(default_factory=list)
    errors: List[Exception] = field(default_factory=list)
    debug: dict[str, Any] = field(default_factory=dict)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def best(self) -> ResponsePath:
        if not self.paths:
            raise ValueError("Outcome has no paths")
        return self.paths[0]

    @classmethod
    def failure(cls, *errors: Exception) -> "RouteOutcome":
        return cls(errors=list(errors))


@dataclass(slots=True)
class BulkResultEntry:
    id: str
    distance: float | None = None
    time: int | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_json(self) -> dict[str, Any]:
        if self.error is not None:
            return {"id": self.id, "error": self.error}
        return {"id": self.id, "distance": self.distance, "time": self.time}
