"""Assemble canonical routing requests from query parameters or JSON bodies."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping, Sequence

from ...models.domain import GeoPoint
from ...models.errors import InvalidArgumentError
from ...schemas.routing import RouteRequestBody
from .hints import Hints, init_hints
from .models import RoutingRequest

logger = logging.getLogger(__name__)

CALC_POINTS = "calc_points"
INSTRUCTIONS = "instructions"
WAY_POINT_MAX_DISTANCE = "way_point_max_distance"
ELEVATION_WAY_POINT_MAX_DISTANCE = "elevation_way_point_max_distance"
SNAP_PREVENTION = "snap_prevention"

DEFAULT_WAY_POINT_MAX_DISTANCE = 0.5

# Query keys that become typed request fields and therefore never double as hints.
STRUCTURAL_QUERY_KEYS = (
    "point",
    "profile",
    "type",
    "algorithm",
    "locale",
    "heading",
    "point_hint",
    "curbside",
    SNAP_PREVENTION,
    "details",
    "gpx.route",
    "gpx.track",
    "gpx.waypoints",
    "gpx.trackname",
    "gpx.millis",
)

XML_TYPES = ("gpx", "xml")

# Only used to pick a profile; the engine must never see them.
LEGACY_HINT_KEYS = ("weighting", "vehicle", "edge_based", "turn_costs")


def is_xml_type(output_type: str | None) -> bool:
    return (output_type or "").lower() in XML_TYPES


@dataclass(slots=True)
class RouteParameters:
    """Typed view of the ``GET /route`` query string."""

    points: list[str] = field(default_factory=list)
    profile: str | None = None
    algorithm: str = ""
    locale: str = "en"
    instructions: bool = True
    calc_points: bool = True
    elevation: bool = False
    headings: list[float] = field(default_factory=list)
    point_hints: list[str] = field(default_factory=list)
    curbsides: list[str] = field(default_factory=list)
    snap_preventions: list[str] = field(default_factory=list)
    path_details: list[str] = field(default_factory=list)
    way_point_max_distance: float = DEFAULT_WAY_POINT_MAX_DISTANCE
    elevation_way_point_max_distance: float | None = None
    type: str = "json"
    points_encoded: bool = True
    points_encoded_multiplier: float = 1e5
    gpx_route: bool = True
    gpx_track: bool = True
    gpx_waypoints: bool = False
    gpx_trackname: str = "GraphHopper Track"
    gpx_millis: str | None = None

    @property
    def write_gpx(self) -> bool:
        return is_xml_type(self.type)


def resolve_snap_preventions(
    present: bool,
    values: Sequence[str] | None,
    default: Sequence[str],
) -> list[str]:
    """Absent -> configured default; a single empty value -> no restrictions; else verbatim."""
    if not present:
        return list(default)
    values = list(values or [])
    if len(values) == 1 and values[0] == "":
        return []
    return values


def remove_legacy_parameters(hints: Hints) -> None:
    for key in LEGACY_HINT_KEYS:
        hints.remove(key)


def ensure_elevation_supported(requested: bool, has_elevation: bool) -> None:
    if requested and not has_elevation:
        raise InvalidArgumentError("Elevation not supported!")


def parse_points(values: Sequence[str]) -> list[GeoPoint]:
    return [GeoPoint.parse(value) for value in values]


def _check_aligned(name: str, values: Sequence[object], points: Sequence[GeoPoint]) -> None:
    if values and len(values) != len(points):
        raise InvalidArgumentError(
            f"If you pass {name}, you need to pass exactly one {name} for every point, "
            f"empty {name}s will be ignored"
        )


def _validate(request: RoutingRequest) -> RoutingRequest:
    if not request.points:
        raise InvalidArgumentError("You have to pass at least one point")
    _check_aligned("heading", request.headings, request.points)
    _check_aligned("point_hint", request.point_hints, request.points)
    _check_aligned("curbside", request.curbsides, request.points)
    return request


def build_request_from_query(
    params: RouteParameters,
    raw: Mapping[str, Sequence[str]],
    *,
    snap_preventions_default: Sequence[str] = (),
    has_elevation: bool = False,
) -> RoutingRequest:
    """Build a request from ``GET /route``.

    ``raw`` is the full multi-valued query map: it feeds the hints and tells
    whether ``snap_prevention`` was sent at all.
    """
    ensure_elevation_supported(params.elevation, has_elevation)
    instructions = params.write_gpx or params.instructions

    hints = init_hints(raw, skip=STRUCTURAL_QUERY_KEYS)
    if params.elevation_way_point_max_distance is not None:
        hints.put(ELEVATION_WAY_POINT_MAX_DISTANCE, params.elevation_way_point_max_distance)
    hints.put(CALC_POINTS, params.calc_points)
    hints.put(INSTRUCTIONS, instructions)
    hints.put(WAY_POINT_MAX_DISTANCE, params.way_point_max_distance)

    request = RoutingRequest(
        points=parse_points(params.points),
        profile=params.profile or "",
        algorithm=params.algorithm or "",
        locale=params.locale or "en",
        headings=list(params.headings),
        point_hints=list(params.point_hints),
        curbsides=list(params.curbsides),
        snap_preventions=resolve_snap_preventions(
            SNAP_PREVENTION in raw, params.snap_preventions, snap_preventions_default
        ),
        path_details=list(params.path_details),
        hints=hints,
    )
    return _validate(request)


def _body_hints(extra: Mapping[str, object]) -> Hints:
    """Unknown body fields as hints.

    Lists of scalars are comma-joined. Objects, nested lists and nulls are dropped.
    """
    hints = Hints()
    for key, value in extra.items():
        nested = isinstance(value, list) and any(isinstance(item, (dict, list)) for item in value)
        if value is None or isinstance(value, dict) or nested:
            logger.debug(f"Ignoring non-scalar body field '{key}'")
            continue
        hints.put(key, value)
    return hints


def build_request_from_body(
    body: RouteRequestBody,
    *,
    snap_preventions_default: Sequence[str] = (),
    has_elevation: bool = False,
) -> RoutingRequest:
    """Build a request from a ``POST /route`` JSON body.

    Unknown body fields are hints. The same hint defaults as the query path
    are applied so both sources dispatch identically.
    """
    hints = _body_hints(body.model_extra or {})
    hints.put_default(CALC_POINTS, True)
    hints.put_default(INSTRUCTIONS, True)
    hints.put_default(WAY_POINT_MAX_DISTANCE, DEFAULT_WAY_POINT_MAX_DISTANCE)
    ensure_elevation_supported(hints.get_bool("elevation", False), has_elevation)

    request = RoutingRequest(
        points=[point.to_geo_point() for point in body.points],
        profile=body.profile or "",
        algorithm=body.algorithm or "",
        locale=body.locale or "en",
        headings=list(body.headings),
        point_hints=list(body.point_hints),
        curbsides=list(body.curbsides),
        snap_preventions=resolve_snap_preventions(
            body.snap_preventions is not None, body.snap_preventions, snap_preventions_default
        ),
        path_details=list(body.details),
        hints=hints,
        custom_model=body.custom_model,
    )
    return _validate(request)


def build_bulk_leg_request(
    destination: GeoPoint,
    origin: GeoPoint,
    *,
    shared_hints: Hints,
    profile: str,
    algorithm: str,
    locale: str,
    path_details: Sequence[str],
    snap_preventions: Sequence[str] = (),
) -> RoutingRequest:
    """One bulk sub-request. Points are ``[destination, origin]``, destination first."""
    return _validate(
        RoutingRequest(
            points=[destination, origin],
            profile=profile,
            algorithm=algorithm,
            locale=locale,
            snap_preventions=list(snap_preventions),
            path_details=list(path_details),
            hints=shared_hints.copy(),
        )
    )
