"""Routing engine backed by an OSRM ``route/v1`` HTTP service."""

from __future__ import annotations

import logging
import math
import re
from typing import Any, Mapping, Sequence

import httpx

from ...config import settings
from ...models.domain import GeoPoint
from ...models.errors import (
    EngineFailureError,
    InvalidArgumentError,
    PointNotFoundError,
    RoutingError,
)
from .engine import DATA_DATE_PROPERTY, RoutingEngine
from .models import Instruction, ResponsePath, RouteOutcome, RoutingRequest

logger = logging.getLogger(__name__)

DEFAULT_PROFILE_PATHS = {"car": "driving", "bike": "cycling", "foot": "walking"}
SUPPORTED_PATH_DETAILS = ("distance", "time", "average_speed")
ALTERNATIVE_ROUTE = "alternative_route"

# Instruction signs as understood by GraphHopper-compatible clients.
SIGN_U_TURN = -98
SIGN_KEEP_LEFT = -7
SIGN_TURN_SHARP_LEFT = -3
SIGN_TURN_LEFT = -2
SIGN_TURN_SLIGHT_LEFT = -1
SIGN_CONTINUE = 0
SIGN_TURN_SLIGHT_RIGHT = 1
SIGN_TURN_RIGHT = 2
SIGN_TURN_SHARP_RIGHT = 3
SIGN_FINISH = 4
SIGN_REACHED_VIA = 5
SIGN_ROUNDABOUT = 6
SIGN_KEEP_RIGHT = 7

_MODIFIER_SIGNS = {
    "uturn": SIGN_U_TURN,
    "sharp left": SIGN_TURN_SHARP_LEFT,
    "left": SIGN_TURN_LEFT,
    "slight left": SIGN_TURN_SLIGHT_LEFT,
    "straight": SIGN_CONTINUE,
    "slight right": SIGN_TURN_SLIGHT_RIGHT,
    "right": SIGN_TURN_RIGHT,
    "sharp right": SIGN_TURN_SHARP_RIGHT,
}
_CURBSIDE_APPROACHES = {"right": "curb", "left": "curb", "any": "unrestricted", "": "unrestricted"}
_INVALID_INPUT_CODES = {"InvalidUrl", "InvalidService", "InvalidVersion", "InvalidOptions", "InvalidQuery", "InvalidValue", "TooBig"}
_COORDINATE_INDEX = re.compile(r"coordinate (\d+)")


def _step_sign(maneuver: Mapping[str, Any], is_last_leg: bool) -> int:
    kind = maneuver.get("type", "")
    modifier = maneuver.get("modifier", "straight")
    if kind == "arrive":
        return SIGN_FINISH if is_last_leg else SIGN_REACHED_VIA
    if kind == "depart":
        return SIGN_CONTINUE
    if kind in ("roundabout", "rotary", "roundabout turn", "exit roundabout", "exit rotary"):
        return SIGN_ROUNDABOUT
    if kind == "fork":
        return SIGN_KEEP_LEFT if "left" in modifier else SIGN_KEEP_RIGHT
    return _MODIFIER_SIGNS.get(modifier, SIGN_CONTINUE)


def _step_text(step: Mapping[str, Any], sign: int, leg_index: int) -> str:
    maneuver = step.get("maneuver", {})
    name = step.get("name") or step.get("ref") or ""
    onto = f" onto {name}" if name else ""
    if sign == SIGN_FINISH:
        return "Arrive at destination"
    if sign == SIGN_REACHED_VIA:
        return f"Waypoint {leg_index + 1}"
    if sign == SIGN_ROUNDABOUT:
        exit_number = maneuver.get("exit")
        exit_text = f", take exit {exit_number}" if exit_number else ""
        return f"At roundabout{exit_text}{onto}"
    if maneuver.get("type") == "depart" or sign == SIGN_CONTINUE:
        return f"Continue{onto}"
    if sign == SIGN_U_TURN:
        return f"Make a U-turn{onto}"
    if sign in (SIGN_KEEP_LEFT, SIGN_KEEP_RIGHT):
        side = "left" if sign == SIGN_KEEP_LEFT else "right"
        return f"Keep {side}{onto}"
    modifier = maneuver.get("modifier")
    return f"Turn {modifier}{onto}" if modifier else f"Turn{onto}"


def _merge_detail(values: Sequence[Any]) -> list[list[Any]]:
    """Collapse per-segment values into ``[from, to, value]`` runs."""
    merged: list[list[Any]] = []
    for index, value in enumerate(values):
        if merged and merged[-1][2] == value:
            merged[-1][1] = index + 1
        else:
            merged.append([index, index + 1, value])
    return merged


class OSRMEngine:
    """Translate canonical routing requests into OSRM route calls.

    Snap preventions and point hints have no OSRM counterpart and are ignored.
    """

    thread_safe = True

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        profile_paths: Mapping[str, str] | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.engine_base_url or "").rstrip("/")
        if not self.base_url:
            raise ValueError("Routing engine base URL is not configured.")
        self.timeout = timeout if timeout is not None else settings.engine_timeout_seconds
        self.profile_paths = dict(DEFAULT_PROFILE_PATHS if profile_paths is None else profile_paths)
        self.thread_safe = settings.engine_thread_safe
        self._transport = transport

    def _get_client(self) -> httpx.Client:
        # One client per call keeps concurrent bulk legs independent
        return httpx.Client(
            timeout=httpx.Timeout(self.timeout, connect=10.0),
            transport=self._transport,
        )

    def _profile_path(self, profile: str) -> str:
        return self.profile_paths.get(profile, profile or "driving")

    def build_params(self, request: RoutingRequest) -> dict[str, str]:
        hints = request.hints
        calc_points = hints.get_bool("calc_points", True)
        params = {
            "overview": "full" if calc_points else "false",
            "geometries": "geojson",
            "steps": "true" if hints.get_bool("instructions", True) else "false",
            "annotations": "true" if request.path_details else "false",
        }
        if request.algorithm == ALTERNATIVE_ROUTE:
            max_paths = int(hints.get_float("alternative_route.max_paths", 2))
            params["alternatives"] = str(max(max_paths - 1, 1))
        if request.headings:
            params["bearings"] = ";".join(
                "" if math.isnan(heading) else f"{int(round(heading)) % 360},90" for heading in request.headings
            )
        if request.curbsides:
            params["approaches"] = ";".join(
                _CURBSIDE_APPROACHES.get(curbside.lower(), "unrestricted") for curbside in request.curbsides
            )
        return params

    def route(self, request: RoutingRequest) -> RouteOutcome:
        unknown = [name for name in request.path_details if name not in SUPPORTED_PATH_DETAILS]
        if unknown:
            return RouteOutcome.failure(
                InvalidArgumentError(f"Cannot find the path details: {unknown}. Supported: {list(SUPPORTED_PATH_DETAILS)}")
            )
        if request.snap_preventions:
            logger.debug(f"Snap preventions {request.snap_preventions} are not supported by OSRM and are ignored")

        coordinates = ";".join(f"{point.lon},{point.lat}" for point in request.points)
        url = f"{self.base_url}/route/v1/{self._profile_path(request.profile)}/{coordinates}"
        client = self._get_client()
        try:
            response = client.get(url, params=self.build_params(request))
            try:
                data = response.json()
            except ValueError:
                response.raise_for_status()
                raise EngineFailureError("Routing engine returned a non-JSON response")
        except httpx.HTTPError as exc:
            logger.warning(f"Routing engine request failed: {exc}")
            return RouteOutcome.failure(EngineFailureError(f"Routing engine is not reachable: {exc}"))
        except RoutingError as exc:
            return RouteOutcome.failure(exc)
        finally:
            client.close()

        return self.parse_response(data, request)

    def parse_response(self, data: Mapping[str, Any], request: RoutingRequest) -> RouteOutcome:
        code = data.get("code", "")
        message = data.get("message") or code or "Unknown routing engine error"
        if code != "Ok":
            return RouteOutcome.failure(self._error_for(code, message))
        routes = data.get("routes") or []
        if not routes:
            return RouteOutcome.failure(EngineFailureError("Connection between locations not found"))

        snapped = [
            GeoPoint(lat=waypoint["location"][1], lon=waypoint["location"][0])
            for waypoint in data.get("waypoints", [])
            if waypoint.get("location")
        ]
        paths = [self._parse_route(route, request, snapped) for route in routes]
        debug: dict[str, Any] = {}
        if data.get("data_version"):
            debug["data_version"] = data["data_version"]
        return RouteOutcome(paths=paths, debug=debug)

    @staticmethod
    def _error_for(code: str, message: str) -> RoutingError:
        if code == "NoSegment":
            match = _COORDINATE_INDEX.search(message)
            return PointNotFoundError(
                f"Cannot find point: {message}", point_index=int(match.group(1)) if match else None
            )
        if code in _INVALID_INPUT_CODES:
            return InvalidArgumentError(message)
        if code == "NoRoute":
            return EngineFailureError(f"Connection between locations not found: {message}")
        return EngineFailureError(message)

    def _parse_route(
        self,
        route: Mapping[str, Any],
        request: RoutingRequest,
        snapped: list[GeoPoint],
    ) -> ResponsePath:
        geometry = route.get("geometry") or {}
        points = [GeoPoint(lat=coordinate[1], lon=coordinate[0]) for coordinate in geometry.get("coordinates", [])]
        legs = route.get("legs") or []
        instructions = self._parse_instructions(legs, len(points)) if request.hints.get_bool("instructions", True) else None
        return ResponsePath(
            distance=float(route.get("distance", 0.0)),
            time=int(round(float(route.get("duration", 0.0)) * 1000)),
            weight=float(route.get("weight", route.get("duration", 0.0))),
            points=points,
            instructions=instructions,
            details=self._parse_details(legs, request.path_details),
            snapped_waypoints=snapped,
        )

    @staticmethod
    def _parse_instructions(legs: Sequence[Mapping[str, Any]], point_count: int) -> list[Instruction]:
        instructions: list[Instruction] = []
        last_index = max(point_count - 1, 0)
        pointer = 0
        for leg_index, leg in enumerate(legs):
            is_last_leg = leg_index == len(legs) - 1
            for step in leg.get("steps", []):
                maneuver = step.get("maneuver", {})
                sign = _step_sign(maneuver, is_last_leg)
                if maneuver.get("type") == "arrive":
                    interval = (min(pointer, last_index), min(pointer, last_index))
                else:
                    length = max(len((step.get("geometry") or {}).get("coordinates", [])) - 1, 0)
                    interval = (min(pointer, last_index), min(pointer + length, last_index))
                    pointer += length
                instructions.append(
                    Instruction(
                        sign=sign,
                        text=_step_text(step, sign, leg_index),
                        distance=float(step.get("distance", 0.0)),
                        time=int(round(float(step.get("duration", 0.0)) * 1000)),
                        interval=interval,
                        street_name=step.get("name", ""),
                        heading=maneuver.get("bearing_after") if maneuver.get("type") != "arrive" else None,
                    )
                )
        return instructions

    @staticmethod
    def _parse_details(legs: Sequence[Mapping[str, Any]], names: Sequence[str]) -> dict[str, list[list[Any]]]:
        if not names:
            return {}
        distances: list[float] = []
        durations: list[float] = []
        speeds: list[float] = []
        for leg in legs:
            annotation = leg.get("annotation") or {}
            distances.extend(annotation.get("distance", []))
            durations.extend(annotation.get("duration", []))
            speeds.extend(annotation.get("speed", []))
        series = {
            "distance": [round(value, 3) for value in distances],
            "time": [int(round(value * 1000)) for value in durations],
            "average_speed": [round(value * 3.6, 1) for value in speeds],
        }
        return {name: _merge_detail(series[name]) for name in names}

    def get_properties(self) -> dict[str, str]:
        """Read the data version once; OSRM has no dedicated metadata endpoint."""
        profile = self._profile_path(settings.profiles[0] if settings.profiles else "car")
        url = f"{self.base_url}/nearest/v1/{profile}/0,0"
        client = self._get_client()
        try:
            response = client.get(url, params={"number": "1"})
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning(f"Could not read routing engine properties: {exc}")
            return {}
        finally:
            client.close()
        version = data.get("data_version") if isinstance(data, dict) else None
        return {DATA_DATE_PROPERTY: str(version)} if version else {}


def check_health(engine: RoutingEngine) -> bool:
    """Route between two Berlin coordinates to see if the engine answers."""
    sample = RoutingRequest(points=[GeoPoint(52.517037, 13.388860), GeoPoint(52.496891, 13.385983)])
    sample.hints.put("instructions", False)
    outcome = engine.route(sample)
    return not outcome.has_errors
