"""Routing orchestration service."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from ...config import Settings
from ...models.domain import BulkRequest, Destination
from ...models.errors import EngineFailureError, RoutingError
from ...schemas.routing import RouteRequestBody
from ..outputs.gpx import route_outcome_to_gpx
from ..outputs.route_formatter import ResponseInfo, errors_to_json, errors_to_xml, route_outcome_to_json
from .bulk import BulkParameters, build_shared_hints, bulk_response_json, route_destinations, validate_bulk
from .engine import DATA_DATE_PROPERTY, IdentityRequestTransformer, RequestTransformer, RoutingEngine
from .models import RouteOutcome, RoutingRequest
from .profiles import ProfileResolver, resolve_profile
from .request_builder import (
    RouteParameters,
    build_bulk_leg_request,
    build_request_from_body,
    build_request_from_query,
    is_xml_type,
    remove_legacy_parameters,
)

logger = logging.getLogger(__name__)

JSON_MEDIA_TYPE = "application/json"
GPX_MEDIA_TYPE = "application/gpx+xml"
XML_MEDIA_TYPE = "application/xml"
GPX_ATTACHMENT = "attachment;filename=GraphHopper.gpx"
TOOK_HEADER = "X-GH-Took"


@dataclass(slots=True)
class CallerInfo:
    remote_address: str = ""
    user_agent: str = ""
    locale: str = ""


@dataclass(slots=True)
class RouteResponse:
    """Transport-neutral response: the API layer only wraps it."""

    status_code: int
    content: Any
    media_type: str = JSON_MEDIA_TYPE
    headers: dict[str, str] = field(default_factory=dict)


def invoke_engine(engine: RoutingEngine, request: RoutingRequest) -> RouteOutcome:
    """Hand the request to the engine exactly once and return its outcome.

    Typed routing errors raised by the engine become failure outcomes with
    their classification intact. Anything else is reported as an engine failure.
    """
    try:
        outcome = engine.route(request)
    except RoutingError as exc:
        return RouteOutcome.failure(exc)
    except Exception as exc:
        logger.exception(f"Routing engine raised an unexpected error: {exc}")
        return RouteOutcome.failure(EngineFailureError(str(exc) or type(exc).__name__))
    if not outcome.has_errors and not outcome.paths:
        return RouteOutcome.failure(EngineFailureError("Engine returned neither paths nor errors"))
    return outcome


def error_media_type(output_type: str | None) -> str:
    return GPX_MEDIA_TYPE if (output_type or "").lower() == "gpx" else XML_MEDIA_TYPE


def error_response(
    errors: Sequence[BaseException],
    *,
    output_type: str | None = None,
    creator: str = "GraphHopper",
    status_code: int = 400,
) -> RouteResponse:
    if is_xml_type(output_type):
        return RouteResponse(status_code, errors_to_xml(errors, creator=creator), error_media_type(output_type))
    return RouteResponse(status_code, errors_to_json(errors))


class RouteService:
    """Runs routing requests through build, transform, profile resolution and the engine."""

    def __init__(
        self,
        engine: RoutingEngine,
        resolver: ProfileResolver,
        settings: Settings,
        transformer: RequestTransformer | None = None,
    ) -> None:
        self.engine = engine
        self.resolver = resolver
        self.settings = settings
        self.transformer = transformer or IdentityRequestTransformer()
        self.data_date = engine.get_properties().get(DATA_DATE_PROPERTY)

    def _response_info(self, took_ms: float) -> ResponseInfo:
        return ResponseInfo(
            copyrights=tuple(self.settings.copyrights),
            took=round(took_ms),
            road_data_timestamp=self.data_date,
        )

    def prepare(self, request: RoutingRequest) -> RoutingRequest:
        """Transform, resolve the profile and strip legacy hints."""
        request = self.transformer.transform_request(request)
        resolve_profile(request, self.resolver)
        remove_legacy_parameters(request.hints)
        return request

    def dispatch(self, request: RoutingRequest) -> RouteOutcome:
        return invoke_engine(self.engine, self.prepare(request))

    def _log_request(
        self,
        caller: CallerInfo,
        request: RoutingRequest | None,
        outcome: RouteOutcome,
        took_ms: float,
    ) -> None:
        points = len(request.points) if request else 0
        algorithm = request.algorithm if request else ""
        profile = request.profile if request else ""
        summary = (
            f"{caller.remote_address} {caller.locale} {caller.user_agent} points: {points}, "
            f"took: {took_ms:.1f}ms, algo: {algorithm}, profile: {profile}"
        )
        if outcome.has_errors:
            logger.info(f"{summary}, errors: {[str(error) for error in outcome.errors]}")
            return
        best = outcome.best
        logger.info(
            f"{summary}, alternatives: {len(outcome.paths)}, distance0: {best.distance}, "
            f"weight0: {best.weight}, time0: {round(best.time / 60000.0)}min, points0: {len(best.points)}"
        )

    def route_query(
        self,
        params: RouteParameters,
        raw: Mapping[str, Sequence[str]],
        caller: CallerInfo | None = None,
    ) -> RouteResponse:
        """Answer ``GET /route``: JSON by default, GPX when ``type`` asks for it."""
        caller = caller or CallerInfo()
        started = time.perf_counter()
        request: RoutingRequest | None = None
        try:
            request = build_request_from_query(
                params,
                raw,
                snap_preventions_default=self.settings.snap_preventions_default,
                has_elevation=self.settings.has_elevation,
            )
            request = self.prepare(request)
            outcome = invoke_engine(self.engine, request)
        except (RoutingError, ValueError) as exc:
            outcome = RouteOutcome.failure(exc)
        except Exception as exc:
            logger.exception(f"Routing request failed before reaching the engine: {exc}")
            outcome = RouteOutcome.failure(exc)
        took_ms = (time.perf_counter() - started) * 1000.0
        self._log_request(caller, request, outcome, took_ms)

        creator = self.settings.gpx_creator
        if outcome.has_errors:
            return error_response(outcome.errors, output_type=params.type, creator=creator)

        headers = {TOOK_HEADER: str(round(took_ms))}
        if params.write_gpx:
            try:
                document = route_outcome_to_gpx(
                    outcome,
                    time_string=params.gpx_millis,
                    track_name=params.gpx_trackname,
                    include_elevation=params.elevation,
                    with_route=params.gpx_route,
                    with_track=params.gpx_track,
                    with_waypoints=params.gpx_waypoints,
                    version=self.settings.version,
                    creator=creator,
                )
            except ValueError as exc:
                return error_response([exc], output_type=params.type, creator=creator)
            headers["Content-Disposition"] = GPX_ATTACHMENT
            return RouteResponse(200, document, GPX_MEDIA_TYPE, headers)

        try:
            body = route_outcome_to_json(
                outcome,
                self._response_info(took_ms),
                instructions=params.instructions,
                calc_points=params.calc_points,
                enable_elevation=params.elevation,
                points_encoded=params.points_encoded,
                points_encoded_multiplier=params.points_encoded_multiplier,
            )
        except ValueError as exc:
            return error_response([exc])
        return RouteResponse(200, body, headers=headers)

    def route_body(self, body: RouteRequestBody, caller: CallerInfo | None = None) -> RouteResponse:
        """Answer ``POST /route``. Output options are read back from the hints."""
        caller = caller or CallerInfo()
        started = time.perf_counter()
        request: RoutingRequest | None = None
        try:
            request = build_request_from_body(
                body,
                snap_preventions_default=self.settings.snap_preventions_default,
                has_elevation=self.settings.has_elevation,
            )
            request = self.prepare(request)
            outcome = invoke_engine(self.engine, request)
        except (RoutingError, ValueError) as exc:
            outcome = RouteOutcome.failure(exc)
        except Exception as exc:
            logger.exception(f"Routing request failed before reaching the engine: {exc}")
            outcome = RouteOutcome.failure(exc)
        took_ms = (time.perf_counter() - started) * 1000.0
        self._log_request(caller, request, outcome, took_ms)

        if outcome.has_errors:
            return error_response(outcome.errors)

        hints = request.hints
        try:
            payload = route_outcome_to_json(
                outcome,
                self._response_info(took_ms),
                instructions=hints.get_bool("instructions", True),
                calc_points=hints.get_bool("calc_points", True),
                enable_elevation=hints.get_bool("elevation", False),
                points_encoded=hints.get_bool("points_encoded", True),
                points_encoded_multiplier=hints.get_float("points_encoded_multiplier", 1e5),
            )
        except ValueError as exc:
            return error_response([exc])
        return RouteResponse(200, payload, headers={TOOK_HEADER: str(round(took_ms))})

    def route_bulk(
        self,
        bulk: BulkRequest,
        params: BulkParameters,
        raw: Mapping[str, Sequence[str]],
    ) -> RouteResponse:
        """Answer ``POST /route/bulk``: one result per destination, always in input order."""
        started = time.perf_counter()
        try:
            validate_bulk(bulk)
        except RoutingError as exc:
            return error_response([exc], output_type=params.type, creator=self.settings.gpx_creator)

        shared_hints = build_shared_hints(params, raw)
        origin = bulk.origin

        def route_leg(destination: Destination) -> RouteOutcome:
            request = build_bulk_leg_request(
                destination.point,
                origin,
                shared_hints=shared_hints,
                profile=params.profile,
                algorithm=params.algorithm,
                locale=params.locale,
                path_details=params.path_details,
                snap_preventions=self.settings.snap_preventions_default,
            )
            return self.dispatch(request)

        max_parallel = self.settings.bulk_max_parallel if self.engine.thread_safe else 1
        entries = route_destinations(bulk.destinations, route_leg, max_parallel=max_parallel)
        took_ms = (time.perf_counter() - started) * 1000.0
        failed = sum(1 for entry in entries if not entry.ok)
        logger.info(
            f"bulk destinations: {len(entries)}, failed: {failed}, took: {took_ms:.1f}ms, "
            f"parallel: {max_parallel}"
        )
        return RouteResponse(
            200,
            bulk_response_json(entries, self.settings.bulk_copyrights),
            headers={TOOK_HEADER: str(round(took_ms))},
        )

    def info(self) -> dict[str, Any]:
        return {
            "version": self.settings.version,
            "profiles": [{"name": name} for name in self.settings.profiles],
            "elevation": self.settings.has_elevation,
            "data_date": self.data_date,
        }
