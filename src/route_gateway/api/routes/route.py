"""Routing endpoints."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, Response

from ...schemas.routing import BulkRouteRequestBody, BulkRouteResponse, RouteRequestBody
from ...services.routing.bulk import DEFAULT_BULK_PROFILE, BulkParameters
from ...services.routing.hints import group_query_params
from ...services.routing.request_builder import DEFAULT_WAY_POINT_MAX_DISTANCE, RouteParameters
from ...services.routing.service import CallerInfo, RouteResponse, RouteService
from ..dependencies import get_caller, get_route_service

router = APIRouter(tags=["route"])


def _to_response(result: RouteResponse) -> Response:
    if isinstance(result.content, str):
        return Response(
            content=result.content,
            status_code=result.status_code,
            media_type=result.media_type,
            headers=result.headers,
        )
    return JSONResponse(content=result.content, status_code=result.status_code, headers=result.headers)


@router.get("/route")
def route_get(
    request: Request,
    point: list[str] = Query(default=[]),
    profile: Optional[str] = None,
    algorithm: str = "",
    locale: str = "en",
    instructions: bool = True,
    calc_points: bool = True,
    elevation: bool = False,
    heading: list[float] = Query(default=[]),
    point_hint: list[str] = Query(default=[]),
    curbside: list[str] = Query(default=[]),
    snap_prevention: list[str] = Query(default=[]),
    details: list[str] = Query(default=[]),
    way_point_max_distance: float = DEFAULT_WAY_POINT_MAX_DISTANCE,
    elevation_way_point_max_distance: Optional[float] = None,
    output_type: str = Query(default="json", alias="type"),
    points_encoded: bool = True,
    points_encoded_multiplier: float = 1e5,
    gpx_route: bool = Query(default=True, alias="gpx.route"),
    gpx_track: bool = Query(default=True, alias="gpx.track"),
    gpx_waypoints: bool = Query(default=False, alias="gpx.waypoints"),
    gpx_trackname: str = Query(default="GraphHopper Track", alias="gpx.trackname"),
    gpx_millis: Optional[str] = Query(default=None, alias="gpx.millis"),
    service: RouteService = Depends(get_route_service),
    caller: CallerInfo = Depends(get_caller),
) -> Response:
    params = RouteParameters(
        points=point,
        profile=profile,
        algorithm=algorithm,
        locale=locale,
        instructions=instructions,
        calc_points=calc_points,
        elevation=elevation,
        headings=heading,
        point_hints=point_hint,
        curbsides=curbside,
        snap_preventions=snap_prevention,
        path_details=details,
        way_point_max_distance=way_point_max_distance,
        elevation_way_point_max_distance=elevation_way_point_max_distance,
        type=output_type,
        points_encoded=points_encoded,
        points_encoded_multiplier=points_encoded_multiplier,
        gpx_route=gpx_route,
        gpx_track=gpx_track,
        gpx_waypoints=gpx_waypoints,
        gpx_trackname=gpx_trackname,
        gpx_millis=gpx_millis,
    )
    raw = group_query_params(request.query_params.multi_items())
    return _to_response(service.route_query(params, raw, caller))


@router.post("/route")
def route_post(
    payload: RouteRequestBody,
    service: RouteService = Depends(get_route_service),
    caller: CallerInfo = Depends(get_caller),
) -> Response:
    return _to_response(service.route_body(payload, caller))


@router.post("/route/bulk", response_model=BulkRouteResponse)
def route_bulk(
    request: Request,
    payload: BulkRouteRequestBody,
    profile: str = DEFAULT_BULK_PROFILE,
    algorithm: str = "",
    locale: str = "en",
    instructions: bool = True,
    calc_points: bool = True,
    way_point_max_distance: float = DEFAULT_WAY_POINT_MAX_DISTANCE,
    details: list[str] = Query(default=[]),
    output_type: str = Query(default="json", alias="type"),
    service: RouteService = Depends(get_route_service),
) -> Response:
    params = BulkParameters(
        profile=profile,
        algorithm=algorithm,
        locale=locale,
        instructions=instructions,
        calc_points=calc_points,
        way_point_max_distance=way_point_max_distance,
        path_details=details,
        type=output_type,
    )
    raw = group_query_params(request.query_params.multi_items())
    return _to_response(service.route_bulk(payload.to_domain(), params, raw))
