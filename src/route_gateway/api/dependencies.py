"""Request-scoped access to the routing service."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from ..config import settings
from ..services.routing.osrm_engine import OSRMEngine
from ..services.routing.profiles import DefaultProfileResolver
from ..services.routing.service import CallerInfo, RouteService


def build_route_service() -> RouteService:
    engine = OSRMEngine()
    return RouteService(engine, DefaultProfileResolver(settings.profiles), settings)


def get_route_service(request: Request) -> RouteService:
    """Return the app's service, creating the OSRM-backed default on first use."""
    service = getattr(request.app.state, "route_service", None)
    if service is None:
        if not settings.engine_base_url:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Routing engine is not configured. Set RG_ENGINE_BASE_URL.",
            )
        service = build_route_service()
        request.app.state.route_service = service
    return service


def get_caller(request: Request) -> CallerInfo:
    return CallerInfo(
        remote_address=request.client.host if request.client else "",
        user_agent=request.headers.get("user-agent", ""),
        locale=request.headers.get("accept-language", ""),
    )
