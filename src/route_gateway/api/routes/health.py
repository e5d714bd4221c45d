"""Health and service metadata endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ...services.routing.osrm_engine import check_health
from ...services.routing.service import RouteService
from ..dependencies import get_route_service

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/engine", status_code=status.HTTP_200_OK)
def health_engine(service: RouteService = Depends(get_route_service)) -> dict:
    """Check that the routing engine answers a sample route."""
    try:
        return {"service": "engine", "healthy": check_health(service.engine)}
    except Exception as e:
        return {"service": "engine", "healthy": False, "error": str(e)}


@router.get("/info", status_code=status.HTTP_200_OK)
def info(service: RouteService = Depends(get_route_service)) -> dict:
    return service.info()
