"""FastAPI application entry point."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from .api.routes import health, route
from .config import settings
from .models.errors import InvalidArgumentError, RoutingError
from .services.routing.service import RouteResponse, RouteService, error_response

logger = logging.getLogger(__name__)


def _render(result: RouteResponse) -> Response:
    if isinstance(result.content, str):
        return Response(content=result.content, status_code=result.status_code, media_type=result.media_type)
    return JSONResponse(content=result.content, status_code=result.status_code)


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()) if item not in ("query", "body"))
        parts.append(f"{location}: {error.get('msg', 'invalid value')}" if location else error.get("msg", ""))
    return "; ".join(parts) or "Invalid request"


async def routing_error_handler(request: Request, exc: RoutingError) -> Response:
    return _render(
        error_response([exc], output_type=request.query_params.get("type"), creator=settings.gpx_creator)
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> Response:
    error = InvalidArgumentError(_validation_message(exc))
    return _render(
        error_response([error], output_type=request.query_params.get("type"), creator=settings.gpx_creator)
    )


async def unexpected_error_handler(request: Request, exc: Exception) -> Response:
    logging.exception(f"Unhandled error on {request.url.path}: {exc}")
    return _render(error_response([exc], status_code=500))


def create_app(route_service: RouteService | None = None) -> FastAPI:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = FastAPI(
        title=settings.app_name,
        version=settings.version,
        root_path="",
    )
    # Built lazily from settings on first request when not injected
    app.state.route_service = route_service

    if settings.frontend_allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.frontend_allowed_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_exception_handler(RoutingError, routing_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)

    @app.get("/")
    def root():
        return {
            "service": settings.app_name,
            "status": "running",
            "api_prefix": settings.api_prefix,
            "health": f"{settings.api_prefix}/health",
            "docs": "/docs",
        }

    app.include_router(health.router, prefix=settings.api_prefix)
    app.include_router(route.router, prefix=settings.api_prefix)
    return app


app = create_app()
