from typing import Callable, Optional

import pytest
from fastapi.testclient import TestClient

from route_gateway.config import Settings
from route_gateway.main import create_app
from route_gateway.models.domain import GeoPoint
from route_gateway.services.routing.models import Instruction, ResponsePath, RouteOutcome, RoutingRequest
from route_gateway.services.routing.profiles import DefaultProfileResolver
from route_gateway.services.routing.service import RouteService


def make_path(distance: float = 1234.5678, time: int = 90000) -> ResponsePath:
    points = [GeoPoint(52.5, 13.4), GeoPoint(52.505, 13.405), GeoPoint(52.51, 13.41)]
    return ResponsePath(
        distance=distance,
        time=time,
        weight=101.25,
        points=points,
        instructions=[
            Instruction(sign=0, text="Continue onto Main Street", distance=distance, time=time, interval=(0, 2), street_name="Main Street"),
            Instruction(sign=4, text="Arrive at destination", distance=0.0, time=0, interval=(2, 2)),
        ],
        snapped_waypoints=[points[0], points[-1]],
    )


class DummyEngine:
    """Records every dispatched request; answers with one path unless told otherwise."""

    thread_safe = True

    def __init__(
        self,
        answer: Optional[Callable[[RoutingRequest], RouteOutcome]] = None,
        properties: Optional[dict] = None,
    ):
        self.answer = answer
        self.properties = properties or {}
        self.requests: list[RoutingRequest] = []

    def route(self, request: RoutingRequest) -> RouteOutcome:
        self.requests.append(request)
        if self.answer is not None:
            return self.answer(request)
        return RouteOutcome(paths=[make_path()])

    def get_properties(self) -> dict:
        return self.properties


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        profiles=("car", "bike", "foot"),
        copyrights=("GraphHopper", "OpenStreetMap contributors"),
        bulk_copyrights=("Swift Routes", "powered by GraphHopper"),
        snap_preventions_default=("tunnel", "ferry"),
        has_elevation=False,
        bulk_max_parallel=1,
    )


@pytest.fixture
def engine() -> DummyEngine:
    return DummyEngine(properties={"datareader.data.date": "2024-01-01T00:00:00Z"})


@pytest.fixture
def route_service(engine: DummyEngine, test_settings: Settings) -> RouteService:
    return RouteService(engine, DefaultProfileResolver(test_settings.profiles), test_settings)


@pytest.fixture
def api_client(route_service: RouteService) -> TestClient:
    return TestClient(create_app(route_service=route_service))
