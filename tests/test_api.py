import logging
from xml.etree import ElementTree

from fastapi.testclient import TestClient

from route_gateway.main import create_app
from route_gateway.models.domain import GeoPoint
from route_gateway.models.errors import PointNotFoundError
from route_gateway.services.routing.models import RouteOutcome
from route_gateway.services.routing.profiles import DefaultProfileResolver
from route_gateway.services.routing.service import RouteService

from conftest import DummyEngine, make_path

GPX_NS = {"gpx": "http://www.topografix.com/GPX/1/1"}


def test_health_and_info(api_client: TestClient):
    assert api_client.get("/health").json() == {"status": "ok"}

    info = api_client.get("/info").json()
    assert info["profiles"] == [{"name": "car"}, {"name": "bike"}, {"name": "foot"}]
    assert info["elevation"] is False
    assert info["data_date"] == "2024-01-01T00:00:00Z"


def test_get_route_json(api_client: TestClient, engine: DummyEngine):
    response = api_client.get(
        "/route",
        params=[("point", "52.5,13.4"), ("point", "52.51,13.41"), ("profile", "bike"), ("points_encoded", "false")],
    )

    assert response.status_code == 200
    assert "X-GH-Took" in response.headers
    body = response.json()
    assert body["info"]["copyrights"] == ["GraphHopper", "OpenStreetMap contributors"]
    assert body["info"]["road_data_timestamp"] == "2024-01-01T00:00:00Z"
    assert body["paths"][0]["points"]["coordinates"][0] == [13.4, 52.5]
    dispatched = engine.requests[0]
    assert dispatched.profile == "bike"
    assert dispatched.snap_preventions == ["tunnel", "ferry"]


def test_get_route_without_points_never_reaches_engine(api_client: TestClient, engine: DummyEngine):
    response = api_client.get("/route", params={"profile": "car"})

    assert response.status_code == 400
    assert response.json() == {
        "message": "You have to pass at least one point",
        "hints": [{"message": "You have to pass at least one point", "details": "InvalidArgument"}],
    }
    assert engine.requests == []


def test_get_route_errors_as_xml_when_gpx_requested(api_client: TestClient):
    response = api_client.get("/route", params={"type": "gpx"})

    assert response.status_code == 400
    assert response.headers["content-type"].startswith("application/gpx+xml")
    root = ElementTree.fromstring(response.content)
    assert root.find("metadata/extensions/message").text == "You have to pass at least one point"


def test_invalid_query_value_is_a_400(api_client: TestClient):
    response = api_client.get("/route", params=[("point", "52.5,13.4"), ("calc_points", "maybe")])

    assert response.status_code == 400
    assert response.json()["hints"][0]["details"] == "InvalidArgument"


def test_unknown_profile_is_a_400(api_client: TestClient, engine: DummyEngine):
    response = api_client.get("/route", params=[("point", "52.5,13.4"), ("profile", "truck")])

    assert response.status_code == 400
    assert "does not exist" in response.json()["message"]
    assert engine.requests == []


def test_legacy_hints_never_reach_engine(api_client: TestClient, engine: DummyEngine):
    response = api_client.get(
        "/route",
        params=[
            ("point", "52.5,13.4"),
            ("point", "52.51,13.41"),
            ("vehicle", "bike"),
            ("weighting", "fastest"),
            ("edge_based", "true"),
            ("turn_costs", "false"),
        ],
    )

    assert response.status_code == 200
    dispatched = engine.requests[0]
    assert dispatched.profile == "bike"
    for key in ("vehicle", "weighting", "edge_based", "turn_costs"):
        assert key not in dispatched.hints


def test_get_route_gpx(api_client: TestClient):
    response = api_client.get(
        "/route",
        params=[("point", "52.5,13.4"), ("point", "52.51,13.41"), ("type", "gpx"), ("gpx.millis", "0")],
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/gpx+xml")
    assert response.headers["content-disposition"] == "attachment;filename=GraphHopper.gpx"
    root = ElementTree.fromstring(response.content)
    assert root.find("gpx:metadata/gpx:time", GPX_NS).text == "1970-01-01T00:00:00Z"
    assert root.find("gpx:trk/gpx:name", GPX_NS).text == "GraphHopper Track"


def test_gpx_with_alternatives_is_a_400(test_settings):
    engine = DummyEngine(answer=lambda request: RouteOutcome(paths=[make_path(), make_path(distance=2000.0)]))
    client = TestClient(create_app(RouteService(engine, DefaultProfileResolver(test_settings.profiles), test_settings)))

    response = client.get("/route", params=[("point", "52.5,13.4"), ("point", "52.51,13.41"), ("type", "gpx")])

    assert response.status_code == 400
    root = ElementTree.fromstring(response.content)
    assert root.find("metadata/extensions/message").text == "Alternatives are currently not yet supported for GPX"


def test_get_and_post_dispatch_identically(api_client: TestClient, engine: DummyEngine):
    api_client.get(
        "/route",
        params=[("point", "52.5,13.4"), ("point", "52.51,13.41"), ("profile", "foot"), ("ch.disable", "true")],
    )
    api_client.post(
        "/route",
        json={"points": [[13.4, 52.5], [13.41, 52.51]], "profile": "foot", "ch.disable": True},
    )

    from_get, from_post = engine.requests
    assert from_get.points == from_post.points
    assert from_get.profile == from_post.profile == "foot"
    assert from_get.hints == from_post.hints
    assert from_get.snap_preventions == from_post.snap_preventions


def test_post_route_json(api_client: TestClient):
    response = api_client.post(
        "/route",
        json={"points": [{"lat": 52.5, "lon": 13.4}, {"lat": 52.51, "lon": 13.41}], "instructions": False},
    )

    assert response.status_code == 200
    path = response.json()["paths"][0]
    assert "instructions" not in path
    assert isinstance(path["points"], str)


def test_post_route_rejects_out_of_range_point(api_client: TestClient):
    response = api_client.post("/route", json={"points": [{"lat": 95.0, "lon": 13.4}]})

    assert response.status_code == 400
    assert response.json()["hints"][0]["details"] == "InvalidArgument"


def test_bulk_mixed_results_keep_order(test_settings):
    def answer(request):
        if request.points[0] == GeoPoint(0.0, 0.0):
            return RouteOutcome.failure(PointNotFoundError("Cannot find point 0: 0.0,0.0", point_index=0))
        return RouteOutcome(paths=[make_path(distance=321.98765, time=45000)])

    engine = DummyEngine(answer=answer)
    client = TestClient(create_app(RouteService(engine, DefaultProfileResolver(test_settings.profiles), test_settings)))

    response = client.post(
        "/route/bulk",
        json={
            "originPoint": {"lat": 52.5, "lon": 13.4},
            "destinations": [
                {"id": "shop-1", "destinationPoint": {"lat": 52.52, "lon": 13.42}},
                {"id": 2, "destinationPoint": {"lat": 0.0, "lon": 0.0}},
            ],
        },
    )

    assert response.status_code == 200
    assert response.json() == {
        "info": {"copyrights": ["Swift Routes", "powered by GraphHopper"]},
        "data": [
            {"id": "shop-1", "distance": 321.988, "time": 45000},
            {"id": "2", "error": "Cannot find point 0: 0.0,0.0"},
        ],
    }
    assert all(request.profile == "car" for request in engine.requests)


def test_bulk_without_destinations_is_a_400(api_client: TestClient, engine: DummyEngine):
    response = api_client.post("/route/bulk", json={"originPoint": {"lat": 52.5, "lon": 13.4}, "destinations": []})

    assert response.status_code == 400
    assert response.json()["message"] == "You have to pass at least one destination"
    assert engine.requests == []


def test_bulk_without_origin_is_a_400(api_client: TestClient):
    response = api_client.post(
        "/route/bulk",
        json={"destinations": [{"id": "a", "destinationPoint": {"lat": 52.52, "lon": 13.42}}]},
    )

    assert response.status_code == 400
    assert response.json()["message"] == "You have to pass at least one point"


def _client_with(engine, test_settings, resolver=None, transformer=None) -> TestClient:
    service = RouteService(
        engine,
        resolver or DefaultProfileResolver(test_settings.profiles),
        test_settings,
        transformer=transformer,
    )
    return TestClient(create_app(service))


def test_resolver_value_error_is_a_logged_400(test_settings, caplog):
    class RejectingResolver:
        def resolve_profile(self, hints):
            raise ValueError("bad profile hint")

    engine = DummyEngine()
    client = _client_with(engine, test_settings, resolver=RejectingResolver())
    caplog.set_level(logging.INFO, logger="route_gateway.services.routing.service")

    response = client.get("/route", params=[("point", "52.5,13.4"), ("point", "52.51,13.41")])

    assert response.status_code == 400
    assert response.json()["hints"] == [{"message": "bad profile hint", "details": "InvalidArgument"}]
    assert engine.requests == []
    assert any("bad profile hint" in record.getMessage() for record in caplog.records)


def test_transformer_crash_is_a_400_on_post(test_settings):
    class BrokenTransformer:
        def transform_request(self, request):
            raise RuntimeError("transformer unavailable")

    engine = DummyEngine()
    client = _client_with(engine, test_settings, transformer=BrokenTransformer())

    response = client.post("/route", json={"points": [[13.4, 52.5], [13.41, 52.51]]})

    assert response.status_code == 400
    assert response.json()["hints"][0]["details"] == "EngineFailure"
    assert engine.requests == []


def test_out_of_range_point_is_rejected_for_get_and_post(api_client: TestClient, engine: DummyEngine):
    from_get = api_client.get("/route", params=[("point", "95,13.4"), ("point", "52.51,13.41")])
    from_post = api_client.post("/route", json={"points": [{"lat": 95.0, "lon": 13.4}, {"lat": 52.51, "lon": 13.41}]})

    assert from_get.status_code == from_post.status_code == 400
    assert from_get.json()["hints"][0]["details"] == "InvalidArgument"
    assert from_post.json()["hints"][0]["details"] == "InvalidArgument"
    assert engine.requests == []


class _BikeTransformer:
    """Switches every request to the bike profile and tags it."""

    def transform_request(self, request):
        request.profile = "bike"
        request.hints.put("transformed", True)
        return request


class _RecordingResolver:
    def __init__(self):
        self.seen = []

    def resolve_profile(self, hints):
        self.seen.append(hints.to_dict())
        return hints.get_str("profile")


def test_transformer_runs_before_profile_resolution_on_get(test_settings):
    engine = DummyEngine()
    resolver = _RecordingResolver()
    client = _client_with(engine, test_settings, resolver=resolver, transformer=_BikeTransformer())

    response = client.get("/route", params=[("point", "52.5,13.4"), ("point", "52.51,13.41"), ("profile", "car")])

    assert response.status_code == 200
    assert resolver.seen[0]["profile"] == "bike"
    assert resolver.seen[0]["transformed"] is True
    dispatched = engine.requests[0]
    assert dispatched.profile == "bike"
    assert dispatched.hints.get_bool("transformed", False) is True


def test_transformer_applies_to_every_bulk_leg(test_settings):
    engine = DummyEngine()
    resolver = _RecordingResolver()
    client = _client_with(engine, test_settings, resolver=resolver, transformer=_BikeTransformer())

    response = client.post(
        "/route/bulk",
        json={
            "originPoint": {"lat": 52.5, "lon": 13.4},
            "destinations": [
                {"id": "a", "destinationPoint": {"lat": 52.52, "lon": 13.42}},
                {"id": "b", "destinationPoint": {"lat": 52.53, "lon": 13.43}},
            ],
        },
    )

    assert response.status_code == 200
    assert [seen["profile"] for seen in resolver.seen] == ["bike", "bike"]
    assert [request.profile for request in engine.requests] == ["bike", "bike"]
    assert all(request.hints.get_bool("transformed", False) for request in engine.requests)


def test_bulk_errors_as_xml_when_gpx_requested(api_client: TestClient):
    response = api_client.post(
        "/route/bulk",
        params={"type": "gpx"},
        json={"originPoint": {"lat": 52.5, "lon": 13.4}, "destinations": []},
    )

    assert response.status_code == 400
    assert response.headers["content-type"].startswith("application/gpx+xml")
    root = ElementTree.fromstring(response.content)
    assert root.find("metadata/extensions/message").text == "You have to pass at least one destination"
