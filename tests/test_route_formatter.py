from xml.etree import ElementTree

import pytest

from route_gateway.models.domain import GeoPoint
from route_gateway.models.errors import EngineFailureError, InvalidArgumentError, PointNotFoundError
from route_gateway.services.geospatial import bounding_box, encode_polyline
from route_gateway.services.outputs.gpx import create_gpx, route_outcome_to_gpx
from route_gateway.services.outputs.route_formatter import (
    ResponseInfo,
    errors_to_json,
    errors_to_xml,
    route_outcome_to_json,
)
from route_gateway.services.routing.models import RouteOutcome

from conftest import make_path

GPX_NS = {"gpx": "http://www.topografix.com/GPX/1/1"}


def test_encode_polyline_reference_vector():
    points = [GeoPoint(38.5, -120.2), GeoPoint(40.7, -120.95), GeoPoint(43.252, -126.453)]

    assert encode_polyline(points) == "_p~iF~ps|U_ulLnnqC_mqNvxq`@"


def test_encode_polyline_rejects_small_multiplier():
    with pytest.raises(ValueError):
        encode_polyline([GeoPoint(1.0, 2.0)], multiplier=0.5)


def test_bounding_box_is_lon_lat_ordered():
    assert bounding_box([GeoPoint(52.5, 13.4), GeoPoint(52.51, 13.38)]) == [13.38, 52.5, 13.4, 52.51]


def test_route_json_with_geojson_points():
    outcome = RouteOutcome(paths=[make_path()], debug={"data_version": "v1"})
    info = ResponseInfo(copyrights=("GraphHopper",), took=12, road_data_timestamp="2024-01-01T00:00:00Z")

    body = route_outcome_to_json(outcome, info, points_encoded=False)

    assert body["hints"] == {"data_version": "v1"}
    assert body["info"] == {"copyrights": ["GraphHopper"], "took": 12, "road_data_timestamp": "2024-01-01T00:00:00Z"}
    path = body["paths"][0]
    assert path["distance"] == 1234.568
    assert path["time"] == 90000
    assert path["bbox"] == [13.4, 52.5, 13.41, 52.51]
    assert path["points"]["type"] == "LineString"
    assert path["points"]["coordinates"][0] == [13.4, 52.5]
    assert [item["sign"] for item in path["instructions"]] == [0, 4]
    assert "points_encoded_multiplier" not in path
    assert "ascend" not in path


def test_route_json_without_points_or_instructions():
    body = route_outcome_to_json(
        RouteOutcome(paths=[make_path()]),
        ResponseInfo(copyrights=(), took=1),
        instructions=False,
        calc_points=False,
    )

    path = body["paths"][0]
    assert "points" not in path
    assert "bbox" not in path
    assert "snapped_waypoints" not in path
    assert "instructions" not in path
    assert "road_data_timestamp" not in body["info"]


def test_route_json_encoded_points():
    path = route_outcome_to_json(RouteOutcome(paths=[make_path()]), ResponseInfo(copyrights=(), took=1))["paths"][0]

    assert path["points_encoded"] is True
    assert path["points_encoded_multiplier"] == 1e5
    assert isinstance(path["points"], str)
    assert path["snapped_waypoints"] == encode_polyline([GeoPoint(52.5, 13.4), GeoPoint(52.51, 13.41)])


def test_errors_to_json_keeps_classification():
    errors = [PointNotFoundError("Cannot find point 1: 0.0,0.0", point_index=1), EngineFailureError("no route")]

    body = errors_to_json(errors)

    assert body == {
        "message": "Cannot find point 1: 0.0,0.0",
        "hints": [
            {"message": "Cannot find point 1: 0.0,0.0", "details": "PointNotFound", "point_index": 1},
            {"message": "no route", "details": "EngineFailure"},
        ],
    }


def test_plain_value_error_is_an_invalid_argument():
    assert errors_to_json([ValueError("bad")])["hints"][0]["details"] == "InvalidArgument"


def test_errors_to_xml_document():
    document = errors_to_xml([InvalidArgumentError("You have to pass at least one point")])

    assert document.startswith("<?xml")
    root = ElementTree.fromstring(document.encode("utf-8"))
    assert root.tag == "gpx"
    assert root.get("creator") == "GraphHopper"
    assert root.get("version") == "1.1"
    assert root.find("metadata/extensions/message").text == "You have to pass at least one point"
    error = root.find("metadata/extensions/hints/error")
    assert error.get("details") == "InvalidArgument"


def test_create_gpx_sections():
    document = create_gpx(make_path(), time_millis=0, with_waypoints=True, track_name="Evening ride")

    root = ElementTree.fromstring(document.encode("utf-8"))
    assert root.find("gpx:metadata/gpx:time", GPX_NS).text == "1970-01-01T00:00:00Z"
    assert len(root.findall("gpx:wpt", GPX_NS)) == 2
    assert len(root.findall("gpx:rte/gpx:rtept", GPX_NS)) == 2
    assert root.find("gpx:trk/gpx:name", GPX_NS).text == "Evening ride"
    trackpoints = root.findall("gpx:trk/gpx:trkseg/gpx:trkpt", GPX_NS)
    assert len(trackpoints) == 3
    assert trackpoints[0].find("gpx:ele", GPX_NS) is None
    assert trackpoints[-1].find("gpx:time", GPX_NS).text == "1970-01-01T00:01:30Z"


def test_create_gpx_without_route_and_track():
    document = create_gpx(make_path(), time_millis=0, with_route=False, with_track=False)

    root = ElementTree.fromstring(document.encode("utf-8"))
    assert root.find("gpx:rte", GPX_NS) is None
    assert root.find("gpx:trk", GPX_NS) is None


def test_gpx_rejects_alternatives():
    outcome = RouteOutcome(paths=[make_path(), make_path(distance=2000.0)])

    with pytest.raises(InvalidArgumentError, match="Alternatives are currently not yet supported for GPX"):
        route_outcome_to_gpx(outcome)


def test_gpx_rejects_unparsable_millis():
    with pytest.raises(InvalidArgumentError):
        route_outcome_to_gpx(RouteOutcome(paths=[make_path()]), time_string="yesterday")
