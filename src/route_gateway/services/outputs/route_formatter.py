"""Serializers for routing outcomes: JSON paths and JSON/XML error documents."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence
from xml.etree.ElementTree import Element, SubElement, tostring

from ...models.domain import GeoPoint
from ...models.errors import error_details, error_message, error_type_id
from ..geospatial import bounding_box, encode_polyline
from ..routing.models import Instruction, ResponsePath, RouteOutcome

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8" standalone="no" ?>'


@dataclass(frozen=True, slots=True)
class ResponseInfo:
    copyrights: tuple[str, ...]
    took: int
    road_data_timestamp: str | None = None

    def to_json(self) -> dict[str, Any]:
        info: dict[str, Any] = {"copyrights": list(self.copyrights), "took": self.took}
        if self.road_data_timestamp:
            info["road_data_timestamp"] = self.road_data_timestamp
        return info


def _points_json(
    points: Sequence[GeoPoint],
    elevations: Sequence[float] | None,
    points_encoded: bool,
    multiplier: float,
) -> Any:
    if points_encoded:
        return encode_polyline(points, elevations, multiplier)
    coordinates = []
    for index, point in enumerate(points):
        coordinate = [point.lon, point.lat]
        if elevations is not None:
            coordinate.append(elevations[index])
        coordinates.append(coordinate)
    return {"type": "LineString", "coordinates": coordinates}


def instruction_to_json(instruction: Instruction) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "distance": round(instruction.distance, 3),
        "sign": instruction.sign,
        "interval": [instruction.interval[0], instruction.interval[1]],
        "text": instruction.text,
        "time": instruction.time,
        "street_name": instruction.street_name,
    }
    if instruction.heading is not None:
        payload["heading"] = round(instruction.heading, 2)
    return payload


def path_to_json(
    path: ResponsePath,
    *,
    instructions: bool,
    calc_points: bool,
    enable_elevation: bool,
    points_encoded: bool,
    points_encoded_multiplier: float = 1e5,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "distance": round(path.distance, 3),
        "weight": round(path.weight, 6),
        "time": path.time,
        "transfers": 0,
    }
    with_elevation = enable_elevation and path.has_elevation()
    if calc_points:
        payload["points_encoded"] = points_encoded
        if points_encoded:
            payload["points_encoded_multiplier"] = points_encoded_multiplier
        if path.points:
            payload["bbox"] = bounding_box(path.points)
        payload["points"] = _points_json(
            path.points,
            path.elevations if with_elevation else None,
            points_encoded,
            points_encoded_multiplier,
        )
        if path.snapped_waypoints:
            payload["snapped_waypoints"] = _points_json(
                path.snapped_waypoints, None, points_encoded, points_encoded_multiplier
            )
    if instructions and path.instructions is not None:
        payload["instructions"] = [instruction_to_json(item) for item in path.instructions]
    payload["legs"] = []
    payload["details"] = {name: [list(entry) for entry in values] for name, values in path.details.items()}
    if enable_elevation:
        payload["ascend"] = path.ascend
        payload["descend"] = path.descend
    return payload


def route_outcome_to_json(
    outcome: RouteOutcome,
    info: ResponseInfo,
    *,
    instructions: bool = True,
    calc_points: bool = True,
    enable_elevation: bool = False,
    points_encoded: bool = True,
    points_encoded_multiplier: float = 1e5,
) -> dict[str, Any]:
    """JSON body of a successful route. Coordinates are emitted in [lon, lat] order."""
    return {
        "hints": dict(outcome.debug),
        "info": info.to_json(),
        "paths": [
            path_to_json(
                path,
                instructions=instructions,
                calc_points=calc_points,
                enable_elevation=enable_elevation,
                points_encoded=points_encoded,
                points_encoded_multiplier=points_encoded_multiplier,
            )
            for path in outcome.paths
        ],
    }


def errors_to_json(errors: Sequence[BaseException]) -> dict[str, Any]:
    """``{"message": <first>, "hints": [{"message", "details", ...}]}``."""
    if not errors:
        raise ValueError("errors_to_json needs at least one error")
    hints = []
    for error in errors:
        entry: dict[str, Any] = {"message": error_message(error), "details": error_type_id(error)}
        entry.update(error_details(error))
        hints.append(entry)
    return {"message": error_message(errors[0]), "hints": hints}


def errors_to_xml(errors: Sequence[BaseException], creator: str = "GraphHopper", version: str = "1.1") -> str:
    """Minimal GPX document carrying the errors, for clients that asked for XML."""
    if not errors:
        raise ValueError("errors_to_xml needs at least one error")
    gpx = Element("gpx", {"creator": creator, "version": version})
    metadata = SubElement(gpx, "metadata")
    extensions = SubElement(metadata, "extensions")
    SubElement(extensions, "message").text = error_message(errors[0])
    hints = SubElement(extensions, "hints")
    for error in errors:
        SubElement(hints, "error", {"message": error_message(error), "details": error_type_id(error)})
    return XML_DECLARATION + tostring(gpx, encoding="unicode")
