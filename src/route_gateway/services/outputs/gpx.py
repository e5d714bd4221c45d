"""GPX export of a single routed path."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Sequence
from xml.etree.ElementTree import Element, SubElement, tostring

from ...models.errors import InvalidArgumentError
from ..geospatial import bearing_degrees, haversine_m
from ..routing.models import Instruction, ResponsePath, RouteOutcome
from .route_formatter import XML_DECLARATION

GPX_NAMESPACE = "http://www.topografix.com/GPX/1/1"
GH_NAMESPACE = "https://graphhopper.com/public/schema/gpx-1.1"
DEFAULT_TRACK_NAME = "GraphHopper Track"
_DIRECTIONS = ("N", "NE", "E", "SE", "S", "SW", "W", "NW")


def _format_time(millis: float) -> str:
    moment = datetime.fromtimestamp(millis / 1000.0, tz=timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%SZ")


def _format_coordinate(value: float) -> str:
    return f"{value:.6f}"


def _direction(azimuth: float) -> str:
    return _DIRECTIONS[int(((azimuth + 22.5) % 360) // 45)]


def _point_times(path: ResponsePath, start_millis: int) -> list[float]:
    """Timestamp per point, spreading each instruction's time over its interval by distance."""
    points = path.points
    if not points:
        return []
    times = [float(start_millis)] * len(points)
    segments: Sequence[tuple[int, int, int]]
    if path.instructions:
        segments = [(item.interval[0], item.interval[1], item.time) for item in path.instructions]
    else:
        segments = [(0, len(points) - 1, path.time)]

    elapsed = float(start_millis)
    for first, last, duration in segments:
        last = min(last, len(points) - 1)
        if first >= last:
            continue
        lengths = [
            haversine_m(points[i].lat, points[i].lon, points[i + 1].lat, points[i + 1].lon)
            for i in range(first, last)
        ]
        total = sum(lengths)
        for offset, length in enumerate(lengths):
            share = length / total if total > 0 else 1.0 / len(lengths)
            elapsed += duration * share
            times[first + offset + 1] = elapsed
    return times


def _route_point(parent: Element, path: ResponsePath, instruction: Instruction) -> None:
    index = min(instruction.interval[0], len(path.points) - 1)
    point = path.points[index]
    rtept = SubElement(parent, "rtept", {"lat": _format_coordinate(point.lat), "lon": _format_coordinate(point.lon)})
    SubElement(rtept, "desc").text = instruction.text
    extensions = SubElement(rtept, "extensions")
    SubElement(extensions, "gh:distance").text = str(round(instruction.distance, 1))
    SubElement(extensions, "gh:time").text = str(instruction.time)
    next_index = min(instruction.interval[1], len(path.points) - 1)
    if next_index > index:
        target = path.points[next_index]
        azimuth = bearing_degrees(point.lat, point.lon, target.lat, target.lon)
        SubElement(extensions, "gh:direction").text = _direction(azimuth)
        SubElement(extensions, "gh:azimuth").text = str(round(azimuth, 2))
    SubElement(extensions, "gh:sign").text = str(instruction.sign)


def create_gpx(
    path: ResponsePath,
    *,
    track_name: str = DEFAULT_TRACK_NAME,
    time_millis: int | None = None,
    include_elevation: bool = False,
    with_route: bool = True,
    with_track: bool = True,
    with_waypoints: bool = False,
    version: str = "",
    creator: str = "GraphHopper",
) -> str:
    """Render one path as a GPX 1.1 document."""
    start = time_millis if time_millis is not None else int(datetime.now(timezone.utc).timestamp() * 1000)
    with_elevation = include_elevation and path.has_elevation()

    gpx = Element(
        "gpx",
        {
            "xmlns": GPX_NAMESPACE,
            "xmlns:xsi": "http://www.w3.org/2001/XMLSchema-instance",
            "xmlns:gh": GH_NAMESPACE,
            "xsi:schemaLocation": f"{GPX_NAMESPACE} http://www.topografix.com/GPX/1/1/gpx.xsd",
            "creator": f"{creator} {version}".strip(),
            "version": "1.1",
        },
    )

    metadata = SubElement(gpx, "metadata")
    SubElement(metadata, "copyright", {"author": "OpenStreetMap contributors"})
    link = SubElement(metadata, "link", {"href": "http://graphhopper.com"})
    SubElement(link, "text").text = "GraphHopper GPX"
    SubElement(metadata, "time").text = _format_time(start)

    if with_waypoints and path.points:
        for name, point in (("start", path.points[0]), ("end", path.points[-1])):
            wpt = SubElement(gpx, "wpt", {"lat": _format_coordinate(point.lat), "lon": _format_coordinate(point.lon)})
            SubElement(wpt, "name").text = name

    if with_route and path.instructions and path.points:
        rte = SubElement(gpx, "rte")
        for instruction in path.instructions:
            _route_point(rte, path, instruction)

    if with_track:
        trk = SubElement(gpx, "trk")
        SubElement(trk, "name").text = track_name
        trkseg = SubElement(trk, "trkseg")
        for index, (point, millis) in enumerate(zip(path.points, _point_times(path, start))):
            trkpt = SubElement(
                trkseg, "trkpt", {"lat": _format_coordinate(point.lat), "lon": _format_coordinate(point.lon)}
            )
            if with_elevation:
                SubElement(trkpt, "ele").text = str(round(path.elevations[index], 2))
            SubElement(trkpt, "time").text = _format_time(millis)

    return XML_DECLARATION + tostring(gpx, encoding="unicode")


def route_outcome_to_gpx(
    outcome: RouteOutcome,
    *,
    time_string: str | None = None,
    **options,
) -> str:
    """GPX for a successful outcome; GPX cannot carry alternatives."""
    if len(outcome.paths) > 1:
        raise InvalidArgumentError("Alternatives are currently not yet supported for GPX")
    if time_string is not None:
        try:
            time_millis = int(time_string)
        except ValueError as exc:
            raise InvalidArgumentError(f"Cannot parse gpx.millis '{time_string}'") from exc
    else:
        time_millis = None
    return create_gpx(outcome.best, time_millis=time_millis, **options)
