"""Bulk fan-out: one origin routed against many destinations."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Sequence

from ...models.domain import BulkRequest, Destination
from ...models.errors import InvalidArgumentError, error_message
from .hints import Hints, init_hints
from .models import BulkResultEntry, RouteOutcome
from .request_builder import (
    CALC_POINTS,
    DEFAULT_WAY_POINT_MAX_DISTANCE,
    INSTRUCTIONS,
    STRUCTURAL_QUERY_KEYS,
    WAY_POINT_MAX_DISTANCE,
)

logger = logging.getLogger(__name__)

DEFAULT_BULK_PROFILE = "car"


@dataclass(slots=True)
class BulkParameters:
    profile: str = DEFAULT_BULK_PROFILE
    algorithm: str = ""
    locale: str = "en"
    instructions: bool = True
    calc_points: bool = True
    way_point_max_distance: float = DEFAULT_WAY_POINT_MAX_DISTANCE
    path_details: list[str] = field(default_factory=list)
    type: str = "json"


def validate_bulk(bulk: BulkRequest) -> None:
    if bulk.origin is None:
        raise InvalidArgumentError("You have to pass at least one point")
    if not bulk.destinations:
        raise InvalidArgumentError("You have to pass at least one destination")


def build_shared_hints(params: BulkParameters, raw: Mapping[str, Sequence[str]]) -> Hints:
    """Hints common to every destination: query hints plus the output switches."""
    hints = init_hints(raw, skip=STRUCTURAL_QUERY_KEYS)
    hints.put(CALC_POINTS, params.calc_points)
    hints.put(INSTRUCTIONS, params.instructions)
    hints.put(WAY_POINT_MAX_DISTANCE, params.way_point_max_distance)
    return hints


def outcome_to_entry(destination: Destination, outcome: RouteOutcome) -> BulkResultEntry:
    if outcome.has_errors:
        return BulkResultEntry(
            id=destination.id,
            error="; ".join(error_message(error) for error in outcome.errors),
        )
    best = outcome.best
    return BulkResultEntry(id=destination.id, distance=round(best.distance, 3), time=best.time)


def _route_one(destination: Destination, route_leg: Callable[[Destination], RouteOutcome]) -> BulkResultEntry:
    try:
        entry = outcome_to_entry(destination, route_leg(destination))
    except Exception as exc:
        entry = BulkResultEntry(id=destination.id, error=error_message(exc))
    if not entry.ok:
        logger.info(f"Bulk destination '{destination.id}' failed: {entry.error}")
    return entry


def route_destinations(
    destinations: Sequence[Destination],
    route_leg: Callable[[Destination], RouteOutcome],
    *,
    max_parallel: int = 1,
) -> list[BulkResultEntry]:
    """Route every destination and return one entry each, in input order.

    Failures are captured per destination and never affect the others.
    """
    if max_parallel <= 1 or len(destinations) <= 1:
        return [_route_one(destination, route_leg) for destination in destinations]

    results: list[BulkResultEntry | None] = [None] * len(destinations)
    with ThreadPoolExecutor(max_workers=min(max_parallel, len(destinations))) as executor:
        futures = {
            executor.submit(_route_one, destination, route_leg): index
            for index, destination in enumerate(destinations)
        }
        for future, index in futures.items():
            results[index] = future.result()
    return [entry for entry in results if entry is not None]


def bulk_response_json(entries: Sequence[BulkResultEntry], copyrights: Sequence[str]) -> dict[str, Any]:
    return {
        "info": {"copyrights": list(copyrights)},
        "data": [entry.to_json() for entry in entries],
    }
