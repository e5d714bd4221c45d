"""Contracts of the collaborators the orchestrator talks to."""

from __future__ import annotations

from typing import Protocol

from .models import RouteOutcome, RoutingRequest

DATA_DATE_PROPERTY = "datareader.data.date"


class RoutingEngine(Protocol):
    """Computes paths. Implementations set ``thread_safe`` when concurrent ``route`` calls are allowed."""

    thread_safe: bool

    def route(self, request: RoutingRequest) -> RouteOutcome:
        ...

    def get_properties(self) -> dict[str, str]:
        ...


class RequestTransformer(Protocol):
    def transform_request(self, request: RoutingRequest) -> RoutingRequest:
        ...


class IdentityRequestTransformer:
    def transform_request(self, request: RoutingRequest) -> RoutingRequest:
        return request
