import pytest

from route_gateway.models.domain import GeoPoint
from route_gateway.models.errors import InvalidArgumentError
from route_gateway.services.routing.hints import Hints
from route_gateway.services.routing.models import RoutingRequest
from route_gateway.services.routing.profiles import DefaultProfileResolver, resolve_profile


def _request(**kwargs) -> RoutingRequest:
    return RoutingRequest(points=[GeoPoint(52.5, 13.4), GeoPoint(52.51, 13.41)], **kwargs)


def test_explicit_profile_is_kept():
    resolver = DefaultProfileResolver(["car", "bike"])
    request = _request(profile="bike")

    assert resolve_profile(request, resolver) == "bike"
    assert request.profile == "bike"


def test_unknown_profile_lists_available_ones():
    resolver = DefaultProfileResolver(["car", "bike"])

    with pytest.raises(InvalidArgumentError, match="Available profiles"):
        resolve_profile(_request(profile="truck"), resolver)


def test_missing_profile_falls_back_to_first():
    request = _request()

    resolve_profile(request, DefaultProfileResolver(["car", "bike"]))

    assert request.profile == "car"


def test_legacy_vehicle_hint_selects_profile():
    request = _request(hints=Hints({"vehicle": "bike"}))

    resolve_profile(request, DefaultProfileResolver(["car", "bike_fastest"]))

    assert request.profile == "bike_fastest"


def test_custom_model_requires_profile():
    with pytest.raises(InvalidArgumentError, match="'profile' parameter is required"):
        resolve_profile(_request(custom_model={"priority": []}), DefaultProfileResolver(["car"]))


def test_resolver_sees_request_context_without_mutating_hints():
    seen = {}

    class RecordingResolver:
        def resolve_profile(self, hints):
            seen.update(hints.to_dict())
            return "foot"

    request = _request(profile="walk", curbsides=["right", "any"], hints=Hints({"locale": "de"}))

    resolve_profile(request, RecordingResolver())

    assert seen == {"locale": "de", "profile": "walk", "has_curbsides": True}
    assert request.profile == "foot"
    assert request.hints == {"locale": "de"}
