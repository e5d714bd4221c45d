"""Profile resolution: choose the effective profile before the engine is called."""

from __future__ import annotations

import logging
from typing import Protocol, Sequence

from ...models.errors import InvalidArgumentError
from .hints import Hints
from .models import RoutingRequest

logger = logging.getLogger(__name__)


class ProfileResolver(Protocol):
    def resolve_profile(self, hints: Hints) -> str:
        ...


class DefaultProfileResolver:
    """Resolve against the profile names the engine was configured with.

    An explicit profile must be known. Without one, the legacy ``vehicle`` hint
    picks the first profile whose name starts with it, else the first
    configured profile is used.
    """

    def __init__(self, profiles: Sequence[str]) -> None:
        self.profiles = tuple(profiles)

    def resolve_profile(self, hints: Hints) -> str:
        if not self.profiles:
            raise InvalidArgumentError("No profiles are configured on this server")

        requested = hints.get_str("profile", "").strip()
        if requested:
            if requested not in self.profiles:
                raise InvalidArgumentError(
                    f"The requested profile '{requested}' does not exist.\nAvailable profiles: {list(self.profiles)}"
                )
            return requested

        vehicle = hints.get_str("vehicle", "").strip()
        if vehicle:
            for name in self.profiles:
                if name.startswith(vehicle):
                    return name
            raise InvalidArgumentError(
                f"Cannot find matching profile for your request. vehicle: '{vehicle}'. "
                f"Available profiles: {list(self.profiles)}"
            )
        return self.profiles[0]


def resolve_profile(
    request: RoutingRequest,
    resolver: ProfileResolver,
    requested_profile: str | None = None,
) -> str:
    """Assign the resolved profile to ``request`` and return it.

    The resolver sees a copy of the request hints plus the raw requested
    profile name and whether curbsides were supplied. A custom model without
    an explicit profile is rejected up front.
    """
    raw_profile = request.profile if requested_profile is None else requested_profile
    if not raw_profile and request.custom_model is not None:
        raise InvalidArgumentError(
            "The 'profile' parameter is required when you use the `custom_model` parameter"
        )

    resolution_hints = request.hints.copy()
    resolution_hints.put("profile", raw_profile or "")
    resolution_hints.put("has_curbsides", bool(request.curbsides))
    profile = resolver.resolve_profile(resolution_hints)
    if profile:
        request.profile = profile
    logger.debug(f"Resolved profile '{request.profile}' from requested '{raw_profile}'")
    return request.profile
