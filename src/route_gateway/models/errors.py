"""Typed routing errors shared by the request pipeline and the formatters."""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    INVALID_ARGUMENT = "InvalidArgument"
    POINT_NOT_FOUND = "PointNotFound"
    ENGINE_FAILURE = "EngineFailure"


class RoutingError(Exception):
    """Base class for failures that are reported to the caller as an error document."""

    kind: ErrorKind = ErrorKind.ENGINE_FAILURE

    def __init__(self, message: str | None = None, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message or type(self).__name__
        self.details = dict(details or {})

    @property
    def type_id(self) -> str:
        return self.kind.value

    def __str__(self) -> str:
        return self.message


class InvalidArgumentError(RoutingError, ValueError):
    """Malformed or unsupported input, raised before the engine is called."""

    kind = ErrorKind.INVALID_ARGUMENT


class PointNotFoundError(RoutingError):
    """A coordinate could not be snapped to the routable network."""

    kind = ErrorKind.POINT_NOT_FOUND

    def __init__(self, message: str | None = None, point_index: int | None = None) -> None:
        details = {"point_index": point_index} if point_index is not None else None
        super().__init__(message, details)
        self.point_index = point_index


class EngineFailureError(RoutingError):
    """Opaque failure surfaced by the routing engine (no path, bad profile, ...)."""

    kind = ErrorKind.ENGINE_FAILURE


def error_message(error: BaseException) -> str:
    """Return the human readable message of any exception, falling back to its class name."""
    if isinstance(error, RoutingError):
        return error.message
    text = str(error)
    return text if text else type(error).__name__


def error_type_id(error: BaseException) -> str:
    if isinstance(error, RoutingError):
        return error.type_id
    if isinstance(error, ValueError):
        return ErrorKind.INVALID_ARGUMENT.value
    return ErrorKind.ENGINE_FAILURE.value


def error_details(error: BaseException) -> dict[str, Any]:
    if isinstance(error, RoutingError):
        return dict(error.details)
    return {}
