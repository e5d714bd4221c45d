"""Hint normalization: untyped request parameters into typed routing hints."""

from __future__ import annotations

import re
from typing import Any, Iterable, Iterator, Mapping, Sequence, Union

HintValue = Union[bool, int, float, str]

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")
_INT_PATTERN = re.compile(r"[+-]?\d+")
_FLOAT_PATTERN = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def camel_case_to_underscore(key: str) -> str:
    """``wayPointMaxDistance`` -> ``way_point_max_distance``. Already-underscored keys pass through."""
    if not key:
        return key
    return _CAMEL_BOUNDARY.sub(r"_\1", key).lower()


def _scalar_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def to_object(value: Any) -> HintValue:
    """Coerce a raw parameter to the most specific scalar: bool, then int, then float, else str.

    Lists become comma-joined text before coercion, so ``["a", "b"]`` is ``"a,b"``.
    """
    if isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, (list, tuple)):
        value = ",".join(_scalar_text(item) for item in value)
    text = str(value)
    stripped = text.strip()
    lowered = stripped.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    if _INT_PATTERN.fullmatch(stripped):
        return int(stripped)
    # Plain decimal notation only: no "nan", "inf" or digit separators
    if _FLOAT_PATTERN.fullmatch(stripped):
        return float(stripped)
    return text


class Hints:
    """Normalized key/value side channel of a routing request."""

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, Any] | None = None) -> None:
        self._values: dict[str, HintValue] = {}
        if values:
            for key, value in values.items():
                self.put(key, value)

    def put(self, key: str, value: Any) -> "Hints":
        self._values[camel_case_to_underscore(key)] = to_object(value)
        return self

    def put_default(self, key: str, value: Any) -> "Hints":
        normalized = camel_case_to_underscore(key)
        if normalized not in self._values:
            self._values[normalized] = to_object(value)
        return self

    def remove(self, key: str) -> None:
        self._values.pop(camel_case_to_underscore(key), None)

    def has(self, key: str) -> bool:
        return camel_case_to_underscore(key) in self._values

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(camel_case_to_underscore(key), default)

    def get_bool(self, key: str, default: bool) -> bool:
        value = self.get(key)
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in ("true", "false"):
                return lowered == "true"
        return default

    def get_float(self, key: str, default: float) -> float:
        value = self.get(key)
        if isinstance(value, bool) or value is None:
            return default
        try:
            return float(value)
        except (TypeError, ValueError):
            return default

    def get_str(self, key: str, default: str = "") -> str:
        value = self.get(key)
        return default if value is None else str(value)

    def copy(self) -> "Hints":
        clone = Hints()
        clone._values = dict(self._values)
        return clone

    def to_dict(self) -> dict[str, HintValue]:
        return dict(self._values)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Hints):
            return self._values == other._values
        if isinstance(other, Mapping):
            return self._values == dict(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"Hints({self._values!r})"


def init_hints(
    params: Iterable[tuple[str, Sequence[str]]] | Mapping[str, Sequence[str]],
    *,
    skip: Iterable[str] = (),
    hints: Hints | None = None,
) -> Hints:
    """Fill hints from a multi-valued parameter map.

    Only keys with exactly one value are taken. Repeated keys such as ``point``
    are handled as typed request fields elsewhere; any other repeated key is
    dropped as well, which is a known limitation rather than a feature.
    """
    target = hints if hints is not None else Hints()
    skipped = {camel_case_to_underscore(key) for key in skip}
    items = params.items() if isinstance(params, Mapping) else params
    for key, values in items:
        if len(values) != 1:
            continue
        normalized = camel_case_to_underscore(key)
        if normalized in skipped:
            continue
        target.put(normalized, values[0])
    return target


def group_query_params(pairs: Iterable[tuple[str, str]]) -> dict[str, list[str]]:
    """Group ``(key, value)`` pairs as they appear in a query string into a multi-map."""
    grouped: dict[str, list[str]] = {}
    for key, value in pairs:
        grouped.setdefault(key, []).append(value)
    return grouped
