from __future__ import annotations

from enum import Enum
from typing import Any, Mapping

_DROP = object()


def to_json_safe(value: Any) -> Any:
    """Return a JSON-compatible copy of ``value``.

    Callables and values json cannot represent are stripped; containers are
    rebuilt so the result never shares structure with the input.
    """

    cleaned = _clean(value)
    return None if cleaned is _DROP else cleaned


def _clean(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Enum):
        return _clean(value.value)
    if callable(value):
        return _DROP
    if isinstance(value, Mapping):
        result: dict[str, Any] = {}
        for key, item in value.items():
            if not isinstance(key, (str, int, float, bool)):
                continue
            cleaned = _clean(item)
            if cleaned is _DROP:
                continue
            result[str(key)] = cleaned
        return result
    if isinstance(value, (list, tuple)):
        items = []
        for item in value:
            cleaned = _clean(item)
            if cleaned is not _DROP:
                items.append(cleaned)
        return items
    return _DROP
