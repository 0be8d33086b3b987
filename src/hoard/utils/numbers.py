from __future__ import annotations

import math
from typing import Any


def to_number(value: Any) -> float | int | None:
    """Coerce sheet input to a number, or ``None`` when it is not numeric."""

    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        return normalize_number(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            parsed = float(text)
        except ValueError:
            return None
        if not math.isfinite(parsed):
            return None
        return normalize_number(parsed)
    return None


def normalize_number(value: float | int) -> float | int:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def format_signed(value: float | int) -> str:
    value = normalize_number(value)
    if value == 0:
        return "0"
    return f"+{value}" if value > 0 else str(value)
