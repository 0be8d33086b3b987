from __future__ import annotations

import json
import logging
import math
from typing import Any, Iterable

from hoard.components.character_sheet import CharacterSheet
from hoard.utils.json_safe import to_json_safe
from hoard.utils.numbers import normalize_number, to_number

logger = logging.getLogger(__name__)


class Ledger:
    """Per-field contribution ledger persisted as a sheet attribute.

    The stored document looks like::

        {"entries": [{"key": ..., ...}, ...], "absent": [...], "meta": {...}}

    ``entries`` holds at most one entry per ledger key, in application
    order. ``absent`` lists the attributes that did not exist when the first
    entry was written; once the ledger empties again those attributes are
    dropped if they are back to a neutral value, so a full apply/remove
    cycle leaves the sheet exactly as it was.
    """

    def __init__(self, sheet: CharacterSheet, attribute: str) -> None:
        self.sheet = sheet
        self.attribute = attribute
        document = _read_document(sheet.get(attribute, None), attribute)
        self.entries: list[dict[str, Any]] = [dict(entry) for entry in document.get("entries", []) if isinstance(entry, dict)]
        self.absent: list[str] = [str(name) for name in document.get("absent", [])]
        self.meta: dict[str, Any] = dict(document.get("meta") or {})
        self._fresh = not self.entries

    def track(self, *names: str) -> None:
        """Remember which of ``names`` are missing before this ledger's first entry."""

        if not self._fresh:
            return
        for name in names:
            if name and not self.sheet.has(name) and name not in self.absent:
                self.absent.append(name)

    def pop(self, key: str) -> list[dict[str, Any]]:
        removed = [entry for entry in self.entries if entry.get("key") == key]
        if removed:
            self.entries = [entry for entry in self.entries if entry.get("key") != key]
        return removed

    def add(self, key: str, **values: Any) -> dict[str, Any]:
        self.pop(key)
        entry = {"key": key}
        entry.update(to_json_safe(values) or {})
        self.entries.append(entry)
        return entry

    def entries_where(self, **criteria: Any) -> list[dict[str, Any]]:
        return [
            entry
            for entry in self.entries
            if all(entry.get(name) == value for name, value in criteria.items())
        ]

    def total(self, field: str = "delta") -> float | int:
        return normalize_number(math.fsum(to_number(entry.get(field)) or 0 for entry in self.entries))

    def save(self) -> None:
        if self.entries:
            self.sheet.set(
                self.attribute,
                {"entries": self.entries, "absent": list(self.absent), "meta": dict(self.meta)},
            )
            return
        self.sheet.delete(self.attribute)
        self._drop_neutral(self.absent)
        self.absent = []
        self.meta = {}

    def _drop_neutral(self, names: Iterable[str]) -> None:
        for name in names:
            if self.sheet.has(name) and is_neutral(self.sheet.get(name, None)):
                self.sheet.delete(name)


def is_neutral(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, bool):
        return not value
    if isinstance(value, (int, float)):
        return value == 0
    if isinstance(value, str):
        return value.strip() in ("", "0")
    if isinstance(value, (list, dict)):
        return not value
    return False


def _read_document(raw: Any, attribute: str) -> dict[str, Any]:
    if raw is None or raw == "":
        return {}
    if isinstance(raw, str):
        # Older sheets stored the ledger as a JSON string.
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring unreadable ledger in '%s'", attribute)
            return {}
    if isinstance(raw, list):
        return {"entries": raw}
    if isinstance(raw, dict):
        return raw
    logger.warning("Ignoring ledger of unexpected type %s in '%s'", type(raw).__name__, attribute)
    return {}
