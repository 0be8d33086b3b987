from __future__ import annotations

import random
from typing import Any, Mapping

from hoard.components.character_sheet import CharacterSheet
from hoard.constants import (
    REMEMBERED_ROWS_PREFIX,
    REPEATING_PREFIX,
    REPORDER_PREFIX,
    ROW_ID_CHARSET,
    ROW_ID_LENGTH,
    ROW_ORDER_SEPARATOR,
)
from hoard.effects.patches import normalize_text


def normalize_section(section: str) -> str:
    section = str(section or "").strip()
    if section.startswith(REPEATING_PREFIX):
        return section[len(REPEATING_PREFIX):]
    return section


def row_prefix(section: str, row_id: str) -> str:
    return f"{REPEATING_PREFIX}{normalize_section(section)}_{row_id}_"


def row_attribute(section: str, row_id: str, field: str) -> str:
    return row_prefix(section, row_id) + field


def order_attribute(section: str) -> str:
    return REPORDER_PREFIX + normalize_section(section)


def remembered_attribute(section: str) -> str:
    return REMEMBERED_ROWS_PREFIX + normalize_section(section)


def generate_row_id(rng: random.Random, existing: set[str] | None = None) -> str:
    while True:
        row_id = "-" + "".join(rng.choice(ROW_ID_CHARSET) for _ in range(ROW_ID_LENGTH))
        if not existing or row_id not in existing:
            return row_id


def row_ids(sheet: CharacterSheet, section: str) -> list[str]:
    """Ids of every row currently present in ``section``, in sheet order."""

    prefix = f"{REPEATING_PREFIX}{normalize_section(section)}_"
    ordered = _split(sheet.get(order_attribute(section)), ROW_ORDER_SEPARATOR)
    found: list[str] = []
    for name in sheet.names_with_prefix(prefix):
        # Row ids never contain underscores, so the first one ends the id.
        row_id, sep, _field = name[len(prefix):].partition("_")
        if not sep or not row_id:
            continue
        if row_id not in found:
            found.append(row_id)
    ranked = [row_id for row_id in ordered if row_id in found]
    return ranked + [row_id for row_id in found if row_id not in ranked]


def row_exists(sheet: CharacterSheet, section: str, row_id: str) -> bool:
    return bool(sheet.names_with_prefix(row_prefix(section, row_id)))


def write_row(sheet: CharacterSheet, section: str, row_id: str, fields: Mapping[str, Any]) -> None:
    for field, value in fields.items():
        sheet.set(row_attribute(section, row_id, str(field)), value)
    _append_unique(sheet, order_attribute(section), row_id, ROW_ORDER_SEPARATOR)


def delete_row(sheet: CharacterSheet, section: str, row_id: str) -> int:
    removed = 0
    for name in sheet.names_with_prefix(row_prefix(section, row_id)):
        if sheet.delete(name):
            removed += 1
    _discard(sheet, order_attribute(section), row_id, ROW_ORDER_SEPARATOR)
    return removed


def remember_row(sheet: CharacterSheet, section: str, row_id: str, separator: str) -> None:
    _append_unique(sheet, remembered_attribute(section), row_id, separator)


def forget_row(sheet: CharacterSheet, section: str, row_id: str, separator: str) -> None:
    _discard(sheet, remembered_attribute(section), row_id, separator)


def find_row_by_label(sheet: CharacterSheet, section: str, label_field: str, label: str) -> str | None:
    wanted = normalize_text(label).lower()
    if not wanted:
        return None
    for row_id in row_ids(sheet, section):
        current = normalize_text(sheet.get(row_attribute(section, row_id, label_field))).lower()
        if current == wanted:
            return row_id
    return None


def to_active_value(value: Any, fallback: bool = True) -> int:
    """Interpret sheet-style truthiness ("on", "off", "1", "", ...) as 1 or 0."""

    if value is None:
        return 1 if fallback else 0
    if isinstance(value, bool):
        return 1 if value else 0
    text = str(value).strip().lower()
    if text in ("on", "true", "yes"):
        return 1
    if text in ("off", "false", "no", "", "0"):
        return 0
    try:
        return 1 if float(text) else 0
    except ValueError:
        return 1 if fallback else 0


def _split(raw: Any, separator: str) -> list[str]:
    text = str(raw or "")
    return [part for part in text.split(separator) if part]


def _append_unique(sheet: CharacterSheet, attribute: str, token: str, separator: str) -> None:
    parts = _split(sheet.get(attribute), separator)
    if token in parts:
        return
    parts.append(token)
    sheet.set(attribute, separator.join(parts))


def _discard(sheet: CharacterSheet, attribute: str, token: str, separator: str) -> None:
    if not sheet.has(attribute):
        return
    parts = _split(sheet.get(attribute), separator)
    if token not in parts:
        return
    sheet.set(attribute, separator.join(part for part in parts if part != token))
