from __future__ import annotations

import logging
import math
import random
import re
from typing import Any, Callable, Iterable, Mapping

from hoard.adapters import rows
from hoard.adapters.base import EffectAdapter
from hoard.adapters.ledger import Ledger
from hoard.adapters.segments import append_segment, format_segment, remove_segment
from hoard.components.character_sheet import CharacterSheet
from hoard.constants import (
    ABILITY_LEDGER_PREFIX,
    ABILITY_PREFIX,
    DEFAULT_ADAPTER_NAME,
    DEFAULT_CADENCE,
    DEFAULT_DETECT_MARKERS,
    DEFAULT_NOTE_FIELD,
    DEFAULT_ROW_ACTIVE_FIELD,
    DEFAULT_ROW_LABEL_FIELD,
    FLAG_OFF,
    FLAG_ON,
    FLAG_SUFFIX,
    HOOK_LEDGER_PREFIX,
    HOOK_SEPARATOR,
    HOOK_SEPARATOR_REPLACEMENT,
    LEDGER_PREFIX,
    NOTE_SEPARATOR,
    REMEMBERED_ROWS_SEPARATOR,
    RESOURCE_LEDGER_PREFIX,
    RESOURCE_PREFIX,
    RESOURCE_SUFFIXES,
    ROW_LEDGER_PREFIX,
    SET_LEDGER_PREFIX,
    TOGGLE_LEDGER_PREFIX,
)
from hoard.effects.patches import (
    PatchKind,
    PatchOperation,
    normalize_text,
    resolve_label,
    resolve_ledger_key,
)
from hoard.effects.registry import EffectDefinition
from hoard.utils.json_safe import to_json_safe
from hoard.utils.numbers import normalize_number, to_number

logger = logging.getLogger(__name__)

_Handler = Callable[[CharacterSheet, PatchOperation, EffectDefinition], bool]


class LedgerAdapter(EffectAdapter):
    """Sheet adapter that backs every mutated field with a contribution ledger.

    Each patch writes exactly one ledger entry keyed by its ledger key, and
    removal reverses exactly that entry. Other sources touching the same
    field are left alone, so effects can be removed in any order.
    """

    name = DEFAULT_ADAPTER_NAME

    def __init__(
        self,
        name: str | None = None,
        *,
        markers: Iterable[str] | None = DEFAULT_DETECT_MARKERS,
        rng: random.Random | None = None,
    ) -> None:
        if name:
            self.name = name
        self.markers = tuple(markers or ())
        if not self.markers:
            # No markers means the adapter accepts any sheet.
            self.detect = None
        self.rng = rng or random.Random()
        self._appliers: dict[PatchKind, _Handler] = {
            PatchKind.ADD_NUMBER: self._apply_number,
            PatchKind.APPEND_SEGMENT: self._apply_segment,
            PatchKind.CREATE_ROW: self._apply_row,
            PatchKind.TOGGLE_ROW: self._apply_toggle,
            PatchKind.DEFINE_RESOURCE: self._apply_resource,
            PatchKind.REGISTER_HOOK: self._apply_hook,
            PatchKind.SET_ATTRIBUTE: self._apply_set,
            PatchKind.UPSERT_ABILITY: self._apply_ability,
            PatchKind.APPEND_NOTE: self._apply_note,
        }
        self._removers: dict[PatchKind, _Handler] = {
            PatchKind.ADD_NUMBER: self._remove_number,
            PatchKind.APPEND_SEGMENT: self._remove_segment,
            PatchKind.CREATE_ROW: self._remove_row,
            PatchKind.TOGGLE_ROW: self._remove_toggle,
            PatchKind.DEFINE_RESOURCE: self._remove_resource,
            PatchKind.REGISTER_HOOK: self._remove_hook,
            PatchKind.SET_ATTRIBUTE: self._remove_set,
            PatchKind.UPSERT_ABILITY: self._remove_ability,
            PatchKind.APPEND_NOTE: self._remove_note,
        }

    def detect(self, sheet: CharacterSheet) -> bool:
        return any(sheet.has(marker) for marker in self.markers)

    def apply(self, sheet: CharacterSheet, patch: PatchOperation, effect: EffectDefinition) -> bool:
        handler = self._appliers.get(patch.kind)
        if handler is None:
            logger.warning("Unsupported patch kind %r", patch.kind)
            return False
        return handler(sheet, patch, effect)

    def remove(self, sheet: CharacterSheet, patch: PatchOperation, effect: EffectDefinition) -> bool:
        handler = self._removers.get(patch.kind)
        if handler is None:
            logger.warning("Unsupported patch kind %r", patch.kind)
            return False
        return handler(sheet, patch, effect)

    # Additive numeric ---------------------------------------------------
    def _apply_number(self, sheet: CharacterSheet, patch: PatchOperation, effect: EffectDefinition) -> bool:
        field = patch.target_field
        delta = to_number(patch.value)
        if not field or delta is None:
            return False
        key = resolve_ledger_key(patch, effect)
        total_field = patch.option("total_field", "")
        ledger = Ledger(sheet, LEDGER_PREFIX + field)
        ledger.track(field, total_field)
        _remember_number_base(sheet, ledger, field, total_field)
        ledger.pop(key)
        if delta:
            ledger.add(key, delta=delta, label=resolve_label(patch, effect))
        _settle_number(sheet, ledger, field, total_field)
        ledger.save()
        return True

    def _remove_number(self, sheet: CharacterSheet, patch: PatchOperation, effect: EffectDefinition) -> bool:
        field = patch.target_field
        if not field:
            return False
        key = resolve_ledger_key(patch, effect)
        total_field = patch.option("total_field", "")
        ledger = Ledger(sheet, LEDGER_PREFIX + field)
        _remember_number_base(sheet, ledger, field, total_field)
        if not ledger.pop(key):
            return True
        _settle_number(sheet, ledger, field, total_field)
        ledger.save()
        return True

    # String segments ----------------------------------------------------
    def _apply_segment(self, sheet: CharacterSheet, patch: PatchOperation, effect: EffectDefinition) -> bool:
        field = patch.target_field
        segment = format_segment(patch.value, resolve_label(patch, effect))
        if not field or not segment:
            return False
        key = resolve_ledger_key(patch, effect)
        flag_field = patch.option("flag_field", field + FLAG_SUFFIX)
        ledger = Ledger(sheet, LEDGER_PREFIX + field)
        ledger.track(field, flag_field)
        current = sheet.get(field)
        for entry in ledger.pop(key):
            current = remove_segment(current, entry.get("segment", ""))
        sheet.set(field, append_segment(current, segment))
        ledger.add(key, segment=segment)
        _sync_flag(sheet, field, flag_field)
        ledger.save()
        return True

    def _remove_segment(self, sheet: CharacterSheet, patch: PatchOperation, effect: EffectDefinition) -> bool:
        field = patch.target_field
        if not field:
            return False
        key = resolve_ledger_key(patch, effect)
        flag_field = patch.option("flag_field", field + FLAG_SUFFIX)
        ledger = Ledger(sheet, LEDGER_PREFIX + field)
        removed = ledger.pop(key)
        if removed:
            current = sheet.get(field)
            for entry in removed:
                current = remove_segment(current, entry.get("segment", ""))
            sheet.set(field, current)
            if not ledger.entries and flag_field in ledger.absent:
                sheet.delete(flag_field)
            else:
                _sync_flag(sheet, field, flag_field)
        ledger.save()
        return True

    # Repeating rows -----------------------------------------------------
    def _apply_row(self, sheet: CharacterSheet, patch: PatchOperation, effect: EffectDefinition) -> bool:
        section = rows.normalize_section(patch.target_field)
        fields = patch.value if isinstance(patch.value, Mapping) else {}
        label = normalize_text(patch.label)
        if not section or (not fields and not label):
            return False
        label = label or resolve_label(patch, effect)
        label_field = patch.option("label_field", DEFAULT_ROW_LABEL_FIELD)
        active_field = patch.option("active_field", DEFAULT_ROW_ACTIVE_FIELD)
        row_fields: dict[str, Any] = {str(name): to_json_safe(value) for name, value in fields.items()}
        row_fields.setdefault(label_field, label)
        row_fields.setdefault(active_field, "1")

        key = resolve_ledger_key(patch, effect)
        ledger = Ledger(sheet, ROW_LEDGER_PREFIX + section)
        ledger.track(rows.order_attribute(section), rows.remembered_attribute(section))
        for entry in ledger.pop(key):
            self._drop_row(sheet, section, entry.get("row_id", ""))

        row_id = rows.generate_row_id(self.rng, set(rows.row_ids(sheet, section)))
        rows.write_row(sheet, section, row_id, row_fields)
        rows.remember_row(sheet, section, row_id, REMEMBERED_ROWS_SEPARATOR)
        ledger.add(key, row_id=row_id, label=label)
        ledger.save()
        return True

    def _remove_row(self, sheet: CharacterSheet, patch: PatchOperation, effect: EffectDefinition) -> bool:
        section = rows.normalize_section(patch.target_field)
        if not section:
            return False
        key = resolve_ledger_key(patch, effect)
        ledger = Ledger(sheet, ROW_LEDGER_PREFIX + section)
        # Only this key's row goes; rows remembered for other sources stay.
        for entry in ledger.pop(key):
            self._drop_row(sheet, section, entry.get("row_id", ""))
        ledger.save()
        return True

    @staticmethod
    def _drop_row(sheet: CharacterSheet, section: str, row_id: str) -> None:
        if not row_id:
            return
        rows.delete_row(sheet, section, row_id)
        rows.forget_row(sheet, section, row_id, REMEMBERED_ROWS_SEPARATOR)

    def _apply_toggle(self, sheet: CharacterSheet, patch: PatchOperation, effect: EffectDefinition) -> bool:
        section = rows.normalize_section(patch.target_field)
        label = normalize_text(patch.label)
        if not section or not label:
            return False
        label_field = patch.option("label_field", DEFAULT_ROW_LABEL_FIELD)
        active_field = patch.option("active_field", DEFAULT_ROW_ACTIVE_FIELD)
        row_id = rows.find_row_by_label(sheet, section, label_field, label)
        if row_id is None:
            logger.info("No '%s' row labelled '%s' to toggle", section, label)
            return False
        attribute = rows.row_attribute(section, row_id, active_field)

        key = resolve_ledger_key(patch, effect)
        ledger = Ledger(sheet, TOGGLE_LEDGER_PREFIX + section)
        for entry in ledger.pop(key):
            self._settle_toggle(
                sheet,
                ledger,
                section,
                entry.get("row_id", ""),
                entry.get("field") or active_field,
                fallback=entry,
            )
        same_row = ledger.entries_where(row_id=row_id)
        if same_row:
            base, base_set = same_row[0].get("base"), same_row[0].get("base_set", True)
        else:
            base, base_set = sheet.get(attribute, None), sheet.has(attribute)
        if patch.value is None:
            active = 0 if rows.to_active_value(sheet.get(attribute), fallback=False) else 1
        else:
            active = rows.to_active_value(patch.value)
        sheet.set(attribute, str(active))
        ledger.add(key, row_id=row_id, field=active_field, value=str(active), base=base, base_set=base_set)
        ledger.save()
        return True

    def _remove_toggle(self, sheet: CharacterSheet, patch: PatchOperation, effect: EffectDefinition) -> bool:
        section = rows.normalize_section(patch.target_field)
        if not section:
            return False
        key = resolve_ledger_key(patch, effect)
        ledger = Ledger(sheet, TOGGLE_LEDGER_PREFIX + section)
        removed = ledger.pop(key)
        for entry in removed:
            self._settle_toggle(
                sheet,
                ledger,
                section,
                entry.get("row_id", ""),
                entry.get("field") or DEFAULT_ROW_ACTIVE_FIELD,
                fallback=entry,
            )
        ledger.save()
        return True

    @staticmethod
    def _settle_toggle(
        sheet: CharacterSheet,
        ledger: Ledger,
        section: str,
        row_id: str,
        active_field: str,
        fallback: Mapping[str, Any] | None = None,
    ) -> None:
        """Show the latest remaining toggle for a row, or restore its base value."""

        if not row_id or not rows.row_exists(sheet, section, row_id):
            return
        attribute = rows.row_attribute(section, row_id, active_field)
        remaining = ledger.entries_where(row_id=row_id)
        if remaining:
            sheet.set(attribute, remaining[-1].get("value"))
            return
        if fallback is None:
            return
        if fallback.get("base_set", True):
            sheet.set(attribute, fallback.get("base"))
        else:
            sheet.delete(attribute)

    # Resource counters --------------------------------------------------
    def _apply_resource(self, sheet: CharacterSheet, patch: PatchOperation, effect: EffectDefinition) -> bool:
        name = normalize_text(patch.target_field) or normalize_text(patch.label)
        if not name:
            return False
        maximum = to_number(patch.value)
        if maximum is None:
            maximum = 1
        current = to_number(patch.option("current"))
        if current is None:
            current = maximum
        cadence = str(patch.option("cadence", DEFAULT_CADENCE))
        base = resource_base(name)

        key = resolve_ledger_key(patch, effect)
        ledger = Ledger(sheet, RESOURCE_LEDGER_PREFIX + base[len(RESOURCE_PREFIX):])
        ledger.add(key, name=name, max=maximum, current=current, cadence=cadence)
        _write_resource(sheet, base, maximum, current, cadence)
        ledger.save()
        return True

    def _remove_resource(self, sheet: CharacterSheet, patch: PatchOperation, effect: EffectDefinition) -> bool:
        name = normalize_text(patch.target_field) or normalize_text(patch.label)
        if not name:
            return False
        base = resource_base(name)
        key = resolve_ledger_key(patch, effect)
        ledger = Ledger(sheet, RESOURCE_LEDGER_PREFIX + base[len(RESOURCE_PREFIX):])
        ledger.pop(key)
        # Another source still defines the counter: show its values instead of deleting.
        if ledger.entries:
            latest = ledger.entries[-1]
            _write_resource(sheet, base, latest.get("max"), latest.get("current"), latest.get("cadence"))
        else:
            for suffix in RESOURCE_SUFFIXES:
                sheet.delete(base + suffix)
        ledger.save()
        return True

    # Hooks --------------------------------------------------------------
    def _apply_hook(self, sheet: CharacterSheet, patch: PatchOperation, effect: EffectDefinition) -> bool:
        field = patch.target_field
        hook = normalize_text(patch.value).replace(HOOK_SEPARATOR, HOOK_SEPARATOR_REPLACEMENT)
        if not field or not hook:
            return False
        key = resolve_ledger_key(patch, effect)
        ledger = Ledger(sheet, HOOK_LEDGER_PREFIX + field)
        ledger.track(field)
        hooks = _split_hooks(sheet.get(field))
        for entry in ledger.pop(key):
            _discard_once(hooks, entry.get("hook"))
        hooks.append(hook)
        sheet.set(field, HOOK_SEPARATOR.join(hooks))
        ledger.add(key, hook=hook)
        ledger.save()
        return True

    def _remove_hook(self, sheet: CharacterSheet, patch: PatchOperation, effect: EffectDefinition) -> bool:
        field = patch.target_field
        if not field:
            return False
        key = resolve_ledger_key(patch, effect)
        ledger = Ledger(sheet, HOOK_LEDGER_PREFIX + field)
        removed = ledger.pop(key)
        if removed:
            hooks = _split_hooks(sheet.get(field))
            for entry in removed:
                _discard_once(hooks, entry.get("hook"))
            sheet.set(field, HOOK_SEPARATOR.join(hooks))
        ledger.save()
        return True

    # Attribute overrides ------------------------------------------------
    def _apply_set(self, sheet: CharacterSheet, patch: PatchOperation, effect: EffectDefinition) -> bool:
        field = patch.target_field
        value = to_json_safe(patch.value)
        if not field or value is None or value == "":
            return False
        key = resolve_ledger_key(patch, effect)
        _push_override(sheet, Ledger(sheet, SET_LEDGER_PREFIX + field), field, key, value)
        return True

    def _remove_set(self, sheet: CharacterSheet, patch: PatchOperation, effect: EffectDefinition) -> bool:
        field = patch.target_field
        if not field:
            return False
        key = resolve_ledger_key(patch, effect)
        _pop_override(sheet, Ledger(sheet, SET_LEDGER_PREFIX + field), field, key)
        return True

    # Abilities ----------------------------------------------------------
    def _apply_ability(self, sheet: CharacterSheet, patch: PatchOperation, effect: EffectDefinition) -> bool:
        name = normalize_text(patch.target_field)
        details = patch.value if isinstance(patch.value, Mapping) else {}
        action = str(details.get("action") or "").strip()
        if not name or not action:
            return False
        record = {"name": name, "action": action, "token": bool(details.get("token", True))}
        attribute = ability_attribute(name)
        key = resolve_ledger_key(patch, effect)
        ledger = Ledger(sheet, ABILITY_LEDGER_PREFIX + attribute[len(ABILITY_PREFIX):])
        _push_override(sheet, ledger, attribute, key, record)
        return True

    def _remove_ability(self, sheet: CharacterSheet, patch: PatchOperation, effect: EffectDefinition) -> bool:
        name = normalize_text(patch.target_field)
        if not name:
            return False
        attribute = ability_attribute(name)
        key = resolve_ledger_key(patch, effect)
        ledger = Ledger(sheet, ABILITY_LEDGER_PREFIX + attribute[len(ABILITY_PREFIX):])
        _pop_override(sheet, ledger, attribute, key)
        return True

    # GM notes -----------------------------------------------------------
    def _apply_note(self, sheet: CharacterSheet, patch: PatchOperation, effect: EffectDefinition) -> bool:
        field = patch.target_field or DEFAULT_NOTE_FIELD
        text = normalize_text(patch.value)
        if not text:
            return False
        note = f"{resolve_label(patch, effect)}: {text}"
        key = resolve_ledger_key(patch, effect)
        ledger = Ledger(sheet, LEDGER_PREFIX + field)
        ledger.track(field)
        current = sheet.get(field)
        for entry in ledger.pop(key):
            current = remove_segment(current, entry.get("note", ""), NOTE_SEPARATOR)
        sheet.set(field, append_segment(current, note, NOTE_SEPARATOR))
        ledger.add(key, note=note)
        ledger.save()
        return True

    def _remove_note(self, sheet: CharacterSheet, patch: PatchOperation, effect: EffectDefinition) -> bool:
        field = patch.target_field or DEFAULT_NOTE_FIELD
        key = resolve_ledger_key(patch, effect)
        ledger = Ledger(sheet, LEDGER_PREFIX + field)
        removed = ledger.pop(key)
        if removed:
            current = sheet.get(field)
            for entry in removed:
                current = remove_segment(current, entry.get("note", ""), NOTE_SEPARATOR)
            sheet.set(field, current)
        ledger.save()
        return True


def resource_base(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]", "_", str(name or "resource"), flags=re.IGNORECASE).lower()
    return RESOURCE_PREFIX + slug


def ability_attribute(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "_", str(name or "ability"), flags=re.IGNORECASE).strip("_").lower()
    return ABILITY_PREFIX + (slug or "ability")


def _write_resource(sheet: CharacterSheet, base: str, maximum: Any, current: Any, cadence: Any) -> None:
    max_suffix, cur_suffix, cadence_suffix = RESOURCE_SUFFIXES
    sheet.set(base + max_suffix, maximum)
    sheet.set(base + cur_suffix, current)
    sheet.set(base + cadence_suffix, cadence or DEFAULT_CADENCE)


def _remember_base(sheet: CharacterSheet, ledger: Ledger, field: str, slot: str = "base") -> None:
    if slot in ledger.meta:
        return
    ledger.meta[slot] = sheet.get(field, None)
    ledger.meta[slot + "_set"] = sheet.has(field)


def _restore_base(sheet: CharacterSheet, ledger: Ledger, field: str, slot: str = "base") -> None:
    if ledger.meta.get(slot + "_set"):
        sheet.set(field, ledger.meta.get(slot))
    else:
        sheet.delete(field)


def _push_override(sheet: CharacterSheet, ledger: Ledger, field: str, key: str, value: Any) -> None:
    _remember_base(sheet, ledger, field)
    ledger.add(key, value=value)
    sheet.set(field, value)
    ledger.save()


def _pop_override(sheet: CharacterSheet, ledger: Ledger, field: str, key: str) -> None:
    """Show the latest remaining override, or put the pre-override value back."""

    if not ledger.pop(key):
        return
    if ledger.entries:
        sheet.set(field, ledger.entries[-1].get("value"))
    else:
        _restore_base(sheet, ledger, field)
    ledger.save()


def _remember_number_base(sheet: CharacterSheet, ledger: Ledger, field: str, total_field: str) -> None:
    if "base" not in ledger.meta and ledger.entries:
        # Ledgers written without a base: the field already includes every delta.
        current = to_number(sheet.get(field)) or 0
        ledger.meta["base"] = normalize_number(current - ledger.total())
        ledger.meta["base_set"] = True
        if total_field:
            ledger.meta.setdefault("total_base", 0)
            ledger.meta.setdefault("total_base_set", True)
    _remember_base(sheet, ledger, field)
    if total_field:
        _remember_base(sheet, ledger, total_field, "total_base")


def _settle_number(sheet: CharacterSheet, ledger: Ledger, field: str, total_field: str) -> None:
    """Write ``base + sum(deltas)`` to the field, or the exact base once the ledger is empty."""

    if not ledger.entries:
        _restore_base(sheet, ledger, field)
        if total_field:
            _restore_base(sheet, ledger, total_field, "total_base")
        return
    base = ledger.meta.get("base")
    deltas = [to_number(entry.get("delta")) or 0 for entry in ledger.entries]
    value = normalize_number(math.fsum([to_number(base) or 0, *deltas]))
    sheet.set(field, str(value) if isinstance(base, str) else value)
    if total_field:
        sheet.set(total_field, ledger.total())


def _sync_flag(sheet: CharacterSheet, field: str, flag_field: str) -> None:
    if not flag_field:
        return
    has_value = bool(str(sheet.get(field) or "").strip())
    sheet.set(flag_field, FLAG_ON if has_value else FLAG_OFF)


def _split_hooks(raw: Any) -> list[str]:
    return [part for part in str(raw or "").split(HOOK_SEPARATOR) if part]


def _discard_once(items: list[str], token: Any) -> None:
    if token in items:
        items.remove(token)
