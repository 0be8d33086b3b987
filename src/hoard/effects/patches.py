from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, Any, Mapping

from hoard.constants import DEFAULT_NOTE_FIELD, LEDGER_KEY_SEPARATOR
from hoard.utils.json_safe import to_json_safe

if TYPE_CHECKING:
    from hoard.effects.registry import EffectDefinition

_WHITESPACE = re.compile(r"\s+")


class PatchKind(str, Enum):
    ADD_NUMBER = "add-number"
    APPEND_SEGMENT = "append-segment"
    CREATE_ROW = "create-row"
    TOGGLE_ROW = "toggle-row"
    DEFINE_RESOURCE = "define-resource"
    REGISTER_HOOK = "register-hook"
    SET_ATTRIBUTE = "set-attribute"
    UPSERT_ABILITY = "upsert-ability"
    APPEND_NOTE = "append-note"


@dataclass(frozen=True)
class PatchOperation:
    """One unit of mutation intent against a single sheet field.

    ``target_field`` names the field (or repeating section for row kinds),
    ``value`` carries the delta / text / row fields, and ``options`` holds
    kind-specific extras such as ``flag_field`` or ``cadence``.
    """

    kind: PatchKind
    target_field: str
    value: Any = None
    label: str = ""
    ledger_key: str = ""
    options: Mapping[str, Any] = field(default_factory=dict)

    def copy(self) -> PatchOperation:
        return replace(
            self,
            value=to_json_safe(self.value),
            options=dict(to_json_safe(self.options) or {}),
        )

    def option(self, name: str, default: Any = None) -> Any:
        value = self.options.get(name)
        if value is None or value == "":
            return default
        return value

    def with_ledger_key(self, ledger_key: str) -> PatchOperation:
        return replace(self.copy(), ledger_key=ledger_key)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "target_field": self.target_field,
            "value": to_json_safe(self.value),
            "label": self.label,
            "ledger_key": self.ledger_key,
            "options": to_json_safe(self.options) or {},
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PatchOperation:
        return cls(
            kind=PatchKind(data["kind"]),
            target_field=str(data.get("target_field") or ""),
            value=to_json_safe(data.get("value")),
            label=str(data.get("label") or ""),
            ledger_key=str(data.get("ledger_key") or ""),
            options=dict(to_json_safe(data.get("options")) or {}),
        )


def normalize_text(value: Any) -> str:
    if value is None:
        return ""
    return _WHITESPACE.sub(" ", str(value)).strip()


def resolve_label(patch: PatchOperation, effect: EffectDefinition | None, fallback: str = "Effect") -> str:
    """Display label for a patch: its own label, else the effect's name or id."""

    for candidate in (
        patch.label,
        effect.name if effect is not None else None,
        effect.effect_id if effect is not None else None,
    ):
        text = normalize_text(candidate)
        if text:
            return text
    return fallback


def resolve_ledger_key(patch: PatchOperation, effect: EffectDefinition | None) -> str:
    if patch.ledger_key:
        return patch.ledger_key
    suffix = normalize_text(patch.label) or resolve_label(patch, effect, fallback=patch.kind.value)
    if effect is not None and effect.effect_id:
        return f"{effect.effect_id}{LEDGER_KEY_SEPARATOR}{suffix}"
    return suffix


# Builders used by content definitions -------------------------------------
def add_number(field_name: str, delta: float | int, label: str = "", *, ledger_key: str = "", total_field: str = "") -> PatchOperation:
    options = {"total_field": total_field} if total_field else {}
    return PatchOperation(PatchKind.ADD_NUMBER, field_name, delta, label, ledger_key, options)


def append_segment(field_name: str, value: Any, label: str = "", *, ledger_key: str = "", flag_field: str = "") -> PatchOperation:
    options = {"flag_field": flag_field} if flag_field else {}
    return PatchOperation(PatchKind.APPEND_SEGMENT, field_name, value, label, ledger_key, options)


def create_row(section: str, fields: Mapping[str, Any], label: str = "", *, ledger_key: str = "", label_field: str = "", active_field: str = "") -> PatchOperation:
    options = {}
    if label_field:
        options["label_field"] = label_field
    if active_field:
        options["active_field"] = active_field
    return PatchOperation(PatchKind.CREATE_ROW, section, dict(fields), label, ledger_key, options)


def toggle_row(section: str, label: str, active: Any = None, *, ledger_key: str = "", label_field: str = "", active_field: str = "") -> PatchOperation:
    options = {}
    if label_field:
        options["label_field"] = label_field
    if active_field:
        options["active_field"] = active_field
    return PatchOperation(PatchKind.TOGGLE_ROW, section, active, label, ledger_key, options)


def define_resource(name: str, maximum: int, *, cadence: str = "", current: int | None = None, ledger_key: str = "") -> PatchOperation:
    options: dict[str, Any] = {}
    if cadence:
        options["cadence"] = cadence
    if current is not None:
        options["current"] = current
    return PatchOperation(PatchKind.DEFINE_RESOURCE, name, maximum, name, ledger_key, options)


def register_hook(field_name: str, hook_id: str, label: str = "", *, ledger_key: str = "") -> PatchOperation:
    return PatchOperation(PatchKind.REGISTER_HOOK, field_name, hook_id, label, ledger_key)


def set_attribute(field_name: str, value: Any, label: str = "", *, ledger_key: str = "") -> PatchOperation:
    return PatchOperation(PatchKind.SET_ATTRIBUTE, field_name, value, label, ledger_key)


def upsert_ability(name: str, action: str, label: str = "", *, token: bool = True, ledger_key: str = "") -> PatchOperation:
    return PatchOperation(PatchKind.UPSERT_ABILITY, name, {"action": action, "token": bool(token)}, label, ledger_key)


def append_note(text: str, label: str = "", *, field_name: str = DEFAULT_NOTE_FIELD, ledger_key: str = "") -> PatchOperation:
    return PatchOperation(PatchKind.APPEND_NOTE, field_name, text, label, ledger_key)
