from enum import Enum

from hoard.effects.patches import (
    PatchKind,
    PatchOperation,
    add_number,
    append_note,
    define_resource,
    resolve_label,
    resolve_ledger_key,
    toggle_row,
    upsert_ability,
)
from hoard.utils.json_safe import to_json_safe
from hoard.utils.numbers import format_signed, to_number

from tests.helpers import make_definition


class _Color(Enum):
    RED = "red"


def test_ledger_key_defaults_to_effect_and_label():
    patch = add_number("ac_bonus", 1, "  Bulwark   Band ")
    effect = make_definition("relic_bulwark_band_c", patch, name="Bulwark Band (Common)")

    assert resolve_ledger_key(patch, effect) == "relic_bulwark_band_c::Bulwark Band"


def test_ledger_key_falls_back_to_effect_name_then_id():
    patch = add_number("ac_bonus", 1)

    assert resolve_ledger_key(patch, make_definition("ring", patch, name="Ring")) == "ring::Ring"
    assert resolve_ledger_key(patch, make_definition("ring", patch, name="")) == "ring::ring"
    assert resolve_label(patch, None) == "Effect"


def test_explicit_ledger_key_wins():
    patch = add_number("ac_bonus", 1, "Band", ledger_key="shared::ac")
    assert resolve_ledger_key(patch, make_definition("ring", patch)) == "shared::ac"
    assert patch.with_ledger_key("other").ledger_key == "other"


def test_patch_dict_round_trip_drops_callables():
    patch = PatchOperation(
        PatchKind.DEFINE_RESOURCE,
        "Malice",
        6,
        "Malice",
        options={"cadence": "per_run", "callback": print, "color": _Color.RED},
    )

    data = patch.to_dict()

    assert data["kind"] == "define-resource"
    assert data["options"] == {"cadence": "per_run", "color": "red"}
    restored = PatchOperation.from_dict(data)
    assert restored.kind is PatchKind.DEFINE_RESOURCE
    assert restored.option("cadence") == "per_run"
    assert restored.option("callback", "none") == "none"


def test_builder_options():
    resource = define_resource("Malice", 6, cadence="per_run", current=0)
    assert resource.label == "Malice"
    assert resource.option("current") == 0
    assert toggle_row("traits", "Rage").value is None
    assert add_number("ac_bonus", 1, total_field="ac_total").option("total_field") == "ac_total"
    assert upsert_ability("Rage", "/em rages", token=0).value == {"action": "/em rages", "token": False}
    assert append_note("Owes a favour", "Ferry").target_field == "gmnotes"


def test_json_safe_and_numbers():
    assert to_json_safe({"a": (1, 2), 3: len, "b": {"c": object()}}) == {"a": [1, 2], "b": {}}
    assert to_json_safe(len) is None
    assert to_number(" 2.0 ") == 2
    assert to_number("1d6") is None
    assert to_number(float("nan")) is None
    assert format_signed(0) == "0"
    assert format_signed(-2.0) == "-2"
