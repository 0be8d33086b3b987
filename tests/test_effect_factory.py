from hoard.effects.factory import (
    build_ability_action,
    build_boon_effect,
    build_relic_effect,
    default_effect_definitions,
    ensure_default_effects_registered,
)
from hoard.effects.patches import PatchKind
from hoard.effects.registry import EffectRegistry


def test_build_relic_effect_names_and_source():
    definition = build_relic_effect("relic_test_r", {
        "name": "Test Relic",
        "rarity": "Rare",
        "category": "Defense",
        "attrs": [{"name": "ac_bonus", "op": "add", "value": 2}],
    })

    assert definition.name == "Test Relic (Rare)"
    assert definition.source == "Relic — Defense (Rare)"
    (patch,) = definition.patches
    assert patch.kind is PatchKind.ADD_NUMBER
    assert patch.target_field == "ac_bonus"
    assert patch.value == 2
    assert patch.label == "Test Relic (Rare)"


def test_build_relic_uses_resource_block():
    definition = build_relic_effect("relic_signet", {"name": "Signet", "uses": {"cadence": "per_room", "value": 1}})

    (patch,) = definition.patches
    assert patch.kind is PatchKind.DEFINE_RESOURCE
    assert patch.target_field == "Signet (Common)"
    assert patch.value == 1
    assert patch.option("cadence") == "per_room"


def test_build_boon_effect_patch_kinds():
    definition = build_boon_effect({
        "id": "test_boon",
        "name": "Test Boon",
        "ancestor": "Vladren Moroi",
        "attrs": [{"name": "hr_speed", "value": 10}],
        "segments": [{"field": "global_damage_mod", "value": "+1d4"}],
        "rows": [{"section": "acmod", "fields": {"global_ac_val": "1"}}],
        "toggles": [{"section": "traits", "label": "Rage", "active": 0}],
        "hooks": [{"id": "Transfusion"}],
        "patches": [{"kind": "add-number", "target_field": "initiative_bonus", "value": 1}],
    })

    assert definition.source == "Vladren Moroi (Common)"
    assert [patch.kind for patch in definition.patches] == [
        PatchKind.SET_ATTRIBUTE,
        PatchKind.APPEND_SEGMENT,
        PatchKind.CREATE_ROW,
        PatchKind.TOGGLE_ROW,
        PatchKind.REGISTER_HOOK,
        PatchKind.ADD_NUMBER,
    ]
    assert definition.patches[4].target_field == "hr_on_kill_hooks"


def test_relic_fields_become_info_ability():
    definition = build_relic_effect("relic_signet", {
        "name": "Signet",
        "fields": [{"label": "Effect", "value": "Bonus cantrip"}, {"value": "unlabelled"}],
        "token_action": False,
        "note": "Once per room.",
    })

    ability, note = definition.patches
    assert ability.kind is PatchKind.UPSERT_ABILITY
    assert ability.target_field == "[Relic] Signet (Common)"
    assert ability.value == {"action": "&{template:default} {{name=Signet (Common)}} {{Effect=Bonus cantrip}}", "token": False}
    assert note.kind is PatchKind.APPEND_NOTE
    assert note.target_field == "gmnotes"
    assert note.value == "Once per room."


def test_build_ability_action_skips_unlabelled_fields():
    assert build_ability_action("Vitae") == "&{template:default} {{name=Vitae}}"
    assert build_ability_action("Vitae", [{"label": "Speed", "value": 10}, {"label": "Blank"}, None]) == (
        "&{template:default} {{name=Vitae}} {{Speed=10}} {{Blank=}}"
    )


def test_builders_reject_empty_config():
    assert build_relic_effect("relic_none", None) is None
    assert build_boon_effect({}) is None
    assert build_boon_effect({"name": "No id"}) is None


def test_default_effects_register_once():
    registry = EffectRegistry()
    ensure_default_effects_registered(registry)
    ensure_default_effects_registered(registry)

    assert len(registry) == len(default_effect_definitions())
    assert registry.has("fire_boon")
    assert registry.has("relic_bulwark_band_c")
    for definition in registry.list():
        assert definition.patches
