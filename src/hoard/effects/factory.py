from __future__ import annotations

from typing import Any, Iterable, Mapping

from hoard.effects.patches import (
    PatchOperation,
    add_number,
    append_note,
    append_segment,
    create_row,
    define_resource,
    register_hook,
    set_attribute,
    toggle_row,
    upsert_ability,
)
from hoard.effects.registry import EffectDefinition, EffectRegistry


def build_relic_effect(effect_id: str, config: Mapping[str, Any] | None) -> EffectDefinition | None:
    """Wrap a raw relic catalog entry into an effect definition.

    Display name and source annotation follow the catalog convention
    ``"<name> (<rarity>)"`` and ``"Relic — <category> (<rarity>)"``.
    """

    if not config:
        return None
    rarity = str(config.get("rarity") or "Common")
    category = str(config.get("category") or "Relic")
    display_name = str(config.get("display_name") or f"{config.get('name', effect_id)} ({rarity})")
    source = str(config.get("source") or f"Relic — {category} ({rarity})")
    if config.get("fields"):
        info = {
            "name": config.get("ability_name") or f"[Relic] {display_name}",
            "header": display_name,
            "fields": config["fields"],
            "token": config.get("token_action", True),
        }
        config = {**config, "abilities": (info, *(config.get("abilities") or ()))}
    return EffectDefinition(
        effect_id=effect_id,
        name=display_name,
        patches=tuple(_patches_from_config(config, display_name)),
        source=source,
        description=str(config.get("text_in_run") or config.get("note") or ""),
        tags=tuple(config.get("tags") or ()),
        metadata={"rarity": rarity, "category": category},
    )


def build_boon_effect(config: Mapping[str, Any] | None) -> EffectDefinition | None:
    if not config or not config.get("id"):
        return None
    name = str(config.get("name") or config["id"])
    ancestor = str(config.get("ancestor") or "")
    rarity = str(config.get("rarity") or "Common")
    source = f"{ancestor} ({rarity})" if ancestor else rarity
    return EffectDefinition(
        effect_id=str(config["id"]),
        name=name,
        patches=tuple(_patches_from_config(config, name)),
        source=source,
        description=str(config.get("text") or ""),
        tags=tuple(config.get("tags") or ()),
        metadata={"rarity": rarity, "ancestor": ancestor},
    )


def build_ability_action(header: str, fields: Iterable[Mapping[str, Any]] | None = None) -> str:
    """Roll template text for an info ability: a title plus one row per labelled field."""

    action = "&{template:default} {{name=" + str(header) + "}}"
    for entry in fields or ():
        if not entry or not entry.get("label"):
            continue
        value = entry.get("value")
        action += " {{" + str(entry["label"]) + "=" + ("" if value is None else str(value)) + "}}"
    return action


def _patches_from_config(config: Mapping[str, Any], label: str) -> Iterable[PatchOperation]:
    resource = config.get("resource") or config.get("uses")
    if resource:
        yield define_resource(
            str(resource.get("name") or label),
            resource.get("max", resource.get("value", 1)),
            cadence=str(resource.get("cadence") or ""),
            current=resource.get("current"),
        )
    for attr in config.get("attrs") or ():
        if not attr or not attr.get("name"):
            continue
        if str(attr.get("op") or "set").lower() in ("add", "increment"):
            yield add_number(attr["name"], attr.get("value", 0), attr.get("label", label))
        else:
            yield set_attribute(attr["name"], attr.get("value"), attr.get("label", label))
    for segment in config.get("segments") or ():
        yield append_segment(segment["field"], segment.get("value"), segment.get("label", label))
    for row in config.get("rows") or ():
        yield create_row(row["section"], row.get("fields") or {}, row.get("label", label))
    for toggle in config.get("toggles") or ():
        yield toggle_row(toggle["section"], toggle["label"], toggle.get("active"))
    for hook in config.get("hooks") or ():
        yield register_hook(hook.get("field", "hr_on_kill_hooks"), hook["id"], hook.get("label", label))
    for ability in config.get("abilities") or ():
        if not ability or not ability.get("name"):
            continue
        action = ability.get("action") or build_ability_action(ability.get("header") or ability["name"], ability.get("fields"))
        yield upsert_ability(ability["name"], action, ability.get("label", label), token=ability.get("token", True) is not False)
    if config.get("note"):
        yield append_note(config["note"], label)
    for patch in config.get("patches") or ():
        if isinstance(patch, PatchOperation):
            yield patch
        else:
            yield PatchOperation.from_dict(patch)


DEFAULT_BOONS: tuple[dict[str, Any], ...] = (
    {
        "id": "fire_boon",
        "name": "Fire Boon",
        "ancestor": "Azuren",
        "text": "Your weapon attacks deal an extra 1d6 fire damage.",
        "segments": ({"field": "global_damage_mod", "value": "+1d6"},),
        "tags": ("Damage", "Fire"),
    },
    {
        "id": "frost_boon",
        "name": "Frost Boon",
        "ancestor": "Sutra Vayla",
        "text": "Your weapon attacks deal an extra 2 cold damage.",
        "segments": ({"field": "global_damage_mod", "value": 2},),
        "tags": ("Damage", "Cold"),
    },
    {
        "id": "vladren_thickened_vitae",
        "name": "Thickened Vitae",
        "ancestor": "Vladren Moroi",
        "text": "False Life 1/room without a slot; +10 ft speed while you have temp HP.",
        "attrs": (
            {"name": "hr_false_life_free_per_room", "op": "set", "value": 1},
            {"name": "hr_speed_bonus_when_thp", "op": "set", "value": 10},
        ),
        "hooks": ({"id": "Transfusion"},),
        "abilities": (
            {
                "name": "[Vladren] Thickened Vitae (Info)",
                "header": "Thickened Vitae",
                "fields": (
                    {"label": "False Life", "value": "1/room without slot; add **+@{selected|hr_pb}** temp HP"},
                    {"label": "Speed", "value": "While you have temp HP, gain **+10 ft** speed"},
                ),
            },
        ),
        "note": "False Life 1/room w/o slot; add +PB temp HP. +10 ft speed while you have temp HP.",
    },
    {
        "id": "morvox_malice",
        "name": "Gathering Malice",
        "ancestor": "Morvox",
        "text": "Gain a Malice pool that builds as you deal damage.",
        "resource": {"name": "Malice", "max": 6, "current": 0, "cadence": "per_run"},
    },
)

DEFAULT_RELICS: tuple[tuple[str, dict[str, Any]], ...] = (
    (
        "relic_bulwark_band_c",
        {
            "name": "Bulwark Band",
            "rarity": "Common",
            "category": "Defense",
            "text_in_run": "+1 AC while worn.",
            "attrs": ({"name": "ac_bonus", "op": "add", "value": 1},),
            "rows": (
                {"section": "acmod", "fields": {"global_ac_name": "Hoard: Bulwark Band", "global_ac_val": "1"}},
            ),
        },
    ),
    (
        "relic_quickstep_anklet_c",
        {
            "name": "Quickstep Anklet",
            "rarity": "Common",
            "category": "Tempo",
            "text_in_run": "+2 initiative.",
            "attrs": ({"name": "initiative_bonus", "op": "add", "value": 2},),
        },
    ),
    (
        "relic_quickcast_signet_c",
        {
            "name": "Quickcast Signet",
            "rarity": "Common",
            "category": "Tempo",
            "text_in_run": "Once per room, you may cast a cantrip as a bonus action.",
            "uses": {"cadence": "per_room", "value": 1},
            "fields": ({"label": "Effect", "value": "Cast a cantrip as a bonus action (1/room)."},),
            "tags": ("Tempo", "Casting", "BonusAction"),
        },
    ),
    (
        "relic_whetstone_c",
        {
            "name": "Whetstone Charm",
            "rarity": "Common",
            "category": "Offense",
            "text_in_run": "+1 to skill checks.",
            "segments": ({"field": "global_skill_mod", "value": 1},),
        },
    ),
)


def default_effect_definitions() -> list[EffectDefinition]:
    definitions: list[EffectDefinition] = []
    for config in DEFAULT_BOONS:
        definition = build_boon_effect(config)
        if definition is not None:
            definitions.append(definition)
    for effect_id, config in DEFAULT_RELICS:
        definition = build_relic_effect(effect_id, config)
        if definition is not None:
            definitions.append(definition)
    return definitions


def ensure_default_effects_registered(registry: EffectRegistry) -> None:
    """Register core effect definitions if they are not already present."""

    for definition in default_effect_definitions():
        if registry.has(definition.effect_id):
            continue
        registry.register(definition)
