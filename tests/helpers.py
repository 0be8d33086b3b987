from __future__ import annotations

from typing import Any

from hoard.components.character_sheet import CharacterSheet
from hoard.effects.patches import PatchOperation
from hoard.effects.registry import EffectDefinition
from hoard.utils.characters import create_character, find_character_sheet


def make_character(character_id: str = "pc_hero", **attributes: Any) -> CharacterSheet:
    """Create a character in the current world and return its sheet.

    Sheets carry the ``pb`` marker unless the caller overrides it, so the
    ledger adapter recognises them.
    """

    attributes.setdefault("pb", 2)
    create_character(character_id, character_id.title(), attributes)
    sheet = find_character_sheet(character_id)
    assert sheet is not None
    return sheet


def make_definition(effect_id: str, *patches: PatchOperation, name: str | None = None, source: str = "") -> EffectDefinition:
    return EffectDefinition(
        effect_id=effect_id,
        name=name if name is not None else effect_id.replace("_", " ").title(),
        patches=tuple(patches),
        source=source,
    )
