from __future__ import annotations

from typing import Any, Mapping

import esper

from hoard.components.character import Character
from hoard.components.character_sheet import CharacterSheet


def create_character(
    character_id: str,
    name: str = "",
    attributes: Mapping[str, Any] | None = None,
    *,
    description: str = "",
) -> int:
    """Create a character entity in the current esper world and return it."""

    return esper.create_entity(
        Character(character_id=character_id, name=name or character_id, description=description),
        CharacterSheet(attributes=dict(attributes or {})),
    )


def find_character_entity(character_id: str | None) -> int | None:
    if not character_id:
        return None
    for entity, character in esper.get_component(Character):
        if character.character_id == character_id:
            return entity
    return None


def find_character_sheet(character_id: str | None) -> CharacterSheet | None:
    entity = find_character_entity(character_id)
    if entity is None:
        return None
    return esper.try_component(entity, CharacterSheet)
