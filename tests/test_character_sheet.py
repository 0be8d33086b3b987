import esper

from hoard.components.character import Character
from hoard.components.character_sheet import CharacterSheet
from hoard.utils.characters import create_character, find_character_entity, find_character_sheet


def test_sheet_reads_missing_attributes_as_blank():
    sheet = CharacterSheet()
    assert sheet.get("ac_bonus") == ""
    assert sheet.get("ac_bonus", None) is None
    assert sheet.has("ac_bonus") is False


def test_sheet_delete_and_prefix_scan():
    sheet = CharacterSheet({"repeating_acmod_-a_name": "Band", "repeating_acmod_-a_active": "1", "pb": 2})

    assert sorted(sheet.names_with_prefix("repeating_acmod_")) == [
        "repeating_acmod_-a_active",
        "repeating_acmod_-a_name",
    ]
    assert sheet.delete("pb") is True
    assert sheet.delete("pb") is False
    assert sheet.has("pb") is False


def test_sheet_snapshot_is_independent_copy():
    sheet = CharacterSheet({"hr_ledger_ac": {"entries": [{"key": "a", "delta": 1}]}})
    snapshot = sheet.snapshot()
    snapshot["hr_ledger_ac"]["entries"].append({"key": "b"})

    assert len(sheet.get("hr_ledger_ac")["entries"]) == 1


def test_create_character_is_findable_by_id():
    entity = create_character("pc_fiora", "Fiora", {"pb": 2})

    assert find_character_entity("pc_fiora") == entity
    character = esper.component_for_entity(entity, Character)
    assert character.name == "Fiora"
    sheet = find_character_sheet("pc_fiora")
    assert sheet is not None
    assert sheet.get("pb") == 2


def test_find_character_sheet_unknown_id():
    create_character("pc_fiora")
    assert find_character_sheet("pc_missing") is None
    assert find_character_sheet("") is None
