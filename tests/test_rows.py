import random

from hoard.adapters import rows
from hoard.components.character_sheet import CharacterSheet


def test_row_attribute_names():
    assert rows.normalize_section("repeating_acmod") == "acmod"
    assert rows.row_attribute("acmod", "-abc", "name") == "repeating_acmod_-abc_name"
    assert rows.order_attribute("repeating_acmod") == "_reporder_repeating_acmod"
    assert rows.remembered_attribute("acmod") == "hr_rows_acmod"


def test_generate_row_id_shape_and_uniqueness():
    rng = random.Random(3)
    first = rows.generate_row_id(rng)
    assert first.startswith("-")
    assert len(first) == 20
    assert "_" not in first

    rng_a, rng_b = random.Random(11), random.Random(11)
    taken = rows.generate_row_id(rng_a)
    assert rows.generate_row_id(rng_b, {taken}) != taken


def test_write_row_tracks_order_and_row_ids():
    sheet = CharacterSheet()
    rows.write_row(sheet, "acmod", "-one", {"global_ac_name": "Band", "global_ac_val": "1"})
    rows.write_row(sheet, "acmod", "-two", {"global_ac_name": "Shield"})

    assert sheet.get("repeating_acmod_-one_global_ac_val") == "1"
    assert sheet.get("_reporder_repeating_acmod") == "-one,-two"
    assert rows.row_ids(sheet, "acmod") == ["-one", "-two"]
    assert rows.row_exists(sheet, "acmod", "-two")


def test_row_ids_follow_reporder():
    sheet = CharacterSheet({
        "repeating_acmod_-one_name": "A",
        "repeating_acmod_-two_name": "B",
        "_reporder_repeating_acmod": "-two,-one",
        "repeating_other_-three_name": "C",
    })

    assert rows.row_ids(sheet, "acmod") == ["-two", "-one"]


def test_delete_row_removes_attributes_and_order_entry():
    sheet = CharacterSheet()
    rows.write_row(sheet, "acmod", "-one", {"name": "A", "active": "1"})
    rows.write_row(sheet, "acmod", "-two", {"name": "B"})

    assert rows.delete_row(sheet, "acmod", "-one") == 2
    assert not rows.row_exists(sheet, "acmod", "-one")
    assert sheet.get("_reporder_repeating_acmod") == "-two"


def test_remember_and_forget_rows():
    sheet = CharacterSheet()
    rows.remember_row(sheet, "acmod", "-one", "|")
    rows.remember_row(sheet, "acmod", "-two", "|")
    rows.remember_row(sheet, "acmod", "-one", "|")
    assert sheet.get("hr_rows_acmod") == "-one|-two"

    rows.forget_row(sheet, "acmod", "-one", "|")
    assert sheet.get("hr_rows_acmod") == "-two"


def test_find_row_by_label_is_case_insensitive():
    sheet = CharacterSheet()
    rows.write_row(sheet, "traits", "-one", {"name": "Blood  Ward"})

    assert rows.find_row_by_label(sheet, "traits", "name", "blood ward") == "-one"
    assert rows.find_row_by_label(sheet, "traits", "name", "missing") is None
    assert rows.find_row_by_label(sheet, "traits", "name", "") is None


def test_to_active_value():
    assert rows.to_active_value("on") == 1
    assert rows.to_active_value("0") == 0
    assert rows.to_active_value("") == 0
    assert rows.to_active_value(True) == 1
    assert rows.to_active_value("2") == 1
    assert rows.to_active_value(None) == 1
    assert rows.to_active_value(None, fallback=False) == 0
    assert rows.to_active_value("maybe", fallback=False) == 0
