from hoard.adapters.segments import append_segment, format_segment, remove_segment


def test_format_segment_signs_numbers():
    assert format_segment(2, "Frost Boon") == "+2 [Frost Boon]"
    assert format_segment(-1, "Curse") == "-1 [Curse]"
    assert format_segment(1.5, "Half") == "+1.5 [Half]"
    assert format_segment("+1d6", "Fire Boon") == "+1d6 [Fire Boon]"


def test_format_segment_collapses_whitespace_and_rejects_blank():
    assert format_segment("  +1d4   radiant ", "  Dawn  Boon ") == "+1d4 radiant [Dawn Boon]"
    assert format_segment("   ", "Empty") == ""
    assert format_segment(None, "Empty") == ""
    assert format_segment(True, "Flag") == ""
    assert format_segment("+1", "") == "+1"


def test_append_segment_joins_with_one_separator():
    assert append_segment("", "+1d6 [Fire Boon]") == "+1d6 [Fire Boon]"
    assert append_segment("+1d6 [Fire Boon]", "+2 [Frost Boon]") == "+1d6 [Fire Boon] +2 [Frost Boon]"
    assert append_segment("+1  [Manual]", "+2 [Frost Boon]") == "+1  [Manual] +2 [Frost Boon]"
    assert append_segment("Old note", "Fire Boon: burn", "\n") == "Old note\nFire Boon: burn"
    assert append_segment("+1", "  ") == "+1"


def test_remove_segment_leaves_no_stray_space():
    text = "+1d6 [Fire Boon] +2 [Frost Boon]"
    assert remove_segment(text, "+1d6 [Fire Boon]") == "+2 [Frost Boon]"
    assert remove_segment(text, "+2 [Frost Boon]") == "+1d6 [Fire Boon]"


def test_remove_segment_from_middle():
    text = "+1 [A] +2 [B] +3 [C]"
    assert remove_segment(text, "+2 [B]") == "+1 [A] +3 [C]"


def test_remove_segment_only_matches_whole_segments():
    text = "+12 [Fire Boon] +1 [Fire Boon]"
    assert remove_segment(text, "+1 [Fire Boon]") == "+12 [Fire Boon]"
    assert remove_segment("+1d6 [Fire Boon]", "1d6 [Fire Boon]") == "+1d6 [Fire Boon]"


def test_remove_segment_strips_one_occurrence():
    text = "+1 [Twin] +1 [Twin]"
    assert remove_segment(text, "+1 [Twin]") == "+1 [Twin]"


def test_remove_segment_escapes_regex_characters():
    text = "+1d6+2 [Fire (Greater)] +1 [Other]"
    assert remove_segment(text, "+1d6+2 [Fire (Greater)]") == "+1 [Other]"


def test_remove_segment_keeps_surrounding_text_as_written():
    original = "+1  [Manual]\n+2 [Host]"
    appended = append_segment(original, "+1d6 [Fire Boon]")

    assert remove_segment(appended, "+1d6 [Fire Boon]") == original
    assert remove_segment("  +1 [A]", "+1 [A]") == " "


def test_remove_segment_with_line_separator():
    text = "Fire Boon: burn bright\nFire Boon: burn\nFrost Boon: chill"
    assert remove_segment(text, "Fire Boon: burn", "\n") == "Fire Boon: burn bright\nFrost Boon: chill"
    assert remove_segment(text, "Frost Boon: chill", "\n") == "Fire Boon: burn bright\nFire Boon: burn"
    assert remove_segment("Only", "Only", "\n") == ""
