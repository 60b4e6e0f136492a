from __future__ import annotations

from croplog.services.qualifier_parser import (
    parse_qualifiers_sheet,
    parse_qualifiers_text,
    split_name_and_location,
)

GRID = [
    ["Arugula", "Planting quantity?", "Bolting?"],
    ["", "- too much", "- quickly"],
    ["", "- not enough", "- slowly"],
    ["Cucumbers, HT", "Planting quantity?", "Spacing?"],
    ["", "- too much", "- close"],
    ["", "- just right", "- wide"],
    ["Sage / Oregano / Mint", "Planting quantity?", "Flavor?"],
    ["", "too much", "strong"],
]


def test_universal_question_is_extracted_once() -> None:
    result = parse_qualifiers_sheet(GRID)

    assert [u.name for u in result.universal_qualifiers] == ["Planting quantity?"]
    assert result.universal_qualifiers[0].options == ["too much", "not enough"]
    for veg in result.vegetables:
        assert "Planting quantity?" not in [a.name for a in veg.assessments]


def test_blocks_and_slash_names() -> None:
    result = parse_qualifiers_sheet(GRID)

    names = [(veg.name, veg.location) for veg in result.vegetables]
    assert names == [
        ("Arugula", None),
        ("Cucumbers", "HT"),
        ("Sage", None),
        ("Oregano", None),
        ("Mint", None),
    ]
    cucumbers = result.vegetables[1]
    assert cucumbers.assessments[0].name == "Spacing?"
    assert cucumbers.assessments[0].options == ["close", "wide"]
    sage, mint = result.vegetables[2], result.vegetables[4]
    assert sage.assessments == mint.assessments
    assert sage.assessments is not mint.assessments


def test_parsing_is_idempotent() -> None:
    first = parse_qualifiers_sheet(GRID)
    second = parse_qualifiers_sheet(GRID)
    assert first.model_dump_json() == second.model_dump_json()


def test_question_cells_are_never_options() -> None:
    grid = [
        ["Kale", "Leaf size?", "Color?"],
        ["", "- small", "Misplaced?"],
        ["", "- large", "- dark"],
        ["Chard", "Leaf size?"],
        ["", "- small"],
    ]
    result = parse_qualifiers_sheet(grid)

    kale = result.vegetables[0]
    assert [a.name for a in kale.assessments] == ["Color?"]
    assert kale.assessments[0].options == ["dark"]


def test_blocks_without_options_are_dropped() -> None:
    grid = [
        ["Beets", "Root size?"],
        ["Carrots", "Root size?"],
        ["", "- small"],
    ]
    result = parse_qualifiers_sheet(grid)
    assert [veg.name for veg in result.vegetables] == ["Carrots"]


def test_non_question_header_cells_are_ignored() -> None:
    grid = [
        ["Onion", "notes", "Bulb size?"],
        ["", "- whatever", "- big"],
        ["Leek", "Bulb size?", "Height?"],
        ["", "- big", "- tall"],
    ]
    result = parse_qualifiers_sheet(grid)

    onion = result.vegetables[0]
    assert onion.assessments == []
    assert [u.name for u in result.universal_qualifiers] == ["Bulb size?"]
    assert result.universal_qualifiers[0].display_order == 0


def test_empty_grid() -> None:
    result = parse_qualifiers_sheet([])
    assert result.vegetables == []
    assert result.universal_qualifiers == []


def test_split_name_and_location_uses_last_comma() -> None:
    assert split_name_and_location("Cucumbers, HT") == ("Cucumbers", "HT")
    assert split_name_and_location("Peppers, hot, GH") == ("Peppers, hot", "GH")
    assert split_name_and_location("Tomatoes") == ("Tomatoes", None)
    assert split_name_and_location("Tomatoes,") == ("Tomatoes", None)


def test_parse_qualifiers_text_returns_first_crop() -> None:
    raw = "Squash, HT\tFruit size?\tPlanting quantity?\n\t- small\t- too much\n\t- large\t- not enough\n"
    definition = parse_qualifiers_text(raw)

    assert definition is not None
    assert definition.name == "Squash"
    assert definition.location == "HT"
    assert [a.name for a in definition.assessments] == ["Fruit size?", "Planting quantity?"]
    assert definition.assessments[1].options == ["too much", "not enough"]


def test_parse_qualifiers_text_needs_two_lines() -> None:
    assert parse_qualifiers_text("Squash\tSize?") is None
    assert parse_qualifiers_text("") is None
