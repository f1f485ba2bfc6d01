"""Tests for normalize.py"""

import pytest

from seller_analytics.normalize import clean_text, escape_control_chars, matches, normalize_query


def test_clean_text_collapses_whitespace():
    assert clean_text("  Robe   Grey \n S ") == "Robe Grey S"


def test_clean_text_none():
    assert clean_text(None) is None
    assert clean_text(float("nan")) is None


def test_normalize_query_lowercases():
    assert normalize_query("  Robe   GREY ") == "robe grey"


def test_normalize_query_none_is_empty():
    assert normalize_query(None) == ""
    assert normalize_query("   ") == ""


def test_matches_substring_of_any_field():
    assert matches("zwk2", ("B0DRIGZWK2", "RB-002-M-WHT", "Robe"))
    assert matches("m-wht", ("B0DRIGZWK2", "RB-002-M-WHT", "Robe"))
    assert not matches("yoga", ("B0DRIGZWK2", "RB-002-M-WHT", "Robe"))


def test_empty_term_matches_everything():
    assert matches("", ("anything",))
    assert matches("", ())


def test_matches_skips_empty_fields():
    assert not matches("x", (None, ""))


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("line1\nline2", "line1\\nline2"),
        ("a\tb", "a\\tb"),
        ("a\rb", "a\\rb"),
        ("bell\x07", "bell\\x07"),
        ("del\x7f", "del\\x7f"),
        ("plain, \"quoted\"", "plain, \"quoted\""),
    ],
)
def test_escape_control_chars(raw, expected):
    assert escape_control_chars(raw) == expected


def test_escape_control_chars_none():
    assert escape_control_chars(None) == ""
