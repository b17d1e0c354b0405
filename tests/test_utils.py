"""Tests for small helpers in utils."""

from utils import MAX_ROW_ID, extract_number, is_row_id, truncate_text, unique_ids


def test_extract_number():
    assert extract_number("1 500 USD") == 1500
    assert extract_number("from $900") == 900
    assert extract_number("negotiable") == 0
    assert extract_number("") == 0


def test_unique_ids_keeps_order():
    assert unique_ids([3, 1, 3, 2, 1]) == [3, 1, 2]
    assert unique_ids([]) == []


def test_truncate_text():
    assert truncate_text("abcdef", 3) == "abc..."
    assert truncate_text("abc", 3) == "abc"
    assert truncate_text(None, 3) == ""


def test_is_row_id():
    assert is_row_id(1)
    assert is_row_id(MAX_ROW_ID)
    assert not is_row_id(MAX_ROW_ID + 1)
    assert not is_row_id(0)
    assert not is_row_id(True)
    assert not is_row_id("7")
