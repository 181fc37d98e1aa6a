"""Tests for the XDPH window list parser."""

import pytest

from omnirec_picker.windows import WindowEntry, WindowTable, parse_u64


def _record(handle, cls, title, addr):
    return f"{handle}[HC>]{cls}[HT>]{title}[HE>]{addr}[HA>]"


def test_parse_multiple_records():
    value = _record(7, "kitty", "~/src", 0x1234) + _record(8, "firefox", "Docs", 99)
    table = WindowTable.parse(value)
    assert table.entries == [
        WindowEntry(handle_id=7, window_class="kitty", title="~/src", window_addr=0x1234),
        WindowEntry(handle_id=8, window_class="firefox", title="Docs", window_addr=99),
    ]


def test_parse_empty_string():
    assert len(WindowTable.parse("")) == 0


def test_truncated_trailing_record_is_dropped():
    value = _record(7, "kitty", "shell", 4660) + "8[HC>]firefox[HT>]Docs"
    table = WindowTable.parse(value)
    assert [e.handle_id for e in table.entries] == [7]


def test_non_numeric_fields_read_as_zero():
    table = WindowTable.parse(_record("abc", "kitty", "t", "0x1234"))
    assert table.entries[0].handle_id == 0
    assert table.entries[0].window_addr == 0


@pytest.mark.parametrize("handle", ["\u0667", "1_2", "+5", " 7 7"])
def test_only_ascii_digits_are_numbers(handle):
    table = WindowTable.parse(_record(handle, "kitty", "t", 4660))
    assert table.entries[0].handle_id == 0
    assert table.entries[0].window_addr == 4660


def test_title_may_be_empty():
    table = WindowTable.parse(_record(3, "kitty", "", 5))
    assert table.entries[0].title == ""


def test_find_handle_first_match_wins():
    table = WindowTable.parse(_record(1, "a", "x", 50) + _record(2, "b", "y", 50))
    assert table.find_handle(50) == 1


def test_resolve_falls_back_to_address():
    table = WindowTable.parse(_record(7, "kitty", "shell", 4660))
    assert table.resolve(4660) == 7
    assert table.resolve(4661) == 4661


def test_from_env(monkeypatch):
    monkeypatch.setenv("XDPH_WINDOW_SHARING_LIST", _record(7, "kitty", "shell", 4660))
    assert WindowTable.from_env().find_handle(4660) == 7


def test_parse_u64_bounds():
    assert parse_u64("18446744073709551615") == (1 << 64) - 1
    assert parse_u64("18446744073709551616") == 0
    assert parse_u64("-1") == 0
    assert parse_u64("") == 0
    assert parse_u64("\u0667") == 0
    assert parse_u64("1_2") == 0
    assert parse_u64("+5") == 0
