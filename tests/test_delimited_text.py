"""
tests/test_delimited_text.py

Pytest unit tests for the delimited-text tokenizer and writer.

Coverage
--------
- Quoted cells with delimiters, doubled quotes and line breaks
- CRLF / LF / CR line endings
- Blank-row dropping and header preservation
- Trimming and short rows
- Unterminated quotes
- Malformed input (undecodable bytes, NUL, non-text)
- Writer quoting and parse/serialize agreement
"""

from __future__ import annotations

import pytest

from app.domain.errors import MalformedInputError
from app.parsing import parse_delimited_text, serialize_table


# ---------------------------------------------------------------------------
# Quoting
# ---------------------------------------------------------------------------


class TestQuotedCells:
    def test_doubled_quote_is_literal(self) -> None:
        assert parse_delimited_text('a,"b""c",d') == [["a", 'b"c', "d"]]

    def test_delimiter_inside_quotes_stays_in_cell(self) -> None:
        assert parse_delimited_text('name,remarks\nMonitor,"left, by window"') == [
            ["name", "remarks"],
            ["Monitor", "left, by window"],
        ]

    def test_line_break_inside_quotes_belongs_to_cell(self) -> None:
        table = parse_delimited_text('seat,remarks\nA1,"line one\nline two"\nA2,ok\n')
        assert table == [
            ["seat", "remarks"],
            ["A1", "line one\nline two"],
            ["A2", "ok"],
        ]

    def test_crlf_inside_quotes_becomes_single_newline(self) -> None:
        table = parse_delimited_text('a,b\r\n"x\r\ny",z\r\n')
        assert table == [["a", "b"], ["x\ny", "z"]]

    def test_unterminated_quote_flushes_remaining_text(self) -> None:
        assert parse_delimited_text('a,b\n1,"open') == [["a", "b"], ["1", "open"]]


# ---------------------------------------------------------------------------
# Rows
# ---------------------------------------------------------------------------


class TestRows:
    def test_empty_input_gives_no_rows(self) -> None:
        assert parse_delimited_text("") == []

    @pytest.mark.parametrize("newline", ["\n", "\r\n", "\r"])
    def test_line_endings_are_equivalent(self, newline: str) -> None:
        raw = newline.join(["a,b", "1,2", "3,4"])
        assert parse_delimited_text(raw) == [["a", "b"], ["1", "2"], ["3", "4"]]

    def test_blank_rows_after_header_are_dropped(self) -> None:
        table = parse_delimited_text("a,b\n\n,\n1,2\n , \n")
        assert table == [["a", "b"], ["1", "2"]]

    def test_blank_header_row_is_kept(self) -> None:
        assert parse_delimited_text(",\n1,2") == [["", ""], ["1", "2"]]

    def test_cells_are_trimmed_including_quoted_content(self) -> None:
        assert parse_delimited_text('  a , " b "\n') == [["a", "b"]]

    def test_short_rows_are_not_padded(self) -> None:
        assert parse_delimited_text("a,b,c\n1") == [["a", "b", "c"], ["1"]]

    def test_trailing_delimiter_adds_empty_cell(self) -> None:
        assert parse_delimited_text("a,b\nB002,") == [["a", "b"], ["B002", ""]]

    def test_leading_bom_is_removed(self) -> None:
        assert parse_delimited_text("\ufeffseat,knox\nA1,K1") == [["seat", "knox"], ["A1", "K1"]]


# ---------------------------------------------------------------------------
# Malformed input
# ---------------------------------------------------------------------------


class TestMalformedInput:
    def test_utf8_bytes_are_decoded(self) -> None:
        raw = "\ufeffname,remarks\nCafé,ok\n".encode("utf-8")
        assert parse_delimited_text(raw) == [["name", "remarks"], ["Café", "ok"]]

    def test_undecodable_bytes_raise(self) -> None:
        with pytest.raises(MalformedInputError):
            parse_delimited_text(b"\xff\xfe\x00a")

    def test_nul_character_raises(self) -> None:
        with pytest.raises(MalformedInputError):
            parse_delimited_text("a,b\n1,\x002")

    def test_non_text_input_raises(self) -> None:
        with pytest.raises(MalformedInputError):
            parse_delimited_text(42)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Writer
# ---------------------------------------------------------------------------


class TestSerializeTable:
    def test_quotes_only_cells_that_need_it(self) -> None:
        text = serialize_table([["plain", "a,b", 'say "hi"', "two\nlines"]])
        assert text == 'plain,"a,b","say ""hi""","two\nlines"\n'

    def test_empty_table_serializes_to_empty_string(self) -> None:
        assert serialize_table([]) == ""

    def test_exported_table_parses_back_unchanged(self) -> None:
        table = [
            ["seat_number", "remarks"],
            ["A1", 'Dell "P2419H", spare'],
            ["A2", "first line\nsecond line"],
        ]
        assert parse_delimited_text(serialize_table(table)) == table
