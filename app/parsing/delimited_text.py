"""
app/parsing/delimited_text.py

Comma-delimited text tokenizer.

Quoted fields may contain commas, doubled quotes and line breaks. A line
break inside quotes belongs to the cell, so multi-paragraph remarks survive
an export/import round trip. Every cell is trimmed, quoted content
included, because the upload screens always stored trimmed values.

Structural oddities never raise: short rows stay short (callers pad them)
and an unmatched trailing quote simply flushes what was read.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from app.domain.errors import MalformedInputError
from app.domain.inventory_import import ParsedTable

_QUOTE = '"'
_DELIMITER = ","
_BOM = "\ufeff"


def parse_delimited_text(raw_text: str | bytes) -> ParsedTable:
    """
    Parse delimited text into rows of trimmed string cells.

    The first row is always kept, even when blank, so a missing header is
    reported downstream. Later rows with no non-empty cell are dropped.
    """

    text = _as_text(raw_text)

    rows: ParsedTable = []
    row: list[str] = []
    field_chars: list[str] = []
    in_quotes = False
    pending = False

    index = 0
    length = len(text)
    while index < length:
        char = text[index]
        pending = True

        if in_quotes:
            if char == _QUOTE:
                if index + 1 < length and text[index + 1] == _QUOTE:
                    field_chars.append(_QUOTE)
                    index += 2
                    continue
                in_quotes = False
            elif char == "\r" or char == "\n":
                if char == "\r" and index + 1 < length and text[index + 1] == "\n":
                    index += 1
                field_chars.append("\n")
            else:
                field_chars.append(char)
            index += 1
            continue

        if char == _QUOTE:
            in_quotes = True
        elif char == _DELIMITER:
            row.append(_finish_field(field_chars))
            field_chars = []
        elif char == "\r" or char == "\n":
            if char == "\r" and index + 1 < length and text[index + 1] == "\n":
                index += 1
            row.append(_finish_field(field_chars))
            _emit_row(rows, row)
            row = []
            field_chars = []
            pending = False
        else:
            field_chars.append(char)
        index += 1

    if pending:
        row.append(_finish_field(field_chars))
        _emit_row(rows, row)

    return rows


def serialize_table(table: Iterable[Sequence[str]]) -> str:
    """
    Write rows back as delimited text, quoting cells only where needed.
    """

    lines = [
        _DELIMITER.join(_quote_cell(str(cell)) for cell in row)
        for row in table
    ]
    if not lines:
        return ""
    return "\n".join(lines) + "\n"


def _as_text(raw_text: str | bytes) -> str:
    if isinstance(raw_text, (bytes, bytearray, memoryview)):
        try:
            text = bytes(raw_text).decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise MalformedInputError("Upload must be UTF-8 encoded text.") from exc
    elif isinstance(raw_text, str):
        text = raw_text[1:] if raw_text.startswith(_BOM) else raw_text
    else:
        raise MalformedInputError(
            f"Expected text or bytes, got {type(raw_text).__name__}."
        )

    if "\x00" in text:
        raise MalformedInputError("Upload contains NUL characters and is not delimited text.")
    return text


def _finish_field(field_chars: list[str]) -> str:
    return "".join(field_chars).strip()


def _emit_row(rows: ParsedTable, row: list[str]) -> None:
    if not rows or any(cell for cell in row):
        rows.append(row)


def _quote_cell(cell: str) -> str:
    needs_quotes = (
        _DELIMITER in cell
        or _QUOTE in cell
        or "\n" in cell
        or "\r" in cell
        or cell != cell.strip()
    )
    if not needs_quotes:
        return cell
    return _QUOTE + cell.replace(_QUOTE, _QUOTE * 2) + _QUOTE
