"""
app/mappers/coercion.py

Cell normalization and per-field coercion rules.

Each rule is a callable ``str -> value``. Lenient rules fall back silently
(the historical behavior of the upload screens); strict rules raise
``CoercionError`` so the row is reported instead of imported with a guess.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable

from app.domain.errors import CoercionError
from app.domain.inventory_import import NO_VALUE, Missing

Coercion = Callable[[str], Any]

PLACEHOLDER_VALUES: frozenset[str] = frozenset({"", "-", "n/a", "null"})

DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%d-%b-%Y",
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d %H:%M:%S",
)

_LEADING_INTEGER = re.compile(r"^[+-]?\d+")
_WHOLE_INTEGER = re.compile(r"^[+-]?\d+$")


def is_placeholder(value: str | None) -> bool:
    """
    Return True for blank cells and the usual "no value" spellings.
    """

    if value is None:
        return True
    return value.strip().lower() in PLACEHOLDER_VALUES


def normalize_cell(value: str | None) -> str | Missing:
    """
    Trim a cell, or return ``NO_VALUE`` for placeholders.
    """

    if is_placeholder(value):
        return NO_VALUE
    return str(value).strip()


def text(value: str) -> str:
    return value


@dataclass(frozen=True)
class IntegerCoercion:
    """
    Parse an integer cell.

    Lenient mode reads a leading integer (``"3 pcs"`` -> 3) and otherwise
    returns ``fallback``. Strict mode accepts only a whole integer.
    """

    fallback: int = 1
    strict: bool = False

    def __call__(self, value: str) -> int:
        raw = value.strip().replace(",", "")
        if self.strict:
            if _WHOLE_INTEGER.match(raw):
                return int(raw)
            raise CoercionError("Value is not a whole number.", value=value)

        match = _LEADING_INTEGER.match(raw)
        if match is None:
            return self.fallback
        return int(match.group(0))


@dataclass(frozen=True)
class DateCoercion:
    """
    Normalize common date spellings to ``YYYY-MM-DD``.

    Lenient mode keeps unrecognized text as-is.
    """

    strict: bool = False

    def __call__(self, value: str) -> str:
        raw = value.strip()
        normalized = raw[:-1] + "+00:00" if raw.endswith("Z") else raw
        try:
            return datetime.fromisoformat(normalized).date().isoformat()
        except ValueError:
            pass

        for fmt in DATE_FORMATS:
            try:
                return datetime.strptime(raw, fmt).date().isoformat()
            except ValueError:
                continue

        if self.strict:
            raise CoercionError("Invalid date format.", value=value)
        return raw
