"""
app/domain/inventory_import.py

Domain models used by the delimited-text import flow.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Final, Mapping

ParsedTable = list[list[str]]

EXTRA_FIELDS_KEY: Final = "extra_fields"


class Missing(Enum):
    """
    Marker for a cell that carried no value (blank, ``N/A``, ``NULL``, ``-``).

    Distinct from the empty string so an update never blanks a stored field
    by accident.
    """

    NO_VALUE = "no_value"

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NO_VALUE"


NO_VALUE: Final = Missing.NO_VALUE


class ImportAction:
    CREATE = "create"
    UPDATE = "update"


@dataclass(frozen=True)
class StoredRecord:
    """
    One existing record as returned by a storage lookup.
    """

    id: Any
    values: Mapping[str, Any]


@dataclass(frozen=True)
class UpsertResult:
    """
    Outcome of one atomic lookup-and-write against the store.
    """

    record_id: Any
    created: bool


@dataclass(frozen=True)
class RowValidationError:
    """
    One row-level validation error detail.

    ``row_number`` is 1-based and does not count the header row.
    """

    row_number: int
    message: str
    column: str | None = None
    value: str | None = None

    def describe(self) -> str:
        if self.column:
            return f"Row {self.row_number}: {self.column}: {self.message}"
        return f"Row {self.row_number}: {self.message}"


@dataclass(frozen=True)
class ImportRecord:
    """
    One mapped, coerced and validated row, classified against the store.

    ``values`` holds every mapped field; fields whose cell was a placeholder
    hold ``NO_VALUE``. ``changes`` lists the mapped fields an update would
    actually alter on the stored record.
    """

    row_number: int
    values: Mapping[str, Any]
    natural_key: tuple[Any, ...]
    action: str = ImportAction.CREATE
    existing_id: Any = None
    duplicate_of: int | None = None
    changes: Mapping[str, Any] = field(default_factory=dict)
    extras: Mapping[str, str] = field(default_factory=dict)

    def __getitem__(self, name: str) -> Any:
        return self.values[name]

    def get(self, name: str, default: Any = None) -> Any:
        return self.values.get(name, default)

    def create_payload(self) -> dict[str, Any]:
        """
        Column values for a new record; missing values are stored as ``None``.
        """

        payload = {
            name: (None if value is NO_VALUE else value)
            for name, value in self.values.items()
        }
        if self.extras:
            payload[EXTRA_FIELDS_KEY] = dict(self.extras)
        return payload

    def update_payload(self) -> dict[str, Any]:
        """
        Partial values for an existing record; missing values are left out.
        """

        payload = {
            name: value
            for name, value in self.values.items()
            if value is not NO_VALUE
        }
        if self.extras:
            payload[EXTRA_FIELDS_KEY] = dict(self.extras)
        return payload


@dataclass(frozen=True)
class ImportOutcome:
    """
    End-of-run import summary.

    ``total`` excludes fully blank rows. ``errors`` keeps input order.
    """

    total: int
    created: int
    updated: int
    failed: int
    errors: tuple[RowValidationError, ...] = ()

    def error_messages(self) -> list[str]:
        return [error.describe() for error in self.errors]

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "created": self.created,
            "updated": self.updated,
            "failed": self.failed,
            "errors": [
                {
                    "row_number": error.row_number,
                    "message": error.message,
                    "column": error.column,
                    "value": error.value,
                }
                for error in self.errors
            ],
        }
