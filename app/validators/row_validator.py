"""
app/validators/row_validator.py

Row-level validation and coercion for delimited imports.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Sequence

from app.domain.errors import CoercionError
from app.domain.inventory_import import NO_VALUE, RowValidationError
from app.mappers.coercion import is_placeholder, normalize_cell

if TYPE_CHECKING:
    from app.mappers.field_mapping import FieldMapping, HeaderResolution


class ImportRowValidator:
    """
    Validates and coerces one padded row against a resolved header layout.
    """

    def is_completely_empty_row(self, cells: Sequence[str]) -> bool:
        """
        Return True when every cell is blank or a placeholder.
        """

        return all(is_placeholder(cell) for cell in cells)

    def validate_row(
        self,
        *,
        cells: Sequence[str],
        resolution: HeaderResolution,
        mapping: FieldMapping,
        row_number: int,
    ) -> tuple[dict[str, Any] | None, dict[str, str], list[RowValidationError]]:
        """
        Build canonical values and extras for one row.

        Returns ``(None, extras, errors)`` when the row is rejected. Fields
        without a column are absent from the values, so they are never
        written.
        """

        errors: list[RowValidationError] = []
        values: dict[str, Any] = {}

        for index, canonical_field in resolution.column_fields.items():
            spec = mapping.field(canonical_field)
            raw = cells[index] if index < len(cells) else ""
            cell = normalize_cell(raw)

            if cell is NO_VALUE:
                if spec.required:
                    errors.append(
                        RowValidationError(
                            row_number=row_number,
                            column=canonical_field,
                            message="Required value is missing.",
                            value=self._stringify_value(raw),
                        )
                    )
                values[canonical_field] = NO_VALUE
                continue

            try:
                values[canonical_field] = spec.coerce(cell)
            except CoercionError as exc:
                errors.append(
                    RowValidationError(
                        row_number=row_number,
                        column=canonical_field,
                        message=str(exc),
                        value=self._stringify_value(raw),
                    )
                )

        extras: dict[str, str] = {}
        for index, header in resolution.extra_columns.items():
            raw = cells[index] if index < len(cells) else ""
            if not is_placeholder(raw):
                extras[header] = raw.strip()

        if errors:
            return None, extras, errors
        return values, extras, []

    @staticmethod
    def _stringify_value(value: Any) -> str | None:
        if value is None:
            return None
        return str(value)
