"""
app/validators/mapping_validator.py

Checks that a resolved header layout can carry an entity import: every
column points at a known field, no field is claimed twice, and every
required and natural-key field has a column.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence


@dataclass(frozen=True)
class MappingErrorDetail:
    """
    One problem found in a header layout.
    """

    code: str
    message: str
    canonical_field: str | None = None
    source_column: str | None = None
    context: dict[str, Any] | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "canonical_field": self.canonical_field,
            "source_column": self.source_column,
            "context": self.context,
        }


_MISSING_COLUMN_CODES = frozenset({"required_field_unmapped", "natural_key_unmapped"})


class SchemaError(ValueError):
    """
    Raised when the header row cannot satisfy the field mapping.

    Fatal for the whole upload; no row is read once this is raised.
    """

    def __init__(self, *, message: str, errors: Sequence[MappingErrorDetail]) -> None:
        super().__init__(message)
        self.message = message
        self.errors = tuple(errors)

    @property
    def missing_fields(self) -> tuple[str, ...]:
        return tuple(
            error.canonical_field
            for error in self.errors
            if error.code in _MISSING_COLUMN_CODES and error.canonical_field
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "missing_fields": list(self.missing_fields),
            "errors": [error.as_dict() for error in self.errors],
        }


class MappingValidator:
    """
    Validates a column-index to field layout for one entity.
    """

    def __init__(
        self,
        *,
        field_names: Sequence[str],
        required_fields: Sequence[str] = (),
        natural_key: Sequence[str] = (),
    ) -> None:
        self._field_names = frozenset(field_names)
        self._required_fields = tuple(required_fields)
        self._natural_key = tuple(natural_key)

    def collect_errors(
        self,
        *,
        column_fields: Mapping[int, str],
        source_headers: Sequence[str],
    ) -> list[MappingErrorDetail]:
        errors: list[MappingErrorDetail] = []
        claimed: dict[str, int] = {}

        for index, name in sorted(column_fields.items()):
            header = source_headers[index] if 0 <= index < len(source_headers) else None
            if header is None:
                errors.append(
                    MappingErrorDetail(
                        code="unknown_source_column",
                        message="Column position is outside the header row.",
                        canonical_field=name,
                        context={"column_index": index, "width": len(source_headers)},
                    )
                )
                continue
            if name not in self._field_names:
                errors.append(
                    MappingErrorDetail(
                        code="invalid_canonical_field",
                        message="Unknown field in mapping.",
                        canonical_field=name,
                        source_column=header,
                    )
                )
                continue
            if name in claimed:
                errors.append(
                    MappingErrorDetail(
                        code="duplicate_field_mapping",
                        message="Field is mapped to more than one column.",
                        canonical_field=name,
                        source_column=header,
                        context={"first_column": source_headers[claimed[name]]},
                    )
                )
                continue
            claimed[name] = index

        headers = [header for header in source_headers if header]
        for name in self._required_fields:
            if name not in claimed:
                errors.append(
                    MappingErrorDetail(
                        code="required_field_unmapped",
                        message="Required field has no matching column.",
                        canonical_field=name,
                        context={"source_headers": headers},
                    )
                )
        for name in self._natural_key:
            if name not in claimed and name not in self._required_fields:
                errors.append(
                    MappingErrorDetail(
                        code="natural_key_unmapped",
                        message="Natural key field has no matching column.",
                        canonical_field=name,
                        context={"source_headers": headers},
                    )
                )
        return errors

    def validate(
        self,
        *,
        column_fields: Mapping[int, str],
        source_headers: Sequence[str],
        pre_errors: Sequence[MappingErrorDetail] | None = None,
    ) -> None:
        """
        Raise ``SchemaError`` listing every problem with the layout.

        ``pre_errors`` carries problems found earlier during resolution, such
        as manual overrides naming a header that does not exist.
        """

        errors = list(pre_errors or [])
        errors.extend(self.collect_errors(column_fields=column_fields, source_headers=source_headers))
        if not errors:
            return

        missing = [
            error.canonical_field
            for error in errors
            if error.code in _MISSING_COLUMN_CODES and error.canonical_field
        ]
        if missing:
            message = f"Header row is missing required columns: {', '.join(sorted(set(missing)))}."
        else:
            message = "Header row cannot be mapped onto the entity fields."
        raise SchemaError(message=message, errors=errors)
