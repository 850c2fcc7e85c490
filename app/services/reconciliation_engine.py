"""
app/services/reconciliation_engine.py

Maps a parsed table onto a field mapping and classifies each valid row as
a create or an update of an existing record, keyed by natural key.

The engine performs no writes. It calls the ``existing`` lookup once per
distinct natural key and returns the classified records for the caller to
persist. A lookup result can be stale by the time the caller writes, so two
imports over the same keys are only safe when the store's write is an
atomic lookup-and-write (see ``InventoryStore.upsert``).
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Sequence

from app.domain.inventory_import import (
    NO_VALUE,
    ImportAction,
    ImportOutcome,
    ImportRecord,
    ParsedTable,
    RowValidationError,
    StoredRecord,
)
from app.mappers.field_mapping import FieldMapping, HeaderResolver
from app.validators.mapping_validator import MappingErrorDetail, SchemaError
from app.validators.row_validator import ImportRowValidator

logger = logging.getLogger(__name__)

LookupFn = Callable[[tuple[Any, ...]], StoredRecord | None]


class ReconciliationEngine:
    """
    Stateless reconciliation of imported rows against stored records.
    """

    def __init__(
        self,
        *,
        resolver: HeaderResolver | None = None,
        validator: ImportRowValidator | None = None,
        max_validation_errors: int | None = None,
        log_validation_errors: bool = False,
    ) -> None:
        self._resolver = resolver or HeaderResolver()
        self._validator = validator or ImportRowValidator()
        self._max_validation_errors = (
            None if max_validation_errors is None else max(1, max_validation_errors)
        )
        self._log_validation_errors = log_validation_errors

    def reconcile(
        self,
        table: ParsedTable,
        mapping: FieldMapping,
        existing: LookupFn,
        natural_key_fields: Sequence[str] | None = None,
        *,
        manual_overrides: Mapping[str, str] | None = None,
    ) -> tuple[list[ImportRecord], ImportOutcome]:
        """
        Resolve headers, validate rows and classify them as create/update.

        Raises ``SchemaError`` before any row is read when the header row is
        missing or lacks a required field. Row problems never abort the run;
        they are collected in the outcome with 1-based row numbers.
        """

        if not table:
            raise SchemaError(
                message="Upload is empty; a header row is required.",
                errors=[MappingErrorDetail(code="empty_headers", message="No rows were provided.")],
            )

        key_fields = tuple(natural_key_fields or mapping.natural_key)
        if not key_fields:
            raise ValueError(f"No natural key configured for entity {mapping.entity!r}.")
        unknown = [name for name in key_fields if name not in mapping.field_names]
        if unknown:
            raise ValueError(f"Natural key references unknown fields: {', '.join(unknown)}.")

        resolution = self._resolver.resolve(
            table[0],
            mapping,
            manual_overrides=manual_overrides,
            natural_key=key_fields,
        )

        width = resolution.width
        records: list[ImportRecord] = []
        captured_errors: list[RowValidationError] = []
        seen_keys: dict[tuple[Any, ...], ImportRecord] = {}
        total = created = updated = failed = 0

        for row_number, cells in enumerate(table[1:], start=1):
            row = self._fit_to_width(cells, width)
            if self._validator.is_completely_empty_row(row):
                continue
            total += 1

            values, extras, row_errors = self._validator.validate_row(
                cells=row,
                resolution=resolution,
                mapping=mapping,
                row_number=row_number,
            )
            if row_errors or values is None:
                failed += 1
                for error in row_errors:
                    self._record_error(captured_errors, error)
                continue

            natural_key = tuple(values[name] for name in key_fields)
            empty_keys = [name for name in key_fields if values[name] is NO_VALUE]
            if empty_keys:
                failed += 1
                self._record_error(
                    captured_errors,
                    RowValidationError(
                        row_number=row_number,
                        column=empty_keys[0],
                        message="Natural key value is missing.",
                    ),
                )
                continue

            record = self._classify(
                row_number=row_number,
                values=values,
                extras=extras,
                natural_key=natural_key,
                earlier=seen_keys.get(natural_key),
                existing=existing,
            )
            seen_keys[natural_key] = record
            records.append(record)
            if record.action == ImportAction.UPDATE:
                updated += 1
            else:
                created += 1

        outcome = ImportOutcome(
            total=total,
            created=created,
            updated=updated,
            failed=failed,
            errors=tuple(captured_errors),
        )
        logger.info(
            "Reconciled entity=%s total=%d created=%d updated=%d failed=%d",
            mapping.entity,
            total,
            created,
            updated,
            failed,
        )
        return records, outcome

    def _classify(
        self,
        *,
        row_number: int,
        values: dict[str, Any],
        extras: dict[str, str],
        natural_key: tuple[Any, ...],
        earlier: ImportRecord | None,
        existing: LookupFn,
    ) -> ImportRecord:
        if earlier is not None:
            # A repeated key updates the row created/updated earlier in this batch.
            return ImportRecord(
                row_number=row_number,
                values=values,
                natural_key=natural_key,
                action=ImportAction.UPDATE,
                existing_id=earlier.existing_id,
                duplicate_of=earlier.row_number,
                changes=self._diff(values, earlier.values),
                extras=extras,
            )

        stored = existing(natural_key)
        if stored is None:
            return ImportRecord(
                row_number=row_number,
                values=values,
                natural_key=natural_key,
                action=ImportAction.CREATE,
                extras=extras,
            )

        return ImportRecord(
            row_number=row_number,
            values=values,
            natural_key=natural_key,
            action=ImportAction.UPDATE,
            existing_id=stored.id,
            changes=self._diff(values, stored.values),
            extras=extras,
        )

    @staticmethod
    def _diff(values: Mapping[str, Any], current: Mapping[str, Any]) -> dict[str, Any]:
        return {
            name: value
            for name, value in values.items()
            if value is not NO_VALUE and current.get(name) != value
        }

    @staticmethod
    def _fit_to_width(cells: Sequence[str], width: int) -> list[str]:
        row = list(cells[:width])
        if len(row) < width:
            row.extend([""] * (width - len(row)))
        return row

    def _record_error(
        self,
        captured_errors: list[RowValidationError],
        error: RowValidationError,
    ) -> None:
        if self._log_validation_errors:
            logger.warning(
                "Import validation error row=%s column=%s message=%s value=%r",
                error.row_number,
                error.column,
                error.message,
                error.value,
            )

        if self._max_validation_errors is None or len(captured_errors) < self._max_validation_errors:
            captured_errors.append(error)
