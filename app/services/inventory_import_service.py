"""
app/services/inventory_import_service.py

Service layer for delimited-text inventory imports.

Flow: parse -> resolve headers -> validate and classify rows -> upsert each
valid record -> commit once. Row failures are collected, never raised; a
header problem or an unreadable upload aborts before anything is written.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Mapping, Sequence

from fastapi import UploadFile

from app.config import get_import_settings
from app.domain.allocation import RejectionCode
from app.domain.errors import AllocationValidationError, PoolNotFoundError
from app.domain.inventory_import import NO_VALUE, ImportOutcome, ImportRecord, RowValidationError
from app.logging_utils import log_event
from app.mappers.entity_mappings import build_entity_mapping
from app.mappers.equipment_assignment import ImportedAssignment, split_assignment
from app.mappers.field_mapping import FieldMapping
from app.parsing import parse_delimited_text
from app.repositories.base import EquipmentPoolStore, InventoryStore
from app.repositories.errors import ImportPersistenceError
from app.services.allocation_engine import AllocationEngine
from app.services.reconciliation_engine import ReconciliationEngine

logger = logging.getLogger(__name__)

_READ_CHUNK_BYTES = 1024 * 1024

_REJECTION_COLUMNS: dict[str, str] = {
    RejectionCode.MISSING_ASSIGNEE: "assigned_to",
    RejectionCode.INVALID_QUANTITY: "assigned_quantity",
    RejectionCode.SERIAL_WITHOUT_KNOX_ID: "assignment_knox_id",
}


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class UploadTooLargeError(ValueError):
    """
    Raised when an upload exceeds the configured byte limit.
    """

    def __init__(self, *, limit: int) -> None:
        super().__init__(f"Upload exceeds the {limit} byte limit.")
        self.limit = limit


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class InventoryImportService:
    """
    Coordinates parsing, reconciliation and persistence of one import.
    """

    def __init__(
        self,
        *,
        max_upload_bytes: int,
        max_validation_errors: int,
        log_validation_errors: bool,
        strict_numeric: bool = False,
        quantity_fallback: int = 1,
        engine: ReconciliationEngine | None = None,
        allocator: AllocationEngine | None = None,
    ) -> None:
        self._max_upload_bytes = max(1, max_upload_bytes)
        self._max_validation_errors = max(1, max_validation_errors)
        self._log_validation_errors = log_validation_errors
        self._strict_numeric = strict_numeric
        self._quantity_fallback = quantity_fallback
        self._engine = engine or ReconciliationEngine(
            max_validation_errors=self._max_validation_errors,
            log_validation_errors=log_validation_errors,
        )
        self._allocator = allocator or AllocationEngine()

    def mapping_for(self, entity: str) -> FieldMapping:
        """
        Return the field mapping for ``entity`` under this service's numeric policy.
        """

        return build_entity_mapping(
            entity,
            strict_numeric=self._strict_numeric,
            quantity_fallback=self._quantity_fallback,
        )

    def import_text(
        self,
        raw_text: str | bytes,
        mapping: FieldMapping,
        store: InventoryStore,
        natural_key_fields: Sequence[str] | None = None,
        *,
        manual_overrides: Mapping[str, str] | None = None,
        pool_store: EquipmentPoolStore | None = None,
    ) -> ImportOutcome:
        """
        Import delimited text into ``store`` and return the run summary.

        Rows that name an assignee also draw units from their own equipment
        pool through ``pool_store``, which must share ``store``'s transaction.

        ``created`` and ``updated`` count what the store actually did, which
        can differ from the classification when another import wrote the
        same keys in between.
        """

        table = parse_delimited_text(raw_text)
        records, classified = self._engine.reconcile(
            table,
            mapping,
            store.lookup,
            natural_key_fields,
            manual_overrides=manual_overrides,
        )

        created = updated = 0
        failed = classified.failed
        errors = list(classified.errors)

        for record in records:
            row = split_assignment(record)
            if row.assignment is not None:
                problem = self._assignment_problem(record, row.assignment, pool_store)
                if problem is not None:
                    failed += 1
                    self._record_error(errors, problem)
                    continue

            try:
                result = store.upsert(record.natural_key, row.create_payload, row.update_payload)
            except ImportPersistenceError as exc:
                failed += 1
                self._record_error(errors, self._persistence_error(record, exc))
                continue

            if row.assignment is not None:
                problem = self._assign(record, row.assignment, result.record_id, pool_store)
                if problem is not None:
                    failed += 1
                    self._record_error(errors, problem)
                    continue
            if result.created:
                created += 1
            else:
                updated += 1

        try:
            store.commit()
        except ImportPersistenceError:
            store.rollback()
            raise

        errors.sort(key=lambda error: error.row_number)
        outcome = ImportOutcome(
            total=classified.total,
            created=created,
            updated=updated,
            failed=failed,
            errors=tuple(errors),
        )
        log_event(
            logger,
            logging.INFO,
            "inventory_import_completed",
            entity=mapping.entity,
            total=outcome.total,
            created=outcome.created,
            updated=outcome.updated,
            failed=outcome.failed,
        )
        return outcome

    def import_upload(
        self,
        *,
        upload_file: UploadFile,
        mapping: FieldMapping,
        store: InventoryStore,
        natural_key_fields: Sequence[str] | None = None,
        manual_overrides: Mapping[str, str] | None = None,
        pool_store: EquipmentPoolStore | None = None,
    ) -> ImportOutcome:
        """
        Read an uploaded file within the size limit and import it.
        """

        raw_bytes = self._read_upload(upload_file)
        return self.import_text(
            raw_bytes,
            mapping,
            store,
            natural_key_fields,
            manual_overrides=manual_overrides,
            pool_store=pool_store,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _read_upload(self, upload_file: UploadFile) -> bytes:
        raw_file = upload_file.file
        raw_file.seek(0)
        chunks: list[bytes] = []
        size = 0
        while True:
            chunk = raw_file.read(_READ_CHUNK_BYTES)
            if not chunk:
                break
            size += len(chunk)
            if size > self._max_upload_bytes:
                raise UploadTooLargeError(limit=self._max_upload_bytes)
            chunks.append(chunk)
        return b"".join(chunks)

    def _assignment_problem(
        self,
        record: ImportRecord,
        assignment: ImportedAssignment,
        pool_store: EquipmentPoolStore | None,
    ) -> RowValidationError | None:
        if pool_store is None:
            return RowValidationError(
                row_number=record.row_number,
                message="Assignments cannot be imported for this entity.",
                column="assigned_to",
                value=assignment.request.assignee,
            )
        rejection = self._allocator.check_request(assignment.request)
        if rejection is None:
            return None
        column = _REJECTION_COLUMNS.get(rejection.code, "assigned_to")
        value = record.get(column, NO_VALUE)
        return RowValidationError(
            row_number=record.row_number,
            message=rejection.reason,
            column=column,
            value=None if value is NO_VALUE else str(value),
        )

    def _assign(
        self,
        record: ImportRecord,
        assignment: ImportedAssignment,
        pool_id: Any,
        pool_store: EquipmentPoolStore,
    ) -> RowValidationError | None:
        # The equipment write stands; only the assignment is refused.
        try:
            outcome = self._allocator.allocate(
                [assignment.request],
                pool_store.get_available_quantity(pool_id),
                assigned_at=assignment.assigned_at,
            )
            outcome.raise_for_rejection()
            pool_store.commit_allocation(pool_id, outcome.operations)
        except (AllocationValidationError, PoolNotFoundError, ImportPersistenceError) as exc:
            return RowValidationError(
                row_number=record.row_number,
                message=f"Equipment saved but not assigned: {exc}",
                column="assigned_quantity",
                value=str(assignment.request.quantity),
            )
        return None

    @staticmethod
    def _persistence_error(record: ImportRecord, exc: Exception) -> RowValidationError:
        return RowValidationError(
            row_number=record.row_number,
            message=f"Could not save record: {exc}",
            value=", ".join(str(part) for part in record.natural_key),
        )

    def _record_error(
        self,
        captured_errors: list[RowValidationError],
        error: RowValidationError,
    ) -> None:
        if self._log_validation_errors:
            logger.warning(
                "Import persistence error row=%s message=%s value=%r",
                error.row_number,
                error.message,
                error.value,
            )

        if len(captured_errors) < self._max_validation_errors:
            captured_errors.append(error)


def summarize_errors(outcome: ImportOutcome, limit: int = 5) -> str | None:
    """
    One-line preview of the first ``limit`` errors, or ``None`` when clean.
    """

    if not outcome.errors:
        return None
    messages = outcome.error_messages()
    preview = "; ".join(messages[: max(0, limit)])
    hidden = len(messages) - min(len(messages), max(0, limit))
    if hidden:
        suffix = f"... and {hidden} more"
        return f"{preview}; {suffix}" if preview else suffix
    return preview


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_inventory_import_service() -> InventoryImportService:
    """
    Build and cache the import service with env-driven settings.
    """
    settings = get_import_settings()
    return InventoryImportService(
        max_upload_bytes=settings.max_upload_bytes,
        max_validation_errors=settings.max_validation_errors,
        log_validation_errors=settings.log_validation_errors,
        strict_numeric=settings.strict_numeric,
        quantity_fallback=settings.quantity_fallback,
    )
