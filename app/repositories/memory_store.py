"""
app/repositories/memory_store.py

In-process stores used for dry runs and tests.

Every read and write takes one lock, so ``upsert`` is atomic across
threads.
"""

from __future__ import annotations

import itertools
import threading
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from app.domain.allocation import AssignmentOperation, StoredAssignment
from app.domain.errors import CapacityError, PoolNotFoundError
from app.domain.inventory_import import EXTRA_FIELDS_KEY, StoredRecord, UpsertResult
from app.repositories.base import EquipmentPoolStore, InventoryStore
from app.repositories.errors import DuplicateNaturalKeyError, RecordNotFoundError


class InMemoryInventoryStore(InventoryStore):
    def __init__(
        self,
        *,
        natural_key_fields: Sequence[str],
        records: Iterable[Mapping[str, Any]] = (),
    ) -> None:
        self._key_fields = tuple(natural_key_fields)
        self._lock = threading.RLock()
        self._records: dict[int, dict[str, Any]] = {}
        self._index: dict[tuple[Any, ...], int] = {}
        self._ids = itertools.count(1)
        for record in records:
            self.create_record(record)

    @property
    def records(self) -> list[StoredRecord]:
        with self._lock:
            return [
                StoredRecord(id=record_id, values=dict(values))
                for record_id, values in self._records.items()
            ]

    def get(self, record_id: Any) -> StoredRecord | None:
        with self._lock:
            values = self._records.get(record_id)
            if values is None:
                return None
            return StoredRecord(id=record_id, values=dict(values))

    def lookup(self, natural_key: tuple[Any, ...]) -> StoredRecord | None:
        with self._lock:
            record_id = self._index.get(tuple(natural_key))
            if record_id is None:
                return None
            return StoredRecord(id=record_id, values=dict(self._records[record_id]))

    def create_record(self, record: Mapping[str, Any]) -> int:
        with self._lock:
            key = tuple(record.get(name) for name in self._key_fields)
            if key in self._index:
                raise DuplicateNaturalKeyError(f"Record with natural key {key!r} already exists.")
            record_id = next(self._ids)
            self._records[record_id] = dict(record)
            self._index[key] = record_id
            return record_id

    def update_record(self, record_id: Any, partial_record: Mapping[str, Any]) -> None:
        with self._lock:
            current = self._records.get(record_id)
            if current is None:
                raise RecordNotFoundError(f"Record not found: {record_id}")
            for name, value in partial_record.items():
                if name == EXTRA_FIELDS_KEY:
                    current[name] = {**(current.get(name) or {}), **value}
                else:
                    current[name] = value

    def upsert(
        self,
        natural_key: tuple[Any, ...],
        create_payload: Mapping[str, Any],
        update_payload: Mapping[str, Any],
    ) -> UpsertResult:
        with self._lock:
            record_id = self._index.get(tuple(natural_key))
            if record_id is None:
                return UpsertResult(record_id=self.create_record(create_payload), created=True)
            self.update_record(record_id, update_payload)
            return UpsertResult(record_id=record_id, created=False)


class InMemoryEquipmentPool(EquipmentPoolStore):
    """
    Pools registered with ``add_pool``, or read from the ``total_quantity``
    of records in a linked inventory store.
    """

    def __init__(
        self,
        *,
        pools: Mapping[Any, int] | None = None,
        inventory: InMemoryInventoryStore | None = None,
    ) -> None:
        self._inventory = inventory
        self._lock = threading.RLock()
        self._totals: dict[Any, int] = dict(pools or {})
        self._assigned: dict[Any, int] = {pool_id: 0 for pool_id in self._totals}
        self._assignments: dict[int, StoredAssignment] = {}
        self._ids = itertools.count(1)

    def add_pool(self, pool_id: Any, total_quantity: int, *, assigned_quantity: int = 0) -> None:
        with self._lock:
            self._totals[pool_id] = total_quantity
            self._assigned[pool_id] = assigned_quantity

    def assignments(self, pool_id: Any) -> list[StoredAssignment]:
        with self._lock:
            return [item for item in self._assignments.values() if item.pool_id == pool_id]

    def get_available_quantity(self, pool_id: Any) -> int:
        with self._lock:
            return self._total(pool_id) - self._assigned.get(pool_id, 0)

    def commit_allocation(self, pool_id: Any, operations: Sequence[AssignmentOperation]) -> list[int]:
        with self._lock:
            available = self.get_available_quantity(pool_id)
            requested = sum(operation.quantity for operation in operations)
            if requested > available:
                raise CapacityError(
                    f"Not enough units available. Requested: {requested}, Available: {available}",
                    requested=requested,
                    available=available,
                )

            ids: list[int] = []
            for operation in operations:
                assignment_id = next(self._ids)
                self._assignments[assignment_id] = StoredAssignment(
                    id=assignment_id,
                    pool_id=pool_id,
                    assignee=operation.assignee,
                    quantity=operation.quantity,
                    knox_id=operation.knox_id,
                    serial_number=operation.serial_number,
                    notes=operation.notes,
                    assigned_at=operation.assigned_at,
                )
                ids.append(assignment_id)
            self._assigned[pool_id] = self._assigned.get(pool_id, 0) + requested
            return ids

    def get_assignment(self, assignment_id: Any) -> StoredAssignment | None:
        with self._lock:
            return self._assignments.get(assignment_id)

    def remove_assignment(self, assignment_id: Any, quantity: int) -> None:
        with self._lock:
            assignment = self._assignments.pop(assignment_id)
            current = self._assigned.get(assignment.pool_id, 0)
            self._assigned[assignment.pool_id] = max(0, current - quantity)

    def _total(self, pool_id: Any) -> int:
        if pool_id in self._totals:
            return self._totals[pool_id]
        record = self._inventory.get(pool_id) if self._inventory is not None else None
        if record is None:
            raise PoolNotFoundError(f"Equipment pool not found: {pool_id}")
        return record.values.get("total_quantity") or 0
