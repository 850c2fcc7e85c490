"""
app/repositories/sqlalchemy_store.py

PostgreSQL-backed inventory and equipment-pool stores.

Every write runs inside a SAVEPOINT so one failing row never poisons the
surrounding transaction; the owning service decides when to commit.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy import inspect, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.allocation import AssignmentOperation, StoredAssignment
from app.domain.errors import CapacityError, PoolNotFoundError, UnknownEntityError
from app.domain.inventory_import import EXTRA_FIELDS_KEY, StoredRecord, UpsertResult
from app.mappers.entity_mappings import ACCESSORY, APPROVAL_RECORD, IT_EQUIPMENT, MONITOR_INVENTORY
from app.repositories.activity_repository import ActivityRepository
from app.repositories.base import EquipmentPoolStore, InventoryStore
from app.repositories.errors import (
    DuplicateNaturalKeyError,
    ImportPersistenceError,
    QuantityBelowAssignedError,
    RecordNotFoundError,
)
from db.base import Base
from db.models.accessory import Accessory
from db.models.activity import ActivityAction
from db.models.approval_record import ApprovalRecord
from db.models.it_equipment import EquipmentStatus, ITEquipment, ITEquipmentAssignment
from db.models.monitor_inventory import MonitorInventory

logger = logging.getLogger(__name__)

ENTITY_MODELS: dict[str, type[Base]] = {
    MONITOR_INVENTORY: MonitorInventory,
    APPROVAL_RECORD: ApprovalRecord,
    IT_EQUIPMENT: ITEquipment,
    ACCESSORY: Accessory,
}

_EXTRA_COLUMN = "extra_fields_json"
_EQUIPMENT_ITEM_TYPE = "it_equipment"


def model_for_entity(entity: str) -> type[Base]:
    model = ENTITY_MODELS.get(entity)
    if model is None:
        raise UnknownEntityError(f"No storage model registered for entity {entity!r}.")
    return model


class SQLAlchemyInventoryStore(InventoryStore):
    """
    Store for one inventory table, keyed by its natural-key columns.

    Payload keys that are not columns of the table land in
    ``extra_fields_json`` together with the unmapped upload columns.
    """

    def __init__(
        self,
        session: Session,
        *,
        model: type[Base],
        natural_key_fields: Sequence[str],
        item_type: str | None = None,
        record_activity: bool = True,
    ) -> None:
        self._session = session
        self._model = model
        self._key_fields = tuple(natural_key_fields)
        self._item_type = item_type or model.__tablename__
        self._activity = ActivityRepository(session) if record_activity else None
        mapper = inspect(model)
        self._columns = {
            column.key
            for column in mapper.column_attrs
            if column.key not in {"id", "created_at", "updated_at"}
        }
        missing = [name for name in self._key_fields if name not in self._columns]
        if missing:
            raise ValueError(
                f"Natural key fields are not columns of {model.__tablename__}: {', '.join(missing)}"
            )

    @classmethod
    def for_entity(
        cls,
        session: Session,
        entity: str,
        natural_key_fields: Sequence[str],
    ) -> "SQLAlchemyInventoryStore":
        return cls(
            session,
            model=model_for_entity(entity),
            natural_key_fields=natural_key_fields,
            item_type=entity,
        )

    def lookup(self, natural_key: tuple[Any, ...]) -> StoredRecord | None:
        row = self._select_by_key(natural_key)
        if row is None:
            return None
        return StoredRecord(id=row.id, values=self._row_values(row))

    def create_record(self, record: Mapping[str, Any]) -> int:
        try:
            with self._session.begin_nested():
                row = self._insert(record)
        except IntegrityError as exc:
            key = tuple(record.get(name) for name in self._key_fields)
            raise DuplicateNaturalKeyError(
                f"Record with natural key {key!r} already exists."
            ) from exc
        except SQLAlchemyError as exc:
            raise ImportPersistenceError(f"Failed to insert {self._item_type} record: {exc}") from exc
        return row.id

    def update_record(self, record_id: Any, partial_record: Mapping[str, Any]) -> None:
        try:
            with self._session.begin_nested():
                row = self._session.get(self._model, record_id, with_for_update=True)
                if row is None:
                    raise RecordNotFoundError(f"Record not found: {record_id}")
                self._apply(row, partial_record)
        except SQLAlchemyError as exc:
            raise ImportPersistenceError(
                f"Failed to update {self._item_type} record {record_id}: {exc}"
            ) from exc

    def upsert(
        self,
        natural_key: tuple[Any, ...],
        create_payload: Mapping[str, Any],
        update_payload: Mapping[str, Any],
    ) -> UpsertResult:
        """
        Lock the row for the key and update it, or insert a new one.

        A concurrent insert of the same key surfaces as a unique violation;
        the savepoint is rolled back and the row is updated instead.
        """

        try:
            with self._session.begin_nested():
                row = self._select_by_key(natural_key, for_update=True)
                if row is not None:
                    self._apply(row, update_payload)
                    return UpsertResult(record_id=row.id, created=False)
                row = self._insert(create_payload)
                return UpsertResult(record_id=row.id, created=True)
        except IntegrityError:
            logger.info(
                "Concurrent insert detected item_type=%s key=%r; retrying as update",
                self._item_type,
                natural_key,
            )
        except SQLAlchemyError as exc:
            raise ImportPersistenceError(f"Failed to save {self._item_type} record: {exc}") from exc

        try:
            with self._session.begin_nested():
                row = self._select_by_key(natural_key, for_update=True)
                if row is None:
                    raise ImportPersistenceError(
                        f"Record with natural key {natural_key!r} vanished during import."
                    )
                self._apply(row, update_payload)
                return UpsertResult(record_id=row.id, created=False)
        except SQLAlchemyError as exc:
            raise ImportPersistenceError(f"Failed to save {self._item_type} record: {exc}") from exc

    def commit(self) -> None:
        try:
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise ImportPersistenceError(f"Failed to commit changes: {exc}") from exc

    def rollback(self) -> None:
        self._session.rollback()

    def _select_by_key(self, natural_key: tuple[Any, ...], *, for_update: bool = False) -> Any:
        stmt = select(self._model)
        for name, value in zip(self._key_fields, natural_key):
            stmt = stmt.where(getattr(self._model, name) == value)
        if for_update:
            stmt = stmt.with_for_update()
        return self._session.execute(stmt).scalars().first()

    def _insert(self, payload: Mapping[str, Any]) -> Any:
        columns, extras = self._split(payload)
        # Leave defaulted columns to the model when the cell was blank.
        values = {name: value for name, value in columns.items() if value is not None}
        if extras:
            values[_EXTRA_COLUMN] = extras
        row = self._model(**values)
        self._session.add(row)
        self._session.flush()
        if self._activity is not None:
            self._activity.record(
                action=ActivityAction.CREATE,
                item_type=self._item_type,
                item_id=row.id,
                notes="Created via import",
            )
        return row

    def _apply(self, row: Any, payload: Mapping[str, Any]) -> None:
        columns, extras = self._split(payload)
        self._check_quantity(row, columns)
        for name, value in columns.items():
            setattr(row, name, value)
        if extras:
            row.extra_fields_json = {**(row.extra_fields_json or {}), **extras}
        self._session.flush()
        if self._activity is not None:
            self._activity.record(
                action=ActivityAction.UPDATE,
                item_type=self._item_type,
                item_id=row.id,
                notes="Updated via import",
            )

    @staticmethod
    def _check_quantity(row: Any, columns: Mapping[str, Any]) -> None:
        assigned = getattr(row, "assigned_quantity", None) or 0
        total = columns.get("total_quantity")
        if assigned and total is not None and total < assigned:
            raise QuantityBelowAssignedError(
                f"Total quantity {total} is below the {assigned} unit(s) already assigned."
            )

    def _split(self, payload: Mapping[str, Any]) -> tuple[dict[str, Any], dict[str, Any]]:
        columns: dict[str, Any] = {}
        extras: dict[str, Any] = dict(payload.get(EXTRA_FIELDS_KEY) or {})
        for name, value in payload.items():
            if name == EXTRA_FIELDS_KEY:
                continue
            if name in self._columns and name != _EXTRA_COLUMN:
                columns[name] = value
            elif value is not None:
                extras[name] = value
        return columns, extras

    def _row_values(self, row: Any) -> dict[str, Any]:
        values = {name: getattr(row, name) for name in self._columns if name != _EXTRA_COLUMN}
        if row.extra_fields_json:
            values[EXTRA_FIELDS_KEY] = dict(row.extra_fields_json)
        return values


class SQLAlchemyEquipmentPoolStore(EquipmentPoolStore):
    """
    Equipment pools backed by ``it_equipment`` rows.

    ``commit_allocation`` locks the pool row, so two batches against the
    same pool serialize and the capacity re-check sees the latest count.
    """

    def __init__(self, session: Session, *, record_activity: bool = True) -> None:
        self._session = session
        self._activity = ActivityRepository(session) if record_activity else None

    def get_available_quantity(self, pool_id: Any) -> int:
        return self._get_pool(pool_id).available_quantity

    def commit_allocation(self, pool_id: Any, operations: Sequence[AssignmentOperation]) -> list[int]:
        try:
            with self._session.begin_nested():
                pool = self._get_pool(pool_id, for_update=True)
                available = pool.available_quantity
                requested = sum(operation.quantity for operation in operations)
                if requested > available:
                    raise CapacityError(
                        f"Not enough units available. Requested: {requested}, Available: {available}",
                        requested=requested,
                        available=available,
                    )

                rows = [
                    ITEquipmentAssignment(
                        equipment_id=pool.id,
                        assigned_to=operation.assignee,
                        knox_id=operation.knox_id,
                        serial_number=operation.serial_number,
                        quantity=operation.quantity,
                        assigned_date=operation.assigned_at,
                        status=EquipmentStatus.ASSIGNED,
                        notes=operation.notes,
                    )
                    for operation in operations
                ]
                self._session.add_all(rows)
                pool.assigned_quantity = (pool.assigned_quantity or 0) + requested
                if pool.available_quantity <= 0:
                    pool.status = EquipmentStatus.ASSIGNED
                self._session.flush()

                if self._activity is not None:
                    for row in rows:
                        self._activity.record(
                            action=ActivityAction.ASSIGN,
                            item_type=_EQUIPMENT_ITEM_TYPE,
                            item_id=pool.id,
                            notes=f"Assigned {row.quantity} unit(s) to {row.assigned_to}",
                        )
                return [row.id for row in rows]
        except (CapacityError, PoolNotFoundError):
            raise
        except SQLAlchemyError as exc:
            raise ImportPersistenceError(f"Failed to save assignments for pool {pool_id}: {exc}") from exc

    def get_assignment(self, assignment_id: Any) -> StoredAssignment | None:
        row = self._session.get(ITEquipmentAssignment, assignment_id)
        if row is None:
            return None
        return StoredAssignment(
            id=row.id,
            pool_id=row.equipment_id,
            assignee=row.assigned_to,
            quantity=row.quantity,
            knox_id=row.knox_id,
            serial_number=row.serial_number,
            notes=row.notes,
            assigned_at=row.assigned_date,
        )

    def remove_assignment(self, assignment_id: Any, quantity: int) -> None:
        try:
            with self._session.begin_nested():
                row = self._session.get(ITEquipmentAssignment, assignment_id, with_for_update=True)
                if row is None:
                    raise RecordNotFoundError(f"Assignment not found: {assignment_id}")
                pool = self._get_pool(row.equipment_id, for_update=True)
                pool.assigned_quantity = max(0, (pool.assigned_quantity or 0) - quantity)
                if pool.available_quantity > 0:
                    pool.status = EquipmentStatus.AVAILABLE
                self._session.delete(row)
                self._session.flush()
                if self._activity is not None:
                    self._activity.record(
                        action=ActivityAction.UNASSIGN,
                        item_type=_EQUIPMENT_ITEM_TYPE,
                        item_id=pool.id,
                        notes=f"Released {quantity} unit(s) from {row.assigned_to}",
                    )
        except SQLAlchemyError as exc:
            raise ImportPersistenceError(f"Failed to release assignment {assignment_id}: {exc}") from exc

    def commit(self) -> None:
        try:
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise ImportPersistenceError(f"Failed to commit changes: {exc}") from exc

    def rollback(self) -> None:
        self._session.rollback()

    def _get_pool(self, pool_id: Any, *, for_update: bool = False) -> ITEquipment:
        pool = self._session.get(ITEquipment, pool_id, with_for_update=for_update)
        if pool is None:
            raise PoolNotFoundError(f"Equipment pool not found: {pool_id}")
        return pool
