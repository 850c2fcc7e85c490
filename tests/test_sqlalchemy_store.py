"""
tests/test_sqlalchemy_store.py

Pytest tests for the SQLAlchemy inventory and equipment-pool stores.

Runs against in-memory SQLite. pysqlite's own transaction handling is
switched off so SAVEPOINTs behave as they do on PostgreSQL; row locks are
not exercised.

Coverage
--------
- Concurrent insert surfaced as a unique violation is retried as an update
- Import that would leave fewer units than are assigned
- Assignment columns on an SQL-backed equipment import
- Capacity re-check inside commit_allocation
- Release returns units and reopens the pool
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import pytest
from sqlalchemy import create_engine, event, func, select
from sqlalchemy.orm import Session, sessionmaker

import db.models  # noqa: F401  (registers every table on Base.metadata)
from app.domain.allocation import AssignmentOperation
from app.domain.errors import CapacityError
from app.mappers.entity_mappings import IT_EQUIPMENT, MONITOR_INVENTORY
from app.repositories.activity_repository import ActivityRepository
from app.repositories.errors import QuantityBelowAssignedError
from app.repositories.sqlalchemy_store import SQLAlchemyEquipmentPoolStore, SQLAlchemyInventoryStore
from app.services.inventory_import_service import InventoryImportService
from db.base import Base
from db.models.activity import ActivityAction
from db.models.it_equipment import EquipmentStatus, ITEquipment, ITEquipmentAssignment
from db.models.monitor_inventory import MonitorInventory


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def db_session() -> Session:
    """In-memory SQLite session with working savepoints."""
    engine = create_engine("sqlite:///:memory:")

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture()
def svc() -> InventoryImportService:
    return InventoryImportService(
        max_upload_bytes=1024 * 1024,
        max_validation_errors=100,
        log_validation_errors=False,
    )


@pytest.fixture()
def laptops(db_session: Session) -> ITEquipment:
    pool = ITEquipment(name="Laptop", category="IT", total_quantity=5)
    db_session.add(pool)
    db_session.commit()
    return pool


class StaleLookupStore(SQLAlchemyInventoryStore):
    """The first locked lookup misses a row another import just inserted."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.stale_lookups = 1

    def _select_by_key(self, natural_key: tuple[Any, ...], *, for_update: bool = False) -> Any:
        if for_update and self.stale_lookups:
            self.stale_lookups -= 1
            return None
        return super()._select_by_key(natural_key, for_update=for_update)


def _operation(assignee: str, quantity: int) -> AssignmentOperation:
    return AssignmentOperation(
        assignee=assignee,
        quantity=quantity,
        assigned_at=datetime(2024, 3, 1, tzinfo=timezone.utc),
    )


def _actions(session: Session, item_type: str, item_id: int) -> list[str]:
    activities = ActivityRepository(session).list_for_item(item_type=item_type, item_id=item_id)
    return [activity.action for activity in activities]


# ---------------------------------------------------------------------------
# SQLAlchemyInventoryStore
# ---------------------------------------------------------------------------


class TestInventoryStore:
    def test_unique_violation_is_retried_as_update(self, db_session: Session) -> None:
        db_session.add(MonitorInventory(seat_number="A1", model="Dell"))
        db_session.commit()
        store = StaleLookupStore.for_entity(db_session, MONITOR_INVENTORY, ("seat_number",))
        payload = {"seat_number": "A1", "model": "LG"}

        result = store.upsert(("A1",), payload, payload)
        store.commit()

        assert result.created is False
        rows = db_session.execute(select(MonitorInventory)).scalars().all()
        assert [(row.seat_number, row.model) for row in rows] == [("A1", "LG")]
        assert result.record_id == rows[0].id
        assert _actions(db_session, MONITOR_INVENTORY, rows[0].id) == [ActivityAction.UPDATE]

    def test_new_key_is_created_with_extras(self, db_session: Session) -> None:
        store = SQLAlchemyInventoryStore.for_entity(db_session, MONITOR_INVENTORY, ("seat_number",))

        result = store.upsert(
            ("B2",),
            {"seat_number": "B2", "model": None, "extra_fields": {"Floor": "3"}},
            {"seat_number": "B2", "extra_fields": {"Floor": "3"}},
        )
        store.commit()

        assert result.created is True
        row = db_session.get(MonitorInventory, result.record_id)
        assert row.extra_fields_json == {"Floor": "3"}
        assert store.lookup(("B2",)).values["extra_fields"] == {"Floor": "3"}
        assert _actions(db_session, MONITOR_INVENTORY, row.id) == [ActivityAction.CREATE]

    def test_total_below_assigned_is_refused(self, db_session: Session, laptops: ITEquipment) -> None:
        laptops.assigned_quantity = 3
        db_session.commit()
        store = SQLAlchemyInventoryStore.for_entity(db_session, IT_EQUIPMENT, ("name", "category"))

        with pytest.raises(QuantityBelowAssignedError):
            store.upsert(
                ("Laptop", "IT"),
                {"name": "Laptop", "category": "IT", "total_quantity": 2},
                {"name": "Laptop", "category": "IT", "total_quantity": 2},
            )

        db_session.refresh(laptops)
        assert (laptops.total_quantity, laptops.available_quantity) == (5, 2)

    def test_import_reports_total_below_assigned_as_row_error(
        self, db_session: Session, laptops: ITEquipment, svc: InventoryImportService
    ) -> None:
        laptops.assigned_quantity = 3
        db_session.commit()
        store = SQLAlchemyInventoryStore.for_entity(db_session, IT_EQUIPMENT, ("name", "category"))
        raw = "name,category,qty,location\nLaptop,IT,2,HQ\nMonitor,IT,4,HQ\n"

        outcome = svc.import_text(raw, svc.mapping_for(IT_EQUIPMENT), store)

        assert (outcome.created, outcome.updated, outcome.failed) == (1, 0, 1)
        assert outcome.errors[0].message == (
            "Could not save record: Total quantity 2 is below the 3 unit(s) already assigned."
        )
        db_session.refresh(laptops)
        assert (laptops.total_quantity, laptops.location) == (5, None)

    def test_import_with_assignee_writes_assignment(
        self, db_session: Session, svc: InventoryImportService
    ) -> None:
        store = SQLAlchemyInventoryStore.for_entity(db_session, IT_EQUIPMENT, ("name", "category"))
        pools = SQLAlchemyEquipmentPoolStore(db_session)
        raw = "name,category,quantity,assigned to,assignment knox id,assigned quantity\nLaptop,IT,5,alice,K1,2\n"

        outcome = svc.import_text(raw, svc.mapping_for(IT_EQUIPMENT), store, pool_store=pools)

        assert (outcome.created, outcome.failed) == (1, 0)
        pool = db_session.execute(select(ITEquipment)).scalars().one()
        assert (pool.total_quantity, pool.assigned_quantity, pool.available_quantity) == (5, 2, 3)
        assignment = db_session.execute(select(ITEquipmentAssignment)).scalars().one()
        assert (assignment.assigned_to, assignment.knox_id, assignment.quantity) == ("alice", "K1", 2)
        assert _actions(db_session, IT_EQUIPMENT, pool.id) == [ActivityAction.ASSIGN, ActivityAction.CREATE]


# ---------------------------------------------------------------------------
# SQLAlchemyEquipmentPoolStore
# ---------------------------------------------------------------------------


class TestEquipmentPoolStore:
    def test_capacity_is_rechecked_against_the_latest_count(
        self, db_session: Session, laptops: ITEquipment
    ) -> None:
        pools = SQLAlchemyEquipmentPoolStore(db_session)
        assert pools.get_available_quantity(laptops.id) == 5

        # Another batch takes three units after validation.
        laptops.assigned_quantity = 3
        db_session.flush()

        with pytest.raises(CapacityError) as excinfo:
            pools.commit_allocation(laptops.id, [_operation("alice", 2), _operation("bob", 2)])

        assert (excinfo.value.requested, excinfo.value.available) == (4, 2)
        count = db_session.execute(select(func.count()).select_from(ITEquipmentAssignment)).scalar_one()
        assert count == 0
        assert laptops.assigned_quantity == 3

    def test_commit_allocation_uses_up_the_pool(self, db_session: Session, laptops: ITEquipment) -> None:
        pools = SQLAlchemyEquipmentPoolStore(db_session)

        ids = pools.commit_allocation(laptops.id, [_operation("alice", 2), _operation("bob", 3)])
        pools.commit()

        assert len(ids) == 2
        db_session.refresh(laptops)
        assert (laptops.assigned_quantity, laptops.status) == (5, EquipmentStatus.ASSIGNED)
        stored = pools.get_assignment(ids[1])
        assert (stored.assignee, stored.quantity, stored.pool_id) == ("bob", 3, laptops.id)
        assert _actions(db_session, IT_EQUIPMENT, laptops.id) == [ActivityAction.ASSIGN, ActivityAction.ASSIGN]

    def test_release_returns_units(self, db_session: Session, laptops: ITEquipment) -> None:
        pools = SQLAlchemyEquipmentPoolStore(db_session)
        [assignment_id] = pools.commit_allocation(laptops.id, [_operation("alice", 5)])

        pools.remove_assignment(assignment_id, 5)
        pools.commit()

        db_session.refresh(laptops)
        assert (laptops.available_quantity, laptops.status) == (5, EquipmentStatus.AVAILABLE)
        assert pools.get_assignment(assignment_id) is None
        assert _actions(db_session, IT_EQUIPMENT, laptops.id) == [ActivityAction.UNASSIGN, ActivityAction.ASSIGN]
