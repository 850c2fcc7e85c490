"""
tests/test_equipment_allocation_service.py

Pytest tests for EquipmentAllocationService against the in-memory pool.
"""

from __future__ import annotations

from typing import Any, Sequence

import pytest

from app.domain.allocation import AllocationRequest, AssignmentOperation
from app.domain.errors import (
    AllocationValidationError,
    AssignmentNotFoundError,
    CapacityError,
    PoolNotFoundError,
)
from app.repositories.memory_store import InMemoryEquipmentPool
from app.services.equipment_allocation_service import EquipmentAllocationService


@pytest.fixture()
def svc() -> EquipmentAllocationService:
    return EquipmentAllocationService()


@pytest.fixture()
def pool() -> InMemoryEquipmentPool:
    return InMemoryEquipmentPool(pools={1: 5})


class ShrinkingPool(InMemoryEquipmentPool):
    """Another batch takes units between validation and write."""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.rollbacks = 0

    def commit_allocation(self, pool_id: Any, operations: Sequence[AssignmentOperation]) -> list[int]:
        self.add_pool(pool_id, 5, assigned_quantity=4)
        return super().commit_allocation(pool_id, operations)

    def rollback(self) -> None:
        self.rollbacks += 1


class TestBulkAssign:
    def test_accepted_batch_is_persisted(
        self, svc: EquipmentAllocationService, pool: InMemoryEquipmentPool
    ) -> None:
        requests = [
            AllocationRequest(assignee="alice", quantity=2, knox_id="ak01", serial_number="SN1"),
            AllocationRequest(assignee="bob"),
        ]

        receipt = svc.bulk_assign(1, requests, pool)

        assert receipt.remaining == 2
        assert receipt.assigned_quantity == 3
        assert len(receipt.assignment_ids) == 2
        assert pool.get_available_quantity(1) == 2
        assert [item.assignee for item in pool.assignments(1)] == ["alice", "bob"]

    def test_rejected_batch_writes_nothing(
        self, svc: EquipmentAllocationService, pool: InMemoryEquipmentPool
    ) -> None:
        requests = [AllocationRequest(assignee="alice", quantity=4), AllocationRequest(assignee="bob", quantity=2)]

        with pytest.raises(CapacityError):
            svc.bulk_assign(1, requests, pool)

        assert pool.get_available_quantity(1) == 5
        assert pool.assignments(1) == []

    def test_rule_violation_raises_validation_error(
        self, svc: EquipmentAllocationService, pool: InMemoryEquipmentPool
    ) -> None:
        with pytest.raises(AllocationValidationError) as exc_info:
            svc.bulk_assign(1, [AllocationRequest(assignee="a", serial_number="SN1")], pool)
        assert exc_info.value.code == "serial_without_knox_id"
        assert pool.assignments(1) == []

    def test_capacity_is_rechecked_at_write_time(self, svc: EquipmentAllocationService) -> None:
        pool = ShrinkingPool(pools={1: 5})

        with pytest.raises(CapacityError):
            svc.bulk_assign(1, [AllocationRequest(assignee="a", quantity=3)], pool)

        assert pool.rollbacks == 1
        assert pool.assignments(1) == []

    def test_unknown_pool_raises(self, svc: EquipmentAllocationService, pool: InMemoryEquipmentPool) -> None:
        with pytest.raises(PoolNotFoundError):
            svc.bulk_assign(99, [AllocationRequest(assignee="a")], pool)


class TestPreview:
    def test_preview_does_not_write(self, svc: EquipmentAllocationService, pool: InMemoryEquipmentPool) -> None:
        outcome = svc.preview(1, [AllocationRequest(assignee="a", quantity=5)], pool)

        assert outcome.accepted
        assert outcome.remaining == 0
        assert pool.get_available_quantity(1) == 5


class TestRelease:
    def test_release_returns_units_to_pool(
        self, svc: EquipmentAllocationService, pool: InMemoryEquipmentPool
    ) -> None:
        receipt = svc.bulk_assign(1, [AllocationRequest(assignee="a", quantity=3)], pool)

        released = svc.release(receipt.assignment_ids[0], pool)

        assert released == 3
        assert pool.get_available_quantity(1) == 5
        assert pool.get_assignment(receipt.assignment_ids[0]) is None

    def test_release_unknown_assignment_raises(
        self, svc: EquipmentAllocationService, pool: InMemoryEquipmentPool
    ) -> None:
        with pytest.raises(AssignmentNotFoundError):
            svc.release(404, pool)
