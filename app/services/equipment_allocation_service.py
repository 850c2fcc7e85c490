"""
app/services/equipment_allocation_service.py

Bulk assignment of pooled IT equipment.

The engine certifies a batch against the units available at read time;
the store re-checks capacity under a row lock while writing, so a batch
that raced another one is still refused as a whole.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from typing import Any, Sequence

from app.domain.allocation import AllocationOutcome, AllocationRequest, AssignmentOperation
from app.domain.errors import AllocationValidationError
from app.logging_utils import log_event
from app.repositories.base import EquipmentPoolStore
from app.services.allocation_engine import AllocationEngine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AllocationReceipt:
    """
    Persisted result of one accepted batch.
    """

    pool_id: Any
    assignment_ids: tuple[Any, ...]
    operations: tuple[AssignmentOperation, ...]
    remaining: int

    @property
    def assigned_quantity(self) -> int:
        return sum(operation.quantity for operation in self.operations)


class EquipmentAllocationService:
    def __init__(self, *, engine: AllocationEngine | None = None) -> None:
        self._engine = engine or AllocationEngine()

    def preview(
        self,
        pool_id: Any,
        requests: Sequence[AllocationRequest],
        store: EquipmentPoolStore,
    ) -> AllocationOutcome:
        """
        Validate a batch without writing anything.
        """

        available = store.get_available_quantity(pool_id)
        return self._engine.allocate(requests, available)

    def bulk_assign(
        self,
        pool_id: Any,
        requests: Sequence[AllocationRequest],
        store: EquipmentPoolStore,
        *,
        assigned_at: datetime | None = None,
    ) -> AllocationReceipt:
        """
        Persist every assignment in the batch, or none of them.

        Raises ``AllocationValidationError`` (``CapacityError`` for short
        stock) when the batch is refused and ``PoolNotFoundError`` for an
        unknown pool.
        """

        available = store.get_available_quantity(pool_id)
        outcome = self._engine.allocate(requests, available, assigned_at=assigned_at)
        if not outcome.accepted:
            log_event(
                logger,
                logging.INFO,
                "bulk_assign_rejected",
                pool_id=pool_id,
                code=outcome.rejection.code,
                requested=outcome.rejection.requested,
                available=outcome.rejection.available,
            )
        outcome.raise_for_rejection()

        try:
            assignment_ids = store.commit_allocation(pool_id, outcome.operations)
            store.commit()
        except AllocationValidationError as exc:
            store.rollback()
            log_event(
                logger,
                logging.WARNING,
                "bulk_assign_conflict",
                pool_id=pool_id,
                requested=exc.requested,
                available=exc.available,
            )
            raise
        except Exception:
            store.rollback()
            raise

        receipt = AllocationReceipt(
            pool_id=pool_id,
            assignment_ids=tuple(assignment_ids),
            operations=outcome.operations,
            remaining=store.get_available_quantity(pool_id),
        )
        log_event(
            logger,
            logging.INFO,
            "bulk_assign_completed",
            pool_id=pool_id,
            assignments=len(receipt.assignment_ids),
            quantity=receipt.assigned_quantity,
            remaining=receipt.remaining,
        )
        return receipt

    def release(self, assignment_id: Any, store: EquipmentPoolStore) -> int:
        """
        Delete an assignment and return its units to the pool.

        Returns the number of units released. Raises
        ``AssignmentNotFoundError`` when the assignment does not exist.
        """

        assignment = store.get_assignment(assignment_id)
        quantity = self._engine.release(assignment)
        try:
            store.remove_assignment(assignment_id, quantity)
            store.commit()
        except Exception:
            store.rollback()
            raise
        log_event(
            logger,
            logging.INFO,
            "assignment_released",
            assignment_id=assignment_id,
            pool_id=assignment.pool_id,
            quantity=quantity,
        )
        return quantity


@lru_cache(maxsize=1)
def get_equipment_allocation_service() -> EquipmentAllocationService:
    return EquipmentAllocationService()
