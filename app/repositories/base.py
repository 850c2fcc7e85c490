"""
Storage interfaces consumed by the import and allocation services.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any

from app.domain.allocation import AssignmentOperation, StoredAssignment
from app.domain.inventory_import import StoredRecord, UpsertResult


class InventoryStore(ABC):
    """
    Record store for one entity type, addressed by natural key.

    ``upsert`` must be atomic per natural key: two concurrent imports of
    the same key end with one record, one create and one update. Imports
    persist through ``upsert`` only; ``lookup`` feeds classification.
    """

    @abstractmethod
    def lookup(self, natural_key: tuple[Any, ...]) -> StoredRecord | None:
        """
        Return the stored record for a natural key, if any.
        """

    @abstractmethod
    def create_record(self, record: Mapping[str, Any]) -> Any:
        """
        Insert one record and return its id.
        """

    @abstractmethod
    def update_record(self, record_id: Any, partial_record: Mapping[str, Any]) -> None:
        """
        Apply only the given fields to an existing record.
        """

    @abstractmethod
    def upsert(
        self,
        natural_key: tuple[Any, ...],
        create_payload: Mapping[str, Any],
        update_payload: Mapping[str, Any],
    ) -> UpsertResult:
        """
        Create or update by natural key as one atomic step.
        """

    def commit(self) -> None:
        """
        Make pending writes durable. No-op for stores without transactions.
        """

    def rollback(self) -> None:
        """
        Discard pending writes. No-op for stores without transactions.
        """


class EquipmentPoolStore(ABC):
    """
    Pool-of-units store for bulk assignment.
    """

    @abstractmethod
    def get_available_quantity(self, pool_id: Any) -> int:
        """
        Return units not yet assigned. Raises ``PoolNotFoundError``.
        """

    @abstractmethod
    def commit_allocation(self, pool_id: Any, operations: Sequence[AssignmentOperation]) -> list[Any]:
        """
        Persist all operations and decrement the pool, or do neither.

        Raises ``CapacityError`` when the pool shrank below the batch since
        it was validated.
        """

    @abstractmethod
    def get_assignment(self, assignment_id: Any) -> StoredAssignment | None:
        """
        Return one stored assignment, if any.
        """

    @abstractmethod
    def remove_assignment(self, assignment_id: Any, quantity: int) -> None:
        """
        Delete an assignment and return ``quantity`` units to its pool.
        """

    def commit(self) -> None:
        """
        Make pending writes durable. No-op for stores without transactions.
        """

    def rollback(self) -> None:
        """
        Discard pending writes. No-op for stores without transactions.
        """
