"""
app/domain/allocation.py

Domain models for bulk equipment allocation.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from app.domain.errors import AllocationValidationError, CapacityError


class RejectionCode:
    INVALID_REQUEST = "invalid_request"
    MISSING_ASSIGNEE = "missing_assignee"
    INVALID_QUANTITY = "invalid_quantity"
    SERIAL_WITHOUT_KNOX_ID = "serial_without_knox_id"
    INSUFFICIENT_QUANTITY = "insufficient_quantity"


@dataclass(frozen=True)
class AllocationRequest:
    """
    One requested assignment of units from a pool.

    A serial number identifies one accountable unit, so it must come with
    the assignee's knox ID.
    """

    assignee: str
    quantity: int = 1
    knox_id: str | None = None
    serial_number: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class AssignmentOperation:
    """
    One assignment the caller should persist.
    """

    assignee: str
    quantity: int
    assigned_at: datetime
    knox_id: str | None = None
    serial_number: str | None = None
    notes: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "assignee": self.assignee,
            "quantity": self.quantity,
            "assigned_at": self.assigned_at.isoformat(),
            "knox_id": self.knox_id,
            "serial_number": self.serial_number,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class StoredAssignment:
    """
    A persisted assignment as returned by the pool store.
    """

    id: Any
    pool_id: Any
    assignee: str
    quantity: int
    knox_id: str | None = None
    serial_number: str | None = None
    notes: str | None = None
    assigned_at: datetime | None = None


@dataclass(frozen=True)
class AllocationRejection:
    """
    Single reason a whole allocation batch was refused.
    """

    code: str
    reason: str
    request_index: int | None = None
    requested: int | None = None
    available: int | None = None


@dataclass(frozen=True)
class AllocationOutcome:
    """
    Either the certified operations plus the remaining pool, or a rejection.
    """

    operations: tuple[AssignmentOperation, ...] = ()
    remaining: int | None = None
    rejection: AllocationRejection | None = None

    @property
    def accepted(self) -> bool:
        return self.rejection is None

    @property
    def requested_total(self) -> int:
        return sum(operation.quantity for operation in self.operations)

    def raise_for_rejection(self) -> None:
        """
        Raise the matching exception when the batch was rejected.
        """

        if self.rejection is None:
            return

        error_cls = (
            CapacityError
            if self.rejection.code == RejectionCode.INSUFFICIENT_QUANTITY
            else AllocationValidationError
        )
        raise error_cls(
            self.rejection.reason,
            request_index=self.rejection.request_index,
            requested=self.rejection.requested,
            available=self.rejection.available,
            code=self.rejection.code,
        )
