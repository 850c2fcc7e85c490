"""
app/schemas/equipment_allocation.py

Request and response schemas for bulk equipment assignment.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, StrictInt

from app.domain.allocation import AllocationOutcome, AllocationRequest, AssignmentOperation


class AllocationRequestPayload(BaseModel):
    """
    One requested assignment. Business rules are checked by the engine,
    not here, so every violation is reported the same way.
    """

    assigned_to: str = ""
    quantity: StrictInt = 1
    knox_id: str | None = None
    serial_number: str | None = None
    notes: str | None = None

    def to_domain(self) -> AllocationRequest:
        return AllocationRequest(
            assignee=self.assigned_to,
            quantity=self.quantity,
            knox_id=self.knox_id,
            serial_number=self.serial_number,
            notes=self.notes,
        )


class BulkAssignRequest(BaseModel):
    assignments: list[AllocationRequestPayload] = Field(default_factory=list)

    def to_domain(self) -> list[AllocationRequest]:
        return [item.to_domain() for item in self.assignments]


class AssignmentResponse(BaseModel):
    id: int | None = None
    assigned_to: str
    quantity: int = Field(..., ge=1)
    knox_id: str | None = None
    serial_number: str | None = None
    notes: str | None = None
    assigned_date: datetime

    @classmethod
    def from_operation(
        cls,
        operation: AssignmentOperation,
        assignment_id: int | None = None,
    ) -> "AssignmentResponse":
        return cls(
            id=assignment_id,
            assigned_to=operation.assignee,
            quantity=operation.quantity,
            knox_id=operation.knox_id,
            serial_number=operation.serial_number,
            notes=operation.notes,
            assigned_date=operation.assigned_at,
        )


class AllocationResponse(BaseModel):
    pool_id: int
    message: str
    assigned_quantity: int = Field(..., ge=0)
    remaining: int = Field(..., ge=0)
    assignments: list[AssignmentResponse] = Field(default_factory=list)


class AllocationPreviewResponse(BaseModel):
    """
    Dry-run verdict for a batch; nothing is written.
    """

    pool_id: int
    accepted: bool
    requested: int = Field(..., ge=0)
    remaining: int | None = None
    code: str | None = None
    reason: str | None = None
    request_index: int | None = None
    available: int | None = None

    @classmethod
    def from_outcome(cls, pool_id: int, outcome: AllocationOutcome) -> "AllocationPreviewResponse":
        rejection = outcome.rejection
        if rejection is None:
            return cls(
                pool_id=pool_id,
                accepted=True,
                requested=outcome.requested_total,
                remaining=outcome.remaining,
            )
        return cls(
            pool_id=pool_id,
            accepted=False,
            requested=rejection.requested or 0,
            code=rejection.code,
            reason=rejection.reason,
            request_index=rejection.request_index,
            available=rejection.available,
        )


class ReleaseResponse(BaseModel):
    assignment_id: int
    released_quantity: int = Field(..., ge=1)
    message: str
