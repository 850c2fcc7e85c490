"""
app/api/routers/equipment_allocation.py

Bulk assignment HTTP endpoints for pooled IT equipment.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.dependencies import get_equipment_pool_store
from app.domain.errors import AllocationValidationError, AssignmentNotFoundError, PoolNotFoundError
from app.repositories.base import EquipmentPoolStore
from app.repositories.errors import ImportPersistenceError
from app.schemas.equipment_allocation import (
    AllocationPreviewResponse,
    AllocationResponse,
    AssignmentResponse,
    BulkAssignRequest,
    ReleaseResponse,
)
from app.services.equipment_allocation_service import (
    EquipmentAllocationService,
    get_equipment_allocation_service,
)

router = APIRouter(prefix="/it-equipment", tags=["it-equipment"])


@router.post(
    "/{pool_id}/bulk-assign",
    response_model=AllocationResponse,
    status_code=status.HTTP_201_CREATED,
)
def bulk_assign(
    pool_id: int,
    payload: BulkAssignRequest,
    store: EquipmentPoolStore = Depends(get_equipment_pool_store),
    allocation_service: EquipmentAllocationService = Depends(get_equipment_allocation_service),
) -> AllocationResponse:
    """
    Assign units from one pool to several people in a single step.
    """

    try:
        receipt = allocation_service.bulk_assign(pool_id, payload.to_domain(), store)
    except PoolNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except AllocationValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=exc.to_dict(),
        ) from exc
    except ImportPersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to save assignments.",
        ) from exc

    return AllocationResponse(
        pool_id=pool_id,
        message=f"Successfully assigned {receipt.assigned_quantity} unit(s).",
        assigned_quantity=receipt.assigned_quantity,
        remaining=receipt.remaining,
        assignments=[
            AssignmentResponse.from_operation(operation, assignment_id)
            for operation, assignment_id in zip(receipt.operations, receipt.assignment_ids)
        ],
    )


@router.post("/{pool_id}/bulk-assign/preview", response_model=AllocationPreviewResponse)
def preview_bulk_assign(
    pool_id: int,
    payload: BulkAssignRequest,
    store: EquipmentPoolStore = Depends(get_equipment_pool_store),
    allocation_service: EquipmentAllocationService = Depends(get_equipment_allocation_service),
) -> AllocationPreviewResponse:
    try:
        outcome = allocation_service.preview(pool_id, payload.to_domain(), store)
    except PoolNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return AllocationPreviewResponse.from_outcome(pool_id, outcome)


@router.delete("/assignments/{assignment_id}", response_model=ReleaseResponse)
def release_assignment(
    assignment_id: int,
    store: EquipmentPoolStore = Depends(get_equipment_pool_store),
    allocation_service: EquipmentAllocationService = Depends(get_equipment_allocation_service),
) -> ReleaseResponse:
    try:
        released = allocation_service.release(assignment_id, store)
    except AssignmentNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ImportPersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to release assignment.",
        ) from exc

    return ReleaseResponse(
        assignment_id=assignment_id,
        released_quantity=released,
        message=f"Released {released} unit(s).",
    )
