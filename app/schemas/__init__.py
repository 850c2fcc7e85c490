"""
app/schemas package marker.
"""

from app.schemas.equipment_allocation import (
    AllocationPreviewResponse,
    AllocationRequestPayload,
    AllocationResponse,
    AssignmentResponse,
    BulkAssignRequest,
    ReleaseResponse,
)
from app.schemas.inventory_import import ImportErrorResponse, ImportOutcomeResponse

__all__ = [
    "AllocationPreviewResponse",
    "AllocationRequestPayload",
    "AllocationResponse",
    "AssignmentResponse",
    "BulkAssignRequest",
    "ImportErrorResponse",
    "ImportOutcomeResponse",
    "ReleaseResponse",
]
