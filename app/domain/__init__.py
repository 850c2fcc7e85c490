"""
app/domain package marker.
"""

from app.domain.allocation import (
    AllocationOutcome,
    AllocationRejection,
    AllocationRequest,
    AssignmentOperation,
    RejectionCode,
    StoredAssignment,
)
from app.domain.inventory_import import (
    NO_VALUE,
    ImportAction,
    ImportOutcome,
    ImportRecord,
    RowValidationError,
    StoredRecord,
    UpsertResult,
)

__all__ = [
    "AllocationOutcome",
    "AllocationRejection",
    "AllocationRequest",
    "AssignmentOperation",
    "ImportAction",
    "ImportOutcome",
    "ImportRecord",
    "NO_VALUE",
    "RejectionCode",
    "RowValidationError",
    "StoredAssignment",
    "StoredRecord",
    "UpsertResult",
]
