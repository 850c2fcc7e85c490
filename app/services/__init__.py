"""
app/services package marker.
"""

from app.services.allocation_engine import AllocationEngine
from app.services.equipment_allocation_service import (
    AllocationReceipt,
    EquipmentAllocationService,
    get_equipment_allocation_service,
)
from app.services.inventory_import_service import (
    InventoryImportService,
    UploadTooLargeError,
    get_inventory_import_service,
    summarize_errors,
)
from app.services.reconciliation_engine import ReconciliationEngine

__all__ = [
    "AllocationEngine",
    "AllocationReceipt",
    "EquipmentAllocationService",
    "get_equipment_allocation_service",
    "InventoryImportService",
    "ReconciliationEngine",
    "UploadTooLargeError",
    "get_inventory_import_service",
    "summarize_errors",
]
