"""
app/api/routers package marker.
"""

from app.api.routers.equipment_allocation import router as equipment_allocation_router
from app.api.routers.inventory_import import router as inventory_import_router

__all__ = [
    "equipment_allocation_router",
    "inventory_import_router",
]
