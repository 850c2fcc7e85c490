"""
app/repositories package marker.
"""

from app.repositories.activity_repository import ActivityRepository
from app.repositories.base import EquipmentPoolStore, InventoryStore
from app.repositories.memory_store import InMemoryEquipmentPool, InMemoryInventoryStore
from app.repositories.sqlalchemy_store import SQLAlchemyEquipmentPoolStore, SQLAlchemyInventoryStore

__all__ = [
    "ActivityRepository",
    "EquipmentPoolStore",
    "InMemoryEquipmentPool",
    "InMemoryInventoryStore",
    "InventoryStore",
    "SQLAlchemyEquipmentPoolStore",
    "SQLAlchemyInventoryStore",
]
