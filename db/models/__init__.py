"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.accessory import Accessory
from db.models.activity import Activity, ActivityAction
from db.models.approval_record import ApprovalRecord
from db.models.it_equipment import EquipmentStatus, ITEquipment, ITEquipmentAssignment
from db.models.monitor_inventory import MonitorInventory

__all__ = [
    "Accessory",
    "Activity",
    "ActivityAction",
    "ApprovalRecord",
    "EquipmentStatus",
    "ITEquipment",
    "ITEquipmentAssignment",
    "MonitorInventory",
]
