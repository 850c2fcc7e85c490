"""
db/models/it_equipment.py

Pooled IT equipment and the assignments drawn from each pool.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint, func, text
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, ExtraFieldsJSON, TimestampMixin


class EquipmentStatus:
    AVAILABLE = "available"
    ASSIGNED = "assigned"


class ITEquipment(Base, TimestampMixin):
    __tablename__ = "it_equipment"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(String(120), nullable=False)
    total_quantity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    assigned_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text("0"))
    model: Mapped[str | None] = mapped_column(String(255), nullable=True)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    date_acquired: Mapped[str | None] = mapped_column(String(32), nullable=True)
    knox_id: Mapped[str | None] = mapped_column(String(120), nullable=True)
    serial_number: Mapped[str | None] = mapped_column(String(120), nullable=True)
    date_release: Mapped[str | None] = mapped_column(String(32), nullable=True)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=EquipmentStatus.AVAILABLE,
        server_default=text("'available'"),
    )
    extra_fields_json: Mapped[dict[str, Any] | None] = mapped_column(ExtraFieldsJSON, nullable=True)

    __table_args__ = (
        UniqueConstraint("name", "category", name="uq_it_equipment_name_category"),
    )

    @property
    def available_quantity(self) -> int:
        return (self.total_quantity or 0) - (self.assigned_quantity or 0)


class ITEquipmentAssignment(Base):
    __tablename__ = "it_equipment_assignments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    equipment_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("it_equipment.id", ondelete="CASCADE"),
        nullable=False,
    )
    assigned_to: Mapped[str] = mapped_column(String(255), nullable=False)
    knox_id: Mapped[str | None] = mapped_column(String(120), nullable=True)
    serial_number: Mapped[str | None] = mapped_column(String(120), nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default=text("1"))
    assigned_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=EquipmentStatus.ASSIGNED,
        server_default=text("'assigned'"),
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_it_equipment_assignments_equipment_id", "equipment_id"),
        Index("ix_it_equipment_assignments_knox_id", "knox_id"),
    )
