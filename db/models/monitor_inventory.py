"""
db/models/monitor_inventory.py

Monitor inventory, one row per seat.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, ExtraFieldsJSON, TimestampMixin


class MonitorInventory(Base, TimestampMixin):
    __tablename__ = "monitor_inventory"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    seat_number: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="Natural key for imports",
    )
    knox_id: Mapped[str | None] = mapped_column(String(120), nullable=True)
    asset_number: Mapped[str | None] = mapped_column(String(120), nullable=True)
    serial_number: Mapped[str | None] = mapped_column(String(120), nullable=True)
    model: Mapped[str | None] = mapped_column(String(255), nullable=True)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    department: Mapped[str | None] = mapped_column(String(255), nullable=True)
    extra_fields_json: Mapped[dict[str, Any] | None] = mapped_column(
        ExtraFieldsJSON,
        nullable=True,
        comment="Unmapped upload columns keyed by their header text",
    )

    __table_args__ = (
        UniqueConstraint("seat_number", name="uq_monitor_inventory_seat_number"),
        Index("ix_monitor_inventory_knox_id", "knox_id"),
    )
