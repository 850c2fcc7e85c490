"""
db/models/accessory.py

Accessories tracked as countable stock.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import Integer, String, Text, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, ExtraFieldsJSON, TimestampMixin


class Accessory(Base, TimestampMixin):
    __tablename__ = "accessories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(String(120), nullable=False)
    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default="available",
        server_default=text("'available'"),
        comment="available, borrowed, returned, defective",
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default=text("1"))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    serial_number: Mapped[str | None] = mapped_column(String(120), nullable=True)
    model: Mapped[str | None] = mapped_column(String(255), nullable=True)
    manufacturer: Mapped[str | None] = mapped_column(String(255), nullable=True)
    purchase_date: Mapped[str | None] = mapped_column(String(32), nullable=True)
    purchase_cost: Mapped[str | None] = mapped_column(String(64), nullable=True)
    knox_id: Mapped[str | None] = mapped_column(String(120), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    extra_fields_json: Mapped[dict[str, Any] | None] = mapped_column(ExtraFieldsJSON, nullable=True)

    __table_args__ = (
        UniqueConstraint("name", "category", name="uq_accessories_name_category"),
    )
