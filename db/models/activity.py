"""
db/models/activity.py

Audit trail of inventory changes made through imports and assignments.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base


class ActivityAction:
    CREATE = "create"
    UPDATE = "update"
    ASSIGN = "assign"
    UNASSIGN = "unassign"


class Activity(Base):
    __tablename__ = "activity_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    action: Mapped[str] = mapped_column(String(32), nullable=False, comment="create, update, assign, unassign")
    item_type: Mapped[str] = mapped_column(String(64), nullable=False)
    item_id: Mapped[int] = mapped_column(Integer, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    __table_args__ = (
        Index("ix_activity_log_item", "item_type", "item_id"),
        Index("ix_activity_log_timestamp", "timestamp"),
    )
