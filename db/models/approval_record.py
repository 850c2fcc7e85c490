"""
db/models/approval_record.py

Access approval records tracked by the approval monitoring screen.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, ExtraFieldsJSON, TimestampMixin


class ApprovalRecord(Base, TimestampMixin):
    __tablename__ = "approval_monitoring"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    approval_number: Mapped[str] = mapped_column(String(120), nullable=False)
    type: Mapped[str | None] = mapped_column(String(120), nullable=True)
    platform: Mapped[str | None] = mapped_column(String(120), nullable=True)
    pic: Mapped[str | None] = mapped_column(String(255), nullable=True, comment="Person in charge")
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    hostname_accounts: Mapped[str | None] = mapped_column(Text, nullable=True)
    identifier_serial_number: Mapped[str | None] = mapped_column(String(255), nullable=True)
    start_date: Mapped[str | None] = mapped_column(String(32), nullable=True)
    end_date: Mapped[str | None] = mapped_column(String(32), nullable=True)
    status: Mapped[str | None] = mapped_column(String(64), nullable=True)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    extra_fields_json: Mapped[dict[str, Any] | None] = mapped_column(ExtraFieldsJSON, nullable=True)

    __table_args__ = (
        UniqueConstraint("approval_number", name="uq_approval_monitoring_approval_number"),
        Index("ix_approval_monitoring_end_date", "end_date"),
    )
