"""create inventory, equipment assignment and activity tables

Revision ID: 20261017_0001
Revises:
Create Date: 2026-10-17 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261017_0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def _extra_fields() -> sa.Column:
    return sa.Column("extra_fields_json", postgresql.JSONB(astext_type=sa.Text()), nullable=True)


def upgrade() -> None:
    op.create_table(
        "monitor_inventory",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("seat_number", sa.String(length=64), nullable=False),
        sa.Column("knox_id", sa.String(length=120), nullable=True),
        sa.Column("asset_number", sa.String(length=120), nullable=True),
        sa.Column("serial_number", sa.String(length=120), nullable=True),
        sa.Column("model", sa.String(length=255), nullable=True),
        sa.Column("remarks", sa.Text(), nullable=True),
        sa.Column("department", sa.String(length=255), nullable=True),
        _extra_fields(),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("seat_number", name="uq_monitor_inventory_seat_number"),
    )
    op.create_index("ix_monitor_inventory_knox_id", "monitor_inventory", ["knox_id"], unique=False)

    op.create_table(
        "approval_monitoring",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("approval_number", sa.String(length=120), nullable=False),
        sa.Column("type", sa.String(length=120), nullable=True),
        sa.Column("platform", sa.String(length=120), nullable=True),
        sa.Column("pic", sa.String(length=255), nullable=True),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("hostname_accounts", sa.Text(), nullable=True),
        sa.Column("identifier_serial_number", sa.String(length=255), nullable=True),
        sa.Column("start_date", sa.String(length=32), nullable=True),
        sa.Column("end_date", sa.String(length=32), nullable=True),
        sa.Column("status", sa.String(length=64), nullable=True),
        sa.Column("remarks", sa.Text(), nullable=True),
        _extra_fields(),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("approval_number", name="uq_approval_monitoring_approval_number"),
    )
    op.create_index("ix_approval_monitoring_end_date", "approval_monitoring", ["end_date"], unique=False)

    op.create_table(
        "it_equipment",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("category", sa.String(length=120), nullable=False),
        sa.Column("total_quantity", sa.Integer(), nullable=True),
        sa.Column("assigned_quantity", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("model", sa.String(length=255), nullable=True),
        sa.Column("location", sa.String(length=255), nullable=True),
        sa.Column("date_acquired", sa.String(length=32), nullable=True),
        sa.Column("knox_id", sa.String(length=120), nullable=True),
        sa.Column("serial_number", sa.String(length=120), nullable=True),
        sa.Column("date_release", sa.String(length=32), nullable=True),
        sa.Column("remarks", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=32), server_default=sa.text("'available'"), nullable=False),
        _extra_fields(),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name", "category", name="uq_it_equipment_name_category"),
    )

    op.create_table(
        "it_equipment_assignments",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("equipment_id", sa.Integer(), nullable=False),
        sa.Column("assigned_to", sa.String(length=255), nullable=False),
        sa.Column("knox_id", sa.String(length=120), nullable=True),
        sa.Column("serial_number", sa.String(length=120), nullable=True),
        sa.Column("quantity", sa.Integer(), server_default=sa.text("1"), nullable=False),
        sa.Column("assigned_date", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("status", sa.String(length=32), server_default=sa.text("'assigned'"), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["equipment_id"], ["it_equipment.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_it_equipment_assignments_equipment_id",
        "it_equipment_assignments",
        ["equipment_id"],
        unique=False,
    )
    op.create_index("ix_it_equipment_assignments_knox_id", "it_equipment_assignments", ["knox_id"], unique=False)

    op.create_table(
        "accessories",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("category", sa.String(length=120), nullable=False),
        sa.Column("status", sa.String(length=32), server_default=sa.text("'available'"), nullable=False),
        sa.Column("quantity", sa.Integer(), server_default=sa.text("1"), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("location", sa.String(length=255), nullable=True),
        sa.Column("serial_number", sa.String(length=120), nullable=True),
        sa.Column("model", sa.String(length=255), nullable=True),
        sa.Column("manufacturer", sa.String(length=255), nullable=True),
        sa.Column("purchase_date", sa.String(length=32), nullable=True),
        sa.Column("purchase_cost", sa.String(length=64), nullable=True),
        sa.Column("knox_id", sa.String(length=120), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        _extra_fields(),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name", "category", name="uq_accessories_name_category"),
    )

    op.create_table(
        "activity_log",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("action", sa.String(length=32), nullable=False, comment="create, update, assign, unassign"),
        sa.Column("item_type", sa.String(length=64), nullable=False),
        sa.Column("item_id", sa.Integer(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_activity_log_item", "activity_log", ["item_type", "item_id"], unique=False)
    op.create_index("ix_activity_log_timestamp", "activity_log", ["timestamp"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_activity_log_timestamp", table_name="activity_log")
    op.drop_index("ix_activity_log_item", table_name="activity_log")
    op.drop_table("activity_log")
    op.drop_table("accessories")
    op.drop_index("ix_it_equipment_assignments_knox_id", table_name="it_equipment_assignments")
    op.drop_index("ix_it_equipment_assignments_equipment_id", table_name="it_equipment_assignments")
    op.drop_table("it_equipment_assignments")
    op.drop_table("it_equipment")
    op.drop_index("ix_approval_monitoring_end_date", table_name="approval_monitoring")
    op.drop_table("approval_monitoring")
    op.drop_index("ix_monitor_inventory_knox_id", table_name="monitor_inventory")
    op.drop_table("monitor_inventory")
