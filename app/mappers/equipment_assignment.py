"""
app/mappers/equipment_assignment.py

Assignment columns on IT equipment uploads.

An equipment row may also hand units to a person ("assigned to",
"assigned quantity", ...). Those cells are not equipment columns: they are
split off the record here and become an ``AllocationRequest`` drawn from
the row's own pool once the equipment is saved.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Any

from app.domain.allocation import AllocationRequest
from app.domain.inventory_import import EXTRA_FIELDS_KEY, NO_VALUE, ImportRecord

ASSIGNMENT_FIELDS: tuple[str, ...] = (
    "assigned_to",
    "assigned_quantity",
    "assigned_date",
    "assignment_knox_id",
    "assignment_serial_number",
    "assignment_notes",
)


@dataclass(frozen=True)
class ImportedAssignment:
    request: AllocationRequest
    assigned_at: datetime | None = None


@dataclass(frozen=True)
class EquipmentRow:
    """
    Equipment payloads with the assignment columns removed.
    """

    create_payload: dict[str, Any]
    update_payload: dict[str, Any]
    assignment: ImportedAssignment | None = None


def split_assignment(record: ImportRecord) -> EquipmentRow:
    """
    Separate the assignment cells of ``record`` from its equipment payloads.

    Rows without an assignee carry no assignment; their other assignment
    cells are dropped.
    """

    create_payload = _without_assignment(record.create_payload())
    update_payload = _without_assignment(record.update_payload())

    assignee = _cell(record, "assigned_to")
    if assignee is None:
        return EquipmentRow(create_payload, update_payload)

    quantity = record.get("assigned_quantity", NO_VALUE)
    request = AllocationRequest(
        assignee=assignee,
        quantity=1 if quantity is NO_VALUE else quantity,
        knox_id=_cell(record, "assignment_knox_id"),
        serial_number=_cell(record, "assignment_serial_number"),
        notes=_cell(record, "assignment_notes"),
    )
    return EquipmentRow(
        create_payload,
        update_payload,
        ImportedAssignment(request=request, assigned_at=_assigned_at(record)),
    )


def _without_assignment(payload: dict[str, Any]) -> dict[str, Any]:
    stripped = {name: value for name, value in payload.items() if name not in ASSIGNMENT_FIELDS}
    if EXTRA_FIELDS_KEY in stripped and not stripped[EXTRA_FIELDS_KEY]:
        del stripped[EXTRA_FIELDS_KEY]
    return stripped


def _cell(record: ImportRecord, name: str) -> str | None:
    value = record.get(name, NO_VALUE)
    if value is NO_VALUE or value is None:
        return None
    return str(value)


def _assigned_at(record: ImportRecord) -> datetime | None:
    # Lenient date coercion keeps unrecognized text; those rows use "now".
    value = _cell(record, "assigned_date")
    if value is None:
        return None
    try:
        day = date.fromisoformat(value)
    except ValueError:
        return None
    return datetime.combine(day, time.min, tzinfo=timezone.utc)
