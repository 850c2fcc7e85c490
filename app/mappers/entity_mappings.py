"""
app/mappers/entity_mappings.py

Field mappings for every importable inventory entity.

Aliases are compared after ``normalize_header``, so only spellings that
differ beyond case, spacing and punctuation need listing.
"""

from __future__ import annotations

from typing import Callable

from app.domain.errors import UnknownEntityError
from app.mappers.coercion import DateCoercion, IntegerCoercion
from app.mappers.field_mapping import FieldMapping, FieldSpec

MONITOR_INVENTORY = "monitor_inventory"
APPROVAL_RECORD = "approval_record"
IT_EQUIPMENT = "it_equipment"
ACCESSORY = "accessory"


def build_monitor_inventory_mapping() -> FieldMapping:
    return FieldMapping(
        entity=MONITOR_INVENTORY,
        fields=(
            FieldSpec("seat_number", aliases=("seat",), required=True),
            FieldSpec("knox_id"),
            FieldSpec("asset_number", aliases=("asset",)),
            FieldSpec("serial_number", aliases=("serial",)),
            FieldSpec("model"),
            FieldSpec("remarks", aliases=("notes", "description")),
            FieldSpec("department", aliases=("dept",)),
        ),
        natural_key=("seat_number",),
    )


def build_approval_record_mapping() -> FieldMapping:
    return FieldMapping(
        entity=APPROVAL_RECORD,
        fields=(
            FieldSpec("approval_number", aliases=("approval no", "approval"), required=True),
            FieldSpec("type"),
            FieldSpec("platform"),
            FieldSpec("pic", aliases=("person in charge",)),
            FieldSpec("ip_address", aliases=("ip",)),
            FieldSpec("hostname_accounts", aliases=("hostname/accounts", "hostname", "accounts")),
            FieldSpec(
                "identifier_serial_number",
                aliases=("identifier/serial number", "identifier", "serial number", "serial"),
            ),
            FieldSpec("start_date", coerce=DateCoercion()),
            FieldSpec("end_date", coerce=DateCoercion()),
            FieldSpec("status"),
            FieldSpec("remarks", aliases=("notes",)),
        ),
        natural_key=("approval_number",),
    )


def build_it_equipment_mapping(*, strict_numeric: bool = False, quantity_fallback: int = 1) -> FieldMapping:
    return FieldMapping(
        entity=IT_EQUIPMENT,
        fields=(
            FieldSpec("name", required=True),
            FieldSpec("category", required=True),
            FieldSpec(
                "total_quantity",
                aliases=("quantity", "qty"),
                coerce=IntegerCoercion(fallback=quantity_fallback, strict=strict_numeric),
            ),
            FieldSpec("model"),
            FieldSpec("location"),
            FieldSpec("date_acquired", coerce=DateCoercion()),
            FieldSpec("knox_id"),
            FieldSpec("serial_number", aliases=("serial",)),
            FieldSpec("date_release", aliases=("date released",), coerce=DateCoercion()),
            FieldSpec("remarks", aliases=("notes", "description")),
            FieldSpec("status"),
            FieldSpec("assigned_to", aliases=("assignee",)),
            FieldSpec(
                "assigned_quantity",
                coerce=IntegerCoercion(fallback=quantity_fallback, strict=strict_numeric),
            ),
            FieldSpec("assigned_date", coerce=DateCoercion()),
            FieldSpec("assignment_knox_id", aliases=("assignee knox id",)),
            FieldSpec("assignment_serial_number", aliases=("assignment serial",)),
            FieldSpec("assignment_notes"),
        ),
        natural_key=("name", "category"),
    )


def build_accessory_mapping(*, strict_numeric: bool = False, quantity_fallback: int = 1) -> FieldMapping:
    return FieldMapping(
        entity=ACCESSORY,
        fields=(
            FieldSpec("name", required=True),
            FieldSpec("category", required=True),
            FieldSpec("status"),
            FieldSpec(
                "quantity",
                aliases=("qty",),
                coerce=IntegerCoercion(fallback=quantity_fallback, strict=strict_numeric),
            ),
            FieldSpec("serial_number", aliases=("serial",)),
            FieldSpec("manufacturer"),
            FieldSpec("model"),
            FieldSpec("location"),
            FieldSpec("knox_id"),
            FieldSpec("purchase_date", coerce=DateCoercion()),
            FieldSpec("purchase_cost"),
            FieldSpec("description"),
            FieldSpec("notes", aliases=("remarks",)),
        ),
        natural_key=("name", "category"),
    )


_NUMERIC_BUILDERS: dict[str, Callable[..., FieldMapping]] = {
    IT_EQUIPMENT: build_it_equipment_mapping,
    ACCESSORY: build_accessory_mapping,
}

_PLAIN_BUILDERS: dict[str, Callable[[], FieldMapping]] = {
    MONITOR_INVENTORY: build_monitor_inventory_mapping,
    APPROVAL_RECORD: build_approval_record_mapping,
}

IMPORT_ENTITIES: tuple[str, ...] = (MONITOR_INVENTORY, APPROVAL_RECORD, IT_EQUIPMENT, ACCESSORY)


def build_entity_mapping(
    entity: str,
    *,
    strict_numeric: bool = False,
    quantity_fallback: int = 1,
) -> FieldMapping:
    """
    Build the field mapping for an entity, applying the numeric policy.
    """

    key = entity.strip().lower().replace("-", "_")
    if key in _NUMERIC_BUILDERS:
        return _NUMERIC_BUILDERS[key](strict_numeric=strict_numeric, quantity_fallback=quantity_fallback)
    if key in _PLAIN_BUILDERS:
        return _PLAIN_BUILDERS[key]()
    raise UnknownEntityError(
        f"Unknown import entity {entity!r}. Allowed values: {', '.join(IMPORT_ENTITIES)}."
    )
