"""
app/mappers package marker.
"""

from app.mappers.coercion import DateCoercion, IntegerCoercion, is_placeholder, normalize_cell
from app.mappers.entity_mappings import IMPORT_ENTITIES, build_entity_mapping
from app.mappers.field_mapping import (
    FieldMapping,
    FieldSpec,
    HeaderResolution,
    HeaderResolver,
    normalize_header,
)

__all__ = [
    "DateCoercion",
    "FieldMapping",
    "FieldSpec",
    "HeaderResolution",
    "HeaderResolver",
    "IMPORT_ENTITIES",
    "IntegerCoercion",
    "build_entity_mapping",
    "is_placeholder",
    "normalize_cell",
    "normalize_header",
]
