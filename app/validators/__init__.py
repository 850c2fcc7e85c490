"""
app/validators package marker.
"""

from app.validators.mapping_validator import MappingErrorDetail, MappingValidator, SchemaError
from app.validators.row_validator import ImportRowValidator

__all__ = [
    "ImportRowValidator",
    "MappingErrorDetail",
    "MappingValidator",
    "SchemaError",
]
