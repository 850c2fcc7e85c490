"""
app/schemas/inventory_import.py

Response schemas for inventory import endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from app.domain.inventory_import import ImportOutcome
from app.services.inventory_import_service import summarize_errors


class ImportErrorResponse(BaseModel):
    """
    API response model for one row-level import error.
    """

    row_number: int = Field(..., ge=1)
    message: str
    column: str | None = None
    value: str | None = None


class ImportOutcomeResponse(BaseModel):
    """
    API response model for one import run.
    """

    entity: str
    message: str
    total: int = Field(..., ge=0)
    created: int = Field(..., ge=0)
    updated: int = Field(..., ge=0)
    failed: int = Field(..., ge=0)
    errors: list[ImportErrorResponse] = Field(default_factory=list)
    error_preview: str | None = None

    @classmethod
    def from_outcome(
        cls,
        entity: str,
        outcome: ImportOutcome,
        *,
        preview_limit: int = 5,
    ) -> "ImportOutcomeResponse":
        return cls(
            entity=entity,
            message=(
                f"Import complete: {outcome.created} created, "
                f"{outcome.updated} updated, {outcome.failed} failed."
            ),
            total=outcome.total,
            created=outcome.created,
            updated=outcome.updated,
            failed=outcome.failed,
            errors=[
                ImportErrorResponse(
                    row_number=error.row_number,
                    message=error.message,
                    column=error.column,
                    value=error.value,
                )
                for error in outcome.errors
            ],
            error_preview=summarize_errors(outcome, preview_limit),
        )
