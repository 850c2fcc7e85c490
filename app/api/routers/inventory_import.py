"""
app/api/routers/inventory_import.py

Inventory import HTTP endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, UploadFile, status

from app.api.dependencies import (
    get_csv_upload,
    get_entity_mapping,
    get_import_pool_store,
    get_inventory_store,
)
from app.config import get_import_settings
from app.domain.errors import MalformedInputError
from app.mappers.field_mapping import FieldMapping
from app.repositories.base import EquipmentPoolStore, InventoryStore
from app.repositories.errors import ImportPersistenceError
from app.schemas.inventory_import import ImportOutcomeResponse
from app.services.inventory_import_service import (
    InventoryImportService,
    UploadTooLargeError,
    get_inventory_import_service,
)
from app.validators.mapping_validator import SchemaError

router = APIRouter(tags=["imports"])


@router.post("/imports/{entity}", response_model=ImportOutcomeResponse)
def import_inventory(
    file: UploadFile = Depends(get_csv_upload),
    mapping: FieldMapping = Depends(get_entity_mapping),
    store: InventoryStore = Depends(get_inventory_store),
    pool_store: EquipmentPoolStore | None = Depends(get_import_pool_store),
    import_service: InventoryImportService = Depends(get_inventory_import_service),
) -> ImportOutcomeResponse:
    """
    Create or update inventory records from one CSV upload.

    Rows that fail validation are reported in the response; the rest are
    saved. IT equipment rows naming an assignee also assign units from the
    saved pool.
    """

    try:
        outcome = import_service.import_upload(
            upload_file=file,
            mapping=mapping,
            store=store,
            pool_store=pool_store,
        )
    except UploadTooLargeError as exc:
        raise HTTPException(
            status_code=status.HTTP_413_CONTENT_TOO_LARGE,
            detail=str(exc),
        ) from exc
    except SchemaError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=exc.to_dict(),
        ) from exc
    except MalformedInputError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except ImportPersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to save imported records.",
        ) from exc
    finally:
        file.file.close()

    return ImportOutcomeResponse.from_outcome(
        mapping.entity,
        outcome,
        preview_limit=get_import_settings().error_preview_limit,
    )
