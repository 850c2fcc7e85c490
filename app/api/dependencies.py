"""
app/api/dependencies.py

Shared FastAPI dependencies for request validation and store wiring.
"""

from __future__ import annotations

from fastapi import Depends, File, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from app.domain.errors import UnknownEntityError
from app.mappers.entity_mappings import IT_EQUIPMENT
from app.mappers.field_mapping import FieldMapping
from app.repositories.base import EquipmentPoolStore, InventoryStore
from app.repositories.sqlalchemy_store import SQLAlchemyEquipmentPoolStore, SQLAlchemyInventoryStore
from app.services.inventory_import_service import InventoryImportService, get_inventory_import_service
from db.session import get_db

CSV_CONTENT_TYPES = {
    "text/csv",
    "text/plain",
    "application/csv",
    "application/vnd.ms-excel",
}


def get_csv_upload(file: UploadFile = File(...)) -> UploadFile:
    """
    Validate that the uploaded file is a CSV by extension or MIME type.
    """

    filename = (file.filename or "").strip().lower()
    content_type = (file.content_type or "").split(";", 1)[0].strip().lower()

    if not filename.endswith(".csv") and content_type not in CSV_CONTENT_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only CSV files are allowed.",
        )

    return file


def get_entity_mapping(
    entity: str,
    import_service: InventoryImportService = Depends(get_inventory_import_service),
) -> FieldMapping:
    """
    Resolve the ``{entity}`` path segment to its field mapping.
    """

    try:
        return import_service.mapping_for(entity)
    except UnknownEntityError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


def get_inventory_store(
    mapping: FieldMapping = Depends(get_entity_mapping),
    db: Session = Depends(get_db),
) -> InventoryStore:
    return SQLAlchemyInventoryStore.for_entity(db, mapping.entity, mapping.natural_key)


def get_equipment_pool_store(db: Session = Depends(get_db)) -> EquipmentPoolStore:
    return SQLAlchemyEquipmentPoolStore(db)


def get_import_pool_store(
    mapping: FieldMapping = Depends(get_entity_mapping),
    db: Session = Depends(get_db),
) -> EquipmentPoolStore | None:
    """
    Pool store for uploads that may assign units, on the import's session.
    """

    if mapping.entity != IT_EQUIPMENT:
        return None
    return SQLAlchemyEquipmentPoolStore(db)
