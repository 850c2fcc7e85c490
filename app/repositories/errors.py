"""
Repository-layer exceptions for inventory persistence.
"""

from __future__ import annotations


class InventoryRepositoryError(Exception):
    """Base exception for inventory store failures."""


class ImportPersistenceError(InventoryRepositoryError, RuntimeError):
    """Raised when one imported record cannot be written."""


class DuplicateNaturalKeyError(ImportPersistenceError):
    """Raised when a create would duplicate an existing natural key."""


class RecordNotFoundError(InventoryRepositoryError, LookupError):
    """Raised when an update targets a record that does not exist."""


class QuantityBelowAssignedError(ImportPersistenceError):
    """Raised when an update would leave fewer units than are assigned."""
