"""
app/domain/errors.py

Exceptions raised by the import and allocation core.
"""

from __future__ import annotations

from typing import Any


class MalformedInputError(ValueError):
    """
    Raised when an upload cannot be treated as text at all.
    """


class CoercionError(ValueError):
    """
    Raised by a strict coercion rule when a cell cannot be converted.
    """

    def __init__(self, message: str, *, value: str | None = None) -> None:
        super().__init__(message)
        self.value = value


class UnknownEntityError(LookupError):
    """
    Raised when no field mapping is registered for an entity name.
    """


class AllocationValidationError(ValueError):
    """
    Raised when an allocation batch is rejected as a whole.
    """

    code = "invalid_request"

    def __init__(
        self,
        message: str,
        *,
        request_index: int | None = None,
        requested: int | None = None,
        available: int | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.request_index = request_index
        self.requested = requested
        self.available = available

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "request_index": self.request_index,
            "requested": self.requested,
            "available": self.available,
        }


class CapacityError(AllocationValidationError):
    """
    Raised when aggregate demand exceeds the units left in the pool.
    """

    code = "insufficient_quantity"


class PoolNotFoundError(LookupError):
    """Raised when an allocation pool does not exist."""


class AssignmentNotFoundError(LookupError):
    """Raised when an assignment to release does not exist."""
