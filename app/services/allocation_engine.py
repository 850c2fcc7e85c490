"""
app/services/allocation_engine.py

All-or-nothing bulk allocation of pooled equipment units.

The engine validates a batch of assignment requests against the units
still available and certifies it, without touching storage. Persisting the
operations and decrementing the pool is the caller's job, which makes the
same call usable for dry-run feedback before a form is submitted.

Rules
-----
- every request needs a non-empty assignee and an integer quantity >= 1
- a serial number must be paired with a knox ID
- the sum of all quantities must not exceed the available units

Any violation rejects the whole batch; no operations are produced.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Sequence

from app.domain.allocation import (
    AllocationOutcome,
    AllocationRejection,
    AllocationRequest,
    AssignmentOperation,
    RejectionCode,
)
from app.domain.errors import AssignmentNotFoundError

logger = logging.getLogger(__name__)


class AllocationEngine:
    """
    Stateless validator and planner for bulk assignments.
    """

    def allocate(
        self,
        requests: Sequence[AllocationRequest],
        available_quantity: int,
        *,
        assigned_at: datetime | None = None,
    ) -> AllocationOutcome:
        """
        Certify a batch against the pool, or reject it as a whole.
        """

        if not requests:
            return self._reject(
                RejectionCode.INVALID_REQUEST,
                "At least one assignment is required.",
            )

        for index, request in enumerate(requests):
            rejection = self._check_request(index, request)
            if rejection is not None:
                return AllocationOutcome(rejection=rejection)

        requested = sum(request.quantity for request in requests)
        if requested > available_quantity:
            logger.info(
                "Allocation rejected requested=%d available=%d",
                requested,
                available_quantity,
            )
            return self._reject(
                RejectionCode.INSUFFICIENT_QUANTITY,
                f"Not enough units available. Requested: {requested}, Available: {available_quantity}",
                requested=requested,
                available=available_quantity,
            )

        timestamp = assigned_at or datetime.now(tz=timezone.utc)
        operations = tuple(
            AssignmentOperation(
                assignee=request.assignee.strip(),
                quantity=request.quantity,
                assigned_at=timestamp,
                knox_id=_clean(request.knox_id),
                serial_number=_clean(request.serial_number),
                notes=_clean(request.notes),
            )
            for request in requests
        )
        return AllocationOutcome(
            operations=operations,
            remaining=available_quantity - requested,
        )

    def release(self, assignment: Any) -> int:
        """
        Return the units held by an assignment to the pool.

        Releasing can never over-allocate, so the only check is that the
        assignment exists.
        """

        if assignment is None:
            raise AssignmentNotFoundError("Assignment not found.")
        quantity = getattr(assignment, "quantity", None)
        return int(quantity) if quantity else 1

    def check_request(self, request: AllocationRequest) -> AllocationRejection | None:
        """
        Apply the per-request rules to one request, without a capacity check.
        """

        return self._check_request(0, request, label="")

    @staticmethod
    def _check_request(
        index: int,
        request: AllocationRequest,
        *,
        label: str | None = None,
    ) -> AllocationRejection | None:
        prefix = f"Assignment {index + 1}: " if label is None else label
        if not _clean(request.assignee):
            return AllocationRejection(
                code=RejectionCode.MISSING_ASSIGNEE,
                reason=_reason(prefix, "assignee is required."),
                request_index=index,
            )

        quantity = request.quantity
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            return AllocationRejection(
                code=RejectionCode.INVALID_QUANTITY,
                reason=_reason(prefix, "quantity must be a whole number of at least 1."),
                request_index=index,
            )

        if _clean(request.serial_number) and not _clean(request.knox_id):
            return AllocationRejection(
                code=RejectionCode.SERIAL_WITHOUT_KNOX_ID,
                reason=_reason(prefix, "a serial number requires a knox ID."),
                request_index=index,
            )
        return None

    @staticmethod
    def _reject(
        code: str,
        reason: str,
        *,
        requested: int | None = None,
        available: int | None = None,
    ) -> AllocationOutcome:
        return AllocationOutcome(
            rejection=AllocationRejection(
                code=code,
                reason=reason,
                requested=requested,
                available=available,
            )
        )


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = str(value).strip()
    return stripped or None


def _reason(prefix: str, message: str) -> str:
    if prefix:
        return f"{prefix}{message}"
    return message[:1].upper() + message[1:]
