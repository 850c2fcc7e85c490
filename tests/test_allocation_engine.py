"""
tests/test_allocation_engine.py

Pytest unit tests for AllocationEngine.

Coverage
--------
- Accepted batch produces cleaned operations and remaining units
- Capacity boundary (exact fit vs one over)
- Per-request rule violations, first one wins
- Empty batch
- Rejection to exception mapping
- Release quantity
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from app.domain.allocation import AllocationRequest, RejectionCode, StoredAssignment
from app.domain.errors import AllocationValidationError, AssignmentNotFoundError, CapacityError
from app.services.allocation_engine import AllocationEngine

_NOW = datetime(2026, 10, 1, 9, 30, tzinfo=timezone.utc)


@pytest.fixture()
def engine() -> AllocationEngine:
    return AllocationEngine()


# ---------------------------------------------------------------------------
# Accepted batches
# ---------------------------------------------------------------------------


class TestAcceptedBatch:
    def test_operations_mirror_requests(self, engine: AllocationEngine) -> None:
        requests = [
            AllocationRequest(assignee="  alice ", quantity=2, knox_id=" ak01 ", notes=" "),
            AllocationRequest(assignee="bob", knox_id="bk02", serial_number="SN-9"),
        ]

        outcome = engine.allocate(requests, available_quantity=5, assigned_at=_NOW)

        assert outcome.accepted
        assert outcome.remaining == 2
        assert outcome.requested_total == 3
        first, second = outcome.operations
        assert (first.assignee, first.quantity, first.knox_id, first.notes) == ("alice", 2, "ak01", None)
        assert (second.serial_number, second.assigned_at) == ("SN-9", _NOW)

    def test_exact_fit_is_accepted(self, engine: AllocationEngine) -> None:
        outcome = engine.allocate([AllocationRequest(assignee="a", quantity=4)], available_quantity=4)
        assert outcome.accepted
        assert outcome.remaining == 0

    def test_assigned_at_defaults_to_now(self, engine: AllocationEngine) -> None:
        outcome = engine.allocate([AllocationRequest(assignee="a")], available_quantity=1)
        assert outcome.operations[0].assigned_at.tzinfo is not None


# ---------------------------------------------------------------------------
# Rejections
# ---------------------------------------------------------------------------


class TestRejections:
    def test_one_unit_over_capacity_rejects_whole_batch(self, engine: AllocationEngine) -> None:
        requests = [AllocationRequest(assignee="a", quantity=3), AllocationRequest(assignee="b", quantity=2)]

        outcome = engine.allocate(requests, available_quantity=4)

        assert not outcome.accepted
        assert outcome.operations == ()
        assert outcome.rejection.code == RejectionCode.INSUFFICIENT_QUANTITY
        assert outcome.rejection.reason == "Not enough units available. Requested: 5, Available: 4"
        assert (outcome.rejection.requested, outcome.rejection.available) == (5, 4)

    def test_empty_batch_is_invalid(self, engine: AllocationEngine) -> None:
        outcome = engine.allocate([], available_quantity=10)
        assert outcome.rejection.code == RejectionCode.INVALID_REQUEST

    @pytest.mark.parametrize(
        ("request_", "code"),
        [
            (AllocationRequest(assignee="   "), RejectionCode.MISSING_ASSIGNEE),
            (AllocationRequest(assignee="a", quantity=0), RejectionCode.INVALID_QUANTITY),
            (AllocationRequest(assignee="a", quantity=-2), RejectionCode.INVALID_QUANTITY),
            (AllocationRequest(assignee="a", quantity=True), RejectionCode.INVALID_QUANTITY),
            (AllocationRequest(assignee="a", quantity=1.5), RejectionCode.INVALID_QUANTITY),  # type: ignore[arg-type]
            (AllocationRequest(assignee="a", serial_number="SN1"), RejectionCode.SERIAL_WITHOUT_KNOX_ID),
            (
                AllocationRequest(assignee="a", serial_number="SN1", knox_id="  "),
                RejectionCode.SERIAL_WITHOUT_KNOX_ID,
            ),
        ],
    )
    def test_rule_violations(self, engine: AllocationEngine, request_: AllocationRequest, code: str) -> None:
        outcome = engine.allocate([AllocationRequest(assignee="ok"), request_], available_quantity=100)

        assert outcome.rejection.code == code
        assert outcome.rejection.request_index == 1
        assert outcome.operations == ()

    def test_first_violation_wins(self, engine: AllocationEngine) -> None:
        requests = [
            AllocationRequest(assignee="a", serial_number="SN1"),
            AllocationRequest(assignee=""),
        ]
        outcome = engine.allocate(requests, available_quantity=0)
        assert outcome.rejection.code == RejectionCode.SERIAL_WITHOUT_KNOX_ID
        assert outcome.rejection.request_index == 0

    def test_rule_violation_is_reported_before_capacity(self, engine: AllocationEngine) -> None:
        outcome = engine.allocate([AllocationRequest(assignee="", quantity=50)], available_quantity=1)
        assert outcome.rejection.code == RejectionCode.MISSING_ASSIGNEE


# ---------------------------------------------------------------------------
# raise_for_rejection
# ---------------------------------------------------------------------------


class TestRaiseForRejection:
    def test_accepted_outcome_does_not_raise(self, engine: AllocationEngine) -> None:
        engine.allocate([AllocationRequest(assignee="a")], available_quantity=1).raise_for_rejection()

    def test_capacity_rejection_raises_capacity_error(self, engine: AllocationEngine) -> None:
        outcome = engine.allocate([AllocationRequest(assignee="a", quantity=2)], available_quantity=1)
        with pytest.raises(CapacityError) as exc_info:
            outcome.raise_for_rejection()
        assert exc_info.value.to_dict() == {
            "code": "insufficient_quantity",
            "message": "Not enough units available. Requested: 2, Available: 1",
            "request_index": None,
            "requested": 2,
            "available": 1,
        }

    def test_rule_rejection_keeps_its_code(self, engine: AllocationEngine) -> None:
        outcome = engine.allocate([AllocationRequest(assignee="")], available_quantity=1)
        with pytest.raises(AllocationValidationError) as exc_info:
            outcome.raise_for_rejection()
        assert not isinstance(exc_info.value, CapacityError)
        assert exc_info.value.code == RejectionCode.MISSING_ASSIGNEE


# ---------------------------------------------------------------------------
# Release
# ---------------------------------------------------------------------------


class TestRelease:
    def test_release_returns_assignment_quantity(self, engine: AllocationEngine) -> None:
        assignment = StoredAssignment(id=1, pool_id=1, assignee="a", quantity=3)
        assert engine.release(assignment) == 3

    def test_release_defaults_to_one_unit(self, engine: AllocationEngine) -> None:
        assignment = StoredAssignment(id=1, pool_id=1, assignee="a", quantity=0)
        assert engine.release(assignment) == 1

    def test_release_missing_assignment_raises(self, engine: AllocationEngine) -> None:
        with pytest.raises(AssignmentNotFoundError):
            engine.release(None)
