"""Tests for the deletion lifecycle state machine."""

from datetime import UTC, datetime, timedelta

import pytest

from refsweep.domain.errors import PreconditionViolation
from refsweep.domain.lifecycle import (
    DELETION_TRANSITIONS,
    DeletionState,
    check_resource_state_allows_deletion,
    compute_deletion_state,
    is_valid_transition,
)
from refsweep.domain.resources import Contact
from refsweep.domain.types import StatusValue

T0 = datetime(2026, 1, 1, tzinfo=UTC)


def _contact(**kwargs: object) -> Contact:
    fields: dict[str, object] = {
        "repo_id": "C-0001",
        "contact_id": "123",
        "sponsor_client_id": "RegistrarA",
        "creation_time": T0,
        "update_time": T0,
    }
    fields.update(kwargs)
    return Contact(**fields)  # type: ignore[arg-type]


class TestTransitions:
    @pytest.mark.parametrize("target", ["deleted", "active", "errored"])
    def test_pending_delete_exits(self, target: str) -> None:
        assert is_valid_transition("pending_delete", target, DELETION_TRANSITIONS)

    @pytest.mark.parametrize("terminal", ["deleted", "errored"])
    def test_terminal_states(self, terminal: str) -> None:
        for target in DeletionState:
            assert not is_valid_transition(terminal, target, DELETION_TRANSITIONS)

    def test_active_can_restart(self) -> None:
        assert is_valid_transition("active", "pending_delete", DELETION_TRANSITIONS)
        assert not is_valid_transition("active", "deleted", DELETION_TRANSITIONS)


class TestComputeState:
    def test_pending(self) -> None:
        c = _contact(statuses=frozenset({StatusValue.PENDING_DELETE}))
        assert compute_deletion_state(c, T0) == DeletionState.PENDING_DELETE

    def test_active(self) -> None:
        assert compute_deletion_state(_contact(), T0) == DeletionState.ACTIVE

    def test_deleted_wins(self) -> None:
        c = _contact(
            statuses=frozenset({StatusValue.PENDING_DELETE}),
            deletion_time=T0,
        )
        assert compute_deletion_state(c, T0) == DeletionState.DELETED


class TestPrecondition:
    def test_allows_pending_delete(self) -> None:
        check_resource_state_allows_deletion(
            _contact(statuses=frozenset({StatusValue.PENDING_DELETE})), T0
        )

    def test_rejects_deleted(self) -> None:
        c = _contact(
            statuses=frozenset({StatusValue.PENDING_DELETE}),
            deletion_time=T0 - timedelta(seconds=1),
        )
        with pytest.raises(PreconditionViolation, match="already deleted"):
            check_resource_state_allows_deletion(c, T0)

    def test_rejects_unmarked(self) -> None:
        with pytest.raises(PreconditionViolation, match="not set as PENDING_DELETE"):
            check_resource_state_allows_deletion(_contact(), T0)

