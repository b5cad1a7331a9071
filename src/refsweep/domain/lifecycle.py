"""Deletion lifecycle of a contact or host.

The state is computed from structural properties of the resource
(tombstone and status set), never stored on its own:

- ``pending_delete``: live and carrying the PENDING_DELETE marker.
- ``deleted``: tombstoned. Terminal.
- ``active``: live without the marker. Eligible for a new request.

``errored`` is the outcome of a decision that found the resource out of
``pending_delete``; the resource itself is left untouched.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from refsweep.domain.errors import PreconditionViolation
from refsweep.domain.resources import Contact, Host, is_deleted
from refsweep.domain.types import StatusValue


class DeletionState(StrEnum):
    PENDING_DELETE = "pending_delete"
    DELETED = "deleted"
    ACTIVE = "active"
    ERRORED = "errored"


DELETION_TRANSITIONS: dict[str, list[str]] = {
    "pending_delete": ["deleted", "active", "errored"],
    "active": ["pending_delete"],  # a new request cycle
    "deleted": [],
    "errored": [],
}


def is_valid_transition(
    current: str,
    target: str,
    transitions: dict[str, list[str]],
) -> bool:
    """Check if transitioning from *current* to *target* is allowed."""
    allowed = transitions.get(current, [])
    return target in allowed


def compute_deletion_state(resource: Contact | Host, now: datetime) -> DeletionState:
    """Compute the lifecycle state of *resource* as of *now*."""
    if is_deleted(resource, now):
        return DeletionState.DELETED
    if StatusValue.PENDING_DELETE in resource.statuses:
        return DeletionState.PENDING_DELETE
    return DeletionState.ACTIVE


def check_resource_state_allows_deletion(resource: Contact | Host, now: datetime) -> None:
    """Require that *resource* can move to ``deleted``, i.e. is live and marked PENDING_DELETE.

    Raises:
        PreconditionViolation: If the resource is tombstoned or unmarked.
    """
    state = compute_deletion_state(resource, now)
    if is_valid_transition(state, DeletionState.DELETED, DELETION_TRANSITIONS):
        return
    if state == DeletionState.DELETED:
        msg = f"Resource {resource.key} is already deleted"
    else:
        msg = f"Resource {resource.key} is not set as PENDING_DELETE"
    raise PreconditionViolation(msg)
