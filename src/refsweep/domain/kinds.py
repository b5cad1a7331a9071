"""Per-kind behavior table for the deletable resource union.

Each lookup resolves the kind once with ``match``. A kind outside
{contact, host} reaching these functions is a programming error.
"""

from __future__ import annotations

from refsweep.domain.keys import ResourceKey
from refsweep.domain.resources import Domain
from refsweep.domain.types import HistoryType, ResourceKind


def is_referenced_by(domain: Domain, key: ResourceKey) -> bool:
    """Whether *domain* points at the contact or host named by *key*."""
    match key.kind:
        case ResourceKind.CONTACT:
            return key.repo_id in domain.contacts
        case ResourceKind.HOST:
            return key.repo_id in domain.nameservers
        case _:
            msg = f"EPP resource key of unknown type: {key}"
            raise AssertionError(msg)


def history_type_pair(kind: ResourceKind) -> tuple[HistoryType, HistoryType]:
    """Return ``(success, failure)`` history types for a deletion of *kind*."""
    match kind:
        case ResourceKind.CONTACT:
            return HistoryType.CONTACT_DELETE, HistoryType.CONTACT_DELETE_FAILURE
        case ResourceKind.HOST:
            return HistoryType.HOST_DELETE, HistoryType.HOST_DELETE_FAILURE
        case _:
            msg = f"EPP resource of unknown type: {kind}"
            raise AssertionError(msg)


def history_type(kind: ResourceKind, *, delete_allowed: bool) -> HistoryType:
    success, failure = history_type_pair(kind)
    return success if delete_allowed else failure


def pending_delete_history_type(kind: ResourceKind) -> HistoryType:
    match kind:
        case ResourceKind.CONTACT:
            return HistoryType.CONTACT_PENDING_DELETE
        case ResourceKind.HOST:
            return HistoryType.HOST_PENDING_DELETE
        case _:
            msg = f"EPP resource of unknown type: {kind}"
            raise AssertionError(msg)
