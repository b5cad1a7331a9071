"""DeletionRequestService: mark a contact or host for asynchronous deletion.

The resource gains PENDING_DELETE, its update time moves to the
transaction time, and a work item is enqueued in the same transaction.
The sweep later decides whether the deletion goes through.
"""

from __future__ import annotations

from refsweep.domain.keys import ResourceKey
from refsweep.domain.kinds import pending_delete_history_type
from refsweep.domain.lifecycle import (
    DELETION_TRANSITIONS,
    DeletionState,
    compute_deletion_state,
    is_valid_transition,
)
from refsweep.domain.resources import Contact, Host
from refsweep.domain.types import DELETABLE_KINDS, ResourceKind, StatusValue
from refsweep.services.base import BaseService
from refsweep.services.decoder import (
    PARAM_IS_SUPERUSER,
    PARAM_REQUESTING_CLIENT_ID,
    PARAM_RESOURCE_KEY,
)
from refsweep.services.result import ServiceResult
from refsweep.services.telemetry import traced

_OP = "request_delete"


class DeletionRequestService(BaseService):
    """Accepts client deletion requests."""

    @traced
    def request_delete(
        self,
        kind: str,
        external_id: str,
        client_id: str,
        *,
        superuser: bool = False,
    ) -> ServiceResult:
        try:
            resource_kind = ResourceKind(kind)
        except ValueError:
            resource_kind = None
        if resource_kind not in DELETABLE_KINDS:
            return ServiceResult.failure(
                _OP, "INVALID_KIND", f"Cannot delete a {kind} asynchronously", kind=kind
            )
        assert resource_kind is not None

        with self._registry.transaction() as txn:
            repo_id = txn.resolve_foreign_key(resource_kind, external_id)
            if repo_id is None:
                return ServiceResult.failure(
                    _OP, "NOT_FOUND", f"No live {kind} named {external_id}", kind=kind
                )
            key = ResourceKey(resource_kind, repo_id)
            resource = txn.load(key)
            assert isinstance(resource, Contact | Host)

            state = compute_deletion_state(resource, txn.now)
            if not is_valid_transition(state, DeletionState.PENDING_DELETE, DELETION_TRANSITIONS):
                if state == DeletionState.DELETED:
                    return ServiceResult.failure(
                        _OP, "ALREADY_DELETED", f"{kind} {external_id} is already deleted"
                    )
                return ServiceResult.failure(
                    _OP,
                    "ALREADY_PENDING_DELETE",
                    f"{kind} {external_id} already has a pending deletion",
                    state=str(state),
                )
            if resource.sponsor_client_id != client_id and not superuser:
                return ServiceResult.failure(
                    _OP,
                    "NOT_SPONSOR",
                    f"Client {client_id} does not sponsor {kind} {external_id}",
                    sponsor=resource.sponsor_client_id,
                )

            marked = resource.with_status(StatusValue.PENDING_DELETE).model_copy(
                update={"update_time": txn.now}
            )
            txn.save(marked)
            txn.add_history_entry(key, pending_delete_history_type(resource_kind), client_id)
            item = self._registry.queue.add(
                {
                    PARAM_RESOURCE_KEY: str(key),
                    PARAM_REQUESTING_CLIENT_ID: client_id,
                    PARAM_IS_SUPERUSER: str(superuser).lower(),
                },
                now=txn.now,
                conn=txn.conn,
            )

        warnings: list[str] = []
        self._dispatch_event(
            "post_request_delete",
            {"kind": str(resource_kind), "resource_id": repo_id, "client_id": client_id},
            warnings,
        )
        return ServiceResult(
            ok=True,
            op=_OP,
            data={
                "resource": str(key),
                "external_id": external_id,
                "work_item_id": item.id,
                "status": str(StatusValue.PENDING_DELETE),
            },
            warnings=warnings,
        )
