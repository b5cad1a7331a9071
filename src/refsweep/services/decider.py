"""Reduce phase: decide and apply one deletion request atomically."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from refsweep.domain.deletion import (
    DeletionRequest,
    DeletionResult,
    ResultType,
    poll_message_text,
)
from refsweep.domain.errors import PreconditionViolation
from refsweep.domain.kinds import history_type
from refsweep.domain.lifecycle import check_resource_state_allows_deletion
from refsweep.domain.resources import Contact, Host, prepare_deleted
from refsweep.domain.types import StatusValue
from refsweep.services.base import BaseService
from refsweep.services.side_effects import SideEffectDispatcher

if TYPE_CHECKING:
    from refsweep.infrastructure.batch import BatchContext
    from refsweep.infrastructure.registry import Registry, RegistryTransaction

logger = logging.getLogger(__name__)


class DeletionDecider(BaseService):
    """Reducer that deletes a resource or releases its PENDING_DELETE marker.

    The resource write, the audit records, and the removal of the work
    item commit together. If the transaction fails the work item stays
    leased and is retried once the lease lapses.
    """

    def __init__(self, registry: Registry) -> None:
        super().__init__(registry)
        self._side_effects = SideEffectDispatcher(registry)

    def reduce(
        self,
        request: DeletionRequest,
        values: Iterable[bool],
        ctx: BatchContext,
    ) -> DeletionResult:
        references = sum(1 for value in values if value)
        has_no_active_references = references == 0
        logger.info("Processing async deletion request for %s", request.key)

        with self._registry.transaction() as txn:
            result = self._attempt_delete(txn, request, has_no_active_references)
            self._registry.queue.delete(request.task, conn=txn.conn)

        ctx.increment_counter(result.type.render_counter_text(request.key.kind.plural))
        logger.info(
            "Result of async deletion for resource %s: %s",
            request.key,
            result.poll_message_text,
        )
        warnings: list[str] = []
        self._dispatch_event(
            "post_deletion",
            {
                "kind": str(request.key.kind),
                "resource_id": request.key.repo_id,
                "outcome": str(result.type),
                "message": result.poll_message_text,
            },
            warnings,
        )
        ctx.emit(
            request.key,
            {
                "resource": str(request.key),
                "outcome": str(result.type),
                "message": result.poll_message_text,
                "references": references,
                "warnings": warnings,
            },
        )
        return result

    def _attempt_delete(
        self,
        txn: RegistryTransaction,
        request: DeletionRequest,
        has_no_active_references: bool,
    ) -> DeletionResult:
        now = txn.now
        resource = txn.load(request.key)
        try:
            if not isinstance(resource, Contact | Host):
                msg = f"Resource {request.key} does not exist"
                raise PreconditionViolation(msg)
            check_resource_state_allows_deletion(resource, now)
        except PreconditionViolation:
            logger.error("State of %s does not allow async deletion", request.key, exc_info=True)
            return DeletionResult(ResultType.ERRORED, "")

        requested_by_current_owner = resource.sponsor_client_id == request.requesting_client_id
        delete_allowed = has_no_active_references and (
            requested_by_current_owner or request.is_superuser
        )
        text = poll_message_text(
            str(resource.kind),
            resource.foreign_key,
            delete_allowed=delete_allowed,
            requested_by_current_owner=requested_by_current_owner,
        )
        history_entry_id = txn.add_history_entry(
            request.key,
            history_type(resource.kind, delete_allowed=delete_allowed),
            request.requesting_client_id,
        )
        txn.add_poll_message(request.requesting_client_id, text, history_entry_id=history_entry_id)

        if delete_allowed:
            deleted = self._side_effects.apply(
                txn, resource, prepare_deleted(resource, now), history_entry_id
            )
            txn.mark_foreign_key_superseded(deleted, now)
            txn.save(deleted)
            return DeletionResult(ResultType.DELETED, text)

        txn.save(resource.without_status(StatusValue.PENDING_DELETE))
        return DeletionResult(ResultType.NOT_DELETED, text)
