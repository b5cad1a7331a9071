"""Kind-specific work performed when a contact or host is deleted."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from refsweep.domain.resources import Contact, Host
from refsweep.domain.types import StatusValue, TransferStatus

if TYPE_CHECKING:
    from refsweep.infrastructure.registry import Registry, RegistryTransaction

logger = logging.getLogger(__name__)


def handle_pending_transfer_on_delete(
    txn: RegistryTransaction,
    existing: Contact,
    deleted: Contact,
    deletion_time: datetime,
    history_entry_id: int,
) -> Contact:
    """Cancel a pending transfer of a contact being deleted.

    The gaining client is notified. Returns *deleted* with its transfer
    resolved; unchanged if no transfer was pending.
    """
    transfer = existing.transfer
    if not transfer.is_pending:
        return deleted
    cancelled = transfer.model_copy(
        update={"status": TransferStatus.SERVER_CANCELLED, "pending_expiration_time": None}
    )
    if transfer.gaining_client_id is not None:
        txn.add_poll_message(
            transfer.gaining_client_id,
            TransferStatus.SERVER_CANCELLED.message,
            history_entry_id=history_entry_id,
            event_time=deletion_time,
        )
    logger.info("Cancelled pending transfer of %s on delete", existing.key)
    return deleted.model_copy(
        update={
            "transfer": cancelled,
            "statuses": deleted.statuses - {StatusValue.PENDING_TRANSFER},
        }
    )


class SideEffectDispatcher:
    """Runs the delete-time cleanup for each kind inside the decision transaction."""

    def __init__(self, registry: Registry) -> None:
        self._registry = registry

    def apply(
        self,
        txn: RegistryTransaction,
        existing: Contact | Host,
        deleted: Contact | Host,
        history_entry_id: int,
    ) -> Contact | Host:
        """Return the record to persist in place of *deleted*."""
        match existing, deleted:
            case Contact(), Contact():
                return handle_pending_transfer_on_delete(
                    txn, existing, deleted, txn.now, history_entry_id
                )
            case Host(), Host():
                self._unlink_subordinate_host(txn, existing)
                return deleted
            case _:
                msg = f"EPP resource of unknown type: {existing.key}"
                raise AssertionError(msg)

    def _unlink_subordinate_host(self, txn: RegistryTransaction, host: Host) -> None:
        if host.superordinate_domain is None:
            return
        dns = self._registry.dns
        host_name = host.host_name
        txn.after_commit(lambda: dns.add_host_refresh_task(host_name))
        domain = txn.load_domain(host.superordinate_domain)
        if domain is None:
            logger.warning(
                "Superordinate domain %s of host %s is missing",
                host.superordinate_domain,
                host_name,
            )
            return
        txn.save(
            domain.model_copy(
                update={
                    "subordinate_hosts": domain.subordinate_hosts - {host_name},
                    "update_time": txn.now,
                }
            )
        )
