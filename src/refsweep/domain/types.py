"""Resource kinds, status markers, and audit classifications.

Contacts and hosts are the shared resources this package deletes.
Domains are the reference source: they point at contacts and hosts
and are never deleted here.
"""

from __future__ import annotations

from enum import StrEnum


class ResourceKind(StrEnum):
    """Kinds of registry resource addressable by a :class:`ResourceKey`."""

    CONTACT = "contact"
    HOST = "host"
    DOMAIN = "domain"

    @property
    def plural(self) -> str:
        return f"{self.value}s"


DELETABLE_KINDS: frozenset[ResourceKind] = frozenset({ResourceKind.CONTACT, ResourceKind.HOST})


class StatusValue(StrEnum):
    """Status markers carried in a resource's status set."""

    OK = "ok"
    LINKED = "linked"
    PENDING_DELETE = "pendingDelete"
    PENDING_TRANSFER = "pendingTransfer"


class TransferStatus(StrEnum):
    """Outcome of a contact transfer request."""

    PENDING = "pending"
    CLIENT_APPROVED = "clientApproved"
    CLIENT_CANCELLED = "clientCancelled"
    CLIENT_REJECTED = "clientRejected"
    SERVER_APPROVED = "serverApproved"
    SERVER_CANCELLED = "serverCancelled"

    @property
    def message(self) -> str:
        return _TRANSFER_MESSAGES[self]


_TRANSFER_MESSAGES: dict[TransferStatus, str] = {
    TransferStatus.PENDING: "Transfer requested.",
    TransferStatus.CLIENT_APPROVED: "Transfer approved.",
    TransferStatus.CLIENT_CANCELLED: "Transfer cancelled.",
    TransferStatus.CLIENT_REJECTED: "Transfer rejected.",
    TransferStatus.SERVER_APPROVED: "Transfer approved.",
    TransferStatus.SERVER_CANCELLED: "Transfer cancelled.",
}


class HistoryType(StrEnum):
    """Audit record types written for lifecycle-affecting actions."""

    CONTACT_CREATE = "CONTACT_CREATE"
    CONTACT_PENDING_DELETE = "CONTACT_PENDING_DELETE"
    CONTACT_DELETE = "CONTACT_DELETE"
    CONTACT_DELETE_FAILURE = "CONTACT_DELETE_FAILURE"
    HOST_CREATE = "HOST_CREATE"
    HOST_PENDING_DELETE = "HOST_PENDING_DELETE"
    HOST_DELETE = "HOST_DELETE"
    HOST_DELETE_FAILURE = "HOST_DELETE_FAILURE"
    DOMAIN_CREATE = "DOMAIN_CREATE"
