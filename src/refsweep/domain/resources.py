"""Registry resource records and their time projection.

Contacts and hosts form a closed tagged union (:data:`DeletableResource`)
discriminated by ``kind``. Domains are read-mostly reference sources.

All records are frozen; state changes produce copies via ``model_copy``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal, Self

from pydantic import BaseModel, Field

from refsweep.domain.keys import ResourceKey
from refsweep.domain.types import ResourceKind, StatusValue, TransferStatus


class EppResource(BaseModel):
    """Fields shared by contacts and hosts.

    Each member of :data:`DeletableResource` adds its own ``kind``, ``key``
    and ``foreign_key``.
    """

    model_config = {"frozen": True}

    repo_id: str
    sponsor_client_id: str
    statuses: frozenset[StatusValue] = frozenset()
    creation_time: datetime
    update_time: datetime
    deletion_time: datetime | None = None

    def with_status(self, status: StatusValue) -> Self:
        return self.model_copy(update={"statuses": self.statuses | {status}})

    def without_status(self, status: StatusValue) -> Self:
        return self.model_copy(update={"statuses": self.statuses - {status}})


class TransferData(BaseModel):
    """Transfer state of a contact. Empty when no transfer was ever requested."""

    model_config = {"frozen": True}

    status: TransferStatus | None = None
    gaining_client_id: str | None = None
    losing_client_id: str | None = None
    request_time: datetime | None = None
    pending_expiration_time: datetime | None = None

    @property
    def is_pending(self) -> bool:
        return self.status == TransferStatus.PENDING


class Contact(EppResource):
    kind: Literal[ResourceKind.CONTACT] = ResourceKind.CONTACT
    contact_id: str
    last_transfer_time: datetime | None = None
    transfer: TransferData = Field(default_factory=TransferData)

    @property
    def key(self) -> ResourceKey:
        return ResourceKey(ResourceKind.CONTACT, self.repo_id)

    @property
    def foreign_key(self) -> str:
        return self.contact_id


class Host(EppResource):
    kind: Literal[ResourceKind.HOST] = ResourceKind.HOST
    host_name: str
    superordinate_domain: str | None = None  # repo id of the parent domain
    last_superordinate_change: datetime | None = None

    @property
    def key(self) -> ResourceKey:
        return ResourceKey(ResourceKind.HOST, self.repo_id)

    @property
    def foreign_key(self) -> str:
        return self.host_name


DeletableResource = Annotated[Contact | Host, Field(discriminator="kind")]


class Domain(BaseModel):
    """A domain and the contacts and hosts it references.

    ``contacts`` and ``nameservers`` hold repo ids; ``subordinate_hosts``
    holds the fully qualified names of hosts registered under this domain.
    """

    model_config = {"frozen": True}

    kind: Literal[ResourceKind.DOMAIN] = ResourceKind.DOMAIN
    repo_id: str
    domain_name: str
    sponsor_client_id: str
    creation_time: datetime
    update_time: datetime
    deletion_time: datetime | None = None
    last_transfer_time: datetime | None = None
    contacts: frozenset[str] = frozenset()
    nameservers: frozenset[str] = frozenset()
    subordinate_hosts: frozenset[str] = frozenset()

    @property
    def key(self) -> ResourceKey:
        return ResourceKey(ResourceKind.DOMAIN, self.repo_id)

    @property
    def foreign_key(self) -> str:
        return self.domain_name


# ---------------------------------------------------------------------------
# Liveness
# ---------------------------------------------------------------------------


def is_active(record: EppResource | Domain, at: datetime) -> bool:
    """Whether *at* falls inside ``[creation_time, deletion_time)``."""
    if record.creation_time > at:
        return False
    return record.deletion_time is None or at < record.deletion_time


def is_deleted(record: EppResource | Domain, at: datetime) -> bool:
    """Whether the record is tombstoned as of *at*."""
    return record.deletion_time is not None and record.deletion_time <= at


# ---------------------------------------------------------------------------
# Projection: implicit, time-based state changes
# ---------------------------------------------------------------------------


def project_contact(contact: Contact, now: datetime) -> Contact:
    """Apply a server approval to a pending transfer whose window has lapsed."""
    transfer = contact.transfer
    if (
        not transfer.is_pending
        or transfer.pending_expiration_time is None
        or transfer.pending_expiration_time > now
        or transfer.gaining_client_id is None
    ):
        return contact
    return contact.model_copy(
        update={
            "sponsor_client_id": transfer.gaining_client_id,
            "statuses": contact.statuses - {StatusValue.PENDING_TRANSFER},
            "last_transfer_time": transfer.pending_expiration_time,
            "transfer": transfer.model_copy(
                update={"status": TransferStatus.SERVER_APPROVED, "pending_expiration_time": None}
            ),
        }
    )


def project_host(host: Host, now: datetime, superordinate: Domain | None) -> Host:
    """Subordinate hosts follow their domain's sponsor after a domain transfer."""
    if superordinate is None or superordinate.last_transfer_time is None:
        return host
    if superordinate.last_transfer_time > now:
        return host
    changed = host.last_superordinate_change
    if changed is not None and changed >= superordinate.last_transfer_time:
        return host
    if host.sponsor_client_id == superordinate.sponsor_client_id:
        return host
    return host.model_copy(update={"sponsor_client_id": superordinate.sponsor_client_id})


def prepare_deleted(resource: Contact | Host, now: datetime) -> Contact | Host:
    """Tombstone *resource* as of *now*, clearing its status set."""
    return resource.model_copy(
        update={"deletion_time": now, "update_time": now, "statuses": frozenset()}
    )
