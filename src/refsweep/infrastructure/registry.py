"""Registry: repository pattern over the resource store.

The Registry is the single dependency injected into every service. It
owns the database engine, the work queue, and the DNS queue. The
:meth:`Registry.transaction` context manager is the only path for
writes to resource state:

- **DB**: ``BEGIN IMMEDIATE`` transaction, committed when the block
  exits normally and rolled back on exception.
- **Clock**: every transaction carries one timestamp (``txn.now``) read
  from the injected clock at begin; all records written inside it use it.
- **After-commit**: callbacks registered with ``txn.after_commit`` run
  only once the commit succeeds (used for best-effort notifications).
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from sqlalchemy import insert, select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from refsweep.domain.keys import ResourceKey
from refsweep.domain.resources import (
    Contact,
    Domain,
    Host,
    TransferData,
    project_contact,
    project_host,
)
from refsweep.domain.types import HistoryType, ResourceKind
from refsweep.infrastructure.database.codec import (
    decode_optional_time,
    decode_set,
    decode_time,
    encode_optional_time,
    encode_set,
    encode_time,
)
from refsweep.infrastructure.database.counters import next_sequential_id
from refsweep.infrastructure.database.engine import begin_immediate, init_database
from refsweep.infrastructure.database.schema import (
    contacts,
    domains,
    foreign_key_index,
    history_entries,
    hosts,
    poll_messages,
)
from refsweep.infrastructure.dns import DnsQueue
from refsweep.infrastructure.queue import WorkQueue

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy import Connection, Table
    from sqlalchemy.engine import Engine

    from refsweep.config.settings import RefsweepSettings
    from refsweep.plugins.manager import PluginManager

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

_ID_PREFIXES: dict[ResourceKind, str] = {
    ResourceKind.CONTACT: "C-",
    ResourceKind.HOST: "H-",
    ResourceKind.DOMAIN: "D-",
}

_DOMAIN_LOAD_CHUNK = 500


def utc_now() -> datetime:
    return datetime.now(UTC)


# ---------------------------------------------------------------------------
# Row mapping
# ---------------------------------------------------------------------------


def _contact_to_row(contact: Contact) -> dict[str, Any]:
    transfer = contact.transfer
    return {
        "repo_id": contact.repo_id,
        "contact_id": contact.contact_id,
        "sponsor_client_id": contact.sponsor_client_id,
        "statuses": encode_set(contact.statuses),
        "creation_time": encode_time(contact.creation_time),
        "update_time": encode_time(contact.update_time),
        "deletion_time": encode_optional_time(contact.deletion_time),
        "last_transfer_time": encode_optional_time(contact.last_transfer_time),
        "transfer_status": str(transfer.status) if transfer.status else None,
        "transfer_gaining_client_id": transfer.gaining_client_id,
        "transfer_losing_client_id": transfer.losing_client_id,
        "transfer_request_time": encode_optional_time(transfer.request_time),
        "pending_transfer_expiration_time": encode_optional_time(
            transfer.pending_expiration_time
        ),
    }


def _contact_from_row(row: Any) -> Contact:
    return Contact(
        repo_id=row.repo_id,
        contact_id=row.contact_id,
        sponsor_client_id=row.sponsor_client_id,
        statuses=decode_set(row.statuses),
        creation_time=decode_time(row.creation_time),
        update_time=decode_time(row.update_time),
        deletion_time=decode_optional_time(row.deletion_time),
        last_transfer_time=decode_optional_time(row.last_transfer_time),
        transfer=TransferData(
            status=row.transfer_status,
            gaining_client_id=row.transfer_gaining_client_id,
            losing_client_id=row.transfer_losing_client_id,
            request_time=decode_optional_time(row.transfer_request_time),
            pending_expiration_time=decode_optional_time(row.pending_transfer_expiration_time),
        ),
    )


def _host_to_row(host: Host) -> dict[str, Any]:
    return {
        "repo_id": host.repo_id,
        "host_name": host.host_name,
        "sponsor_client_id": host.sponsor_client_id,
        "statuses": encode_set(host.statuses),
        "creation_time": encode_time(host.creation_time),
        "update_time": encode_time(host.update_time),
        "deletion_time": encode_optional_time(host.deletion_time),
        "superordinate_domain": host.superordinate_domain,
        "last_superordinate_change": encode_optional_time(host.last_superordinate_change),
    }


def _host_from_row(row: Any) -> Host:
    return Host(
        repo_id=row.repo_id,
        host_name=row.host_name,
        sponsor_client_id=row.sponsor_client_id,
        statuses=decode_set(row.statuses),
        creation_time=decode_time(row.creation_time),
        update_time=decode_time(row.update_time),
        deletion_time=decode_optional_time(row.deletion_time),
        superordinate_domain=row.superordinate_domain,
        last_superordinate_change=decode_optional_time(row.last_superordinate_change),
    )


def _domain_to_row(domain: Domain) -> dict[str, Any]:
    return {
        "repo_id": domain.repo_id,
        "domain_name": domain.domain_name,
        "sponsor_client_id": domain.sponsor_client_id,
        "creation_time": encode_time(domain.creation_time),
        "update_time": encode_time(domain.update_time),
        "deletion_time": encode_optional_time(domain.deletion_time),
        "last_transfer_time": encode_optional_time(domain.last_transfer_time),
        "contacts": encode_set(domain.contacts),
        "nameservers": encode_set(domain.nameservers),
        "subordinate_hosts": encode_set(domain.subordinate_hosts),
    }


def _domain_from_row(row: Any) -> Domain:
    return Domain(
        repo_id=row.repo_id,
        domain_name=row.domain_name,
        sponsor_client_id=row.sponsor_client_id,
        creation_time=decode_time(row.creation_time),
        update_time=decode_time(row.update_time),
        deletion_time=decode_optional_time(row.deletion_time),
        last_transfer_time=decode_optional_time(row.last_transfer_time),
        contacts=decode_set(row.contacts),
        nameservers=decode_set(row.nameservers),
        subordinate_hosts=decode_set(row.subordinate_hosts),
    )


def _upsert(conn: Connection, table: Table, row: dict[str, Any]) -> None:
    stmt = sqlite_insert(table).values(**row)
    stmt = stmt.on_conflict_do_update(
        index_elements=[table.c.repo_id],
        set_={name: stmt.excluded[name] for name in row if name != "repo_id"},
    )
    conn.execute(stmt)


def load_domains(conn: Connection, repo_ids: Iterable[str]) -> Iterator[Domain]:
    """Yield the domains with the given repo ids, in id order."""
    ids = sorted(repo_ids)
    for start in range(0, len(ids), _DOMAIN_LOAD_CHUNK):
        chunk = ids[start : start + _DOMAIN_LOAD_CHUNK]
        rows = conn.execute(
            select(domains).where(domains.c.repo_id.in_(chunk)).order_by(domains.c.repo_id)
        ).fetchall()
        for row in rows:
            yield _domain_from_row(row)


# ---------------------------------------------------------------------------
# RegistryTransaction: yielded to callers within transaction()
# ---------------------------------------------------------------------------


@dataclass
class RegistryTransaction:
    """Active transaction with its connection and transaction timestamp."""

    conn: Connection
    now: datetime
    _registry: Registry
    _after_commit: list[Callable[[], None]] = field(default_factory=list, repr=False)

    # ------------------------------------------------------------------
    # Loads
    # ------------------------------------------------------------------

    def load(self, key: ResourceKey, *, project: bool = True) -> Contact | Host | Domain | None:
        """Load the record named by *key*, projected to ``self.now`` by default."""
        match key.kind:
            case ResourceKind.CONTACT:
                contact = self.load_contact(key.repo_id)
                if contact is None or not project:
                    return contact
                return project_contact(contact, self.now)
            case ResourceKind.HOST:
                host = self.load_host(key.repo_id)
                if host is None or not project:
                    return host
                superordinate = (
                    self.load_domain(host.superordinate_domain)
                    if host.superordinate_domain
                    else None
                )
                return project_host(host, self.now, superordinate)
            case ResourceKind.DOMAIN:
                return self.load_domain(key.repo_id)

    def load_contact(self, repo_id: str) -> Contact | None:
        row = self.conn.execute(select(contacts).where(contacts.c.repo_id == repo_id)).first()
        return None if row is None else _contact_from_row(row)

    def load_host(self, repo_id: str) -> Host | None:
        row = self.conn.execute(select(hosts).where(hosts.c.repo_id == repo_id)).first()
        return None if row is None else _host_from_row(row)

    def load_domain(self, repo_id: str) -> Domain | None:
        row = self.conn.execute(select(domains).where(domains.c.repo_id == repo_id)).first()
        return None if row is None else _domain_from_row(row)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def save(self, *records: Contact | Host | Domain) -> None:
        """Insert or replace each record."""
        for record in records:
            match record:
                case Contact():
                    _upsert(self.conn, contacts, _contact_to_row(record))
                case Host():
                    _upsert(self.conn, hosts, _host_to_row(record))
                case Domain():
                    _upsert(self.conn, domains, _domain_to_row(record))
                case _:
                    msg = f"Cannot save record of type {type(record).__name__}"
                    raise TypeError(msg)

    def add_history_entry(
        self,
        parent: ResourceKey,
        entry_type: HistoryType,
        client_id: str,
        *,
        reason: str | None = None,
    ) -> int:
        """Append an audit record parented to *parent*. Returns its id."""
        result = self.conn.execute(
            insert(history_entries).values(
                parent_kind=str(parent.kind),
                parent_id=parent.repo_id,
                type=str(entry_type),
                client_id=client_id,
                modification_time=encode_time(self.now),
                reason=reason,
            )
        )
        assert result.lastrowid is not None
        return result.lastrowid

    def add_poll_message(
        self,
        client_id: str,
        message: str,
        *,
        history_entry_id: int | None,
        event_time: datetime | None = None,
    ) -> int:
        """Append a one-time notification for *client_id*. Returns its id."""
        result = self.conn.execute(
            insert(poll_messages).values(
                client_id=client_id,
                history_entry_id=history_entry_id,
                event_time=encode_time(event_time or self.now),
                message=message,
            )
        )
        assert result.lastrowid is not None
        return result.lastrowid

    def list_poll_messages(self, client_id: str) -> list[dict[str, Any]]:
        """Poll messages addressed to *client_id*, oldest first."""
        rows = self.conn.execute(
            select(poll_messages)
            .where(poll_messages.c.client_id == client_id)
            .order_by(poll_messages.c.id)
        ).fetchall()
        return [
            {
                "id": row.id,
                "client_id": row.client_id,
                "history_entry_id": row.history_entry_id,
                "event_time": decode_time(row.event_time),
                "message": row.message,
            }
            for row in rows
        ]

    def list_history(self, parent: ResourceKey) -> list[dict[str, Any]]:
        """History entries parented to *parent*, oldest first."""
        rows = self.conn.execute(
            select(history_entries)
            .where(
                history_entries.c.parent_kind == str(parent.kind),
                history_entries.c.parent_id == parent.repo_id,
            )
            .order_by(history_entries.c.id)
        ).fetchall()
        return [
            {
                "id": row.id,
                "type": HistoryType(row.type),
                "client_id": row.client_id,
                "modification_time": decode_time(row.modification_time),
                "reason": row.reason,
            }
            for row in rows
        ]

    def next_repo_id(self, kind: ResourceKind) -> str:
        return next_sequential_id(self.conn, _ID_PREFIXES[kind])

    # ------------------------------------------------------------------
    # Foreign-key index
    # ------------------------------------------------------------------

    def resolve_foreign_key(self, kind: ResourceKind, foreign_key: str) -> str | None:
        """Repo id of the live resource holding *foreign_key*, if any."""
        row = self.conn.execute(
            select(foreign_key_index.c.repo_id, foreign_key_index.c.deletion_time).where(
                foreign_key_index.c.kind == str(kind),
                foreign_key_index.c.foreign_key == foreign_key,
            )
        ).first()
        if row is None:
            return None
        deletion_time = decode_optional_time(row.deletion_time)
        if deletion_time is not None and deletion_time <= self.now:
            return None
        return str(row.repo_id)

    def index_foreign_key(self, record: Contact | Host | Domain) -> None:
        """Point the record's foreign key at it, replacing any superseded entry."""
        stmt = sqlite_insert(foreign_key_index).values(
            kind=str(record.kind),
            foreign_key=record.foreign_key,
            repo_id=record.repo_id,
            deletion_time=encode_optional_time(record.deletion_time),
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[foreign_key_index.c.kind, foreign_key_index.c.foreign_key],
            set_={
                "repo_id": stmt.excluded.repo_id,
                "deletion_time": stmt.excluded.deletion_time,
            },
        )
        self.conn.execute(stmt)

    def mark_foreign_key_superseded(self, record: Contact | Host, as_of: datetime) -> None:
        """Record that the foreign key stops resolving to *record* at *as_of*."""
        self.conn.execute(
            update(foreign_key_index)
            .where(
                foreign_key_index.c.kind == str(record.kind),
                foreign_key_index.c.foreign_key == record.foreign_key,
                foreign_key_index.c.repo_id == record.repo_id,
            )
            .values(deletion_time=encode_time(as_of))
        )

    # ------------------------------------------------------------------
    # Commit hooks
    # ------------------------------------------------------------------

    def after_commit(self, callback: Callable[[], None]) -> None:
        """Run *callback* after this transaction commits. Dropped on rollback."""
        self._after_commit.append(callback)


# ---------------------------------------------------------------------------
# Scan inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DomainShardInput:
    """One slice of the domain corpus, read on its own connection."""

    engine: Engine = field(repr=False, compare=False)
    shard: int
    domain_ids: tuple[str, ...]

    @property
    def name(self) -> str:
        return f"domains[{self.shard}]"

    def read(self) -> Iterator[Domain]:
        with self.engine.connect() as conn:
            yield from load_domains(conn, self.domain_ids)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class Registry:
    """Repository encapsulating the resource store and its queues.

    Constructed once at CLI startup from :class:`RefsweepSettings`.
    Services receive the Registry via their :class:`BaseService` constructor.
    """

    def __init__(self, settings: RefsweepSettings, *, clock: Clock | None = None) -> None:
        self._settings = settings
        self._clock: Clock = clock or utc_now
        self._engine: Engine = init_database(self.db_path)
        self._queue = WorkQueue(self._engine, settings.queue.name)
        self._dns = DnsQueue(self._engine, clock=self._clock, enabled=settings.dns.enabled)
        self._plugin_manager: PluginManager | None = None

    @property
    def root(self) -> Path:
        return self._settings.registry_root

    @property
    def db_path(self) -> Path:
        return self.root / self._settings.registry.database

    @property
    def engine(self) -> Engine:
        """The underlying SQLAlchemy engine (for direct access when needed)."""
        return self._engine

    @property
    def settings(self) -> RefsweepSettings:
        return self._settings

    @property
    def queue(self) -> WorkQueue:
        return self._queue

    @property
    def dns(self) -> DnsQueue:
        return self._dns

    @property
    def plugin_manager(self) -> PluginManager | None:
        """The plugin manager (None if not initialized)."""
        return self._plugin_manager

    def now(self) -> datetime:
        return self._clock()

    def init_plugins(self) -> None:
        """Discover entry-point and local plugins. No-op when plugins are disabled."""
        if not self._settings.plugins.enabled:
            return
        from refsweep.plugins.manager import PluginManager

        pm = PluginManager()
        names = pm.discover_and_load(local_dir=self.root / self._settings.plugins.local_dir)
        logger.debug("Loaded plugins: %s", names)
        self._plugin_manager = pm

    def domain_shards(self, shard_count: int) -> list[DomainShardInput]:
        """Split every domain id into at most *shard_count* contiguous shards."""
        with self._engine.connect() as conn:
            ids = [
                row.repo_id
                for row in conn.execute(
                    select(domains.c.repo_id).order_by(domains.c.repo_id)
                ).fetchall()
            ]
        if not ids:
            return []
        count = max(1, min(shard_count, len(ids)))
        size, extra = divmod(len(ids), count)
        shards: list[DomainShardInput] = []
        start = 0
        for shard in range(count):
            end = start + size + (1 if shard < extra else 0)
            shards.append(
                DomainShardInput(engine=self._engine, shard=shard, domain_ids=tuple(ids[start:end]))
            )
            start = end
        return shards

    @contextmanager
    def transaction(self) -> Iterator[RegistryTransaction]:
        """Atomic read-modify-write against the store.

        Usage::

            with registry.transaction() as txn:
                contact = txn.load(key)
                txn.save(contact.without_status(StatusValue.PENDING_DELETE))
                # Commits on success, rolls back on failure.
        """
        callbacks: list[Callable[[], None]] = []
        with begin_immediate(self._engine) as conn:
            yield RegistryTransaction(
                conn=conn, now=self.now(), _registry=self, _after_commit=callbacks
            )
        for callback in callbacks:
            callback()

    @contextmanager
    def snapshot(self) -> Iterator[RegistryTransaction]:
        """Read-only view. Writes made through it are rolled back on exit."""
        with self._engine.connect() as conn:
            yield RegistryTransaction(conn=conn, now=self.now(), _registry=self)

    def close(self) -> None:
        self._engine.dispose()
