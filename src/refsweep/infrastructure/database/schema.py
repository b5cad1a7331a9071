"""SQLAlchemy Core table definitions for the registry database.

Timestamps are stored as fixed-precision UTC ISO-8601 text (see
:mod:`refsweep.infrastructure.database.codec`) so string ordering
matches time ordering. Set-valued columns are JSON arrays.
"""

from __future__ import annotations

from sqlalchemy import (
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    PrimaryKeyConstraint,
    Table,
    Text,
)

metadata = MetaData()

contacts = Table(
    "contacts",
    metadata,
    Column("repo_id", Text, primary_key=True),
    Column("contact_id", Text, nullable=False),
    Column("sponsor_client_id", Text, nullable=False),
    Column("statuses", Text, nullable=False, default="[]", server_default="[]"),  # JSON array
    Column("creation_time", Text, nullable=False),
    Column("update_time", Text, nullable=False),
    Column("deletion_time", Text),
    Column("last_transfer_time", Text),
    Column("transfer_status", Text),
    Column("transfer_gaining_client_id", Text),
    Column("transfer_losing_client_id", Text),
    Column("transfer_request_time", Text),
    Column("pending_transfer_expiration_time", Text),
)

hosts = Table(
    "hosts",
    metadata,
    Column("repo_id", Text, primary_key=True),
    Column("host_name", Text, nullable=False),
    Column("sponsor_client_id", Text, nullable=False),
    Column("statuses", Text, nullable=False, default="[]", server_default="[]"),  # JSON array
    Column("creation_time", Text, nullable=False),
    Column("update_time", Text, nullable=False),
    Column("deletion_time", Text),
    Column("superordinate_domain", Text),  # domains.repo_id
    Column("last_superordinate_change", Text),
)

domains = Table(
    "domains",
    metadata,
    Column("repo_id", Text, primary_key=True),
    Column("domain_name", Text, nullable=False),
    Column("sponsor_client_id", Text, nullable=False),
    Column("creation_time", Text, nullable=False),
    Column("update_time", Text, nullable=False),
    Column("deletion_time", Text),
    Column("last_transfer_time", Text),
    Column("contacts", Text, nullable=False, default="[]", server_default="[]"),  # repo ids
    Column("nameservers", Text, nullable=False, default="[]", server_default="[]"),  # repo ids
    Column("subordinate_hosts", Text, nullable=False, default="[]", server_default="[]"),
)

history_entries = Table(
    "history_entries",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("parent_kind", Text, nullable=False),
    Column("parent_id", Text, nullable=False),
    Column("type", Text, nullable=False),
    Column("client_id", Text, nullable=False),
    Column("modification_time", Text, nullable=False),
    Column("reason", Text),
)

poll_messages = Table(
    "poll_messages",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("client_id", Text, nullable=False),
    Column("history_entry_id", Integer, ForeignKey("history_entries.id")),
    Column("event_time", Text, nullable=False),
    Column("message", Text, nullable=False),
)

# Maps a client-facing identifier to the live resource holding it.
# deletion_time is set when the resource is deleted so the name can be reused.
foreign_key_index = Table(
    "foreign_key_index",
    metadata,
    Column("kind", Text, nullable=False),
    Column("foreign_key", Text, nullable=False),
    Column("repo_id", Text, nullable=False),
    Column("deletion_time", Text),
    PrimaryKeyConstraint("kind", "foreign_key"),
)

work_items = Table(
    "work_items",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("queue_name", Text, nullable=False),
    Column("params", Text, nullable=False),  # JSON object of strings
    Column("created", Text, nullable=False),
    Column("lease_expires", Text),
    Column("lease_count", Integer, default=0, server_default="0"),
)

dns_tasks = Table(
    "dns_tasks",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("target_type", Text, nullable=False),
    Column("target_name", Text, nullable=False),
    Column("created", Text, nullable=False),
)

id_counters = Table(
    "id_counters",
    metadata,
    Column("type_prefix", Text, primary_key=True),
    Column("next_value", Integer, nullable=False, default=1, server_default="1"),
)

# ---------------------------------------------------------------------------
# Indexes for frequently filtered columns
# ---------------------------------------------------------------------------

Index("ix_work_items_queue_lease", work_items.c.queue_name, work_items.c.lease_expires)
Index("ix_history_entries_parent", history_entries.c.parent_kind, history_entries.c.parent_id)
Index("ix_poll_messages_client", poll_messages.c.client_id)
Index("ix_domains_deletion_time", domains.c.deletion_time)
