"""SQLite database engine, schema, and id counters via SQLAlchemy Core."""

from refsweep.infrastructure.database.counters import next_sequential_id
from refsweep.infrastructure.database.engine import (
    begin_immediate,
    create_db_engine,
    init_database,
)
from refsweep.infrastructure.database.schema import (
    contacts,
    dns_tasks,
    domains,
    foreign_key_index,
    history_entries,
    hosts,
    id_counters,
    metadata,
    poll_messages,
    work_items,
)

__all__ = [
    "begin_immediate",
    "contacts",
    "create_db_engine",
    "dns_tasks",
    "domains",
    "foreign_key_index",
    "history_entries",
    "hosts",
    "id_counters",
    "init_database",
    "metadata",
    "next_sequential_id",
    "poll_messages",
    "work_items",
]
