"""Database engine setup for SQLite with WAL mode.

WAL mode lets the read-only scan phase run alongside writers. The
pysqlite driver's own transaction handling is disabled so that BEGIN is
emitted explicitly: deferred for reads, ``BEGIN IMMEDIATE`` for writes
opened through :func:`begin_immediate`. Taking the write lock up front
avoids lock-upgrade failures between concurrent decision transactions.
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

from sqlalchemy import create_engine, event, insert, select
from sqlalchemy.engine import Engine

from refsweep.infrastructure.database.schema import id_counters, metadata

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy import Connection

BEGIN_MODE_OPTION = "sqlite_begin_mode"
BUSY_TIMEOUT_SECONDS = 30
SEQUENTIAL_PREFIXES = ("C-", "H-", "D-")


def create_db_engine(db_path: Path) -> Engine:
    """Create a SQLite engine with WAL mode, foreign keys, and explicit BEGIN."""
    engine = create_engine(
        f"sqlite:///{db_path}",
        echo=False,
        connect_args={"timeout": BUSY_TIMEOUT_SECONDS},
    )

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        dbapi_conn.isolation_level = None
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _do_begin(conn: Connection) -> None:
        mode = conn.get_execution_options().get(BEGIN_MODE_OPTION, "DEFERRED")
        conn.exec_driver_sql(f"BEGIN {mode}")

    return engine


@contextmanager
def begin_immediate(engine: Engine) -> Iterator[Connection]:
    """Open a write transaction holding the database write lock from the start.

    Commits when the block exits normally, rolls back on exception.
    """
    with engine.connect() as conn:
        conn.execution_options(**{BEGIN_MODE_OPTION: "IMMEDIATE"})
        with conn.begin():
            yield conn


def init_database(db_path: Path) -> Engine:
    """Initialize the registry database at *db_path*.

    Creates the parent directory, all tables from :data:`schema.metadata`,
    and seeds the ``id_counters`` rows for generated repo ids.

    Idempotent; safe to call on an existing database.
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_db_engine(db_path)
    metadata.create_all(engine)
    _seed_counters(engine)
    return engine


def _seed_counters(engine: Engine) -> None:
    """Insert initial counter rows for each generated prefix if missing."""
    with begin_immediate(engine) as conn:
        for prefix in SEQUENTIAL_PREFIXES:
            row = conn.execute(
                select(id_counters.c.type_prefix).where(id_counters.c.type_prefix == prefix)
            ).first()
            if row is None:
                conn.execute(insert(id_counters).values(type_prefix=prefix, next_value=1))
