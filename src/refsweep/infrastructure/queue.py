"""Table-backed pull queue with advisory leases.

A lease is a time-bounded claim: leased items are invisible to other
``lease()`` calls until ``lease_expires`` passes. It is not a lock. A
worker that overruns its lease may race a second worker on the same
item, so consumers must re-validate state transactionally.

Deleting an item is the only way to complete it. Callers that pass
``conn`` make the delete part of their own transaction.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, insert, or_, select, update

from refsweep.infrastructure.database.codec import (
    decode_optional_time,
    decode_time,
    encode_time,
)
from refsweep.infrastructure.database.engine import begin_immediate
from refsweep.infrastructure.database.schema import work_items

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkItem:
    """A queued item and its string parameters."""

    id: int
    queue_name: str
    params: Mapping[str, str] = field(hash=False)
    created: datetime
    lease_expires: datetime | None = None
    lease_count: int = 0

    def __str__(self) -> str:
        return f"WorkItem(id={self.id}, queue={self.queue_name}, params={dict(self.params)})"


def _item_from_row(row: Any) -> WorkItem:
    return WorkItem(
        id=row.id,
        queue_name=row.queue_name,
        params=json.loads(row.params),
        created=decode_time(row.created),
        lease_expires=decode_optional_time(row.lease_expires),
        lease_count=row.lease_count or 0,
    )


class WorkQueue:
    """A named pull queue stored in the ``work_items`` table."""

    def __init__(self, engine: Engine, name: str) -> None:
        self._engine = engine
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def add(
        self,
        params: Mapping[str, str],
        *,
        now: datetime,
        conn: Connection | None = None,
    ) -> WorkItem:
        """Enqueue an item. Returns the stored item (unleased)."""
        payload = {str(k): str(v) for k, v in params.items()}
        with self._connection(conn) as c:
            result = c.execute(
                insert(work_items).values(
                    queue_name=self._name,
                    params=json.dumps(payload, sort_keys=True),
                    created=encode_time(now),
                    lease_count=0,
                )
            )
            assert result.lastrowid is not None
            item_id = result.lastrowid
        return WorkItem(id=item_id, queue_name=self._name, params=payload, created=now)

    def lease(self, *, max_count: int, lease_duration: timedelta, now: datetime) -> list[WorkItem]:
        """Claim up to *max_count* unleased (or lease-expired) items, oldest first."""
        if max_count <= 0:
            return []
        expires = now + lease_duration
        now_raw = encode_time(now)
        leased: list[WorkItem] = []
        with begin_immediate(self._engine) as conn:
            rows = conn.execute(
                select(work_items)
                .where(
                    work_items.c.queue_name == self._name,
                    or_(
                        work_items.c.lease_expires.is_(None),
                        work_items.c.lease_expires <= now_raw,
                    ),
                )
                .order_by(work_items.c.id)
                .limit(max_count)
            ).fetchall()
            for row in rows:
                lease_count = (row.lease_count or 0) + 1
                conn.execute(
                    update(work_items)
                    .where(work_items.c.id == row.id)
                    .values(lease_expires=encode_time(expires), lease_count=lease_count)
                )
                item = _item_from_row(row)
                leased.append(
                    WorkItem(
                        id=item.id,
                        queue_name=item.queue_name,
                        params=item.params,
                        created=item.created,
                        lease_expires=expires,
                        lease_count=lease_count,
                    )
                )
        logger.debug("Leased %d items from %s", len(leased), self._name)
        return leased

    def delete(self, item: WorkItem, *, conn: Connection | None = None) -> bool:
        """Remove *item*. Returns False if it was already gone."""
        with self._connection(conn) as c:
            result = c.execute(delete(work_items).where(work_items.c.id == item.id))
        return bool(result.rowcount)

    def extend_lease(self, item: WorkItem, duration: timedelta, *, now: datetime) -> WorkItem:
        """Hold *item* for *duration* from *now*, regardless of its current lease."""
        expires = now + duration
        with begin_immediate(self._engine) as conn:
            conn.execute(
                update(work_items)
                .where(work_items.c.id == item.id)
                .values(lease_expires=encode_time(expires))
            )
        return WorkItem(
            id=item.id,
            queue_name=item.queue_name,
            params=item.params,
            created=item.created,
            lease_expires=expires,
            lease_count=item.lease_count,
        )

    def get(self, item_id: int) -> WorkItem | None:
        with self._engine.connect() as conn:
            row = conn.execute(select(work_items).where(work_items.c.id == item_id)).first()
        return None if row is None else _item_from_row(row)

    def list_items(self) -> list[WorkItem]:
        """All items in this queue, leased or not, oldest first."""
        with self._engine.connect() as conn:
            rows = conn.execute(
                select(work_items)
                .where(work_items.c.queue_name == self._name)
                .order_by(work_items.c.id)
            ).fetchall()
        return [_item_from_row(row) for row in rows]

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @contextmanager
    def _connection(self, conn: Connection | None) -> Iterator[Connection]:
        if conn is not None:
            yield conn
            return
        with begin_immediate(self._engine) as own:
            yield own
