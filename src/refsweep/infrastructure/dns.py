"""DNS refresh queue: best-effort notifications to the DNS writer.

Enqueues are fire-and-forget: a failure is logged and dropped, never
raised into the caller. Callers inside a registry transaction schedule
the enqueue with ``RegistryTransaction.after_commit`` so that a rolled
back deletion never triggers a refresh.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import insert, select
from sqlalchemy.exc import SQLAlchemyError

from refsweep.infrastructure.database.codec import encode_time
from refsweep.infrastructure.database.engine import begin_immediate
from refsweep.infrastructure.database.schema import dns_tasks

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)


class DnsQueue:
    """Writes host refresh requests to the ``dns_tasks`` table."""

    def __init__(
        self,
        engine: Engine,
        *,
        clock: Callable[[], datetime],
        enabled: bool = True,
    ) -> None:
        self._engine = engine
        self._clock = clock
        self._enabled = enabled

    def add_host_refresh_task(self, host_name: str) -> None:
        """Request a DNS refresh for *host_name*. Never raises."""
        if not self._enabled:
            logger.info("DNS refresh disabled; dropping refresh for host %s", host_name)
            return
        try:
            with begin_immediate(self._engine) as conn:
                conn.execute(
                    insert(dns_tasks).values(
                        target_type="host",
                        target_name=host_name,
                        created=encode_time(self._clock()),
                    )
                )
        except SQLAlchemyError:
            logger.warning("Failed to enqueue DNS refresh for host %s", host_name, exc_info=True)
        else:
            logger.debug("Enqueued DNS refresh for host %s", host_name)

    def pending_hosts(self) -> list[str]:
        """Host names awaiting a refresh, in enqueue order."""
        with self._engine.connect() as conn:
            rows = conn.execute(
                select(dns_tasks.c.target_name)
                .where(dns_tasks.c.target_type == "host")
                .order_by(dns_tasks.c.id)
            ).fetchall()
        return [row.target_name for row in rows]
