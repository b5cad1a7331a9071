"""QueueService: inspect the asynchronous deletion queue."""

from __future__ import annotations

from refsweep.services.base import BaseService
from refsweep.services.result import ServiceResult
from refsweep.services.telemetry import traced


class QueueService(BaseService):
    @traced
    def list_items(self) -> ServiceResult:
        """Every queued work item, with its lease state as of now."""
        now = self._registry.now()
        items = []
        for item in self._registry.queue.list_items():
            leased = item.lease_expires is not None and item.lease_expires > now
            items.append(
                {
                    "id": item.id,
                    "params": dict(item.params),
                    "created": item.created.isoformat(),
                    "lease_expires": item.lease_expires.isoformat() if item.lease_expires else None,
                    "lease_count": item.lease_count,
                    "leased": leased,
                }
            )
        return ServiceResult(
            ok=True,
            op="list_queue",
            data={
                "queue": self._registry.queue.name,
                "count": len(items),
                "items": items,
                "dns_pending": self._registry.dns.pending_hosts(),
            },
        )
