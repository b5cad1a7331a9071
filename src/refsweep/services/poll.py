"""PollService: read the one-time messages queued for a client."""

from __future__ import annotations

from refsweep.services.base import BaseService
from refsweep.services.result import ServiceResult
from refsweep.services.telemetry import traced


class PollService(BaseService):
    @traced
    def list_messages(self, client_id: str) -> ServiceResult:
        with self._registry.snapshot() as view:
            messages = view.list_poll_messages(client_id)
        return ServiceResult(
            ok=True,
            op="list_messages",
            data={
                "client_id": client_id,
                "count": len(messages),
                "items": [
                    {**m, "event_time": m["event_time"].isoformat()} for m in messages
                ],
            },
        )
