"""Events a refsweep plugin can observe.

Every hook fires after the transaction behind the event has committed, on
the thread that committed it. Return values are ignored.
"""

from __future__ import annotations

import pluggy

hookspec = pluggy.HookspecMarker("refsweep")
hookimpl = pluggy.HookimplMarker("refsweep")


class RefsweepHookSpec:
    @hookspec
    def post_request_delete(self, kind: str, resource_id: str, client_id: str) -> None:
        """A resource entered PENDING_DELETE and its queue item was written."""

    @hookspec
    def post_deletion(self, kind: str, resource_id: str, outcome: str, message: str) -> None:
        """A sweep decided one resource; *outcome* is a ``ResultType`` value."""

    @hookspec
    def post_sweep(self, job_id: str, counters: dict[str, int]) -> None:
        """A sweep's batch job reached a terminal status."""
