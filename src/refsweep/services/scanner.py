"""Map phase: find live domains that point at a pending deletion target."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from refsweep.domain.kinds import is_referenced_by
from refsweep.domain.resources import Domain, is_active

if TYPE_CHECKING:
    from refsweep.domain.deletion import DeletionRequest
    from refsweep.infrastructure.batch import BatchContext


class ReferenceScanner:
    """Mapper holding the request set of one sweep.

    For a ``None`` record it emits ``False`` for every request so the
    reducer runs once per request even when no domain is scanned. For a
    domain it emits ``True`` per request whose target the domain
    references, judged as of the request's snapshot time.
    """

    def __init__(self, requests: Sequence[DeletionRequest]) -> None:
        self._requests = tuple(requests)

    @property
    def requests(self) -> tuple[DeletionRequest, ...]:
        return self._requests

    def map(self, domain: Domain | None, ctx: BatchContext) -> None:
        if domain is None:
            for request in self._requests:
                ctx.emit(request, False)
            return
        for request in self._requests:
            if is_active(domain, request.last_update_time) and is_referenced_by(
                domain, request.key
            ):
                ctx.emit(request, True)
                ctx.increment_counter(f"active Domain-{request.key.kind} links found")
        ctx.increment_counter("domains processed")
