"""AsyncDeletionService: lease queued deletions and sweep them.

One call to :meth:`AsyncDeletionService.run` leases every eligible work
item, decodes it, and runs one batch job: the reference scan over a
``NullInput`` plus every domain shard, then one decision per request.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from refsweep.domain.deletion import DeletionRequest
from refsweep.domain.errors import DecodeError
from refsweep.infrastructure.batch import BatchInput, BatchRunner, NullInput
from refsweep.services.base import BaseService
from refsweep.services.decider import DeletionDecider
from refsweep.services.decoder import decode_work_item
from refsweep.services.result import ServiceError, ServiceResult
from refsweep.services.scanner import ReferenceScanner
from refsweep.services.telemetry import trace_span, traced

logger = logging.getLogger(__name__)

_OP = "delete_contacts_and_hosts"


class AsyncDeletionService(BaseService):
    """Processes the asynchronous contact and host deletion queue."""

    @traced
    def run(self) -> ServiceResult:
        settings = self._registry.settings
        queue = self._registry.queue
        warnings: list[str] = []

        with trace_span("lease"):
            items = queue.lease(
                max_count=settings.queue.max_lease_count,
                lease_duration=timedelta(minutes=settings.queue.lease_minutes),
                now=self._registry.now(),
            )
        if not items:
            return ServiceResult(
                ok=True,
                op=_OP,
                data={"leased": 0, "requests": 0, "rejected": 0, "counters": {}, "results": []},
            )

        requests: list[DeletionRequest] = []
        rejected: list[int] = []
        bad_item_lease = timedelta(hours=settings.queue.bad_item_lease_hours)
        with trace_span("decode"), self._registry.snapshot() as view:
            for item in items:
                try:
                    requests.append(decode_work_item(view, item))
                except DecodeError:
                    logger.error(
                        "Could not parse async deletion request, delaying task for %d hours: %s",
                        settings.queue.bad_item_lease_hours,
                        item,
                        exc_info=True,
                    )
                    queue.extend_lease(item, bad_item_lease, now=self._registry.now())
                    rejected.append(item.id)
        if rejected:
            warnings.append(f"{len(rejected)} work item(s) could not be decoded")

        logger.info("Processing asynchronous deletion of %d contacts and hosts.", len(requests))
        data = {
            "leased": len(items),
            "requests": len(requests),
            "rejected": len(rejected),
            "counters": {},
            "results": [],
        }
        if not requests:
            return ServiceResult(ok=True, op=_OP, data=data, warnings=warnings)

        inputs: list[BatchInput] = [
            NullInput(),
            *self._registry.domain_shards(settings.batch.shard_count),
        ]
        scanner = ReferenceScanner(requests)
        decider = DeletionDecider(self._registry)
        with trace_span("batch") as span:
            job = BatchRunner(settings.batch.max_workers).run(
                settings.batch.job_name, scanner.map, decider.reduce, inputs
            )
            if span is not None:
                span.annotate("job_id", job.job_id)
                span.annotate("inputs", len(inputs))

        self._dispatch_event(
            "post_sweep", {"job_id": job.job_id, "counters": dict(job.counters)}, warnings
        )
        for result in job.results:
            warnings.extend(result.get("warnings", []))
        data.update(
            {
                "job_id": job.job_id,
                "status": str(job.status),
                "counters": dict(sorted(job.counters.items())),
                "results": sorted(
                    ({k: v for k, v in r.items() if k != "warnings"} for r in job.results),
                    key=lambda r: r["resource"],
                ),
            }
        )
        if not job.ok:
            return ServiceResult(
                ok=False,
                op=_OP,
                data=data,
                warnings=warnings,
                error=ServiceError(
                    code="BATCH_FAILED",
                    message=f"Batch job {job.job_id} failed; leased items will be retried",
                    detail={"failures": job.failures},
                ),
            )
        warnings.extend(job.failures)
        return ServiceResult(ok=True, op=_OP, data=data, warnings=warnings)
