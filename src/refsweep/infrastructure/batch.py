"""In-process map/reduce over sharded inputs via ThreadPoolExecutor.

The mapper runs once per record of every input. Emitted ``(key, value)``
pairs are grouped by key in emission order, and the reducer runs exactly
once per emitted key with every value emitted for it.

INVARIANT: If any map shard fails, no reducer runs. A reducer that sees
only part of the emitted values could act on an incomplete answer.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections import Counter
from collections.abc import Callable, Hashable, Iterable, Iterator
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class BatchInput(Protocol):
    """A shard of records fed to the mapper."""

    @property
    def name(self) -> str: ...

    def read(self) -> Iterable[Any]: ...


@dataclass(frozen=True)
class NullInput:
    """A shard holding one ``None`` record."""

    name: str = "null"

    def read(self) -> Iterator[None]:
        yield None


class BatchCounters:
    """Thread-safe named counters shared by every shard of a job."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counts: Counter[str] = Counter()

    def increment(self, name: str, amount: int = 1) -> None:
        with self._lock:
            self._counts[name] += amount

    def snapshot(self) -> dict[str, int]:
        with self._lock:
            return dict(self._counts)


class BatchContext:
    """Reporting handle passed to the mapper and reducer."""

    def __init__(self, counters: BatchCounters, sink: Callable[[Hashable, Any], None]) -> None:
        self._counters = counters
        self._sink = sink

    def emit(self, key: Hashable, value: Any) -> None:
        self._sink(key, value)

    def increment_counter(self, name: str, amount: int = 1) -> None:
        self._counters.increment(name, amount)


Mapper = Callable[[Any, BatchContext], None]
Reducer = Callable[[Hashable, list[Any], BatchContext], None]


class BatchStatus(StrEnum):
    SUCCEEDED = "succeeded"
    PARTIAL = "partial"  # some reducers raised
    FAILED = "failed"  # a map shard raised; nothing reduced


@dataclass
class BatchJob:
    """Outcome of one :meth:`BatchRunner.run` call."""

    job_id: str
    name: str
    status: BatchStatus = BatchStatus.SUCCEEDED
    counters: dict[str, int] = field(default_factory=dict)
    keys_reduced: int = 0
    results: list[Any] = field(default_factory=list)
    failures: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status != BatchStatus.FAILED


class BatchRunner:
    """Drives a mapper and reducer across inputs on a worker pool."""

    def __init__(self, max_workers: int = 4) -> None:
        if max_workers < 1:
            msg = f"max_workers must be >= 1, got {max_workers}"
            raise ValueError(msg)
        self._max_workers = max_workers

    def run(
        self,
        job_name: str,
        mapper: Mapper,
        reducer: Reducer,
        inputs: Iterable[BatchInput],
    ) -> BatchJob:
        job = BatchJob(job_id=uuid.uuid4().hex[:12], name=job_name)
        counters = BatchCounters()
        shards = list(inputs)
        logger.info("Starting batch job %s (%s) over %d inputs", job.job_id, job_name, len(shards))

        with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            map_futures = [
                (shard, executor.submit(self._map_shard, shard, mapper, counters))
                for shard in shards
            ]
            grouped: dict[Hashable, list[Any]] = {}
            for shard, future in map_futures:
                try:
                    pairs = future.result()
                except Exception as exc:
                    logger.exception("Map shard %s failed in job %s", shard.name, job.job_id)
                    job.failures.append(f"map {shard.name}: {exc}")
                    continue
                for key, value in pairs:
                    grouped.setdefault(key, []).append(value)

            if job.failures:
                job.status = BatchStatus.FAILED
                job.counters = counters.snapshot()
                logger.error("Batch job %s skipped its reduce phase", job.job_id)
                return job

            results_lock = threading.Lock()

            def collect(_key: Hashable, value: Any) -> None:
                with results_lock:
                    job.results.append(value)

            reduce_futures: list[tuple[Hashable, Future[None]]] = [
                (key, executor.submit(reducer, key, values, BatchContext(counters, collect)))
                for key, values in grouped.items()
            ]
            for key, future in reduce_futures:
                try:
                    future.result()
                except Exception as exc:
                    logger.exception("Reducer failed for key %s in job %s", key, job.job_id)
                    counters.increment("reduce failures")
                    job.failures.append(f"reduce {key}: {exc}")
                else:
                    job.keys_reduced += 1

        if job.failures:
            job.status = BatchStatus.PARTIAL
        job.counters = counters.snapshot()
        logger.info(
            "Batch job %s finished: status=%s keys=%d",
            job.job_id,
            job.status,
            job.keys_reduced,
        )
        return job

    @staticmethod
    def _map_shard(
        shard: BatchInput,
        mapper: Mapper,
        counters: BatchCounters,
    ) -> list[tuple[Hashable, Any]]:
        pairs: list[tuple[Hashable, Any]] = []
        ctx = BatchContext(counters, lambda key, value: pairs.append((key, value)))
        for record in shard.read():
            mapper(record, ctx)
        return pairs
