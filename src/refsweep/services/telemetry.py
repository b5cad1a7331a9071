"""Timing spans for ``--verbose`` runs.

``@traced`` opens a root span around a service method and attaches the
finished tree to ``ServiceResult.meta["telemetry"]``; ``trace_span``
opens child spans for the phases inside it. Both are no-ops unless
:func:`enable_telemetry` was called in the current context.

Spans are tracked in a ContextVar, which batch worker threads do not
inherit: work running on the batch pool is timed only as a whole, by the
phase span that submitted it.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, ParamSpec, TypeVar

import structlog

from refsweep.services.result import ServiceResult

_enabled: ContextVar[bool] = ContextVar("refsweep_telemetry_enabled", default=False)
_current_span: ContextVar[Span | None] = ContextVar("refsweep_current_span", default=None)

_log = structlog.get_logger("refsweep.telemetry")


@dataclass
class Span:
    name: str
    parent: Span | None = field(default=None, repr=False)
    children: list[Span] = field(default_factory=list)
    annotations: dict[str, Any] = field(default_factory=dict)
    start_time: float = field(default_factory=time.perf_counter)
    end_time: float | None = None

    @property
    def duration_ms(self) -> float:
        """Elapsed milliseconds, or 0.0 while the span is open."""
        return 0.0 if self.end_time is None else (self.end_time - self.start_time) * 1000

    def end(self) -> None:
        self.end_time = time.perf_counter()

    def annotate(self, key: str, value: Any) -> None:
        self.annotations[key] = value

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"name": self.name, "duration_ms": round(self.duration_ms, 2)}
        if self.annotations:
            out["annotations"] = dict(self.annotations)
        if self.children:
            out["children"] = [child.to_dict() for child in self.children]
        return out


@contextmanager
def _activate(span: Span) -> Iterator[Span]:
    token = _current_span.set(span)
    try:
        yield span
    finally:
        span.end()
        _current_span.reset(token)


@contextmanager
def trace_span(name: str) -> Iterator[Span | None]:
    """Time a phase under the active span. Yields None when nothing is being traced."""
    parent = _current_span.get() if _enabled.get() else None
    if parent is None:
        yield None
        return
    child = Span(name=name, parent=parent)
    parent.children.append(child)
    with _activate(child):
        yield child


_P = ParamSpec("_P")
_R = TypeVar("_R")


def traced(func: Callable[_P, _R]) -> Callable[_P, _R]:  # noqa: UP047
    """Record a root span for *func* and attach it to a returned ServiceResult."""

    @functools.wraps(func)
    def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> _R:
        if not _enabled.get():
            return func(*args, **kwargs)
        with _activate(Span(name=func.__qualname__)) as span:
            try:
                result = func(*args, **kwargs)
            except Exception:
                _log.debug("span.failed", span_name=span.name)
                raise
        _log.debug(
            "span.complete",
            span_name=span.name,
            duration_ms=round(span.duration_ms, 2),
            children=len(span.children),
        )
        if isinstance(result, ServiceResult):
            meta = {**(result.meta or {}), "telemetry": span.to_dict()}
            return result.model_copy(update={"meta": meta})  # type: ignore[return-value]
        return result

    return wrapper


def enable_telemetry() -> None:
    _enabled.set(True)


def disable_telemetry() -> None:
    _enabled.set(False)


def get_current_span() -> Span | None:
    """The span being recorded, or None when telemetry is off."""
    return _current_span.get() if _enabled.get() else None
