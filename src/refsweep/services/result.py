"""What every service call returns.

A service never raises for an expected failure (unknown resource, wrong
sponsor, failed batch); it returns ``ServiceResult(ok=False)`` with an
error code the CLI maps to an exit status.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ServiceError(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Outcome of one service operation.

    ``data`` is operation-specific. ``warnings`` collects non-fatal
    problems such as a failing plugin hook. ``meta`` carries the telemetry
    span tree on ``--verbose`` runs.
    """

    model_config = ConfigDict(frozen=True)

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def failure(cls, op: str, code: str, message: str, **detail: Any) -> ServiceResult:
        """Shorthand for an ``ok=False`` result; keyword args become ``error.detail``."""
        error = ServiceError(code=code, message=message, detail=detail)
        return cls(ok=False, op=op, error=error)
