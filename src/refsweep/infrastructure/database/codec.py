"""Column codecs: timestamps and JSON-encoded sets."""

from __future__ import annotations

import json
from collections.abc import Iterable
from datetime import UTC, datetime


def encode_time(value: datetime) -> str:
    """Fixed-precision UTC ISO-8601. Naive datetimes are taken as UTC.

    Examples:
        >>> encode_time(datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC))
        '2024-01-02T03:04:05.000000+00:00'
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="microseconds")


def decode_time(raw: str) -> datetime:
    return datetime.fromisoformat(raw)


def encode_optional_time(value: datetime | None) -> str | None:
    return None if value is None else encode_time(value)


def decode_optional_time(raw: str | None) -> datetime | None:
    return None if raw is None else decode_time(raw)


def encode_set(values: Iterable[str]) -> str:
    """Sorted JSON array, so equal sets encode identically."""
    return json.dumps(sorted(str(v) for v in values))


def decode_set(raw: str | None) -> frozenset[str]:
    if not raw:
        return frozenset()
    return frozenset(json.loads(raw))
