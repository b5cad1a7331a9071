"""Error hierarchy shared by every layer."""

from __future__ import annotations


class RefsweepError(Exception):
    """Base exception for refsweep errors."""


class DecodeError(RefsweepError):
    """A leased work item cannot be turned into a deletion request.

    Permanent for the item as written; the caller delays it instead of retrying.
    """


class InvalidResourceKey(DecodeError):
    """The ``resourceKey`` parameter does not name a resource kind and id."""


class PreconditionViolation(RefsweepError):
    """The resource is no longer in a state that allows asynchronous deletion."""
