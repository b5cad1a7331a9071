"""Deletion requests, results, and the client-facing outcome messages."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING

from refsweep.domain.keys import ResourceKey

if TYPE_CHECKING:
    from refsweep.infrastructure.queue import WorkItem


@dataclass(frozen=True)
class DeletionRequest:
    """One leased work item, validated and frozen.

    ``last_update_time`` is the resource's update timestamp when the request
    was decoded; reference checks are evaluated as of that instant. The
    ``task`` handle takes part in equality, so two work items for the same
    resource key two separate reductions.
    """

    key: ResourceKey
    last_update_time: datetime
    requesting_client_id: str
    is_superuser: bool
    task: WorkItem = field(repr=False)

    def __str__(self) -> str:
        return str(self.key)


class ResultType(StrEnum):
    DELETED = "deleted"
    NOT_DELETED = "not_deleted"
    ERRORED = "errored"

    def render_counter_text(self, resource_name_plural: str) -> str:
        """Counter name for this outcome, e.g. ``"contacts deleted"``."""
        return _COUNTER_FORMATS[self].format(resource_name_plural)


_COUNTER_FORMATS: dict[ResultType, str] = {
    ResultType.DELETED: "{} deleted",
    ResultType.NOT_DELETED: "{} not deleted",
    ResultType.ERRORED: "{} errored out during deletion",
}


@dataclass(frozen=True)
class DeletionResult:
    type: ResultType
    poll_message_text: str


def poll_message_text(
    kind: str,
    foreign_key: str,
    *,
    delete_allowed: bool,
    requested_by_current_owner: bool,
) -> str:
    """Render the notification sent to the requesting client.

    Examples:
        >>> poll_message_text("contact", "123", delete_allowed=True,
        ...                   requested_by_current_owner=True)
        'Deleted contact 123.'
        >>> poll_message_text("host", "ns1.example.tld", delete_allowed=False,
        ...                   requested_by_current_owner=False)
        "Can't delete host ns1.example.tld because it was transferred prior to deletion."
    """
    if delete_allowed:
        return f"Deleted {kind} {foreign_key}."
    reason = (
        "it is referenced by a domain"
        if requested_by_current_owner
        else "it was transferred prior to deletion"
    )
    return f"Can't delete {kind} {foreign_key} because {reason}."
