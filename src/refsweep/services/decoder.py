"""Leased work item -> DeletionRequest."""

from __future__ import annotations

from typing import TYPE_CHECKING

from refsweep.domain.deletion import DeletionRequest
from refsweep.domain.errors import DecodeError, PreconditionViolation
from refsweep.domain.keys import ResourceKey
from refsweep.domain.lifecycle import check_resource_state_allows_deletion
from refsweep.domain.types import DELETABLE_KINDS

if TYPE_CHECKING:
    from collections.abc import Mapping

    from refsweep.infrastructure.queue import WorkItem
    from refsweep.infrastructure.registry import RegistryTransaction

PARAM_RESOURCE_KEY = "resourceKey"
PARAM_REQUESTING_CLIENT_ID = "requestingClientId"
PARAM_IS_SUPERUSER = "isSuperuser"


def _require(params: Mapping[str, str], name: str, message: str) -> str:
    value = params.get(name)
    if value is None:
        raise DecodeError(message)
    return value


def decode_work_item(view: RegistryTransaction, item: WorkItem) -> DeletionRequest:
    """Validate *item* against the store as of ``view.now``.

    Raises:
        DecodeError: A parameter is missing, the resource does not exist or
            is not a contact or host, or it is not pending deletion.
    """
    params = item.params
    key = ResourceKey.parse(
        _require(params, PARAM_RESOURCE_KEY, "Resource to delete not specified")
    )
    if key.kind not in DELETABLE_KINDS:
        msg = f"Cannot delete a {key.kind} via this action"
        raise DecodeError(msg)
    resource = view.load(key, project=False)
    if resource is None:
        msg = f"Resource to delete doesn't exist: {key}"
        raise DecodeError(msg)
    try:
        check_resource_state_allows_deletion(resource, view.now)
    except PreconditionViolation as exc:
        raise DecodeError(str(exc)) from exc
    requesting_client_id = _require(
        params, PARAM_REQUESTING_CLIENT_ID, "Requesting client id not specified"
    )
    superuser = _require(params, PARAM_IS_SUPERUSER, "Is superuser not specified")
    return DeletionRequest(
        key=key,
        last_update_time=resource.update_time,
        requesting_client_id=requesting_client_id,
        is_superuser=superuser.lower() == "true",
        task=item,
    )
