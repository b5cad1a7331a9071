"""Test helpers shared across service and infrastructure tests."""

from __future__ import annotations

from typing import Any

from refsweep.domain.keys import ResourceKey
from refsweep.domain.types import ResourceKind, StatusValue
from refsweep.infrastructure.registry import Registry
from refsweep.services.create import CreateService
from refsweep.services.request import DeletionRequestService


def create_contact(registry: Registry, contact_id: str, sponsor: str = "RegistrarA") -> str:
    """Create a contact and return its repo id."""
    result = CreateService(registry).create_contact(contact_id, sponsor)
    assert result.ok, result.error
    return str(result.data["repo_id"])


def create_host(
    registry: Registry,
    host_name: str,
    sponsor: str = "RegistrarA",
    **kwargs: Any,
) -> str:
    result = CreateService(registry).create_host(host_name, sponsor, **kwargs)
    assert result.ok, result.error
    return str(result.data["repo_id"])


def create_domain(
    registry: Registry,
    domain_name: str,
    sponsor: str = "RegistrarA",
    **kwargs: Any,
) -> str:
    result = CreateService(registry).create_domain(domain_name, sponsor, **kwargs)
    assert result.ok, result.error
    return str(result.data["repo_id"])


def request_delete(
    registry: Registry,
    kind: str,
    external_id: str,
    client_id: str = "RegistrarA",
    *,
    superuser: bool = False,
) -> ResourceKey:
    """Mark a resource PENDING_DELETE and return its key."""
    result = DeletionRequestService(registry).request_delete(
        kind, external_id, client_id, superuser=superuser
    )
    assert result.ok, result.error
    return ResourceKey.parse(result.data["resource"])


def load(registry: Registry, key: ResourceKey, *, project: bool = False) -> Any:
    with registry.snapshot() as view:
        return view.load(key, project=project)


def contact_key(repo_id: str) -> ResourceKey:
    return ResourceKey(ResourceKind.CONTACT, repo_id)


def host_key(repo_id: str) -> ResourceKey:
    return ResourceKey(ResourceKind.HOST, repo_id)


def enqueue(registry: Registry, **params: str) -> Any:
    """Add a raw work item to the deletion queue."""
    return registry.queue.add(params, now=registry.now())


def mark_pending_delete(registry: Registry, key: ResourceKey) -> None:
    """Add PENDING_DELETE directly, bypassing the request service."""
    with registry.transaction() as txn:
        resource = txn.load(key, project=False)
        txn.save(
            resource.with_status(StatusValue.PENDING_DELETE).model_copy(
                update={"update_time": txn.now}
            )
        )
