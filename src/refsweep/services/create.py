"""CreateService: register contacts, hosts, and domains.

Each create allocates a sequential repo id, indexes the client-facing
name, and writes a ``*_CREATE`` history entry in one transaction. A
name already held by a live resource of the same kind is rejected.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from refsweep.domain.resources import Contact, Domain, Host
from refsweep.domain.types import HistoryType, ResourceKind
from refsweep.services.base import BaseService
from refsweep.services.result import ServiceResult
from refsweep.services.telemetry import traced

if TYPE_CHECKING:
    from refsweep.infrastructure.registry import RegistryTransaction


class CreateService(BaseService):
    """Handles resource creation for all kinds."""

    @traced
    def create_contact(self, contact_id: str, sponsor_client_id: str) -> ServiceResult:
        op = "create_contact"
        with self._registry.transaction() as txn:
            if txn.resolve_foreign_key(ResourceKind.CONTACT, contact_id) is not None:
                return _already_exists(op, ResourceKind.CONTACT, contact_id)
            contact = Contact(
                repo_id=txn.next_repo_id(ResourceKind.CONTACT),
                contact_id=contact_id,
                sponsor_client_id=sponsor_client_id,
                creation_time=txn.now,
                update_time=txn.now,
            )
            self._persist(txn, contact, HistoryType.CONTACT_CREATE)
        return ServiceResult(ok=True, op=op, data=_summary(contact))

    @traced
    def create_host(
        self,
        host_name: str,
        sponsor_client_id: str,
        *,
        superordinate_domain: str | None = None,
    ) -> ServiceResult:
        """Create a host, optionally subordinate to a domain given by name."""
        op = "create_host"
        host_name = host_name.lower()
        with self._registry.transaction() as txn:
            if txn.resolve_foreign_key(ResourceKind.HOST, host_name) is not None:
                return _already_exists(op, ResourceKind.HOST, host_name)
            parent: Domain | None = None
            if superordinate_domain is not None:
                parent_id = txn.resolve_foreign_key(ResourceKind.DOMAIN, superordinate_domain)
                parent = txn.load_domain(parent_id) if parent_id else None
                if parent is None:
                    return ServiceResult.failure(
                        op,
                        "NOT_FOUND",
                        f"No live domain named {superordinate_domain}",
                        domain=superordinate_domain,
                    )
            host = Host(
                repo_id=txn.next_repo_id(ResourceKind.HOST),
                host_name=host_name,
                sponsor_client_id=sponsor_client_id,
                creation_time=txn.now,
                update_time=txn.now,
                superordinate_domain=parent.repo_id if parent else None,
                last_superordinate_change=txn.now if parent else None,
            )
            self._persist(txn, host, HistoryType.HOST_CREATE)
            if parent is not None:
                txn.save(
                    parent.model_copy(
                        update={
                            "subordinate_hosts": parent.subordinate_hosts | {host_name},
                            "update_time": txn.now,
                        }
                    )
                )
        return ServiceResult(ok=True, op=op, data=_summary(host))

    @traced
    def create_domain(
        self,
        domain_name: str,
        sponsor_client_id: str,
        *,
        contacts: Iterable[str] = (),
        nameservers: Iterable[str] = (),
    ) -> ServiceResult:
        """Create a domain referencing contacts (by contact id) and hosts (by name)."""
        op = "create_domain"
        domain_name = domain_name.lower()
        with self._registry.transaction() as txn:
            if txn.resolve_foreign_key(ResourceKind.DOMAIN, domain_name) is not None:
                return _already_exists(op, ResourceKind.DOMAIN, domain_name)
            contact_ids: set[str] = set()
            for contact_id in contacts:
                repo_id = txn.resolve_foreign_key(ResourceKind.CONTACT, contact_id)
                if repo_id is None:
                    return ServiceResult.failure(
                        op, "NOT_FOUND", f"No live contact named {contact_id}", contact=contact_id
                    )
                contact_ids.add(repo_id)
            host_ids: set[str] = set()
            for host_name in nameservers:
                repo_id = txn.resolve_foreign_key(ResourceKind.HOST, host_name.lower())
                if repo_id is None:
                    return ServiceResult.failure(
                        op, "NOT_FOUND", f"No live host named {host_name}", host=host_name
                    )
                host_ids.add(repo_id)
            domain = Domain(
                repo_id=txn.next_repo_id(ResourceKind.DOMAIN),
                domain_name=domain_name,
                sponsor_client_id=sponsor_client_id,
                creation_time=txn.now,
                update_time=txn.now,
                contacts=frozenset(contact_ids),
                nameservers=frozenset(host_ids),
            )
            self._persist(txn, domain, HistoryType.DOMAIN_CREATE)
        data = _summary(domain)
        data["contacts"] = sorted(domain.contacts)
        data["nameservers"] = sorted(domain.nameservers)
        return ServiceResult(ok=True, op=op, data=data)

    @staticmethod
    def _persist(
        txn: RegistryTransaction,
        record: Contact | Host | Domain,
        history: HistoryType,
    ) -> None:
        txn.save(record)
        txn.index_foreign_key(record)
        txn.add_history_entry(record.key, history, record.sponsor_client_id)


def _already_exists(op: str, kind: ResourceKind, name: str) -> ServiceResult:
    return ServiceResult.failure(
        op, "ALREADY_EXISTS", f"A live {kind} named {name} already exists", name=name
    )


def _summary(record: Contact | Host | Domain) -> dict[str, str]:
    return {
        "kind": str(record.kind),
        "repo_id": record.repo_id,
        "name": record.foreign_key,
        "sponsor": record.sponsor_client_id,
    }
