"""Tests for Registry transactions, persistence, and shards."""

from datetime import timedelta

import pytest
from sqlalchemy import select

from refsweep.domain.keys import ResourceKey
from refsweep.domain.resources import Contact, Domain, Host, TransferData
from refsweep.domain.types import HistoryType, ResourceKind, StatusValue, TransferStatus
from refsweep.infrastructure.database.schema import contacts
from refsweep.infrastructure.registry import Registry
from tests.conftest import T0, FakeClock


def _contact(repo_id: str = "C-0001", **kwargs: object) -> Contact:
    fields: dict[str, object] = {
        "repo_id": repo_id,
        "contact_id": f"id-{repo_id}",
        "sponsor_client_id": "RegistrarA",
        "creation_time": T0,
        "update_time": T0,
    }
    fields.update(kwargs)
    return Contact(**fields)  # type: ignore[arg-type]


def _domain(repo_id: str, **kwargs: object) -> Domain:
    fields: dict[str, object] = {
        "repo_id": repo_id,
        "domain_name": f"{repo_id.lower()}.tld",
        "sponsor_client_id": "RegistrarA",
        "creation_time": T0,
        "update_time": T0,
    }
    fields.update(kwargs)
    return Domain(**fields)  # type: ignore[arg-type]


class TestRegistryInit:
    def test_creates_database(self, registry: Registry) -> None:
        assert registry.db_path.exists()
        assert registry.db_path == registry.root / ".refsweep" / "registry.db"

    def test_now_uses_clock(self, registry: Registry, clock: FakeClock) -> None:
        assert registry.now() == T0
        clock.advance(minutes=1)
        assert registry.now() == T0 + timedelta(minutes=1)


class TestTransaction:
    def test_save_and_load_round_trip(self, registry: Registry) -> None:
        contact = _contact(
            statuses=frozenset({StatusValue.PENDING_DELETE}),
            transfer=TransferData(
                status=TransferStatus.PENDING,
                gaining_client_id="RegistrarB",
                losing_client_id="RegistrarA",
                request_time=T0,
                pending_expiration_time=T0 + timedelta(days=5),
            ),
        )
        with registry.transaction() as txn:
            txn.save(contact)
        with registry.snapshot() as view:
            assert view.load(contact.key) == contact

    def test_save_is_upsert(self, registry: Registry) -> None:
        with registry.transaction() as txn:
            txn.save(_contact())
        with registry.transaction() as txn:
            txn.save(_contact(sponsor_client_id="RegistrarB"))
        with registry.engine.connect() as conn:
            rows = conn.execute(select(contacts)).fetchall()
        assert len(rows) == 1
        assert rows[0].sponsor_client_id == "RegistrarB"

    def test_rollback_on_exception(self, registry: Registry) -> None:
        with pytest.raises(RuntimeError), registry.transaction() as txn:
            txn.save(_contact())
            raise RuntimeError("boom")
        with registry.snapshot() as view:
            assert view.load_contact("C-0001") is None

    def test_transaction_now_is_fixed_at_begin(
        self, registry: Registry, clock: FakeClock
    ) -> None:
        with registry.transaction() as txn:
            clock.advance(hours=1)
            assert txn.now == T0

    def test_after_commit_runs_only_on_commit(self, registry: Registry) -> None:
        calls: list[str] = []
        with registry.transaction() as txn:
            txn.after_commit(lambda: calls.append("committed"))
            assert calls == []
        assert calls == ["committed"]

        with pytest.raises(RuntimeError), registry.transaction() as txn:
            txn.after_commit(lambda: calls.append("rolled back"))
            raise RuntimeError("boom")
        assert calls == ["committed"]

    def test_repo_ids_are_sequential_across_transactions(self, registry: Registry) -> None:
        with registry.transaction() as txn:
            first = txn.next_repo_id(ResourceKind.CONTACT)
        with registry.transaction() as txn:
            second = txn.next_repo_id(ResourceKind.CONTACT)
        assert (first, second) == ("C-0001", "C-0002")

    def test_load_projects_by_default(self, registry: Registry, clock: FakeClock) -> None:
        contact = _contact(
            statuses=frozenset({StatusValue.PENDING_TRANSFER}),
            transfer=TransferData(
                status=TransferStatus.PENDING,
                gaining_client_id="RegistrarB",
                pending_expiration_time=T0 + timedelta(days=5),
            ),
        )
        with registry.transaction() as txn:
            txn.save(contact)
        clock.advance(days=6)
        with registry.snapshot() as view:
            projected = view.load(contact.key)
            raw = view.load(contact.key, project=False)
        assert projected.sponsor_client_id == "RegistrarB"
        assert raw.sponsor_client_id == "RegistrarA"

    def test_host_load_projects_superordinate_transfer(
        self, registry: Registry, clock: FakeClock
    ) -> None:
        host = Host(
            repo_id="H-0001",
            host_name="ns1.d-0001.tld",
            sponsor_client_id="RegistrarA",
            creation_time=T0,
            update_time=T0,
            superordinate_domain="D-0001",
            last_superordinate_change=T0,
        )
        domain = _domain(
            "D-0001",
            sponsor_client_id="RegistrarB",
            last_transfer_time=T0 + timedelta(days=1),
        )
        with registry.transaction() as txn:
            txn.save(domain, host)
        clock.advance(days=2)
        with registry.snapshot() as view:
            assert view.load(host.key).sponsor_client_id == "RegistrarB"


class TestAuditRecords:
    def test_history_and_poll_messages(self, registry: Registry) -> None:
        key = ResourceKey(ResourceKind.CONTACT, "C-0001")
        with registry.transaction() as txn:
            entry_id = txn.add_history_entry(key, HistoryType.CONTACT_DELETE, "RegistrarA")
            txn.add_poll_message("RegistrarA", "Deleted contact 123.", history_entry_id=entry_id)
        with registry.snapshot() as view:
            (entry,) = view.list_history(key)
            (message,) = view.list_poll_messages("RegistrarA")
            assert view.list_poll_messages("RegistrarB") == []
        assert entry["type"] == HistoryType.CONTACT_DELETE
        assert entry["modification_time"] == T0
        assert message["history_entry_id"] == entry_id
        assert message["event_time"] == T0


class TestForeignKeyIndex:
    def test_resolve_live_and_superseded(self, registry: Registry, clock: FakeClock) -> None:
        contact = _contact()
        with registry.transaction() as txn:
            txn.save(contact)
            txn.index_foreign_key(contact)
        with registry.transaction() as txn:
            assert txn.resolve_foreign_key(ResourceKind.CONTACT, contact.foreign_key) == "C-0001"
            txn.mark_foreign_key_superseded(contact, txn.now + timedelta(minutes=1))
        with registry.snapshot() as view:
            assert view.resolve_foreign_key(ResourceKind.CONTACT, contact.foreign_key) == "C-0001"
        clock.advance(minutes=1)
        with registry.snapshot() as view:
            assert view.resolve_foreign_key(ResourceKind.CONTACT, contact.foreign_key) is None

    def test_unknown_foreign_key(self, registry: Registry) -> None:
        with registry.snapshot() as view:
            assert view.resolve_foreign_key(ResourceKind.HOST, "ns9.nowhere.tld") is None


class TestDomainShards:
    def test_no_domains_no_shards(self, registry: Registry) -> None:
        assert registry.domain_shards(8) == []

    def test_shards_cover_every_domain_once(self, registry: Registry) -> None:
        domains = [_domain(f"D-{i:04d}") for i in range(1, 8)]
        with registry.transaction() as txn:
            txn.save(*domains)
        shards = registry.domain_shards(3)
        assert [len(s.domain_ids) for s in shards] == [3, 2, 2]
        read = [d.repo_id for shard in shards for d in shard.read()]
        assert read == [d.repo_id for d in domains]

    def test_shard_count_capped_by_domains(self, registry: Registry) -> None:
        with registry.transaction() as txn:
            txn.save(_domain("D-0001"), _domain("D-0002"))
        shards = registry.domain_shards(8)
        assert len(shards) == 2
        assert {s.name for s in shards} == {"domains[0]", "domains[1]"}
