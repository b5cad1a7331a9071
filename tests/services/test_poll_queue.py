"""Tests for PollService and QueueService."""

from datetime import timedelta

from refsweep.infrastructure.registry import Registry
from refsweep.services.deletion import AsyncDeletionService
from refsweep.services.poll import PollService
from refsweep.services.queue import QueueService
from tests.conftest import FakeClock
from tests.helpers import create_contact, request_delete


class TestPollService:
    def test_empty(self, registry: Registry) -> None:
        result = PollService(registry).list_messages("RegistrarA")
        assert result.ok
        assert result.data == {"client_id": "RegistrarA", "count": 0, "items": []}

    def test_lists_sweep_outcome(self, registry: Registry, clock: FakeClock) -> None:
        create_contact(registry, "123")
        request_delete(registry, "contact", "123")
        clock.advance(minutes=1)
        AsyncDeletionService(registry).run()

        result = PollService(registry).list_messages("RegistrarA")

        assert result.data["count"] == 1
        (item,) = result.data["items"]
        assert item["message"] == "Deleted contact 123."
        assert item["event_time"] == registry.now().isoformat()
        assert PollService(registry).list_messages("RegistrarB").data["count"] == 0


class TestQueueService:
    def test_lists_unleased_item(self, registry: Registry) -> None:
        create_contact(registry, "123")
        key = request_delete(registry, "contact", "123")

        result = QueueService(registry).list_items()

        assert result.ok
        assert result.data["count"] == 1
        (item,) = result.data["items"]
        assert item["params"]["resourceKey"] == str(key)
        assert item["leased"] is False
        assert item["lease_count"] == 0
        assert result.data["dns_pending"] == []

    def test_reports_active_lease(self, registry: Registry, clock: FakeClock) -> None:
        create_contact(registry, "123")
        request_delete(registry, "contact", "123")
        registry.queue.lease(max_count=10, lease_duration=timedelta(minutes=5), now=clock())

        (item,) = QueueService(registry).list_items().data["items"]
        assert item["leased"] is True
        assert item["lease_count"] == 1

        clock.advance(minutes=10)
        (item,) = QueueService(registry).list_items().data["items"]
        assert item["leased"] is False
