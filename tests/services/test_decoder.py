"""Tests for decoding leased work items into deletion requests."""

import pytest

from refsweep.domain.errors import DecodeError, InvalidResourceKey
from refsweep.domain.keys import ResourceKey
from refsweep.domain.types import ResourceKind
from refsweep.infrastructure.registry import Registry
from refsweep.services.decoder import decode_work_item
from tests.conftest import FakeClock
from tests.helpers import contact_key, create_contact, create_domain, enqueue, request_delete


def _decode(registry: Registry, item):  # type: ignore[no-untyped-def]
    with registry.snapshot() as view:
        return decode_work_item(view, item)


class TestDecodeWorkItem:
    def test_valid_item(self, registry: Registry, clock: FakeClock) -> None:
        create_contact(registry, "123")
        clock.advance(minutes=1)
        key = request_delete(registry, "contact", "123", "RegistrarA")
        (item,) = registry.queue.list_items()

        request = _decode(registry, item)

        assert request.key == key
        assert request.requesting_client_id == "RegistrarA"
        assert request.is_superuser is False
        assert request.last_update_time == registry.now()
        assert request.task == item

    @pytest.mark.parametrize("flag", ["true", "TRUE", "True"])
    def test_superuser_flag_is_case_insensitive(self, registry: Registry, flag: str) -> None:
        create_contact(registry, "123")
        request_delete(registry, "contact", "123")
        (queued,) = registry.queue.list_items()
        item = enqueue(
            registry,
            resourceKey=queued.params["resourceKey"],
            requestingClientId="admin",
            isSuperuser=flag,
        )
        assert _decode(registry, item).is_superuser is True

    def test_missing_resource_key(self, registry: Registry) -> None:
        item = enqueue(registry, requestingClientId="RegistrarA", isSuperuser="false")
        with pytest.raises(DecodeError, match="not specified"):
            _decode(registry, item)

    def test_malformed_resource_key(self, registry: Registry) -> None:
        item = enqueue(
            registry, resourceKey="garbage", requestingClientId="A", isSuperuser="false"
        )
        with pytest.raises(InvalidResourceKey):
            _decode(registry, item)

    def test_domain_key_is_rejected(self, registry: Registry) -> None:
        repo_id = create_domain(registry, "example.tld")
        item = enqueue(
            registry,
            resourceKey=str(ResourceKey(ResourceKind.DOMAIN, repo_id)),
            requestingClientId="RegistrarA",
            isSuperuser="false",
        )
        with pytest.raises(DecodeError, match="Cannot delete a domain"):
            _decode(registry, item)

    def test_missing_resource(self, registry: Registry) -> None:
        item = enqueue(
            registry,
            resourceKey="contact:C-9999",
            requestingClientId="RegistrarA",
            isSuperuser="false",
        )
        with pytest.raises(DecodeError, match="doesn't exist"):
            _decode(registry, item)

    def test_resource_not_pending_delete(self, registry: Registry) -> None:
        repo_id = create_contact(registry, "123")
        item = enqueue(
            registry,
            resourceKey=str(contact_key(repo_id)),
            requestingClientId="RegistrarA",
            isSuperuser="false",
        )
        with pytest.raises(DecodeError, match="PENDING_DELETE"):
            _decode(registry, item)

    @pytest.mark.parametrize("missing", ["requestingClientId", "isSuperuser"])
    def test_missing_parameter(self, registry: Registry, missing: str) -> None:
        create_contact(registry, "123")
        key = request_delete(registry, "contact", "123")
        params = {
            "resourceKey": str(key),
            "requestingClientId": "RegistrarA",
            "isSuperuser": "false",
        }
        del params[missing]
        item = enqueue(registry, **params)
        with pytest.raises(DecodeError, match="not specified"):
            _decode(registry, item)
