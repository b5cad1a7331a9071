"""Tests for ResourceKey parsing and formatting."""

import pytest

from refsweep.domain.errors import DecodeError, InvalidResourceKey
from refsweep.domain.keys import ResourceKey
from refsweep.domain.types import ResourceKind


class TestResourceKey:
    def test_parse_contact(self) -> None:
        key = ResourceKey.parse("contact:C-0001")
        assert key == ResourceKey(ResourceKind.CONTACT, "C-0001")

    def test_str_round_trips(self) -> None:
        key = ResourceKey(ResourceKind.HOST, "H-0007")
        assert str(key) == "host:H-0007"
        assert ResourceKey.parse(str(key)) == key

    def test_repo_id_may_contain_colon(self) -> None:
        assert ResourceKey.parse("host:a:b").repo_id == "a:b"

    @pytest.mark.parametrize("raw", ["", "contact", "contact:", ":C-0001"])
    def test_malformed(self, raw: str) -> None:
        with pytest.raises(InvalidResourceKey):
            ResourceKey.parse(raw)

    def test_unknown_kind(self) -> None:
        with pytest.raises(InvalidResourceKey, match="Unknown resource kind"):
            ResourceKey.parse("registrar:R-1")

    def test_invalid_key_is_a_decode_error(self) -> None:
        assert issubclass(InvalidResourceKey, DecodeError)

    def test_hashable_and_ordered(self) -> None:
        a = ResourceKey(ResourceKind.CONTACT, "C-0002")
        b = ResourceKey(ResourceKind.CONTACT, "C-0001")
        assert sorted([a, b]) == [b, a]
        assert len({a, ResourceKey.parse("contact:C-0002")}) == 1

    def test_plural(self) -> None:
        assert ResourceKind.CONTACT.plural == "contacts"
        assert ResourceKind.HOST.plural == "hosts"
