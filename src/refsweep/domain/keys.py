"""Resource keys: the ``<kind>:<repo id>`` identity used on work items."""

from __future__ import annotations

from dataclasses import dataclass

from refsweep.domain.errors import InvalidResourceKey
from refsweep.domain.types import ResourceKind


@dataclass(frozen=True, order=True)
class ResourceKey:
    """Kind-tagged repository identity of a resource.

    Examples:
        >>> ResourceKey.parse("contact:C-0001")
        ResourceKey(kind=<ResourceKind.CONTACT: 'contact'>, repo_id='C-0001')
        >>> str(ResourceKey(ResourceKind.HOST, "H-0002"))
        'host:H-0002'
    """

    kind: ResourceKind
    repo_id: str

    def __str__(self) -> str:
        return f"{self.kind}:{self.repo_id}"

    @classmethod
    def parse(cls, raw: str) -> ResourceKey:
        """Parse the string form written into work item parameters.

        Raises:
            InvalidResourceKey: If *raw* is not ``<kind>:<repo id>`` with a known kind.
        """
        kind, sep, repo_id = raw.partition(":")
        if not sep or not repo_id:
            msg = f"Malformed resource key: {raw!r}"
            raise InvalidResourceKey(msg)
        try:
            return cls(ResourceKind(kind), repo_id)
        except ValueError as exc:
            msg = f"Unknown resource kind in key: {raw!r}"
            raise InvalidResourceKey(msg) from exc
