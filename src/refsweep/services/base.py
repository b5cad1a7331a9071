"""Shared plumbing for the service classes."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from refsweep.infrastructure.registry import Registry

logger = logging.getLogger(__name__)


class BaseService:
    """Holds the :class:`Registry` a service reads and writes.

    Subclasses open their own transactions; ``_dispatch_event`` is the only
    way they reach plugins.
    """

    def __init__(self, registry: Registry) -> None:
        self._registry = registry

    def _dispatch_event(self, hook_name: str, payload: dict[str, Any], warnings: list[str]) -> None:
        """Fire *hook_name* with *payload* if plugins are loaded.

        A raising hook adds an entry to *warnings* and is otherwise ignored.
        """
        manager = self._registry.plugin_manager
        if manager is None:
            return
        caller = getattr(manager.hook, hook_name)
        try:
            caller(**payload)
        except Exception:
            logger.debug("Plugin hook failed for %s", hook_name, exc_info=True)
            warnings.append(f"Plugin hook failed for {hook_name}")
