"""Plugin discovery and hook dispatch.

Plugins come from two places:

- installed distributions advertising the ``refsweep.plugins`` entry point;
- ``*.py`` files in the registry's local plugin directory
  (``.refsweep/plugins/`` by default). Each class defining at least one
  ``@hookimpl`` method is instantiated and registered under its module name.

A plugin that fails to import or instantiate is logged and skipped.
"""

from __future__ import annotations

import importlib.util
import inspect
import logging
import sys
from collections.abc import Iterator
from pathlib import Path
from types import ModuleType

import pluggy

from refsweep.plugins.hookspecs import RefsweepHookSpec

PROJECT_NAME = "refsweep"
ENTRY_POINT_GROUP = "refsweep.plugins"
LOCAL_MODULE_PREFIX = "refsweep_local_plugin_"

logger = logging.getLogger(__name__)


def _defines_hooks(cls: type) -> bool:
    return any(
        callable(member) and getattr(member, f"{PROJECT_NAME}_impl", None)
        for name, member in inspect.getmembers(cls)
        if not name.startswith("_")
    )


def _load_module(path: Path) -> ModuleType | None:
    module_name = f"{LOCAL_MODULE_PREFIX}{path.stem}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        logger.warning("Cannot import local plugin %s", path)
        return None
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception:
        sys.modules.pop(module_name, None)
        logger.warning("Failed to load local plugin %s", path, exc_info=True)
        return None
    return module


def _plugin_classes(module: ModuleType) -> Iterator[type]:
    for _name, obj in inspect.getmembers(module, inspect.isclass):
        if obj.__module__ == module.__name__ and _defines_hooks(obj):
            yield obj


class PluginManager:
    """Wraps a :class:`pluggy.PluginManager` bound to the refsweep hook specs."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(RefsweepHookSpec)
        self._loaded = False

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    def discover_and_load(self, *, local_dir: Path | None = None) -> list[str]:
        """Load entry-point plugins, then local ones. Returns every registered name."""
        self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        self._instantiate_entry_point_classes()
        if local_dir is not None and local_dir.is_dir():
            for path in sorted(local_dir.glob("*.py")):
                if path.name.startswith("_"):
                    continue
                module = _load_module(path)
                if module is None:
                    continue
                for cls in _plugin_classes(module):
                    self._register_class(cls, module.__name__)
        self._loaded = True
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        name = name or type(plugin).__name__
        self._pm.register(plugin, name=name)
        logger.debug("Registered plugin %s", name)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    def list_plugin_names(self) -> list[str]:
        return [self._pm.get_name(p) or type(p).__name__ for p in self._pm.get_plugins()]

    def _register_class(self, cls: type, name: str) -> None:
        try:
            instance = cls()
        except Exception:
            logger.warning("Failed to instantiate plugin %s", cls.__qualname__, exc_info=True)
            return
        self.register_plugin(instance, name=name)

    def _instantiate_entry_point_classes(self) -> None:
        # pluggy registers an entry point's target as-is; hooks on a bare class have no self.
        for plugin in list(self._pm.get_plugins()):
            if inspect.isclass(plugin) and _defines_hooks(plugin):
                name = self._pm.get_name(plugin) or plugin.__name__
                self._pm.unregister(plugin)
                self._register_class(plugin, name)
