"""Extension layer: plugin system via pluggy.

INVARIANT: Plugin failures are warnings, never errors.
"""

from refsweep.plugins.hookspecs import hookimpl
from refsweep.plugins.manager import PluginManager

__all__ = ["PluginManager", "hookimpl"]
