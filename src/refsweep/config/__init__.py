"""Configuration: settings models, discovery, and logging setup."""

from refsweep.config.settings import RefsweepSettings

__all__ = ["RefsweepSettings"]
