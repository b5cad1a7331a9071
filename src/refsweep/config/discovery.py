"""Locating and reading ``refsweep.toml``.

A registry directory is recognized by the config file at its root, found
by searching the start directory and then each of its ancestors.
``REFSWEEP_CONFIG`` names a file explicitly and disables the search.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path

from refsweep.config.models import RefsweepConfig

CONFIG_FILENAME = "refsweep.toml"
CONFIG_ENV_VAR = "REFSWEEP_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Return the config file governing *start* (default: cwd), or None.

    A ``REFSWEEP_CONFIG`` value that is not an existing file means no config.
    """
    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        path = Path(explicit)
        return path if path.is_file() else None

    origin = (start or Path.cwd()).resolve()
    return next(
        (
            candidate
            for directory in (origin, *origin.parents)
            if (candidate := directory / CONFIG_FILENAME).is_file()
        ),
        None,
    )


def load_config(path: Path | None = None, cwd: Path | None = None) -> RefsweepConfig:
    """Validate the sections of *path* (or the discovered file) against the models."""
    path = path or find_config(cwd)
    if path is None:
        return RefsweepConfig()
    with path.open("rb") as fh:
        return RefsweepConfig.model_validate(tomllib.load(fh))
