"""Shared pytest fixtures for refsweep tests."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from click.testing import CliRunner

from refsweep.config.settings import RefsweepSettings
from refsweep.infrastructure.registry import Registry

T0 = datetime(2026, 1, 5, 12, 0, tzinfo=UTC)


class FakeClock:
    """Settable clock injected into the registry."""

    def __init__(self, start: datetime = T0) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> RefsweepSettings:
    """Settings rooted at a temp directory, isolated from the environment."""
    monkeypatch.delenv("REFSWEEP_CONFIG", raising=False)
    return RefsweepSettings.from_cli(registry_root=tmp_path)


@pytest.fixture
def registry(settings: RefsweepSettings, clock: FakeClock) -> Iterator[Registry]:
    """Registry on a fresh SQLite file, driven by the fake clock."""
    r = Registry(settings, clock=clock)
    try:
        yield r
    finally:
        r.close()


@pytest.fixture
def _isolated_registry(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run CLI tests with the temp directory as CWD."""
    monkeypatch.delenv("REFSWEEP_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def _restore_root_handlers() -> Iterator[None]:
    """CLI invocations reconfigure logging onto the runner's streams."""
    root = logging.getLogger()
    pkg = logging.getLogger("refsweep")
    handlers = root.handlers[:]
    levels = (root.level, pkg.level)
    yield
    root.handlers = handlers
    root.setLevel(levels[0])
    pkg.setLevel(levels[1])
