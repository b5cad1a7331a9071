"""Tests for RefsweepSettings with the TOML source."""

from pathlib import Path

import click
import pytest

from refsweep.config.settings import RefsweepSettings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("REFSWEEP_CONFIG", "REFSWEEP_REGISTRY_ROOT", "REFSWEEP_QUEUE__LEASE_MINUTES"):
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    def test_all_defaults(self, tmp_path: Path) -> None:
        settings = RefsweepSettings.from_cli(registry_root=tmp_path)
        assert settings.registry_root == tmp_path
        assert settings.config_path is None
        assert settings.json_output is False
        assert settings.queue.name == "async-delete-pull"
        assert settings.queue.lease_minutes == 20
        assert settings.queue.bad_item_lease_hours == 24
        assert settings.batch.job_name == "Check for EPP resource references and then delete"
        assert settings.dns.enabled is True

    def test_frozen(self, tmp_path: Path) -> None:
        settings = RefsweepSettings.from_cli(registry_root=tmp_path)
        with pytest.raises(Exception):
            settings.quiet = True  # type: ignore[misc]


class TestTomlSource:
    def test_sparse_override(self, tmp_path: Path) -> None:
        (tmp_path / "refsweep.toml").write_text("[batch]\nshard_count = 2\n")
        settings = RefsweepSettings.from_cli(registry_root=tmp_path)
        assert settings.batch.shard_count == 2
        assert settings.batch.max_workers == 4
        assert settings.config_path == tmp_path / "refsweep.toml"

    def test_root_follows_discovered_config(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / "refsweep.toml").write_text("[dns]\nenabled = false\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)

        settings = RefsweepSettings.from_cli()

        assert settings.registry_root == tmp_path.resolve()
        assert settings.dns.enabled is False

    def test_explicit_config_path(self, tmp_path: Path) -> None:
        config = tmp_path / "custom.toml"
        config.write_text("[queue]\nmax_lease_count = 5\n")
        settings = RefsweepSettings.from_cli(config_path=str(config), registry_root=tmp_path)
        assert settings.queue.max_lease_count == 5

    def test_invalid_toml_is_click_error(self, tmp_path: Path) -> None:
        (tmp_path / "refsweep.toml").write_text("[queue\n")
        with pytest.raises(click.ClickException, match="Invalid TOML"):
            RefsweepSettings.from_cli(registry_root=tmp_path)


class TestPriority:
    def test_env_beats_toml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "refsweep.toml").write_text("[queue]\nlease_minutes = 5\n")
        monkeypatch.setenv("REFSWEEP_QUEUE__LEASE_MINUTES", "7")
        settings = RefsweepSettings.from_cli(registry_root=tmp_path)
        assert settings.queue.lease_minutes == 7

    def test_cli_flags_win(self, tmp_path: Path) -> None:
        settings = RefsweepSettings.from_cli(registry_root=tmp_path, verbose=True, quiet=True)
        assert settings.verbose is True
        assert settings.quiet is True
