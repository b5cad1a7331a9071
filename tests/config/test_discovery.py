"""Tests for refsweep.toml discovery and loading."""

from pathlib import Path

import pytest

from refsweep.config.discovery import CONFIG_ENV_VAR, find_config, load_config


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)


class TestFindConfig:
    def test_walks_up(self, tmp_path: Path) -> None:
        config = tmp_path / "refsweep.toml"
        config.write_text("")
        nested = tmp_path / "x" / "y"
        nested.mkdir(parents=True)
        assert find_config(nested) == config.resolve()

    def test_none_when_absent(self, tmp_path: Path) -> None:
        assert find_config(tmp_path) is None

    def test_env_var_wins(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "refsweep.toml").write_text("")
        other = tmp_path / "elsewhere.toml"
        other.write_text("")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(other))
        assert find_config(tmp_path) == other

    def test_dangling_env_var(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "refsweep.toml").write_text("")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "missing.toml"))
        assert find_config(tmp_path) is None


class TestLoadConfig:
    def test_defaults_without_file(self, tmp_path: Path) -> None:
        config = load_config(cwd=tmp_path / "nowhere")
        assert config.queue.lease_minutes == 20

    def test_sections(self, tmp_path: Path) -> None:
        path = tmp_path / "refsweep.toml"
        path.write_text('[registry]\nname = "test"\n[plugins]\nenabled = false\n')
        config = load_config(path)
        assert config.registry.name == "test"
        assert config.plugins.enabled is False
        assert config.batch.shard_count == 8
