"""``RefsweepSettings``: the one settings object the CLI builds per run.

Values are layered, highest first: CLI flags, ``REFSWEEP_*`` environment
variables (``__`` separates nested names, e.g.
``REFSWEEP_QUEUE__LEASE_MINUTES``), ``refsweep.toml``, model defaults.
"""

from __future__ import annotations

import tomllib
from contextvars import ContextVar
from pathlib import Path
from typing import Any

import click
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from refsweep.config.discovery import find_config, load_config
from refsweep.config.models import (
    BatchConfig,
    DnsConfig,
    PluginsConfig,
    QueueConfig,
    RegistryConfig,
)

# Config file for the settings object currently being built by from_cli().
_building_from: ContextVar[Path | None] = ContextVar("refsweep_settings_toml", default=None)


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Only the keys actually present in the TOML file, already validated."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._values: dict[str, Any] = {}
        if toml_path is None or not toml_path.is_file():
            return
        try:
            self._values = load_config(toml_path).model_dump(exclude_unset=True)
        except tomllib.TOMLDecodeError as exc:
            raise click.ClickException(f"Invalid TOML in {toml_path}: {exc}") from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return self._values.get(field_name), field_name, field_name in self._values

    def __call__(self) -> dict[str, Any]:
        return dict(self._values)


class RefsweepSettings(BaseSettings):
    """Frozen settings for one CLI invocation.

    ``registry_root`` is the directory holding ``refsweep.toml`` (or the
    working directory when there is none); relative paths in the
    ``[registry]`` section resolve against it.
    """

    model_config = SettingsConfigDict(
        frozen=True,
        env_prefix="REFSWEEP_",
        env_nested_delimiter="__",
    )

    registry_root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    queue: QueueConfig = Field(default_factory=QueueConfig)
    batch: BatchConfig = Field(default_factory=BatchConfig)
    dns: DnsConfig = Field(default_factory=DnsConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        toml_source = TomlSettingsSource(settings_cls, _building_from.get())
        return init_settings, env_settings, toml_source

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        registry_root: Path | None = None,
        **cli_flags: Any,
    ) -> RefsweepSettings:
        """Resolve the config file and registry root, then build settings.

        An explicit *config_path* that does not exist is treated as no
        config. Without *registry_root* the root is the config file's
        directory.
        """
        if config_path:
            candidate = Path(config_path)
            toml_path = candidate if candidate.is_file() else None
        else:
            toml_path = find_config(registry_root)

        if registry_root is None:
            registry_root = toml_path.parent if toml_path is not None else Path.cwd()

        token = _building_from.set(toml_path)
        try:
            return cls(registry_root=registry_root, config_path=toml_path, **cli_flags)
        finally:
            _building_from.reset(token)
