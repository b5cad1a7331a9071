"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults live here, ``refsweep.toml`` only holds
overrides.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class RegistryConfig(BaseModel):
    """[registry] section."""

    model_config = {"frozen": True}

    name: str = "registry"
    database: str = ".refsweep/registry.db"  # relative to the registry root


class QueueConfig(BaseModel):
    """[queue] section."""

    model_config = {"frozen": True}

    name: str = "async-delete-pull"
    lease_minutes: int = Field(default=20, ge=1)
    max_lease_count: int = Field(default=1000, ge=1)
    bad_item_lease_hours: int = Field(default=24, ge=1)


class BatchConfig(BaseModel):
    """[batch] section."""

    model_config = {"frozen": True}

    job_name: str = "Check for EPP resource references and then delete"
    shard_count: int = Field(default=8, ge=1)
    max_workers: int = Field(default=4, ge=1)


class DnsConfig(BaseModel):
    """[dns] section."""

    model_config = {"frozen": True}

    enabled: bool = True


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    enabled: bool = True
    local_dir: str = ".refsweep/plugins"


class RefsweepConfig(BaseModel):
    """Every ``refsweep.toml`` section, for loading without env or CLI overrides."""

    model_config = {"frozen": True}

    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    queue: QueueConfig = Field(default_factory=QueueConfig)
    batch: BatchConfig = Field(default_factory=BatchConfig)
    dns: DnsConfig = Field(default_factory=DnsConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)
