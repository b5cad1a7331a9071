"""Per-invocation state handed to every command through ``ctx.obj``."""

from __future__ import annotations

from functools import cached_property
from typing import TYPE_CHECKING

import click

from refsweep.config.logging import configure_logging
from refsweep.output.formatters import OutputSettings, format_result
from refsweep.services.telemetry import enable_telemetry

if TYPE_CHECKING:
    from refsweep.config.settings import RefsweepSettings
    from refsweep.infrastructure.registry import Registry
    from refsweep.services.result import ServiceResult


class AppContext:
    """Settings, output mode and a registry opened only when a command needs it.

    ``--help`` and ``--version`` never reach :attr:`registry`, so they
    never create a database.
    """

    def __init__(self, settings: RefsweepSettings) -> None:
        self.settings = settings
        self.output = OutputSettings(
            json_output=settings.json_output,
            quiet=settings.quiet,
            verbose=settings.verbose,
        )
        configure_logging(verbose=settings.verbose, log_json=settings.log_json)
        if settings.verbose:
            enable_telemetry()

    @cached_property
    def registry(self) -> Registry:
        from refsweep.infrastructure.registry import Registry

        registry = Registry(self.settings)
        registry.init_plugins()
        return registry

    def close(self) -> None:
        registry = self.__dict__.pop("registry", None)
        if registry is not None:
            registry.close()

    def emit(self, result: ServiceResult) -> None:
        """Print *result*; a failed result goes to stderr and exits with status 1.

        Warnings go to stderr as ``WARNING:`` lines except in JSON mode,
        where they are already part of the document.
        """
        text = format_result(result, settings=self.output)
        if not result.ok:
            click.echo(text, err=True)
            raise SystemExit(1)
        click.echo(text)
        if self.output.json_output:
            return
        for warning in result.warnings:
            click.echo(f"WARNING: {warning}", err=True)
