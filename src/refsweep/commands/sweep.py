"""Command: run one asynchronous deletion sweep."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from refsweep.commands._base import RefsweepCommand

if TYPE_CHECKING:
    from refsweep.commands._context import AppContext


@click.command(
    cls=RefsweepCommand,
    examples="""\
  refsweep sweep
  refsweep --json sweep
  refsweep -v sweep""",
)
@click.pass_obj
def sweep(app: AppContext) -> None:
    """Lease queued deletions, check references, and delete or release each resource."""
    from refsweep.services.deletion import AsyncDeletionService

    app.emit(AsyncDeletionService(app.registry).run())
