"""Command: show the deletion queue."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from refsweep.commands._base import RefsweepCommand

if TYPE_CHECKING:
    from refsweep.commands._context import AppContext


@click.command(cls=RefsweepCommand, examples="  refsweep queue\n  refsweep --json queue")
@click.pass_obj
def queue(app: AppContext) -> None:
    """List queued work items and pending DNS refreshes."""
    from refsweep.services.queue import QueueService

    app.emit(QueueService(app.registry).list_items())
