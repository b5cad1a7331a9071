"""Command: read a client's poll messages."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from refsweep.commands._base import RefsweepCommand

if TYPE_CHECKING:
    from refsweep.commands._context import AppContext


@click.command(cls=RefsweepCommand, examples="  refsweep poll RegistrarA")
@click.argument("client_id")
@click.pass_obj
def poll(app: AppContext, client_id: str) -> None:
    """List the messages queued for CLIENT_ID."""
    from refsweep.services.poll import PollService

    app.emit(PollService(app.registry).list_messages(client_id))
