"""Command: request asynchronous deletion of a contact or host."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from refsweep.commands._base import RefsweepCommand

if TYPE_CHECKING:
    from refsweep.commands._context import AppContext


@click.command(
    cls=RefsweepCommand,
    examples="""\
  refsweep delete contact jd1234 --client RegistrarA
  refsweep delete host ns1.example.tld --client RegistrarA
  refsweep delete contact jd1234 --client admin --superuser""",
)
@click.argument("kind", type=click.Choice(["contact", "host"]))
@click.argument("external_id")
@click.option("--client", "client_id", required=True, help="Requesting client id.")
@click.option("--superuser", is_flag=True, help="Skip the sponsor check.")
@click.pass_obj
def delete(app: AppContext, kind: str, external_id: str, client_id: str, superuser: bool) -> None:
    """Mark a resource PENDING_DELETE and queue it for the next sweep."""
    from refsweep.services.request import DeletionRequestService

    app.emit(
        DeletionRequestService(app.registry).request_delete(
            kind, external_id, client_id, superuser=superuser
        )
    )
