"""Subcommand modules for refsweep.

``register_commands()`` defers imports to keep ``refsweep --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the ``create`` group and the standalone commands."""
    from refsweep.commands.create import create
    from refsweep.commands.delete import delete
    from refsweep.commands.poll import poll
    from refsweep.commands.queue import queue
    from refsweep.commands.sweep import sweep

    cli.add_command(create)
    cli.add_command(delete)
    cli.add_command(sweep)
    cli.add_command(queue)
    cli.add_command(poll)
