"""Rich consoles that render into a string.

Formatters build their output on a buffer-backed console and return the
text, so the CLI decides where it goes. Without a TTY Rich emits no
escape codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

DEFAULT_WIDTH = 120

_OUTCOMES = ("deleted", "not_deleted", "errored")

REFSWEEP_THEME = Theme(
    {
        "rs.ok": "bold green",
        "rs.error": "bold red",
        "rs.warning": "bold yellow",
        "rs.op": "bold cyan",
        "rs.key": "dim",
        "rs.id": "bold blue",
        "rs.counter": "magenta",
        "rs.outcome.deleted": "green",
        "rs.outcome.not_deleted": "yellow",
        "rs.outcome.errored": "red",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    return Console(
        file=StringIO(),
        theme=REFSWEEP_THEME,
        no_color=no_color,
        highlight=False,
        width=width or DEFAULT_WIDTH,
    )


def get_output(console: Console) -> str:
    """Text written so far to a console made by :func:`create_console`."""
    buffer = console.file
    if not isinstance(buffer, StringIO):
        raise TypeError("console does not render to a string buffer")
    return buffer.getvalue()


def style_for_outcome(outcome: str) -> str:
    """Theme style for a sweep outcome name; empty for anything else."""
    return f"rs.outcome.{outcome}" if outcome in _OUTCOMES else ""
