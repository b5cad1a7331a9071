"""``refsweep`` entry point: global flags, settings, and the command tree."""

from __future__ import annotations

from pathlib import Path

import click

from refsweep import __version__
from refsweep.commands import register_commands
from refsweep.commands._base import RefsweepGroup
from refsweep.commands._context import AppContext
from refsweep.config.settings import RefsweepSettings

_ROOT_EXAMPLES = """\
  refsweep create contact jd1234 --sponsor RegistrarA
  refsweep delete contact jd1234 --client RegistrarA
  refsweep sweep
  refsweep --json poll RegistrarA
  refsweep --root /srv/registry queue"""


@click.group(cls=RefsweepGroup, examples=_ROOT_EXAMPLES, invoke_without_command=True)
@click.version_option(version=__version__, prog_name="refsweep")
@click.option("--json", "json_output", is_flag=True, help="Print results as JSON.")
@click.option("-q", "--quiet", is_flag=True, help="Print ids or OK/ERROR lines only.")
@click.option("-v", "--verbose", is_flag=True, help="Debug logs and timing spans.")
@click.option("--log-json", is_flag=True, help="Write logs to stderr as JSON lines.")
@click.option("-c", "--config", "config_path", default=None, help="Config file to use.")
@click.option(
    "--root",
    "registry_root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Registry directory (default: where refsweep.toml is found, else CWD).",
)
@click.pass_context
def cli(
    ctx: click.Context, config_path: str | None, registry_root: Path | None, **flags: bool
) -> None:
    """refsweep: reference-checked asynchronous deletion of contacts and hosts."""
    app = AppContext(
        RefsweepSettings.from_cli(
            config_path=config_path, registry_root=registry_root, **flags
        )
    )
    ctx.obj = app
    ctx.call_on_close(app.close)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
