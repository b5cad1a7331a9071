"""Command group: seed contacts, hosts, and domains."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from refsweep.commands._base import RefsweepGroup
from refsweep.services.create import CreateService

if TYPE_CHECKING:
    from refsweep.commands._context import AppContext

_CREATE_EXAMPLES = """\
  refsweep create contact jd1234 --sponsor RegistrarA
  refsweep create domain example.tld --sponsor RegistrarA --contact jd1234
  refsweep create host ns1.example.tld --sponsor RegistrarA --superordinate example.tld"""


@click.group(cls=RefsweepGroup, examples=_CREATE_EXAMPLES)
def create() -> None:
    """Create contacts, hosts, and domains."""


@create.command(examples="  refsweep create contact jd1234 --sponsor RegistrarA")
@click.argument("contact_id")
@click.option("--sponsor", required=True, help="Sponsoring client id.")
@click.pass_obj
def contact(app: AppContext, contact_id: str, sponsor: str) -> None:
    """Create a contact."""
    app.emit(CreateService(app.registry).create_contact(contact_id, sponsor))


@create.command(
    examples="""\
  refsweep create host ns1.other.tld --sponsor RegistrarA
  refsweep create host ns1.example.tld --sponsor RegistrarA --superordinate example.tld"""
)
@click.argument("host_name")
@click.option("--sponsor", required=True, help="Sponsoring client id.")
@click.option("--superordinate", default=None, help="Parent domain name (in-bailiwick host).")
@click.pass_obj
def host(app: AppContext, host_name: str, sponsor: str, superordinate: str | None) -> None:
    """Create a host."""
    app.emit(
        CreateService(app.registry).create_host(
            host_name, sponsor, superordinate_domain=superordinate
        )
    )


@create.command(
    examples="""\
  refsweep create domain example.tld --sponsor RegistrarA
  refsweep create domain example.tld --sponsor RegistrarA -C jd1234 -n ns1.other.tld"""
)
@click.argument("domain_name")
@click.option("--sponsor", required=True, help="Sponsoring client id.")
@click.option("-C", "--contact", "contacts", multiple=True, help="Contact id (repeatable).")
@click.option("-n", "--nameserver", "nameservers", multiple=True, help="Host name (repeatable).")
@click.pass_obj
def domain(
    app: AppContext,
    domain_name: str,
    sponsor: str,
    contacts: tuple[str, ...],
    nameservers: tuple[str, ...],
) -> None:
    """Create a domain referencing contacts and nameservers."""
    app.emit(
        CreateService(app.registry).create_domain(
            domain_name, sponsor, contacts=contacts, nameservers=nameservers
        )
    )
