"""Human-readable rendering of ServiceResult, one renderer per operation.

Renderers draw on a buffer-backed console (see :mod:`refsweep.output.console`)
and are looked up by ``result.op``; operations without a dedicated
renderer get a flat ``key: value`` listing.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from refsweep.output.console import create_console, get_output, style_for_outcome

if TYPE_CHECKING:
    from rich.console import Console

    from refsweep.services.result import ServiceResult

    Renderer = Callable[[ServiceResult, Console, bool], None]

_ID_KEYS = frozenset({"repo_id", "resource", "job_id"})
_MUTATION_KEYS = ("kind", "repo_id", "name", "sponsor", "resource", "status", "work_item_id")
_SWEEP_KEYS = ("job_id", "status", "leased", "requests", "rejected")
_SLOW_MS = 1000
_NOTICEABLE_MS = 100


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    console = create_console()
    if not result.ok:
        _render_error(result, console, verbose)
    else:
        _RENDERERS.get(result.op, _render_generic)(result, console, verbose)
    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """``--quiet`` output: one id per listed item, or a bare OK/ERROR line."""
    if not result.ok:
        message = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op}: {message}"
    items = result.data.get("items") or result.data.get("results")
    if isinstance(items, list):
        ids = [ident for ident in map(_item_id, items) if ident]
        if ids:
            return "\n".join(ids)
    return f"OK: {result.op}"


def _item_id(item: Any) -> str:
    if not isinstance(item, dict):
        return ""
    value = item.get("id", item.get("resource"))
    return "" if value is None else str(value)


def _header(console: Console, result: ServiceResult) -> None:
    console.print(Text.assemble(("OK", "rs.ok"), " ", (result.op, "rs.op")))


def _fields(console: Console, data: dict[str, Any], keys: Iterable[str]) -> None:
    for key in keys:
        if key not in data:
            continue
        value = data[key]
        if isinstance(value, (dict, list)):
            value = json.dumps(value, separators=(",", ":"))
        style = "rs.id" if key in _ID_KEYS or key.endswith("_id") else ""
        console.print(Text.assemble((f"  {key}: ", "rs.key"), (str(value), style)))


def _table(*columns: str) -> Table:
    table = Table(show_header=True, pad_edge=False)
    for column in columns:
        table.add_column(column)
    return table


def _span_label(span: dict[str, Any]) -> Text:
    duration = float(span.get("duration_ms", 0.0))
    if duration > _SLOW_MS:
        style = "bold red"
    elif duration > _NOTICEABLE_MS:
        style = "yellow"
    else:
        style = "dim"
    label = Text.assemble((f"{duration:.2f}ms", style), f"  {span.get('name', '?')}")
    annotations = span.get("annotations")
    if annotations:
        label.append("  (" + ", ".join(f"{k}={v}" for k, v in annotations.items()) + ")")
    return label


def _span_tree(span: dict[str, Any], tree: Tree | None = None) -> Tree:
    node = Tree(_span_label(span)) if tree is None else tree.add(_span_label(span))
    for child in span.get("children", []):
        _span_tree(child, node)
    return node


def _render_meta(console: Console, result: ServiceResult) -> None:
    if not result.meta:
        return
    console.print()
    console.print(Text("  meta:", style="dim"))
    for key, value in result.meta.items():
        if key == "telemetry":
            console.print(_span_tree(value))
        else:
            console.print(f"    {key}: {value}")


def _render_error(result: ServiceResult, console: Console, verbose: bool) -> None:
    error = result.error
    message = error.message if error else "Unknown error"
    console.print(Text.assemble(("ERROR", "rs.error"), " ", (result.op, "rs.op"), ": ", message))
    if verbose and error and error.detail:
        console.print(Text("  detail:", style="dim"))
        for key, value in error.detail.items():
            console.print(f"    {key}: {value}")


def _render_mutation(result: ServiceResult, console: Console, verbose: bool) -> None:
    _header(console, result)
    _fields(console, result.data, _MUTATION_KEYS)
    if verbose:
        _render_meta(console, result)


def _render_sweep(result: ServiceResult, console: Console, verbose: bool) -> None:
    data = result.data
    _header(console, result)
    _fields(console, data, _SWEEP_KEYS)

    if rows := data.get("results", []):
        table = _table("Resource", "Outcome", "Message", *(["Refs"] if verbose else []))
        for row in rows:
            outcome = str(row.get("outcome", ""))
            cells: list[Any] = [
                Text(str(row.get("resource", "")), style="rs.id"),
                Text(outcome, style=style_for_outcome(outcome)),
                str(row.get("message", "")),
            ]
            if verbose:
                cells.append(str(row.get("references", 0)))
            table.add_row(*cells)
        console.print()
        console.print(table)

    if counters := data.get("counters", {}):
        console.print()
        console.print(Text("  counters:", style="rs.key"))
        for name, count in counters.items():
            console.print(Text.assemble((f"    {count:>6}", "rs.counter"), f"  {name}"))
    if verbose:
        _render_meta(console, result)


def _render_poll(result: ServiceResult, console: Console, verbose: bool) -> None:
    items = result.data.get("items", [])
    table = _table("ID", "Time", "Message")
    for item in items:
        table.add_row(
            Text(str(item.get("id", "")), style="rs.id"),
            Text(str(item.get("event_time", "")), style="dim"),
            item["message"],
        )
    console.print(table)
    console.print(f"\n{result.data.get('count', len(items))} messages")


def _render_queue(result: ServiceResult, console: Console, verbose: bool) -> None:
    items = result.data.get("items", [])
    extra = ["Lease expires"] if verbose else []
    table = _table("ID", "Resource", "Client", "Leased", "Leases", *extra)
    for item in items:
        params = item.get("params", {})
        cells = [
            str(item.get("id", "")),
            str(params.get("resourceKey", "")),
            str(params.get("requestingClientId", "")),
            "yes" if item.get("leased") else "no",
            str(item.get("lease_count", 0)),
        ]
        if verbose:
            cells.append(str(item.get("lease_expires") or ""))
        table.add_row(*cells)
    console.print(table)
    console.print(f"\n{result.data.get('count', len(items))} items")
    if dns_pending := result.data.get("dns_pending"):
        console.print(f"DNS refresh pending: {', '.join(dns_pending)}")


def _render_generic(result: ServiceResult, console: Console, verbose: bool) -> None:
    _header(console, result)
    _fields(console, result.data, result.data)
    if verbose:
        _render_meta(console, result)


_RENDERERS: dict[str, Renderer] = {
    "create_contact": _render_mutation,
    "create_host": _render_mutation,
    "create_domain": _render_mutation,
    "request_delete": _render_mutation,
    "delete_contacts_and_hosts": _render_sweep,
    "list_messages": _render_poll,
    "list_queue": _render_queue,
}
