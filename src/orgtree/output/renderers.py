"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO). The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from orgtree.output.console import create_console, get_output, style_for_kind

if TYPE_CHECKING:
    from rich.console import Console

    from orgtree.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode.

    List results print one id per line; single-node results print the id.
    """
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op}: {msg}"

    items = result.data.get("items")
    if isinstance(items, list):
        return "\n".join(str(item["id"]) for item in items if "id" in item)
    if "id" in result.data:
        return str(result.data["id"])
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    """Print the OK status line."""
    label = Text("OK", style="org.ok")
    op = Text(f"  {result.op}", style="org.op")
    console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="org.key")
    if key == "id" or key.endswith("_id"):
        v = Text(str(value), style="org.id")
    elif key == "name":
        v = Text(str(value), style="org.name")
    elif key == "kind":
        v = Text(str(value), style=style_for_kind(str(value)))
    else:
        v = Text(str(value))
    console.print(Text.assemble(k, v))


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print meta block including telemetry span tree (verbose only)."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="dim"))

    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


def _render_telemetry_tree(
    console: Console,
    span_data: dict[str, Any],
    indent: int = 4,
) -> None:
    """Render a hierarchical span tree with color-coded timing."""
    prefix = " " * indent
    name = span_data.get("name", "?")
    duration = span_data.get("duration_ms", 0.0)

    if duration > 1000:
        style = "bold red"
    elif duration > 100:
        style = "yellow"
    else:
        style = "dim"

    line = f"{prefix}[{style}]{duration:>8.2f}ms[/{style}]  {name}"
    annotations = span_data.get("annotations") or {}
    if annotations:
        line += "  (" + ", ".join(f"{k}={v}" for k, v in annotations.items()) + ")"
    console.print(line)

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


def _node_table(items: list[dict[str, Any]], *, with_kind: bool = True) -> Table:
    """Build a Rich Table of related nodes, nearest first."""
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Depth", style="org.depth", justify="right")
    table.add_column("ID", style="org.id", no_wrap=True)
    table.add_column("Name", style="org.name")
    if with_kind:
        table.add_column("Kind")

    for item in items:
        row: list[Any] = [
            str(item.get("depth", "")),
            str(item.get("id", "")),
            escape(str(item["name"])),
        ]
        if with_kind:
            kind = str(item.get("kind", ""))
            row.append(Text(kind, style=style_for_kind(kind)))
        table.add_row(*row)
    return table


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="org.error")
    op = Text(f"  {result.op}", style="org.op")
    code = Text(f" [{err.code}] " if err else " ")
    console.print(label, op, code, Text(msg))
    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


# ── Mutation renderers ────────────────────────────────────────────────


def _render_node_mutation(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    """Render create_group / create_user results."""
    _status_line(console, result)
    for key in ("id", "kind", "name", "email", "parent_id"):
        if result.data.get(key) is not None:
            _field(console, key, result.data[key])
    if verbose:
        _field(console, "created_at", result.data.get("created_at"))
        _render_meta(console, result)


def _render_link(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render add_user_to_group results."""
    _status_line(console, result)
    for key in ("user_id", "group_id", "edges_added"):
        _field(console, key, result.data.get(key))
    if verbose:
        _render_meta(console, result)


# ── Query renderers ───────────────────────────────────────────────────


def _render_node(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render get_node as a panel."""
    d = result.data
    lines = [f"kind: {d.get('kind')}"]
    if d.get("email"):
        lines.append(f"email: {d['email']}")
    lines.append(f"created: {d.get('created_at')}")
    if verbose:
        lines.append(f"updated: {d.get('updated_at')}")

    title = escape(f"{d.get('id', '?')} | {d.get('name', '')}")
    style = style_for_kind(str(d.get("kind", "")))
    console.print(Panel("\n".join(lines), title=title, border_style=style or "dim", expand=False))
    if verbose:
        _render_meta(console, result)


def _render_relatives(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render get_ancestors / get_descendants / get_user_organizations as a table."""
    items = result.data.get("items", [])
    count = result.data.get("count", len(items))
    noun = "organizations" if result.op == "get_user_organizations" else "nodes"
    if not items:
        console.print(f"No {noun} found for [org.id]{result.data.get('id')}[/org.id].")
    else:
        console.print(_node_table(items, with_kind=result.op != "get_user_organizations"))
        console.print(f"\n{count} {noun}")
    if verbose:
        _render_meta(console, result)


# ── Check renderer ────────────────────────────────────────────────────


def _render_check(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render check results with issues grouped by category."""
    d = result.data
    issues = d.get("issues", [])
    count = d.get("count", len(issues))
    summary = f"{d.get('nodes', 0)} nodes, {d.get('edges', 0)} closure rows"

    if count == 0:
        console.print(f"[org.ok]OK[/org.ok]  No issues found ({summary}).")
        return

    severity_styles = {"error": "org.error", "warning": "org.warning"}

    by_category: dict[str, list[dict[str, Any]]] = {}
    for issue in issues:
        by_category.setdefault(str(issue.get("category", "unknown")), []).append(issue)

    for cat, cat_issues in by_category.items():
        console.print(f"\n[bold]{cat}[/bold]")
        for issue in cat_issues:
            sev = str(issue.get("severity", "warning"))
            style = severity_styles.get(sev, "")
            prefix = f"[{style}]{sev}[/{style}]" if style else sev
            node_id = issue.get("node_id")
            nid = escape(f" [{node_id}]") if node_id else ""
            console.print(f"  {prefix}{nid}: {escape(str(issue.get('message', '')))}")

    console.print(
        f"\n{d.get('error_count', 0)} errors, {d.get('warning_count', 0)} warnings ({summary})"
    )


# ── Upgrade renderer ──────────────────────────────────────────────────


def _render_upgrade(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render upgrade/migration results."""
    _status_line(console, result)
    d = result.data
    for key in (
        "applied_count",
        "pending_count",
        "stamped",
        "current",
        "head",
        "backup_path",
        "message",
    ):
        if key in d and d[key] is not None:
            _field(console, key, d[key])
    if verbose and d.get("pending"):
        console.print()
        for p in d["pending"]:
            console.print(f"  {p['revision']}: {p['description']}")


# ── Generic fallback ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        if isinstance(value, (dict, list)):
            _field(console, key, _json.dumps(value, separators=(",", ":")))
        else:
            _field(console, key, value)
    if verbose:
        _render_meta(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    # Mutations
    "create_group": _render_node_mutation,
    "create_user": _render_node_mutation,
    "add_user_to_group": _render_link,
    # Query
    "get_node": _render_node,
    "get_ancestors": _render_relatives,
    "get_descendants": _render_relatives,
    "get_user_organizations": _render_relatives,
    # Maintenance
    "check": _render_check,
    "upgrade": _render_upgrade,
}
