"""Operation-specific Rich renderers for ServiceResult.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from composectl.output.console import create_console, get_output, style_for_state

if TYPE_CHECKING:
    from rich.console import Console

    from composectl.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich."""
    if result.ok and result.op == "convert":
        # Converted documents are emitted verbatim so they can be piped.
        return str(result.data.get("content", "")).rstrip("\n")

    console = create_console()
    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)
    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Minimal output for ``--quiet``: identifiers only."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"

    data = result.data
    if result.op == "ps":
        return "\n".join(str(item.get("id", "")) for item in data.get("items", []))
    if result.op == "list":
        return "\n".join(str(item.get("name", "")) for item in data.get("items", []))
    if result.op in ("build", "push", "pull"):
        return "\n".join(data.get("images", []))
    if result.op == "convert":
        return str(data.get("content", "")).rstrip("\n")
    if "project" in data:
        return str(data["project"])
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    console.print(Text("OK", style="cc.ok"), Text(f"  {result.op}", style="cc.op"), sep="", end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    k = Text(f"  {key}: ", style="cc.key")
    if isinstance(value, list):
        value = ", ".join(str(v) for v in value) or "-"
    console.print(k, Text(str(value)), sep="", end="")
    console.print()


def _render_meta(console: Console, result: ServiceResult) -> None:
    if not result.meta:
        return
    console.print()
    console.print(Text("  meta:", style="dim"))
    phases = result.meta.get("phases", {})
    for phase, duration in phases.items():
        console.print(f"    [dim]{duration:>8.2f}ms[/dim]  {phase}")
    for key, value in result.meta.items():
        if key != "phases":
            console.print(f"    {key}: {value}")


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    console.print(
        Text("ERROR", style="cc.error"), Text(f"  {result.op}", style="cc.op"), Text(" — "), Text(msg), sep=""
    )

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")
    if verbose and result.data.get("states"):
        _field(console, "states", " -> ".join(result.data["states"]))


# ── Lifecycle renderers ───────────────────────────────────────────────


def _render_up(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    data = result.data
    _field(console, "project", data.get("project", ""))
    _field(console, "services", data.get("services", []))
    if data.get("detached"):
        _field(console, "detached", True)
    if data.get("cancelled"):
        _field(console, "cancelled", True)
    if verbose:
        _field(console, "states", " -> ".join(data.get("states", [])))
        _render_meta(console, result)


def _render_project(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    _field(console, "project", result.data.get("project", ""))


def _render_images(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    _field(console, "project", result.data.get("project", ""))
    for image in result.data.get("images", []):
        console.print(f"  [cc.id]{image}[/cc.id]")
    console.print(f"\n{result.data.get('count', 0)} images")


# ── Table renderers ───────────────────────────────────────────────────


def _render_ps(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Name", style="cc.service", no_wrap=True)
    table.add_column("Service")
    table.add_column("State")
    table.add_column("Ports")
    if verbose:
        table.add_column("ID", style="cc.id")
    for item in items:
        state = str(item.get("state", ""))
        row: list[Any] = [
            str(item.get("name", "")),
            str(item.get("service", "")),
            Text(state, style=style_for_state(state)),
            str(item.get("ports", "")),
        ]
        if verbose:
            row.append(str(item.get("id", "")))
        table.add_row(*row)
    console.print(table)
    console.print(f"\n{result.data.get('count', len(items))} containers")


def _render_list(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Name", style="cc.service", no_wrap=True)
    table.add_column("Status")
    for item in items:
        table.add_row(str(item.get("name", "")), str(item.get("status", "")))
    console.print(table)
    console.print(f"\n{result.data.get('count', len(items))} projects")


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    if verbose:
        _render_meta(console, result)


_OP_RENDERERS: dict[str, Any] = {
    "up": _render_up,
    "create": _render_up,
    "down": _render_project,
    "logs": _render_project,
    "ps": _render_ps,
    "list": _render_list,
    "build": _render_images,
    "push": _render_images,
    "pull": _render_images,
}
