"""
CLI utility helpers: lifecycle loading and output formatting.
"""

from __future__ import annotations

import importlib
import json
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from hitch.core.errors import ConfigError
from hitch.framework.lifecycle import Lifecycle

console = Console()
err_console = Console(stderr=True)


# ── Lifecycle loading ────────────────────────────────────────────────────


def load_lifecycle(path: str) -> Lifecycle:
    """Import ``"package.module:attr"`` and return the :class:`Lifecycle` it names.

    *attr* may also be a zero-argument factory returning a lifecycle.
    """
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise ConfigError(f"Expected 'module:attr', got {path!r}")

    module = importlib.import_module(module_name)
    try:
        target = getattr(module, attr)
    except AttributeError as exc:
        raise ConfigError(f"Module {module_name!r} has no attribute {attr!r}", cause=exc) from exc

    if not isinstance(target, Lifecycle) and callable(target):
        target = target()
    if not isinstance(target, Lifecycle):
        raise ConfigError(f"{path!r} is not a Lifecycle (got {type(target).__name__})")
    return target


# ── Output helpers ───────────────────────────────────────────────────────


def output_rows(rows: list[dict[str, Any]], *, as_json: bool = False, title: str = "") -> None:
    """Render a list of dicts as JSON or a Rich table."""
    if as_json:
        console.print_json(json.dumps(rows, default=str))
        return
    if not rows:
        console.print("[dim]No items.[/dim]")
        return
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in rows[0]:
        table.add_column(col, overflow="fold")
    for row in rows:
        table.add_row(*(str(v) for v in row.values()))
    console.print(table)


def output_dict(data: dict[str, Any], *, as_json: bool = False, title: str = "") -> None:
    """Render a single dict as JSON or key-value pairs."""
    if as_json:
        console.print_json(json.dumps(data, default=str))
        return
    if title:
        console.print(f"[bold]{title}[/bold]")
    for k, v in data.items():
        console.print(f"  [cyan]{k}[/cyan]: {v}")


def fail(message: str, code: int = 1) -> None:
    err_console.print(f"[bold red]Error[/bold red]: {message}")
    raise typer.Exit(code=code)
