"""Utility helpers shared across CLI commands."""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import TextIO

import typer
from rich.box import SIMPLE
from rich.console import Console
from rich.table import Table


def emit_error(message: str, code: str, *, details: Mapping[str, object] | None = None) -> None:
    """Print a structured error payload to stderr."""

    payload: dict[str, object] = {"code": code, "message": message}
    if details:
        payload["details"] = dict(details)
    typer.echo(json.dumps(payload, ensure_ascii=False, default=str), err=True)


def render_table(
    rows: Sequence[Mapping[str, object]],
    columns: Sequence[str],
    *,
    stream: TextIO | None = None,
    no_color: bool = False,
) -> None:
    """Render rows as a Rich table."""

    console = Console(file=stream, color_system=None if no_color else "auto", no_color=no_color)
    table = Table(box=SIMPLE, show_lines=False)
    for column in columns:
        table.add_column(column, header_style="" if no_color else "bold")
    for row in rows:
        table.add_row(*(_format_cell(row.get(column)) for column in columns))
    console.print(table)


def _format_cell(value: object) -> str:
    if value is None:
        return "-"
    return str(value)
