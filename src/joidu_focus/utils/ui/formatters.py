"""Rendering for command output: tables, JSON, YAML and status lines."""

import json
from typing import Any

import yaml
from rich.table import Table

from joidu_focus.utils.ui.console import get_console

console = get_console()

OUTPUT_FORMATS = ("table", "json", "yaml")


def resolve_output_format(output: str | None, default: str = "table") -> str:
    """Pick the ``--output`` value, falling back to the configured default.

    Raises ``ValueError`` for anything outside ``OUTPUT_FORMATS``.
    """
    fmt = (output or default).lower()
    if fmt not in OUTPUT_FORMATS:
        raise ValueError(
            f"Unknown output format '{fmt}'. Use one of: {', '.join(OUTPUT_FORMATS)}"
        )
    return fmt


def format_output(data: Any, output_format: str = "table") -> None:
    """Print a record (dict) or rows (list of dicts) in the given format."""
    if output_format == "json":
        print(json.dumps(data, indent=2, default=str))
    elif output_format == "yaml":
        print(yaml.safe_dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True))
    elif not data:
        console.print("[yellow]No data to display[/yellow]")
    elif isinstance(data, dict):
        console.print(_record_table(data))
    else:
        console.print(_rows_table(data))


def _label(key: str) -> str:
    return key.replace("_", " ").title()


def _cell(value: Any) -> str:
    if isinstance(value, bool):
        return "✓" if value else "✗"
    if value is None:
        return "-"
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    return str(value)


def _rows_table(rows: list[dict]) -> Table:
    columns = list(rows[0].keys())
    table = Table(show_header=True, header_style="bold magenta")
    for column in columns:
        table.add_column(_label(column))
    for row in rows:
        table.add_row(*(_cell(row.get(column)) for column in columns))
    return table


def _record_table(record: dict) -> Table:
    table = Table(show_header=False, box=None)
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="white")
    for key, value in record.items():
        table.add_row(_label(key), _cell(value))
    return table


def format_error(message: str) -> None:
    """Format and display an error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def format_success(message: str) -> None:
    """Format and display a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def format_info(message: str) -> None:
    """Format and display an info message."""
    console.print(f"[bold blue]Info:[/bold blue] {message}")
