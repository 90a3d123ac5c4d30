"""Rich consoles and the renderers the commands share.

Status lines go to stderr; with ``--json`` every command writes its data as
JSON to stdout instead, so output can be piped to jq.
"""

import json
import sys
from typing import Any, Iterable, Sequence

import typer
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from sheetpoet.schemas.execution import ExecutionOutcome
from sheetpoet.schemas.function_definition import FunctionDefinition
from sheetpoet.schemas.validation import ValidationResult

console = Console(stderr=True)
stdout_console = Console(file=sys.stdout)


def print_ok(msg: str) -> None:
    console.print(f"[green]✓[/green] {msg}")


def print_err(msg: str) -> None:
    console.print(f"[red]✗[/red] {msg}")


def output_json(data: Any, *, ctx: typer.Context, title: str = "") -> None:
    """JSON to stdout with ``--json``, otherwise an indented panel on stderr."""
    if ctx.obj["json"]:
        stdout_console.print_json(data=data)
        return
    console.print(Panel(json.dumps(data, indent=2, ensure_ascii=False, default=str), title=title or None))


def output_rows(rows: Sequence[dict], columns: Iterable[str], *, ctx: typer.Context, title: str) -> None:
    if ctx.obj["json"]:
        stdout_console.print_json(data=list(rows))
        return
    if not rows:
        console.print(f"[dim]{title}: nothing stored[/dim]")
        return

    table = Table(title=title)
    columns = list(columns)
    for column in columns:
        table.add_column(column)
    for row in rows:
        table.add_row(*[str(row.get(column, "")) for column in columns])
    console.print(table)


def output_definition(definition: FunctionDefinition, *, ctx: typer.Context) -> None:
    """A stored function with its highlighted source."""
    if ctx.obj["json"]:
        stdout_console.print_json(data=definition.model_dump(mode="json"))
        return
    console.print(
        f"[bold]{definition.name}[/bold]  {definition.label}  "
        f"[dim]({definition.type}, id {definition.id})[/dim]"
    )
    console.print(Syntax(definition.code, "python", line_numbers=True))


def output_outcome(outcome: ExecutionOutcome, *, ctx: typer.Context, title: str) -> None:
    """The client response of one dispatch, framed green or red by its status."""
    response = outcome.to_response()
    if ctx.obj["json"]:
        stdout_console.print_json(data=response)
        return
    body = json.dumps(response, indent=2, ensure_ascii=False, default=str)
    console.print(Panel(body, title=title, border_style="green" if outcome.success else "red"))


def print_validation(result: ValidationResult, *, ctx: typer.Context) -> None:
    """A validation verdict, noting which syntax layer decided it."""
    if ctx.obj["json"]:
        stdout_console.print_json(data=result.model_dump(mode="json"))
        return

    layer = f" [dim](syntax layer: {result.strategy.value})[/dim]" if result.strategy else ""
    if result.valid:
        print_ok(f"{result.message}{layer}")
    else:
        print_err(f"{result.message}{layer}")
