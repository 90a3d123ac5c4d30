"""Function commands: list, show, save, validate and delete user functions."""

from pathlib import Path
from typing import Optional

import typer

from sheetpoet.cli._app import app
from sheetpoet.cli._common import get_engine
from sheetpoet.cli._console import (
    console,
    output_definition,
    output_json,
    output_rows,
    print_err,
    print_ok,
    print_validation,
)
from sheetpoet.errors import EngineError
from sheetpoet.schemas.function_definition import FunctionSaveRequest

functions_app = typer.Typer(
    no_args_is_help=True,
    help="Manage stored functions (list, show, save, validate, delete).",
)
app.add_typer(functions_app, name="functions")


def _read_code(path: Path) -> str:
    if not path.exists():
        print_err(f"File not found: {path}")
        raise SystemExit(1)
    return path.read_text(encoding="utf-8")


@functions_app.command("list", help="List stored functions.")
def functions_list(ctx: typer.Context):
    engine = get_engine()

    rows = [
        {"name": d.name, "label": d.label, "type": d.type, "id": d.id}
        for d in engine.registry.list()
    ]
    output_rows(rows, ["name", "label", "type", "id"], ctx=ctx, title="Functions")


@functions_app.command("show", help="Show one function including its source.")
def functions_show(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Function name"),
):
    engine = get_engine()

    definition = engine.registry.get(name)
    if definition is None:
        print_err(f"Function '{name}' not found")
        raise SystemExit(1)

    output_definition(definition, ctx=ctx)


@functions_app.command("save", help="Validate and store a function from a source file.")
def functions_save(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Python file containing the function"),
    name: str = typer.Option(..., "--name", "-n", help="Function name (must match the def)"),
    label: Optional[str] = typer.Option(None, "--label", "-l", help="Display label (default: name)"),
    function_type: Optional[str] = typer.Option(
        None, "--type", "-t", help="upload_to_website, import_to_sheet or one_time_trigger"
    ),
    function_id: Optional[str] = typer.Option(None, "--id", help="Update the function with this id"),
):
    engine = get_engine()

    request = FunctionSaveRequest(
        name=name, label=label, code=_read_code(file), type=function_type, id=function_id
    )
    try:
        definition = engine.registry.save(request)
    except EngineError as e:
        print_err(e.message)
        raise SystemExit(1)

    if ctx.obj["json"]:
        output_json(definition.model_dump(mode="json"), ctx=ctx)
    else:
        print_ok(f"Saved function '{definition.name}' ({definition.type}, id {definition.id})")


@functions_app.command("validate", help="Run the admission checks without storing anything.")
def functions_validate(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Python file containing the function"),
    name: str = typer.Option(..., "--name", "-n", help="Function name (must match the def)"),
    function_id: Optional[str] = typer.Option(None, "--id", help="Validate as an update of this id"),
):
    engine = get_engine()

    result = engine.registry.validate(FunctionSaveRequest(name=name, code=_read_code(file), id=function_id))
    print_validation(result, ctx=ctx)
    if not result.valid:
        raise SystemExit(1)


@functions_app.command("delete", help="Delete a stored function.")
def functions_delete(
    name: str = typer.Argument(..., help="Function name"),
    force: bool = typer.Option(False, "--force", help="Skip confirmation prompt"),
):
    engine = get_engine()

    if not force and not typer.confirm(f"Delete function '{name}'?"):
        console.print("Aborted.")
        raise SystemExit(1)

    try:
        engine.registry.delete(name)
    except EngineError as e:
        print_err(e.message)
        raise SystemExit(1)
    print_ok(f"Deleted function '{name}'")
