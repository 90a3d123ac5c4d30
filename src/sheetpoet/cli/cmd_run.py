"""Run command: dispatch a request locally, as a spreadsheet client would."""

import json
import uuid
from typing import Optional

import typer

from sheetpoet.cli._app import app
from sheetpoet.cli._common import get_engine
from sheetpoet.cli._console import output_outcome, print_err
from sheetpoet.schemas.execution import ExecutionRequest


def _parse_json(value: Optional[str], option: str):
    if value is None:
        return None
    try:
        return json.loads(value)
    except json.JSONDecodeError as e:
        print_err(f"Invalid JSON for {option}: {e}")
        raise SystemExit(1)


@app.command("run", help="Run a stored function through the dispatcher.")
def run(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Function name"),
    function_type: str = typer.Option(
        ..., "--type", "-t", help="upload_to_website, import_to_sheet or one_time_trigger"
    ),
    params: Optional[str] = typer.Option(None, "--params", "-p", help="Payload as JSON"),
    task_id: Optional[str] = typer.Option(None, "--task-id", help="Task id (default: random)"),
    meta: Optional[str] = typer.Option(None, "--meta", help="Caller meta as JSON"),
):
    """Run a function and print the client response.

    Exits with status 1 when the response reports failure.
    """
    engine = get_engine()

    request = ExecutionRequest(
        task_id=task_id or f"cli-{uuid.uuid4().hex[:12]}",
        function_name=name,
        kind=function_type,
        params=_parse_json(params, "--params"),
        meta=_parse_json(meta, "--meta"),
    )
    outcome = engine.dispatcher.dispatch(request)

    output_outcome(outcome, ctx=ctx, title=f"{name} ({request.task_id})")
    if not outcome.success:
        raise SystemExit(1)
