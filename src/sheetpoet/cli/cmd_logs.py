"""Log commands: browse and clear the execution log."""

import math
from typing import Optional

import typer

from sheetpoet.cli._app import app
from sheetpoet.cli._common import get_engine
from sheetpoet.cli._console import console, output_json, output_rows, print_err, print_ok

logs_app = typer.Typer(
    no_args_is_help=True,
    help="Browse and clear the execution log.",
)
app.add_typer(logs_app, name="logs")


@logs_app.command("list", help="List execution log entries, newest first.")
def logs_list(
    ctx: typer.Context,
    task_id: Optional[str] = typer.Option(None, "--task-id", help="Only entries of this task"),
    group: bool = typer.Option(False, "--group", help="One summary row per task"),
    page: int = typer.Option(1, "--page", min=1),
    per_page: int = typer.Option(20, "--per-page", min=1),
):
    storage = get_engine().log_storage

    if task_id:
        entries = storage.get_by_task(task_id)
        if not entries:
            print_err(f"No logs found for task {task_id}")
            raise SystemExit(1)
        output_json([e.model_dump(mode="json") for e in entries], ctx=ctx, title=f"Task {task_id}")
        return

    if group:
        summaries, total = storage.group_by_task(page, per_page)
        rows = [s.model_dump(mode="json") for s in summaries]
        columns = ["task_id", "count", "latest_timestamp", "function_names", "success"]
    else:
        entries, total = storage.query(page, per_page)
        rows = [e.model_dump(mode="json") for e in entries]
        columns = ["id", "timestamp", "task_id", "function_name", "function_type", "status"]

    output_rows(rows, columns, ctx=ctx, title="Execution log")
    if not ctx.obj["json"]:
        console.print(f"[dim]Page {page} of {max(math.ceil(total / per_page), 1)} ({total} total)[/dim]")


@logs_app.command("clear", help="Delete every execution log entry.")
def logs_clear(
    force: bool = typer.Option(False, "--force", help="Skip confirmation prompt"),
):
    storage = get_engine().log_storage

    if not force and not typer.confirm("Delete all execution logs?"):
        console.print("Aborted.")
        raise SystemExit(1)

    removed = storage.clear()
    print_ok(f"Logs cleared successfully ({removed} entries)")
