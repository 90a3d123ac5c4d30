"""Serve command: run the HTTP API with uvicorn."""

import typer

from sheetpoet.cli._app import app
from sheetpoet.cli._common import ensure_initialized


@app.command("serve", help="Run the HTTP API.")
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", help="Bind port"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on code changes"),
):
    ensure_initialized()

    import uvicorn

    uvicorn.run("sheetpoet.api.main:app", host=host, port=port, reload=reload)
