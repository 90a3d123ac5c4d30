"""Root Typer application. The callback configures logging for every command."""

from typing import Optional

import typer

from sheetpoet import __version__
from sheetpoet.cli._common import setup_logging

app = typer.Typer(
    no_args_is_help=True,
    rich_markup_mode="rich",
    pretty_exceptions_enable=False,
)


def _print_version(value: bool) -> None:
    if value:
        typer.echo(f"sheetpoet {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug-level logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Warnings and errors only"),
    json_output: bool = typer.Option(False, "--json", help="Write command data as JSON to stdout"),
    version: Optional[bool] = typer.Option(
        None, "--version", callback=_print_version, is_eager=True, help="Show the version and exit"
    ),
):
    """Manage and run validated record functions."""
    ctx.ensure_object(dict)
    ctx.obj["json"] = json_output
    setup_logging(verbose=verbose, quiet=quiet)
