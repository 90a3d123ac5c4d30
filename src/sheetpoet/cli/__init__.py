"""CLI package: Typer-based command-line interface.

Usage:
    sheetpoet --help
    python -m sheetpoet.cli functions --help
"""

from sheetpoet.cli._app import app

# Register command modules (side-effect imports)
import sheetpoet.cli.cmd_functions  # noqa: F401
import sheetpoet.cli.cmd_run  # noqa: F401
import sheetpoet.cli.cmd_logs  # noqa: F401
import sheetpoet.cli.cmd_serve  # noqa: F401

__all__ = ["app"]
