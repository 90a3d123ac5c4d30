"""
SheetPoet - validated, sandboxed record functions for spreadsheet clients.

This package lets an administrator register small Python functions that a
spreadsheet client later runs against its rows. Submissions are screened by
a static validator before they are stored, and every run is isolated and
recorded in an execution log.
"""

__version__ = "0.1.0"

from sheetpoet.engine import Engine, build_engine

__all__ = [
    "Engine",
    "build_engine",
]
