"""Persistence for function definitions.

Usage:
    from sheetpoet.storage import FileFunctionStore

    store = FileFunctionStore(Path("output/functions.json"))
    definitions = store.load()
"""

from .protocol import FunctionStore
from .filesystem import FileFunctionStore
from .memory import InMemoryFunctionStore

__all__ = ["FunctionStore", "FileFunctionStore", "InMemoryFunctionStore"]
