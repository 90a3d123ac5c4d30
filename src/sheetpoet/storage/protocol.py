"""Storage protocol for function definitions.

The registry reads and writes the whole definition list at once; the
registry itself is responsible for serializing read-modify-write cycles.
"""

from typing import List, Protocol, runtime_checkable

from sheetpoet.schemas.function_definition import FunctionDefinition


@runtime_checkable
class FunctionStore(Protocol):
    """Durable list of function definitions."""

    def load(self) -> List[FunctionDefinition]:
        """Return every stored definition, in insertion order."""
        ...

    def save_all(self, definitions: List[FunctionDefinition]) -> None:
        """Replace the stored list.

        Raises:
            IOError: If the write fails. The previous list stays intact.
        """
        ...
