"""In-memory function store for tests and embedding."""

from typing import Iterable, List

from sheetpoet.schemas.function_definition import FunctionDefinition


class InMemoryFunctionStore:
    """Keeps definitions in a list. Returns copies so callers cannot mutate it."""

    def __init__(self, definitions: Iterable[FunctionDefinition] = ()):
        self._definitions = [d.model_copy() for d in definitions]

    def load(self) -> List[FunctionDefinition]:
        return [d.model_copy() for d in self._definitions]

    def save_all(self, definitions: List[FunctionDefinition]) -> None:
        self._definitions = [d.model_copy() for d in definitions]
