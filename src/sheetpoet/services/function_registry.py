"""Function registry: the single admission gate for user functions.

The registry owns the list of stored definitions. Every write goes through
``save``, which checks name uniqueness, runs the full validator and only
then persists. No two definitions ever share a name.
"""

import logging
import threading
from typing import Any, Dict, Iterable, List, Optional, Set

from sheetpoet.errors import AdmissionRejected, BadRequest, FunctionNotFound, NameConflict
from sheetpoet.hooks import HookPoint, HookRegistry
from sheetpoet.schemas.function_definition import (
    BUILTIN_FUNCTION_TYPES,
    FunctionDefinition,
    FunctionSaveRequest,
    FunctionType,
)
from sheetpoet.schemas.validation import ValidationResult
from sheetpoet.storage.protocol import FunctionStore
from sheetpoet.validation.function_validator import FunctionValidator

logger = logging.getLogger(__name__)


class FunctionRegistry:
    """Stores and admits user functions.

    Writes are serialized with one registry-wide lock, so two concurrent
    admissions can never both pass the uniqueness check.

    Usage:
        registry = FunctionRegistry(FileFunctionStore(path), validator)
        definition = registry.save(FunctionSaveRequest(name="clean_row", code=code))
        registry.get("clean_row")
    """

    def __init__(
        self,
        store: FunctionStore,
        validator: FunctionValidator,
        hooks: Optional[HookRegistry] = None,
        custom_types: Iterable[str] = (),
    ):
        self.store = store
        self.validator = validator
        self.hooks = hooks or HookRegistry()
        self._custom_types: Set[str] = set(custom_types)
        self._lock = threading.RLock()

    # -----------------------------------------------------------------
    # Reads
    # -----------------------------------------------------------------

    def get(self, name: str) -> Optional[FunctionDefinition]:
        """Look up a definition by name. Returns None if unknown."""
        for definition in self.store.load():
            if definition.name == name:
                return definition
        return None

    def get_by_id(self, function_id: str) -> Optional[FunctionDefinition]:
        for definition in self.store.load():
            if definition.id == function_id:
                return definition
        return None

    def list(self) -> List[FunctionDefinition]:
        return self.store.load()

    def list_public(self) -> List[Dict[str, Any]]:
        """Catalog shown to spreadsheet clients: name, label and type only."""
        return [d.public_view() for d in self.store.load()]

    # -----------------------------------------------------------------
    # Function types
    # -----------------------------------------------------------------

    def register_type(self, kind: str) -> None:
        """Allow definitions of a custom invocation kind."""
        self._custom_types.add(kind)

    def allowed_types(self) -> Set[str]:
        return set(BUILTIN_FUNCTION_TYPES) | self._custom_types

    # -----------------------------------------------------------------
    # Admission
    # -----------------------------------------------------------------

    def validate(self, request: FunctionSaveRequest) -> ValidationResult:
        """Run the admission checks without storing anything."""
        name = request.name.strip()
        if not name or not request.code.strip():
            return ValidationResult.fail("Function name and code are required")
        with self._lock:
            conflict = self._find_conflict(self.store.load(), name, request.id)
        if conflict:
            return ValidationResult.fail(conflict)
        return self.validator.validate_function_code(name, request.code)

    def save(self, request: FunctionSaveRequest) -> FunctionDefinition:
        """Validate and persist a function.

        Without ``request.id`` a new function is created; with it, the
        function with that identity is updated in place (renames allowed).

        Args:
            request: Admission payload.

        Returns:
            The stored definition.

        Raises:
            BadRequest: Name or code missing, or unknown function type.
            FunctionNotFound: ``request.id`` does not match a stored function.
            NameConflict: The name belongs to another stored function.
            AdmissionRejected: The validator rejected the code.
        """
        name = request.name.strip()
        code = request.code.strip()
        if not name or not code:
            raise BadRequest("Function name and code are required")

        function_type = request.type or FunctionType.BATCH_RECORD.value
        if function_type not in self.allowed_types():
            raise BadRequest(f"Invalid function type '{function_type}'")

        with self._lock:
            definitions = self.store.load()

            index = None
            if request.id:
                index = next((i for i, d in enumerate(definitions) if d.id == request.id), None)
                if index is None:
                    raise FunctionNotFound(f"Function with id '{request.id}' not found")

            conflict = self._find_conflict(definitions, name, request.id)
            if conflict:
                raise NameConflict(conflict)

            result = self.validator.validate_function_code(name, code)
            if not result.valid:
                logger.info(f"Rejected function '{name}': {result.message}")
                raise AdmissionRejected(
                    result.message, result.strategy.value if result.strategy else None
                )

            definition = FunctionDefinition(
                name=name,
                label=(request.label or "").strip() or name,
                code=code,
                type=function_type,
            )
            if index is not None:
                definition.id = definitions[index].id
            definition = self.hooks.apply(HookPoint.BEFORE_SAVE_FUNCTION, definition, request=request)

            if index is None:
                definitions.append(definition)
            else:
                definitions[index] = definition
            self.store.save_all(definitions)

        action = "Updated" if index is not None else "Created"
        logger.info(f"{action} function '{definition.name}' ({definition.type})")
        return definition

    def delete(self, name: str) -> FunctionDefinition:
        """Remove a function by name.

        Raises:
            FunctionNotFound: No function has that name.
        """
        with self._lock:
            definitions = self.store.load()
            for i, definition in enumerate(definitions):
                if definition.name == name:
                    del definitions[i]
                    self.store.save_all(definitions)
                    logger.info(f"Deleted function '{name}'")
                    return definition
        raise FunctionNotFound("Function not found")

    @staticmethod
    def _find_conflict(
        definitions: List[FunctionDefinition], name: str, function_id: Optional[str]
    ) -> Optional[str]:
        for definition in definitions:
            if definition.name == name and definition.id != function_id:
                return f"Function name '{name}' is already in use by another saved function."
        return None
