"""Function management endpoints (admin only).

Engine errors raised here (BadRequest, NameConflict, AdmissionRejected,
FunctionNotFound) are rendered as ``{"error": message}`` by the handler
installed in :mod:`sheetpoet.api.main`.
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from sheetpoet.api.dependencies import get_engine, require_admin
from sheetpoet.errors import BadRequest
from sheetpoet.schemas.function_definition import (
    FunctionActionRequest,
    FunctionDefinition,
    FunctionSaveRequest,
)
from sheetpoet.schemas.validation import ValidationResult

logger = logging.getLogger(__name__)

router = APIRouter(tags=["functions"], dependencies=[Depends(require_admin)])


@router.get("/api/functions")
def list_functions() -> List[FunctionDefinition]:
    """All stored functions, including their source."""
    return get_engine().registry.list()


@router.post("/api/functions")
def save_function(request: FunctionSaveRequest) -> FunctionDefinition:
    """Validate and store a function.

    Creates a new function, or updates the one with ``request.id``.
    """
    return get_engine().registry.save(request)


@router.post("/api/functions/validate")
def validate_function(request: FunctionSaveRequest) -> ValidationResult:
    """Run the admission checks without storing anything. Always 200."""
    return get_engine().registry.validate(request)


@router.post("/api/functions/action")
def function_action(request: FunctionActionRequest) -> Dict[str, Any]:
    """Management actions. Only ``delete`` is supported; ``id`` is the function name."""
    if not request.action:
        raise BadRequest("Action is required")
    if request.action != "delete":
        raise BadRequest("Invalid action")
    if not request.id:
        raise BadRequest("Function name is required")

    engine = get_engine()
    engine.registry.delete(request.id)
    engine.executor.forget(request.id)
    return {"message": "Function deleted successfully"}
