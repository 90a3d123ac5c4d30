"""Function definition schemas.

A function definition is a named snippet of Python source with exactly one
entry point accepting a record. It is only ever created through the admission
pipeline (validator, then syntax checker, then registry write).
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator


class FunctionType(str, Enum):
    """Invocation modes supported out of the box.

    The values are the wire names used by the spreadsheet client.
    """

    BATCH_RECORD = "upload_to_website"  # one call per row, rows carry an identifier
    PAGED_IMPORT = "import_to_sheet"  # one call per page, params carry index/batchSize
    ONE_SHOT_TRIGGER = "one_time_trigger"  # one call, free-form params


BUILTIN_FUNCTION_TYPES = frozenset(t.value for t in FunctionType)


def new_function_id() -> str:
    """Generate an internal identity for a newly admitted function."""
    return uuid.uuid4().hex


class FunctionDefinition(BaseModel):
    """A stored, validated user function.

    Attributes:
        id: Internal identity, stable across renames and updates.
        name: Unique identifier of the entry point (and registry key).
        label: Display string shown to spreadsheet users.
        code: Python source text defining ``def <name>(record, ...)``.
        type: Invocation mode (a FunctionType value or a custom kind).
    """

    id: str = Field(default_factory=new_function_id, description="Internal identity")
    name: str = Field(..., description="Unique function name")
    label: str = Field(default="", description="Display label")
    code: str = Field(..., description="Python source of the function")
    type: str = Field(default=FunctionType.BATCH_RECORD.value, description="Invocation mode")

    @field_validator("label", mode="before")
    @classmethod
    def default_label(cls, v):
        """Treat a missing label as empty; the registry falls back to the name."""
        return v or ""

    def public_view(self) -> Dict[str, Any]:
        """Projection exposed to spreadsheet clients (no source code)."""
        return {"name": self.name, "label": self.label, "type": self.type}

    def log_view(self) -> Dict[str, Any]:
        """Projection recorded alongside every execution log entry."""
        return {"name": self.name, "label": self.label, "type": self.type}


class FunctionSaveRequest(BaseModel):
    """Admission API payload.

    ``id`` is set when editing an existing function; without it the request
    creates a new function and fails if the name is taken.
    """

    name: str = ""
    label: Optional[str] = None
    code: str = ""
    type: Optional[str] = None
    id: Optional[str] = None

    model_config = {"extra": "ignore"}


class FunctionActionRequest(BaseModel):
    """Management action payload, e.g. ``{"action": "delete", "id": "my_func"}``."""

    action: str = ""
    id: Optional[str] = None
