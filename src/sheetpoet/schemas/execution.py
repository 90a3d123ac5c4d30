"""Execution request/outcome schemas for the Invocation API."""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator


class ExecutionRequest(BaseModel):
    """One inbound run request from a spreadsheet client.

    Wire names follow the client protocol: ``method`` is the function name,
    ``type`` the invocation mode and ``params`` the payload (one record, a
    list of records, or a paging cursor). ``task_id`` correlates every log
    entry produced by the request.
    """

    task_id: Optional[str] = None
    function_name: Optional[str] = Field(None, alias="method")
    kind: Optional[str] = Field(None, alias="type")
    params: Any = None
    meta: Any = None

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @field_validator("task_id", "function_name", "kind", mode="before")
    @classmethod
    def coerce_to_str(cls, v):
        """Clients sometimes send numeric task ids; keep everything as text."""
        if v is None or isinstance(v, str):
            return v
        return str(v)

    @field_validator("meta", mode="before")
    @classmethod
    def decode_meta(cls, v):
        """Meta may arrive as a JSON-encoded string."""
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return None
        return v


class ExecutionOutcome(BaseModel):
    """Result envelope of one dispatched request.

    For BatchRecord requests ``data`` is the per-record result list and
    ``success`` only says the batch was dispatched.
    """

    success: bool = False
    data: Any = None
    message: str = ""

    @classmethod
    def succeeded(cls, data: Any) -> "ExecutionOutcome":
        return cls(success=True, data=data)

    @classmethod
    def failed(cls, message: str) -> "ExecutionOutcome":
        return cls(success=False, message=message)

    def to_response(self) -> Dict[str, Any]:
        """Serialize to the client's ``{success, data|message}`` shape."""
        if self.success:
            return {"success": True, "data": self.data}
        return {"success": False, "message": self.message}

    @property
    def log_payload(self) -> Any:
        """What the execution log stores as the response snapshot."""
        return self.data if self.success else self.message
