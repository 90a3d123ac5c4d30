"""Execution log schemas.

One LogEntry is written per dispatched request. Entries are append-only; the
engine produces them but never mutates or deletes them.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field


class LogStatus(str, Enum):
    """Outcome of a logged request."""

    SUCCESS = "success"
    ERROR = "error"


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class LogEntry(BaseModel):
    """Single execution log record."""

    id: Optional[int] = Field(None, description="Assigned by the log storage on append")
    timestamp: str = Field(default_factory=_utc_now, description="ISO timestamp (UTC)")
    task_id: str = Field(..., description="Correlates all entries of one task")
    function_name: Optional[str] = None
    function_label: Optional[str] = None
    function_type: Optional[str] = None
    status: LogStatus
    request_data: Any = Field(None, description="Full request payload")
    response_data: Any = Field(None, description="Full response payload or error message")
    meta_data: Any = Field(None, description="Minimal caller identity projection")


class TaskLogSummary(BaseModel):
    """Aggregate of all log entries sharing one task_id."""

    task_id: str
    count: int
    latest_timestamp: str
    function_names: str
    function_labels: str
    function_types: str
    success: bool


class LogPage(BaseModel):
    """Paginated listing of log entries or task summaries."""

    logs: List[Any] = Field(default_factory=list)
    total: int = 0
    pages: int = 0
    grouped: bool = False
