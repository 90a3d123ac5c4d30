"""Execution log endpoints (admin only)."""

import math
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from sheetpoet.api.dependencies import get_engine, require_admin
from sheetpoet.errors import BadRequest, FunctionNotFound
from sheetpoet.schemas.log_entry import LogPage

router = APIRouter(tags=["logs"], dependencies=[Depends(require_admin)])


class LogActionRequest(BaseModel):
    """Log action payload, e.g. ``{"action": "clear"}``."""

    action: str = ""


@router.get("/api/logs")
def get_logs(
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=500),
    group_by_task_id: bool = Query(False, description="Return one summary per task"),
    task_id: Optional[str] = Query(None, description="Return every entry of one task"),
) -> Dict[str, Any]:
    """Paged execution log, newest first."""
    storage = get_engine().log_storage

    if task_id:
        entries = storage.get_by_task(task_id)
        if not entries:
            raise FunctionNotFound(f"No logs found for task {task_id}")
        return {"logs": [e.model_dump(mode="json") for e in entries], "task_id": task_id}

    if group_by_task_id:
        items, total = storage.group_by_task(page, per_page)
    else:
        items, total = storage.query(page, per_page)

    result = LogPage(
        logs=[item.model_dump(mode="json") for item in items],
        total=total,
        pages=math.ceil(total / per_page),
        grouped=group_by_task_id,
    )
    return result.model_dump()


@router.post("/api/logs/action")
def logs_action(request: LogActionRequest) -> Dict[str, Any]:
    """Log actions. Only ``clear`` is supported."""
    if not request.action:
        raise BadRequest("Action is required")
    if request.action != "clear":
        raise BadRequest("Invalid action")

    removed = get_engine().log_storage.clear()
    return {"message": "Logs cleared successfully", "removed": removed}
