"""Spreadsheet client endpoints (API key)."""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from sheetpoet.api.dependencies import get_engine, require_api_key, require_plugin_enabled
from sheetpoet.schemas.execution import ExecutionRequest

router = APIRouter(prefix="/api/sheets-client", tags=["sheets-client"])


@router.get("/settings", dependencies=[Depends(require_api_key)])
def get_client_settings() -> Dict[str, Any]:
    """Public settings the client needs before offering any function."""
    return {"plugin_enabled": get_engine().settings.plugin_enabled}


@router.get("/functions", dependencies=[Depends(require_plugin_enabled)])
def list_client_functions() -> List[Dict[str, Any]]:
    """Function catalog without source code."""
    return get_engine().registry.list_public()


@router.post("/run-function", dependencies=[Depends(require_plugin_enabled)])
def run_function(request: ExecutionRequest) -> JSONResponse:
    """Invocation API: 200 with ``data`` on success, 400 with ``message`` otherwise."""
    outcome = get_engine().dispatcher.dispatch(request)
    return JSONResponse(content=jsonable_encoder(outcome.to_response()), status_code=200 if outcome.success else 400)
