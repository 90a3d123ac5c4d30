"""
FastAPI backend for SheetPoet.

Provides endpoints for:
- Managing user functions (admin)
- Browsing and clearing the execution log (admin)
- Listing and running functions from a spreadsheet client (API key)
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sheetpoet import __version__
from sheetpoet.api.routers import functions_router, logs_router, sheets_client_router, system_router
from sheetpoet.errors import EngineError
from sheetpoet.startup import ensure_initialized

logger = logging.getLogger(__name__)


# =============================================================================
# APP SETUP
# =============================================================================

ensure_initialized()

app = FastAPI(
    title="SheetPoet API",
    description="Validated, sandboxed record functions for spreadsheet clients",
    version=__version__,
)

# Spreadsheet add-ons call from script.google.com sandboxes
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

app.include_router(system_router)
app.include_router(functions_router)
app.include_router(logs_router)
app.include_router(sheets_client_router)


@app.exception_handler(EngineError)
async def engine_error_handler(request: Request, exc: EngineError) -> JSONResponse:
    """Render engine errors as ``{"error": message}`` with their status code."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})
