"""API routers."""

from sheetpoet.api.routers.functions import router as functions_router
from sheetpoet.api.routers.logs import router as logs_router
from sheetpoet.api.routers.sheets_client import router as sheets_client_router
from sheetpoet.api.routers.system import router as system_router

__all__ = [
    "functions_router",
    "logs_router",
    "sheets_client_router",
    "system_router",
]
