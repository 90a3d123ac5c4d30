"""System endpoints: health check and version info."""

from typing import Any, Dict

from fastapi import APIRouter
from pydantic import BaseModel

from sheetpoet import __version__
from sheetpoet.api.dependencies import get_engine

router = APIRouter(tags=["system"])


class VersionInfo(BaseModel):
    """Application version information."""

    version: str
    display: str  # Formatted for UI display


@router.get("/api/health")
def health_check() -> Dict[str, Any]:
    """Health check endpoint."""
    engine = get_engine()
    return {
        "status": "healthy",
        "data_dir": str(engine.settings.data_dir),
        "syntax_layers": {
            "parser": engine.capabilities.parser,
            "interpreter": bool(engine.capabilities.interpreters),
            "tokens": engine.capabilities.tokenizer,
        },
    }


@router.get("/api/version", response_model=VersionInfo)
def get_version() -> VersionInfo:
    """Get application version."""
    return VersionInfo(version=__version__, display=f"v{__version__}")
