"""FastAPI dependencies for the SheetPoet API.

This module provides:
- The engine getter used by every router
- Admin token and client API key authentication
"""

import hmac
import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException

from sheetpoet.engine import Engine, build_engine
from sheetpoet.startup import ensure_initialized


# =============================================================================
# ENGINE
# =============================================================================

_engine: Optional[Engine] = None


def get_engine() -> Engine:
    """Get the Engine for this API process, building it on first use."""
    global _engine
    if _engine is None:
        ensure_initialized()
        _engine = build_engine()
        logging.getLogger("sheetpoet").setLevel(_engine.settings.log_level.upper())
    return _engine


def set_engine(engine: Optional[Engine]) -> None:
    """Install a prebuilt Engine (or None to rebuild from settings on next use)."""
    global _engine
    _engine = engine


# =============================================================================
# AUTHENTICATION DEPENDENCIES
# =============================================================================


def require_admin(x_admin_token: Optional[str] = Header(None)) -> None:
    """Dependency for management routes.

    Expects: X-Admin-Token: <admin_token>

    Raises:
        HTTPException: 403 if no admin token is configured or it does not match.
    """
    expected = get_engine().settings.admin_token
    if not expected or not x_admin_token or not hmac.compare_digest(x_admin_token, expected):
        raise HTTPException(status_code=403, detail="Admin access required")


def require_api_key(x_api_key: Optional[str] = Header(None)) -> str:
    """Dependency for spreadsheet client routes.

    Expects: X-API-Key: <one of api_keys>

    Returns:
        The accepted key.

    Raises:
        HTTPException: 401 if the key is missing or unknown.
    """
    keys = get_engine().settings.api_keys
    if not x_api_key or not any(hmac.compare_digest(x_api_key, key) for key in keys):
        raise HTTPException(status_code=401, detail="Not authorized")
    return x_api_key


def require_plugin_enabled(api_key: str = Depends(require_api_key)) -> str:
    """Dependency for client routes that run or list functions.

    Raises:
        HTTPException: 403 when the feature flag is off.
    """
    if not get_engine().settings.plugin_enabled:
        raise HTTPException(status_code=403, detail="Functionality is disabled from the plugin settings.")
    return api_key
