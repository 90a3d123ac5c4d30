"""Centralized initialization for all sheetpoet entry points.

Loads ``.env`` from the project root once, so that EngineSettings.from_env()
sees the same environment from the API server and the CLI.
"""

import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

_initialized: bool = False
_project_root: Optional[Path] = None


def _find_project_root(start_path: Optional[Path] = None) -> Path:
    """Find the project root by looking for pyproject.toml or .env.

    Falls back to the current working directory.
    """
    if start_path is None:
        start_path = Path.cwd()

    for parent in [start_path] + list(start_path.parents):
        if (parent / "pyproject.toml").exists() or (parent / ".env").exists():
            return parent
    return start_path


def ensure_initialized() -> Path:
    """Load .env on first call (idempotent).

    Returns:
        The project root.
    """
    global _initialized, _project_root

    if _initialized and _project_root is not None:
        return _project_root

    _project_root = _find_project_root()
    env_path = _project_root / ".env"
    if env_path.exists():
        # Real environment variables win over .env
        load_dotenv(env_path, override=False)
        logger.debug(f"Loaded .env from {env_path}")
    _initialized = True
    return _project_root


def get_project_root() -> Path:
    return ensure_initialized()
