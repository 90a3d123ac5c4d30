"""Shared CLI utilities."""

import logging

from rich.logging import RichHandler

from sheetpoet.engine import Engine, build_engine
from sheetpoet.startup import ensure_initialized as _ensure_initialized

logger = logging.getLogger(__name__)


def ensure_initialized() -> None:
    """Load .env before settings are read."""
    _ensure_initialized()


def setup_logging(*, verbose: bool = False, quiet: bool = False) -> None:
    """Configure logging with Rich handler."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    handler = RichHandler(
        console=None,  # Use default stderr
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # Suppress noisy third-party loggers
    for name in ("uvicorn.access", "httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)


def get_engine() -> Engine:
    """Build an Engine from .env, the settings file and the environment."""
    ensure_initialized()
    return build_engine()
