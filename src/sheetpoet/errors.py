"""Error taxonomy for the function engine.

Every error carries a human-readable message that is surfaced verbatim to the
caller and the HTTP-equivalent status code the API layer responds with. None
of these are allowed to escape a request handler unhandled.
"""

from typing import Optional


class EngineError(Exception):
    """Base class for all engine errors."""

    status_code: int = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class AdmissionRejected(EngineError):
    """A submission failed the blocklist or syntax checks. Nothing was stored."""

    def __init__(self, message: str, strategy: Optional[str] = None):
        super().__init__(message)
        self.strategy = strategy


class NameConflict(EngineError):
    """The function name is already taken by another saved function."""


class FunctionNotFound(EngineError):
    """Unknown function name (or unknown log task)."""

    status_code = 404


class BadRequest(EngineError):
    """Missing or malformed request fields."""


class ExecutionFailure(EngineError):
    """Raised by user code at materialization or call time.

    Caught at the executor boundary and carried as a value from there on.
    """

    def __init__(self, message: str, function_name: Optional[str] = None):
        super().__init__(message)
        self.function_name = function_name


class LoggingFailure(EngineError):
    """The execution log could not be written. Never fails the execution."""

    status_code = 500
