"""Extension points for host instrumentation.

Each extension point holds an ordered list of transform callbacks with the
fixed signature ``transform(value, context) -> value``. They run
synchronously, in registration order, at well-defined points of the
validation, execution and dispatch flows. A point with no callbacks returns
the value unchanged.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping

logger = logging.getLogger(__name__)

Transform = Callable[[Any, Mapping[str, Any]], Any]


class HookPoint(str, Enum):
    """Named extension points."""

    # Admission
    FUNCTION_NAME_BEFORE_VALIDATION = "function_name_before_validation"
    FUNCTION_CODE_BEFORE_VALIDATION = "function_code_before_validation"
    FUNCTION_VALIDATION_RESULT = "function_validation_result"
    BEFORE_SAVE_FUNCTION = "before_save_function"

    # Executor
    SHOULD_EXECUTE_FUNCTION = "should_execute_function"
    BEFORE_FUNCTION_EXECUTION_PARAMS = "before_function_execution_params"
    AFTER_FUNCTION_EXECUTION_RESULT = "after_function_execution_result"

    # Dispatcher
    PROCESS_TASK_ID = "process_task_id"
    PROCESS_FUNCTION_NAME = "process_function_name"
    PROCESS_FUNCTION_TYPE = "process_function_type"
    PROCESS_PARAMS = "process_params"
    PROCESS_META = "process_meta"
    PROCESS_RESPONSE = "process_response"
    LOG_ENTRY = "log_entry"


class HookRegistry:
    """Ordered transform callbacks per extension point."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._hooks: Dict[HookPoint, List[Transform]] = {}

    def register(self, point: HookPoint, transform: Transform) -> None:
        """Append a transform to an extension point."""
        point = HookPoint(point)
        with self._lock:
            self._hooks.setdefault(point, []).append(transform)
        logger.debug(f"Registered hook {getattr(transform, '__name__', transform)!r} on {point.value}")

    def unregister(self, point: HookPoint, transform: Transform) -> bool:
        """Remove a transform. Returns False if it was not registered."""
        point = HookPoint(point)
        with self._lock:
            transforms = self._hooks.get(point, [])
            if transform not in transforms:
                return False
            transforms.remove(transform)
            return True

    def has(self, point: HookPoint) -> bool:
        return bool(self._hooks.get(HookPoint(point)))

    def apply(self, point: HookPoint, value: Any, **context: Any) -> Any:
        """Run ``value`` through every transform registered on ``point``."""
        with self._lock:
            transforms = list(self._hooks.get(HookPoint(point), ()))
        for transform in transforms:
            value = transform(value, context)
        return value
