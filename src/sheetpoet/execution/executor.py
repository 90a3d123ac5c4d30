"""Dynamic executor: turns stored source into a callable and invokes it.

This is the isolation boundary between untrusted user code and the host.
Every exception raised by user code, at materialization or call time, is
converted into a failed ExecutionOutcome here and never propagates further.
"""

import copy
import hashlib
import json
import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from fastapi.encoders import jsonable_encoder

from sheetpoet.errors import ExecutionFailure
from sheetpoet.execution.sandbox import build_namespace
from sheetpoet.hooks import HookPoint, HookRegistry
from sheetpoet.schemas.execution import ExecutionOutcome
from sheetpoet.schemas.function_definition import FunctionDefinition

logger = logging.getLogger(__name__)


@dataclass
class _Materialized:
    digest: str
    func: Callable[..., Any]


def source_digest(code: str) -> str:
    return hashlib.sha256(code.encode("utf-8")).hexdigest()


def _describe(error: BaseException) -> str:
    return str(error) or type(error).__name__


def to_wire(value: Any, name: str) -> Any:
    """Convert a return value into strict JSON data (no NaN or Infinity).

    Raises:
        ExecutionFailure: The value cannot be represented as JSON.
    """
    try:
        encoded = jsonable_encoder(value)
        json.dumps(encoded, allow_nan=False)
    except Exception as e:  # includes errors raised by user-defined methods
        raise ExecutionFailure(f"Function {name} returned a non-serializable value", name) from e
    return encoded


class Executor:
    """Materializes and invokes user functions.

    A (name, source) pair is materialized at most once per process. Saving a
    new version of a function changes its source digest, so the next call
    materializes the new version.

    Usage:
        executor = Executor(timeout_seconds=30)
        outcome = executor.invoke(definition, {"identifier": "row-1", "qty": 2})
        if outcome.success:
            print(outcome.data)
    """

    def __init__(self, hooks: Optional[HookRegistry] = None, timeout_seconds: float = 30.0):
        self.hooks = hooks or HookRegistry()
        self.timeout_seconds = timeout_seconds
        self._cache: Dict[str, _Materialized] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def invoke(self, definition: FunctionDefinition, record: Any = None) -> ExecutionOutcome:
        """Invoke a function against one record.

        Args:
            definition: The stored function.
            record: A mapping, a list, or None (call with no argument).

        Returns:
            ExecutionOutcome carrying the return value, or the failure message.
        """
        name = definition.name
        try:
            if record is not None and not isinstance(record, (Mapping, list)):
                raise ExecutionFailure(f"Function {name} expects an array as parameter", name)

            if not self.hooks.apply(HookPoint.SHOULD_EXECUTE_FUNCTION, True, function=definition, record=record):
                raise ExecutionFailure("Function execution prevented by filter", name)

            record = self.hooks.apply(HookPoint.BEFORE_FUNCTION_EXECUTION_PARAMS, record, function=definition)

            func = self.materialize(definition)
            # User code works on a copy; the request payload is logged as received
            result = self._call_with_timeout(func, name, copy.deepcopy(record))

            result = self.hooks.apply(
                HookPoint.AFTER_FUNCTION_EXECUTION_RESULT, result, function=definition, record=record
            )
        except ExecutionFailure as e:
            logger.error(f"Error executing function {name}: {e.message}")
            return ExecutionOutcome.failed(e.message)

        return ExecutionOutcome.succeeded(result)

    def materialize(self, definition: FunctionDefinition) -> Callable[..., Any]:
        """Return the callable for ``definition``, compiling it if needed.

        Raises:
            ExecutionFailure: The code failed to load or does not define the function.
        """
        name = definition.name
        digest = source_digest(definition.code)

        cached = self._cache.get(name)
        if cached is not None and cached.digest == digest:
            return cached.func

        with self._lock_for(name):
            cached = self._cache.get(name)
            if cached is not None and cached.digest == digest:
                return cached.func

            namespace = build_namespace(name)
            try:
                code_object = compile(definition.code, f"<user-function:{name}>", "exec")
                exec(code_object, namespace)
            except Exception as e:
                raise ExecutionFailure(f"Function {name} could not be created: {_describe(e)}", name) from e

            func = namespace.get(name)
            if not callable(func):
                raise ExecutionFailure(f"Function {name} could not be created", name)

            self._cache[name] = _Materialized(digest=digest, func=func)
            logger.debug(f"Materialized function '{name}' ({digest[:12]})")
            return func

    def is_materialized(self, name: str) -> bool:
        return name in self._cache

    def forget(self, name: str) -> None:
        """Drop a cached callable, e.g. after the function was deleted."""
        with self._lock_for(name):
            self._cache.pop(name, None)

    def _lock_for(self, name: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(name, threading.Lock())

    def _call_with_timeout(self, func: Callable[..., Any], name: str, record: Any) -> Any:
        outcome: Dict[str, Any] = {}

        def target():
            try:
                value = func() if record is None else func(record)
                # Encoding can call user-defined methods
                outcome["value"] = to_wire(value, name)
            except BaseException as e:  # anything raised by user code
                outcome["error"] = e

        # Daemon thread: a runaway function cannot be killed, only abandoned
        worker = threading.Thread(target=target, name=f"user-function-{name}", daemon=True)
        worker.start()
        worker.join(self.timeout_seconds)

        if worker.is_alive():
            logger.error(f"Function {name} still running after {self.timeout_seconds:g}s, abandoning worker thread")
            raise ExecutionFailure(f"Function {name} timed out after {self.timeout_seconds:g}s", name)

        if "error" in outcome:
            error = outcome["error"]
            raise ExecutionFailure(_describe(error), name) from error

        return outcome.get("value")
