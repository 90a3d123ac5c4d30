"""Process dispatcher for spreadsheet run requests.

Maps one ExecutionRequest onto the executor according to its invocation
mode, isolates per-record failures, and writes exactly one execution log
entry per request.
"""

import logging
from collections.abc import Mapping
from typing import Any, Callable, Dict, List, Optional

from sheetpoet.errors import LoggingFailure
from sheetpoet.execution.executor import Executor
from sheetpoet.hooks import HookPoint, HookRegistry
from sheetpoet.schemas.execution import ExecutionOutcome, ExecutionRequest
from sheetpoet.schemas.function_definition import BUILTIN_FUNCTION_TYPES, FunctionDefinition, FunctionType
from sheetpoet.schemas.log_entry import LogEntry, LogStatus
from sheetpoet.services.audit.interfaces import LogAppender
from sheetpoet.services.function_registry import FunctionRegistry

logger = logging.getLogger(__name__)

# handler(definition, params, executor) -> outcome, or None to decline
CustomHandler = Callable[[FunctionDefinition, Any, Executor], Optional[ExecutionOutcome]]


def extract_caller_meta(meta: Any) -> Optional[Dict[str, Any]]:
    """Minimal caller identity kept in the execution log.

    Only present when the client sent ``meta.user.profile``.
    """
    if not isinstance(meta, Mapping):
        return None
    user = meta.get("user")
    if not isinstance(user, Mapping) or not isinstance(user.get("profile"), Mapping):
        return None

    profile = user["profile"]
    return {
        "user": {
            "id": profile.get("id", ""),
            "name": profile.get("name", ""),
            "email": user.get("email", ""),
            "picture": profile.get("picture", ""),
        }
    }


class ProcessDispatcher:
    """Runs client requests against stored functions.

    Usage:
        dispatcher = ProcessDispatcher(registry, executor, log_storage)
        outcome = dispatcher.dispatch(ExecutionRequest(
            task_id="t-1", method="clean_row", type="upload_to_website",
            params=[{"identifier": "r1", "qty": 2}],
        ))
    """

    def __init__(
        self,
        registry: FunctionRegistry,
        executor: Executor,
        log_storage: LogAppender,
        hooks: Optional[HookRegistry] = None,
    ):
        self.registry = registry
        self.executor = executor
        self.log_storage = log_storage
        self.hooks = hooks or HookRegistry()
        self._handlers: Dict[str, CustomHandler] = {}

    def register_handler(self, kind: str, handler: CustomHandler) -> None:
        """Add a custom invocation kind.

        Functions of that kind become admissible and run requests of that
        type are routed to ``handler``.
        """
        if kind in BUILTIN_FUNCTION_TYPES:
            raise ValueError(f"Cannot override built-in function type '{kind}'")
        self._handlers[kind] = handler
        self.registry.register_type(kind)
        logger.info(f"Registered handler for function type '{kind}'")

    def allowed_kinds(self) -> List[str]:
        return sorted(BUILTIN_FUNCTION_TYPES) + sorted(self._handlers)

    def dispatch(self, request: ExecutionRequest) -> ExecutionOutcome:
        """Process one request start to finish.

        Never raises for anything user code does. The returned outcome is
        what the client receives; ``success`` decides between 200 and 400.
        """
        ctx = {"request": request}
        task_id = self.hooks.apply(HookPoint.PROCESS_TASK_ID, request.task_id, **ctx)
        name = self.hooks.apply(HookPoint.PROCESS_FUNCTION_NAME, request.function_name, **ctx)
        kind = self.hooks.apply(HookPoint.PROCESS_FUNCTION_TYPE, request.kind, **ctx)
        params = self.hooks.apply(HookPoint.PROCESS_PARAMS, request.params, name=name, type=kind, **ctx)
        meta = self.hooks.apply(HookPoint.PROCESS_META, request.meta, name=name, type=kind, **ctx)

        definition: Optional[FunctionDefinition] = None
        if not task_id:
            outcome = ExecutionOutcome.failed("Missing required parameter: task_id")
        elif not name or not kind:
            outcome = ExecutionOutcome.failed("Missing required parameters: method and type")
        else:
            if kind == FunctionType.ONE_SHOT_TRIGGER.value and params is None:
                params = {}
            if not self._params_shape_ok(kind, params):
                outcome = ExecutionOutcome.failed("Invalid params parameter. Expected: array")
            elif kind not in self.allowed_kinds():
                outcome = ExecutionOutcome.failed("Invalid type parameter")
            else:
                definition = self.registry.get(name)
                if definition is None:
                    outcome = ExecutionOutcome.failed(f"Function '{name}' not found")
                elif definition.type != kind:
                    outcome = ExecutionOutcome.failed(f"Function '{name}' is not a {kind} function")
                else:
                    outcome = self._run(definition, kind, params)

        function_data = definition.log_view() if definition else {"name": name, "type": kind, "label": name}
        outcome = self.hooks.apply(
            HookPoint.PROCESS_RESPONSE, outcome, function=function_data, params=params, **ctx
        )

        self._log(task_id, function_data, params, outcome, extract_caller_meta(meta))
        return outcome

    # -----------------------------------------------------------------
    # Modes
    # -----------------------------------------------------------------

    def _run(self, definition: FunctionDefinition, kind: str, params: Any) -> ExecutionOutcome:
        if kind == FunctionType.BATCH_RECORD.value:
            return self.run_batch(definition, params)
        if kind == FunctionType.PAGED_IMPORT.value:
            return self.run_paged(definition, params)
        if kind == FunctionType.ONE_SHOT_TRIGGER.value:
            return self.run_one_shot(definition, params)

        outcome = self._handlers[kind](definition, params, self.executor)
        if outcome is None:
            return ExecutionOutcome.failed("Invalid type parameter")
        return outcome

    def run_batch(self, definition: FunctionDefinition, records: List[Any]) -> ExecutionOutcome:
        """Invoke once per record, continuing past per-record failures.

        The batch is rejected up front, before any invocation, if identifiers
        collide or any record lacks one. Identifiers compare by their string
        form, so ``1`` and ``"1"`` collide.
        """
        identifiers = [
            str(r["identifier"]) for r in records if isinstance(r, Mapping) and r.get("identifier") is not None
        ]
        if len(identifiers) != len(set(identifiers)):
            return ExecutionOutcome.failed("Identifiers in records are not unique")

        for record in records:
            if not isinstance(record, Mapping) or not record.get("identifier"):
                return ExecutionOutcome.failed("Missing identifier in one or more records")

        responses = []
        for record in records:
            identifier = record["identifier"]
            result = self.executor.invoke(definition, record)
            if not result.success:
                responses.append({"identifier": identifier, "success": False, "message": result.message})
            elif isinstance(result.data, Mapping):
                responses.append({**result.data, "identifier": identifier})
            else:
                responses.append({"message": result.data, "identifier": identifier})

        # Dispatched is success; per-record failures live in the data list
        return ExecutionOutcome.succeeded(responses)

    def run_paged(self, definition: FunctionDefinition, params: Any) -> ExecutionOutcome:
        cursor = params if isinstance(params, Mapping) else {}
        if cursor.get("index") in (None, ""):
            return ExecutionOutcome.failed("Missing required parameter: index")
        if not cursor.get("batchSize"):
            return ExecutionOutcome.failed("Missing required parameter: batchSize")
        return self.executor.invoke(definition, params)

    def run_one_shot(self, definition: FunctionDefinition, params: Any) -> ExecutionOutcome:
        return self.executor.invoke(definition, params)

    # -----------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------

    @staticmethod
    def _params_shape_ok(kind: str, params: Any) -> bool:
        if kind == FunctionType.BATCH_RECORD.value:
            return isinstance(params, list) and len(params) > 0
        if kind == FunctionType.ONE_SHOT_TRIGGER.value:
            return isinstance(params, (list, Mapping))
        return isinstance(params, (list, Mapping)) and len(params) > 0

    def _log(
        self,
        task_id: Any,
        function_data: Dict[str, Any],
        params: Any,
        outcome: ExecutionOutcome,
        meta: Optional[Dict[str, Any]],
    ) -> None:
        try:
            entry = LogEntry(
                task_id=str(task_id or ""),
                function_name=function_data.get("name"),
                function_label=function_data.get("label"),
                function_type=function_data.get("type"),
                status=LogStatus.SUCCESS if outcome.success else LogStatus.ERROR,
                request_data=params,
                response_data=outcome.log_payload,
                meta_data=meta,
            )
            entry = self.hooks.apply(HookPoint.LOG_ENTRY, entry, outcome=outcome)
            if entry is None:
                logger.debug(f"Execution log entry for task {task_id} dropped by hook")
                return
            self.log_storage.append(entry)
        except LoggingFailure as e:
            logger.exception(f"Execution log unavailable for task {task_id}: {e.message}")
        except Exception:
            logger.exception(f"Failed to write execution log for task {task_id}")
