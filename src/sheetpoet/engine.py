"""Composition root: wires the engine's collaborators together.

Nothing in the engine is a process-wide singleton. Each entry point (API,
CLI, tests) builds its own Engine and passes it down explicitly.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from sheetpoet.config.settings import EngineSettings
from sheetpoet.execution.dispatcher import ProcessDispatcher
from sheetpoet.execution.executor import Executor
from sheetpoet.hooks import HookRegistry
from sheetpoet.services.audit.file_storage import FileExecutionLogStorage
from sheetpoet.services.audit.interfaces import ExecutionLogStorage
from sheetpoet.services.function_registry import FunctionRegistry
from sheetpoet.storage.filesystem import FileFunctionStore
from sheetpoet.storage.protocol import FunctionStore
from sheetpoet.validation.blocklist import BlocklistValidator
from sheetpoet.validation.function_validator import FunctionValidator
from sheetpoet.validation.syntax import SyntaxCapabilities, SyntaxChecker

logger = logging.getLogger(__name__)


@dataclass
class Engine:
    """All engine components for one process."""

    settings: EngineSettings
    hooks: HookRegistry
    validator: FunctionValidator
    registry: FunctionRegistry
    executor: Executor
    dispatcher: ProcessDispatcher
    log_storage: ExecutionLogStorage
    capabilities: SyntaxCapabilities = field(default_factory=SyntaxCapabilities)


def build_engine(
    settings: Optional[EngineSettings] = None,
    function_store: Optional[FunctionStore] = None,
    log_storage: Optional[ExecutionLogStorage] = None,
    hooks: Optional[HookRegistry] = None,
    capabilities: Optional[SyntaxCapabilities] = None,
) -> Engine:
    """Build an Engine from settings.

    Args:
        settings: Engine settings (default: EngineSettings.from_env()).
        function_store: Override the function store (default: JSON file in data_dir).
        log_storage: Override the execution log (default: JSONL file in data_dir/logs).
        hooks: Shared extension points (default: empty registry).
        capabilities: Override syntax-layer detection.

    Returns:
        A fully wired Engine.
    """
    settings = settings or EngineSettings.from_env()
    hooks = hooks or HookRegistry()

    if capabilities is None:
        capabilities = SyntaxCapabilities.detect(
            settings.syntax_strategies, settings.interpreter_candidates
        )

    validator = FunctionValidator(
        BlocklistValidator(settings.privileged_handles),
        SyntaxChecker(capabilities, timeout_seconds=settings.syntax_check_timeout_seconds),
        hooks,
    )
    registry = FunctionRegistry(
        function_store or FileFunctionStore(settings.functions_file),
        validator,
        hooks,
    )
    executor = Executor(hooks, timeout_seconds=settings.execution_timeout_seconds)
    log_storage = log_storage or FileExecutionLogStorage(settings.logs_dir)
    dispatcher = ProcessDispatcher(registry, executor, log_storage, hooks)

    logger.debug(f"Engine built with data_dir={settings.data_dir}")
    return Engine(
        settings=settings,
        hooks=hooks,
        validator=validator,
        registry=registry,
        executor=executor,
        dispatcher=dispatcher,
        log_storage=log_storage,
        capabilities=capabilities,
    )
