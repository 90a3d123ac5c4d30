"""
Pytest fixtures and configuration for SheetPoet tests.
Provides engine components wired against in-memory or tmp_path storage.
"""

import pytest

from sheetpoet.config.settings import EngineSettings
from sheetpoet.engine import build_engine
from sheetpoet.execution.dispatcher import ProcessDispatcher
from sheetpoet.execution.executor import Executor
from sheetpoet.hooks import HookRegistry
from sheetpoet.schemas.function_definition import FunctionDefinition
from sheetpoet.services.audit.memory_storage import InMemoryExecutionLogStorage
from sheetpoet.services.function_registry import FunctionRegistry
from sheetpoet.storage.memory import InMemoryFunctionStore
from sheetpoet.validation.blocklist import BlocklistValidator
from sheetpoet.validation.function_validator import FunctionValidator
from sheetpoet.validation.syntax import SyntaxCapabilities, SyntaxChecker


CLEAN_ROW_CODE = '''def clean_row(record):
    """Double the quantity of one row."""
    return {"qty": record["qty"] * 2}
'''


def make_function(name, body="return record", type="upload_to_website", params="record"):
    """Build a stored definition without going through admission."""
    code = f"def {name}({params}):\n    {body}\n"
    return FunctionDefinition(name=name, label=name.replace("_", " ").title(), code=code, type=type)


@pytest.fixture
def hooks():
    return HookRegistry()


@pytest.fixture
def parser_capabilities():
    """Parser and tokenizer only; no external interpreter."""
    return SyntaxCapabilities(parser=True, interpreters=[], tokenizer=True)


@pytest.fixture
def validator(hooks, parser_capabilities):
    return FunctionValidator(BlocklistValidator(), SyntaxChecker(parser_capabilities), hooks)


@pytest.fixture
def function_store():
    return InMemoryFunctionStore()


@pytest.fixture
def registry(function_store, validator, hooks):
    return FunctionRegistry(function_store, validator, hooks)


@pytest.fixture
def executor(hooks):
    return Executor(hooks, timeout_seconds=5)


@pytest.fixture
def log_storage():
    return InMemoryExecutionLogStorage()


@pytest.fixture
def dispatcher(registry, executor, log_storage, hooks):
    return ProcessDispatcher(registry, executor, log_storage, hooks)


@pytest.fixture
def settings(tmp_path):
    return EngineSettings(
        data_dir=tmp_path / "data",
        api_keys=["client-key"],
        admin_token="admin-secret",
    )


@pytest.fixture
def engine(settings, parser_capabilities):
    """Fully wired engine with file storage under tmp_path."""
    return build_engine(settings, capabilities=parser_capabilities)


ADMIN_HEADERS = {"X-Admin-Token": "admin-secret"}
CLIENT_HEADERS = {"X-API-Key": "client-key"}


@pytest.fixture
def api_client(engine):
    """TestClient bound to the tmp_path engine."""
    from fastapi.testclient import TestClient

    from sheetpoet.api.dependencies import set_engine
    from sheetpoet.api.main import app

    set_engine(engine)
    try:
        yield TestClient(app)
    finally:
        set_engine(None)
