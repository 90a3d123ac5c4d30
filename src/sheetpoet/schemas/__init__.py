"""Pydantic schemas shared by the engine, the API and the CLI."""

from sheetpoet.schemas.execution import ExecutionOutcome, ExecutionRequest
from sheetpoet.schemas.function_definition import (
    BUILTIN_FUNCTION_TYPES,
    FunctionActionRequest,
    FunctionDefinition,
    FunctionSaveRequest,
    FunctionType,
)
from sheetpoet.schemas.log_entry import LogEntry, LogPage, LogStatus, TaskLogSummary
from sheetpoet.schemas.validation import SyntaxStrategy, ValidationResult

__all__ = [
    "BUILTIN_FUNCTION_TYPES",
    "ExecutionOutcome",
    "ExecutionRequest",
    "FunctionActionRequest",
    "FunctionDefinition",
    "FunctionSaveRequest",
    "FunctionType",
    "LogEntry",
    "LogPage",
    "LogStatus",
    "SyntaxStrategy",
    "TaskLogSummary",
    "ValidationResult",
]
