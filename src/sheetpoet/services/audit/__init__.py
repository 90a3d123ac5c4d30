"""Execution log storage backends."""

from sheetpoet.services.audit.file_storage import (
    FileExecutionLogAppender,
    FileExecutionLogReader,
    FileExecutionLogStorage,
)
from sheetpoet.services.audit.interfaces import ExecutionLogStorage, LogAdmin, LogAppender, LogReader
from sheetpoet.services.audit.memory_storage import InMemoryExecutionLogStorage

__all__ = [
    "ExecutionLogStorage",
    "FileExecutionLogAppender",
    "FileExecutionLogReader",
    "FileExecutionLogStorage",
    "InMemoryExecutionLogStorage",
    "LogAdmin",
    "LogAppender",
    "LogReader",
]
