"""Materialization, invocation and dispatch of user functions."""

from sheetpoet.execution.dispatcher import ProcessDispatcher, extract_caller_meta
from sheetpoet.execution.executor import Executor

__all__ = ["Executor", "ProcessDispatcher", "extract_caller_meta"]
