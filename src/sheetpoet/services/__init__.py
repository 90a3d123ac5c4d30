"""Services for function admission and execution logging."""

from sheetpoet.services.function_registry import FunctionRegistry

__all__ = ["FunctionRegistry"]
