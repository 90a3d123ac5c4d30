"""Static admission checks for user functions."""

from sheetpoet.validation.blocklist import BlocklistValidator
from sheetpoet.validation.function_validator import FunctionValidator
from sheetpoet.validation.syntax import SyntaxCapabilities, SyntaxChecker

__all__ = [
    "BlocklistValidator",
    "FunctionValidator",
    "SyntaxCapabilities",
    "SyntaxChecker",
]
