"""Admission validation for user functions.

Combines name checks, the blocklist and the syntax checker into the single
verdict the registry relies on before anything is stored.
"""

import ast
import builtins
import keyword
import logging
import re
from typing import Optional

from sheetpoet.hooks import HookPoint, HookRegistry
from sheetpoet.schemas.validation import SyntaxStrategy, ValidationResult
from sheetpoet.validation.blocklist import BlocklistValidator
from sheetpoet.validation.policy import SAFE_BUILTIN_NAMES, SAFE_MODULES
from sheetpoet.validation.syntax import SyntaxChecker

logger = logging.getLogger(__name__)

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

RESERVED_WORDS = frozenset(w.lower() for w in keyword.kwlist + getattr(keyword, "softkwlist", []))

# Names user functions may not shadow inside the restricted namespace
HOST_NAMES = frozenset(dir(builtins)) | SAFE_MODULES

# Builtins that exist on the host but not inside the sandbox
UNAVAILABLE_BUILTINS = frozenset(n for n in dir(builtins) if not n.startswith("__")) - frozenset(SAFE_BUILTIN_NAMES)


class FunctionValidator:
    """Validate a function name and its source before admission.

    Args:
        blocklist: Static deny-list validator.
        syntax_checker: Layered syntax checker.
        hooks: Optional extension points for host instrumentation.
    """

    def __init__(
        self,
        blocklist: BlocklistValidator,
        syntax_checker: SyntaxChecker,
        hooks: Optional[HookRegistry] = None,
    ):
        self.blocklist = blocklist
        self.syntax_checker = syntax_checker
        self.hooks = hooks or HookRegistry()

    def validate_function_code(self, name: str, code: str) -> ValidationResult:
        """Run the full admission check.

        Args:
            name: Function name the code must declare.
            code: Submitted source.

        Returns:
            The combined verdict, after ``function_validation_result`` hooks.
        """
        name = (name or "").strip()
        code = (code or "").strip()
        name = self.hooks.apply(HookPoint.FUNCTION_NAME_BEFORE_VALIDATION, name, code=code)
        code = self.hooks.apply(HookPoint.FUNCTION_CODE_BEFORE_VALIDATION, code, name=name)

        result = self._validate(name, code)
        if result.valid and result.strategy not in (None, SyntaxStrategy.PARSER):
            logger.warning(f"Function '{name}' admitted by fallback syntax layer '{result.strategy.value}'")

        return self.hooks.apply(HookPoint.FUNCTION_VALIDATION_RESULT, result, name=name, code=code)

    def _validate(self, name: str, code: str) -> ValidationResult:
        if not name:
            return ValidationResult.fail("Function name cannot be empty.")
        if not code:
            return ValidationResult.fail("Function code cannot be empty.")

        result = self.check_name(name)
        if not result.valid:
            return result

        result = self.blocklist.check(code)
        if not result.valid:
            return result

        result = self.check_structure(name, code)
        if not result.valid:
            return result

        result = self.syntax_checker.check_syntax(code, name)
        if not result.valid:
            return result

        unavailable = self.check_builtins(code)
        if not unavailable.valid:
            return unavailable
        return result

    def check_name(self, name: str) -> ValidationResult:
        if not IDENTIFIER_PATTERN.match(name):
            return ValidationResult.fail(
                "Invalid function name. Use only letters, numbers and underscores, "
                "and do not start with a number."
            )
        if name.lower() in RESERVED_WORDS:
            return ValidationResult.fail(f"Function name '{name}' is a reserved keyword.")
        if name in HOST_NAMES:
            return ValidationResult.fail(
                f"Function name '{name}' conflicts with an existing built-in name. Choose a different name."
            )
        return ValidationResult.ok("Function name is valid.")

    def check_builtins(self, code: str) -> ValidationResult:
        """Reject reads of host builtins the sandbox does not provide.

        Names the code binds itself (assignments, parameters, imports and
        definitions) are not builtins. Source that does not parse is left to
        the syntax layers.
        """
        try:
            tree = ast.parse(code)
        except (SyntaxError, ValueError):
            return ValidationResult.ok("Built-in usage not checked.")

        bound = _bound_names(tree)
        for node in ast.walk(tree):
            if (
                isinstance(node, ast.Name)
                and isinstance(node.ctx, ast.Load)
                and node.id in UNAVAILABLE_BUILTINS
                and node.id not in bound
            ):
                return ValidationResult.fail(f"Built-in '{node.id}' is not available inside user functions.")
        return ValidationResult.ok("Built-in usage is valid.")

    def check_structure(self, name: str, code: str) -> ValidationResult:
        """Textual preconditions checked before any syntax layer runs."""
        declarations = re.findall(r"^def\s+" + re.escape(name) + r"\s*\(\s*(\w*)", code, re.MULTILINE)
        if not declarations:
            return ValidationResult.fail(f"Code must declare a top-level function named '{name}'.")
        if len(declarations) > 1:
            return ValidationResult.fail(f"Function '{name}' is declared more than once.")
        if declarations[0] != "record":
            return ValidationResult.fail(f"The first parameter of function '{name}' must be named 'record'.")
        if not re.search(r"\breturn\b", code):
            return ValidationResult.fail(f"Function '{name}' must contain a return statement.")
        return ValidationResult.ok("Function structure is valid.")


def _bound_names(tree: ast.AST) -> frozenset:
    names = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Name) and not isinstance(node.ctx, ast.Load):
            names.add(node.id)
        elif isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
            names.add(node.name)
        elif isinstance(node, ast.arg):
            names.add(node.arg)
        elif isinstance(node, ast.alias):
            names.add(node.asname or node.name.split(".")[0])
        elif isinstance(node, ast.ExceptHandler) and node.name:
            names.add(node.name)
        elif isinstance(node, (ast.Global, ast.Nonlocal)):
            names.update(node.names)
        elif isinstance(node, (ast.MatchAs, ast.MatchStar)) and node.name:
            names.add(node.name)
        elif isinstance(node, ast.MatchMapping) and node.rest:
            names.add(node.rest)
    return frozenset(names)
