"""Layered syntax checker for submitted functions.

Three layers are tried in priority order and the first one that produces a
definitive verdict wins:

1. ``parser``: structural parse with :mod:`ast`
2. ``interpreter``: ``<python> -m py_compile`` against a temporary file
3. ``tokens``: bracket balance heuristic over :mod:`tokenize` output

Which layers are usable is resolved once at startup into a
:class:`SyntaxCapabilities` value. A verdict from a fallback layer is logged
at WARNING so low-confidence approvals can be audited.
"""

from __future__ import annotations

import ast
import io
import logging
import os
import re
import shutil
import subprocess
import sys
import tempfile
import tokenize
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from sheetpoet.schemas.validation import SyntaxStrategy, ValidationResult

logger = logging.getLogger(__name__)

DEFAULT_INTERPRETER_CANDIDATES = (
    sys.executable,
    "python3",
    "python",
    "/usr/bin/python3",
    "/usr/local/bin/python3",
)

# Embedded server binaries answer with their own usage text instead of linting
_WRONG_BINARY_MARKERS = ("uwsgi", "gunicorn", "unrecognized option", "unknown option")

_LINT_LINE = re.compile(r"line (\d+)")
_LINT_ERROR = re.compile(r"^\s*(\w*Error): (.+)$", re.MULTILINE)

_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = {")", "]", "}"}


@dataclass
class SyntaxCapabilities:
    """Which syntax-check layers are usable in this process.

    Attributes:
        parser: The ast module can parse source.
        interpreters: Interpreter binaries available for external linting.
        tokenizer: The tokenize module is usable.
    """

    parser: bool = True
    interpreters: List[str] = field(default_factory=list)
    tokenizer: bool = True

    @classmethod
    def detect(
        cls,
        strategies: Sequence[str] = ("parser", "interpreter", "tokens"),
        interpreter_candidates: Sequence[str] = (),
    ) -> "SyntaxCapabilities":
        """Resolve the usable layers.

        Args:
            strategies: Layers enabled by configuration.
            interpreter_candidates: Interpreter paths to try; defaults to the
                running interpreter followed by common install locations.

        Returns:
            Resolved capabilities. Disabled layers are always reported off.
        """
        parser = "parser" in strategies and hasattr(ast, "parse")
        tokenizer = "tokens" in strategies and hasattr(tokenize, "generate_tokens")

        interpreters: List[str] = []
        if "interpreter" in strategies:
            for candidate in interpreter_candidates or DEFAULT_INTERPRETER_CANDIDATES:
                if not candidate:
                    continue
                resolved = shutil.which(candidate) or (candidate if Path(candidate).is_file() else None)
                if resolved and resolved not in interpreters:
                    interpreters.append(resolved)

        capabilities = cls(parser=parser, interpreters=interpreters, tokenizer=tokenizer)
        logger.info(
            f"Syntax layers: parser={capabilities.parser}, "
            f"interpreters={capabilities.interpreters or 'none'}, "
            f"tokenizer={capabilities.tokenizer}"
        )
        return capabilities


class SyntaxChecker:
    """Answers "is this well-formed and does it declare the entry point".

    Never answers whether the code is semantically correct.

    Usage:
        checker = SyntaxChecker(SyntaxCapabilities.detect())
        result = checker.check_syntax(code, "clean_row")
        if not result.valid:
            print(result.message)
    """

    def __init__(self, capabilities: SyntaxCapabilities, timeout_seconds: float = 10.0):
        self.capabilities = capabilities
        self.timeout_seconds = timeout_seconds

    def check_syntax(self, code: str, function_name: str) -> ValidationResult:
        """Check ``code`` with the best available layer.

        Args:
            code: Submitted source.
            function_name: Name the entry point must be declared under.

        Returns:
            ValidationResult whose ``strategy`` names the deciding layer.
        """
        if self.capabilities.parser:
            return self._check_with_parser(code, function_name)

        if self.capabilities.interpreters:
            result = self._check_with_interpreter(code)
            if result is not None:
                logger.warning(
                    f"Syntax verdict for '{function_name}' came from the interpreter lint layer"
                )
                return result

        if self.capabilities.tokenizer:
            result = self._check_with_tokens(code)
            logger.warning(
                f"Syntax verdict for '{function_name}' came from the token heuristic layer"
            )
            return result

        logger.warning(f"No syntax layer available, '{function_name}' admitted unchecked")
        return ValidationResult.ok("Python syntax check skipped due to environment limitations.")

    # -----------------------------------------------------------------
    # Layer 1: ast
    # -----------------------------------------------------------------

    def _check_with_parser(self, code: str, function_name: str) -> ValidationResult:
        strategy = SyntaxStrategy.PARSER
        try:
            tree = ast.parse(code)
        except SyntaxError as e:
            return ValidationResult.fail(f"Python Syntax Error: {e.msg} (line {e.lineno})", strategy)

        entry_points = []
        for node in tree.body:
            if isinstance(node, ast.AsyncFunctionDef) and node.name == function_name:
                return ValidationResult.fail(
                    f"Function '{function_name}' must be a regular function, not async.", strategy
                )
            if isinstance(node, ast.FunctionDef) and node.name == function_name:
                entry_points.append(node)
            elif not _is_allowed_top_level(node):
                return ValidationResult.fail(
                    "Only imports, function definitions and constant assignments are allowed "
                    f"at the top level (line {node.lineno}).",
                    strategy,
                )

        if not entry_points:
            return ValidationResult.fail(
                f"Function '{function_name}' must be declared at the top level of the code.", strategy
            )
        if len(entry_points) > 1:
            return ValidationResult.fail(
                f"Function '{function_name}' must be declared exactly once.", strategy
            )

        entry = entry_points[0]
        params = entry.args.posonlyargs + entry.args.args
        if not params or params[0].arg != "record":
            return ValidationResult.fail(
                f"The first parameter of function '{function_name}' must be named 'record'.", strategy
            )
        if not any(isinstance(node, ast.Return) for node in ast.walk(entry)):
            return ValidationResult.fail(
                f"Function '{function_name}' must contain a return statement.", strategy
            )

        return ValidationResult.ok("Python syntax is valid.", strategy)

    # -----------------------------------------------------------------
    # Layer 2: external interpreter
    # -----------------------------------------------------------------

    def _check_with_interpreter(self, code: str) -> Optional[ValidationResult]:
        """Lint with each candidate interpreter until one gives a verdict.

        Returns:
            The verdict, or None when no candidate could lint the file.
        """
        fd, tmp_name = tempfile.mkstemp(prefix="sheetpoet_lint_", suffix=".py")
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(code)

            for interpreter in self.capabilities.interpreters:
                try:
                    completed = subprocess.run(
                        [interpreter, "-m", "py_compile", str(tmp_path)],
                        capture_output=True,
                        text=True,
                        timeout=self.timeout_seconds,
                    )
                except subprocess.TimeoutExpired:
                    logger.warning(f"Interpreter {interpreter} timed out after {self.timeout_seconds}s")
                    continue
                except OSError as e:
                    logger.debug(f"Interpreter {interpreter} unusable: {e}")
                    continue

                output = f"{completed.stdout}\n{completed.stderr}"
                if any(marker in output.lower() for marker in _WRONG_BINARY_MARKERS):
                    logger.debug(f"Skipping {interpreter}: not a CLI interpreter")
                    continue

                if completed.returncode == 0:
                    return ValidationResult.ok("Python syntax is valid.", SyntaxStrategy.INTERPRETER)
                return ValidationResult.fail(
                    _format_lint_error(output, tmp_path), SyntaxStrategy.INTERPRETER
                )

            return None
        finally:
            tmp_path.unlink(missing_ok=True)

    # -----------------------------------------------------------------
    # Layer 3: token balance
    # -----------------------------------------------------------------

    def _check_with_tokens(self, code: str) -> ValidationResult:
        strategy = SyntaxStrategy.TOKENS
        try:
            stack: List[str] = []
            has_def = False
            has_return = False
            for tok in tokenize.generate_tokens(io.StringIO(code).readline):
                if tok.type == tokenize.NAME:
                    has_def = has_def or tok.string == "def"
                    has_return = has_return or tok.string == "return"
                elif tok.type == tokenize.OP and tok.string in _OPENERS:
                    stack.append(_OPENERS[tok.string])
                elif tok.type == tokenize.OP and tok.string in _CLOSERS:
                    if not stack or stack.pop() != tok.string:
                        return ValidationResult.fail(
                            "Python Syntax Error: Unexpected closing brace, parenthesis, or bracket.",
                            strategy,
                        )
        except tokenize.TokenError:
            # Raised at EOF for unterminated brackets or strings
            return ValidationResult.fail(
                "Python Syntax Error: Unbalanced braces, parentheses, or brackets.", strategy
            )
        except Exception as e:
            logger.warning(f"Token heuristic failed: {e}")
            return ValidationResult.ok("Python syntax check skipped due to environment limitations.")

        if stack:
            return ValidationResult.fail(
                "Python Syntax Error: Unbalanced braces, parentheses, or brackets.", strategy
            )
        if not has_def:
            return ValidationResult.fail("Python Syntax Error: No function declaration found.", strategy)
        if not has_return:
            return ValidationResult.fail("Python Syntax Error: No return statement found.", strategy)

        return ValidationResult.ok(
            "Python syntax appears valid (based on limited token analysis).", strategy
        )


def _is_allowed_top_level(node: ast.stmt) -> bool:
    if isinstance(node, (ast.Import, ast.ImportFrom, ast.FunctionDef, ast.Pass)):
        return True
    if isinstance(node, ast.Expr):
        return isinstance(node.value, ast.Constant) and isinstance(node.value.value, str)
    if isinstance(node, ast.Assign):
        return all(isinstance(t, ast.Name) for t in node.targets) and _is_literal(node.value)
    if isinstance(node, ast.AnnAssign):
        return isinstance(node.target, ast.Name) and (node.value is None or _is_literal(node.value))
    return False


def _is_literal(node: ast.expr) -> bool:
    try:
        ast.literal_eval(node)
    except (ValueError, TypeError, SyntaxError, MemoryError, RecursionError):
        return False
    return True


def _format_lint_error(output: str, tmp_path: Path) -> str:
    """Trim py_compile output to a human-readable message."""
    output = output.replace(str(tmp_path), "<submission>")
    errors = _LINT_ERROR.findall(output)
    line = _LINT_LINE.search(output)
    if errors:
        message = errors[-1][1].strip()
        if line:
            return f"Python Syntax Error: {message} (line {line.group(1)})"
        return f"Python Syntax Error: {message}"
    return f"Python Syntax Error: {output.strip() or 'unknown error'}"
