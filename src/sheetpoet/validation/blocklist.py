"""Blocklist/pattern validator.

Pure static text and token analysis of submitted source. Checks run in a
fixed order and the first rule that fires produces the (deterministic)
rejection message:

1. Indirect invocation: namespace lookups and interpreter-internal attributes
2. Source-encoding declarations other than UTF-8
3. Deny-listed capabilities: calls, existence checks, imports, token sweep
4. References to the host application
5. Shell escapes
6. Deserialization modules
7. Reflection
"""

import io
import logging
import re
import tokenize
from typing import Iterable, List, Optional, Tuple

from sheetpoet.schemas.validation import ValidationResult
from sheetpoet.validation.policy import (
    BARE_BUILTIN_FUNCTIONS,
    DANGEROUS_FUNCTIONS,
    DANGEROUS_MODULES,
    DESERIALIZATION_MODULES,
    HOST_PACKAGE,
    INTERNAL_ATTRIBUTES,
    SAFE_MODULES,
)

logger = logging.getLogger(__name__)

_NAMESPACE_LOOKUP = re.compile(r"(?<![\w.])(globals|locals|vars)\s*\(")
_NAMESPACE_SUBSCRIPT = re.compile(
    r"(?<![\w.])(globals|locals|vars)\s*\([^()]*\)\s*\[\s*['\"]([^'\"]+)['\"]"
)
_SUBSCRIPT_CALL = re.compile(r"\][ \t]*\(")
_INTERNAL_ATTRIBUTE = re.compile(
    r"\b(" + "|".join(re.escape(a) for a in INTERNAL_ATTRIBUTES) + r")\b"
)

# PEP 263: only the first two lines may carry a coding cookie
_CODING_COOKIE = re.compile(r"^[ \t\f]*#.*?coding[:=][ \t]*([-\w.]+)")
_ALLOWED_ENCODINGS = {"utf-8", "utf8", "utf_8"}

_IMPORT = re.compile(r"^[ \t]*import[ \t]+([\w., \t]+)", re.MULTILINE)
_FROM_IMPORT = re.compile(r"^[ \t]*from[ \t]+([\w.]+)[ \t]+import\b", re.MULTILINE)

_BACKTICKS = re.compile(r"`[^`]*`")
_SHELL_ESCAPE = re.compile(r"^[ \t]*[!%]\w", re.MULTILINE)

_DESERIALIZATION = re.compile(
    r"\b(" + "|".join(re.escape(m) for m in DESERIALIZATION_MODULES) + r")\b"
)
_REFLECTION = re.compile(r"\binspect\s*\.|\b_getframe\b|\bcurrentframe\b")


def _call_pattern(name: str) -> "re.Pattern[str]":
    if name in BARE_BUILTIN_FUNCTIONS:
        return re.compile(r"(?<![\w.])" + re.escape(name) + r"\s*\(", re.IGNORECASE)
    return re.compile(r"\b" + re.escape(name) + r"\s*\(", re.IGNORECASE)


def _calls_subscript_result(code: str) -> bool:
    """True if a subscript result is called, as in ``handlers[key](record)``.

    A ``(`` that starts a new logical line is not a call. When the source
    cannot be tokenized, falls back to a same-line regex.
    """
    try:
        previous = None
        for tok in tokenize.generate_tokens(io.StringIO(code).readline):
            if tok.type in (tokenize.NL, tokenize.COMMENT):
                continue
            if tok.type == tokenize.OP and tok.string == "(" and previous == "]":
                return True
            previous = tok.string if tok.type == tokenize.OP else None
    except (tokenize.TokenError, IndentationError, SyntaxError):
        return bool(_SUBSCRIPT_CALL.search(code))
    return False


def _existence_patterns(name: str) -> Tuple["re.Pattern[str]", "re.Pattern[str]"]:
    quoted = r"['\"]" + re.escape(name) + r"['\"]"
    by_attribute = re.compile(r"\b(?:hasattr|getattr|setattr|delattr)\s*\([^()]*?" + quoted)
    by_membership = re.compile(
        quoted + r"\s+(?:not\s+)?in\s+(?:dir\b|globals\b|locals\b|vars\b|__builtins__)"
    )
    return by_attribute, by_membership


class BlocklistValidator:
    """Rejects submissions that use dangerous capabilities.

    Args:
        privileged_handles: Extra names that must never appear in user code,
            in addition to the host package itself.

    Usage:
        validator = BlocklistValidator()
        result = validator.check("def f(record):\\n    return eval('1')")
        assert not result.valid
    """

    def __init__(self, privileged_handles: Iterable[str] = ()):
        self._functions: List[Tuple[str, "re.Pattern[str]", Tuple["re.Pattern[str]", "re.Pattern[str]"]]] = [
            (name, _call_pattern(name), _existence_patterns(name)) for name in DANGEROUS_FUNCTIONS
        ]
        self._lowered = {name.lower(): name for name in DANGEROUS_FUNCTIONS}
        handles = [HOST_PACKAGE] + [h for h in privileged_handles if h]
        self._handles = [(h, re.compile(r"\b" + re.escape(h) + r"\b")) for h in handles]

    def check(self, code: str) -> ValidationResult:
        """Run every rule in order and return the first rejection, if any."""
        for rule in (
            self._check_indirect_invocation,
            self._check_source_encoding,
            self._check_dangerous_functions,
            self._check_privileged_handles,
            self._check_shell_escapes,
            self._check_deserialization,
            self._check_reflection,
        ):
            result = rule(code)
            if result is not None:
                logger.info(f"Blocklist rejected submission: {result.message}")
                return result
        return ValidationResult.ok("No dangerous code detected.")

    # -----------------------------------------------------------------
    # Rules
    # -----------------------------------------------------------------

    def _check_indirect_invocation(self, code: str) -> Optional[ValidationResult]:
        match = _NAMESPACE_SUBSCRIPT.search(code)
        if match:
            return ValidationResult.fail(
                f"Dynamic access to '{match.group(2)}' through {match.group(1)}() is not allowed."
            )
        match = _NAMESPACE_LOOKUP.search(code)
        if match:
            return ValidationResult.fail(
                f"Namespace lookups ({match.group(1)}()) are not allowed for security reasons."
            )
        match = _INTERNAL_ATTRIBUTE.search(code)
        if match:
            return ValidationResult.fail(
                f"Access to interpreter internals ('{match.group(1)}') is not allowed for security reasons."
            )
        if _calls_subscript_result(code):
            return ValidationResult.fail("Dynamic function calls through lookups are not allowed.")
        return None

    def _check_source_encoding(self, code: str) -> Optional[ValidationResult]:
        for line in code.splitlines()[:2]:
            match = _CODING_COOKIE.match(line)
            if match and match.group(1).lower() not in _ALLOWED_ENCODINGS:
                return ValidationResult.fail(
                    f"Source encoding declaration '{match.group(1)}' is not allowed. "
                    "Only UTF-8 source is accepted."
                )
        return None

    def _check_dangerous_functions(self, code: str) -> Optional[ValidationResult]:
        for name, call, (by_attribute, by_membership) in self._functions:
            if call.search(code):
                return ValidationResult.fail(f"Dangerous function '{name}' detected in code.")
            if by_attribute.search(code) or by_membership.search(code):
                return ValidationResult.fail(
                    f"Attempting to check for dangerous function '{name}' is not allowed."
                )

        result = self._check_imports(code)
        if result is not None:
            return result

        try:
            return self._analyze_tokens(code)
        except (tokenize.TokenError, IndentationError, SyntaxError) as e:
            # The regex sweep above already passed; losing the token layer is not fatal
            logger.debug(f"Token sweep unavailable, regex-only verdict: {e}")
            return None

    def _check_imports(self, code: str) -> Optional[ValidationResult]:
        modules: List[str] = []
        for match in _IMPORT.finditer(code):
            for part in match.group(1).split(","):
                part = part.strip()
                if part:
                    modules.append(part.split()[0])
        modules.extend(m.group(1) for m in _FROM_IMPORT.finditer(code))

        for module in modules:
            base = module.split(".")[0]
            if base in DANGEROUS_MODULES:
                return ValidationResult.fail(f"Import of dangerous module '{module}' is not allowed.")
            if base not in SAFE_MODULES:
                return ValidationResult.fail(
                    f"Import of module '{module}' is not allowed. "
                    f"Allowed modules: {', '.join(sorted(SAFE_MODULES))}."
                )
        return None

    def _analyze_tokens(self, code: str) -> Optional[ValidationResult]:
        """Confirm deny-list hits with a real lexer.

        Catches calls the regex sweep cannot see, such as a line continuation
        between the name and its opening parenthesis.
        """
        tokens = [
            tok
            for tok in tokenize.generate_tokens(io.StringIO(code).readline)
            if tok.type not in (tokenize.NL, tokenize.COMMENT)
        ]
        for i, tok in enumerate(tokens):
            if tok.type != tokenize.NAME:
                continue
            name = self._lowered.get(tok.string.lower())
            if name is None:
                continue
            if name in BARE_BUILTIN_FUNCTIONS and i > 0 and tokens[i - 1].string == ".":
                continue
            if i + 1 < len(tokens) and tokens[i + 1].type == tokenize.OP and tokens[i + 1].string == "(":
                return ValidationResult.fail(f"Dangerous function '{name}' detected in code.")
        return None

    def _check_privileged_handles(self, code: str) -> Optional[ValidationResult]:
        for handle, pattern in self._handles:
            if pattern.search(code):
                return ValidationResult.fail(
                    f"Direct access to the host application ('{handle}') is not allowed."
                )
        return None

    def _check_shell_escapes(self, code: str) -> Optional[ValidationResult]:
        if _BACKTICKS.search(code):
            return ValidationResult.fail("Backtick operators (`) for shell execution are not allowed.")
        if _SHELL_ESCAPE.search(code):
            return ValidationResult.fail("Shell escapes (!command) and magics (%command) are not allowed.")
        return None

    def _check_deserialization(self, code: str) -> Optional[ValidationResult]:
        match = _DESERIALIZATION.search(code)
        if match:
            return ValidationResult.fail(
                f"The {match.group(1)} module is not allowed for security reasons."
            )
        return None

    def _check_reflection(self, code: str) -> Optional[ValidationResult]:
        if _REFLECTION.search(code):
            return ValidationResult.fail("Reflection and frame access are not allowed for security reasons.")
        return None
