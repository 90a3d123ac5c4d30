"""Restricted namespace user functions are materialized into.

User code only ever sees an explicit allow-list of builtins. ``__import__``
is replaced by a guard that admits the safe modules and nothing else, and
``print`` goes to the ``sheetpoet.user_functions`` logger instead of stdout.
"""

import builtins
import logging
from typing import Any, Dict

from sheetpoet.validation.policy import SAFE_BUILTIN_NAMES, SAFE_MODULES

user_logger = logging.getLogger("sheetpoet.user_functions")


def _guarded_import(name, globals=None, locals=None, fromlist=(), level=0):
    if level != 0:
        raise ImportError("Relative imports are not allowed in user functions")
    if name.split(".")[0] not in SAFE_MODULES:
        raise ImportError(f"Import of module '{name}' is not allowed")
    return builtins.__import__(name, globals, locals, fromlist, level)


def _user_print(*args, sep=" ", end="\n", file=None, flush=False):
    user_logger.info(sep.join(str(arg) for arg in args))


def safe_builtins() -> Dict[str, Any]:
    allowed = {name: getattr(builtins, name) for name in SAFE_BUILTIN_NAMES}
    allowed["__import__"] = _guarded_import
    allowed["print"] = _user_print
    # Needed by the compiler for class bodies inside user functions
    allowed["__build_class__"] = builtins.__build_class__
    return allowed


def build_namespace(function_name: str) -> Dict[str, Any]:
    """Fresh module namespace for one user function."""
    return {
        "__builtins__": safe_builtins(),
        "__name__": f"user_function_{function_name}",
    }
