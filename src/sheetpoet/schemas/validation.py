"""Validation result schema."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class SyntaxStrategy(str, Enum):
    """Which syntax-check layer produced a verdict."""

    PARSER = "parser"  # structural parse with the ast module
    INTERPRETER = "interpreter"  # external interpreter lint (py_compile)
    TOKENS = "tokens"  # token balance heuristic


class ValidationResult(BaseModel):
    """Outcome of one validation call. Ephemeral, never persisted."""

    valid: bool = Field(..., description="Whether the submission passed")
    message: str = Field(..., description="User-actionable explanation")
    strategy: Optional[SyntaxStrategy] = Field(
        None, description="Syntax layer that produced the verdict, if any"
    )

    @classmethod
    def ok(cls, message: str, strategy: Optional[SyntaxStrategy] = None) -> "ValidationResult":
        return cls(valid=True, message=message, strategy=strategy)

    @classmethod
    def fail(cls, message: str, strategy: Optional[SyntaxStrategy] = None) -> "ValidationResult":
        return cls(valid=False, message=message, strategy=strategy)
