"""Configuration for the function engine."""

from sheetpoet.config.settings import VALID_SYNTAX_STRATEGIES, EngineSettings

__all__ = ["EngineSettings", "VALID_SYNTAX_STRATEGIES"]
