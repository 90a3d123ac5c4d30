"""Engine settings.

Settings are read from an optional YAML file and then overridden by
environment variables with the ``SHEETPOET_`` prefix (``.env`` is loaded
first by :mod:`sheetpoet.startup`).
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

VALID_SYNTAX_STRATEGIES = ("parser", "interpreter", "tokens")


def _split_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class EngineSettings(BaseModel):
    """Configuration for the function engine and its HTTP surface.

    Attributes:
        data_dir: Directory holding functions.json and the execution log.
        plugin_enabled: Feature flag; when off, client run requests get 403.
        api_keys: Keys accepted in the X-API-Key header of client routes.
        admin_token: Token accepted in the X-Admin-Token header of admin routes.
        execution_timeout_seconds: Upper bound for one user-function call.
        syntax_check_timeout_seconds: Upper bound for one external lint run.
        syntax_strategies: Enabled syntax-check layers, in priority order.
        interpreter_candidates: Interpreter paths tried by the lint layer.
        privileged_handles: Extra names user code may never reference.
        log_level: Root log level for the API server.

    Example:
        >>> settings = EngineSettings(data_dir=Path("output"), api_keys=["k1"])
    """

    data_dir: Path = Path("output")
    plugin_enabled: bool = True
    api_keys: List[str] = Field(default_factory=list)
    admin_token: Optional[str] = None
    execution_timeout_seconds: float = Field(default=30.0, gt=0)
    syntax_check_timeout_seconds: float = Field(default=10.0, gt=0)
    syntax_strategies: List[str] = Field(default_factory=lambda: list(VALID_SYNTAX_STRATEGIES))
    interpreter_candidates: List[str] = Field(default_factory=list)
    privileged_handles: List[str] = Field(default_factory=list)
    log_level: str = "INFO"

    model_config = {"extra": "forbid"}

    @field_validator("data_dir", mode="before")
    @classmethod
    def convert_data_dir(cls, v):
        """Convert string paths to Path objects."""
        if isinstance(v, str):
            return Path(v)
        return v

    @field_validator("api_keys", "syntax_strategies", "interpreter_candidates", "privileged_handles", mode="before")
    @classmethod
    def split_comma_lists(cls, v):
        """Accept comma-separated strings for list settings."""
        if isinstance(v, str):
            return _split_list(v)
        return v

    @field_validator("syntax_strategies")
    @classmethod
    def validate_strategies(cls, v: List[str]) -> List[str]:
        """Reject unknown syntax-check layers."""
        for name in v:
            if name not in VALID_SYNTAX_STRATEGIES:
                raise ValueError(
                    f"Unknown syntax strategy '{name}'. Valid strategies: {list(VALID_SYNTAX_STRATEGIES)}"
                )
        return v

    @property
    def functions_file(self) -> Path:
        return self.data_dir / "functions.json"

    @property
    def logs_dir(self) -> Path:
        return self.data_dir / "logs"

    @classmethod
    def from_yaml(cls, path: Path) -> Dict[str, Any]:
        """Read raw settings from a YAML file.

        Args:
            path: YAML file with top-level keys matching the attribute names.

        Returns:
            Dict of raw values (empty if the file does not exist).

        Raises:
            ValueError: If the file is not a YAML mapping.
        """
        if not path.exists():
            return {}
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Settings file {path} must contain a mapping")
        logger.debug(f"Loaded settings from {path}")
        return data

    @classmethod
    def from_env(cls, prefix: str = "SHEETPOET_", config_path: Optional[Path] = None) -> "EngineSettings":
        """Create settings from an optional YAML file plus environment variables.

        Environment variables:
            {prefix}CONFIG: YAML settings file (default: config/sheetpoet.yaml)
            {prefix}DATA_DIR: Data directory
            {prefix}PLUGIN_ENABLED: "true"/"false"
            {prefix}API_KEYS: Comma-separated client API keys
            {prefix}ADMIN_TOKEN: Admin token
            {prefix}EXECUTION_TIMEOUT: Seconds per user-function call
            {prefix}SYNTAX_CHECK_TIMEOUT: Seconds per external lint run
            {prefix}SYNTAX_STRATEGIES: Comma-separated layers
            {prefix}INTERPRETERS: Comma-separated interpreter candidates
            {prefix}PRIVILEGED_HANDLES: Comma-separated forbidden names
            {prefix}LOG_LEVEL: Log level

        Args:
            prefix: Environment variable prefix (default: SHEETPOET_)
            config_path: Explicit YAML file, overrides {prefix}CONFIG

        Returns:
            EngineSettings with YAML values overridden by the environment
        """
        if config_path is None:
            config_path = Path(os.getenv(f"{prefix}CONFIG", "config/sheetpoet.yaml"))
        kwargs: Dict[str, Any] = cls.from_yaml(config_path)

        env_map = {
            "DATA_DIR": "data_dir",
            "PLUGIN_ENABLED": "plugin_enabled",
            "API_KEYS": "api_keys",
            "ADMIN_TOKEN": "admin_token",
            "EXECUTION_TIMEOUT": "execution_timeout_seconds",
            "SYNTAX_CHECK_TIMEOUT": "syntax_check_timeout_seconds",
            "SYNTAX_STRATEGIES": "syntax_strategies",
            "INTERPRETERS": "interpreter_candidates",
            "PRIVILEGED_HANDLES": "privileged_handles",
            "LOG_LEVEL": "log_level",
        }
        for env_name, field_name in env_map.items():
            value = os.getenv(f"{prefix}{env_name}")
            if value:
                kwargs[field_name] = value

        return cls(**kwargs)
