"""
Configuration management for agentflow.

Settings come from (highest precedence first) explicit keyword arguments,
``AGENTFLOW_*`` environment variables, a ``.env`` file and field defaults.
YAML profiles (``configs/<profile>.yaml``) are loaded through
``load_from_file`` / ``load_profile`` and passed in as keyword arguments.
"""

from pathlib import Path
from typing import Any, Optional

import structlog
import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

logger = structlog.get_logger()

DEFAULT_CONFIG_DIR = "configs"
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class AgentflowSettings(BaseSettings):
    """agentflow settings with environment variable support."""

    # Command gateway
    gateway_base_url: str = Field(
        default="http://localhost:3000", description="Base URL of the agent backend"
    )
    gateway_execute_path: str = Field(
        default="/api/bmad/commands/execute", description="Command execution endpoint"
    )
    gateway_metadata_path: str = Field(
        default="/api/bmad/commands/metadata", description="Template/file metadata endpoint"
    )
    command_timeout_seconds: float = Field(
        default=60.0, gt=0, description="Upper bound of a single command call"
    )

    # Conversation
    history_size: int = Field(default=10, ge=1, description="Executions kept per conversation")

    # Local definitions
    agents_dir: Optional[str] = Field(
        default=None, description="Directory of agent definition files (*.md)"
    )
    templates_dir: str = Field(default="configs/templates", description="Document templates")
    docs_dir: str = Field(default="docs", description="Generated/source documents")

    # Debug settings
    debug_mode: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")

    model_config = {
        "env_file": ".env",
        "env_prefix": "AGENTFLOW_",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"Unknown log level: {value}")
        return level

    @field_validator("gateway_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @classmethod
    def load_from_file(cls, config_path: Path, **overrides: Any) -> "AgentflowSettings":
        """Load settings from a YAML configuration file."""
        config_path = Path(config_path)
        if not config_path.exists():
            logger.warning("settings.file_not_found", path=str(config_path))
            return cls(**overrides)

        with open(config_path, "r", encoding="utf-8") as f:
            config_data = yaml.safe_load(f) or {}

        if not isinstance(config_data, dict):
            raise ValueError(f"Configuration file {config_path} must contain a mapping")

        config_data.update(overrides)
        return cls(**config_data)

    @classmethod
    def load_profile(
        cls, profile: str = "dev", config_dir: str = DEFAULT_CONFIG_DIR, **overrides: Any
    ) -> "AgentflowSettings":
        """Load ``<config_dir>/<profile>.yaml``."""
        return cls.load_from_file(Path(config_dir) / f"{profile}.yaml", **overrides)

    @property
    def execute_url(self) -> str:
        return f"{self.gateway_base_url}{self.gateway_execute_path}"

    @property
    def metadata_url(self) -> str:
        return f"{self.gateway_base_url}{self.gateway_metadata_path}"
