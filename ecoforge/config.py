"""Production configuration, env-driven.

Centralized config using pydantic-settings. Reads from a .env file and
ECOFORGE_* environment variables.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from ecoforge.models.config import BuilderConfig


class ProdConfig(BaseSettings):
    """Production configuration with environment variable overrides.

    All settings can be overridden via ECOFORGE_* environment variables
    or a .env file in the project root.

    Examples
    --------
    Override via environment::

        export ECOFORGE_LOG_LEVEL=DEBUG
        export ECOFORGE_HISTORY_PATH=/data/history.db
        export ECOFORGE_TASK_TIMEOUT_SECONDS=30

    Or via .env file::

        ECOFORGE_ENVIRONMENT=production
        ECOFORGE_HISTORY_CAPACITY=100
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="ECOFORGE_",
        env_file_encoding="utf-8",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"
    debug: bool = False

    # Storage
    history_backend: Literal["memory", "json", "sqlite"] = "sqlite"
    history_path: Path = Path(".ecoforge/history.db")
    history_capacity: int = 50
    workspace_path: Path = Path(".ecoforge/workspace")
    notifications_path: Path = Path(".ecoforge/notifications")

    # Generation
    default_model: str = "gemini-pro"
    task_timeout_seconds: float = 120.0
    max_concurrent_tasks: int = 8

    @property
    def is_production(self) -> bool:
        """Whether running in production mode."""
        return self.environment == "production"

    def to_builder_config(self, project_name: str = "ai-generated-project") -> BuilderConfig:
        """Derive the orchestrator-facing configuration."""
        return BuilderConfig(
            project_name=project_name,
            history_backend=self.history_backend,
            history_path=self.history_path,
            history_capacity=self.history_capacity,
            workspace_path=self.workspace_path,
            notifications_path=self.notifications_path,
            task_timeout_seconds=self.task_timeout_seconds,
            max_concurrent_tasks=self.max_concurrent_tasks,
        )
