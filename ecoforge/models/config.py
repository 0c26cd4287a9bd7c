"""Builder configuration model."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from ecoforge.models.tasks import DEFAULT_TASK_CATALOGUE, GenerationTaskSpec


class BuilderConfig(BaseModel):
    """Project-level configuration the orchestrator and its collaborators
    are built from.

    ``ProdConfig.to_builder_config()`` derives one from the environment.
    """

    model_config = ConfigDict(frozen=True)

    project_name: str = "ai-generated-project"
    history_backend: Literal["memory", "json", "sqlite"] = "sqlite"
    history_path: Path = Path(".ecoforge/history.db")
    history_capacity: int = Field(default=50, ge=1)
    workspace_path: Path | None = None
    notifications_path: Path | None = None
    task_timeout_seconds: float = Field(default=120.0, gt=0)
    max_concurrent_tasks: int | None = Field(default=None, ge=1)
    catalogue: list[GenerationTaskSpec] = Field(
        default_factory=lambda: list(DEFAULT_TASK_CATALOGUE)
    )
