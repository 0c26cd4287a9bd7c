"""Generation request models: the prompt and the options a run is driven by."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Literal sentinel used by option pickers for "nothing selected".
NONE_SELECTED = "None"


class GenerationOptions(BaseModel):
    """Options that shape the primary generation and gate secondary tasks."""

    model_config = ConfigDict(frozen=True)

    model_id: str = "gemini-pro"
    framework: str = "React"
    styling: str = "Tailwind CSS"
    include_backend: bool = False
    database_service: str = NONE_SELECTED
    cloud_provider: str = NONE_SELECTED
    container_orchestration: str = NONE_SELECTED
    cicd_provider: str = NONE_SELECTED
    security_tool: str = NONE_SELECTED
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=4096, gt=0)
    extra: dict[str, Any] = {}

    def get(self, option: str) -> Any:
        """Look up an option by name, falling back to ``extra``."""
        if option in type(self).model_fields and option != "extra":
            return getattr(self, option)
        return self.extra.get(option)


class GenerationRequest(BaseModel):
    """One user prompt plus the options for the run it triggers."""

    model_config = ConfigDict(frozen=True)

    prompt: str
    options: GenerationOptions = GenerationOptions()
