"""Progress and error notifications emitted during a run."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Severity(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class Notification(BaseModel):
    """A fire-and-forget message routed to every registered sink."""

    model_config = ConfigDict(frozen=True)

    run_id: str
    message: str
    severity: Severity = Severity.INFO
    task_id: str | None = None
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
