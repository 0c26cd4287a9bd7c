"""Run lifecycle and history models.

A ``RunRecord`` is the immutable, versioned trace of one run.  It is frozen:
the only change it ever sees is feedback, applied by the History Store
through ``model_copy``.  ``record_hash`` seals every other field.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ecoforge.models.artifacts import SerializedFile
from ecoforge.models.tasks import GenerationTaskResult, TaskStatus


class RunState(str, Enum):
    """Explicit run state machine owned by the orchestrator."""

    IDLE = "idle"
    RUNNING = "running"
    FINALIZING = "finalizing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


# Valid run transitions; COMPLETED, CANCELLED and FAILED return to IDLE only
# when the next run starts.
VALID_TRANSITIONS: dict[RunState, set[RunState]] = {
    RunState.IDLE: {RunState.RUNNING},
    RunState.RUNNING: {RunState.FINALIZING, RunState.CANCELLED, RunState.FAILED},
    RunState.FINALIZING: {RunState.COMPLETED, RunState.CANCELLED, RunState.FAILED},
    RunState.COMPLETED: {RunState.IDLE},
    RunState.CANCELLED: {RunState.IDLE},
    RunState.FAILED: {RunState.IDLE},
}


def new_run_id() -> str:
    ts = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    return f"run-{ts}-{uuid.uuid4().hex[:6]}"


class UserFeedback(BaseModel):
    """A 1-5 rating and comment attached to a run."""

    model_config = ConfigDict(frozen=True)

    run_id: str
    rating: int = Field(ge=1, le=5)
    comment: str = ""
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


class RunRecord(BaseModel):
    """Immutable history entry for one completed (or cancelled) run."""

    model_config = ConfigDict(frozen=True)

    run_id: str = Field(default_factory=new_run_id)
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    prompt_text: str
    model_id: str = ""
    artifact_tree_snapshot: list[SerializedFile] = []
    task_results: list[GenerationTaskResult] = []
    primary_input_units: int = 0
    primary_output_units: int = 0
    total_cost_estimate: float = 0.0
    cancelled: bool = False
    feedback: UserFeedback | None = None
    feedback_pending: bool = True
    record_hash: str = ""  # computed by the History Store, seals the record

    def results_with_status(self, status: TaskStatus) -> list[GenerationTaskResult]:
        return [r for r in self.task_results if r.status == status]

    def result_for(self, task_id: str) -> GenerationTaskResult | None:
        for result in self.task_results:
            if result.task_id == task_id:
                return result
        return None


class RunOutcome(BaseModel):
    """What ``Orchestrator.run`` hands back to its caller."""

    model_config = ConfigDict(frozen=True)

    run_id: str
    state: RunState
    record: RunRecord | None = None
    warnings: list[str] = []
    reports: dict[str, Any] = {}  # task_id -> standalone report output
    duration_seconds: float = 0.0
