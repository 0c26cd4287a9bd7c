"""Ecoforge data models, all Pydantic v2."""

from ecoforge.models.artifacts import (
    ArtifactNode,
    ArtifactOrigin,
    ChangeStatus,
    DiffEntry,
    DiffReport,
    DiffStatus,
    NodeKind,
    SerializedFile,
)
from ecoforge.models.config import BuilderConfig
from ecoforge.models.notifications import Notification, Severity
from ecoforge.models.requests import NONE_SELECTED, GenerationOptions, GenerationRequest
from ecoforge.models.runs import (
    VALID_TRANSITIONS,
    RunOutcome,
    RunRecord,
    RunState,
    UserFeedback,
    new_run_id,
)
from ecoforge.models.tasks import (
    DEFAULT_TASK_CATALOGUE,
    ArtifactKind,
    GenerationTaskResult,
    GenerationTaskSpec,
    OutputMode,
    Precondition,
    TaskErrorKind,
    TaskStatus,
)

__all__ = [
    # artifacts
    "ArtifactNode",
    "ArtifactOrigin",
    "ChangeStatus",
    "DiffEntry",
    "DiffReport",
    "DiffStatus",
    "NodeKind",
    "SerializedFile",
    # config
    "BuilderConfig",
    # notifications
    "Notification",
    "Severity",
    # requests
    "GenerationOptions",
    "NONE_SELECTED",
    "GenerationRequest",
    # runs
    "RunOutcome",
    "RunRecord",
    "RunState",
    "UserFeedback",
    "VALID_TRANSITIONS",
    "new_run_id",
    # tasks
    "ArtifactKind",
    "DEFAULT_TASK_CATALOGUE",
    "GenerationTaskResult",
    "GenerationTaskSpec",
    "OutputMode",
    "Precondition",
    "TaskErrorKind",
    "TaskStatus",
]
