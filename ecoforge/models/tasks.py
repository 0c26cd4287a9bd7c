"""Generation task models and the default secondary-task catalogue.

Each ``GenerationTaskSpec`` describes one secondary artifact a run may
produce.  The catalogue is declarative: preconditions gate whether a task
is attempted, and ``depends_on`` sequences a task after another task whose
output it consumes.  Everything else in a run executes concurrently.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

from ecoforge.models.requests import NONE_SELECTED, GenerationOptions


class ArtifactKind(str, Enum):
    """Every kind of artifact the Generator capability can be asked for."""

    SOURCE_FILES = "source_files"  # primary generation
    UNIT_TESTS = "unit_tests"
    COMMIT_MESSAGE = "commit_message"
    DOCKERFILE = "dockerfile"
    CODE_REVIEW = "code_review"
    ARCHITECTURE_DIAGRAM = "architecture_diagram"
    API_SPEC = "api_spec"
    SECURITY_REPORT = "security_report"
    PERFORMANCE_REPORT = "performance_report"
    CICD_PIPELINE = "cicd_pipeline"
    DEPLOYMENT_MANIFESTS = "deployment_manifests"
    DATABASE_SCHEMA = "database_schema"
    DATA_MIGRATION = "data_migration"
    PROJECT_PLAN = "project_plan"
    USER_STORIES = "user_stories"
    AB_TEST_STRATEGY = "ab_test_strategy"
    ACCESSIBILITY_REPORT = "accessibility_report"
    COMPLIANCE_REPORT = "compliance_report"
    LEGAL_CONTRACT = "legal_contract"
    FINANCIAL_MODEL = "financial_model"
    MEDICAL_PROTOCOL = "medical_protocol"
    SCIENTIFIC_OUTLINE = "scientific_outline"
    ROBOTICS_INSTRUCTIONS = "robotics_instructions"
    SPACE_MISSION_LOGISTICS = "space_mission_logistics"
    GAME_MECHANICS = "game_mechanics"
    MUSIC_COMPOSITION = "music_composition"
    ARTISTIC_STYLE = "artistic_style"


class TaskStatus(str, Enum):
    """Terminal states of a generation task."""

    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


class TaskErrorKind(str, Enum):
    """Why a task ended ``failed``."""

    GENERATOR = "generator"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"
    UPSTREAM = "upstream"
    VALIDATION = "validation"


class OutputMode(str, Enum):
    """Where a task's output lands."""

    REPORT = "report"  # held as a standalone artifact on the result
    FILE = "file"  # streamed into the artifact tree at output_path
    MULTI_FILE = "multi_file"  # split on "---" documents into numbered files


class Precondition(BaseModel):
    """A requirement on the request options for a task to be attempted.

    With ``expected`` unset the option must be truthy and not the
    ``"None"`` sentinel; otherwise it must equal ``expected``.
    """

    model_config = ConfigDict(frozen=True)

    option: str
    expected: Any = None

    def is_met(self, options: GenerationOptions) -> bool:
        value = options.get(self.option)
        if self.expected is None:
            return bool(value) and value != NONE_SELECTED
        return value == self.expected

    def describe(self) -> str:
        if self.expected is None:
            return f"requires {self.option}"
        return f"requires {self.option} == {self.expected!r}"


class GenerationTaskSpec(BaseModel):
    """Declarative description of one secondary generation task."""

    model_config = ConfigDict(frozen=True)

    task_id: str
    kind: ArtifactKind
    display_name: str = ""
    inputs: list[str] = ["prompt"]
    optional: bool = False
    preconditions: list[Precondition] = []
    depends_on: list[str] = []
    output_mode: OutputMode = OutputMode.REPORT
    output_path: str = ""  # str.format template over request options
    timeout_seconds: float | None = None

    @property
    def label(self) -> str:
        return self.display_name or self.task_id

    def unmet_preconditions(self, options: GenerationOptions) -> list[str]:
        """Return descriptions of every precondition *options* fail."""
        return [p.describe() for p in self.preconditions if not p.is_met(options)]


class GenerationTaskResult(BaseModel):
    """Terminal outcome of one task within a run."""

    model_config = ConfigDict(frozen=True)

    task_id: str
    kind: ArtifactKind
    status: TaskStatus
    output: str | dict[str, Any] | None = None  # present iff SUCCESS
    error: str | None = None  # present iff FAILED
    error_kind: TaskErrorKind | None = None
    skip_reason: str | None = None
    estimated_input_units: int = 0
    estimated_output_units: int = 0
    written_paths: list[str] = []
    started_at: datetime | None = None
    finished_at: datetime | None = None

    @property
    def counts_toward_cost(self) -> bool:
        return self.status != TaskStatus.SKIPPED


# ---------------------------------------------------------------------------
# Default catalogue
# ---------------------------------------------------------------------------

_CONTEXT = ["prompt", "full_context"]

DEFAULT_TASK_CATALOGUE: list[GenerationTaskSpec] = [
    GenerationTaskSpec(
        task_id="unit_tests",
        kind=ArtifactKind.UNIT_TESTS,
        display_name="Unit Tests",
        inputs=["primary_file"],
    ),
    GenerationTaskSpec(
        task_id="commit_message",
        kind=ArtifactKind.COMMIT_MESSAGE,
        display_name="Commit Message",
        inputs=["full_context"],
    ),
    GenerationTaskSpec(
        task_id="dockerfile",
        kind=ArtifactKind.DOCKERFILE,
        display_name="Dockerfile",
        inputs=["framework"],
        optional=True,
        preconditions=[Precondition(option="include_backend", expected=False)],
        output_mode=OutputMode.FILE,
        output_path="Dockerfile",
    ),
    GenerationTaskSpec(
        task_id="code_review",
        kind=ArtifactKind.CODE_REVIEW,
        display_name="Code Review",
        inputs=["full_context"],
    ),
    GenerationTaskSpec(
        task_id="architecture_diagram",
        kind=ArtifactKind.ARCHITECTURE_DIAGRAM,
        display_name="Architecture Diagram Specification",
        inputs=[*_CONTEXT, "include_backend"],
    ),
    GenerationTaskSpec(
        task_id="api_spec",
        kind=ArtifactKind.API_SPEC,
        display_name="API Specification",
        inputs=[*_CONTEXT, "include_backend"],
    ),
    GenerationTaskSpec(
        task_id="security_scan",
        kind=ArtifactKind.SECURITY_REPORT,
        display_name="Security Scan",
        inputs=["full_context", "security_tool"],
        optional=True,
        preconditions=[Precondition(option="security_tool")],
    ),
    GenerationTaskSpec(
        task_id="performance_report",
        kind=ArtifactKind.PERFORMANCE_REPORT,
        display_name="Performance Report",
        inputs=["full_context"],
    ),
    GenerationTaskSpec(
        task_id="cicd_pipeline",
        kind=ArtifactKind.CICD_PIPELINE,
        display_name="CI/CD Pipeline Configuration",
        inputs=["framework", "include_backend", "cicd_provider"],
        optional=True,
        preconditions=[Precondition(option="cicd_provider")],
        output_mode=OutputMode.FILE,
        output_path="ci/{cicd_provider}/pipeline.yml",
    ),
    GenerationTaskSpec(
        task_id="deployment_manifests",
        kind=ArtifactKind.DEPLOYMENT_MANIFESTS,
        display_name="Deployment Manifests",
        inputs=["framework", "include_backend", "cloud_provider", "container_orchestration"],
        optional=True,
        preconditions=[Precondition(option="cloud_provider")],
        output_mode=OutputMode.MULTI_FILE,
        output_path="deploy/{cloud_provider}/manifest-{index}.yaml",
    ),
    GenerationTaskSpec(
        task_id="database_schema",
        kind=ArtifactKind.DATABASE_SCHEMA,
        display_name="Database Schema",
        inputs=["prompt", "database_service"],
        optional=True,
        preconditions=[
            Precondition(option="include_backend", expected=True),
            Precondition(option="database_service"),
        ],
        output_mode=OutputMode.FILE,
        output_path="db/schema.sql",
    ),
    GenerationTaskSpec(
        task_id="data_migration",
        kind=ArtifactKind.DATA_MIGRATION,
        display_name="Data Migration Script",
        inputs=["database_service"],
        optional=True,
        preconditions=[
            Precondition(option="include_backend", expected=True),
            Precondition(option="database_service"),
        ],
        depends_on=["database_schema"],
        output_mode=OutputMode.FILE,
        output_path="db/migrations/0001_initial.sql",
    ),
    GenerationTaskSpec(
        task_id="project_plan",
        kind=ArtifactKind.PROJECT_PLAN,
        display_name="Project Plan",
        inputs=_CONTEXT,
    ),
    GenerationTaskSpec(
        task_id="user_stories",
        kind=ArtifactKind.USER_STORIES,
        display_name="User Stories",
        inputs=_CONTEXT,
    ),
    GenerationTaskSpec(
        task_id="ab_test_strategy",
        kind=ArtifactKind.AB_TEST_STRATEGY,
        display_name="A/B Test Strategy",
        inputs=_CONTEXT,
    ),
    GenerationTaskSpec(
        task_id="accessibility_report",
        kind=ArtifactKind.ACCESSIBILITY_REPORT,
        display_name="UI Accessibility Report",
        inputs=["full_context"],
    ),
    GenerationTaskSpec(
        task_id="compliance_report",
        kind=ArtifactKind.COMPLIANCE_REPORT,
        display_name="Compliance Report",
        inputs=_CONTEXT,
    ),
    GenerationTaskSpec(
        task_id="legal_contract",
        kind=ArtifactKind.LEGAL_CONTRACT,
        display_name="Legal Contract Draft",
    ),
    GenerationTaskSpec(
        task_id="financial_model",
        kind=ArtifactKind.FINANCIAL_MODEL,
        display_name="Financial Model",
    ),
    GenerationTaskSpec(
        task_id="medical_protocol",
        kind=ArtifactKind.MEDICAL_PROTOCOL,
        display_name="Medical Protocol",
    ),
    GenerationTaskSpec(
        task_id="scientific_outline",
        kind=ArtifactKind.SCIENTIFIC_OUTLINE,
        display_name="Scientific Paper Outline",
    ),
    GenerationTaskSpec(
        task_id="robotics_instructions",
        kind=ArtifactKind.ROBOTICS_INSTRUCTIONS,
        display_name="Robotics Instructions",
    ),
    GenerationTaskSpec(
        task_id="space_mission_logistics",
        kind=ArtifactKind.SPACE_MISSION_LOGISTICS,
        display_name="Space Mission Logistics",
    ),
    GenerationTaskSpec(
        task_id="game_mechanics",
        kind=ArtifactKind.GAME_MECHANICS,
        display_name="Game Mechanics Document",
    ),
    GenerationTaskSpec(
        task_id="music_composition",
        kind=ArtifactKind.MUSIC_COMPOSITION,
        display_name="Music Composition Prompt",
    ),
    GenerationTaskSpec(
        task_id="artistic_style",
        kind=ArtifactKind.ARTISTIC_STYLE,
        display_name="Artistic Style Transfer",
    ),
]
