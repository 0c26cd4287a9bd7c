"""Unit tests for RunRenderer."""

from __future__ import annotations

from rich.console import Console

from ecoforge.core.artifact_tree import ArtifactTree
from ecoforge.models.artifacts import SerializedFile
from ecoforge.models.runs import RunOutcome, RunRecord, RunState, UserFeedback
from ecoforge.models.tasks import (
    DEFAULT_TASK_CATALOGUE,
    ArtifactKind,
    GenerationTaskResult,
    TaskErrorKind,
    TaskStatus,
)
from ecoforge.monitor.renderer import RunRenderer


def _render(renderable) -> str:
    console = Console(record=True, width=200)
    console.print(renderable)
    return console.export_text()


def _record() -> RunRecord:
    return RunRecord(
        run_id="run-20260101-000000-abcdef",
        prompt_text="todo app",
        model_id="gpt-4o",
        artifact_tree_snapshot=[SerializedFile(path="src/App.tsx", content="x")],
        task_results=[
            GenerationTaskResult(
                task_id="docs", kind=ArtifactKind.PROJECT_PLAN, status=TaskStatus.SUCCESS, output="ok"
            ),
            GenerationTaskResult(
                task_id="scan",
                kind=ArtifactKind.SECURITY_REPORT,
                status=TaskStatus.FAILED,
                error="scanner offline",
                error_kind=TaskErrorKind.GENERATOR,
            ),
            GenerationTaskResult(
                task_id="schema",
                kind=ArtifactKind.DATABASE_SCHEMA,
                status=TaskStatus.SKIPPED,
                skip_reason="precondition not met",
            ),
        ],
        total_cost_estimate=0.0123,
        feedback=UserFeedback(run_id="run-20260101-000000-abcdef", rating=3),
    )


class TestRunRenderer:
    def test_results_table(self):
        text = _render(RunRenderer().results_table(_record().task_results))
        assert "SUCCESS" in text and "FAILED" in text and "SKIPPED" in text
        assert "scanner offline" in text

    def test_history_table(self):
        text = _render(RunRenderer().history_table([_record()]))
        assert "run-20260101-000000-abcdef" in text
        assert "$0.012300" in text
        assert "***" in text

    def test_record_panel(self):
        text = _render(RunRenderer().record_panel(_record()))
        assert "src/App.tsx" in text
        assert "3/5" in text

    def test_outcome_panel_lists_warnings(self):
        outcome = RunOutcome(
            run_id="r1", state=RunState.COMPLETED, record=_record(), warnings=["history not saved"]
        )
        text = _render(RunRenderer().outcome_panel(outcome))
        assert "completed" in text
        assert "history not saved" in text

    def test_diff_table(self):
        current = ArtifactTree.deserialize([{"path": "new.txt", "content": "1"}])
        text = _render(RunRenderer().diff_table(current.diff(ArtifactTree())))
        assert "NEW" in text and "new.txt" in text

    def test_catalogue_table(self):
        text = _render(RunRenderer().catalogue_table(DEFAULT_TASK_CATALOGUE))
        assert "deployment_manifests" in text
        assert "requires cloud_provider" in text
