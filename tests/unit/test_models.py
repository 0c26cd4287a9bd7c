"""Unit tests for the Pydantic models: options, preconditions, runs."""

from __future__ import annotations

import re

import pytest

from ecoforge.models import (
    DEFAULT_TASK_CATALOGUE,
    NONE_SELECTED,
    VALID_TRANSITIONS,
    ArtifactKind,
    GenerationOptions,
    GenerationTaskResult,
    Precondition,
    RunRecord,
    RunState,
    TaskStatus,
    new_run_id,
)


class TestGenerationOptions:
    def test_get_known_option(self):
        assert GenerationOptions(framework="Vue").get("framework") == "Vue"

    def test_get_falls_back_to_extra(self):
        assert GenerationOptions(extra={"region": "eu"}).get("region") == "eu"
        assert GenerationOptions().get("missing") is None

    def test_temperature_bounds(self):
        with pytest.raises(ValueError):
            GenerationOptions(temperature=3.0)


class TestPrecondition:
    def test_unset_option_is_unmet(self):
        assert not Precondition(option="security_tool").is_met(GenerationOptions())

    def test_none_sentinel_is_unmet(self):
        options = GenerationOptions(cloud_provider=NONE_SELECTED)
        assert not Precondition(option="cloud_provider").is_met(options)

    def test_selected_option_is_met(self):
        assert Precondition(option="cloud_provider").is_met(GenerationOptions(cloud_provider="GCP"))

    def test_expected_value(self):
        rule = Precondition(option="include_backend", expected=True)
        assert rule.is_met(GenerationOptions(include_backend=True))
        assert not rule.is_met(GenerationOptions(include_backend=False))


class TestDefaultCatalogue:
    def _spec(self, task_id: str):
        return next(s for s in DEFAULT_TASK_CATALOGUE if s.task_id == task_id)

    def test_one_task_per_secondary_kind(self):
        kinds = {s.kind for s in DEFAULT_TASK_CATALOGUE}
        assert ArtifactKind.SOURCE_FILES not in kinds
        assert len(kinds) == 26
        assert len(ArtifactKind) == 27

    def test_dockerfile_only_without_backend(self):
        spec = self._spec("dockerfile")
        assert spec.unmet_preconditions(GenerationOptions(include_backend=False)) == []
        assert spec.unmet_preconditions(GenerationOptions(include_backend=True))

    def test_schema_needs_backend_and_database(self):
        spec = self._spec("database_schema")
        assert len(spec.unmet_preconditions(GenerationOptions())) == 2
        ready = GenerationOptions(include_backend=True, database_service="PostgreSQL")
        assert spec.unmet_preconditions(ready) == []

    def test_migration_depends_on_schema(self):
        assert self._spec("data_migration").depends_on == ["database_schema"]


class TestRuns:
    def test_run_id_format(self):
        assert re.fullmatch(r"run-\d{8}-\d{6}-[0-9a-f]{6}", new_run_id())

    def test_record_is_frozen(self):
        record = RunRecord(prompt_text="todo app")
        with pytest.raises(ValueError):
            record.prompt_text = "changed"

    def test_new_record_awaits_feedback(self):
        record = RunRecord(prompt_text="todo app")
        assert record.feedback is None
        assert record.feedback_pending is True

    def test_results_with_status(self):
        results = [
            GenerationTaskResult(task_id="a", kind=ArtifactKind.UNIT_TESTS, status=TaskStatus.SUCCESS),
            GenerationTaskResult(task_id="b", kind=ArtifactKind.CODE_REVIEW, status=TaskStatus.SKIPPED),
        ]
        record = RunRecord(prompt_text="x", task_results=results)
        assert [r.task_id for r in record.results_with_status(TaskStatus.SKIPPED)] == ["b"]
        assert record.result_for("a").status == TaskStatus.SUCCESS
        assert record.result_for("zzz") is None

    def test_skipped_result_does_not_count_toward_cost(self):
        result = GenerationTaskResult(task_id="a", kind=ArtifactKind.UNIT_TESTS, status=TaskStatus.SKIPPED)
        assert result.counts_toward_cost is False

    def test_terminal_states_only_return_to_idle(self):
        for state in (RunState.COMPLETED, RunState.CANCELLED, RunState.FAILED):
            assert VALID_TRANSITIONS[state] == {RunState.IDLE}
        assert RunState.COMPLETED not in VALID_TRANSITIONS[RunState.RUNNING]
