"""Unit tests for the offline generator."""

from __future__ import annotations

import pytest

from ecoforge.generators import Generator, GeneratorOutput, OfflineGenerator
from ecoforge.models.tasks import ArtifactKind


async def _collect(stream) -> str:
    return "".join([chunk async for chunk in stream])


class TestOfflineGenerator:
    def test_satisfies_protocol(self):
        assert isinstance(OfflineGenerator(), Generator)

    @pytest.mark.asyncio
    async def test_source_files_named_from_prompt(self):
        output = await OfflineGenerator().generate(ArtifactKind.SOURCE_FILES, {"prompt": "todo app"})
        assert isinstance(output, GeneratorOutput)
        assert [f.path for f in output.files] == ["src/App.tsx", "src/components/TodoApp.tsx"]

    @pytest.mark.asyncio
    async def test_backend_adds_server_file(self):
        output = await OfflineGenerator().generate(
            ArtifactKind.SOURCE_FILES, {"prompt": "todo app", "include_backend": True}
        )
        assert "server/index.ts" in [f.path for f in output.files]

    @pytest.mark.asyncio
    async def test_secondary_kinds_stream_text(self):
        text = await _collect(OfflineGenerator().generate(ArtifactKind.PROJECT_PLAN, {"prompt": "todo app"}))
        assert text.startswith("# Project Plan")
        assert "todo app" in text

    @pytest.mark.asyncio
    async def test_manifests_are_multi_document(self):
        text = await _collect(OfflineGenerator().generate(
            ArtifactKind.DEPLOYMENT_MANIFESTS, {"cloud_provider": "GCP"}
        ))
        assert text.count("---") == 1
        assert "gcp-app" in text

    @pytest.mark.asyncio
    async def test_upstream_inputs_mentioned(self):
        text = await _collect(OfflineGenerator().generate(
            ArtifactKind.DATA_MIGRATION, {"upstream:database_schema": "CREATE TABLE t;"}
        ))
        assert "database_schema" in text

    @pytest.mark.asyncio
    async def test_security_report_is_structured(self):
        output = await OfflineGenerator().generate(ArtifactKind.SECURITY_REPORT, {"security_tool": "Snyk"})
        assert output.content["tool"] == "Snyk"
