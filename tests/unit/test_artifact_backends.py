"""Unit tests for the artifact persistence backends."""

from __future__ import annotations

from pathlib import Path

import pytest

from ecoforge.core.errors import NotFoundError, ValidationError
from ecoforge.storage.artifact_backends import (
    InMemoryArtifactBackend,
    LocalDirectoryBackend,
    PersistenceBackend,
)


@pytest.fixture(params=["memory", "directory"])
def backend(request, tmp_dir: Path) -> PersistenceBackend:
    if request.param == "memory":
        return InMemoryArtifactBackend()
    return LocalDirectoryBackend(tmp_dir / "workspace")


class TestBackends:
    def test_satisfy_protocol(self, backend: PersistenceBackend):
        assert isinstance(backend, PersistenceBackend)

    def test_save_and_load(self, backend: PersistenceBackend):
        backend.save("src/App.tsx", "app")
        backend.save("README.md", "readme")
        stored = {f.path: f.content for f in backend.load_all()}
        assert stored == {"src/App.tsx": "app", "README.md": "readme"}

    def test_update_existing(self, backend: PersistenceBackend):
        backend.save("a.txt", "1")
        backend.update("a.txt", "2")
        assert backend.load_all()[0].content == "2"

    def test_update_missing_raises(self, backend: PersistenceBackend):
        with pytest.raises(NotFoundError):
            backend.update("ghost.txt", "x")

    def test_delete(self, backend: PersistenceBackend):
        backend.save("a.txt", "1")
        backend.delete("a.txt")
        backend.delete("a.txt")
        assert backend.load_all() == []


class TestLocalDirectoryBackend:
    def test_writes_real_files(self, tmp_dir: Path):
        LocalDirectoryBackend(tmp_dir).save("deploy/aws/manifest-1.yaml", "kind: Service")
        assert (tmp_dir / "deploy" / "aws" / "manifest-1.yaml").read_text() == "kind: Service"

    def test_rejects_escaping_paths(self, tmp_dir: Path):
        with pytest.raises(ValidationError):
            LocalDirectoryBackend(tmp_dir).save("../outside.txt", "x")
