"""Persistence backends for the artifact tree.

A backend holds a flat ``path -> content`` mapping.  The tree's
``persist()`` / ``hydrate()`` are the only callers; durability is the
backend's own contract.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

from ecoforge.core.artifact_tree import validate_path
from ecoforge.core.errors import NotFoundError, PersistenceFailure
from ecoforge.models.artifacts import SerializedFile

logger = logging.getLogger(__name__)


@runtime_checkable
class PersistenceBackend(Protocol):
    """Storage a tree can be persisted to and hydrated from."""

    def save(self, path: str, content: str) -> None:
        """Store a new file."""
        ...

    def load_all(self) -> list[SerializedFile]:
        """Return every stored file."""
        ...

    def delete(self, path: str) -> None:
        """Remove a stored file."""
        ...

    def update(self, path: str, content: str) -> None:
        """Overwrite an existing file."""
        ...


class InMemoryArtifactBackend:
    """Dict-backed backend for tests and ephemeral sessions."""

    def __init__(self) -> None:
        self._files: dict[str, str] = {}

    def save(self, path: str, content: str) -> None:
        self._files[path] = content

    def load_all(self) -> list[SerializedFile]:
        return [SerializedFile(path=p, content=c) for p, c in self._files.items()]

    def delete(self, path: str) -> None:
        self._files.pop(path, None)

    def update(self, path: str, content: str) -> None:
        if path not in self._files:
            raise NotFoundError(f"No stored artifact at {path!r}")
        self._files[path] = content


class LocalDirectoryBackend:
    """Writes each artifact as a real file under ``base_path``.

    Layout mirrors the tree: ``{base_path}/{artifact path}``.

    Parameters
    ----------
    base_path:
        Workspace directory.  Created if it does not exist.
    """

    def __init__(self, base_path: Path | str) -> None:
        self._base = Path(base_path)
        self._base.mkdir(parents=True, exist_ok=True)

    def _target(self, path: str) -> Path:
        validate_path(path)
        return self._base / path

    def save(self, path: str, content: str) -> None:
        target = self._target(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise PersistenceFailure(f"Cannot write {target}: {exc}") from exc
        logger.debug("LocalDirectoryBackend: wrote %s", target)

    def load_all(self) -> list[SerializedFile]:
        files: list[SerializedFile] = []
        try:
            for file_path in sorted(self._base.rglob("*")):
                if file_path.is_file():
                    files.append(SerializedFile(
                        path=file_path.relative_to(self._base).as_posix(),
                        content=file_path.read_text(encoding="utf-8"),
                    ))
        except OSError as exc:
            raise PersistenceFailure(f"Cannot read workspace {self._base}: {exc}") from exc
        return files

    def delete(self, path: str) -> None:
        target = self._target(path)
        try:
            target.unlink(missing_ok=True)
        except OSError as exc:
            raise PersistenceFailure(f"Cannot delete {target}: {exc}") from exc

    def update(self, path: str, content: str) -> None:
        if not self._target(path).exists():
            raise NotFoundError(f"No stored artifact at {path!r}")
        self.save(path, content)
