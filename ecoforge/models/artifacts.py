"""Artifact tree models: nodes, serialized files and diff reports."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class NodeKind(str, Enum):
    """Whether a tree node holds content or other nodes."""

    FILE = "file"
    DIRECTORY = "directory"


class ArtifactOrigin(str, Enum):
    """Who last wrote a file."""

    GENERATED = "generated"
    USER_EDITED = "user_edited"


class ChangeStatus(str, Enum):
    """Lifecycle marker of a node within the current run."""

    NEW = "new"
    MODIFIED = "modified"
    DELETED = "deleted"


class ArtifactNode(BaseModel):
    """A file or directory inside an ``ArtifactTree``.

    Nodes are mutable: the tree overwrites ``content`` in place when a file
    is regenerated.  A directory never carries ``content`` and a file never
    carries ``children``.
    """

    id: str
    name: str
    kind: NodeKind
    path: str  # "" for the root
    content: str | None = None
    children: dict[str, ArtifactNode] | None = None
    origin: ArtifactOrigin = ArtifactOrigin.GENERATED
    change_status: ChangeStatus = ChangeStatus.NEW

    @property
    def is_file(self) -> bool:
        return self.kind == NodeKind.FILE

    @property
    def is_directory(self) -> bool:
        return self.kind == NodeKind.DIRECTORY


class SerializedFile(BaseModel):
    """Flat ``{path, content}`` form of a file, suitable for JSON encoding."""

    model_config = ConfigDict(frozen=True)

    path: str
    content: str


class DiffStatus(str, Enum):
    """Classification of a path when comparing two trees."""

    NEW = "new"
    DELETED = "deleted"
    MODIFIED = "modified"
    UNCHANGED = "unchanged"


class DiffEntry(BaseModel):
    """A single classified path in a ``DiffReport``."""

    model_config = ConfigDict(frozen=True)

    path: str
    status: DiffStatus


class DiffReport(BaseModel):
    """Result of ``ArtifactTree.diff`` (self = current, other = previous)."""

    model_config = ConfigDict(frozen=True)

    entries: list[DiffEntry] = Field(default_factory=list)

    def paths(self, status: DiffStatus) -> list[str]:
        """Return the paths labelled with *status*, in report order."""
        return [e.path for e in self.entries if e.status == status]

    def status_of(self, path: str) -> DiffStatus | None:
        for entry in self.entries:
            if entry.path == path:
                return entry.status
        return None

    @property
    def has_changes(self) -> bool:
        return any(e.status != DiffStatus.UNCHANGED for e in self.entries)

    def render(self) -> str:
        """Human-readable report, unchanged paths omitted."""
        lines = ["Diff Report:", ""]
        for status in (DiffStatus.NEW, DiffStatus.DELETED, DiffStatus.MODIFIED):
            for path in self.paths(status):
                lines.append(f"--- {status.value.upper()} FILE: {path} ---")
        if not self.has_changes:
            lines.append("No changes detected.")
        return "\n".join(lines)


ArtifactNode.model_rebuild()
