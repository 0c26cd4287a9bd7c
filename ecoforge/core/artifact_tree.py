"""Mutable hierarchical tree of generated files.

The tree owns the generated project's structure for one run.  Paths are
POSIX-style relative strings; the root has path ``""``.  Intermediate
directories are created implicitly, deletes of missing paths return
``False``, and concurrent writers to the same path resolve
last-writer-wins.

Consumers observe changes through ``subscribe()``; observers are called
synchronously after every write or delete and must not raise (failures
are logged and ignored).
"""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Callable, Iterable, Iterator
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from ecoforge.core.errors import ValidationError
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

if TYPE_CHECKING:
    from ecoforge.storage.artifact_backends import PersistenceBackend

logger = logging.getLogger(__name__)

DEFAULT_ROOT_NAME = "ai-generated-project"


class TreeAction(str, Enum):
    WRITTEN = "written"
    DELETED = "deleted"
    RESET = "reset"


class TreeEvent(BaseModel):
    """Published to observers after each tree mutation."""

    model_config = ConfigDict(frozen=True)

    action: TreeAction
    path: str
    change_status: ChangeStatus | None = None


TreeObserver = Callable[[TreeEvent], None]


class Subscription:
    """Handle returned by ``ArtifactTree.subscribe``; closes the feed."""

    def __init__(self, tree: ArtifactTree, observer: TreeObserver) -> None:
        self._tree = tree
        self.observer = observer
        self.subscription_id = uuid.uuid4().hex

    @property
    def active(self) -> bool:
        return self in self._tree._subscriptions

    def unsubscribe(self) -> None:
        self._tree.unsubscribe(self)


def validate_path(path: str) -> list[str]:
    """Split *path* into segments, raising ``ValidationError`` if malformed."""
    if not isinstance(path, str) or not path:
        raise ValidationError("Artifact path must be a non-empty string")
    if path.startswith("/") or path.endswith("/"):
        raise ValidationError(f"Artifact path must be relative without trailing slash: {path!r}")
    if "\\" in path:
        raise ValidationError(f"Artifact path must use '/' separators: {path!r}")
    parts = path.split("/")
    for part in parts:
        if part in ("", ".", ".."):
            raise ValidationError(f"Invalid segment {part!r} in artifact path {path!r}")
    return parts


class ArtifactTree:
    """Hierarchical file/directory tree for one generated project.

    Parameters
    ----------
    root_name:
        Display name of the root directory (the project name).
    """

    def __init__(self, root_name: str = DEFAULT_ROOT_NAME) -> None:
        self.root_name = root_name
        self._subscriptions: list[Subscription] = []
        self._init_root()

    def _init_root(self) -> None:
        self._root = ArtifactNode(
            id="root",
            name=self.root_name,
            kind=NodeKind.DIRECTORY,
            path="",
            children={},
        )
        # Path -> node for O(1) lookup
        self._index: dict[str, ArtifactNode] = {"": self._root}

    @staticmethod
    def _new_id(prefix: str) -> str:
        return f"{prefix}-{uuid.uuid4().hex[:12]}"

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def add_file(
        self,
        path: str,
        content: str,
        origin: ArtifactOrigin = ArtifactOrigin.GENERATED,
    ) -> ArtifactNode:
        """Create or overwrite the file at *path*.

        Missing intermediate directories are created.  Overwriting with
        different content marks the file MODIFIED; identical content leaves
        its status untouched.
        """
        parts = validate_path(path)
        parent = self._ensure_directories(parts[:-1])
        name = parts[-1]

        existing = parent.children.get(name)
        if existing is not None:
            if existing.is_directory:
                raise ValidationError(f"Cannot write file over directory: {path!r}")
            existing.origin = origin
            if existing.content == content:
                return existing
            existing.content = content
            existing.change_status = ChangeStatus.MODIFIED
            self._publish(TreeEvent(
                action=TreeAction.WRITTEN, path=path, change_status=ChangeStatus.MODIFIED,
            ))
            return existing

        node = ArtifactNode(
            id=self._new_id("file"),
            name=name,
            kind=NodeKind.FILE,
            path=path,
            content=content,
            origin=origin,
            change_status=ChangeStatus.NEW,
        )
        parent.children[name] = node
        self._index[path] = node
        self._publish(TreeEvent(
            action=TreeAction.WRITTEN, path=path, change_status=ChangeStatus.NEW,
        ))
        return node

    def append_chunk(
        self,
        path: str,
        chunk: str,
        origin: ArtifactOrigin = ArtifactOrigin.GENERATED,
    ) -> ArtifactNode:
        """Append streamed output to the file at *path*, creating it if needed."""
        node = self.get_file(path)
        current = node.content if node is not None and node.content is not None else ""
        return self.add_file(path, current + chunk, origin)

    def _ensure_directories(self, parts: list[str]) -> ArtifactNode:
        current = self._root
        current_path = ""
        for part in parts:
            current_path = f"{current_path}/{part}" if current_path else part
            child = current.children.get(part)
            if child is None:
                child = ArtifactNode(
                    id=self._new_id("dir"),
                    name=part,
                    kind=NodeKind.DIRECTORY,
                    path=current_path,
                    children={},
                )
                current.children[part] = child
                self._index[current_path] = child
            elif child.is_file:
                raise ValidationError(
                    f"Cannot create directory over existing file: {current_path!r}"
                )
            current = child
        return current

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_node(self, path: str) -> ArtifactNode | None:
        """Return the file or directory at *path*, or None."""
        return self._index.get(path)

    def get_file(self, path: str) -> ArtifactNode | None:
        """Return the file at *path*, or None if absent or a directory."""
        node = self._index.get(path)
        if node is None or not node.is_file:
            return None
        return node

    def paths(self) -> list[str]:
        """Return every file path, depth-first."""
        return [f.path for f in self.serialize()]

    @property
    def file_count(self) -> int:
        return sum(1 for node in self._index.values() if node.is_file)

    @property
    def root(self) -> ArtifactNode:
        return self._root

    def __contains__(self, path: object) -> bool:
        return path in self._index

    # ------------------------------------------------------------------
    # Delete / reset
    # ------------------------------------------------------------------

    def delete(self, path: str) -> bool:
        """Remove the node at *path*, recursively for directories.

        Returns False if *path* does not exist (or is the root).
        """
        node = self._index.get(path)
        if node is None or node is self._root:
            return False

        parent_path = path.rsplit("/", 1)[0] if "/" in path else ""
        parent = self._index[parent_path]
        del parent.children[node.name]

        for removed in self._walk(node):
            removed.change_status = ChangeStatus.DELETED
            self._index.pop(removed.path, None)

        self._publish(TreeEvent(
            action=TreeAction.DELETED, path=path, change_status=ChangeStatus.DELETED,
        ))
        return True

    def reset(self) -> None:
        """Drop every node and start from an empty root (start of a run)."""
        self._init_root()
        self._publish(TreeEvent(action=TreeAction.RESET, path=""))

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    @staticmethod
    def _walk(node: ArtifactNode) -> Iterator[ArtifactNode]:
        """Depth-first, pre-order, children in insertion order."""
        yield node
        if node.children:
            for child in list(node.children.values()):
                yield from ArtifactTree._walk(child)

    def serialize(self) -> list[SerializedFile]:
        """Flatten every file to ``(path, content)``, depth-first."""
        return [
            SerializedFile(path=node.path, content=node.content or "")
            for node in self._walk(self._root)
            if node.is_file
        ]

    @classmethod
    def deserialize(
        cls,
        files: Iterable[SerializedFile | dict[str, str]],
        root_name: str = DEFAULT_ROOT_NAME,
    ) -> ArtifactTree:
        """Rebuild a tree by replaying ``add_file`` for every entry."""
        tree = cls(root_name)
        for entry in files:
            f = entry if isinstance(entry, SerializedFile) else SerializedFile.model_validate(entry)
            tree.add_file(f.path, f.content)
        return tree

    def to_json(self) -> str:
        """Encode as a JSON list of ``{path, content}`` objects."""
        return json.dumps([f.model_dump() for f in self.serialize()])

    @classmethod
    def from_json(cls, raw: str | bytes, root_name: str = DEFAULT_ROOT_NAME) -> ArtifactTree:
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValidationError(f"Invalid artifact tree JSON: {exc}") from exc
        if not isinstance(data, list):
            raise ValidationError(
                f"Artifact tree JSON must be a list, got {type(data).__name__}"
            )
        return cls.deserialize(data, root_name)

    # ------------------------------------------------------------------
    # Diff
    # ------------------------------------------------------------------

    def diff(self, other: ArtifactTree) -> DiffReport:
        """Classify every file path of self (current) against other (previous)."""
        current = {f.path: f.content for f in self.serialize()}
        previous = {f.path: f.content for f in other.serialize()}

        entries: list[DiffEntry] = []
        for path, content in current.items():
            if path not in previous:
                status = DiffStatus.NEW
            elif previous[path] != content:
                status = DiffStatus.MODIFIED
            else:
                status = DiffStatus.UNCHANGED
            entries.append(DiffEntry(path=path, status=status))
        for path in previous:
            if path not in current:
                entries.append(DiffEntry(path=path, status=DiffStatus.DELETED))
        return DiffReport(entries=entries)

    # ------------------------------------------------------------------
    # Persistence boundary
    # ------------------------------------------------------------------

    def persist(self, backend: PersistenceBackend) -> None:
        """Reconcile *backend* with the tree: save new, update changed,
        delete vanished files."""
        stored = {f.path: f.content for f in backend.load_all()}
        current = self.serialize()
        for f in current:
            if f.path not in stored:
                backend.save(f.path, f.content)
            elif stored[f.path] != f.content:
                backend.update(f.path, f.content)
        live = {f.path for f in current}
        for path in stored:
            if path not in live:
                backend.delete(path)

    @classmethod
    def hydrate(
        cls, backend: PersistenceBackend, root_name: str = DEFAULT_ROOT_NAME
    ) -> ArtifactTree:
        """Rebuild a tree from everything *backend* holds."""
        return cls.deserialize(backend.load_all(), root_name)

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, observer: TreeObserver) -> Subscription:
        """Register *observer* for tree events until unsubscribed."""
        subscription = Subscription(self, observer)
        self._subscriptions.append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        try:
            self._subscriptions.remove(subscription)
        except ValueError:
            pass

    def _publish(self, event: TreeEvent) -> None:
        for subscription in list(self._subscriptions):
            try:
                subscription.observer(event)
            except Exception as exc:  # noqa: BLE001
                logger.error(
                    "Tree observer %s failed on %s %s: %s",
                    subscription.subscription_id, event.action.value, event.path, exc,
                )
