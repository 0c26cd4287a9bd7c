"""Unit tests for ArtifactTree: writes, deletes, serialization, diff, observers."""

from __future__ import annotations

import pytest

from ecoforge.core.artifact_tree import ArtifactTree, TreeAction, TreeEvent, validate_path
from ecoforge.core.errors import ValidationError
from ecoforge.models.artifacts import (
    ArtifactOrigin,
    ChangeStatus,
    DiffStatus,
    NodeKind,
    SerializedFile,
)
from ecoforge.storage.artifact_backends import InMemoryArtifactBackend


class TestAddFile:
    def test_creates_intermediate_directories(self, tree: ArtifactTree):
        node = tree.add_file("src/components/Button.tsx", "x")
        assert node.kind == NodeKind.FILE
        assert node.change_status == ChangeStatus.NEW
        assert tree.get_node("src").kind == NodeKind.DIRECTORY
        assert tree.get_node("src/components").path == "src/components"
        assert tree.get_file("src/components/Button.tsx").content == "x"

    def test_node_path_is_parent_path_plus_name(self, tree: ArtifactTree):
        tree.add_file("a/b/c.txt", "1")
        assert tree.get_node("a").path == "a"
        assert tree.get_node("a/b").path == "a/b"
        assert tree.get_node("a/b").children["c.txt"].path == "a/b/c.txt"

    def test_overwrite_with_different_content_marks_modified(self, tree: ArtifactTree):
        tree.add_file("README.md", "one")
        node = tree.add_file("README.md", "two")
        assert node.content == "two"
        assert node.change_status == ChangeStatus.MODIFIED
        assert tree.file_count == 1

    def test_overwrite_with_identical_content_keeps_status(self, tree: ArtifactTree):
        tree.add_file("README.md", "same")
        node = tree.add_file("README.md", "same")
        assert node.change_status == ChangeStatus.NEW

    def test_user_edit_sets_origin(self, tree: ArtifactTree):
        tree.add_file("a.txt", "gen")
        node = tree.add_file("a.txt", "edited", origin=ArtifactOrigin.USER_EDITED)
        assert node.origin == ArtifactOrigin.USER_EDITED

    def test_file_over_directory_rejected(self, tree: ArtifactTree):
        tree.add_file("src/a.ts", "x")
        with pytest.raises(ValidationError):
            tree.add_file("src", "y")

    def test_directory_over_file_rejected(self, tree: ArtifactTree):
        tree.add_file("src", "x")
        with pytest.raises(ValidationError):
            tree.add_file("src/a.ts", "y")

    @pytest.mark.parametrize(
        "path", ["", "/abs/path.txt", "trailing/", "a//b", "a/../b", "./a", "a\\b"]
    )
    def test_malformed_paths_rejected(self, tree: ArtifactTree, path: str):
        with pytest.raises(ValidationError):
            tree.add_file(path, "x")
        assert tree.file_count == 0

    def test_validate_path_splits_segments(self):
        assert validate_path("a/b/c.txt") == ["a", "b", "c.txt"]


class TestAppendChunk:
    def test_appends_to_existing_file(self, tree: ArtifactTree):
        tree.append_chunk("log.txt", "a")
        tree.append_chunk("log.txt", "b")
        assert tree.get_file("log.txt").content == "ab"

    def test_creates_missing_file(self, tree: ArtifactTree):
        node = tree.append_chunk("new/file.txt", "start")
        assert node.content == "start"
        assert node.change_status == ChangeStatus.NEW


class TestDelete:
    def test_delete_file(self, tree: ArtifactTree):
        tree.add_file("a/b.txt", "x")
        assert tree.delete("a/b.txt") is True
        assert tree.get_file("a/b.txt") is None
        assert "a" in tree

    def test_delete_directory_is_recursive(self, tree: ArtifactTree):
        tree.add_file("a/b/c.txt", "x")
        tree.add_file("a/d.txt", "y")
        removed = tree.get_file("a/b/c.txt")
        assert tree.delete("a") is True
        assert tree.file_count == 0
        assert "a/b" not in tree
        assert removed.change_status == ChangeStatus.DELETED

    def test_delete_missing_returns_false(self, tree: ArtifactTree):
        assert tree.delete("nope.txt") is False

    def test_root_cannot_be_deleted(self, tree: ArtifactTree):
        tree.add_file("a.txt", "x")
        assert tree.delete("") is False
        assert tree.file_count == 1


class TestSerialization:
    def test_serialize_lists_files_depth_first(self, tree: ArtifactTree):
        tree.add_file("src/App.tsx", "app")
        tree.add_file("README.md", "readme")
        tree.add_file("src/lib/util.ts", "util")
        assert tree.paths() == ["src/App.tsx", "src/lib/util.ts", "README.md"]

    def test_round_trip_preserves_files(self, tree: ArtifactTree):
        tree.add_file("src/App.tsx", "app")
        tree.add_file("src/components/Item.tsx", "item")
        tree.add_file("Dockerfile", "FROM node")
        rebuilt = ArtifactTree.deserialize(tree.serialize())
        assert rebuilt.serialize() == tree.serialize()

    def test_json_round_trip(self, tree: ArtifactTree):
        tree.add_file("a/b.txt", "hello")
        rebuilt = ArtifactTree.from_json(tree.to_json())
        assert rebuilt.serialize() == [SerializedFile(path="a/b.txt", content="hello")]

    def test_deserialize_accepts_dicts(self):
        tree = ArtifactTree.deserialize([{"path": "x.txt", "content": "1"}])
        assert tree.get_file("x.txt").content == "1"

    def test_from_json_rejects_non_list(self):
        with pytest.raises(ValidationError):
            ArtifactTree.from_json('{"path": "x"}')

    def test_from_json_rejects_garbage(self):
        with pytest.raises(ValidationError):
            ArtifactTree.from_json("not json")

    def test_reset_empties_tree(self, tree: ArtifactTree):
        tree.add_file("a.txt", "x")
        tree.reset()
        assert tree.file_count == 0
        assert tree.serialize() == []
        assert tree.root.children == {}


class TestDiff:
    def test_labels_every_path(self):
        previous = ArtifactTree.deserialize([
            {"path": "same.txt", "content": "1"},
            {"path": "changed.txt", "content": "old"},
            {"path": "gone.txt", "content": "x"},
        ])
        current = ArtifactTree.deserialize([
            {"path": "same.txt", "content": "1"},
            {"path": "changed.txt", "content": "new"},
            {"path": "added.txt", "content": "y"},
        ])
        report = current.diff(previous)
        assert report.status_of("same.txt") == DiffStatus.UNCHANGED
        assert report.status_of("changed.txt") == DiffStatus.MODIFIED
        assert report.status_of("added.txt") == DiffStatus.NEW
        assert report.status_of("gone.txt") == DiffStatus.DELETED
        assert report.has_changes

    def test_identical_trees_have_no_changes(self, tree: ArtifactTree):
        tree.add_file("a.txt", "x")
        report = tree.diff(ArtifactTree.deserialize(tree.serialize()))
        assert not report.has_changes
        assert report.paths(DiffStatus.UNCHANGED) == ["a.txt"]

    def test_render_mentions_changed_files(self):
        current = ArtifactTree.deserialize([{"path": "new.txt", "content": "x"}])
        text = current.diff(ArtifactTree()).render()
        assert "NEW FILE: new.txt" in text


class TestObservers:
    def test_observer_receives_events(self, tree: ArtifactTree):
        events: list[TreeEvent] = []
        tree.subscribe(events.append)
        tree.add_file("a.txt", "1")
        tree.add_file("a.txt", "2")
        tree.delete("a.txt")
        assert [(e.action, e.change_status) for e in events] == [
            (TreeAction.WRITTEN, ChangeStatus.NEW),
            (TreeAction.WRITTEN, ChangeStatus.MODIFIED),
            (TreeAction.DELETED, ChangeStatus.DELETED),
        ]

    def test_unsubscribe_stops_events(self, tree: ArtifactTree):
        events: list[TreeEvent] = []
        sub = tree.subscribe(events.append)
        sub.unsubscribe()
        tree.add_file("a.txt", "1")
        assert events == []
        assert not sub.active

    def test_failing_observer_does_not_block_write(self, tree: ArtifactTree):
        def boom(event: TreeEvent) -> None:
            raise RuntimeError("observer broke")

        seen: list[TreeEvent] = []
        tree.subscribe(boom)
        tree.subscribe(seen.append)
        tree.add_file("a.txt", "1")
        assert tree.get_file("a.txt").content == "1"
        assert len(seen) == 1


class TestPersistence:
    def test_persist_reconciles_backend(self, tree: ArtifactTree):
        backend = InMemoryArtifactBackend()
        tree.add_file("keep.txt", "1")
        tree.add_file("drop.txt", "2")
        tree.persist(backend)

        tree.add_file("keep.txt", "changed")
        tree.delete("drop.txt")
        tree.add_file("new.txt", "3")
        tree.persist(backend)

        stored = {f.path: f.content for f in backend.load_all()}
        assert stored == {"keep.txt": "changed", "new.txt": "3"}

    def test_hydrate_rebuilds_tree(self, tree: ArtifactTree):
        backend = InMemoryArtifactBackend()
        tree.add_file("src/a.ts", "a")
        tree.persist(backend)
        hydrated = ArtifactTree.hydrate(backend)
        assert hydrated.paths() == ["src/a.ts"]
