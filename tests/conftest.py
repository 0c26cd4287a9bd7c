"""Shared test fixtures for ecoforge."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from ecoforge.core.artifact_tree import ArtifactTree
from ecoforge.core.cost_accountant import CostAccountant
from ecoforge.core.history_store import HistoryStore
from ecoforge.core.orchestrator import Orchestrator
from ecoforge.generators.base import GeneratorOutput
from ecoforge.models.artifacts import SerializedFile
from ecoforge.models.config import BuilderConfig
from ecoforge.models.notifications import Notification
from ecoforge.models.tasks import ArtifactKind, GenerationTaskSpec
from ecoforge.routing.dispatcher import NotificationDispatcher
from ecoforge.storage.history_backends import InMemoryHistoryBackend

Behaviour = Callable[[dict[str, Any]], Any]


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


class ScriptedGenerator:
    """Generator whose response per artifact kind is set by the test.

    Unscripted secondary kinds stream a short Markdown document; the
    primary kind returns ``files``.
    """

    def __init__(
        self,
        files: list[SerializedFile] | None = None,
        behaviours: dict[ArtifactKind, Behaviour] | None = None,
    ) -> None:
        self.files = files if files is not None else [
            SerializedFile(path="src/App.tsx", content="export default function App() {}\n"),
            SerializedFile(path="src/components/TodoItem.tsx", content="export function TodoItem() {}\n"),
        ]
        self.behaviours = dict(behaviours or {})
        self.calls: list[tuple[ArtifactKind, dict[str, Any]]] = []

    def generate(self, kind: ArtifactKind, inputs: dict[str, Any]) -> Any:
        self.calls.append((kind, dict(inputs)))
        behaviour = self.behaviours.get(kind)
        if behaviour is not None:
            return behaviour(inputs)
        if kind == ArtifactKind.SOURCE_FILES:
            return _resolve(GeneratorOutput(files=self.files))
        return stream([f"# {kind.value}\n", "generated\n"])

    def kinds_called(self) -> list[ArtifactKind]:
        return [kind for kind, _ in self.calls]


async def _resolve(value: Any) -> Any:
    return value


async def stream(chunks: list[str], *, delay: float = 0.0, fail_after: Exception | None = None):
    """Async-iterator response yielding *chunks*, optionally failing at the end."""
    for chunk in chunks:
        await asyncio.sleep(delay)
        yield chunk
    if fail_after is not None:
        raise fail_after


async def raising(exc: Exception) -> Any:
    raise exc


async def hanging() -> Any:
    await asyncio.Event().wait()


class RecordingSink:
    """A sink that keeps every notification it receives."""

    def __init__(self) -> None:
        self.received: list[Notification] = []

    @property
    def sink_name(self) -> str:
        return "recording"

    def accept(self, notification: Notification) -> None:
        self.received.append(notification)

    def messages(self) -> list[str]:
        return [n.message for n in self.received]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test artifacts."""
    return tmp_path


@pytest.fixture
def tree() -> ArtifactTree:
    return ArtifactTree("test-project")


@pytest.fixture
def accountant() -> CostAccountant:
    return CostAccountant()


@pytest.fixture
def history() -> HistoryStore:
    """Provide a fresh in-memory HistoryStore."""
    return HistoryStore(InMemoryHistoryBackend())


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def dispatcher(recording_sink: RecordingSink) -> NotificationDispatcher:
    dispatcher = NotificationDispatcher()
    dispatcher.register_sink(recording_sink)
    return dispatcher


@pytest.fixture
def todo_catalogue() -> list[GenerationTaskSpec]:
    """Three report tasks: tests, docs and a security scan."""
    return [
        GenerationTaskSpec(
            task_id="tests", kind=ArtifactKind.UNIT_TESTS, inputs=["primary_file"]
        ),
        GenerationTaskSpec(
            task_id="docs", kind=ArtifactKind.PROJECT_PLAN, inputs=["prompt", "full_context"]
        ),
        GenerationTaskSpec(
            task_id="security_scan", kind=ArtifactKind.SECURITY_REPORT, inputs=["full_context"]
        ),
    ]


@pytest.fixture
def make_orchestrator(
    history: HistoryStore, dispatcher: NotificationDispatcher
) -> Callable[..., Orchestrator]:
    """Factory building an Orchestrator around a generator and catalogue."""

    def _make(
        generator: Any,
        catalogue: list[GenerationTaskSpec] | None = None,
        **config_overrides: Any,
    ) -> Orchestrator:
        fields: dict[str, Any] = {"history_backend": "memory", **config_overrides}
        if catalogue is not None:
            fields["catalogue"] = catalogue
        return Orchestrator(
            generator,
            BuilderConfig(**fields),
            history=history,
            dispatcher=dispatcher,
        )

    return _make
