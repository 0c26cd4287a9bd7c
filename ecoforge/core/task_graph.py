"""Same-run dependency graph over a task catalogue.

Dependencies are optional metadata: a task listing ``depends_on`` waits for
those tasks' outputs, and nothing else is sequenced.  The graph rejects
unknown task ids, duplicate ids, and cycles at construction time.
"""

from __future__ import annotations

from collections import deque

from ecoforge.core.errors import ValidationError
from ecoforge.models.tasks import GenerationTaskSpec


class CyclicDependencyError(ValidationError):
    """Raised when the task dependency graph contains a cycle."""


class TaskGraph:
    """Directed acyclic graph of task dependencies, in catalogue order."""

    def __init__(self, specs: list[GenerationTaskSpec]) -> None:
        self._order: list[str] = []
        self._specs: dict[str, GenerationTaskSpec] = {}
        for spec in specs:
            if spec.task_id in self._specs:
                raise ValidationError(f"Duplicate task_id in catalogue: {spec.task_id!r}")
            self._specs[spec.task_id] = spec
            self._order.append(spec.task_id)

        # Forward edges: task_id -> tasks it waits for
        self._dependencies: dict[str, list[str]] = {}
        # Reverse edges: task_id -> tasks waiting for it
        self._dependents: dict[str, list[str]] = {tid: [] for tid in self._order}
        for spec in specs:
            for dep in spec.depends_on:
                if dep not in self._specs:
                    raise ValidationError(
                        f"Task {spec.task_id!r} depends on unknown task {dep!r}"
                    )
                self._dependents[dep].append(spec.task_id)
            self._dependencies[spec.task_id] = list(spec.depends_on)

        self._validate_no_cycles()

    def _validate_no_cycles(self) -> None:
        """Verify the graph is a DAG using Kahn's algorithm."""
        in_degree = {tid: len(deps) for tid, deps in self._dependencies.items()}
        queue = deque(tid for tid in self._order if in_degree[tid] == 0)
        visited = 0
        while queue:
            node = queue.popleft()
            visited += 1
            for dep in self._dependents[node]:
                in_degree[dep] -= 1
                if in_degree[dep] == 0:
                    queue.append(dep)

        if visited != len(self._order):
            raise CyclicDependencyError(
                f"Task dependency graph has a cycle. "
                f"Visited {visited}/{len(self._order)} tasks."
            )

    # ------------------------------------------------------------------
    # Query methods
    # ------------------------------------------------------------------

    @property
    def task_ids(self) -> list[str]:
        """All task ids in catalogue (launch) order."""
        return list(self._order)

    def spec(self, task_id: str) -> GenerationTaskSpec:
        return self._specs[task_id]

    def get_dependencies(self, task_id: str) -> list[str]:
        """Direct dependencies of a task."""
        return list(self._dependencies.get(task_id, []))

    def get_dependents(self, task_id: str) -> list[str]:
        """All transitive dependents of a task (BFS)."""
        result: list[str] = []
        queue = deque(self._dependents.get(task_id, []))
        visited: set[str] = set()
        while queue:
            node = queue.popleft()
            if node in visited:
                continue
            visited.add(node)
            result.append(node)
            queue.extend(self._dependents.get(node, []))
        return result

    def has_dependencies(self, task_id: str) -> bool:
        return bool(self._dependencies.get(task_id))
