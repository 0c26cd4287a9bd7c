"""One unit of secondary generation work.

``GenerationTask.run()`` drives a single ``GenerationTaskSpec`` against the
Generator capability and always returns a terminal
``GenerationTaskResult``: generator errors, timeouts, cancellation and
upstream failures are captured on the result, never raised.

Output handling by ``OutputMode``:

* REPORT: output kept on the result only.
* FILE: streamed chunks are appended to the file at ``output_path`` as
  they arrive, so partial output survives a failure.
* MULTI_FILE: the finished output is split on ``---`` document lines into
  numbered files.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
import re
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from ecoforge.core.artifact_tree import ArtifactTree
from ecoforge.core.cost_accountant import CostAccountant
from ecoforge.core.errors import GeneratorFailure, GeneratorTimeout, ValidationError
from ecoforge.generators.base import Generator, GeneratorOutput
from ecoforge.models.requests import GenerationOptions
from ecoforge.models.tasks import (
    GenerationTaskResult,
    GenerationTaskSpec,
    OutputMode,
    TaskErrorKind,
    TaskStatus,
)

logger = logging.getLogger(__name__)

UPSTREAM_PREFIX = "upstream:"

_DOCUMENT_SEPARATOR = re.compile(r"^---\s*$", re.MULTILINE)


def _slug(value: Any) -> str:
    return re.sub(r"[^a-z0-9._-]+", "-", str(value).strip().lower()).strip("-")


def render_units_text(value: Any) -> str:
    """Flatten inputs or output to text for unit estimation."""
    if isinstance(value, str):
        return value
    return json.dumps(value, sort_keys=True, default=str)


def split_documents(content: str) -> list[str]:
    """Split multi-document output on ``---`` lines, dropping empty parts."""
    return [part.strip() for part in _DOCUMENT_SEPARATOR.split(content) if part.strip()]


class GenerationTask:
    """Runs one task spec to a terminal result.

    Parameters
    ----------
    spec:
        The task to run.
    generator:
        External Generator capability.
    tree:
        Artifact tree that FILE / MULTI_FILE output is written into.
    accountant:
        Supplies the unit heuristic when the generator reports no counts.
    options:
        Request options, used for input resolution and output paths.
    context:
        Run-level inputs (``prompt``, ``full_context``, ``primary_file``).
    timeout:
        Seconds allowed for the generator call; ``None`` disables it.
    semaphore:
        Optional cap on simultaneous generator calls across the run.
    """

    def __init__(
        self,
        spec: GenerationTaskSpec,
        generator: Generator,
        tree: ArtifactTree,
        accountant: CostAccountant,
        options: GenerationOptions,
        context: Mapping[str, Any],
        *,
        timeout: float | None = None,
        semaphore: asyncio.Semaphore | None = None,
    ) -> None:
        self.spec = spec
        self._generator = generator
        self._tree = tree
        self._accountant = accountant
        self._options = options
        self._context = dict(context)
        self._timeout = spec.timeout_seconds if spec.timeout_seconds is not None else timeout
        self._semaphore = semaphore

        # Survive cancellation/timeout so partial output is still counted
        self._chunks: list[str] = []
        self._written: list[str] = []
        self._input_units = 0
        self._started_at: datetime | None = None

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    async def run(
        self, upstream: Mapping[str, asyncio.Future[GenerationTaskResult]] | None = None
    ) -> GenerationTaskResult:
        """Execute the task; never raises for task-level failures."""
        self._started_at = datetime.now(timezone.utc)
        try:
            inputs = self._resolve_inputs()
            for dep_id, dep_future in (upstream or {}).items():
                # shield: cancelling this task must not cancel the sibling
                dep = await asyncio.shield(dep_future)
                if dep.status == TaskStatus.SKIPPED:
                    return self.skipped(f"upstream task {dep_id} was skipped")
                if dep.status == TaskStatus.FAILED:
                    return self._failed(
                        TaskErrorKind.UPSTREAM,
                        f"upstream task {dep_id} failed: {dep.error}",
                    )
                inputs[f"{UPSTREAM_PREFIX}{dep_id}"] = dep.output

            self._input_units = self._accountant.estimate_units(render_units_text(inputs))
            if self._semaphore is not None:
                async with self._semaphore:
                    output = await self._call_with_timeout(inputs)
            else:
                output = await self._call_with_timeout(inputs)
        except asyncio.CancelledError:
            logger.info("Task %s cancelled", self.spec.task_id)
            return self.cancelled_result()
        except asyncio.TimeoutError:
            logger.warning("Task %s timed out after %ss", self.spec.task_id, self._timeout)
            return self._failed(
                TaskErrorKind.TIMEOUT, f"timed out after {self._timeout}s"
            )
        except GeneratorTimeout as exc:
            logger.warning("Task %s: generator timed out: %s", self.spec.task_id, exc)
            return self._failed(TaskErrorKind.TIMEOUT, str(exc))
        except ValidationError as exc:
            logger.warning("Task %s rejected: %s", self.spec.task_id, exc)
            return self._failed(TaskErrorKind.VALIDATION, str(exc))
        except Exception as exc:  # noqa: BLE001
            logger.warning("Task %s failed: %s", self.spec.task_id, exc)
            return self._failed(TaskErrorKind.GENERATOR, f"{type(exc).__name__}: {exc}")

        return self._succeeded(output)

    # ------------------------------------------------------------------
    # Generator call
    # ------------------------------------------------------------------

    async def _call_with_timeout(self, inputs: dict[str, Any]) -> GeneratorOutput:
        if self._timeout is None:
            return await self._consume(inputs)
        return await asyncio.wait_for(self._consume(inputs), timeout=self._timeout)

    async def _consume(self, inputs: dict[str, Any]) -> GeneratorOutput:
        response = self._generator.generate(self.spec.kind, inputs)

        if hasattr(response, "__aiter__"):
            async for chunk in response:
                self._chunks.append(chunk)
                if self.spec.output_mode == OutputMode.FILE:
                    self._stream_chunk(chunk)
            output = GeneratorOutput(content="".join(self._chunks))
        else:
            if inspect.isawaitable(response):
                response = await response
            if isinstance(response, GeneratorOutput):
                output = response
            elif isinstance(response, (str, dict)):
                output = GeneratorOutput(content=response)
            else:
                raise GeneratorFailure(
                    f"Unsupported generator response type: {type(response).__name__}"
                )
            if isinstance(output.content, str):
                self._chunks = [output.content]
            if self.spec.output_mode == OutputMode.FILE:
                self._write_file(render_units_text(output.content))

        if self.spec.output_mode == OutputMode.MULTI_FILE:
            self._write_documents(render_units_text(output.content))
        return output

    # ------------------------------------------------------------------
    # Inputs and outputs
    # ------------------------------------------------------------------

    def _resolve_inputs(self) -> dict[str, Any]:
        inputs: dict[str, Any] = {}
        for name in self.spec.inputs:
            if name in self._context:
                inputs[name] = self._context[name]
                continue
            value = self._options.get(name)
            if value is None:
                raise ValidationError(
                    f"Task {self.spec.task_id!r} input {name!r} is not available"
                )
            inputs[name] = value
        return inputs

    def _output_path(self, **extra: Any) -> str:
        if not self.spec.output_path:
            raise ValidationError(f"Task {self.spec.task_id!r} has no output_path")
        fields = {k: _slug(v) for k, v in self._options.model_dump(exclude={"extra"}).items()}
        fields.update({k: _slug(v) for k, v in self._options.extra.items()})
        fields.update(extra)
        try:
            return self.spec.output_path.format(**fields)
        except (KeyError, IndexError) as exc:
            raise ValidationError(
                f"Task {self.spec.task_id!r} output_path references unknown field {exc}"
            ) from exc

    def _stream_chunk(self, chunk: str) -> None:
        path = self._output_path()
        if path in self._written:
            self._tree.append_chunk(path, chunk)
        else:
            self._write_file(chunk)

    def _write_file(self, content: str) -> None:
        path = self._output_path()
        self._tree.add_file(path, content)
        if path not in self._written:
            self._written.append(path)

    def _write_documents(self, content: str) -> None:
        for index, document in enumerate(split_documents(content), start=1):
            path = self._output_path(index=index)
            self._tree.add_file(path, document)
            self._written.append(path)

    # ------------------------------------------------------------------
    # Result builders
    # ------------------------------------------------------------------

    def _partial_output_units(self) -> int:
        return self._accountant.estimate_units("".join(self._chunks))

    def _succeeded(self, output: GeneratorOutput) -> GenerationTaskResult:
        input_units = output.input_units if output.input_units is not None else self._input_units
        output_units = (
            output.output_units
            if output.output_units is not None
            else self._accountant.estimate_units(render_units_text(output.content))
        )
        return GenerationTaskResult(
            task_id=self.spec.task_id,
            kind=self.spec.kind,
            status=TaskStatus.SUCCESS,
            output=output.content,
            estimated_input_units=input_units,
            estimated_output_units=output_units,
            written_paths=list(self._written),
            started_at=self._started_at,
            finished_at=datetime.now(timezone.utc),
        )

    def _failed(self, error_kind: TaskErrorKind, error: str) -> GenerationTaskResult:
        return GenerationTaskResult(
            task_id=self.spec.task_id,
            kind=self.spec.kind,
            status=TaskStatus.FAILED,
            error=error,
            error_kind=error_kind,
            estimated_input_units=self._input_units,
            estimated_output_units=self._partial_output_units(),
            written_paths=list(self._written),
            started_at=self._started_at,
            finished_at=datetime.now(timezone.utc),
        )

    def cancelled_result(self) -> GenerationTaskResult:
        return self._failed(TaskErrorKind.CANCELLED, "cancelled")

    def rejected(self, reason: str) -> GenerationTaskResult:
        """Terminal failed/validation result for a required task that cannot run."""
        return self._failed(TaskErrorKind.VALIDATION, reason)

    def skipped(self, reason: str) -> GenerationTaskResult:
        """Terminal SKIPPED result; the generator is never called."""
        now = datetime.now(timezone.utc)
        return GenerationTaskResult(
            task_id=self.spec.task_id,
            kind=self.spec.kind,
            status=TaskStatus.SKIPPED,
            skip_reason=reason,
            started_at=self._started_at or now,
            finished_at=now,
        )
