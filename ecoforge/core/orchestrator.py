"""Fan-out orchestrator: the central coordinator for ecoforge runs.

The Orchestrator wires together the ArtifactTree, the Generator
capability, the CostAccountant, the HistoryStore and the
NotificationDispatcher into one run lifecycle:

1. Validate the request and the task catalogue.
2. Reset the tree and run the primary source generation.
3. Plan every catalogue task; unmet preconditions skip optional tasks
   and fail required ones with a validation error.
4. Launch the remaining tasks concurrently, in catalogue order.
5. Join on all of them; no task failure escapes.
6. Finalize: cost estimate, sealed RunRecord, history persistence.

Only a declared ``depends_on`` pair is sequenced; every other task runs
independently of its siblings.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from functools import partial
from typing import Any

from ecoforge.core.artifact_tree import ArtifactTree
from ecoforge.core.cost_accountant import CostAccountant
from ecoforge.core.errors import PersistenceFailure, PrimaryGenerationError, ValidationError
from ecoforge.core.generation_task import GenerationTask, render_units_text
from ecoforge.core.history_store import HistoryStore
from ecoforge.core.task_graph import TaskGraph
from ecoforge.generators.base import Generator, GeneratorOutput
from ecoforge.models.config import BuilderConfig
from ecoforge.models.notifications import Severity
from ecoforge.models.requests import GenerationRequest
from ecoforge.models.runs import (
    VALID_TRANSITIONS,
    RunOutcome,
    RunRecord,
    RunState,
    new_run_id,
)
from ecoforge.models.tasks import ArtifactKind, GenerationTaskResult, OutputMode, TaskStatus
from ecoforge.routing.dispatcher import NotificationDispatcher
from ecoforge.storage.artifact_backends import LocalDirectoryBackend, PersistenceBackend
from ecoforge.storage.history_backends import build_history_backend

logger = logging.getLogger(__name__)


class InvalidTransitionError(RuntimeError):
    """Raised when a requested run state transition is not valid."""


class _PrimaryResult:
    """Files and unit counts from the primary generation."""

    def __init__(self, output: GeneratorOutput, input_units: int, output_units: int) -> None:
        self.files = output.files
        self.input_units = input_units
        self.output_units = output_units


class Orchestrator:
    """Runs one primary generation and fans out every secondary task.

    Parameters
    ----------
    generator:
        The Generator capability used for every generation call.
    config:
        Builder configuration. Uses defaults if not provided.
    tree:
        Artifact tree the run writes into. Created from
        ``config.project_name`` if not provided.
    accountant:
        Cost accountant. Uses the built-in rate table if not provided.
    history:
        History store receiving each run's record. In-memory if not provided.
    dispatcher:
        Notification dispatcher. A dispatcher with no sinks if not provided.
    workspace:
        Optional persistence backend the tree is reconciled into at the
        end of every run.
    """

    def __init__(
        self,
        generator: Generator,
        config: BuilderConfig | None = None,
        *,
        tree: ArtifactTree | None = None,
        accountant: CostAccountant | None = None,
        history: HistoryStore | None = None,
        dispatcher: NotificationDispatcher | None = None,
        workspace: PersistenceBackend | None = None,
    ) -> None:
        self.config = config or BuilderConfig()
        self.generator = generator
        # An empty HistoryStore is falsy; test for None explicitly
        self.tree = tree if tree is not None else ArtifactTree(self.config.project_name)
        self.accountant = accountant if accountant is not None else CostAccountant()
        self.history = (
            history
            if history is not None
            else HistoryStore(capacity=self.config.history_capacity)
        )
        self.dispatcher = dispatcher if dispatcher is not None else NotificationDispatcher()
        self.workspace = workspace

        self.run_id: str | None = None
        self._state = RunState.IDLE
        self._cancel_requested = False
        self._primary: asyncio.Task | None = None
        self._tasks: dict[str, asyncio.Task] = {}

    @classmethod
    def from_config(
        cls,
        generator: Generator,
        config: BuilderConfig,
        *,
        dispatcher: NotificationDispatcher | None = None,
    ) -> Orchestrator:
        """Build an orchestrator whose storage follows *config*."""
        history = HistoryStore(
            build_history_backend(config.history_backend, config.history_path),
            capacity=config.history_capacity,
        )
        workspace = (
            LocalDirectoryBackend(config.workspace_path)
            if config.workspace_path is not None
            else None
        )
        return cls(
            generator,
            config,
            history=history,
            dispatcher=dispatcher,
            workspace=workspace,
        )

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    @property
    def state(self) -> RunState:
        return self._state

    def _transition(self, target: RunState) -> None:
        allowed = VALID_TRANSITIONS.get(self._state, set())
        if target not in allowed:
            raise InvalidTransitionError(
                f"Invalid run transition: {self._state.value} -> {target.value}. "
                f"Allowed: {sorted(s.value for s in allowed)}"
            )
        logger.debug("Run %s: %s -> %s", self.run_id, self._state.value, target.value)
        self._state = target

    # ------------------------------------------------------------------
    # Run lifecycle
    # ------------------------------------------------------------------

    def validate(self, request: GenerationRequest) -> TaskGraph:
        """Reject malformed requests before any state changes."""
        if not request.prompt.strip():
            raise ValidationError("Prompt must not be empty")
        if not self.config.catalogue:
            raise ValidationError("Task catalogue must not be empty")
        return TaskGraph(self.config.catalogue)

    async def run(self, request: GenerationRequest) -> RunOutcome:
        """Execute one full run and return its outcome.

        Raises
        ------
        ValidationError
            If the prompt or the catalogue is malformed.
        PrimaryGenerationError
            If the primary source generation fails; no record is created.
        InvalidTransitionError
            If a run is already in progress.
        asyncio.CancelledError
            If the awaiting task is cancelled; in-flight tasks are cancelled
            first and the run ends CANCELLED without a record.
        """
        if self._state in (RunState.RUNNING, RunState.FINALIZING):
            raise InvalidTransitionError(f"Run {self.run_id} is already in progress")
        graph = self.validate(request)

        if self._state != RunState.IDLE:
            self._transition(RunState.IDLE)
        self.run_id = new_run_id()
        self._cancel_requested = False
        self._tasks = {}
        started = time.monotonic()

        self.tree.reset()
        self._transition(RunState.RUNNING)
        self._notify(f"Run started for model {request.options.model_id}")

        try:
            return await self._execute(request, graph, started)
        except (asyncio.CancelledError, Exception) as exc:
            await self._abort(exc)
            raise

    async def _execute(
        self, request: GenerationRequest, graph: TaskGraph, started: float
    ) -> RunOutcome:
        try:
            primary = await self._run_primary(request)
        except PrimaryGenerationError as exc:
            self._transition(RunState.FAILED)
            self._notify(f"Primary generation failed: {exc}", Severity.ERROR)
            raise
        self._primary = None
        self._notify(
            f"Primary generation wrote {len(primary.files)} file(s)", Severity.SUCCESS
        )

        results = await self._fan_out(request, graph, primary)
        self._tasks = {}

        self._transition(RunState.FINALIZING)
        outcome = self._finalize(request, graph, primary, results, started)
        self._transition(RunState.CANCELLED if outcome.record.cancelled else RunState.COMPLETED)
        return outcome.model_copy(update={"state": self._state})

    async def _abort(self, exc: BaseException) -> None:
        """Stop every in-flight generation after the run itself was interrupted.

        Reached when the caller cancels the task awaiting ``run()`` or an
        unexpected error escapes.  No record is produced; the state ends
        CANCELLED for caller cancellation and FAILED otherwise.
        """
        pending = [
            handle
            for handle in (self._primary, *self._tasks.values())
            if handle is not None and not handle.done()
        ]
        for handle in pending:
            handle.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._primary = None
        self._tasks = {}

        if self._state in (RunState.RUNNING, RunState.FINALIZING):
            if isinstance(exc, asyncio.CancelledError):
                logger.info("Run %s aborted by caller cancellation", self.run_id)
                self._transition(RunState.CANCELLED)
                self._notify("Run aborted by caller", Severity.WARNING)
            else:
                logger.error("Run %s aborted: %s", self.run_id, exc)
                self._transition(RunState.FAILED)
                self._notify(f"Run aborted: {exc}", Severity.ERROR)

    def cancel(self) -> bool:
        """Cancel every in-flight task of the current run.

        Returns False when no run is in progress.  Cancelled tasks end
        ``failed/cancelled``; the run still finalizes and records a
        RunRecord unless the primary generation was interrupted.
        """
        if self._state != RunState.RUNNING:
            return False
        self._cancel_requested = True
        logger.info("Cancelling run %s", self.run_id)
        if self._primary is not None and not self._primary.done():
            self._primary.cancel()
        for task in self._tasks.values():
            if not task.done():
                task.cancel()
        self._notify("Cancellation requested", Severity.WARNING)
        return True

    # ------------------------------------------------------------------
    # Primary generation
    # ------------------------------------------------------------------

    async def _run_primary(self, request: GenerationRequest) -> _PrimaryResult:
        inputs: dict[str, Any] = {"prompt": request.prompt}
        inputs.update(request.options.model_dump(exclude={"extra"}))
        inputs.update(request.options.extra)

        self._primary = asyncio.create_task(
            asyncio.wait_for(
                self._call_primary(inputs), timeout=self.config.task_timeout_seconds
            ),
            name="ecoforge:primary",
        )
        try:
            output = await self._primary
        except asyncio.CancelledError:
            if not self._cancel_requested:
                raise
            raise PrimaryGenerationError("Primary generation was cancelled") from None
        except asyncio.TimeoutError as exc:
            raise PrimaryGenerationError(
                f"Primary generation timed out after {self.config.task_timeout_seconds}s"
            ) from exc
        except Exception as exc:
            raise PrimaryGenerationError(f"{type(exc).__name__}: {exc}") from exc

        if not output.files:
            raise PrimaryGenerationError("Primary generation produced no source files")
        try:
            for file in output.files:
                self.tree.add_file(file.path, file.content)
        except ValidationError as exc:
            raise PrimaryGenerationError(f"Primary generation produced a bad path: {exc}") from exc

        input_units = (
            output.input_units
            if output.input_units is not None
            else self.accountant.estimate_units(render_units_text(inputs))
        )
        output_units = (
            output.output_units
            if output.output_units is not None
            else self.accountant.estimate_units("".join(f.content for f in output.files))
        )
        return _PrimaryResult(output, input_units, output_units)

    async def _call_primary(self, inputs: dict[str, Any]) -> GeneratorOutput:
        response = self.generator.generate(ArtifactKind.SOURCE_FILES, inputs)
        if inspect.isawaitable(response):
            response = await response
        if not isinstance(response, GeneratorOutput):
            raise TypeError(
                f"Primary generation must return GeneratorOutput, got {type(response).__name__}"
            )
        return response

    # ------------------------------------------------------------------
    # Fan-out / join
    # ------------------------------------------------------------------

    def _context(self, request: GenerationRequest, primary: _PrimaryResult) -> dict[str, Any]:
        return {
            "prompt": request.prompt,
            "full_context": "\n\n".join(
                f"// File: {f.path}\n{f.content}" for f in primary.files
            ),
            "primary_file": primary.files[0].content,
        }

    async def _fan_out(
        self,
        request: GenerationRequest,
        graph: TaskGraph,
        primary: _PrimaryResult,
    ) -> list[GenerationTaskResult]:
        loop = asyncio.get_running_loop()
        context = self._context(request, primary)
        semaphore = (
            asyncio.Semaphore(self.config.max_concurrent_tasks)
            if self.config.max_concurrent_tasks
            else None
        )

        # One slot per task, filled with its terminal result; dependents
        # await their dependencies' slots.
        slots: dict[str, asyncio.Future[GenerationTaskResult]] = {
            task_id: loop.create_future() for task_id in graph.task_ids
        }

        for task_id in graph.task_ids:
            spec = graph.spec(task_id)
            task = GenerationTask(
                spec,
                self.generator,
                self.tree,
                self.accountant,
                request.options,
                context,
                timeout=self.config.task_timeout_seconds,
                semaphore=semaphore,
            )
            unmet = spec.unmet_preconditions(request.options)
            if unmet:
                reason = "precondition not met: " + ", ".join(unmet)
                if spec.optional:
                    result = task.skipped(reason)
                    logger.debug("Skipping %s: %s", task_id, reason)
                else:
                    result = task.rejected(reason)
                    logger.warning("Task %s cannot run: %s", task_id, reason)
                slots[task_id].set_result(result)
                continue

            upstream = {dep: slots[dep] for dep in graph.get_dependencies(task_id)}
            handle = asyncio.create_task(
                self._run_task(task, upstream), name=f"ecoforge:{task_id}"
            )
            handle.add_done_callback(partial(self._fill_slot, slots[task_id], task))
            self._tasks[task_id] = handle

        launched = len(self._tasks)
        self._notify(
            f"Launched {launched} task(s), {len(slots) - launched} not run"
        )
        if self._cancel_requested:
            for handle in self._tasks.values():
                handle.cancel()

        await asyncio.gather(*slots.values())
        return [slots[task_id].result() for task_id in graph.task_ids]

    async def _run_task(
        self,
        task: GenerationTask,
        upstream: dict[str, asyncio.Future[GenerationTaskResult]],
    ) -> GenerationTaskResult:
        result = await task.run(upstream)
        if result.status == TaskStatus.SUCCESS:
            self._notify(f"{task.spec.label} generated", Severity.SUCCESS, task_id=result.task_id)
        elif result.status == TaskStatus.FAILED:
            self._notify(
                f"{task.spec.label} failed: {result.error}",
                Severity.ERROR,
                task_id=result.task_id,
            )
        else:
            self._notify(
                f"{task.spec.label} skipped: {result.skip_reason}",
                task_id=result.task_id,
            )
        return result

    @staticmethod
    def _fill_slot(
        slot: asyncio.Future[GenerationTaskResult],
        task: GenerationTask,
        handle: asyncio.Task,
    ) -> None:
        if slot.done():
            return
        if handle.cancelled():
            # Cancelled before its first step; the task body never ran
            slot.set_result(task.cancelled_result())
        elif handle.exception() is not None:
            slot.set_exception(handle.exception())
        else:
            slot.set_result(handle.result())

    # ------------------------------------------------------------------
    # Finalization
    # ------------------------------------------------------------------

    def _finalize(
        self,
        request: GenerationRequest,
        graph: TaskGraph,
        primary: _PrimaryResult,
        results: list[GenerationTaskResult],
        started: float,
    ) -> RunOutcome:
        model_id = request.options.model_id
        total_cost = self.accountant.run_cost(
            model_id,
            results,
            primary_input_units=primary.input_units,
            primary_output_units=primary.output_units,
        )
        self._notify(f"Estimated cost: ${total_cost:.6f} ({model_id})")

        record = RunRecord(
            run_id=self.run_id,
            prompt_text=request.prompt,
            model_id=model_id,
            artifact_tree_snapshot=self.tree.serialize(),
            task_results=results,
            primary_input_units=primary.input_units,
            primary_output_units=primary.output_units,
            total_cost_estimate=total_cost,
            cancelled=self._cancel_requested,
        )

        warnings: list[str] = []
        try:
            record = self.history.record(record)
        except PersistenceFailure as exc:
            warnings.append(f"Run history was not persisted: {exc}")
            record = self.history.get(record.run_id) or record
        if self.workspace is not None:
            try:
                self.tree.persist(self.workspace)
            except PersistenceFailure as exc:
                warnings.append(f"Workspace was not persisted: {exc}")
        for warning in warnings:
            self._notify(warning, Severity.WARNING)

        reports = {
            r.task_id: r.output
            for r in results
            if r.status == TaskStatus.SUCCESS
            and graph.spec(r.task_id).output_mode == OutputMode.REPORT
        }

        succeeded = len(record.results_with_status(TaskStatus.SUCCESS))
        failed = len(record.results_with_status(TaskStatus.FAILED))
        skipped = len(record.results_with_status(TaskStatus.SKIPPED))
        verb = "cancelled" if record.cancelled else "completed"
        self._notify(
            f"Run {verb}: {succeeded} succeeded, {failed} failed, {skipped} skipped",
            Severity.WARNING if record.cancelled or failed else Severity.SUCCESS,
        )

        return RunOutcome(
            run_id=record.run_id,
            state=self._state,
            record=record,
            warnings=warnings,
            reports=reports,
            duration_seconds=round(time.monotonic() - started, 3),
        )

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def _notify(
        self,
        message: str,
        severity: Severity = Severity.INFO,
        *,
        task_id: str | None = None,
    ) -> None:
        self.dispatcher.notify(self.run_id or "", message, severity, task_id=task_id)
