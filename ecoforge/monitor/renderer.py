"""Rich terminal renderer for ecoforge runs.

Color scheme
------------
- green     : SUCCESS
- red       : FAILED
- dim       : SKIPPED
"""

from __future__ import annotations

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ecoforge.core.hasher import compute_snapshot_hash
from ecoforge.models.artifacts import DiffReport, DiffStatus
from ecoforge.models.runs import RunOutcome, RunRecord, RunState
from ecoforge.models.tasks import GenerationTaskResult, GenerationTaskSpec, TaskStatus

# ---------------------------------------------------------------------------
# Status -> Rich markup
# ---------------------------------------------------------------------------

_STATUS_LABELS: dict[TaskStatus, str] = {
    TaskStatus.SUCCESS: "[green]SUCCESS[/green]",
    TaskStatus.FAILED: "[bold red]FAILED[/bold red]",
    TaskStatus.SKIPPED: "[dim]SKIPPED[/dim]",
}

_STATE_STYLES: dict[RunState, str] = {
    RunState.COMPLETED: "green",
    RunState.CANCELLED: "yellow",
    RunState.FAILED: "red",
}

_DIFF_STYLES: dict[DiffStatus, str] = {
    DiffStatus.NEW: "green",
    DiffStatus.DELETED: "red",
    DiffStatus.MODIFIED: "yellow",
    DiffStatus.UNCHANGED: "dim",
}


def _detail(result: GenerationTaskResult) -> str:
    if result.status == TaskStatus.FAILED:
        kind = result.error_kind.value if result.error_kind else "error"
        return f"[red]{kind}[/red]: {result.error or ''}"
    if result.status == TaskStatus.SKIPPED:
        return f"[dim]{result.skip_reason or ''}[/dim]"
    if result.written_paths:
        return ", ".join(result.written_paths)
    return "report"


class RunRenderer:
    """Renders run data as Rich terminal output.

    Parameters
    ----------
    console:
        Rich console to print to.  Defaults to a fresh ``Console()``.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    # ------------------------------------------------------------------
    # Renderables
    # ------------------------------------------------------------------

    def results_table(self, results: list[GenerationTaskResult]) -> Table:
        table = Table(title="Task Results", show_lines=False, expand=True)
        table.add_column("Task", style="cyan", no_wrap=True)
        table.add_column("Status", justify="center")
        table.add_column("Units in/out", justify="right")
        table.add_column("Detail")
        for result in results:
            table.add_row(
                result.task_id,
                _STATUS_LABELS[result.status],
                f"{result.estimated_input_units}/{result.estimated_output_units}",
                _detail(result),
            )
        return table

    def history_table(self, records: list[RunRecord]) -> Table:
        table = Table(title="Run History")
        table.add_column("Run ID", style="cyan", no_wrap=True)
        table.add_column("When")
        table.add_column("Model")
        table.add_column("Prompt")
        table.add_column("Files", justify="right")
        table.add_column("Cost", justify="right")
        table.add_column("Feedback", justify="center")
        for record in records:
            if record.feedback is not None:
                feedback = "*" * record.feedback.rating
            else:
                feedback = "[dim]pending[/dim]"
            prompt = record.prompt_text
            if len(prompt) > 40:
                prompt = prompt[:37] + "..."
            table.add_row(
                record.run_id,
                record.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
                record.model_id,
                prompt,
                str(len(record.artifact_tree_snapshot)),
                f"${record.total_cost_estimate:.6f}",
                feedback,
            )
        return table

    def record_panel(self, record: RunRecord) -> Panel:
        status = "[yellow]cancelled[/yellow]" if record.cancelled else "[green]completed[/green]"
        lines = [
            f"[bold]Run ID:[/bold]    {record.run_id}",
            f"[bold]Status:[/bold]    {status}",
            f"[bold]Model:[/bold]     {record.model_id}",
            f"[bold]Prompt:[/bold]    {record.prompt_text}",
            f"[bold]Files:[/bold]     {len(record.artifact_tree_snapshot)}",
            f"[bold]Cost:[/bold]      ${record.total_cost_estimate:.6f}",
            f"[bold]Seal:[/bold]      {record.record_hash[:16]}",
            f"[bold]Snapshot:[/bold]  {compute_snapshot_hash(record.artifact_tree_snapshot)[:16]}",
        ]
        if record.feedback is not None:
            lines.append(
                f"[bold]Feedback:[/bold]  {record.feedback.rating}/5 {record.feedback.comment}"
            )
        files = Text("\n".join(f.path for f in record.artifact_tree_snapshot), style="dim")
        return Panel(
            Group("\n".join(lines), "", files, "", self.results_table(record.task_results)),
            title=f"[bold]{record.run_id}[/bold]",
            border_style="blue",
        )

    def outcome_panel(self, outcome: RunOutcome) -> Panel:
        style = _STATE_STYLES.get(outcome.state, "white")
        lines = [
            f"[bold]Run ID:[/bold]    {outcome.run_id}",
            f"[bold]State:[/bold]     [{style}]{outcome.state.value}[/{style}]",
            f"[bold]Duration:[/bold]  {outcome.duration_seconds:.2f}s",
        ]
        if outcome.record is not None:
            lines.append(f"[bold]Files:[/bold]     {len(outcome.record.artifact_tree_snapshot)}")
            lines.append(f"[bold]Cost:[/bold]      ${outcome.record.total_cost_estimate:.6f}")
        for warning in outcome.warnings:
            lines.append(f"[yellow]warning:[/yellow] {warning}")
        return Panel("\n".join(lines), title="[bold]ecoforge[/bold]", border_style=style)

    def diff_table(self, report: DiffReport) -> Table:
        table = Table(title="Conceptual Diff Report")
        table.add_column("Status", justify="center")
        table.add_column("Path")
        for entry in report.entries:
            style = _DIFF_STYLES[entry.status]
            table.add_row(f"[{style}]{entry.status.value.upper()}[/{style}]", entry.path)
        return table

    def catalogue_table(self, specs: list[GenerationTaskSpec]) -> Table:
        table = Table(title="Task Catalogue")
        table.add_column("Task", style="cyan", no_wrap=True)
        table.add_column("Output")
        table.add_column("Preconditions")
        table.add_column("Depends on")
        for spec in specs:
            output = spec.output_mode.value
            if spec.output_path:
                output += f" ({spec.output_path})"
            table.add_row(
                spec.task_id,
                output,
                ", ".join(p.describe() for p in spec.preconditions) or "-",
                ", ".join(spec.depends_on) or "-",
            )
        return table

    # ------------------------------------------------------------------
    # Printing
    # ------------------------------------------------------------------

    def print_outcome(self, outcome: RunOutcome) -> None:
        self.console.print()
        if outcome.record is not None:
            self.console.print(self.results_table(outcome.record.task_results))
        self.console.print(self.outcome_panel(outcome))
