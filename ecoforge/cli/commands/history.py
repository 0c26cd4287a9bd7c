"""History commands: ``history``, ``show``, ``feedback`` and ``diff``."""

from __future__ import annotations

import typer
from rich.console import Console

from ecoforge.cli.commands._common import load_settings, open_history
from ecoforge.core.artifact_tree import ArtifactTree
from ecoforge.core.errors import NotFoundError
from ecoforge.models.runs import UserFeedback
from ecoforge.monitor.renderer import RunRenderer

console = Console()


def history_cmd(
    limit: int = typer.Option(None, "--limit", "-n", help="Show only the N most recent runs."),
) -> None:
    """List past runs, most recent first."""
    store = open_history(load_settings())
    records = store.list()
    if limit is not None:
        records = records[:limit]
    if not records:
        console.print("[dim]No runs recorded yet.[/dim]")
        return
    console.print(RunRenderer(console).history_table(records))


def show_cmd(run_id: str = typer.Argument(..., help="Run ID to show.")) -> None:
    """Show one run's record, files and task results."""
    store = open_history(load_settings())
    try:
        record = store.require(run_id)
    except NotFoundError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc
    console.print(RunRenderer(console).record_panel(record))


def feedback_cmd(
    run_id: str = typer.Argument(..., help="Run ID to rate."),
    rating: int = typer.Option(..., "--rating", "-r", min=1, max=5, help="Rating from 1 to 5."),
    comment: str = typer.Option("", "--comment", "-c", help="Free-text comment."),
) -> None:
    """Attach a rating and comment to a past run."""
    store = open_history(load_settings())
    accepted = store.submit_feedback(
        run_id, UserFeedback(run_id=run_id, rating=rating, comment=comment)
    )
    if not accepted:
        console.print(f"[red]Run not found: {run_id}[/red]")
        raise typer.Exit(code=1)
    console.print(f"[green]Feedback recorded for {run_id}.[/green]")


def diff_cmd(
    previous: str = typer.Argument(..., help="Earlier run ID."),
    current: str = typer.Argument(..., help="Later run ID."),
) -> None:
    """Compare the generated files of two runs."""
    store = open_history(load_settings())
    try:
        old = store.require(previous)
        new = store.require(current)
    except NotFoundError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    report = ArtifactTree.deserialize(new.artifact_tree_snapshot).diff(
        ArtifactTree.deserialize(old.artifact_tree_snapshot)
    )
    if not report.has_changes:
        console.print("[dim]No changes detected.[/dim]")
        return
    console.print(RunRenderer(console).diff_table(report))
