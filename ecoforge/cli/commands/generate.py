"""``ecoforge generate``: run the full generation pipeline for one prompt.

Uses the offline generator, fans out every eligible secondary task, and
prints the per-task results and the cost estimate.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console

from ecoforge.core.errors import PrimaryGenerationError, ValidationError
from ecoforge.core.orchestrator import Orchestrator
from ecoforge.cli.commands._common import load_settings
from ecoforge.generators.offline import OfflineGenerator
from ecoforge.models.requests import NONE_SELECTED, GenerationOptions, GenerationRequest
from ecoforge.monitor.renderer import RunRenderer
from ecoforge.routing.dispatcher import NotificationDispatcher
from ecoforge.routing.sinks import ConsoleSink, LocalFileSink, LoggingSink

console = Console()


def generate_cmd(
    prompt: str = typer.Argument(..., help="What to build."),
    project_name: str = typer.Option(
        "ai-generated-project", "--project", "-p", help="Project (root directory) name."
    ),
    model: str = typer.Option(None, "--model", "-m", help="Model id used for cost estimation."),
    framework: str = typer.Option("React", help="Frontend framework."),
    styling: str = typer.Option("Tailwind CSS", help="Styling library."),
    backend: bool = typer.Option(False, "--backend/--no-backend", help="Generate a backend."),
    database: str = typer.Option(NONE_SELECTED, help="Database service."),
    cloud: str = typer.Option(NONE_SELECTED, help="Cloud provider for deployment manifests."),
    orchestration: str = typer.Option(NONE_SELECTED, help="Container orchestration."),
    cicd: str = typer.Option(NONE_SELECTED, help="CI/CD provider."),
    security: str = typer.Option(NONE_SELECTED, help="Security scanning tool."),
    workspace: Path = typer.Option(
        None, "--workspace", "-w", help="Directory the generated files are written to."
    ),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress live notifications."),
) -> None:
    """Generate a project and every eligible secondary artifact."""
    settings = load_settings()
    builder_config = settings.to_builder_config(project_name)
    if workspace is not None:
        builder_config = builder_config.model_copy(update={"workspace_path": workspace})

    dispatcher = NotificationDispatcher()
    dispatcher.register_sink(LoggingSink())
    dispatcher.register_sink(LocalFileSink(settings.notifications_path))
    if not quiet:
        dispatcher.register_sink(ConsoleSink(console))

    request = GenerationRequest(
        prompt=prompt,
        options=GenerationOptions(
            model_id=model or settings.default_model,
            framework=framework,
            styling=styling,
            include_backend=backend,
            database_service=database,
            cloud_provider=cloud,
            container_orchestration=orchestration,
            cicd_provider=cicd,
            security_tool=security,
        ),
    )

    orchestrator = Orchestrator.from_config(
        OfflineGenerator(), builder_config, dispatcher=dispatcher
    )
    try:
        outcome = asyncio.run(orchestrator.run(request))
    except ValidationError as exc:
        console.print(f"[red]Invalid request:[/red] {exc}")
        raise typer.Exit(code=2) from exc
    except PrimaryGenerationError as exc:
        console.print(f"[red]Primary generation failed:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    RunRenderer(console).print_outcome(outcome)

    # Print the run_id plainly for scripting
    console.print(f"[bold]{outcome.run_id}[/bold]")
