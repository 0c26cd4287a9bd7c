"""``ecoforge catalogue``: list the secondary generation tasks."""

from __future__ import annotations

from rich.console import Console

from ecoforge.models.tasks import DEFAULT_TASK_CATALOGUE
from ecoforge.monitor.renderer import RunRenderer

console = Console()


def catalogue_cmd() -> None:
    """List every task in the default catalogue with its gating rules."""
    console.print(RunRenderer(console).catalogue_table(DEFAULT_TASK_CATALOGUE))
