"""Main Typer application: imports and registers all CLI commands.

Entry point: ``ecoforge`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

import logging

import typer
from rich.logging import RichHandler

from ecoforge.cli.commands._common import load_settings
from ecoforge.cli.commands.catalogue import catalogue_cmd
from ecoforge.cli.commands.generate import generate_cmd
from ecoforge.cli.commands.history import diff_cmd, feedback_cmd, history_cmd, show_cmd

app = typer.Typer(
    name="ecoforge",
    help="ecoforge: one prompt in, a whole project ecosystem out.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Configure logging before any command runs."""
    settings = load_settings()
    level = "DEBUG" if verbose or settings.debug else settings.log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )


# Register subcommands
app.command(name="generate", help="Generate a project from a prompt.")(generate_cmd)
app.command(name="history", help="List past runs.")(history_cmd)
app.command(name="show", help="Show one run.")(show_cmd)
app.command(name="feedback", help="Rate a past run.")(feedback_cmd)
app.command(name="diff", help="Diff the files of two runs.")(diff_cmd)
app.command(name="catalogue", help="List the secondary task catalogue.")(catalogue_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
