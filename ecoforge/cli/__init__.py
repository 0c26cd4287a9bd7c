"""ecoforge CLI: Typer-based command-line interface.

Provides the ``ecoforge`` command with subcommands for generating a
project, browsing run history, rating runs, and diffing snapshots.

All output uses Rich for formatted terminal display.
"""
