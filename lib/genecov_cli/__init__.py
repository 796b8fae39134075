"""
genecov CLI - a Typer-based command-line interface for coverage analysis.

Usage:
    genecov run datasets.csv --outdir results/
    genecov validate datasets.csv
    genecov --help
"""

import sys

from rich.console import Console

from genecov_cli.app import app

# Import commands to register them with the app
from genecov_cli.commands import run, validate  # noqa: F401

__all__ = ["app", "main"]

console = Console()


def main() -> None:
    """Main entry point for the genecov CLI."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)
