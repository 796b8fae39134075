"""
Utility functions for the genecov CLI.

Provides console output helpers, logging setup and report rendering.
"""

import sys

from loguru import logger
from rich.console import Console
from rich.table import Table

from genecov.pipeline import RunReport

# Shared console instances
console = Console()
err_console = Console(stderr=True)

# Exit status for invalid sheets or configuration, matching click's usage errors
USAGE_EXIT_CODE = 2


# =============================================================================
# Console Output Helpers
# =============================================================================


def error(message: str, exit_code: int = 1) -> None:
    """Print an error message and optionally exit."""
    err_console.print(f"[bold red]Error:[/bold red] {message}")
    if exit_code:
        sys.exit(exit_code)


def success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def info(message: str) -> None:
    """Print an informational message."""
    console.print(f"[cyan]Info:[/cyan] {message}")


def warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning:[/yellow] {message}")


# =============================================================================
# Logging
# =============================================================================


def configure_logging(verbosity: int) -> None:
    """Configure loguru logging based on verbosity level."""
    logger.remove()

    level = {
        0: "ERROR",
        1: "WARNING",
        2: "SUCCESS",
        3: "INFO",
        4: "DEBUG",
    }.get(max(0, min(verbosity, 4)), "INFO")

    logger.add(
        sys.stderr,
        colorize=True,
        level=level,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>",
    )


# =============================================================================
# Report Rendering
# =============================================================================


def render_run_report(report: RunReport) -> Table:
    """Build a rich table with one status line per dataset."""
    table = Table(title="Datasets", show_lines=False)
    table.add_column("Dataset", style="bold")
    table.add_column("Status")
    table.add_column("Alignments", justify="right")
    table.add_column("Transcripts", justify="right")
    table.add_column("Warnings", justify="right")
    table.add_column("Error", overflow="fold")

    for result in report.results:
        status = "[green]ok[/green]" if result.ok else "[red]failed[/red]"
        table.add_row(
            result.label,
            status,
            f"{result.record_count:,}",
            f"{result.transcript_count:,}",
            str(len(result.issues)),
            result.error or "",
        )
    return table
