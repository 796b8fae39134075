# ruff: noqa: PLR0913, FBT002, UP045
"""
The 'run' command for the genecov CLI.

Analyzes every dataset in a sheet, writes the summary tables and plots, and
exits non-zero when any dataset failed.

Note: We intentionally do NOT use `from __future__ import annotations` here
because Typer needs to introspect the type annotations at runtime.
"""

from pathlib import Path
from typing import Annotated, Optional

import typer
from pydantic import ValidationError

from genecov.config import load_config
from genecov.errors import FileFormatError
from genecov.formats import available_formats
from genecov.pipeline import run_analysis
from genecov.plots import save_plots
from genecov.sheet import read_dataset_sheet
from genecov.tables import write_report_tables
from genecov_cli.app import app
from genecov_cli.utils import (
    USAGE_EXIT_CODE,
    configure_logging,
    console,
    error,
    info,
    render_run_report,
    success,
    warning,
)

PANEL_INPUT = "Input"
PANEL_THRESHOLDS = "Thresholds"
PANEL_PARSING = "Parsing"
PANEL_OUTPUT = "Output & Execution"


@app.command("run")
def run_coverage(
    sheet: Annotated[
        Path,
        typer.Argument(
            help="CSV with columns label, alignments, assembly, transcripts[, total_transcripts].",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
            resolve_path=True,
        ),
    ],
    outdir: Annotated[
        Path,
        typer.Option(
            "--outdir",
            "-o",
            help="Directory for tables and plots.",
            file_okay=False,
            rich_help_panel=PANEL_OUTPUT,
        ),
    ] = Path("genecov_results"),
    config: Annotated[
        Optional[Path],
        typer.Option(
            "--config",
            help="YAML file with analysis settings. Command-line options take precedence.",
            exists=True,
            dir_okay=False,
            readable=True,
            rich_help_panel=PANEL_INPUT,
        ),
    ] = None,
    match_thresholds: Annotated[
        Optional[list[float]],
        typer.Option(
            "--match-threshold",
            "-t",
            help="Match-quality threshold in (0, 1]. Repeat for several.",
            rich_help_panel=PANEL_THRESHOLDS,
        ),
    ] = None,
    coverage_cutoffs: Annotated[
        Optional[list[float]],
        typer.Option(
            "--cutoff",
            "-c",
            help="Coverage-fraction cutoff in [0, 1]. Repeat in ascending order.",
            rich_help_panel=PANEL_THRESHOLDS,
        ),
    ] = None,
    multiplicity_threshold: Annotated[
        Optional[float],
        typer.Option(
            "--multiplicity-threshold",
            help="Match threshold used when counting contigs per transcript.",
            rich_help_panel=PANEL_THRESHOLDS,
        ),
    ] = None,
    include_repeat_matches: Annotated[
        Optional[bool],
        typer.Option(
            "--repeat-matches/--no-repeat-matches",
            help="Count repeat matches toward the match fraction.",
            rich_help_panel=PANEL_THRESHOLDS,
        ),
    ] = None,
    strict_metadata: Annotated[
        Optional[bool],
        typer.Option(
            "--strict-metadata/--lenient-metadata",
            help="Reject alignments naming sequences absent from the length metadata.",
            rich_help_panel=PANEL_PARSING,
        ),
    ] = None,
    use_record_lengths: Annotated[
        Optional[bool],
        typer.Option(
            "--use-record-lengths/--metadata-lengths-only",
            help="Fall back to the alignment's own length columns for names without metadata.",
            rich_help_panel=PANEL_PARSING,
        ),
    ] = None,
    alignment_format: Annotated[
        Optional[str],
        typer.Option(
            "--format",
            "-f",
            help=f"Alignment file layout: {', '.join(available_formats())}.",
            rich_help_panel=PANEL_PARSING,
        ),
    ] = None,
    workers: Annotated[
        Optional[int],
        typer.Option(
            "--workers",
            "-w",
            min=1,
            help="Number of datasets analyzed concurrently.",
            rich_help_panel=PANEL_OUTPUT,
        ),
    ] = None,
    no_plots: Annotated[
        bool,
        typer.Option(
            "--no-plots",
            help="Skip rendering PDF plots.",
            rich_help_panel=PANEL_OUTPUT,
        ),
    ] = False,
    verbose: Annotated[
        int,
        typer.Option("--verbose", "-v", count=True, help="Increase log verbosity."),
    ] = 0,
    quiet: Annotated[
        int,
        typer.Option("--quiet", "-q", count=True, help="Decrease log verbosity."),
    ] = 0,
) -> None:
    """
    [bold green]Run[/bold green] the coverage analysis for every dataset in SHEET.
    """
    configure_logging(3 + verbose - quiet)

    try:
        settings = load_config(
            config,
            match_thresholds=match_thresholds or None,
            coverage_cutoffs=coverage_cutoffs or None,
            multiplicity_threshold=multiplicity_threshold,
            include_repeat_matches=include_repeat_matches,
            strict_metadata=strict_metadata,
            use_record_lengths=use_record_lengths,
            alignment_format=alignment_format,
            workers=workers,
        )
    except (ValidationError, ValueError) as e:
        error(f"Invalid configuration: {e}", exit_code=USAGE_EXIT_CODE)

    try:
        specs = read_dataset_sheet(sheet)
    except (FileFormatError, OSError) as e:
        error(str(e), exit_code=USAGE_EXIT_CODE)
    info(f"Loaded {len(specs)} dataset(s) from {sheet.name}")

    report = run_analysis(specs, settings)
    console.print(render_run_report(report))

    write_report_tables(report, outdir)
    if not no_plots:
        save_plots(report, outdir)

    for result in report.failed:
        warning(f"Dataset '{result.label}' failed: {result.error}")

    if report.exit_code:
        error(
            f"{len(report.failed)} of {len(report.results)} dataset(s) failed; "
            f"outputs for the rest are in {outdir}",
            exit_code=report.exit_code,
        )
    success(f"Analyzed {len(report.results)} dataset(s); outputs written to {outdir}")
