"""
Plots comparing assemblies, rendered with plotnine.

    coverage curves     fraction of transcripts covered at each cutoff, one
                        line per dataset, one panel per match threshold
    multiplicity bars   transcripts per number of contigs, one panel per cutoff
"""

from __future__ import annotations

from pathlib import Path

import polars as pl
from loguru import logger
from plotnine import (
    aes,
    facet_wrap,
    geom_col,
    geom_line,
    geom_point,
    ggplot,
    ggsave,
    labs,
    theme_minimal,
)

from .pipeline import RunReport

COVERAGE_PLOT_FILE = "coverage_curves.pdf"
MULTIPLICITY_PLOT_FILE = "subject_multiplicity.pdf"


def plot_coverage_curves(summary: pl.DataFrame) -> ggplot:
    """
    Line plot of covered transcript fraction against coverage cutoff.

    Args:
        summary: Concatenated coverage summary with a `dataset` column

    Returns:
        ggplot faceted by match threshold
    """
    return (
        ggplot(
            summary.to_pandas(),
            aes(x="coverage_cutoff", y="covered_fraction", color="dataset"),
        )
        + geom_line()
        + geom_point()
        + facet_wrap("~match_threshold", labeller="label_both")
        + labs(
            title="Gene-body coverage",
            x="Minimum fraction of transcript covered",
            y="Fraction of transcripts",
            color="Dataset",
        )
        + theme_minimal()
    )


def plot_subject_multiplicity(multiplicity: pl.DataFrame) -> ggplot:
    """
    Bar chart of how many contigs covered transcripts are split across.

    Args:
        multiplicity: Concatenated multiplicity table with a `dataset` column

    Returns:
        ggplot faceted by coverage cutoff
    """
    return (
        ggplot(
            multiplicity.to_pandas(),
            aes(x="subject_count", y="frequency", fill="dataset"),
        )
        + geom_col(position="dodge")
        + facet_wrap("~coverage_cutoff", labeller="label_both")
        + labs(
            title="Contigs per covered transcript",
            x="Distinct contigs",
            y="Transcripts",
            fill="Dataset",
        )
        + theme_minimal()
    )


def save_plots(report: RunReport, outdir: Path) -> list[Path]:
    """Render both plots to PDF; plots without data are skipped."""
    outdir = Path(outdir)
    outdir.mkdir(parents=True, exist_ok=True)

    written = []
    summary = report.summary_frame()
    if summary.height > 0:
        path = outdir / COVERAGE_PLOT_FILE
        ggsave(plot_coverage_curves(summary), path, format="pdf", height=6, width=11, verbose=False)
        written.append(path)

    multiplicity = report.multiplicity_frame()
    if multiplicity.height > 0:
        path = outdir / MULTIPLICITY_PLOT_FILE
        ggsave(
            plot_subject_multiplicity(multiplicity),
            path,
            format="pdf",
            height=6,
            width=11,
            verbose=False,
        )
        written.append(path)
    else:
        logger.warning("No covered transcripts; skipping the multiplicity plot")

    return written
