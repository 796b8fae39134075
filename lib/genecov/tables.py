"""
TSV output for a finished run.

Files written to the output directory:
    coverage_summary.tsv          CoverageSummary rows for every dataset
    subject_multiplicity.tsv      SubjectMultiplicity rows for every dataset
    transcript_coverage.tsv       per-transcript covered calls for every dataset
    <label>.transcript_values.tsv per-transcript coverage values for one dataset
    run_issues.tsv                warnings and errors for every dataset
"""

from __future__ import annotations

from pathlib import Path

from loguru import logger

from .pipeline import RunReport

SUMMARY_FILE = "coverage_summary.tsv"
MULTIPLICITY_FILE = "subject_multiplicity.tsv"
COVERAGE_FILE = "transcript_coverage.tsv"
ISSUES_FILE = "run_issues.tsv"
TRANSCRIPT_VALUES_SUFFIX = ".transcript_values.tsv"


def write_report_tables(report: RunReport, outdir: Path) -> list[Path]:
    """
    Write all run tables as tab-separated files.

    Args:
        report: Completed run
        outdir: Destination directory, created if needed

    Returns:
        Paths of the files written
    """
    outdir = Path(outdir)
    outdir.mkdir(parents=True, exist_ok=True)

    outputs = {
        SUMMARY_FILE: report.summary_frame(),
        MULTIPLICITY_FILE: report.multiplicity_frame(),
        COVERAGE_FILE: report.coverage_frame(),
        ISSUES_FILE: report.issues_frame(),
    }
    for result in report.succeeded:
        outputs[f"{result.label}{TRANSCRIPT_VALUES_SUFFIX}"] = result.transcripts

    written = []
    for filename, frame in outputs.items():
        path = outdir / filename
        frame.write_csv(path, separator="\t")
        logger.info(f"Wrote {frame.height} row(s) to {path}")
        written.append(path)
    return written
