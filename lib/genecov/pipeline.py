"""
Per-dataset analysis pipeline and the worker pool that runs it.

Each dataset goes through

    sequence metadata -> alignment parsing -> AlignmentPairs
        -> coverage summary (every match threshold)
        -> subject multiplicity (the multiplicity threshold)

Datasets share nothing mutable, so they are fanned out over a bounded
process pool and merged only after each pipeline finishes. A dataset that
fails is reported in its DatasetResult and never stops its siblings.
"""

from __future__ import annotations

import zlib
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path

import polars as pl
from loguru import logger

from .config import AnalysisConfig
from .errors import FileFormatError, GeneCovError, ParseIssue
from .multiplicity import MULTIPLICITY_SCHEMA, count_subjects_by_coverage, multiplicity_frame
from .pairs import AlignmentPairs
from .parser import parse_alignments
from .seqinfo import SequenceInfoTable, load_sequence_info
from .sheet import DatasetSpec
from .summarize import (
    COVERAGE_TABLE_SCHEMA,
    SUMMARY_SCHEMA,
    TRANSCRIPT_FRAME_SCHEMA,
    coverage_table,
    summarize_thresholds,
    summary_frame,
    transcript_frame,
)

ISSUES_SCHEMA = {
    "dataset": pl.Utf8,
    "kind": pl.Utf8,
    "line_number": pl.Int64,
    "message": pl.Utf8,
}


@dataclass
class DatasetResult:
    """Tables and diagnostics produced for one dataset."""

    label: str
    summary: pl.DataFrame | None = None
    multiplicity: pl.DataFrame | None = None
    coverage: pl.DataFrame | None = None
    transcripts: pl.DataFrame | None = None
    record_count: int = 0
    transcript_count: int = 0
    issues: list[ParseIssue] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _load_metadata(path: Path | None, role: str, issues: list[ParseIssue]) -> SequenceInfoTable:
    """Load a metadata table, degrading to an empty one if the format is unrecognized."""
    try:
        return load_sequence_info(path, role=role)
    except FileFormatError as e:
        logger.warning(f"Ignoring {role} metadata: {e}")
        issues.append(ParseIssue.from_error(e))
        return SequenceInfoTable(role=role)


def analyze_dataset(spec: DatasetSpec, config: AnalysisConfig) -> DatasetResult:
    """
    Run the full coverage pipeline for one dataset.

    Dataset-level failures (unreadable or truncated alignment file, inconsistent totals)
    are captured in the returned result instead of raised.
    """
    issues: list[ParseIssue] = []
    logger.info(f"[{spec.label}] Starting analysis of {spec.alignments}")

    try:
        subject_info = _load_metadata(spec.assembly, "subject", issues)
        query_info = _load_metadata(spec.transcripts, "query", issues)

        parsed = parse_alignments(
            spec.alignments,
            subject_info,
            query_info,
            fmt=config.alignment_format,
            strict=config.strict_metadata,
            use_record_lengths=config.use_record_lengths,
        )
        issues.extend(parsed.issues)
        pairs = AlignmentPairs(parsed.records, label=spec.label)

        summary_rows = summarize_thresholds(
            pairs,
            config.match_thresholds,
            config.coverage_cutoffs,
            total_transcripts=spec.total_transcripts,
            include_repeat_matches=config.include_repeat_matches,
        )
        multiplicity_rows = count_subjects_by_coverage(
            pairs,
            config.multiplicity_threshold,
            config.coverage_cutoffs,
            include_repeat_matches=config.include_repeat_matches,
        )
        result = DatasetResult(
            label=spec.label,
            summary=summary_frame(summary_rows),
            multiplicity=multiplicity_frame(multiplicity_rows),
            coverage=coverage_table(
                pairs,
                config.match_thresholds,
                config.coverage_cutoffs,
                include_repeat_matches=config.include_repeat_matches,
            ),
            transcripts=transcript_frame(
                pairs,
                config.match_thresholds,
                include_repeat_matches=config.include_repeat_matches,
            ),
            record_count=len(pairs),
            transcript_count=len(pairs.query_names()),
            issues=issues,
        )
    except (OSError, EOFError, zlib.error, UnicodeDecodeError, GeneCovError) as e:
        logger.error(f"[{spec.label}] Analysis failed: {e}")
        return DatasetResult(label=spec.label, issues=issues, error=f"{type(e).__name__}: {e}")

    logger.success(
        f"[{spec.label}] Summarized {result.transcript_count} transcript(s) "
        f"from {result.record_count} alignment(s)"
    )
    return result


@dataclass
class RunReport:
    """Results for every dataset in a run, in sheet order."""

    results: list[DatasetResult]

    @property
    def succeeded(self) -> list[DatasetResult]:
        return [r for r in self.results if r.ok]

    @property
    def failed(self) -> list[DatasetResult]:
        return [r for r in self.results if not r.ok]

    @property
    def exit_code(self) -> int:
        return 1 if self.failed else 0

    def _stack(self, attribute: str, schema: dict) -> pl.DataFrame:
        frames = [
            getattr(r, attribute).select(pl.lit(r.label).alias("dataset"), pl.all())
            for r in self.succeeded
        ]
        if not frames:
            return pl.DataFrame(schema={"dataset": pl.Utf8, **schema})
        return pl.concat(frames, how="vertical")

    def summary_frame(self) -> pl.DataFrame:
        return self._stack("summary", SUMMARY_SCHEMA)

    def multiplicity_frame(self) -> pl.DataFrame:
        return self._stack("multiplicity", MULTIPLICITY_SCHEMA)

    def coverage_frame(self) -> pl.DataFrame:
        return self._stack("coverage", COVERAGE_TABLE_SCHEMA)

    def transcript_frame(self) -> pl.DataFrame:
        return self._stack("transcripts", TRANSCRIPT_FRAME_SCHEMA)

    def issues_frame(self) -> pl.DataFrame:
        """Warnings for every dataset plus one `error` row per failed dataset."""
        rows = [
            {
                "dataset": r.label,
                "kind": issue.kind,
                "line_number": issue.line_number,
                "message": issue.message,
            }
            for r in self.results
            for issue in r.issues
        ]
        rows.extend(
            {"dataset": r.label, "kind": "error", "line_number": None, "message": r.error}
            for r in self.failed
        )
        return pl.DataFrame(rows, schema=ISSUES_SCHEMA)


def run_analysis(specs: list[DatasetSpec], config: AnalysisConfig) -> RunReport:
    """
    Analyze every dataset, at most `config.workers` at a time.

    Args:
        specs: Datasets with unique labels
        config: Shared analysis parameters

    Returns:
        RunReport with one DatasetResult per spec, in input order
    """
    labels = [spec.label for spec in specs]
    duplicates = sorted({label for label in labels if labels.count(label) > 1})
    if duplicates:
        msg = f"Dataset labels must be unique, repeated: {duplicates}"
        raise ValueError(msg)

    workers = min(config.workers, len(specs))
    if workers <= 1:
        return RunReport(results=[analyze_dataset(spec, config) for spec in specs])

    logger.info(f"Analyzing {len(specs)} datasets with {workers} workers")
    results: list[DatasetResult | None] = [None] * len(specs)
    with ProcessPoolExecutor(max_workers=workers) as executor:
        future_to_index = {
            executor.submit(analyze_dataset, spec, config): i for i, spec in enumerate(specs)
        }
        for future in as_completed(future_to_index):
            index = future_to_index[future]
            try:
                results[index] = future.result()
            except Exception as e:  # noqa: BLE001
                label = specs[index].label
                logger.error(f"[{label}] Worker failed: {e!r}")
                results[index] = DatasetResult(label=label, error=f"{type(e).__name__}: {e}")

    return RunReport(results=[r for r in results if r is not None])
