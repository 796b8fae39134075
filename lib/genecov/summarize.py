"""
Gene-body coverage summaries.

For a match-quality threshold, every transcript's coverage is the union of
the query blocks of its qualifying alignments divided by the transcript
length. Using the union lets a transcript split across several contigs count
as jointly reconstructed without double-counting overlaps.

Transcripts that appear in the alignments but have no qualifying record stay
in the denominator and are never counted at any cutoff. Transcripts with an
unknown length have NaN coverage and are likewise never counted.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

import polars as pl
from pydantic import BaseModel, ConfigDict, Field

from .errors import InconsistentTotalError
from .pairs import AlignmentPairs
from .records import union_length

SUMMARY_SCHEMA = {
    "match_threshold": pl.Float64,
    "coverage_cutoff": pl.Float64,
    "covered_transcripts": pl.Int64,
    "total_transcripts": pl.Int64,
    "covered_fraction": pl.Float64,
}

COVERAGE_TABLE_SCHEMA = {
    "transcript": pl.Utf8,
    "match_threshold": pl.Float64,
    "coverage_cutoff": pl.Float64,
    "covered": pl.Boolean,
}

TRANSCRIPT_FRAME_SCHEMA = {
    "transcript": pl.Utf8,
    "match_threshold": pl.Float64,
    "transcript_length": pl.Int64,
    "covered_bases": pl.Int64,
    "coverage": pl.Float64,
    "subject_count": pl.Int64,
    "has_alignment": pl.Boolean,
}


class CoverageSummaryRow(BaseModel):
    """Transcripts meeting one coverage cutoff at one match threshold."""

    model_config = ConfigDict(frozen=True)

    match_threshold: float = Field(gt=0, le=1)
    coverage_cutoff: float = Field(ge=0, le=1)
    covered_transcripts: int = Field(ge=0, description="Transcripts with coverage >= cutoff")
    total_transcripts: int = Field(ge=0, description="Transcripts in the denominator")
    covered_fraction: float = Field(ge=0, le=1)


@dataclass(frozen=True, slots=True)
class TranscriptCoverage:
    """Coverage of one transcript by its qualifying alignments."""

    name: str
    length: int | None
    covered_bases: int
    coverage: float
    subjects: frozenset[str]
    has_alignment: bool

    def meets(self, cutoff: float) -> bool:
        """Whether the transcript counts toward `cutoff`; NaN coverage never does."""
        return self.has_alignment and self.coverage >= cutoff


def validate_match_threshold(threshold: float) -> None:
    if not 0 < threshold <= 1:
        msg = f"Match threshold must be in (0, 1], got {threshold}"
        raise ValueError(msg)


def validate_cutoffs(cutoffs: Sequence[float]) -> None:
    """Cutoffs must be a non-empty, strictly ascending sequence within [0, 1]."""
    if not cutoffs:
        msg = "At least one coverage cutoff is required"
        raise ValueError(msg)
    for cutoff in cutoffs:
        if not 0 <= cutoff <= 1:
            msg = f"Coverage cutoffs must be in [0, 1], got {cutoff}"
            raise ValueError(msg)
    for lower, upper in zip(cutoffs, cutoffs[1:]):
        if upper <= lower:
            msg = f"Coverage cutoffs must be strictly ascending: {list(cutoffs)}"
            raise ValueError(msg)


def transcript_coverage(
    pairs: AlignmentPairs,
    match_threshold: float,
    *,
    include_repeat_matches: bool = False,
) -> dict[str, TranscriptCoverage]:
    """
    Compute coverage for every transcript present in the collection.

    Args:
        pairs: All alignment records for one dataset
        match_threshold: Minimum match fraction for a record to qualify
        include_repeat_matches: Count repeat matches as matches

    Returns:
        Mapping of transcript name to its coverage, in first-seen order
    """
    validate_match_threshold(match_threshold)
    surviving = pairs.filter_by_match_fraction(
        match_threshold, include_repeat_matches=include_repeat_matches
    ).group_by_query()

    coverages: dict[str, TranscriptCoverage] = {}
    for name, length in pairs.query_lengths().items():
        records = surviving.get(name, [])
        covered = union_length([block for r in records for block in r.query_blocks])
        if length:
            coverage = covered / length
        else:
            coverage = math.nan
        coverages[name] = TranscriptCoverage(
            name=name,
            length=length,
            covered_bases=covered,
            coverage=coverage,
            subjects=frozenset(r.subject_name for r in records),
            has_alignment=bool(records),
        )
    return coverages


def _resolve_total(observed: int, total_transcripts: int | None) -> int:
    if total_transcripts is None:
        return observed
    if total_transcripts < observed:
        raise InconsistentTotalError(observed=observed, supplied=total_transcripts)
    return total_transcripts


def summarize(
    pairs: AlignmentPairs,
    match_threshold: float,
    coverage_cutoffs: Sequence[float],
    *,
    total_transcripts: int | None = None,
    include_repeat_matches: bool = False,
) -> list[CoverageSummaryRow]:
    """
    Count transcripts meeting each coverage cutoff at one match threshold.

    Args:
        pairs: All alignment records for one dataset
        match_threshold: Minimum match fraction for a record to qualify
        coverage_cutoffs: Strictly ascending cutoffs in [0, 1]
        total_transcripts: Authoritative transcript universe size, used as the
            denominator instead of the number of transcripts observed
        include_repeat_matches: Count repeat matches as matches

    Returns:
        One CoverageSummaryRow per cutoff, in cutoff order

    Raises:
        InconsistentTotalError: If `total_transcripts` is below the observed count
    """
    validate_cutoffs(coverage_cutoffs)
    coverages = transcript_coverage(
        pairs, match_threshold, include_repeat_matches=include_repeat_matches
    )
    total = _resolve_total(len(coverages), total_transcripts)

    counts = [
        sum(1 for tc in coverages.values() if tc.meets(cutoff)) for cutoff in coverage_cutoffs
    ]
    assert all(a >= b for a, b in zip(counts, counts[1:])), (
        f"Covered transcript counts must not increase with the cutoff: {counts}"
    )

    return [
        CoverageSummaryRow(
            match_threshold=match_threshold,
            coverage_cutoff=cutoff,
            covered_transcripts=count,
            total_transcripts=total,
            covered_fraction=count / total if total else 0.0,
        )
        for cutoff, count in zip(coverage_cutoffs, counts)
    ]


def summarize_thresholds(
    pairs: AlignmentPairs,
    match_thresholds: Sequence[float],
    coverage_cutoffs: Sequence[float],
    *,
    total_transcripts: int | None = None,
    include_repeat_matches: bool = False,
) -> list[CoverageSummaryRow]:
    """Run `summarize` for each match threshold and concatenate the rows."""
    rows: list[CoverageSummaryRow] = []
    for threshold in match_thresholds:
        rows.extend(
            summarize(
                pairs,
                threshold,
                coverage_cutoffs,
                total_transcripts=total_transcripts,
                include_repeat_matches=include_repeat_matches,
            )
        )
    return rows


def summary_frame(rows: Sequence[CoverageSummaryRow]) -> pl.DataFrame:
    return pl.DataFrame([row.model_dump() for row in rows], schema=SUMMARY_SCHEMA)


def coverage_table(
    pairs: AlignmentPairs,
    match_thresholds: Sequence[float],
    coverage_cutoffs: Sequence[float],
    *,
    include_repeat_matches: bool = False,
) -> pl.DataFrame:
    """
    Per-transcript coverage calls for every threshold and cutoff combination.

    Returns:
        DataFrame with columns: transcript, match_threshold, coverage_cutoff, covered
    """
    validate_cutoffs(coverage_cutoffs)
    rows = []
    for threshold in match_thresholds:
        coverages = transcript_coverage(
            pairs, threshold, include_repeat_matches=include_repeat_matches
        )
        for tc in coverages.values():
            rows.extend(
                {
                    "transcript": tc.name,
                    "match_threshold": threshold,
                    "coverage_cutoff": cutoff,
                    "covered": tc.meets(cutoff),
                }
                for cutoff in coverage_cutoffs
            )
    return pl.DataFrame(rows, schema=COVERAGE_TABLE_SCHEMA)


def transcript_frame(
    pairs: AlignmentPairs,
    match_thresholds: Sequence[float],
    *,
    include_repeat_matches: bool = False,
) -> pl.DataFrame:
    """Per-transcript coverage values for each match threshold."""
    rows = []
    for threshold in match_thresholds:
        coverages = transcript_coverage(
            pairs, threshold, include_repeat_matches=include_repeat_matches
        )
        rows.extend(
            {
                "transcript": tc.name,
                "match_threshold": threshold,
                "transcript_length": tc.length,
                "covered_bases": tc.covered_bases,
                "coverage": tc.coverage,
                "subject_count": len(tc.subjects),
                "has_alignment": tc.has_alignment,
            }
            for tc in coverages.values()
        )
    return pl.DataFrame(rows, schema=TRANSCRIPT_FRAME_SCHEMA)
