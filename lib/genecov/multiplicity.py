"""
Subject multiplicity: how many contigs a covered transcript is spread across.

At each coverage cutoff, the transcripts meeting the cutoff are binned by the
number of distinct contigs among their qualifying alignments. A contiguous
assembly concentrates this histogram at one contig per transcript.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence

import polars as pl
from pydantic import BaseModel, ConfigDict, Field

from .pairs import AlignmentPairs
from .summarize import transcript_coverage, validate_cutoffs

MULTIPLICITY_SCHEMA = {
    "coverage_cutoff": pl.Float64,
    "subject_count": pl.Int64,
    "frequency": pl.Int64,
}


class SubjectMultiplicityRow(BaseModel):
    """Number of transcripts at one cutoff that align to `subject_count` contigs."""

    model_config = ConfigDict(frozen=True)

    coverage_cutoff: float = Field(ge=0, le=1)
    subject_count: int = Field(ge=1, description="Distinct contigs per transcript")
    frequency: int = Field(ge=1, description="Transcripts with this many contigs")


def count_subjects_by_coverage(
    pairs: AlignmentPairs,
    match_threshold: float,
    coverage_cutoffs: Sequence[float],
    *,
    include_repeat_matches: bool = False,
) -> list[SubjectMultiplicityRow]:
    """
    Tabulate contig multiplicity of covered transcripts at each cutoff.

    Args:
        pairs: All alignment records for one dataset
        match_threshold: Minimum match fraction for a record to qualify
        coverage_cutoffs: Strictly ascending cutoffs in [0, 1]
        include_repeat_matches: Count repeat matches as matches

    Returns:
        Rows ordered by cutoff, then by subject count
    """
    validate_cutoffs(coverage_cutoffs)
    coverages = transcript_coverage(
        pairs, match_threshold, include_repeat_matches=include_repeat_matches
    )

    rows = []
    for cutoff in coverage_cutoffs:
        histogram = Counter(len(tc.subjects) for tc in coverages.values() if tc.meets(cutoff))
        rows.extend(
            SubjectMultiplicityRow(
                coverage_cutoff=cutoff,
                subject_count=subject_count,
                frequency=frequency,
            )
            for subject_count, frequency in sorted(histogram.items())
        )
    return rows


def multiplicity_frame(rows: Sequence[SubjectMultiplicityRow]) -> pl.DataFrame:
    return pl.DataFrame([row.model_dump() for row in rows], schema=MULTIPLICITY_SCHEMA)
