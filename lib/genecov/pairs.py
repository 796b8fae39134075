"""
Per-dataset alignment collections.

AlignmentPairs wraps the records parsed for one dataset and provides the
derived quantities the coverage summaries are built from. AlignmentPairsList
keeps several datasets keyed by label, in insertion order, so that combined
tables and plots come out in a reproducible order.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Iterator, Mapping

import polars as pl

from .records import AlignmentRecord, union_length

RECORD_FRAME_SCHEMA = {
    "query_name": pl.Utf8,
    "query_length": pl.Int64,
    "query_start": pl.Int64,
    "query_end": pl.Int64,
    "subject_name": pl.Utf8,
    "subject_length": pl.Int64,
    "subject_start": pl.Int64,
    "subject_end": pl.Int64,
    "strand": pl.Utf8,
    "matches": pl.Int64,
    "mismatches": pl.Int64,
    "repeat_matches": pl.Int64,
    "block_count": pl.Int64,
    "aligned_bases": pl.Int64,
    "covered_bases": pl.Int64,
    "match_fraction": pl.Float64,
    "query_coverage": pl.Float64,
}


def covered_bases(record: AlignmentRecord) -> int:
    """
    Query positions covered by a record's blocks.

    Overlapping blocks are merged first, so repeated positions count once.
    """
    return union_length(record.query_blocks)


def match_fraction(record: AlignmentRecord, *, include_repeat_matches: bool = False) -> float:
    """
    Fraction of covered query bases that are matches.

    Repeat matches join the numerator only when `include_repeat_matches` is set.
    Returns NaN for a record without covered bases.
    """
    covered = covered_bases(record)
    if covered == 0:
        return math.nan
    numerator = record.matches
    if include_repeat_matches:
        numerator += record.repeat_matches
    return numerator / covered


def query_coverage(record: AlignmentRecord) -> float:
    """Fraction of the transcript covered by one record; NaN if its length is unknown."""
    if not record.query_length:
        return math.nan
    return covered_bases(record) / record.query_length


class AlignmentPairs:
    """Ordered, read-only collection of the alignment records for one dataset."""

    def __init__(self, records: Iterable[AlignmentRecord], label: str = "dataset") -> None:
        self.label = label
        self._records: tuple[AlignmentRecord, ...] = tuple(records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[AlignmentRecord]:
        return iter(self._records)

    def __repr__(self) -> str:
        return f"AlignmentPairs(label={self.label!r}, records={len(self)})"

    @property
    def records(self) -> tuple[AlignmentRecord, ...]:
        return self._records

    def covered_bases(self, record: AlignmentRecord) -> int:
        return covered_bases(record)

    def match_fraction(
        self, record: AlignmentRecord, *, include_repeat_matches: bool = False
    ) -> float:
        return match_fraction(record, include_repeat_matches=include_repeat_matches)

    def query_coverage(self, record: AlignmentRecord) -> float:
        return query_coverage(record)

    def group_by_query(self) -> dict[str, list[AlignmentRecord]]:
        """
        Group records by transcript name.

        Returns:
            Mapping of query name to its records, both in first-seen order
        """
        groups: dict[str, list[AlignmentRecord]] = {}
        for record in self._records:
            groups.setdefault(record.query_name, []).append(record)
        return groups

    def query_names(self) -> list[str]:
        """Distinct transcript names in first-seen order."""
        return list(dict.fromkeys(record.query_name for record in self._records))

    def query_lengths(self) -> dict[str, int | None]:
        """Length of every transcript, taken from its first record."""
        lengths: dict[str, int | None] = {}
        for record in self._records:
            lengths.setdefault(record.query_name, record.query_length)
        return lengths

    def subjects_for(self, query_name: str) -> set[str]:
        """Distinct contigs a transcript aligns to."""
        return {r.subject_name for r in self._records if r.query_name == query_name}

    def filter_by_match_fraction(
        self, threshold: float, *, include_repeat_matches: bool = False
    ) -> AlignmentPairs:
        """
        Keep records whose match fraction is at least `threshold`.

        Records with no covered bases have an undefined match fraction and are
        always dropped.
        """
        kept = [
            record
            for record in self._records
            if match_fraction(record, include_repeat_matches=include_repeat_matches)
            >= threshold
        ]
        return AlignmentPairs(kept, label=self.label)

    def to_frame(self, *, include_repeat_matches: bool = False) -> pl.DataFrame:
        """One row per record with derived coverage and identity columns."""
        rows = [
            {
                "query_name": r.query_name,
                "query_length": r.query_length,
                "query_start": r.query_start,
                "query_end": r.query_end,
                "subject_name": r.subject_name,
                "subject_length": r.subject_length,
                "subject_start": r.subject_start,
                "subject_end": r.subject_end,
                "strand": r.strand.value,
                "matches": r.matches,
                "mismatches": r.mismatches,
                "repeat_matches": r.repeat_matches,
                "block_count": r.block_count,
                "aligned_bases": r.aligned_bases,
                "covered_bases": covered_bases(r),
                "match_fraction": match_fraction(
                    r, include_repeat_matches=include_repeat_matches
                ),
                "query_coverage": query_coverage(r),
            }
            for r in self._records
        ]
        return pl.DataFrame(rows, schema=RECORD_FRAME_SCHEMA)


class AlignmentPairsList(Mapping[str, AlignmentPairs]):
    """Datasets keyed by label, kept in insertion order."""

    def __init__(self, datasets: Iterable[AlignmentPairs] = ()) -> None:
        self._datasets: dict[str, AlignmentPairs] = {}
        for pairs in datasets:
            self.add(pairs)

    def add(self, pairs: AlignmentPairs) -> None:
        if pairs.label in self._datasets:
            msg = f"Duplicate dataset label: {pairs.label}"
            raise ValueError(msg)
        self._datasets[pairs.label] = pairs

    def __getitem__(self, label: str) -> AlignmentPairs:
        return self._datasets[label]

    def __iter__(self) -> Iterator[str]:
        return iter(self._datasets)

    def __len__(self) -> int:
        return len(self._datasets)

    def concat_frames(self, *, include_repeat_matches: bool = False) -> pl.DataFrame:
        """Stack every dataset's record frame with a leading `dataset` column."""
        frames = [
            pairs.to_frame(include_repeat_matches=include_repeat_matches).select(
                pl.lit(label).alias("dataset"), pl.all()
            )
            for label, pairs in self._datasets.items()
        ]
        if not frames:
            return pl.DataFrame(schema={"dataset": pl.Utf8, **RECORD_FRAME_SCHEMA})
        return pl.concat(frames, how="vertical")
