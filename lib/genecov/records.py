"""
Alignment record data model.

An AlignmentRecord is one row of a pairwise alignment between a transcript
(query) and an assembly contig (subject). All coordinates held here are
forward-strand, 0-based and half-open; the original orientation is kept in
`strand`. Lengths come from the sequence metadata tables and are None when a
name has no metadata.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Strand(str, Enum):
    """Relative orientation of query and subject in an alignment."""

    FORWARD = "forward"
    REVERSE = "reverse"


@dataclass(frozen=True, slots=True)
class AlignmentRecord:
    """A single transcript-versus-contig alignment with normalized coordinates."""

    query_name: str
    query_length: int | None
    query_start: int
    query_end: int
    subject_name: str
    subject_length: int | None
    subject_start: int
    subject_end: int
    strand: Strand
    matches: int
    mismatches: int
    repeat_matches: int
    query_gap_count: int
    query_gap_bases: int
    subject_gap_count: int
    subject_gap_bases: int
    block_sizes: tuple[int, ...]
    query_block_starts: tuple[int, ...]
    subject_block_starts: tuple[int, ...]

    def __post_init__(self) -> None:
        """Validate record invariants on construction."""
        assert self.query_name, "query_name cannot be empty"
        assert self.subject_name, "subject_name cannot be empty"
        assert self.query_end > self.query_start >= 0, (
            f"Invalid query interval [{self.query_start}, {self.query_end})"
        )
        assert self.subject_end > self.subject_start >= 0, (
            f"Invalid subject interval [{self.subject_start}, {self.subject_end})"
        )
        assert len(self.block_sizes) == len(self.query_block_starts) == len(
            self.subject_block_starts
        ), "Block size and start lists must have equal length"
        assert min(
            self.matches,
            self.mismatches,
            self.repeat_matches,
            self.query_gap_count,
            self.query_gap_bases,
            self.subject_gap_count,
            self.subject_gap_bases,
        ) >= 0, "Alignment counters must be non-negative"

    @property
    def block_count(self) -> int:
        return len(self.block_sizes)

    @property
    def aligned_bases(self) -> int:
        """Sum of block sizes, without merging overlaps."""
        return sum(self.block_sizes)

    @property
    def query_blocks(self) -> list[tuple[int, int]]:
        """Aligned blocks as half-open query intervals."""
        return [
            (start, start + size)
            for start, size in zip(self.query_block_starts, self.block_sizes)
        ]

    @property
    def subject_blocks(self) -> list[tuple[int, int]]:
        """Aligned blocks as half-open subject intervals."""
        return [
            (start, start + size)
            for start, size in zip(self.subject_block_starts, self.block_sizes)
        ]


def merge_intervals(intervals: list[tuple[int, int]]) -> list[tuple[int, int]]:
    """
    Merge overlapping or abutting half-open intervals.

    Args:
        intervals: (start, end) pairs in any order

    Returns:
        Sorted, disjoint intervals covering the same positions
    """
    merged: list[tuple[int, int]] = []
    for start, end in sorted(intervals):
        if end <= start:
            continue
        if merged and start <= merged[-1][1]:
            last_start, last_end = merged[-1]
            merged[-1] = (last_start, max(last_end, end))
        else:
            merged.append((start, end))
    return merged


def union_length(intervals: list[tuple[int, int]]) -> int:
    """Number of positions covered by the union of half-open intervals."""
    return sum(end - start for start, end in merge_intervals(intervals))
