"""
Streaming alignment record parser.

Reads one alignment file in any registered layout and yields AlignmentRecord
objects with forward-strand, 0-based, half-open coordinates. Lengths are
resolved from the sequence metadata tables by name.

Malformed lines never abort a file: each one becomes a RecordParseError that
is collected and reported while parsing continues. Names missing from a
metadata table are reported once per name as MissingMetadataError, counting
the records affected; each record is kept with an undefined length unless
strict mode is requested.

Reverse-strand blocks: when a side of the alignment is on the minus strand,
its block starts are counted from the end of that sequence. They are mapped
back to forward coordinates with

    forward_start = sequence_size - (reverse_start + block_size)
"""

from __future__ import annotations

import gzip
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO

from loguru import logger

from .errors import GeneCovError, MissingMetadataError, ParseIssue, RecordParseError
from .formats import DEFAULT_FORMAT, AlignmentFormat, get_format
from .records import AlignmentRecord, Strand
from .seqinfo import SequenceInfoTable

VALID_STRANDS = frozenset({"+", "-", "++", "+-", "-+", "--"})

COUNTER_FIELDS = (
    "matches",
    "mismatches",
    "repeat_matches",
    "query_gap_count",
    "query_gap_bases",
    "subject_gap_count",
    "subject_gap_bases",
)


@dataclass
class ParseResult:
    """Records parsed from one file plus every recoverable problem encountered."""

    records: list[AlignmentRecord] = field(default_factory=list)
    errors: list[GeneCovError] = field(default_factory=list)

    @property
    def issues(self) -> list[ParseIssue]:
        return [ParseIssue.from_error(error) for error in self.errors]

    @property
    def record_errors(self) -> list[RecordParseError]:
        return [e for e in self.errors if isinstance(e, RecordParseError)]

    @property
    def metadata_errors(self) -> list[MissingMetadataError]:
        return [e for e in self.errors if isinstance(e, MissingMetadataError)]


def _to_int(fields: dict[str, str], name: str, line_number: int) -> int:
    raw = fields[name]
    try:
        value = int(raw)
    except ValueError:
        msg = f"non-integer value for {name}: {raw!r}"
        raise RecordParseError(msg, line_number) from None
    if value < 0:
        msg = f"negative value for {name}: {value}"
        raise RecordParseError(msg, line_number)
    return value


def _to_int_list(fields: dict[str, str], name: str, line_number: int) -> list[int]:
    raw = fields[name]
    try:
        values = [int(part) for part in raw.split(",") if part.strip()]
    except ValueError:
        msg = f"non-integer entry in {name}: {raw!r}"
        raise RecordParseError(msg, line_number) from None
    if any(value < 0 for value in values):
        msg = f"negative entry in {name}: {raw!r}"
        raise RecordParseError(msg, line_number)
    return values


def normalize_block_starts(
    starts: list[int],
    sizes: list[int],
    sequence_size: int,
    *,
    reverse: bool,
) -> tuple[int, ...]:
    """
    Convert block starts to forward-strand coordinates.

    Args:
        starts: Block starts as written in the alignment file
        sizes: Block sizes, parallel to `starts`
        sequence_size: Length of the sequence the starts refer to
        reverse: Whether the starts are counted from the end of the sequence

    Returns:
        Forward-strand, 0-based block starts in the original block order
    """
    if not reverse:
        return tuple(starts)
    return tuple(sequence_size - (start + size) for start, size in zip(starts, sizes))


def _check_blocks_in_bounds(
    starts: tuple[int, ...],
    sizes: list[int],
    sequence_size: int,
    side: str,
    line_number: int,
) -> None:
    for start, size in zip(starts, sizes):
        if start < 0 or start + size > sequence_size:
            msg = (
                f"{side} block [{start}, {start + size}) lies outside "
                f"a sequence of length {sequence_size}"
            )
            raise RecordParseError(msg, line_number)


def _resolve_length(
    table: SequenceInfoTable,
    name: str,
    record_size: int,
    line_number: int,
    errors: list[GeneCovError],
    *,
    strict: bool,
    use_record_lengths: bool,
) -> int | None:
    length = table.length(name)
    if length is not None:
        if length != record_size:
            logger.debug(
                f"line {line_number}: {table.role} '{name}' length {length} "
                f"differs from alignment column ({record_size}); using metadata"
            )
        return length

    missing = MissingMetadataError(table.role, name, line_number)
    if strict:
        raise missing
    errors.append(missing)
    return record_size if use_record_lengths else None


def parse_fields(
    fields: dict[str, str],
    line_number: int,
    subject_info: SequenceInfoTable,
    query_info: SequenceInfoTable,
    errors: list[GeneCovError],
    *,
    strict: bool = False,
    use_record_lengths: bool = False,
) -> AlignmentRecord:
    """
    Build a validated AlignmentRecord from the raw fields of one line.

    Recoverable metadata problems are appended to `errors` once the record is
    accepted.

    Raises:
        RecordParseError: If the line is malformed
        MissingMetadataError: If strict and a name has no metadata
    """
    query_name = fields["query_name"]
    subject_name = fields["subject_name"]
    if not query_name or not subject_name:
        msg = "empty query or subject name"
        raise RecordParseError(msg, line_number)

    query_size = _to_int(fields, "query_size", line_number)
    query_start = _to_int(fields, "query_start", line_number)
    query_end = _to_int(fields, "query_end", line_number)
    subject_size = _to_int(fields, "subject_size", line_number)
    subject_start = _to_int(fields, "subject_start", line_number)
    subject_end = _to_int(fields, "subject_end", line_number)
    counters = {name: _to_int(fields, name, line_number) for name in COUNTER_FIELDS}

    if query_end <= query_start:
        msg = f"query end ({query_end}) must be > start ({query_start})"
        raise RecordParseError(msg, line_number)
    if subject_end <= subject_start:
        msg = f"subject end ({subject_end}) must be > start ({subject_start})"
        raise RecordParseError(msg, line_number)
    if query_end > query_size or subject_end > subject_size:
        msg = "alignment end exceeds the sequence length given in the record"
        raise RecordParseError(msg, line_number)

    strand_code = fields["strand"]
    if strand_code not in VALID_STRANDS:
        msg = f"invalid strand: {strand_code!r}"
        raise RecordParseError(msg, line_number)
    query_reverse = strand_code[0] == "-"
    subject_reverse = len(strand_code) == 2 and strand_code[1] == "-"  # noqa: PLR2004
    strand = Strand.REVERSE if query_reverse != subject_reverse else Strand.FORWARD

    block_count = _to_int(fields, "block_count", line_number)
    block_sizes = _to_int_list(fields, "block_sizes", line_number)
    raw_query_starts = _to_int_list(fields, "query_block_starts", line_number)
    raw_subject_starts = _to_int_list(fields, "subject_block_starts", line_number)
    if not block_count == len(block_sizes) == len(raw_query_starts) == len(raw_subject_starts):
        msg = (
            f"block count {block_count} does not match block lists "
            f"({len(block_sizes)} sizes, {len(raw_query_starts)} query starts, "
            f"{len(raw_subject_starts)} subject starts)"
        )
        raise RecordParseError(msg, line_number)

    query_block_starts = normalize_block_starts(
        raw_query_starts, block_sizes, query_size, reverse=query_reverse
    )
    subject_block_starts = normalize_block_starts(
        raw_subject_starts, block_sizes, subject_size, reverse=subject_reverse
    )
    _check_blocks_in_bounds(query_block_starts, block_sizes, query_size, "query", line_number)
    _check_blocks_in_bounds(
        subject_block_starts, block_sizes, subject_size, "subject", line_number
    )

    aligned = sum(block_sizes)
    if aligned > min(query_size, subject_size):
        msg = f"block sizes sum to {aligned}, more than the shorter sequence allows"
        raise RecordParseError(msg, line_number)
    scored = counters["matches"] + counters["mismatches"] + counters["repeat_matches"]
    if scored > aligned:
        msg = f"matches + mismatches + repeat matches ({scored}) exceed aligned bases ({aligned})"
        raise RecordParseError(msg, line_number)

    missing: list[GeneCovError] = []
    query_length = _resolve_length(
        query_info,
        query_name,
        query_size,
        line_number,
        missing,
        strict=strict,
        use_record_lengths=use_record_lengths,
    )
    subject_length = _resolve_length(
        subject_info,
        subject_name,
        subject_size,
        line_number,
        missing,
        strict=strict,
        use_record_lengths=use_record_lengths,
    )
    # Blocks must also fit the metadata length that coverage is measured against.
    if query_length is not None and query_length != query_size:
        _check_blocks_in_bounds(
            query_block_starts, block_sizes, query_length, "query (metadata length)", line_number
        )
    if subject_length is not None and subject_length != subject_size:
        _check_blocks_in_bounds(
            subject_block_starts,
            block_sizes,
            subject_length,
            "subject (metadata length)",
            line_number,
        )
    errors.extend(missing)

    return AlignmentRecord(
        query_name=query_name,
        query_length=query_length,
        query_start=query_start,
        query_end=query_end,
        subject_name=subject_name,
        subject_length=subject_length,
        subject_start=subject_start,
        subject_end=subject_end,
        strand=strand,
        block_sizes=tuple(block_sizes),
        query_block_starts=query_block_starts,
        subject_block_starts=subject_block_starts,
        **counters,
    )


def _open_alignments(path: Path) -> IO[str]:
    if path.suffix == ".gz":
        return gzip.open(path, "rt", encoding="utf8")
    return path.open(encoding="utf8")


def iter_alignment_records(
    path: Path,
    subject_info: SequenceInfoTable,
    query_info: SequenceInfoTable,
    errors: list[GeneCovError],
    *,
    fmt: str | AlignmentFormat = DEFAULT_FORMAT,
    strict: bool = False,
    use_record_lengths: bool = False,
) -> Iterator[AlignmentRecord]:
    """
    Stream AlignmentRecords from a file, one line at a time.

    Args:
        path: Alignment file (optionally gzip compressed)
        subject_info: Contig lengths
        query_info: Transcript lengths
        errors: Receives every RecordParseError and one MissingMetadataError
            per missing name, whose `occurrences` counts the affected records
        fmt: Registered format name or an AlignmentFormat
        strict: Reject records whose names lack metadata instead of keeping them
        use_record_lengths: Fall back to the record's own length columns for
            names missing from the metadata tables

    Raises:
        OSError: If the file cannot be opened or read
    """
    layout = get_format(fmt) if isinstance(fmt, str) else fmt
    path = Path(path)
    first_missing: dict[tuple[str, str], MissingMetadataError] = {}

    def collect(error: GeneCovError) -> None:
        if not isinstance(error, MissingMetadataError):
            errors.append(error)
            return
        key = (error.role, error.name)
        if key in first_missing:
            first_missing[key].occurrences += 1
        else:
            first_missing[key] = error
            errors.append(error)

    with _open_alignments(path) as handle:
        for line_num, line in enumerate(handle, 1):
            if not line.strip() or layout.is_header(line):
                continue
            pending: list[GeneCovError] = []
            try:
                fields = layout.split(line, line_num)
                record = parse_fields(
                    fields,
                    line_num,
                    subject_info,
                    query_info,
                    pending,
                    strict=strict,
                    use_record_lengths=use_record_lengths,
                )
            except (RecordParseError, MissingMetadataError) as e:
                logger.debug(f"{path}: skipping record: {e}")
                collect(e)
                continue
            for error in pending:
                collect(error)
            yield record


def parse_alignments(
    path: Path,
    subject_info: SequenceInfoTable,
    query_info: SequenceInfoTable,
    *,
    fmt: str | AlignmentFormat = DEFAULT_FORMAT,
    strict: bool = False,
    use_record_lengths: bool = False,
) -> ParseResult:
    """
    Parse an entire alignment file, collecting recoverable errors.

    Returns:
        ParseResult with the valid records in file order and all collected errors

    Raises:
        OSError: If the file cannot be opened or read
    """
    result = ParseResult()
    result.records.extend(
        iter_alignment_records(
            path,
            subject_info,
            query_info,
            result.errors,
            fmt=fmt,
            strict=strict,
            use_record_lengths=use_record_lengths,
        )
    )

    logger.info(f"Parsed {len(result.records)} alignment record(s) from {path}")
    if result.record_errors:
        logger.warning(f"{path}: skipped {len(result.record_errors)} malformed line(s)")
    if result.metadata_errors:
        affected = sum(e.occurrences for e in result.metadata_errors)
        logger.warning(
            f"{path}: {affected} record(s) reference {len(result.metadata_errors)} "
            "sequence(s) without length metadata"
        )
    return result
