"""
Sequence length metadata for assembly contigs and transcripts.

Lengths can be loaded from any of:

    FASTA (plain or gzip)         lengths are computed by scanning sequences
    samtools faidx index (.fai)   name, length, offset, linebases, linewidth
    UCSC chrom.sizes              name, length

Example length index:
    contig_1    15320
    contig_2    8841
"""

from __future__ import annotations

import gzip
import zlib
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import IO

from Bio import SeqIO
from loguru import logger

from .errors import FileFormatError

MIN_INDEX_FIELDS = 2


@dataclass(frozen=True, slots=True)
class SequenceInfo:
    """Name and length of one contig or transcript."""

    name: str
    length: int

    def __post_init__(self) -> None:
        assert self.name, "Sequence name cannot be empty"
        assert self.length >= 0, f"Invalid length for {self.name}: {self.length}"


class SequenceInfoTable(Mapping[str, SequenceInfo]):
    """Read-only mapping from sequence name to its SequenceInfo."""

    def __init__(self, infos: list[SequenceInfo] | None = None, role: str = "sequence") -> None:
        self.role = role
        self._infos: dict[str, SequenceInfo] = {}
        for info in infos or []:
            if info.name in self._infos:
                msg = f"Duplicate {role} name in metadata: {info.name}"
                raise FileFormatError(msg)
            self._infos[info.name] = info

    def __getitem__(self, name: str) -> SequenceInfo:
        return self._infos[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._infos)

    def __len__(self) -> int:
        return len(self._infos)

    def __repr__(self) -> str:
        return f"SequenceInfoTable(role={self.role!r}, sequences={len(self)})"

    def length(self, name: str) -> int | None:
        """Length of `name`, or None when the table has no entry for it."""
        info = self._infos.get(name)
        return None if info is None else info.length


def _open_text(path: Path) -> IO[str]:
    if path.suffix == ".gz":
        return gzip.open(path, "rt", encoding="utf8")
    return path.open(encoding="utf8")


def _first_content_line(path: Path) -> str | None:
    with _open_text(path) as handle:
        for line in handle:
            stripped = line.strip()
            if stripped and not stripped.startswith("#"):
                return stripped
    return None


def _read_fasta_lengths(path: Path) -> list[SequenceInfo]:
    infos = []
    with _open_text(path) as handle:
        for index, record in enumerate(SeqIO.parse(handle, "fasta"), 1):
            if not record.id:
                msg = f"{path}: FASTA record {index} has an empty header"
                raise FileFormatError(msg)
            infos.append(SequenceInfo(name=record.id, length=len(record.seq)))
    return infos


def _read_length_index(path: Path) -> list[SequenceInfo]:
    infos = []
    with _open_text(path) as handle:
        for line_num, line in enumerate(handle, 1):
            line = line.strip()  # noqa: PLW2901
            if not line or line.startswith("#"):
                continue

            fields = line.split()
            if len(fields) < MIN_INDEX_FIELDS:
                msg = f"{path}: line {line_num} has {len(fields)} field(s), expected name and length"
                raise FileFormatError(msg)

            try:
                length = int(fields[1])
            except ValueError:
                msg = f"{path}: line {line_num} has a non-integer length: {fields[1]!r}"
                raise FileFormatError(msg) from None
            if length < 0:
                msg = f"{path}: line {line_num} has a negative length: {length}"
                raise FileFormatError(msg)

            infos.append(SequenceInfo(name=fields[0], length=length))
    return infos


def load_sequence_info(path: Path | None, role: str = "sequence") -> SequenceInfoTable:
    """
    Load sequence lengths from a FASTA file or a length index.

    Args:
        path: FASTA, .fai or chrom.sizes file. None yields an empty table, so
            every length lookup for this role comes back undefined.
        role: Label used in messages ("subject" for contigs, "query" for transcripts)

    Returns:
        SequenceInfoTable keyed by sequence name

    Raises:
        OSError: If the path does not exist or cannot be read
        FileFormatError: If the file is neither FASTA nor a length index
    """
    if path is None:
        logger.debug(f"No {role} metadata provided; using an empty table")
        return SequenceInfoTable(role=role)

    path = Path(path)
    if not path.exists():
        msg = f"{role} metadata file not found: {path}"
        raise FileNotFoundError(msg)

    try:
        first_line = _first_content_line(path)
        if first_line is None:
            msg = f"No sequences found in {role} metadata file {path}"
            raise FileFormatError(msg)

        if first_line.startswith(">"):
            infos = _read_fasta_lengths(path)
        else:
            infos = _read_length_index(path)
    except (UnicodeDecodeError, gzip.BadGzipFile, EOFError, zlib.error) as e:
        msg = f"{role} metadata file {path} is not readable as text: {e}"
        raise FileFormatError(msg) from e

    table = SequenceInfoTable(infos, role=role)
    logger.info(f"Loaded lengths for {len(table)} {role} sequence(s) from {path}")
    return table
