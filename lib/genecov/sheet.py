"""
Dataset sheet: one CSV row per assembly to evaluate.

Example:
    label,alignments,assembly,transcripts,total_transcripts
    asm_v1,asm_v1.psl,asm_v1.fa.fai,transcripts.fa,
    asm_v2,asm_v2.psl.gz,,transcripts.fa,21450

`assembly` and `transcripts` may be left empty, in which case length lookups
for that role are undefined. Relative paths are resolved against the
directory holding the sheet.
"""

from __future__ import annotations

from pathlib import Path

import polars as pl
from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import FileFormatError

REQUIRED_COLUMNS = ("label", "alignments", "assembly", "transcripts")
OPTIONAL_COLUMNS = ("total_transcripts",)

# Labels name per-dataset output files.
LABEL_FORBIDDEN = ("/", "\\", "\0")


class DatasetSpec(BaseModel):
    """Inputs for one dataset."""

    label: str = Field(min_length=1)
    alignments: Path
    assembly: Path | None = None
    transcripts: Path | None = None
    total_transcripts: int | None = Field(default=None, ge=0)

    @field_validator("label")
    @classmethod
    def _check_label(cls, value: str) -> str:
        if any(sep in value for sep in LABEL_FORBIDDEN) or value in {".", ".."}:
            msg = f"Dataset label {value!r} cannot be used as a file name"
            raise ValueError(msg)
        return value


def _resolve(value: str | None, base_dir: Path) -> Path | None:
    if value is None or not value.strip():
        return None
    path = Path(value.strip())
    return path if path.is_absolute() else base_dir / path


def read_dataset_sheet(sheet_path: Path) -> list[DatasetSpec]:
    """
    Read and validate the dataset sheet.

    Returns:
        DatasetSpecs in sheet order

    Raises:
        OSError: If the sheet cannot be read
        FileFormatError: If columns are missing, a label repeats, or a
            total_transcripts value is not a non-negative integer
    """
    sheet_path = Path(sheet_path)
    if not sheet_path.is_file():
        msg = f"Dataset sheet not found: {sheet_path}"
        raise FileNotFoundError(msg)

    try:
        df = pl.read_csv(sheet_path, infer_schema=False, comment_prefix="#")
    except pl.exceptions.NoDataError as e:
        msg = f"Dataset sheet {sheet_path} is empty"
        raise FileFormatError(msg) from e
    df = df.rename({column: column.strip().lower() for column in df.columns})

    missing = [column for column in REQUIRED_COLUMNS if column not in df.columns]
    if missing:
        msg = f"Dataset sheet {sheet_path} is missing column(s): {', '.join(missing)}"
        raise FileFormatError(msg)

    base_dir = sheet_path.parent
    specs: list[DatasetSpec] = []
    seen: set[str] = set()
    for row_num, row in enumerate(df.iter_rows(named=True), 2):
        label = (row["label"] or "").strip()
        if not label:
            msg = f"Dataset sheet row {row_num} has an empty label"
            raise FileFormatError(msg)
        if label in seen:
            msg = f"Dataset label '{label}' appears more than once in {sheet_path}"
            raise FileFormatError(msg)
        seen.add(label)

        alignments = _resolve(row["alignments"], base_dir)
        if alignments is None:
            msg = f"Dataset '{label}' has no alignment file"
            raise FileFormatError(msg)

        total_raw = (row.get("total_transcripts") or "").strip()
        try:
            total = int(total_raw) if total_raw else None
        except ValueError:
            msg = f"Dataset '{label}' has a non-integer total_transcripts: {total_raw!r}"
            raise FileFormatError(msg) from None
        if total is not None and total < 0:
            msg = f"Dataset '{label}' has a negative total_transcripts: {total}"
            raise FileFormatError(msg)

        try:
            spec = DatasetSpec(
                label=label,
                alignments=alignments,
                assembly=_resolve(row["assembly"], base_dir),
                transcripts=_resolve(row["transcripts"], base_dir),
                total_transcripts=total,
            )
        except ValidationError as e:
            msg = f"Dataset sheet row {row_num} is invalid: {e}"
            raise FileFormatError(msg) from e
        specs.append(spec)

    if not specs:
        msg = f"Dataset sheet {sheet_path} lists no datasets"
        raise FileFormatError(msg)
    return specs
