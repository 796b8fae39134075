"""
Error taxonomy for gene-body coverage analysis.

Unreadable paths surface as the built-in OSError family. Everything else a
dataset can run into derives from GeneCovError so callers can decide which
problems are fatal for a dataset and which are collected as warnings:

    FileFormatError         sequence metadata file not recognized
    RecordParseError        one malformed alignment line
    MissingMetadataError    alignment names a sequence absent from its table
    InconsistentTotalError  supplied transcript total below the observed count
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class GeneCovError(Exception):
    """Base class for all genecov errors."""


class FileFormatError(GeneCovError):
    """A sequence metadata or dataset sheet file is not in a recognized format."""


class RecordParseError(GeneCovError):
    """A single alignment line could not be turned into an AlignmentRecord."""

    def __init__(self, message: str, line_number: int | None = None) -> None:
        super().__init__(message, line_number)
        self.message = message
        self.line_number = line_number

    def __str__(self) -> str:
        if self.line_number is None:
            return self.message
        return f"line {self.line_number}: {self.message}"


class MissingMetadataError(GeneCovError):
    """An alignment references a sequence name absent from its metadata table."""

    def __init__(self, role: str, name: str, line_number: int | None = None) -> None:
        super().__init__(role, name, line_number)
        self.role = role
        self.name = name
        self.line_number = line_number
        # Records naming this sequence; line_number is the first of them.
        self.occurrences = 1

    def __str__(self) -> str:
        location = "" if self.line_number is None else f"line {self.line_number}: "
        message = f"{location}{self.role} sequence '{self.name}' has no length metadata"
        if self.occurrences > 1:
            message += f" ({self.occurrences} records)"
        return message


class InconsistentTotalError(GeneCovError):
    """A supplied total transcript count is smaller than the observed count."""

    def __init__(self, observed: int, supplied: int) -> None:
        super().__init__(observed, supplied)
        self.observed = observed
        self.supplied = supplied

    def __str__(self) -> str:
        return (
            f"Supplied total transcript count ({self.supplied}) is smaller than "
            f"the number of transcripts observed in the alignments ({self.observed})"
        )


IssueKind = Literal["record_parse", "missing_metadata", "file_format", "io"]


class ParseIssue(BaseModel):
    """A recoverable problem reported alongside successful output."""

    kind: IssueKind
    message: str
    line_number: int | None = None

    @classmethod
    def from_error(cls, error: Exception) -> ParseIssue:
        """Convert a collected exception into a serializable issue."""
        if isinstance(error, RecordParseError):
            return cls(kind="record_parse", message=error.message, line_number=error.line_number)
        if isinstance(error, MissingMetadataError):
            return cls(kind="missing_metadata", message=str(error), line_number=error.line_number)
        if isinstance(error, FileFormatError):
            return cls(kind="file_format", message=str(error))
        return cls(kind="io", message=str(error))
