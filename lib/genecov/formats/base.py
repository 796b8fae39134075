"""Column layout description shared by all alignment formats."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from ..errors import RecordParseError

# Fields every format must provide, in canonical names.
REQUIRED_FIELDS = (
    "query_name",
    "query_size",
    "query_start",
    "query_end",
    "subject_name",
    "subject_size",
    "subject_start",
    "subject_end",
    "strand",
    "matches",
    "mismatches",
    "repeat_matches",
    "query_gap_count",
    "query_gap_bases",
    "subject_gap_count",
    "subject_gap_bases",
    "block_count",
    "block_sizes",
    "query_block_starts",
    "subject_block_starts",
)


def _never_skip(line: str) -> bool:  # noqa: ARG001
    return False


@dataclass(frozen=True, slots=True)
class AlignmentFormat:
    """A tab-separated alignment layout: column order plus header detection."""

    name: str
    columns: tuple[str, ...]
    is_header: Callable[[str], bool] = _never_skip

    def __post_init__(self) -> None:
        missing = set(REQUIRED_FIELDS) - set(self.columns)
        assert not missing, f"Format {self.name} lacks required columns: {sorted(missing)}"

    def split(self, line: str, line_number: int) -> dict[str, str]:
        """
        Split one data line into a mapping of canonical field name to raw text.

        Raises:
            RecordParseError: If the column count does not match the layout
        """
        fields = line.rstrip("\r\n").split("\t")
        if len(fields) != len(self.columns):
            msg = (
                f"{self.name} record has {len(fields)} column(s), "
                f"expected {len(self.columns)}"
            )
            raise RecordParseError(msg, line_number)
        return {name: value.strip() for name, value in zip(self.columns, fields)}
