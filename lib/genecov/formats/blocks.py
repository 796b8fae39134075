"""
Query-first block alignment layout.

Twenty tab-separated columns, one alignment per line:

    query name, query length, query start, query end,
    subject name, subject length, subject start, subject end,
    strand, matches, mismatches, repeat matches,
    query gap count, query gap bases, subject gap count, subject gap bases,
    block count, block sizes, query block starts, subject block starts

Block lists are comma-separated and may carry a trailing comma. Blank lines
and lines starting with `#` are ignored.
"""

from .base import REQUIRED_FIELDS, AlignmentFormat


def _is_comment(line: str) -> bool:
    return line.startswith("#")


BLOCKS_FORMAT = AlignmentFormat(
    name="blocks",
    columns=REQUIRED_FIELDS,
    is_header=_is_comment,
)
