"""
UCSC PSL alignment layout (BLAT, pblat, minimap2 --psl style output).

Twenty-one tab-separated columns:

    matches misMatches repMatches nCount qNumInsert qBaseInsert
    tNumInsert tBaseInsert strand qName qSize qStart qEnd
    tName tSize tStart tEnd blockCount blockSizes qStarts tStarts

The optional `psLayout` header block (title line, two column-label lines and a
dashed separator) is skipped.
"""

from .base import AlignmentFormat

PSL_COLUMNS = (
    "matches",
    "mismatches",
    "repeat_matches",
    "n_count",
    "query_gap_count",
    "query_gap_bases",
    "subject_gap_count",
    "subject_gap_bases",
    "strand",
    "query_name",
    "query_size",
    "query_start",
    "query_end",
    "subject_name",
    "subject_size",
    "subject_start",
    "subject_end",
    "block_count",
    "block_sizes",
    "query_block_starts",
    "subject_block_starts",
)

PSL_HEADER_PREFIXES = ("psLayout", "match", "---", "#")


def _is_psl_header(line: str) -> bool:
    return line.lstrip().startswith(PSL_HEADER_PREFIXES)


PSL_FORMAT = AlignmentFormat(
    name="psl",
    columns=PSL_COLUMNS,
    is_header=_is_psl_header,
)
