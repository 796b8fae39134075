"""
Alignment file formats.

Each format is an AlignmentFormat describing its column order; the parser in
genecov.parser maps every layout onto the same AlignmentRecord. New layouts
are added with `register_format`.

Formats:
    blocks: Query-first 20-column block layout (default)
    psl: UCSC PSL, 21 columns with optional psLayout header
"""

from .base import REQUIRED_FIELDS, AlignmentFormat
from .blocks import BLOCKS_FORMAT
from .psl import PSL_FORMAT

DEFAULT_FORMAT = BLOCKS_FORMAT.name

_REGISTRY: dict[str, AlignmentFormat] = {}


def register_format(fmt: AlignmentFormat) -> None:
    """Make an alignment layout available by name."""
    if fmt.name in _REGISTRY:
        msg = f"Alignment format already registered: {fmt.name}"
        raise ValueError(msg)
    _REGISTRY[fmt.name] = fmt


def get_format(name: str) -> AlignmentFormat:
    """Look up a registered alignment layout by name."""
    try:
        return _REGISTRY[name]
    except KeyError:
        msg = f"Unknown alignment format '{name}'. Available: {', '.join(available_formats())}"
        raise ValueError(msg) from None


def available_formats() -> list[str]:
    return sorted(_REGISTRY)


register_format(BLOCKS_FORMAT)
register_format(PSL_FORMAT)

__all__ = [
    "BLOCKS_FORMAT",
    "DEFAULT_FORMAT",
    "PSL_FORMAT",
    "REQUIRED_FIELDS",
    "AlignmentFormat",
    "available_formats",
    "get_format",
    "register_format",
]
