"""
genecov: gene-body coverage of transcripts aligned to genome assemblies.

Modules:
    seqinfo: Sequence length metadata from FASTA or length indexes
    parser: Streaming alignment record parser
    formats: Supported alignment layouts (blocks, psl)
    pairs: Per-dataset alignment collections and derived fields
    summarize: Coverage summaries across match thresholds and cutoffs
    multiplicity: Contig multiplicity of covered transcripts
    pipeline: Per-dataset pipeline and worker pool
    tables / plots: TSV and PDF output
"""

from .config import AnalysisConfig, load_config
from .errors import (
    FileFormatError,
    GeneCovError,
    InconsistentTotalError,
    MissingMetadataError,
    ParseIssue,
    RecordParseError,
)
from .multiplicity import SubjectMultiplicityRow, count_subjects_by_coverage
from .pairs import AlignmentPairs, AlignmentPairsList, covered_bases
from .parser import ParseResult, iter_alignment_records, parse_alignments
from .pipeline import DatasetResult, RunReport, analyze_dataset, run_analysis
from .records import AlignmentRecord, Strand
from .seqinfo import SequenceInfo, SequenceInfoTable, load_sequence_info
from .sheet import DatasetSpec, read_dataset_sheet
from .summarize import CoverageSummaryRow, summarize, summarize_thresholds

__version__ = "0.1.0"

__all__ = [
    "AlignmentPairs",
    "AlignmentPairsList",
    "AlignmentRecord",
    "AnalysisConfig",
    "CoverageSummaryRow",
    "DatasetResult",
    "DatasetSpec",
    "FileFormatError",
    "GeneCovError",
    "InconsistentTotalError",
    "MissingMetadataError",
    "ParseIssue",
    "ParseResult",
    "RecordParseError",
    "RunReport",
    "SequenceInfo",
    "SequenceInfoTable",
    "Strand",
    "SubjectMultiplicityRow",
    "analyze_dataset",
    "count_subjects_by_coverage",
    "covered_bases",
    "iter_alignment_records",
    "load_config",
    "load_sequence_info",
    "parse_alignments",
    "read_dataset_sheet",
    "run_analysis",
    "summarize",
    "summarize_thresholds",
]
