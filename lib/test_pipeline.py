"""Tests for the per-dataset pipeline, worker pool and output tables."""

import gzip
from pathlib import Path

import polars as pl
import pytest

from genecov.config import AnalysisConfig
from genecov.pipeline import analyze_dataset, run_analysis
from genecov.plots import (
    COVERAGE_PLOT_FILE,
    MULTIPLICITY_PLOT_FILE,
    plot_coverage_curves,
    plot_subject_multiplicity,
    save_plots,
)
from genecov.sheet import DatasetSpec
from genecov.tables import (
    COVERAGE_FILE,
    ISSUES_FILE,
    MULTIPLICITY_FILE,
    SUMMARY_FILE,
    write_report_tables,
)
from plotnine import ggplot
from test_parser import blocks_line

CUTOFFS = [0.5, 0.8, 0.9, 1.0]

# tx1: two overlapping hits on different contigs, 80% covered
# tx2: one reverse-strand hit covering the whole transcript
# tx3: one hit below the match threshold
ALIGNMENT_LINES = [
    blocks_line("tx1", 1000, 0, 400, "ctg1", 5000, 100, 500, matches=390, mismatches=10,
                sizes=(400,), qstarts=(0,), sstarts=(100,)),
    blocks_line("tx1", 1000, 350, 800, "ctg2", 4000, 0, 450, matches=440, mismatches=10,
                sizes=(450,), qstarts=(350,), sstarts=(0,)),
    blocks_line("tx2", 500, 0, 500, "ctg1", 5000, 2000, 2500, strand="-", matches=495,
                mismatches=5, sizes=(500,), qstarts=(0,), sstarts=(2000,)),
    blocks_line("tx3", 800, 0, 300, "ctg2", 4000, 0, 300, matches=200, mismatches=100,
                sizes=(300,), qstarts=(0,), sstarts=(0,)),
]  # fmt: skip


@pytest.fixture
def config() -> AnalysisConfig:
    return AnalysisConfig(
        match_thresholds=[0.9],
        coverage_cutoffs=CUTOFFS,
        multiplicity_threshold=0.9,
    )


@pytest.fixture
def dataset_dir(tmp_path: Path) -> Path:
    """Alignment file plus both length indexes for one assembly."""
    (tmp_path / "transcripts.sizes").write_text("tx1\t1000\ntx2\t500\ntx3\t800\n")
    (tmp_path / "assembly.sizes").write_text("ctg1\t5000\nctg2\t4000\n")
    (tmp_path / "good.tsv").write_text("\n".join(ALIGNMENT_LINES) + "\n")
    (tmp_path / "with_bad_line.tsv").write_text(
        "\n".join([*ALIGNMENT_LINES, blocks_line(qstart=300, qend=200)]) + "\n"
    )
    return tmp_path


def make_spec(dataset_dir: Path, label: str, alignments: str, **kwargs) -> DatasetSpec:
    return DatasetSpec(
        label=label,
        alignments=dataset_dir / alignments,
        assembly=dataset_dir / "assembly.sizes",
        transcripts=dataset_dir / "transcripts.sizes",
        **kwargs,
    )


class TestAnalyzeDataset:
    """Test the full pipeline for a single dataset."""

    def test_summary(self, dataset_dir: Path, config: AnalysisConfig) -> None:
        """Test coverage counts for the fixture assembly."""
        result = analyze_dataset(make_spec(dataset_dir, "asm", "good.tsv"), config)

        assert result.ok
        assert result.record_count == 4
        assert result.transcript_count == 3
        assert result.summary["covered_transcripts"].to_list() == [2, 2, 1, 1]
        assert result.summary["total_transcripts"].to_list() == [3, 3, 3, 3]

    def test_multiplicity(self, dataset_dir: Path, config: AnalysisConfig) -> None:
        """Test contig multiplicity for the fixture assembly."""
        result = analyze_dataset(make_spec(dataset_dir, "asm", "good.tsv"), config)
        assert result.multiplicity.rows() == [
            (0.5, 1, 1),
            (0.5, 2, 1),
            (0.8, 1, 1),
            (0.8, 2, 1),
            (0.9, 1, 1),
            (1.0, 1, 1),
        ]

    def test_malformed_line_is_a_warning(self, dataset_dir: Path, config: AnalysisConfig) -> None:
        """Test that a bad line is reported while valid records are summarized."""
        result = analyze_dataset(make_spec(dataset_dir, "asm", "with_bad_line.tsv"), config)

        assert result.ok
        assert result.record_count == 4
        assert [issue.kind for issue in result.issues] == ["record_parse"]
        assert result.issues[0].line_number == 5
        assert result.summary["covered_transcripts"].to_list() == [2, 2, 1, 1]

    def test_missing_alignment_file(self, dataset_dir: Path, config: AnalysisConfig) -> None:
        """Test that an unreadable alignment file fails only this dataset."""
        result = analyze_dataset(make_spec(dataset_dir, "asm", "absent.tsv"), config)
        assert not result.ok
        assert "FileNotFoundError" in result.error
        assert result.summary is None

    def test_unrecognized_metadata_degrades(
        self, dataset_dir: Path, config: AnalysisConfig
    ) -> None:
        """Test that an unreadable index leaves lengths undefined but keeps going."""
        (dataset_dir / "broken.sizes").write_bytes(b"\xff\xfe\x00\x81")
        spec = make_spec(dataset_dir, "asm", "good.tsv").model_copy(
            update={"transcripts": dataset_dir / "broken.sizes"}
        )
        result = analyze_dataset(spec, config)

        assert result.ok
        kinds = [issue.kind for issue in result.issues]
        assert kinds[0] == "file_format"
        assert kinds.count("missing_metadata") == 3
        assert result.summary["covered_transcripts"].to_list() == [0, 0, 0, 0]
        assert result.summary["total_transcripts"].to_list() == [3, 3, 3, 3]

    def test_inconsistent_total(self, dataset_dir: Path, config: AnalysisConfig) -> None:
        """Test that a supplied total below the observed count fails the dataset."""
        spec = make_spec(dataset_dir, "asm", "good.tsv", total_transcripts=2)
        result = analyze_dataset(spec, config)
        assert not result.ok
        assert "InconsistentTotalError" in result.error

    def test_total_override(self, dataset_dir: Path, config: AnalysisConfig) -> None:
        """Test that a larger supplied total becomes the denominator."""
        spec = make_spec(dataset_dir, "asm", "good.tsv", total_transcripts=10)
        result = analyze_dataset(spec, config)
        assert result.summary["total_transcripts"].to_list() == [10] * 4
        assert result.summary["covered_fraction"].to_list() == pytest.approx([0.2, 0.2, 0.1, 0.1])


class TestRunAnalysis:
    """Test running several datasets together."""

    @pytest.fixture
    def specs(self, dataset_dir: Path) -> list[DatasetSpec]:
        return [
            make_spec(dataset_dir, "good", "good.tsv"),
            make_spec(dataset_dir, "missing", "absent.tsv"),
            make_spec(dataset_dir, "noisy", "with_bad_line.tsv"),
        ]

    def test_failure_does_not_stop_siblings(
        self, specs: list[DatasetSpec], config: AnalysisConfig
    ) -> None:
        """Test that one failed dataset leaves the others' results intact."""
        report = run_analysis(specs, config)

        assert [r.label for r in report.results] == ["good", "missing", "noisy"]
        assert [r.label for r in report.failed] == ["missing"]
        assert report.exit_code == 1
        assert report.summary_frame()["dataset"].unique(maintain_order=True).to_list() == [
            "good",
            "noisy",
        ]

    def test_all_succeeded(self, dataset_dir: Path, config: AnalysisConfig) -> None:
        """Test the exit code when every dataset succeeds."""
        report = run_analysis([make_spec(dataset_dir, "good", "good.tsv")], config)
        assert report.exit_code == 0

    def test_worker_pool_matches_inline(
        self, specs: list[DatasetSpec], config: AnalysisConfig
    ) -> None:
        """Test that the process pool returns the same tables in sheet order."""
        inline = run_analysis(specs, config)
        pooled = run_analysis(specs, config.model_copy(update={"workers": 2}))

        assert [r.label for r in pooled.results] == ["good", "missing", "noisy"]
        assert pooled.summary_frame().equals(inline.summary_frame())
        assert pooled.multiplicity_frame().equals(inline.multiplicity_frame())


    def test_truncated_gzip_fails_only_its_dataset(
        self, dataset_dir: Path, config: AnalysisConfig
    ) -> None:
        """Test that a gzip alignment file cut short is a dataset failure, not a crash."""
        text = "\n".join(ALIGNMENT_LINES * 50) + "\n"
        data = gzip.compress(text.encode())
        (dataset_dir / "cut.tsv.gz").write_bytes(data[: len(data) // 2])

        report = run_analysis(
            [
                make_spec(dataset_dir, "cut", "cut.tsv.gz"),
                make_spec(dataset_dir, "good", "good.tsv"),
            ],
            config,
        )

        assert [r.label for r in report.failed] == ["cut"]
        assert "EOFError" in report.failed[0].error
        assert [r.label for r in report.succeeded] == ["good"]

    def test_unnamed_fasta_record_degrades(
        self, dataset_dir: Path, config: AnalysisConfig
    ) -> None:
        """Test that a FASTA with an empty header leaves its dataset running without lengths."""
        (dataset_dir / "unnamed.fa").write_text(">\nACGT\n")
        spec = make_spec(dataset_dir, "unnamed", "good.tsv").model_copy(
            update={"transcripts": dataset_dir / "unnamed.fa"}
        )

        report = run_analysis([spec, make_spec(dataset_dir, "good", "good.tsv")], config)

        assert report.exit_code == 0
        degraded = report.results[0]
        assert degraded.issues[0].kind == "file_format"
        assert degraded.summary["covered_transcripts"].to_list() == [0, 0, 0, 0]

    def test_duplicate_labels(self, dataset_dir: Path, config: AnalysisConfig) -> None:
        """Test that repeated labels are rejected before any work starts."""
        spec = make_spec(dataset_dir, "good", "good.tsv")
        with pytest.raises(ValueError, match="unique"):
            run_analysis([spec, spec], config)

    def test_issues_frame(self, specs: list[DatasetSpec], config: AnalysisConfig) -> None:
        """Test that warnings and failures are both listed."""
        issues = run_analysis(specs, config).issues_frame()
        assert issues.filter(pl.col("kind") == "error")["dataset"].to_list() == ["missing"]
        assert issues.filter(pl.col("kind") == "record_parse")["dataset"].to_list() == ["noisy"]


class TestOutputs:
    """Test writing tables and plots for a finished run."""

    @pytest.fixture
    def report(self, dataset_dir: Path, config: AnalysisConfig):
        return run_analysis(
            [
                make_spec(dataset_dir, "v1", "good.tsv"),
                make_spec(dataset_dir, "v2", "with_bad_line.tsv"),
            ],
            config,
        )

    def test_write_report_tables(self, report, tmp_path: Path) -> None:
        """Test that every table is written and readable."""
        outdir = tmp_path / "out"
        written = write_report_tables(report, outdir)

        names = {path.name for path in written}
        assert {SUMMARY_FILE, MULTIPLICITY_FILE, COVERAGE_FILE, ISSUES_FILE} <= names
        assert "v1.transcript_values.tsv" in names

        summary = pl.read_csv(outdir / SUMMARY_FILE, separator="\t")
        assert summary.height == 8
        assert summary.columns[0] == "dataset"

    def test_plots(self, report, tmp_path: Path) -> None:
        """Test that both plots build and render to PDF."""
        assert isinstance(plot_coverage_curves(report.summary_frame()), ggplot)
        assert isinstance(plot_subject_multiplicity(report.multiplicity_frame()), ggplot)

        written = save_plots(report, tmp_path / "plots")
        assert [path.name for path in written] == [COVERAGE_PLOT_FILE, MULTIPLICITY_PLOT_FILE]
        assert all(path.stat().st_size > 0 for path in written)
