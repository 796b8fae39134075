"""Tests for the genecov command-line interface."""

import sys
from pathlib import Path

import pytest
from loguru import logger
from typer.testing import CliRunner

from genecov.tables import ISSUES_FILE, SUMMARY_FILE
from genecov_cli import app
from test_pipeline import ALIGNMENT_LINES

runner = CliRunner()


@pytest.fixture(autouse=True)
def reset_logging():
    """The run command replaces loguru's sinks; restore a plain stderr sink afterwards."""
    yield
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def sheet(tmp_path: Path) -> Path:
    """A dataset sheet with relative paths to one assembly's inputs."""
    (tmp_path / "transcripts.sizes").write_text("tx1\t1000\ntx2\t500\ntx3\t800\n")
    (tmp_path / "assembly.sizes").write_text("ctg1\t5000\nctg2\t4000\n")
    (tmp_path / "asm.tsv").write_text("\n".join(ALIGNMENT_LINES) + "\n")
    path = tmp_path / "datasets.csv"
    path.write_text(
        "label,alignments,assembly,transcripts,total_transcripts\n"
        "asm,asm.tsv,assembly.sizes,transcripts.sizes,\n"
    )
    return path


def add_missing_dataset(sheet: Path) -> None:
    with sheet.open("a") as handle:
        handle.write("gone,absent.tsv,assembly.sizes,transcripts.sizes,\n")


class TestRunCommand:
    """Test the 'run' command."""

    def test_writes_tables(self, sheet: Path, tmp_path: Path) -> None:
        """Test a successful run without plots."""
        outdir = tmp_path / "out"
        result = runner.invoke(
            app,
            ["run", str(sheet), "-o", str(outdir), "-t", "0.9", "-c", "0.5", "-c", "1.0", "--no-plots"],
        )

        assert result.exit_code == 0, result.output
        assert (outdir / SUMMARY_FILE).is_file()
        assert (outdir / "asm.transcript_values.tsv").is_file()
        assert not (outdir / "coverage_curves.pdf").exists()

    def test_failed_dataset_exits_nonzero(self, sheet: Path, tmp_path: Path) -> None:
        """Test that a failed dataset still leaves the other outputs behind."""
        add_missing_dataset(sheet)
        outdir = tmp_path / "out"
        result = runner.invoke(app, ["run", str(sheet), "-o", str(outdir), "--no-plots"])

        assert result.exit_code == 1
        assert (outdir / SUMMARY_FILE).is_file()
        assert "gone" in (outdir / ISSUES_FILE).read_text()

    def test_descending_cutoffs_rejected(self, sheet: Path, tmp_path: Path) -> None:
        """Test that cutoffs out of order are a usage error."""
        result = runner.invoke(
            app, ["run", str(sheet), "-o", str(tmp_path / "out"), "-c", "0.9", "-c", "0.5"]
        )
        assert result.exit_code == 2
        assert not (tmp_path / "out").exists()

    def test_config_file(self, sheet: Path, tmp_path: Path) -> None:
        """Test that settings are read from a YAML config."""
        config = tmp_path / "genecov.yaml"
        config.write_text("match_thresholds: [0.9]\ncoverage_cutoffs: [0.5, 0.8]\n")
        outdir = tmp_path / "out"
        result = runner.invoke(
            app, ["run", str(sheet), "-o", str(outdir), "--config", str(config), "--no-plots"]
        )

        assert result.exit_code == 0, result.output
        lines = (outdir / SUMMARY_FILE).read_text().splitlines()
        assert len(lines) == 3


class TestValidateCommand:
    """Test the 'validate' command."""

    def test_valid_sheet(self, sheet: Path) -> None:
        """Test that complete inputs pass."""
        result = runner.invoke(app, ["validate", str(sheet)])
        assert result.exit_code == 0, result.output

    def test_missing_alignment_file(self, sheet: Path) -> None:
        """Test that a missing alignment file is reported."""
        add_missing_dataset(sheet)
        result = runner.invoke(app, ["validate", str(sheet)])
        assert result.exit_code == 1

    def test_bad_sheet(self, tmp_path: Path) -> None:
        """Test that a sheet without the required columns is a usage error."""
        sheet = tmp_path / "datasets.csv"
        sheet.write_text("name,path\nasm,asm.tsv\n")
        result = runner.invoke(app, ["validate", str(sheet)])
        assert result.exit_code == 2
