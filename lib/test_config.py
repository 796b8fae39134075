"""Tests for analysis configuration loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from genecov.config import (
    DEFAULT_COVERAGE_CUTOFFS,
    DEFAULT_MATCH_THRESHOLDS,
    AnalysisConfig,
    load_config,
)


class TestAnalysisConfig:
    """Test defaults and validation of the config model."""

    def test_defaults(self) -> None:
        """Test that an empty config carries the documented defaults."""
        config = AnalysisConfig()
        assert config.match_thresholds == DEFAULT_MATCH_THRESHOLDS
        assert config.coverage_cutoffs == DEFAULT_COVERAGE_CUTOFFS
        assert config.workers == 1
        assert config.include_repeat_matches is False
        assert config.alignment_format == "blocks"

    @pytest.mark.parametrize(
        "settings",
        [
            {"coverage_cutoffs": [0.9, 0.5]},
            {"coverage_cutoffs": []},
            {"match_thresholds": [0.0]},
            {"match_thresholds": [1.5]},
            {"workers": 0},
            {"multiplicity_threshold": 0},
            {"alignment_format": "sam"},
            {"unknown_key": 1},
        ],
    )
    def test_invalid_settings(self, settings: dict) -> None:
        """Test that out-of-range, unordered and unknown settings are rejected."""
        with pytest.raises(ValidationError):
            AnalysisConfig(**settings)


class TestLoadConfig:
    """Test YAML loading and command-line overrides."""

    def test_yaml_file(self, tmp_path: Path) -> None:
        """Test that YAML values populate the model."""
        path = tmp_path / "genecov.yaml"
        path.write_text(
            "match_thresholds: [0.95]\ncoverage_cutoffs: [0.5, 0.9]\nworkers: 3\nalignment_format: psl\n"
        )
        config = load_config(path)
        assert config.match_thresholds == [0.95]
        assert config.coverage_cutoffs == [0.5, 0.9]
        assert config.workers == 3
        assert config.alignment_format == "psl"

    def test_overrides_take_precedence(self, tmp_path: Path) -> None:
        """Test that explicit overrides replace file values and None is ignored."""
        path = tmp_path / "genecov.yaml"
        path.write_text("workers: 3\ninclude_repeat_matches: true\n")
        config = load_config(path, workers=8, include_repeat_matches=None)
        assert config.workers == 8
        assert config.include_repeat_matches is True

    def test_empty_file(self, tmp_path: Path) -> None:
        """Test that an empty YAML file gives the defaults."""
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == AnalysisConfig()

    def test_non_mapping(self, tmp_path: Path) -> None:
        """Test that a YAML list is rejected."""
        path = tmp_path / "list.yaml"
        path.write_text("- 0.5\n- 0.9\n")
        with pytest.raises(ValueError, match="mapping"):
            load_config(path)
