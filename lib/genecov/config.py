"""
Analysis configuration.

Settings can come from a YAML file and be overridden from the command line:

    match_thresholds: [0.90, 0.95, 0.98]
    coverage_cutoffs: [0.5, 0.8, 0.9, 0.95, 1.0]
    multiplicity_threshold: 0.95
    workers: 4
    include_repeat_matches: false
    strict_metadata: false
    use_record_lengths: false
    alignment_format: blocks
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .formats import DEFAULT_FORMAT, available_formats
from .summarize import validate_cutoffs, validate_match_threshold

DEFAULT_MATCH_THRESHOLDS = [0.90, 0.95, 0.98]
DEFAULT_COVERAGE_CUTOFFS = [0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9, 0.95, 1.0]
DEFAULT_MULTIPLICITY_THRESHOLD = 0.95


class AnalysisConfig(BaseModel):
    """Parameters shared by every dataset in a run."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    match_thresholds: list[float] = Field(
        default_factory=lambda: list(DEFAULT_MATCH_THRESHOLDS),
        min_length=1,
        description="Match-quality thresholds, each in (0, 1]",
    )
    coverage_cutoffs: list[float] = Field(
        default_factory=lambda: list(DEFAULT_COVERAGE_CUTOFFS),
        min_length=1,
        description="Strictly ascending coverage-fraction cutoffs in [0, 1]",
    )
    multiplicity_threshold: float = Field(
        default=DEFAULT_MULTIPLICITY_THRESHOLD,
        gt=0,
        le=1,
        description="Match threshold used for subject multiplicity counts",
    )
    workers: int = Field(default=1, ge=1, description="Datasets processed concurrently")
    include_repeat_matches: bool = Field(
        default=False,
        description="Count repeat matches toward the match fraction",
    )
    strict_metadata: bool = Field(
        default=False,
        description="Reject records naming sequences without length metadata",
    )
    use_record_lengths: bool = Field(
        default=False,
        description="Use alignment length columns for names missing from metadata",
    )
    alignment_format: str = Field(default=DEFAULT_FORMAT)

    @field_validator("match_thresholds")
    @classmethod
    def _check_thresholds(cls, value: list[float]) -> list[float]:
        for threshold in value:
            validate_match_threshold(threshold)
        return value

    @field_validator("coverage_cutoffs")
    @classmethod
    def _check_cutoffs(cls, value: list[float]) -> list[float]:
        validate_cutoffs(value)
        return value

    @field_validator("alignment_format")
    @classmethod
    def _check_format(cls, value: str) -> str:
        if value not in available_formats():
            msg = f"Unknown alignment format '{value}'. Available: {', '.join(available_formats())}"
            raise ValueError(msg)
        return value


def load_config(path: Path | None = None, **overrides: Any) -> AnalysisConfig:
    """
    Build an AnalysisConfig from an optional YAML file plus overrides.

    Args:
        path: YAML file with a mapping of AnalysisConfig fields
        **overrides: Field values taking precedence over the file; None values
            are ignored

    Returns:
        Validated AnalysisConfig

    Raises:
        OSError: If the file cannot be read
        pydantic.ValidationError: If values are out of range or keys unknown
    """
    settings: dict[str, Any] = {}
    if path is not None:
        loaded = yaml.safe_load(Path(path).read_text(encoding="utf8"))
        if loaded is not None:
            if not isinstance(loaded, dict):
                msg = f"Configuration file {path} must contain a mapping"
                raise ValueError(msg)
            settings.update(loaded)

    settings.update({key: value for key, value in overrides.items() if value is not None})
    return AnalysisConfig(**settings)
