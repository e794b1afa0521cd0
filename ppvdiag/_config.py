"""
Run configuration for stratified PPV analyses.

A single frozen pydantic model holds every tunable of an analysis run.
Defaults reproduce the published analysis: 95% intervals, higher PPV
classified as fluid responsive, 4000 bootstrap resamples with BCa
intervals, and a >10% stroke-volume increase defining a responder.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AnalysisConfig(BaseModel):
    """Configuration for ROC, cutoff and agreement analyses."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    # Intervals
    conf_level: float = Field(default=0.95, gt=0.0, lt=1.0)

    # ROC / cutoff
    direction: Literal["<", ">", "auto"] = "<"
    ci_transform: Literal["normal", "logit"] = "normal"
    cutoff_method: Literal["youden", "closest_topleft"] = "youden"
    proportion_ci: Literal["clopper-pearson", "wilson"] = "clopper-pearson"

    # Bland-Altman bootstrap
    n_resamples: int = Field(default=4000, ge=2)
    bootstrap_method: Literal["bca", "percentile"] = "bca"
    loa_z: float = Field(default=1.96, gt=0.0)
    seed: int = Field(default=42, ge=0)

    # Execution
    n_jobs: int = Field(default=1, ge=1)

    # Columns
    strata: tuple[str, ...] = ("tidal_volume", "respiratory_rate")
    outcome: str = "fluid_responsive"
    subject: str = "id"

    # Outcome derivation
    responder_threshold: float = Field(default=0.10, ge=0.0)

    @field_validator("strata")
    @classmethod
    def _strata_not_empty(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if len(value) == 0:
            raise ValueError("strata must name at least one column")
        if len(set(value)) != len(value):
            raise ValueError(f"strata columns must be unique, got {value}")
        return value
