"""Shared result types for agreement analysis."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class Estimate:
    """A point estimate with its confidence interval."""

    estimate: float
    lower: float
    upper: float

    def contains(self, value: float) -> bool:
        return self.lower <= value <= self.upper

    def __iter__(self):
        return iter((self.estimate, self.lower, self.upper))


@dataclass(frozen=True)
class AgreementResult:
    """Result of a Bland-Altman agreement analysis.

    Attributes
    ----------
    bias : Estimate
        Mean paired difference with bootstrap CI.
    loa_lower, loa_upper : Estimate
        Limits of agreement ``bias -/+ loa_z * sd`` with bootstrap CIs.
    sd : float
        Sample standard deviation of the differences (ddof=1).
    n : int
        Number of paired differences.
    loa_z : float
        Limits-of-agreement multiplier.
    conf_level : float
        Confidence level of the intervals.
    method : str
        ``'bca'`` or ``'percentile'``.
    n_resamples : int
        Number of bootstrap resamples.
    """

    bias: Estimate
    loa_lower: Estimate
    loa_upper: Estimate
    sd: float
    n: int
    loa_z: float
    conf_level: float
    method: str
    n_resamples: int

    def summary(self) -> str:
        """Human-readable summary."""
        ci = f"{self.conf_level:.0%} CI"

        def row(label: str, e: Estimate) -> str:
            return f"{label}: {e.estimate:.4f}  ({ci}: {e.lower:.4f} to {e.upper:.4f})"

        lines = [
            "Bland-Altman Agreement",
            "=" * 40,
            row("Bias        ", self.bias),
            row("Lower LoA   ", self.loa_lower),
            row("Upper LoA   ", self.loa_upper),
            f"SD          : {self.sd:.4f}",
            f"n pairs     : {self.n}",
            f"LoA z       : {self.loa_z:g}",
            f"Bootstrap   : {self.method}, {self.n_resamples} resamples",
        ]
        return "\n".join(lines)


@dataclass(frozen=True)
class ProportionalBiasResult:
    """Least-squares regression of paired differences on pair means.

    A slope different from zero indicates that the disagreement between
    methods depends on the magnitude of the measurement.
    """

    slope: float
    intercept: float
    rvalue: float
    p_value: float
    slope_se: float
    n: int

    def predict(self, means: np.ndarray) -> np.ndarray:
        return self.intercept + self.slope * np.asarray(means, dtype=np.float64)
