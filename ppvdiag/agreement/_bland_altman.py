"""Bland-Altman agreement between two measurement methods.

Bias (mean paired difference) and limits of agreement
(``bias -/+ 1.96 * sd``) with bootstrap confidence intervals, a
regression check for proportional bias, and per-pair records for
plotting.

References
----------
Bland & Altman (1986). Statistical methods for assessing agreement
between two methods of clinical measurement.  *Lancet*, 327(8476),
307-310.
"""

from __future__ import annotations

import numpy as np
import pandas as pd
from numpy.typing import NDArray
from scipy import stats

from ppvdiag._errors import DegenerateInputError, InsufficientDataError
from ppvdiag.agreement._bootstrap import bootstrap_ci
from ppvdiag.agreement._common import (
    AgreementResult,
    Estimate,
    ProportionalBiasResult,
)

SeedLike = int | np.random.SeedSequence | np.random.Generator | None


def _paired(
    a: NDArray, b: NDArray,
) -> tuple[NDArray, NDArray]:
    """Coerce two measurement vectors and keep pairs where both are finite."""
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    if a.ndim != 1 or b.ndim != 1:
        raise ValueError("a and b must be 1-D arrays")
    if a.shape[0] != b.shape[0]:
        raise ValueError(
            f"a and b must have the same length, got {a.shape[0]} and {b.shape[0]}"
        )
    both = np.isfinite(a) & np.isfinite(b)
    return a[both], b[both]


def _agreement_statistic(loa_z: float):
    """Vectorised (bias, lower LoA, upper LoA) of differences."""

    def statistic(d: NDArray, axis: int = -1) -> NDArray:
        bias = np.mean(d, axis=axis)
        sd = np.std(d, axis=axis, ddof=1)
        return np.stack([bias, bias - loa_z * sd, bias + loa_z * sd])

    return statistic


def bland_altman(
    a: NDArray[np.floating],
    b: NDArray[np.floating] | None = None,
    *,
    n_resamples: int = 4000,
    conf_level: float = 0.95,
    loa_z: float = 1.96,
    method: str = "bca",
    seed: SeedLike = None,
) -> AgreementResult:
    """Bland-Altman bias and limits of agreement with bootstrap CIs.

    Parameters
    ----------
    a : array of float
        Measurements by the first method, or the paired differences
        themselves when ``b`` is ``None``.
    b : array of float or None
        Measurements by the second method on the same subjects.
        Differences are ``a - b`` over pairs where both are present.
    n_resamples : int
        Number of bootstrap resamples.
    conf_level : float
        Confidence level for the intervals.
    loa_z : float
        Limits-of-agreement multiplier.
    method : str
        ``'bca'`` (bias-corrected and accelerated) or ``'percentile'``.
    seed : int, SeedSequence, Generator or None
        Seed for the resampling generator.  The same seed and the same
        input order give identical intervals.

    Returns
    -------
    AgreementResult

    Raises
    ------
    InsufficientDataError
        Fewer than two paired differences.
    """
    if loa_z <= 0:
        raise ValueError(f"loa_z must be > 0, got {loa_z}")

    if b is None:
        d = np.asarray(a, dtype=np.float64)
        if d.ndim != 1:
            raise ValueError("differences must be a 1-D array")
        d = d[np.isfinite(d)]
    else:
        a_p, b_p = _paired(a, b)
        d = a_p - b_p

    n = d.shape[0]
    if n < 2:
        raise InsufficientDataError(
            f"Need at least 2 paired differences, got {n}"
        )

    rng = seed if isinstance(seed, np.random.Generator) else np.random.default_rng(seed)

    theta, lower, upper = bootstrap_ci(
        d,
        _agreement_statistic(loa_z),
        n_resamples=n_resamples,
        conf_level=conf_level,
        method=method,
        rng=rng,
    )

    return AgreementResult(
        bias=Estimate(float(theta[0]), float(lower[0]), float(upper[0])),
        loa_lower=Estimate(float(theta[1]), float(lower[1]), float(upper[1])),
        loa_upper=Estimate(float(theta[2]), float(lower[2]), float(upper[2])),
        sd=float(np.std(d, ddof=1)),
        n=n,
        loa_z=loa_z,
        conf_level=conf_level,
        method=method,
        n_resamples=n_resamples,
    )


def agreement_records(
    a: NDArray[np.floating], b: NDArray[np.floating],
) -> pd.DataFrame:
    """Per-pair Bland-Altman coordinates (pair mean, difference ``a - b``)."""
    a_p, b_p = _paired(a, b)
    return pd.DataFrame({
        "a": a_p,
        "b": b_p,
        "mean": (a_p + b_p) / 2.0,
        "difference": a_p - b_p,
    })


def proportional_bias(
    a: NDArray[np.floating], b: NDArray[np.floating],
) -> ProportionalBiasResult:
    """Regress paired differences on pair means.

    Raises
    ------
    InsufficientDataError
        Fewer than three complete pairs.
    DegenerateInputError
        All pair means identical.
    """
    records = agreement_records(a, b)
    n = len(records)
    if n < 3:
        raise InsufficientDataError(
            f"Need at least 3 complete pairs for a regression, got {n}"
        )
    means = records["mean"].to_numpy()
    if np.all(means == means[0]):
        raise DegenerateInputError("All pair means are identical")

    fit = stats.linregress(means, records["difference"].to_numpy())
    return ProportionalBiasResult(
        slope=float(fit.slope),
        intercept=float(fit.intercept),
        rvalue=float(fit.rvalue),
        p_value=float(fit.pvalue),
        slope_se=float(fit.stderr),
        n=n,
    )
