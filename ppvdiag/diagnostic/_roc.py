"""ROC curve analysis with DeLong confidence intervals and comparison test.

Implements the empirical ROC curve, AUC via Mann-Whitney U, DeLong
standard errors and CIs (normal or logit scale), and the DeLong test
for comparing two correlated ROC curves, e.g. two PPV computation
methods evaluated on the same subjects.

References
----------
DeLong, DeLong & Clarke-Pearson (1988). Comparing the areas under two
or more correlated receiver operating characteristic curves: a
nonparametric approach.  *Biometrics*, 44(3), 837-845.

Validates against: R ``pROC::roc()``, ``pROC::ci.auc()``,
``pROC::roc.test()``.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray
from scipy import stats

from ppvdiag._errors import DegenerateInputError, InsufficientDataError
from ppvdiag.diagnostic._common import ROCResult


# ---------------------------------------------------------------------------
# ROCTestResult
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ROCTestResult:
    """Result of comparing two correlated ROC curves (DeLong test).

    ``covariance`` is the 2x2 DeLong covariance matrix of
    ``(auc1, auc2)``.
    """

    statistic: float
    p_value: float
    auc1: float
    auc2: float
    auc_diff: float
    covariance: NDArray[np.floating]
    n_positive: int
    n_negative: int
    method: str  # 'delong'

    def summary(self) -> str:
        lines = [
            "DeLong Test for Two Correlated ROC Curves",
            "=" * 45,
            f"AUC 1     : {self.auc1:.4f}",
            f"AUC 2     : {self.auc2:.4f}",
            f"Difference: {self.auc_diff:.4f}",
            f"Z         : {self.statistic:.4f}",
            f"p-value   : {self.p_value:.4g}",
            f"n pos/neg : {self.n_positive}/{self.n_negative}",
        ]
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _validate_roc_inputs(
    response: NDArray, predictor: NDArray
) -> tuple[NDArray, NDArray]:
    """Validate and coerce inputs for ROC analysis."""
    response = np.asarray(response, dtype=np.intp)
    predictor = np.asarray(predictor, dtype=np.float64)

    if response.ndim != 1 or predictor.ndim != 1:
        raise ValueError("response and predictor must be 1-D arrays")
    if response.shape[0] != predictor.shape[0]:
        raise ValueError(
            f"response and predictor must have the same length, "
            f"got {response.shape[0]} and {predictor.shape[0]}"
        )
    if not np.all(np.isfinite(predictor)):
        raise ValueError(
            "predictor contains missing or non-finite values; "
            "drop them before ROC analysis"
        )

    unique_labels = np.unique(response)
    if not np.all(np.isin(unique_labels, [0, 1])):
        raise ValueError(
            f"response must be binary (0/1), got unique values {unique_labels}"
        )

    n1 = int(response.sum())
    n0 = len(response) - n1
    if n1 < 1 or n0 < 1:
        raise InsufficientDataError(
            f"Need at least one case and one control, "
            f"got {n1} cases and {n0} controls"
        )

    if np.all(predictor == predictor[0]):
        raise DegenerateInputError(
            f"All {len(predictor)} predictor values equal {predictor[0]:g}; "
            f"AUC is undefined"
        )

    return response, predictor


def _resolve_direction(
    response: NDArray, predictor: NDArray, direction: str,
) -> str:
    """Choose direction if 'auto'."""
    if direction == "auto":
        med_cases = np.median(predictor[response == 1])
        med_controls = np.median(predictor[response == 0])
        return "<" if med_controls <= med_cases else ">"
    if direction not in ("<", ">"):
        raise ValueError(f"direction must be '<', '>' or 'auto', got {direction!r}")
    return direction


def _compute_auc_and_placements(
    response: NDArray,
    predictor: NDArray,
    direction: str,
) -> tuple[float, NDArray, NDArray]:
    """Compute AUC via ranks and DeLong placement values.

    Returns (auc, V10, V01) where V10 has shape (n1,) and V01 has
    shape (n0,).  Ties between a case and a control count one half.
    """
    # Negate so that higher always means positive
    if direction == ">":
        predictor = -predictor

    case_mask = response == 1
    n1 = int(case_mask.sum())
    n0 = len(response) - n1

    # Pooled midranks, then midranks within each class
    pooled_ranks = stats.rankdata(predictor, method="average")
    case_ranks_within = stats.rankdata(predictor[case_mask], method="average")
    ctrl_ranks_within = stats.rankdata(predictor[~case_mask], method="average")

    sum_case_ranks = pooled_ranks[case_mask].sum()
    auc = (sum_case_ranks - n1 * (n1 + 1) / 2) / (n1 * n0)

    # V10[i]: fraction of controls below case i
    V10 = (pooled_ranks[case_mask] - case_ranks_within) / n0
    # V01[j]: fraction of cases above control j
    V01 = 1.0 - (pooled_ranks[~case_mask] - ctrl_ranks_within) / n1

    return float(auc), V10, V01


def _delong_variance(
    V10: NDArray, V01: NDArray, n1: int, n0: int,
) -> float:
    """DeLong variance of AUC from placement values."""
    S10 = np.var(V10, ddof=1) if n1 > 1 else 0.0
    S01 = np.var(V01, ddof=1) if n0 > 1 else 0.0
    return float(S10 / n1 + S01 / n0)


def _normal_ci(
    auc: float, var_auc: float, conf_level: float,
) -> tuple[float, float]:
    """Wald interval ``auc +/- z*se`` clipped to [0, 1] (pROC default)."""
    z = stats.norm.ppf((1 + conf_level) / 2)
    half = z * np.sqrt(var_auc)
    return float(max(0.0, auc - half)), float(min(1.0, auc + half))


def _logit_ci(
    auc: float, var_auc: float, conf_level: float,
) -> tuple[float, float]:
    """AUC confidence interval on the logit scale."""
    z = stats.norm.ppf((1 + conf_level) / 2)

    # Clamp AUC away from 0/1 to avoid log(0)
    auc_c = np.clip(auc, 1e-10, 1.0 - 1e-10)

    logit_auc = np.log(auc_c / (1.0 - auc_c))
    se_logit = np.sqrt(var_auc) / (auc_c * (1.0 - auc_c))

    ci_lo = 1.0 / (1.0 + np.exp(-(logit_auc - z * se_logit)))
    ci_hi = 1.0 / (1.0 + np.exp(-(logit_auc + z * se_logit)))

    # The clamp can leave AUC = 0 or 1 just outside the back-transformed bounds
    return float(min(ci_lo, auc)), float(max(ci_hi, auc))


def _empirical_roc_curve(
    response: NDArray,
    predictor: NDArray,
    direction: str,
) -> tuple[NDArray, NDArray, NDArray]:
    """Compute empirical ROC curve points.

    One point per distinct predictor value, so tied values across
    classes move the curve in a single diagonal step.  Returns
    (thresholds, tpr, fpr) sorted from (0,0) to (1,1).
    """
    case_mask = response == 1
    n1 = int(case_mask.sum())
    n0 = len(response) - n1

    cases = np.sort(predictor[case_mask])
    ctrls = np.sort(predictor[~case_mask])
    unique_vals = np.unique(predictor)

    if direction == "<":
        # Positive call if predictor >= c; thresholds from high to low
        sorted_thresh = unique_vals[::-1]
        tp = n1 - np.searchsorted(cases, sorted_thresh, side="left")
        fp = n0 - np.searchsorted(ctrls, sorted_thresh, side="left")
        bounds = (np.inf, -np.inf)
    else:
        # Positive call if predictor <= c; thresholds from low to high
        sorted_thresh = unique_vals
        tp = np.searchsorted(cases, sorted_thresh, side="right")
        fp = np.searchsorted(ctrls, sorted_thresh, side="right")
        bounds = (-np.inf, np.inf)

    thresholds = np.concatenate([[bounds[0]], sorted_thresh, [bounds[1]]])
    tpr = np.concatenate([[0.0], tp / n1, [1.0]])
    fpr = np.concatenate([[0.0], fp / n0, [1.0]])

    return thresholds, tpr, fpr


# ---------------------------------------------------------------------------
# Public API: roc()
# ---------------------------------------------------------------------------

def roc(
    response: NDArray[np.integer],
    predictor: NDArray[np.floating],
    *,
    direction: str = "auto",
    conf_level: float = 0.95,
    ci_transform: str = "normal",
) -> ROCResult:
    """Compute empirical ROC curve with DeLong AUC confidence interval.

    Parameters
    ----------
    response : array of int
        Binary outcome (0/1), 1 = fluid responsive.
    predictor : array of float
        Continuous predictor (e.g. PPV in percent).  Must not contain
        missing values.
    direction : str
        ``'<'`` (controls < cases, higher predictor -> positive),
        ``'>'`` (controls > cases, lower predictor -> positive),
        or ``'auto'`` (choose by class medians).
    conf_level : float
        Confidence level for AUC CI.
    ci_transform : str
        ``'normal'`` (Wald interval clipped to [0, 1]) or ``'logit'``.

    Returns
    -------
    ROCResult

    Raises
    ------
    InsufficientDataError
        No case or no control.
    DegenerateInputError
        All predictor values identical.

    Validates against: R ``pROC::roc()``, ``pROC::ci.auc()``
    """
    if not 0 < conf_level < 1:
        raise ValueError(f"conf_level must be in (0, 1), got {conf_level}")
    if ci_transform not in ("normal", "logit"):
        raise ValueError(
            f"ci_transform must be 'normal' or 'logit', got {ci_transform!r}"
        )

    response, predictor = _validate_roc_inputs(response, predictor)
    direction = _resolve_direction(response, predictor, direction)

    n1 = int(response.sum())
    n0 = len(response) - n1

    auc_val, V10, V01 = _compute_auc_and_placements(
        response, predictor, direction,
    )

    var_auc = _delong_variance(V10, V01, n1, n0)
    if ci_transform == "normal":
        ci_lo, ci_hi = _normal_ci(auc_val, var_auc, conf_level)
    else:
        ci_lo, ci_hi = _logit_ci(auc_val, var_auc, conf_level)

    thresholds, tpr, fpr = _empirical_roc_curve(response, predictor, direction)

    return ROCResult(
        thresholds=thresholds,
        tpr=tpr,
        fpr=fpr,
        auc=auc_val,
        auc_se=float(np.sqrt(var_auc)),
        auc_ci_lower=ci_lo,
        auc_ci_upper=ci_hi,
        conf_level=conf_level,
        n_positive=n1,
        n_negative=n0,
        direction=direction,
        ci_transform=ci_transform,
    )


# ---------------------------------------------------------------------------
# Public API: roc_test()
# ---------------------------------------------------------------------------

def roc_test(
    roc1: ROCResult,
    roc2: ROCResult,
    *,
    predictor1: NDArray[np.floating] | None = None,
    predictor2: NDArray[np.floating] | None = None,
    response: NDArray[np.integer] | None = None,
    method: str = "delong",
) -> ROCTestResult:
    """Compare two correlated ROC curves using DeLong's test.

    The two ROC curves must be computed on the **same** subjects (same
    response vector).  The original predictor values and shared response
    are required to compute the paired DeLong covariance.

    Parameters
    ----------
    roc1, roc2 : ROCResult
        Two ROC curves computed on the same subjects.
    predictor1, predictor2 : array of float
        Original predictor values for each method.
    response : array of int
        Shared binary outcome.
    method : str
        ``'delong'`` (only supported method).

    Returns
    -------
    ROCTestResult

    Validates against: R ``pROC::roc.test(paired = TRUE)``
    """
    if method != "delong":
        raise ValueError(f"Only 'delong' method is supported, got {method!r}")

    if predictor1 is None or predictor2 is None or response is None:
        raise ValueError(
            "predictor1, predictor2, and response are required for DeLong test"
        )

    response = np.asarray(response, dtype=np.intp)
    predictor1 = np.asarray(predictor1, dtype=np.float64)
    predictor2 = np.asarray(predictor2, dtype=np.float64)

    n = len(response)
    if predictor1.shape[0] != n or predictor2.shape[0] != n:
        raise ValueError("predictor1, predictor2, and response must have equal length")
    if roc1.n != n or roc2.n != n:
        raise ValueError(
            f"ROC curves were built on {roc1.n} and {roc2.n} observations, "
            f"but {n} paired observations were given"
        )

    n1 = int(response.sum())
    n0 = n - n1
    if n1 < 1 or n0 < 1:
        raise InsufficientDataError("Need at least one case and one control")

    auc1, V10_1, V01_1 = _compute_auc_and_placements(
        response, predictor1, roc1.direction,
    )
    auc2, V10_2, V01_2 = _compute_auc_and_placements(
        response, predictor2, roc2.direction,
    )

    var1 = _delong_variance(V10_1, V01_1, n1, n0)
    var2 = _delong_variance(V10_2, V01_2, n1, n0)

    S10_12 = np.cov(V10_1, V10_2, ddof=1)[0, 1] if n1 > 1 else 0.0
    S01_12 = np.cov(V01_1, V01_2, ddof=1)[0, 1] if n0 > 1 else 0.0
    cov_12 = float(S10_12 / n1 + S01_12 / n0)

    covariance = np.array([[var1, cov_12], [cov_12, var2]])

    var_diff = max(var1 + var2 - 2 * cov_12, 1e-20)

    z_stat = (auc1 - auc2) / np.sqrt(var_diff)
    p_value = 2 * stats.norm.sf(abs(z_stat))

    return ROCTestResult(
        statistic=float(z_stat),
        p_value=float(p_value),
        auc1=auc1,
        auc2=auc2,
        auc_diff=auc1 - auc2,
        covariance=covariance,
        n_positive=n1,
        n_negative=n0,
        method="delong",
    )
