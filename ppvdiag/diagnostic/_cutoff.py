"""Optimal cutoff selection for diagnostic tests.

Two methods: Youden index (maximize sensitivity + specificity - 1) and
closest-to-top-left (minimize Euclidean distance to the (0,1) corner).
Ties on the criterion are broken by the highest specificity, then by
the first threshold in curve order.  Sensitivity and specificity at the
chosen cutoff get binomial CIs conditioned on the class sizes.

Validates against: R ``pROC::coords(x = "best")``,
``OptimalCutpoints::optimal.cutpoints()``.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from ppvdiag.diagnostic._accuracy import CI_METHODS, binomial_ci
from ppvdiag.diagnostic._common import ROCResult

# Criterion values closer than this are treated as tied
_TIE_TOL = 1e-12


@dataclass(frozen=True)
class CutoffResult:
    """Result of optimal cutoff selection.

    ``tied_cutoffs`` lists every finite threshold whose criterion value
    ties with the optimum, in curve order, before the specificity
    tie-break was applied.
    """

    cutoff: float
    sensitivity: float
    sensitivity_ci: tuple[float, float]
    specificity: float
    specificity_ci: tuple[float, float]
    method: str  # 'youden', 'closest_topleft'
    criterion_value: float  # value of the optimization criterion
    tied_cutoffs: tuple[float, ...]
    direction: str
    conf_level: float
    ci_method: str

    @property
    def youden(self) -> float:
        return self.sensitivity + self.specificity - 1.0

    def summary(self) -> str:
        """Human-readable summary."""
        lines = [
            "Optimal Cutoff",
            "=" * 40,
            f"Method        : {self.method}",
            f"Cutoff        : {self.cutoff:.4g} (direction {self.direction})",
            f"Criterion     : {self.criterion_value:.4f}",
            f"Sensitivity   : {self.sensitivity:.4f}  "
            f"({self.conf_level:.0%} CI: {self.sensitivity_ci[0]:.4f}-{self.sensitivity_ci[1]:.4f})",
            f"Specificity   : {self.specificity:.4f}  "
            f"({self.conf_level:.0%} CI: {self.specificity_ci[0]:.4f}-{self.specificity_ci[1]:.4f})",
            f"Tied cutoffs  : {len(self.tied_cutoffs)}",
            f"CI method     : {self.ci_method}",
        ]
        return "\n".join(lines)


def optimal_cutoff(
    roc_result: ROCResult,
    *,
    method: str = "youden",
    conf_level: float | None = None,
    ci_method: str = "clopper-pearson",
) -> CutoffResult:
    """Find optimal classification cutoff from an ROC curve.

    Parameters
    ----------
    roc_result : ROCResult
        A computed ROC curve.
    method : str
        ``'youden'``: maximize sensitivity + specificity - 1.
        ``'closest_topleft'``: minimize distance to ``(FPR=0, TPR=1)``.
    conf_level : float or None
        Confidence level for the sensitivity/specificity CIs.  Defaults
        to the level the ROC curve was built with.
    ci_method : str
        ``'clopper-pearson'`` (exact) or ``'wilson'``.

    Returns
    -------
    CutoffResult
    """
    valid_methods = ("youden", "closest_topleft")
    if method not in valid_methods:
        raise ValueError(
            f"method must be one of {valid_methods}, got {method!r}"
        )
    if ci_method not in CI_METHODS:
        raise ValueError(
            f"ci_method must be 'clopper-pearson' or 'wilson', got {ci_method!r}"
        )
    if conf_level is None:
        conf_level = roc_result.conf_level
    if not 0 < conf_level < 1:
        raise ValueError(f"conf_level must be in (0, 1), got {conf_level}")

    # The infinite boundaries classify nobody / everybody positive
    finite_mask = np.isfinite(roc_result.thresholds)
    if finite_mask.sum() == 0:
        raise ValueError("ROC result has no finite thresholds")

    tpr_f = roc_result.tpr[finite_mask]
    fpr_f = roc_result.fpr[finite_mask]
    thresh_f = roc_result.thresholds[finite_mask]
    spec_f = 1.0 - fpr_f

    if method == "youden":
        # J = sens + spec - 1 = TPR - FPR; negate so lower is better
        score = -(tpr_f - fpr_f)
    else:
        score = np.sqrt(fpr_f ** 2 + (1.0 - tpr_f) ** 2)

    tied = np.flatnonzero(score <= score.min() + _TIE_TOL)
    best_spec = spec_f[tied].max()
    best_idx = int(tied[spec_f[tied] >= best_spec - _TIE_TOL][0])

    crit_val = float(-score[best_idx]) if method == "youden" else float(score[best_idx])

    n1, n0 = roc_result.n_positive, roc_result.n_negative
    tp = int(round(tpr_f[best_idx] * n1))
    tn = int(round(spec_f[best_idx] * n0))

    return CutoffResult(
        cutoff=float(thresh_f[best_idx]),
        sensitivity=float(tpr_f[best_idx]),
        sensitivity_ci=binomial_ci(tp, n1, conf_level, ci_method),
        specificity=float(spec_f[best_idx]),
        specificity_ci=binomial_ci(tn, n0, conf_level, ci_method),
        method=method,
        criterion_value=crit_val,
        tied_cutoffs=tuple(float(t) for t in thresh_f[tied]),
        direction=roc_result.direction,
        conf_level=conf_level,
        ci_method=ci_method,
    )
