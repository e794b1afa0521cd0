"""Shared result types for diagnostic accuracy analysis."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pandas as pd
from numpy.typing import NDArray


@dataclass(frozen=True)
class ROCResult:
    """Result of ROC analysis.

    Attributes
    ----------
    thresholds : array
        Thresholds at which TPR/FPR are evaluated, one per distinct
        predictor value.  Includes ``-inf`` and ``+inf`` so the curve
        always passes through (0,0) and (1,1).
    tpr : array
        True positive rate (sensitivity) at each threshold.
    fpr : array
        False positive rate (1 - specificity) at each threshold.
    auc : float
        Area under the ROC curve (Mann-Whitney U / (n1*n0)).
    auc_se : float
        DeLong standard error of the AUC.
    auc_ci_lower, auc_ci_upper : float
        Confidence interval for AUC.
    conf_level : float
        Confidence level used for CI.
    n_positive, n_negative : int
        Number of positive (responder) and negative observations.
    direction : str
        ``'<'`` (controls < cases) or ``'>'`` (controls > cases).
    ci_transform : str
        Scale the AUC CI was built on, ``'normal'`` or ``'logit'``.
    """

    thresholds: NDArray[np.floating]
    tpr: NDArray[np.floating]  # sensitivity / true positive rate
    fpr: NDArray[np.floating]  # 1 - specificity / false positive rate
    auc: float
    auc_se: float  # DeLong standard error
    auc_ci_lower: float
    auc_ci_upper: float
    conf_level: float
    n_positive: int
    n_negative: int
    direction: str  # '<' or '>'
    ci_transform: str = "normal"

    @property
    def sensitivity(self) -> NDArray[np.floating]:
        return self.tpr

    @property
    def specificity(self) -> NDArray[np.floating]:
        return 1.0 - self.fpr

    @property
    def n(self) -> int:
        return self.n_positive + self.n_negative

    def curve(self) -> pd.DataFrame:
        """ROC curve points as a (threshold, sensitivity, specificity) table."""
        return pd.DataFrame({
            "threshold": self.thresholds,
            "sensitivity": self.sensitivity,
            "specificity": self.specificity,
        })

    def summary(self) -> str:
        """Human-readable summary."""
        lines = [
            "ROC Analysis",
            "=" * 40,
            f"Direction   : controls {self.direction} cases",
            f"AUC         : {self.auc:.4f}",
            f"DeLong SE   : {self.auc_se:.4f}",
            f"{self.conf_level:.0%} CI      : [{self.auc_ci_lower:.4f}, {self.auc_ci_upper:.4f}]"
            f" ({self.ci_transform})",
            f"n positive  : {self.n_positive}",
            f"n negative  : {self.n_negative}",
            f"n thresholds: {len(self.thresholds)}",
        ]
        return "\n".join(lines)


@dataclass(frozen=True)
class DiagnosticResult:
    """2x2 table and accuracy panel of a PPV cutoff.

    Sensitivity and specificity CIs use ``method``; the odds-ratio CI is
    on the log scale.
    """

    cutoff: float
    direction: str
    true_pos: int
    false_pos: int
    false_neg: int
    true_neg: int
    sensitivity: float
    sensitivity_ci: tuple[float, float]
    specificity: float
    specificity_ci: tuple[float, float]
    pos_pred_value: float
    neg_pred_value: float
    lr_positive: float
    lr_negative: float
    dor: float
    dor_ci: tuple[float, float]
    prevalence: float
    conf_level: float
    method: str

    @property
    def n(self) -> int:
        return self.true_pos + self.false_pos + self.false_neg + self.true_neg

    def summary(self) -> str:
        """Human-readable summary."""
        pct = f"{self.conf_level:.0%} CI"
        call = ">=" if self.direction == "<" else "<="
        lines = [
            "Accuracy at PPV cutoff",
            "=" * 40,
            f"Rule          : responder if PPV {call} {self.cutoff:.4g}",
            f"TP/FP/FN/TN   : {self.true_pos}/{self.false_pos}/"
            f"{self.false_neg}/{self.true_neg}",
            f"Sensitivity   : {self.sensitivity:.4f}  "
            f"({pct}: {self.sensitivity_ci[0]:.4f}-{self.sensitivity_ci[1]:.4f})",
            f"Specificity   : {self.specificity:.4f}  "
            f"({pct}: {self.specificity_ci[0]:.4f}-{self.specificity_ci[1]:.4f})",
            f"Pos predictive: {self.pos_pred_value:.4f}",
            f"Neg predictive: {self.neg_pred_value:.4f}",
            f"LR+ / LR-     : {self.lr_positive:.4f} / {self.lr_negative:.4f}",
            f"DOR           : {self.dor:.4f}  "
            f"({pct}: {self.dor_ci[0]:.4f}-{self.dor_ci[1]:.4f})",
            f"Prevalence    : {self.prevalence:.4f}",
            f"CI method     : {self.method}",
        ]
        return "\n".join(lines)
