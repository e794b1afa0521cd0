"""
Diagnostic accuracy analysis for PPV as a predictor of fluid responsiveness.

ROC analysis with DeLong AUC intervals, paired DeLong comparison of two
PPV methods, optimal cutoff selection, and fixed-cutoff accuracy panels.

Validates against: R packages pROC, OptimalCutpoints, epiR.
"""

from ppvdiag.diagnostic._common import ROCResult, DiagnosticResult
from ppvdiag.diagnostic._roc import roc, roc_test, ROCTestResult
from ppvdiag.diagnostic._accuracy import binomial_ci, diagnostic_accuracy
from ppvdiag.diagnostic._cutoff import optimal_cutoff, CutoffResult

__all__ = [
    "ROCResult",
    "DiagnosticResult",
    "ROCTestResult",
    "CutoffResult",
    "roc",
    "roc_test",
    "binomial_ci",
    "diagnostic_accuracy",
    "optimal_cutoff",
]
