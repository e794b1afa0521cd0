"""
Stratified evaluation of PPV methods across ventilator settings.

Applies ROC/cutoff analysis, paired DeLong comparison and Bland-Altman
agreement independently within every stratum, isolating failures per
unit.
"""

from ppvdiag.stratified._common import (
    STATUS_DEGENERATE,
    STATUS_INSUFFICIENT,
    STATUS_OK,
    StratifiedAgreementResult,
    StratifiedROCResult,
)
from ppvdiag.stratified._driver import (
    agreement_by_stratum,
    compare_methods,
    evaluate_strata,
)

__all__ = [
    "STATUS_OK",
    "STATUS_INSUFFICIENT",
    "STATUS_DEGENERATE",
    "StratifiedROCResult",
    "StratifiedAgreementResult",
    "evaluate_strata",
    "compare_methods",
    "agreement_by_stratum",
]
