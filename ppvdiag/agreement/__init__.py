"""
Agreement analysis between two PPV computation methods.

Bland-Altman bias and limits of agreement with BCa or percentile
bootstrap intervals, proportional-bias regression, and the generic
bootstrap interval routine behind them.
"""

from ppvdiag.agreement._common import AgreementResult, Estimate, ProportionalBiasResult
from ppvdiag.agreement._bootstrap import bootstrap_ci
from ppvdiag.agreement._bland_altman import (
    agreement_records,
    bland_altman,
    proportional_bias,
)

__all__ = [
    "AgreementResult",
    "Estimate",
    "ProportionalBiasResult",
    "bootstrap_ci",
    "bland_altman",
    "agreement_records",
    "proportional_bias",
]
