"""
ppvdiag: diagnostic performance of pulse pressure variation.

Evaluates pulse pressure variation (PPV) as a predictor of fluid
responsiveness across ventilator settings: ROC analysis with DeLong
intervals, optimal cutoffs, Bland-Altman agreement between PPV methods
with bootstrap intervals, and stratified drivers with per-unit failure
isolation.

Usage:
    from ppvdiag import diagnostic, agreement, stratified, tabulate, outcome
"""

__version__ = "0.1.0"

from ppvdiag._config import AnalysisConfig
from ppvdiag._errors import DegenerateInputError, InsufficientDataError
from ppvdiag import diagnostic
from ppvdiag import agreement
from ppvdiag import stratified
from ppvdiag import tabulate
from ppvdiag import outcome

__all__ = [
    "__version__",
    "AnalysisConfig",
    "InsufficientDataError",
    "DegenerateInputError",
    "diagnostic",
    "agreement",
    "stratified",
    "tabulate",
    "outcome",
]
