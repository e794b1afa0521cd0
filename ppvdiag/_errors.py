"""Exception types shared across ppvdiag."""

from __future__ import annotations


class InsufficientDataError(ValueError):
    """A unit lacks the observations a statistic needs.

    Raised when an ROC analysis has no case or no control, or when an
    agreement analysis has fewer than two paired differences.
    """


class DegenerateInputError(ValueError):
    """All predictor values in a unit are identical; AUC is undefined."""
