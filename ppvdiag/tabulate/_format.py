"""Display formatting of stratified results.

Turns the numeric result tables into report rows with one
``"estimate [lower; upper]"`` string per statistic.  Undefined values
render as ``"NA"``.
"""

from __future__ import annotations

import math

import pandas as pd

from ppvdiag.stratified._common import StratifiedAgreementResult, StratifiedROCResult

NA = "NA"


def _finite(value) -> bool:
    return value is not None and not pd.isna(value) and math.isfinite(value)


def format_number(value: float, digits: int = 2) -> str:
    """Fixed-point number, or ``"NA"`` when undefined."""
    return f"{value:.{digits}f}" if _finite(value) else NA


def format_estimate(
    estimate: float, lower: float, upper: float, digits: int = 2,
) -> str:
    """Format ``estimate [lower; upper]``.

    Returns ``"NA"`` when the estimate is undefined and
    ``"estimate [NA; NA]"`` when only the interval is.
    """
    if not _finite(estimate):
        return NA
    return (
        f"{estimate:.{digits}f} "
        f"[{format_number(lower, digits)}; {format_number(upper, digits)}]"
    )


def _formatted(table: pd.DataFrame, stats: dict[str, str], digits: int) -> dict:
    return {
        label: [
            format_estimate(e, lo, hi, digits)
            for e, lo, hi in zip(
                table[col], table[f"{col}_ci_lower"], table[f"{col}_ci_upper"],
            )
        ]
        for label, col in stats.items()
    }


def roc_table(result: StratifiedROCResult, digits: int = 2) -> pd.DataFrame:
    """Display table of a stratified ROC analysis, one row per unit."""
    t = result.table
    out = t[[*result.strata, "method", "n"]].copy()
    out["AUC"] = _formatted(t, {"AUC": "auc"}, digits)["AUC"]
    out["Threshold"] = [format_number(v, 1) for v in t["threshold"]]
    cols = _formatted(
        t, {"Sensitivity": "sensitivity", "Specificity": "specificity"}, digits,
    )
    out["Sensitivity"] = cols["Sensitivity"]
    out["Specificity"] = cols["Specificity"]
    return out.reset_index(drop=True)


def agreement_table(
    result: StratifiedAgreementResult, digits: int = 2,
) -> pd.DataFrame:
    """Display table of a stratified Bland-Altman analysis, one row per stratum."""
    t = result.table
    out = t[[*result.strata, "n"]].copy()
    cols = _formatted(
        t,
        {"Bias": "bias", "Lower LoA": "loa_lower", "Upper LoA": "loa_upper"},
        digits,
    )
    for label, values in cols.items():
        out[label] = values
    return out.reset_index(drop=True)
