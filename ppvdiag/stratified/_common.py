"""Result types for stratified analyses."""

from __future__ import annotations

from dataclasses import dataclass, field

import pandas as pd

from ppvdiag.agreement._common import AgreementResult
from ppvdiag.diagnostic._common import ROCResult

# Values of the ``status`` column
STATUS_OK = "ok"
STATUS_INSUFFICIENT = "insufficient_data"
STATUS_DEGENERATE = "degenerate"


def _status_line(table: pd.DataFrame) -> str:
    counts = table["status"].value_counts()
    return ", ".join(f"{k}={v}" for k, v in counts.items())


@dataclass(frozen=True)
class StratifiedROCResult:
    """ROC and optimal-cutoff results for every stratum x method unit.

    Attributes
    ----------
    table : DataFrame
        One row per stratum x method, in sorted key order.  Failed
        units carry NaN statistics and a non-``'ok'`` status.
    curves : dict
        ``(stratum_key, method) -> ROCResult`` for successful units.
    strata : tuple of str
        Stratum column names.
    """

    table: pd.DataFrame
    curves: dict[tuple[tuple, str], ROCResult] = field(repr=False)
    strata: tuple[str, ...]

    @property
    def failures(self) -> pd.DataFrame:
        return self.table[self.table["status"] != STATUS_OK]

    def curve_points(self) -> pd.DataFrame:
        """Long table of ROC curve points for plotting."""
        frames = []
        for (key, method), r in self.curves.items():
            pts = r.curve()
            for col, val in zip(self.strata, key):
                pts[col] = val
            pts["method"] = method
            frames.append(pts)
        columns = [*self.strata, "method", "threshold", "sensitivity", "specificity"]
        if not frames:
            return pd.DataFrame(columns=columns)
        return pd.concat(frames, ignore_index=True)[columns]

    def summary(self) -> str:
        lines = [
            "Stratified ROC Analysis",
            "=" * 40,
            f"Strata      : {' x '.join(self.strata)}",
            f"Units       : {len(self.table)}",
            f"Status      : {_status_line(self.table)}",
        ]
        return "\n".join(lines)


@dataclass(frozen=True)
class StratifiedAgreementResult:
    """Bland-Altman results for every stratum.

    Attributes
    ----------
    table : DataFrame
        One row per stratum with bias and limits of agreement.
    records : DataFrame
        Per-pair means and differences with stratum columns.
    results : dict
        ``stratum_key -> AgreementResult`` for successful strata.
    method_a, method_b : str
        Compared columns; differences are ``method_a - method_b``.
    strata : tuple of str
        Stratum column names.
    """

    table: pd.DataFrame
    records: pd.DataFrame = field(repr=False)
    results: dict[tuple, AgreementResult] = field(repr=False)
    method_a: str
    method_b: str
    strata: tuple[str, ...]

    @property
    def failures(self) -> pd.DataFrame:
        return self.table[self.table["status"] != STATUS_OK]

    def summary(self) -> str:
        lines = [
            "Stratified Bland-Altman Analysis",
            "=" * 40,
            f"Difference  : {self.method_a} - {self.method_b}",
            f"Strata      : {' x '.join(self.strata)}",
            f"Units       : {len(self.table)}",
            f"Status      : {_status_line(self.table)}",
        ]
        return "\n".join(lines)
