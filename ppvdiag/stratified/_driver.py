"""Stratified evaluation across ventilator settings.

Partitions observations by stratum (tidal volume x respiratory rate by
default), runs each unit independently and collects the results into
one table.  A unit that lacks data or has a constant predictor becomes
a row with NaN statistics and an explicit status; it never stops the
other units.  Units share no mutable state, so they may run in a
thread pool; the table is ordered by key regardless of scheduling.

Bootstrap seeds are derived per stratum from the run seed and the
stratum key, so agreement intervals do not depend on ``n_jobs`` or on
which strata are present.
"""

from __future__ import annotations

import logging
import zlib
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pandas as pd

from ppvdiag._config import AnalysisConfig
from ppvdiag._errors import DegenerateInputError, InsufficientDataError
from ppvdiag.agreement._bland_altman import agreement_records, bland_altman
from ppvdiag.diagnostic._accuracy import diagnostic_accuracy
from ppvdiag.diagnostic._cutoff import optimal_cutoff
from ppvdiag.diagnostic._roc import roc, roc_test
from ppvdiag.stratified._common import (
    STATUS_DEGENERATE,
    STATUS_INSUFFICIENT,
    STATUS_OK,
    StratifiedAgreementResult,
    StratifiedROCResult,
)

logger = logging.getLogger(__name__)

ROC_STATS = [
    "auc", "auc_ci_lower", "auc_ci_upper",
    "threshold",
    "sensitivity", "sensitivity_ci_lower", "sensitivity_ci_upper",
    "specificity", "specificity_ci_lower", "specificity_ci_upper",
    "pos_pred_value", "neg_pred_value", "lr_positive", "lr_negative",
]

COMPARISON_STATS = ["auc_a", "auc_b", "auc_diff", "statistic", "p_value"]

AGREEMENT_STATS = [
    "bias", "bias_ci_lower", "bias_ci_upper",
    "loa_lower", "loa_lower_ci_lower", "loa_lower_ci_upper",
    "loa_upper", "loa_upper_ci_lower", "loa_upper_ci_upper",
    "sd",
]


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _require_columns(data: pd.DataFrame, columns: Iterable[str]) -> None:
    missing = [c for c in columns if c not in data.columns]
    if missing:
        raise ValueError(f"data is missing required columns: {missing}")


def _partition(
    data: pd.DataFrame, strata: Sequence[str],
) -> list[tuple[tuple, pd.DataFrame]]:
    """Split rows into (stratum_key, frame) units in sorted key order.

    Rows with a missing stratum value belong to no unit.
    """
    unkeyed = int(data[list(strata)].isna().any(axis=1).sum())
    if unkeyed:
        logger.warning(
            "dropping %d rows with a missing value in stratum columns %s",
            unkeyed, list(strata),
        )
    units = []
    for key, frame in data.groupby(list(strata), sort=True):
        if not isinstance(key, tuple):
            key = (key,)
        units.append((key, frame))
    return units


def _unit_seed(seed: int, key: tuple) -> np.random.SeedSequence:
    """Seed for one stratum, stable across runs and execution order."""
    tag = zlib.crc32("|".join(str(v) for v in key).encode("utf-8"))
    return np.random.SeedSequence([seed, tag])


def _run_units(fn: Callable, units: list, n_jobs: int) -> list:
    """Apply ``fn`` to every unit, in a thread pool when ``n_jobs > 1``."""
    if n_jobs == 1 or len(units) < 2:
        return [fn(u) for u in units]
    with ThreadPoolExecutor(max_workers=n_jobs) as pool:
        return list(pool.map(fn, units))


def _failure_status(exc: Exception) -> str:
    if isinstance(exc, DegenerateInputError):
        return STATUS_DEGENERATE
    return STATUS_INSUFFICIENT


def _outcome_array(frame: pd.DataFrame, outcome: str) -> np.ndarray:
    return frame[outcome].to_numpy().astype(np.intp)


def _key_columns(strata: Sequence[str], key: tuple) -> dict:
    return dict(zip(strata, key))


# ---------------------------------------------------------------------------
# Public API: evaluate_strata()
# ---------------------------------------------------------------------------

def evaluate_strata(
    data: pd.DataFrame,
    predictors: Sequence[str],
    *,
    config: AnalysisConfig | None = None,
) -> StratifiedROCResult:
    """ROC, AUC and optimal cutoff for every stratum x predictor.

    Parameters
    ----------
    data : DataFrame
        One row per subject and ventilator setting, with the stratum
        columns, the binary outcome column and one column per
        predictor method.  Missing predictor values are dropped per
        predictor column.
    predictors : sequence of str
        Predictor columns to evaluate, e.g. ``["ppv_classic", "ppv_gam"]``.
    config : AnalysisConfig or None
        Run configuration; defaults to ``AnalysisConfig()``.

    Returns
    -------
    StratifiedROCResult
    """
    config = config or AnalysisConfig()
    predictors = list(predictors)
    if not predictors:
        raise ValueError("predictors must name at least one column")
    _require_columns(data, [*config.strata, config.outcome, *predictors])

    units = [
        (key, method, frame)
        for key, frame in _partition(data, config.strata)
        for method in predictors
    ]

    def evaluate(unit):
        key, method, frame = unit
        sub = frame[[config.outcome, method]].dropna()
        response = _outcome_array(sub, config.outcome)
        row = {
            **_key_columns(config.strata, key),
            "method": method,
            "n": len(sub),
            "n_positive": int(np.sum(response == 1)),
            "n_negative": int(np.sum(response == 0)),
        }
        try:
            r = roc(
                response,
                sub[method].to_numpy(dtype=np.float64),
                direction=config.direction,
                conf_level=config.conf_level,
                ci_transform=config.ci_transform,
            )
            c = optimal_cutoff(
                r, method=config.cutoff_method, ci_method=config.proportion_ci,
            )
            acc = diagnostic_accuracy(
                response,
                sub[method].to_numpy(dtype=np.float64),
                cutoff=c.cutoff,
                direction=r.direction,
                conf_level=config.conf_level,
                ci_method=config.proportion_ci,
            )
        except (InsufficientDataError, DegenerateInputError) as exc:
            logger.warning("stratum %s, %s: %s", key, method, exc)
            row.update(dict.fromkeys(ROC_STATS, np.nan))
            row.update(status=_failure_status(exc), message=str(exc))
            return row, None

        row.update(
            auc=r.auc,
            auc_ci_lower=r.auc_ci_lower,
            auc_ci_upper=r.auc_ci_upper,
            threshold=c.cutoff,
            sensitivity=c.sensitivity,
            sensitivity_ci_lower=c.sensitivity_ci[0],
            sensitivity_ci_upper=c.sensitivity_ci[1],
            specificity=c.specificity,
            specificity_ci_lower=c.specificity_ci[0],
            specificity_ci_upper=c.specificity_ci[1],
            pos_pred_value=acc.pos_pred_value,
            neg_pred_value=acc.neg_pred_value,
            lr_positive=acc.lr_positive,
            lr_negative=acc.lr_negative,
            status=STATUS_OK,
            message="",
        )
        return row, r

    outputs = _run_units(evaluate, units, config.n_jobs)

    columns = [
        *config.strata, "method", "n", "n_positive", "n_negative",
        *ROC_STATS, "status", "message",
    ]
    table = pd.DataFrame([row for row, _ in outputs], columns=columns)
    curves = {
        (unit[0], unit[1]): r
        for unit, (_, r) in zip(units, outputs)
        if r is not None
    }

    logger.info(
        "evaluated %d units over %d predictors, %d failed",
        len(table), len(predictors), int((table["status"] != STATUS_OK).sum()),
    )
    return StratifiedROCResult(table=table, curves=curves, strata=tuple(config.strata))


# ---------------------------------------------------------------------------
# Public API: compare_methods()
# ---------------------------------------------------------------------------

def compare_methods(
    data: pd.DataFrame,
    method_a: str,
    method_b: str,
    *,
    config: AnalysisConfig | None = None,
) -> pd.DataFrame:
    """Paired DeLong test of two predictors within every stratum.

    Only subjects with both predictor values present enter a
    stratum's comparison.  Returns one row per stratum.
    """
    config = config or AnalysisConfig()
    _require_columns(data, [*config.strata, config.outcome, method_a, method_b])

    units = _partition(data, config.strata)

    def compare(unit):
        key, frame = unit
        sub = frame[[config.outcome, method_a, method_b]].dropna()
        response = _outcome_array(sub, config.outcome)
        pred_a = sub[method_a].to_numpy(dtype=np.float64)
        pred_b = sub[method_b].to_numpy(dtype=np.float64)
        row = {
            **_key_columns(config.strata, key),
            "method_a": method_a,
            "method_b": method_b,
            "n": len(sub),
        }
        try:
            r_a = roc(response, pred_a, direction=config.direction,
                      conf_level=config.conf_level)
            r_b = roc(response, pred_b, direction=config.direction,
                      conf_level=config.conf_level)
            t = roc_test(r_a, r_b, predictor1=pred_a, predictor2=pred_b,
                         response=response)
        except (InsufficientDataError, DegenerateInputError) as exc:
            logger.warning("stratum %s, %s vs %s: %s", key, method_a, method_b, exc)
            row.update(dict.fromkeys(COMPARISON_STATS, np.nan))
            row.update(status=_failure_status(exc), message=str(exc))
            return row

        row.update(
            auc_a=t.auc1,
            auc_b=t.auc2,
            auc_diff=t.auc_diff,
            statistic=t.statistic,
            p_value=t.p_value,
            status=STATUS_OK,
            message="",
        )
        return row

    rows = _run_units(compare, units, config.n_jobs)
    columns = [
        *config.strata, "method_a", "method_b", "n",
        *COMPARISON_STATS, "status", "message",
    ]
    return pd.DataFrame(rows, columns=columns)


# ---------------------------------------------------------------------------
# Public API: agreement_by_stratum()
# ---------------------------------------------------------------------------

def agreement_by_stratum(
    data: pd.DataFrame,
    method_a: str,
    method_b: str,
    *,
    config: AnalysisConfig | None = None,
) -> StratifiedAgreementResult:
    """Bland-Altman analysis of ``method_a - method_b`` within every stratum.

    Each stratum's bootstrap draws from its own generator seeded from
    ``config.seed`` and the stratum key.
    """
    config = config or AnalysisConfig()
    _require_columns(data, [*config.strata, method_a, method_b])

    units = _partition(data, config.strata)

    def agree(unit):
        key, frame = unit
        a = frame[method_a].to_numpy(dtype=np.float64)
        b = frame[method_b].to_numpy(dtype=np.float64)
        records = agreement_records(a, b)
        for col, val in _key_columns(config.strata, key).items():
            records[col] = val

        row = {**_key_columns(config.strata, key), "n": len(records)}
        try:
            res = bland_altman(
                a, b,
                n_resamples=config.n_resamples,
                conf_level=config.conf_level,
                loa_z=config.loa_z,
                method=config.bootstrap_method,
                seed=_unit_seed(config.seed, key),
            )
        except InsufficientDataError as exc:
            logger.warning("stratum %s, %s - %s: %s", key, method_a, method_b, exc)
            row.update(dict.fromkeys(AGREEMENT_STATS, np.nan))
            row.update(status=STATUS_INSUFFICIENT, message=str(exc))
            return row, records, None

        row.update(
            bias=res.bias.estimate,
            bias_ci_lower=res.bias.lower,
            bias_ci_upper=res.bias.upper,
            loa_lower=res.loa_lower.estimate,
            loa_lower_ci_lower=res.loa_lower.lower,
            loa_lower_ci_upper=res.loa_lower.upper,
            loa_upper=res.loa_upper.estimate,
            loa_upper_ci_lower=res.loa_upper.lower,
            loa_upper_ci_upper=res.loa_upper.upper,
            sd=res.sd,
            status=STATUS_OK,
            message="",
        )
        return row, records, res

    outputs = _run_units(agree, units, config.n_jobs)

    columns = [*config.strata, "n", *AGREEMENT_STATS, "status", "message"]
    table = pd.DataFrame([row for row, _, _ in outputs], columns=columns)
    record_columns = [*config.strata, "a", "b", "mean", "difference"]
    record_frames = [rec for _, rec, _ in outputs if len(rec)]
    if record_frames:
        records = pd.concat(record_frames, ignore_index=True)[record_columns]
    else:
        records = pd.DataFrame(columns=record_columns)
    results = {
        unit[0]: res
        for unit, (_, _, res) in zip(units, outputs)
        if res is not None
    }

    logger.info(
        "agreement of %s - %s over %d strata, %d failed",
        method_a, method_b, len(table), int((table["status"] != STATUS_OK).sum()),
    )
    return StratifiedAgreementResult(
        table=table,
        records=records,
        results=results,
        method_a=method_a,
        method_b=method_b,
        strata=tuple(config.strata),
    )
