"""Accuracy of a PPV cutoff from its 2x2 table.

Sensitivity and specificity with exact (Clopper-Pearson) or Wilson
CIs, positive and negative predictive values with optional prevalence
adjustment, likelihood ratios, and the diagnostic odds ratio (DOR) with
a log-scale CI.  Throughout, "PPV" is pulse pressure variation; the
predictive values are spelled out.

Validates against: R ``epiR::epi.tests()``.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray
from scipy import stats

from ppvdiag._errors import InsufficientDataError
from ppvdiag.diagnostic._common import DiagnosticResult

CI_METHODS = ("clopper-pearson", "wilson")


# ---------------------------------------------------------------------------
# CI helpers for binomial proportions
# ---------------------------------------------------------------------------

def _clopper_pearson_ci(
    k: int, n: int, conf_level: float,
) -> tuple[float, float]:
    """Exact Clopper-Pearson CI for binomial proportion k/n."""
    alpha = 1 - conf_level
    if k == 0:
        lo = 0.0
        hi = 1.0 - (alpha / 2) ** (1.0 / n)
    elif k == n:
        lo = (alpha / 2) ** (1.0 / n)
        hi = 1.0
    else:
        lo = float(stats.beta.ppf(alpha / 2, k, n - k + 1))
        hi = float(stats.beta.ppf(1 - alpha / 2, k + 1, n - k))
    return lo, hi


def _wilson_ci(
    k: int, n: int, conf_level: float,
) -> tuple[float, float]:
    """Wilson score CI for binomial proportion k/n."""
    p_hat = k / n
    z = stats.norm.ppf((1 + conf_level) / 2)
    z2 = z ** 2
    denom = 1 + z2 / n
    centre = (p_hat + z2 / (2 * n)) / denom
    margin = z / denom * np.sqrt(p_hat * (1 - p_hat) / n + z2 / (4 * n ** 2))
    return float(max(0.0, centre - margin)), float(min(1.0, centre + margin))


def binomial_ci(
    k: int, n: int, conf_level: float = 0.95, method: str = "clopper-pearson",
) -> tuple[float, float]:
    """Confidence interval for the proportion ``k / n``.

    ``method`` is ``'clopper-pearson'`` (exact) or ``'wilson'``.
    """
    if n < 1:
        raise InsufficientDataError("binomial CI needs n >= 1")
    if not 0 <= k <= n:
        raise ValueError(f"k must be in [0, n], got k={k}, n={n}")
    if method == "clopper-pearson":
        return _clopper_pearson_ci(k, n, conf_level)
    elif method == "wilson":
        return _wilson_ci(k, n, conf_level)
    else:
        raise ValueError(
            f"ci_method must be 'clopper-pearson' or 'wilson', got {method!r}"
        )


# ---------------------------------------------------------------------------
# 2x2 table at a cutoff
# ---------------------------------------------------------------------------

def _confusion_counts(
    response: NDArray[np.intp], called_positive: NDArray[np.bool_],
) -> tuple[int, int, int, int]:
    """(true_pos, false_pos, false_neg, true_neg)."""
    responder = response == 1
    return (
        int(np.count_nonzero(called_positive & responder)),
        int(np.count_nonzero(called_positive & ~responder)),
        int(np.count_nonzero(~called_positive & responder)),
        int(np.count_nonzero(~called_positive & ~responder)),
    )


def _predictive_values(
    sens: float, spec: float, prevalence: float,
) -> tuple[float, float]:
    """Positive and negative predictive value by Bayes' theorem."""
    called_pos = sens * prevalence + (1 - spec) * (1 - prevalence)
    called_neg = (1 - sens) * prevalence + spec * (1 - prevalence)
    pos = sens * prevalence / called_pos if called_pos > 0 else np.nan
    neg = spec * (1 - prevalence) / called_neg if called_neg > 0 else np.nan
    return float(pos), float(neg)


def _likelihood_ratios(sens: float, spec: float) -> tuple[float, float]:
    lr_pos = sens / (1 - spec) if spec < 1 else np.inf
    lr_neg = (1 - sens) / spec if spec > 0 else np.inf
    return float(lr_pos), float(lr_neg)


def _odds_ratio(
    counts: tuple[int, int, int, int], conf_level: float,
) -> tuple[float, tuple[float, float]]:
    """Diagnostic odds ratio with a Woolf log-scale interval.

    Adds 0.5 to every cell when any cell is empty (Haldane).
    """
    cells = np.asarray(counts, dtype=np.float64)
    if np.any(cells == 0):
        cells = cells + 0.5
    tp, fp, fn, tn = cells
    log_or = np.log(tp * tn / (fp * fn))
    half_width = stats.norm.ppf((1 + conf_level) / 2) * np.sqrt(np.sum(1 / cells))
    return (
        float(np.exp(log_or)),
        (float(np.exp(log_or - half_width)), float(np.exp(log_or + half_width))),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def diagnostic_accuracy(
    response: NDArray[np.integer],
    predictor: NDArray[np.floating],
    *,
    cutoff: float,
    direction: str = "<",
    prevalence: float | None = None,
    conf_level: float = 0.95,
    ci_method: str = "clopper-pearson",
) -> DiagnosticResult:
    """Accuracy panel of pulse pressure variation at a fixed cutoff.

    Parameters
    ----------
    response : array of int
        Fluid responsiveness (0/1).
    predictor : array of float
        PPV values.
    cutoff : float
        A measurement is called a responder when PPV ``>= cutoff``
        (direction ``'<'``) or ``<= cutoff`` (direction ``'>'``).
    direction : str
        ``'<'`` or ``'>'``, as in :func:`roc`.
    prevalence : float or None
        Responder prevalence used for the predictive values; the sample
        prevalence when ``None``.
    conf_level : float
        Confidence level of all intervals.
    ci_method : str
        Binomial interval for sensitivity and specificity,
        ``'clopper-pearson'`` or ``'wilson'``.

    Returns
    -------
    DiagnosticResult

    Validates against: R ``epiR::epi.tests()``
    """
    response = np.asarray(response, dtype=np.intp)
    predictor = np.asarray(predictor, dtype=np.float64)

    if response.ndim != 1 or predictor.ndim != 1:
        raise ValueError("response and predictor must be 1-D")
    if response.shape != predictor.shape:
        raise ValueError("response and predictor must have equal length")
    if direction not in ("<", ">"):
        raise ValueError(f"direction must be '<' or '>', got {direction!r}")
    if not 0 < conf_level < 1:
        raise ValueError(f"conf_level must be in (0, 1), got {conf_level}")
    if ci_method not in CI_METHODS:
        raise ValueError(
            f"ci_method must be 'clopper-pearson' or 'wilson', got {ci_method!r}"
        )
    if prevalence is not None and not 0 < prevalence < 1:
        raise ValueError(f"prevalence must be in (0, 1), got {prevalence}")

    called = predictor >= cutoff if direction == "<" else predictor <= cutoff
    counts = _confusion_counts(response, called)
    tp, fp, fn, tn = counts
    n_pos, n_neg = tp + fn, fp + tn
    if n_pos == 0 or n_neg == 0:
        raise InsufficientDataError(
            f"Need at least one case and one control, got {n_pos} cases and {n_neg} controls"
        )

    sens, spec = tp / n_pos, tn / n_neg
    prev = n_pos / (n_pos + n_neg) if prevalence is None else prevalence
    pos_pred, neg_pred = _predictive_values(sens, spec, prev)
    lr_pos, lr_neg = _likelihood_ratios(sens, spec)
    dor, dor_ci = _odds_ratio(counts, conf_level)

    return DiagnosticResult(
        cutoff=float(cutoff),
        direction=direction,
        true_pos=tp,
        false_pos=fp,
        false_neg=fn,
        true_neg=tn,
        sensitivity=float(sens),
        sensitivity_ci=binomial_ci(tp, n_pos, conf_level, ci_method),
        specificity=float(spec),
        specificity_ci=binomial_ci(tn, n_neg, conf_level, ci_method),
        pos_pred_value=pos_pred,
        neg_pred_value=neg_pred,
        lr_positive=lr_pos,
        lr_negative=lr_neg,
        dor=dor,
        dor_ci=dor_ci,
        prevalence=float(prev),
        conf_level=conf_level,
        method=ci_method,
    )
