"""Fluid-responsiveness outcome from stroke-volume measurements.

A subject responds to a fluid challenge when stroke volume rises by
more than ``threshold`` (10% by default) relative to baseline.
"""

from __future__ import annotations

import logging

import numpy as np
import pandas as pd

from ppvdiag._config import AnalysisConfig

logger = logging.getLogger(__name__)


def derive_responders(
    responses: pd.DataFrame,
    *,
    before: str = "sv_before",
    after: str = "sv_after",
    config: AnalysisConfig | None = None,
) -> pd.DataFrame:
    """Binary fluid-responsiveness outcome per subject.

    Parameters
    ----------
    responses : DataFrame
        One row per subject with stroke volume before and after the
        fluid challenge.
    before, after : str
        Stroke-volume columns.
    config : AnalysisConfig or None
        Supplies the subject and outcome column names and
        ``responder_threshold``.

    Returns
    -------
    DataFrame
        Columns: subject, ``sv_change`` (relative increase) and the
        outcome column (0/1).  Subjects with a missing or non-positive
        baseline are dropped.
    """
    config = config or AnalysisConfig()
    missing = [c for c in (config.subject, before, after) if c not in responses.columns]
    if missing:
        raise ValueError(f"responses is missing required columns: {missing}")
    if responses[config.subject].duplicated().any():
        raise ValueError(f"{config.subject!r} must be unique in responses")

    sv0 = responses[before].to_numpy(dtype=np.float64)
    sv1 = responses[after].to_numpy(dtype=np.float64)
    valid = np.isfinite(sv0) & np.isfinite(sv1) & (sv0 > 0)
    if not valid.all():
        logger.warning(
            "dropping %d subjects without usable stroke-volume measurements",
            int((~valid).sum()),
        )

    change = (sv1[valid] - sv0[valid]) / sv0[valid]
    return pd.DataFrame({
        config.subject: responses[config.subject].to_numpy()[valid],
        "sv_change": change,
        config.outcome: (change > config.responder_threshold).astype(np.intp),
    })


def attach_outcome(
    observations: pd.DataFrame,
    responders: pd.DataFrame,
    *,
    config: AnalysisConfig | None = None,
) -> pd.DataFrame:
    """Join the outcome onto per-setting observations by subject id.

    Observations of subjects without an outcome are dropped.
    """
    config = config or AnalysisConfig()
    if config.subject not in observations.columns:
        raise ValueError(f"observations is missing column {config.subject!r}")
    if config.outcome in observations.columns:
        raise ValueError(f"observations already has a {config.outcome!r} column")

    merged = observations.merge(
        responders[[config.subject, config.outcome]],
        on=config.subject,
        how="inner",
        validate="many_to_one",
    )
    n_dropped = len(observations) - len(merged)
    if n_dropped:
        logger.info("dropped %d observations without an outcome", n_dropped)
    return merged
