"""Tests for fluid-responsiveness outcome derivation."""

import numpy as np
import pandas as pd
import pytest

from ppvdiag import AnalysisConfig
from ppvdiag.outcome import attach_outcome, derive_responders


@pytest.fixture
def responses():
    return pd.DataFrame({
        "id": [1, 2, 3, 4, 5],
        "sv_before": [60.0, 70.0, 100.0, np.nan, 80.0],
        "sv_after": [70.0, 72.0, 110.0, 90.0, 92.0],
    })


@pytest.fixture
def observations():
    return pd.DataFrame({
        "id": [1, 1, 2, 2, 3, 6],
        "tidal_volume": [6, 8, 6, 8, 6, 6],
        "respiratory_rate": [10, 10, 10, 10, 10, 10],
        "ppv_classic": [14.0, 17.0, 6.0, 8.0, 9.0, 11.0],
    })


class TestDeriveResponders:

    def test_threshold_is_strict(self, responses):
        r = derive_responders(responses)
        outcome = dict(zip(r["id"], r["fluid_responsive"]))
        assert outcome[1] == 1  # +16.7%
        assert outcome[2] == 0  # +2.9%
        assert outcome[3] == 0  # exactly +10%
        assert outcome[5] == 1  # +15%

    def test_relative_change(self, responses):
        r = derive_responders(responses)
        assert r.loc[r["id"] == 5, "sv_change"].iloc[0] == pytest.approx(0.15)

    def test_missing_baseline_dropped(self, responses, caplog):
        with caplog.at_level("WARNING"):
            r = derive_responders(responses)
        assert 4 not in set(r["id"])
        assert "dropping 1" in caplog.text

    def test_custom_threshold(self, responses):
        r = derive_responders(responses, config=AnalysisConfig(responder_threshold=0.05))
        assert r.loc[r["id"] == 3, "fluid_responsive"].iloc[0] == 1

    def test_custom_columns(self, responses):
        renamed = responses.rename(columns={"sv_before": "sv0", "sv_after": "sv1"})
        r = derive_responders(renamed, before="sv0", after="sv1")
        assert len(r) == 4

    def test_duplicate_subjects(self, responses):
        dup = pd.concat([responses, responses.iloc[[0]]])
        with pytest.raises(ValueError, match="unique"):
            derive_responders(dup)

    def test_missing_columns(self, responses):
        with pytest.raises(ValueError, match="sv_after"):
            derive_responders(responses.drop(columns="sv_after"))


class TestAttachOutcome:

    def test_join(self, responses, observations):
        merged = attach_outcome(observations, derive_responders(responses))
        assert len(merged) == 5
        assert set(merged["id"]) == {1, 2, 3}
        assert list(merged.loc[merged["id"] == 1, "fluid_responsive"]) == [1, 1]

    def test_existing_outcome_rejected(self, responses, observations):
        obs = observations.assign(fluid_responsive=0)
        with pytest.raises(ValueError, match="already"):
            attach_outcome(obs, derive_responders(responses))
