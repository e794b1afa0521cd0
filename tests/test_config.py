"""Tests for the analysis configuration model."""

import pytest
from pydantic import ValidationError

from ppvdiag import AnalysisConfig


class TestAnalysisConfig:

    def test_defaults(self):
        cfg = AnalysisConfig()
        assert cfg.conf_level == 0.95
        assert cfg.direction == "<"
        assert cfg.n_resamples == 4000
        assert cfg.bootstrap_method == "bca"
        assert cfg.loa_z == 1.96
        assert cfg.strata == ("tidal_volume", "respiratory_rate")
        assert cfg.responder_threshold == 0.10

    def test_frozen(self):
        cfg = AnalysisConfig()
        with pytest.raises(ValidationError):
            cfg.seed = 7

    def test_unknown_field(self):
        with pytest.raises(ValidationError):
            AnalysisConfig(n_bootstrap=100)

    @pytest.mark.parametrize("level", [0.0, 1.0, 1.5])
    def test_conf_level_bounds(self, level):
        with pytest.raises(ValidationError):
            AnalysisConfig(conf_level=level)

    def test_literal_choices(self):
        with pytest.raises(ValidationError):
            AnalysisConfig(bootstrap_method="basic")

    def test_strata_must_be_non_empty(self):
        with pytest.raises(ValidationError, match="at least one"):
            AnalysisConfig(strata=())

    def test_strata_unique(self):
        with pytest.raises(ValidationError, match="unique"):
            AnalysisConfig(strata=("tidal_volume", "tidal_volume"))

    def test_list_strata_coerced(self):
        assert AnalysisConfig(strata=["peep"]).strata == ("peep",)
