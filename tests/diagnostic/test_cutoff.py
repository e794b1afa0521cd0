"""Tests for optimal cutoff selection."""

import numpy as np
import pytest

from ppvdiag.diagnostic import roc, optimal_cutoff, CutoffResult


@pytest.fixture
def roc_result():
    """ROC result for optimal cutoff tests."""
    np.random.seed(42)
    response = np.array([0] * 100 + [1] * 100)
    predictor = np.concatenate([
        np.random.normal(8, 2, 100),
        np.random.normal(14, 2, 100),
    ])
    return roc(response, predictor)


@pytest.fixture
def tied_youden():
    """Thresholds 4 and 2 tie on Youden J = 0.5; 4 has the higher specificity."""
    return roc([0, 1, 0, 1], [1.0, 2.0, 3.0, 4.0], direction="<")


class TestYouden:
    """Youden index method."""

    def test_returns_cutoff_result(self, roc_result):
        assert isinstance(optimal_cutoff(roc_result), CutoffResult)

    def test_method_is_youden(self, roc_result):
        assert optimal_cutoff(roc_result, method="youden").method == "youden"

    def test_youden_criterion_high(self, roc_result):
        """For a discriminative marker, Youden J is large."""
        c = optimal_cutoff(roc_result)
        assert c.criterion_value > 0.5
        assert c.youden == pytest.approx(c.criterion_value)

    def test_sensitivity_specificity_bounded(self, roc_result):
        c = optimal_cutoff(roc_result)
        assert 0 <= c.sensitivity <= 1
        assert 0 <= c.specificity <= 1

    def test_youden_maximises_j(self, roc_result):
        """The optimal J should be the max of TPR - FPR."""
        c = optimal_cutoff(roc_result)
        finite = np.isfinite(roc_result.thresholds)
        j_all = roc_result.tpr[finite] - roc_result.fpr[finite]
        assert np.all(c.youden >= j_all - 1e-12)

    def test_cutoff_between_group_means(self, roc_result):
        c = optimal_cutoff(roc_result)
        assert 8 < c.cutoff < 14

    def test_perfect_separation(self):
        r = roc([0, 0, 1, 1, 1], [1, 2, 3, 4, 5], direction="<")
        c = optimal_cutoff(r)
        assert c.sensitivity == 1.0
        assert c.specificity == 1.0
        assert c.cutoff == 3.0


class TestTieBreak:
    """Ties on the criterion resolve to the highest specificity."""

    def test_tie_prefers_specificity(self, tied_youden):
        c = optimal_cutoff(tied_youden)
        assert c.cutoff == 4.0
        assert c.specificity == 1.0
        assert c.sensitivity == 0.5

    def test_tied_cutoffs_reported(self, tied_youden):
        c = optimal_cutoff(tied_youden)
        assert c.tied_cutoffs == (4.0, 2.0)

    def test_closest_topleft_same_tie_break(self, tied_youden):
        c = optimal_cutoff(tied_youden, method="closest_topleft")
        assert c.cutoff == 4.0
        assert c.criterion_value == pytest.approx(0.5)

    def test_single_optimum_has_single_tie(self, roc_result):
        c = optimal_cutoff(roc_result)
        assert c.cutoff in c.tied_cutoffs


class TestCutoffCI:
    """Binomial CIs for sensitivity and specificity."""

    def test_ci_contains_point(self, roc_result):
        c = optimal_cutoff(roc_result)
        assert c.sensitivity_ci[0] <= c.sensitivity <= c.sensitivity_ci[1]
        assert c.specificity_ci[0] <= c.specificity <= c.specificity_ci[1]

    def test_perfect_ci_upper_is_one(self):
        r = roc([0, 0, 1, 1, 1], [1, 2, 3, 4, 5], direction="<")
        c = optimal_cutoff(r)
        assert c.sensitivity_ci[1] == 1.0
        assert c.sensitivity_ci[0] == pytest.approx(0.025 ** (1 / 3))
        assert c.specificity_ci[0] == pytest.approx(0.025 ** (1 / 2))

    def test_conf_level_inherited(self, roc_result):
        assert optimal_cutoff(roc_result).conf_level == roc_result.conf_level

    def test_wilson(self, roc_result):
        c = optimal_cutoff(roc_result, ci_method="wilson")
        assert c.ci_method == "wilson"
        assert c.sensitivity_ci[0] <= c.sensitivity <= c.sensitivity_ci[1]

    def test_narrower_at_lower_conf(self, roc_result):
        c90 = optimal_cutoff(roc_result, conf_level=0.90)
        c99 = optimal_cutoff(roc_result, conf_level=0.99)
        assert (c90.sensitivity_ci[1] - c90.sensitivity_ci[0]) < (
            c99.sensitivity_ci[1] - c99.sensitivity_ci[0]
        )


class TestClosestToTopLeft:
    """Closest-to-top-left method."""

    def test_method_name(self, roc_result):
        c = optimal_cutoff(roc_result, method="closest_topleft")
        assert c.method == "closest_topleft"

    def test_distance_small(self, roc_result):
        c = optimal_cutoff(roc_result, method="closest_topleft")
        assert 0 <= c.criterion_value < 0.2


class TestValidation:

    def test_invalid_method(self, roc_result):
        with pytest.raises(ValueError, match="method"):
            optimal_cutoff(roc_result, method="cost")

    def test_invalid_ci_method(self, roc_result):
        with pytest.raises(ValueError, match="ci_method"):
            optimal_cutoff(roc_result, ci_method="agresti")

    def test_summary(self, roc_result):
        s = optimal_cutoff(roc_result).summary()
        assert "Cutoff" in s
        assert "Sensitivity" in s
