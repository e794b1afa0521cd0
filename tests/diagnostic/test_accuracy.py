"""Tests for fixed-cutoff diagnostic accuracy metrics."""

import numpy as np
import pytest

from ppvdiag import InsufficientDataError
from ppvdiag.diagnostic import binomial_ci, diagnostic_accuracy, DiagnosticResult


@pytest.fixture
def ppv_data():
    """PPV (%) of non-responders and responders."""
    np.random.seed(42)
    response = np.array([0] * 100 + [1] * 100)
    predictor = np.concatenate([
        np.random.normal(7, 1.5, 100),
        np.random.normal(15, 1.5, 100),
    ])
    return response, predictor


# ---------------------------------------------------------------------------
# Binomial CIs
# ---------------------------------------------------------------------------

class TestBinomialCI:
    """Clopper-Pearson and Wilson intervals."""

    def test_clopper_pearson_reference(self):
        """Matches R binom.test(7, 10)$conf.int."""
        lo, hi = binomial_ci(7, 10, 0.95, "clopper-pearson")
        assert lo == pytest.approx(0.3475, abs=1e-4)
        assert hi == pytest.approx(0.9333, abs=1e-4)

    def test_wilson_reference(self):
        """Matches R prop.test(7, 10, correct = FALSE)$conf.int."""
        lo, hi = binomial_ci(7, 10, 0.95, "wilson")
        assert lo == pytest.approx(0.3968, abs=1e-4)
        assert hi == pytest.approx(0.8922, abs=1e-4)

    def test_zero_successes(self):
        lo, hi = binomial_ci(0, 12)
        assert lo == 0.0
        assert 0 < hi < 1

    def test_all_successes(self):
        lo, hi = binomial_ci(12, 12)
        assert hi == 1.0
        assert 0 < lo < 1

    def test_empty_is_insufficient(self):
        with pytest.raises(InsufficientDataError):
            binomial_ci(0, 0)

    def test_k_out_of_range(self):
        with pytest.raises(ValueError, match="k must be"):
            binomial_ci(5, 4)


# ---------------------------------------------------------------------------
# Basic
# ---------------------------------------------------------------------------

class TestDiagnosticAccuracy:
    """Basic diagnostic accuracy tests."""

    def test_returns_result(self, ppv_data):
        assert isinstance(diagnostic_accuracy(*ppv_data, cutoff=11.0), DiagnosticResult)

    def test_all_positive_at_low_cutoff(self, ppv_data):
        r = diagnostic_accuracy(*ppv_data, cutoff=0.0)
        assert r.sensitivity == 1.0
        assert r.specificity == 0.0

    def test_all_negative_at_high_cutoff(self, ppv_data):
        r = diagnostic_accuracy(*ppv_data, cutoff=40.0)
        assert r.specificity == 1.0
        assert r.sensitivity == 0.0

    def test_good_cutoff_gives_high_both(self, ppv_data):
        r = diagnostic_accuracy(*ppv_data, cutoff=11.0)
        assert r.sensitivity > 0.95
        assert r.specificity > 0.95

    def test_cutoff_is_inclusive(self):
        r = diagnostic_accuracy([0, 1], [10.0, 12.0], cutoff=12.0)
        assert r.sensitivity == 1.0
        assert r.specificity == 1.0

    def test_ci_contains_point(self, ppv_data):
        r = diagnostic_accuracy(*ppv_data, cutoff=11.0)
        assert r.sensitivity_ci[0] <= r.sensitivity <= r.sensitivity_ci[1]
        assert r.specificity_ci[0] <= r.specificity <= r.specificity_ci[1]


# ---------------------------------------------------------------------------
# Derived metrics
# ---------------------------------------------------------------------------

class TestDerivedMetrics:
    """Predictive values, likelihood ratios and DOR."""

    def test_prevalence_adjustment(self, ppv_data):
        """Higher prevalence raises the positive predictive value."""
        r_lo = diagnostic_accuracy(*ppv_data, cutoff=9.0, prevalence=0.1)
        r_hi = diagnostic_accuracy(*ppv_data, cutoff=9.0, prevalence=0.5)
        assert r_hi.pos_pred_value > r_lo.pos_pred_value

    def test_default_prevalence_is_sample(self, ppv_data):
        r = diagnostic_accuracy(*ppv_data, cutoff=11.0)
        assert r.prevalence == pytest.approx(0.5)

    def test_lr_formula(self):
        response = np.array([0] * 10 + [1] * 10)
        predictor = np.array([1.0] * 7 + [5.0] * 3 + [1.0] * 2 + [5.0] * 8)
        r = diagnostic_accuracy(response, predictor, cutoff=5.0)
        assert r.sensitivity == pytest.approx(0.8)
        assert r.specificity == pytest.approx(0.7)
        assert r.lr_positive == pytest.approx(0.8 / 0.3)
        assert r.lr_negative == pytest.approx(0.2 / 0.7)
        assert r.dor == pytest.approx((8 * 7) / (3 * 2))

    def test_counts_and_predictive_values(self):
        response = np.array([0] * 10 + [1] * 10)
        predictor = np.array([1.0] * 7 + [5.0] * 3 + [1.0] * 2 + [5.0] * 8)
        r = diagnostic_accuracy(response, predictor, cutoff=5.0)
        assert (r.true_pos, r.false_pos, r.false_neg, r.true_neg) == (8, 3, 2, 7)
        assert r.n == 20
        assert r.pos_pred_value == pytest.approx(8 / 11)
        assert r.neg_pred_value == pytest.approx(7 / 9)

    def test_haldane_correction_when_cell_empty(self):
        r = diagnostic_accuracy([0, 0, 1, 1], [1.0, 2.0, 3.0, 4.0], cutoff=3.0)
        assert r.false_pos == r.false_neg == 0
        assert r.dor == pytest.approx(2.5 * 2.5 / (0.5 * 0.5))
        assert r.lr_positive == np.inf
        assert r.dor_ci[0] <= r.dor <= r.dor_ci[1]

    def test_dor_ci_contains_estimate(self, ppv_data):
        r = diagnostic_accuracy(*ppv_data, cutoff=9.0)
        assert r.dor_ci[0] <= r.dor <= r.dor_ci[1]

    def test_direction_gt(self, ppv_data):
        response, predictor = ppv_data
        r = diagnostic_accuracy(response, -predictor, cutoff=-11.0, direction=">")
        assert r.sensitivity > 0.95

    def test_summary_contains_metrics(self, ppv_data):
        s = diagnostic_accuracy(*ppv_data, cutoff=11.0).summary()
        for label in ("Sensitivity", "Specificity", "Pos predictive", "DOR"):
            assert label in s


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

class TestAccuracyValidation:
    """Input validation."""

    def test_mismatched_lengths(self):
        with pytest.raises(ValueError, match="equal length"):
            diagnostic_accuracy(np.array([0, 1]), np.array([1.0, 2.0, 3.0]), cutoff=1.5)

    def test_single_class(self):
        with pytest.raises(InsufficientDataError):
            diagnostic_accuracy(np.array([1, 1, 1]), np.array([1.0, 2.0, 3.0]), cutoff=1.5)

    def test_invalid_direction(self, ppv_data):
        with pytest.raises(ValueError, match="direction"):
            diagnostic_accuracy(*ppv_data, cutoff=11.0, direction="auto")

    def test_invalid_ci_method(self, ppv_data):
        with pytest.raises(ValueError, match="ci_method"):
            diagnostic_accuracy(*ppv_data, cutoff=11.0, ci_method="wald")

    def test_invalid_conf_level(self, ppv_data):
        with pytest.raises(ValueError, match="conf_level"):
            diagnostic_accuracy(*ppv_data, cutoff=11.0, conf_level=0.0)

    def test_invalid_prevalence(self, ppv_data):
        with pytest.raises(ValueError, match="prevalence"):
            diagnostic_accuracy(*ppv_data, cutoff=11.0, prevalence=1.0)
