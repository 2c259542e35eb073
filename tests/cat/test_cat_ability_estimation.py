"""
Tests for MLE / EAP ability estimation and the estimator policy.

Covers:
- EAP returns the prior exactly with no responses
- EAP direction and shrinkage for all-correct / all-incorrect patterns
- MLE Newton-Raphson convergence, boundary behaviour and iteration cap
- EAP below the response threshold, MLE at or above it
- Fallback from non-converged MLE to EAP
"""

import logging
from unittest.mock import patch

import pytest

from aptitude.core.cat.ability_estimation import (
    QUADRATURE_POINTS,
    UNDEFINED_STANDARD_ERROR,
    AbilityEstimate,
    choose_estimation_method,
    estimate_ability,
    estimate_ability_eap,
    estimate_ability_mle,
    posterior_summary,
)
from aptitude.core.cat.items import Response
from libs.domain_types import EstimationMethod


def _responses(pattern, difficulty=0.0, discrimination=1.0, guessing=0.25):
    """Responses to identical items with the given correctness pattern."""
    return [
        Response(
            item_id=i,
            is_correct=correct,
            difficulty=difficulty,
            discrimination=discrimination,
            guessing=guessing,
        )
        for i, correct in enumerate(pattern)
    ]


def _spread_responses():
    """Correct on easy items, incorrect on hard ones."""
    difficulties = [-1.5, -1.0, -0.5, 0.0, 0.5, 1.0, 1.5, 2.0]
    return [
        Response(
            item_id=i,
            is_correct=b <= 0.0,
            difficulty=b,
            discrimination=1.2,
            guessing=0.2,
        )
        for i, b in enumerate(difficulties)
    ]


class TestEstimateAbilityEAP:
    """Tests for estimate_ability_eap."""

    def test_no_responses_returns_prior_exactly(self):
        result = estimate_ability_eap([], prior_mean=0.5, prior_sd=0.8)
        assert result.theta == 0.5
        assert result.standard_error == 0.8
        assert result.method == EstimationMethod.EAP

    def test_all_correct_moves_above_prior(self):
        result = estimate_ability_eap(_responses([True] * 4))
        assert result.theta > 0.0

    def test_all_incorrect_moves_below_prior(self):
        result = estimate_ability_eap(_responses([False] * 4))
        assert result.theta < 0.0

    def test_responses_shrink_posterior_sd(self):
        result = estimate_ability_eap(_spread_responses(), prior_mean=0.0, prior_sd=1.0)
        assert 0.0 < result.standard_error < 1.0

    def test_estimate_within_quadrature_range(self):
        result = estimate_ability_eap(_responses([True] * 30, difficulty=3.0))
        assert -3.0 <= result.theta <= 3.0

    def test_prior_mean_pulls_estimate(self):
        responses = _responses([True, False])
        low = estimate_ability_eap(responses, prior_mean=-1.0)
        high = estimate_ability_eap(responses, prior_mean=1.0)
        assert high.theta > low.theta

    def test_non_positive_prior_sd_uses_one(self, caplog):
        responses = _responses([True, False, True])
        with caplog.at_level(logging.WARNING):
            result = estimate_ability_eap(responses, prior_sd=0.0)
        assert result == estimate_ability_eap(responses, prior_sd=1.0)
        assert "Prior SD" in caplog.text

    def test_iterations_not_reported(self):
        result = estimate_ability_eap(_responses([True]))
        assert result.iterations is None
        assert result.converged is None


class TestPosteriorSummary:
    """Tests for posterior_summary."""

    def test_no_responses(self):
        summary = posterior_summary([], prior_mean=0.3, prior_sd=0.9)
        assert summary.mean == 0.3
        assert summary.sd == 0.9
        assert summary.mode == 0.3
        assert summary.confidence == 0.0

    def test_mean_matches_eap(self):
        responses = _spread_responses()
        summary = posterior_summary(responses)
        eap = estimate_ability_eap(responses)
        assert summary.mean == pytest.approx(eap.theta)
        assert summary.sd == pytest.approx(eap.standard_error)

    def test_confidence_grows_with_evidence(self):
        few = posterior_summary(_spread_responses()[:2])
        many = posterior_summary(_spread_responses())
        assert 0.0 < few.confidence < many.confidence <= 100.0

    def test_mode_on_grid(self):
        summary = posterior_summary(_spread_responses())
        step = 6.0 / (QUADRATURE_POINTS - 1)
        index = round((summary.mode + 3.0) / step)
        assert summary.mode == pytest.approx(-3.0 + index * step)


class TestEstimateAbilityMLE:
    """Tests for estimate_ability_mle."""

    def test_all_correct_easy_items_reach_upper_bound(self):
        """Ten correct answers on b=-2 items drive theta to the boundary."""
        responses = _responses([True] * 10, difficulty=-2.0)
        result = estimate_ability_mle(responses)
        assert result.converged is True
        assert result.iterations <= 20
        assert result.theta >= 2.9
        assert result.method == EstimationMethod.MLE

    def test_all_incorrect_reaches_lower_region(self):
        responses = _responses([False] * 10, difficulty=2.0)
        result = estimate_ability_mle(responses)
        assert result.theta < 0.0

    def test_mixed_pattern_interior_estimate(self):
        result = estimate_ability_mle(_spread_responses())
        assert -1.5 < result.theta < 1.5
        assert result.standard_error < UNDEFINED_STANDARD_ERROR
        assert result.iterations <= 20

    def test_no_responses(self):
        result = estimate_ability_mle([], initial_theta=4.0)
        assert result.theta == 3.0
        assert result.standard_error == UNDEFINED_STANDARD_ERROR
        assert result.iterations == 0
        assert result.converged is False

    def test_iteration_cap_reports_non_convergence(self):
        responses = _responses([True] * 10, difficulty=-2.0)
        result = estimate_ability_mle(responses, max_iterations=1)
        assert result.iterations == 1
        assert result.converged is False

    def test_standard_error_from_information(self):
        result = estimate_ability_mle(_spread_responses())
        assert 0.0 < result.standard_error < 2.0


class TestChooseEstimationMethod:
    """EAP below the threshold, MLE at or above it."""

    @pytest.mark.parametrize("count", [0, 1, 2, 3, 4])
    def test_eap_below_threshold(self, count):
        assert choose_estimation_method(count) == EstimationMethod.EAP

    @pytest.mark.parametrize("count", [5, 6, 20])
    def test_mle_at_or_above_threshold(self, count):
        assert choose_estimation_method(count) == EstimationMethod.MLE

    def test_threshold_override(self):
        assert choose_estimation_method(5, eap_threshold=8) == EstimationMethod.EAP
        assert choose_estimation_method(0, eap_threshold=0) == EstimationMethod.MLE


class TestEstimateAbility:
    """Tests for the estimator policy wrapper."""

    _NOT_CONVERGED = AbilityEstimate(
        theta=3.0,
        standard_error=2.0,
        method=EstimationMethod.MLE,
        iterations=20,
        converged=False,
    )

    def test_sparse_history_uses_eap(self):
        result = estimate_ability(_responses([True, False, True]))
        assert result.method == EstimationMethod.EAP

    def test_longer_history_uses_mle(self):
        result = estimate_ability(_spread_responses())
        assert result.method == EstimationMethod.MLE
        assert result.converged is True

    def test_non_converged_mle_falls_back_to_eap(self, caplog):
        responses = _spread_responses()
        with patch(
            "aptitude.core.cat.ability_estimation.estimate_ability_mle",
            return_value=self._NOT_CONVERGED,
        ), caplog.at_level(logging.WARNING):
            result = estimate_ability(responses)
        assert result.method == EstimationMethod.EAP
        assert result == estimate_ability_eap(responses)
        assert "falling back to EAP" in caplog.text

    def test_fallback_disabled_keeps_mle(self):
        with patch(
            "aptitude.core.cat.ability_estimation.estimate_ability_mle",
            return_value=self._NOT_CONVERGED,
        ):
            result = estimate_ability(_spread_responses(), fallback_to_eap=False)
        assert result is self._NOT_CONVERGED

    def test_prior_passed_to_eap(self):
        responses = _responses([True])
        result = estimate_ability(responses, prior_mean=1.0, prior_sd=0.5)
        assert result == estimate_ability_eap(responses, prior_mean=1.0, prior_sd=0.5)
