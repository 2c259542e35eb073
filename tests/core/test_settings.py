"""
Tests for engine settings and the session/subject schemas built on them.
"""
import pytest
from pydantic import ValidationError

from aptitude.core.config import Settings
from aptitude.schemas.recommendations import (
    RecommendationOptions,
    RecommendationWeights,
    WeightFeedback,
)
from aptitude.schemas.sessions import TestConfig
from aptitude.schemas.subjects import SubjectScoreInput
from libs.domain_types import SelectionMethod


class TestSettings:
    def test_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.CAT_MIN_QUESTIONS == 10
        assert settings.CAT_MAX_QUESTIONS == 60
        assert settings.CAT_TARGET_PRECISION == 0.3
        assert settings.CAT_SELECTION_METHOD == SelectionMethod.MAXIMUM_INFORMATION
        assert settings.CAT_EAP_RESPONSE_THRESHOLD == 5
        assert settings.RECOMMENDATION_TOP_N == 5

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("CAT_MAX_QUESTIONS", "40")
        monkeypatch.setenv("CAT_SELECTION_METHOD", "difficulty_matching")
        settings = Settings(_env_file=None)
        assert settings.CAT_MAX_QUESTIONS == 40
        assert settings.CAT_SELECTION_METHOD == SelectionMethod.DIFFICULTY_MATCHING

    def test_min_above_max_rejected(self):
        with pytest.raises(ValidationError, match="CAT_MIN_QUESTIONS"):
            Settings(_env_file=None, CAT_MIN_QUESTIONS=20, CAT_MAX_QUESTIONS=10)

    def test_target_above_max_rejected(self):
        with pytest.raises(ValidationError, match="CAT_TARGET_QUESTIONS"):
            Settings(_env_file=None, CAT_TARGET_QUESTIONS=80)

    def test_recommendation_weights_must_sum_to_one(self):
        with pytest.raises(ValidationError, match="sum to 1.0"):
            Settings(_env_file=None, RECOMMENDATION_ABILITY_WEIGHT=0.9)

    def test_randomness_bounds(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, CAT_SELECTION_RANDOMNESS=1.5)


class TestTestConfig:
    def test_defaults_follow_settings(self):
        config = TestConfig()
        assert config.min_questions == 10
        assert config.max_questions == 60
        assert config.target_questions == 20
        assert config.starting_theta == 0.0
        assert config.prior_sd == 1.0

    def test_min_above_max_rejected(self):
        with pytest.raises(ValidationError, match="min_questions"):
            TestConfig(min_questions=30, max_questions=20, target_questions=None)

    def test_target_above_max_rejected(self):
        with pytest.raises(ValidationError, match="target_questions"):
            TestConfig(max_questions=15, target_questions=20)

    def test_starting_theta_range(self):
        with pytest.raises(ValidationError):
            TestConfig(starting_theta=4.0)

    def test_frozen(self):
        config = TestConfig()
        with pytest.raises(ValidationError):
            config.min_questions = 3


class TestSubjectScoreInput:
    def test_defaults(self):
        subject = SubjectScoreInput()
        assert subject.ability_score == 50.0
        assert subject.assessment_count == 0
        assert subject.success_count == 1
        assert subject.failure_count == 1

    def test_scores_clamped(self):
        subject = SubjectScoreInput(
            ability_score=140, interest_score=-5, confidence=101, potential_score=50
        )
        assert subject.ability_score == 100.0
        assert subject.interest_score == 0.0
        assert subject.confidence == 100.0

    def test_negative_assessment_count_is_zero(self):
        assert SubjectScoreInput(assessment_count=-3).assessment_count == 0

    def test_null_values_are_zero(self):
        subject = SubjectScoreInput(ability_score=None, assessment_count=None)
        assert subject.ability_score == 0.0
        assert subject.assessment_count == 0

    @pytest.mark.parametrize("bad_value", ["high", [50], object()])
    def test_non_numeric_score_rejected(self, bad_value):
        with pytest.raises(ValidationError):
            SubjectScoreInput(interest_score=bad_value)


class TestRecommendationSchemas:
    def test_weight_defaults(self):
        weights = RecommendationWeights()
        assert weights.exploration_weight == 0.3
        assert (
            weights.ability_weight,
            weights.interest_weight,
            weights.potential_weight,
        ) == (0.4, 0.3, 0.3)

    def test_normalized(self):
        weights = RecommendationWeights(
            ability_weight=2.0, interest_weight=1.0, potential_weight=1.0
        ).normalized()
        assert weights.ability_weight == pytest.approx(0.5)
        assert weights.interest_weight == pytest.approx(0.25)

    def test_all_zero_weights_normalize_to_thirds(self):
        weights = RecommendationWeights(
            ability_weight=0.0, interest_weight=0.0, potential_weight=0.0
        ).normalized()
        assert weights.ability_weight == pytest.approx(1 / 3)
        assert weights.potential_weight == pytest.approx(1 / 3)

    def test_options_defaults(self):
        options = RecommendationOptions()
        assert options.top_n == 5
        assert options.min_interest == 30.0
        assert options.diversify is True

    def test_feedback_rating_range(self):
        with pytest.raises(ValidationError):
            WeightFeedback(rating=6)
