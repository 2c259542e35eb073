"""Tests for shared domain types package."""

import json

import pytest

from libs.domain_types import (
    EnergyLevel,
    EstimationMethod,
    FeedbackOutcome,
    InterestLevel,
    PerformanceLevel,
    ReasoningType,
    SelectionMethod,
    TerminationReason,
    TestStatus,
    TimeOfDay,
)


class TestSelectionMethod:
    """Tests for SelectionMethod enum."""

    def test_values(self):
        assert set(SelectionMethod) == {
            SelectionMethod.MAXIMUM_INFORMATION,
            SelectionMethod.DIFFICULTY_MATCHING,
            SelectionMethod.RANDOM,
        }

    def test_string_values(self):
        assert SelectionMethod.MAXIMUM_INFORMATION.value == "maximum_information"
        assert SelectionMethod.DIFFICULTY_MATCHING.value == "difficulty_matching"
        assert SelectionMethod.RANDOM.value == "random"

    def test_str_mixin(self):
        assert SelectionMethod("random") == SelectionMethod.RANDOM

    def test_json_serializable(self):
        assert json.dumps(SelectionMethod.RANDOM) == '"random"'


class TestTestStatus:
    """Tests for TestStatus enum."""

    def test_values(self):
        assert TestStatus.IN_PROGRESS.value == "in_progress"
        assert TestStatus.COMPLETE.value == "complete"

    def test_count(self):
        assert len(TestStatus) == 2


class TestTerminationReason:
    """Tests for TerminationReason enum."""

    def test_values(self):
        assert TerminationReason.MAX_QUESTIONS_REACHED.value == "max_questions_reached"
        assert (
            TerminationReason.TARGET_QUESTIONS_REACHED.value
            == "target_questions_reached"
        )
        assert TerminationReason.SUFFICIENT_PRECISION.value == "sufficient_precision"

    def test_count(self):
        assert len(TerminationReason) == 3


class TestReasoningType:
    """Tests for ReasoningType enum."""

    def test_count(self):
        assert len(ReasoningType) == 6

    @pytest.mark.parametrize(
        "value",
        [
            "strength_and_passion",
            "high_potential",
            "strong_interest",
            "natural_talent",
            "growth_opportunity",
            "balanced_fit",
        ],
    )
    def test_round_trip_from_value(self, value):
        assert ReasoningType(value).value == value


class TestContextEnums:
    """Tests for the contextual recommendation enums."""

    def test_time_of_day(self):
        assert {t.value for t in TimeOfDay} == {"morning", "afternoon", "evening"}

    def test_energy_level(self):
        assert {e.value for e in EnergyLevel} == {"high", "medium", "low"}

    def test_performance_level(self):
        assert {p.value for p in PerformanceLevel} == {"good", "average", "poor"}

    def test_feedback_outcome(self):
        assert FeedbackOutcome("successful") == FeedbackOutcome.SUCCESSFUL


class TestMiscEnums:
    def test_estimation_method(self):
        assert EstimationMethod.MLE.value == "mle"
        assert EstimationMethod.EAP.value == "eap"

    def test_interest_level_count(self):
        assert len(InterestLevel) == 5
