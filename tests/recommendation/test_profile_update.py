"""
Tests for subject profile updates after an adaptive test session.
"""
from datetime import datetime, timezone

import pytest

from aptitude.core.cat.engine import TestState
from aptitude.core.cat.items import Response
from aptitude.core.recommendation.profile_update import (
    build_profile_update,
    classify_ability_growth,
    confidence_from_standard_error,
)
from aptitude.core.recommendation.scoring import calculate_learning_potential
from aptitude.schemas.subjects import SubjectScoreInput
from libs.domain_types import SelectionMethod, TerminationReason, TestStatus

T0 = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


def _state(theta=0.0, standard_error=0.5, pattern=(True, False, True)):
    responses = tuple(
        Response(item_id=i, is_correct=c, difficulty=0.0, discrimination=1.0, guessing=0.25)
        for i, c in enumerate(pattern)
    )
    return TestState(
        theta=theta,
        standard_error=standard_error,
        min_questions=1,
        max_questions=10,
        target_questions=None,
        target_precision=0.3,
        selection_method=SelectionMethod.MAXIMUM_INFORMATION,
        started_at=T0,
        status=TestStatus.COMPLETE,
        responses=responses,
        used_item_ids=tuple(r.item_id for r in responses),
        termination_reason=TerminationReason.MAX_QUESTIONS_REACHED,
        ended_at=T0,
    )


class TestConfidenceFromStandardError:
    @pytest.mark.parametrize(
        "se,expected", [(0.25, 95), (0.5, 50), (0.3, 83), (5.0, 10), (999.0, 10), (0.0, 95)]
    )
    def test_mapping(self, se, expected):
        assert confidence_from_standard_error(se) == expected


class TestBuildProfileUpdate:
    def test_no_responses(self):
        assert build_profile_update(_state(pattern=())) is None

    def test_first_assessment(self):
        updated = build_profile_update(_state(theta=0.0, standard_error=0.5))
        assert updated.ability_score == pytest.approx(50.0)
        assert updated.confidence == 50.0
        assert updated.assessment_count == 1
        assert updated.success_count == 2
        assert updated.failure_count == 1
        assert updated.ability_growth_rate == 0.0
        assert updated.recent_improvement is False
        assert updated.potential_score == pytest.approx(
            calculate_learning_potential(updated)
        )

    def test_growth_against_previous(self):
        previous = SubjectScoreInput(
            ability_score=40,
            interest_score=70,
            assessment_count=2,
            category="stem",
            success_count=5,
            failure_count=3,
        )
        updated = build_profile_update(
            _state(theta=0.0), previous=previous, days_since_previous=2.0
        )
        assert updated.ability_growth_rate == pytest.approx(5.0)
        assert updated.recent_improvement is True
        assert updated.assessment_count == 3
        assert updated.success_count == 7
        assert updated.failure_count == 4
        assert updated.interest_score == 70.0
        assert updated.category == "stem"

    def test_short_interval_counts_as_one_day(self):
        previous = SubjectScoreInput(ability_score=60, assessment_count=1)
        updated = build_profile_update(
            _state(theta=0.0), previous=previous, days_since_previous=0.1
        )
        assert updated.ability_growth_rate == pytest.approx(-10.0)
        assert updated.recent_improvement is False


class TestClassifyAbilityGrowth:
    @pytest.mark.parametrize(
        "scores,trend",
        [
            ([50], "insufficient_data"),
            ([40, 45, 52], "excellent_growth"),
            ([40, 46], "steady_growth"),
            ([50, 52], "stable"),
            ([50, 44], "slight_decline"),
            ([60, 45], "significant_decline"),
        ],
    )
    def test_trends(self, scores, trend):
        assert classify_ability_growth(scores).trend == trend

    def test_improvement_and_count(self):
        growth = classify_ability_growth([40.0, 47.5, 55.25])
        assert growth.improvement == pytest.approx(15.2)
        assert growth.assessment_count == 3
