"""
Subject profile updates after an adaptive test session.

The subject profile store owns SubjectScoreInput rows; after a session
completes the hosting application asks for the updated row and persists it.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from aptitude.core.cat.engine import TestState
from aptitude.core.cat.irt import theta_to_percentage
from aptitude.core.recommendation.scoring import calculate_learning_potential
from aptitude.schemas.subjects import SubjectScoreInput

logger = logging.getLogger(__name__)

# Confidence = 25 / SE, bounded so one session never claims certainty
CONFIDENCE_SCALE = 25.0
MIN_CONFIDENCE = 10
MAX_CONFIDENCE = 95

# Ability growth trend thresholds (points on the 0-100 ability scale)
EXCELLENT_GROWTH = 10.0
STEADY_GROWTH = 5.0
SLIGHT_DECLINE = -5.0
SIGNIFICANT_DECLINE = -10.0


@dataclass(frozen=True)
class AbilityGrowth:
    """Change in ability across a subject's assessments."""

    trend: str
    improvement: float  # Last minus first ability score
    assessment_count: int


def confidence_from_standard_error(standard_error: float) -> int:
    """Map SE(theta) to a 10-95 confidence score."""
    if standard_error <= 0:
        return MAX_CONFIDENCE
    return max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, round(CONFIDENCE_SCALE / standard_error)))


def build_profile_update(
    state: TestState,
    previous: Optional[SubjectScoreInput] = None,
    days_since_previous: float = 1.0,
) -> Optional[SubjectScoreInput]:
    """
    Updated subject scores after a session.

    - ability: theta mapped onto 0-100
    - confidence: 25 / SE, clamped to [10, 95]
    - assessment_count: previous + 1
    - ability_growth_rate: ability change per day since the previous
      assessment (at least one day); recent_improvement when positive
    - success / failure counts accumulate correct / incorrect responses
    - potential: recomputed from the new scores
    - interest and category are carried over from the previous row

    Args:
        state: The session state (normally complete).
        previous: The subject's current row, or None for a first assessment.
        days_since_previous: Days between the previous assessment and this one.

    Returns:
        New SubjectScoreInput, or None when the session has no responses.
    """
    if not state.responses:
        logger.warning("Cannot build a profile update from a session with no responses")
        return None

    if not state.is_complete:
        logger.warning(
            f"Building profile update from an in-progress session "
            f"({state.questions_answered} responses)"
        )

    previous = previous or SubjectScoreInput(
        success_count=0, failure_count=0, assessment_count=0
    )
    ability = theta_to_percentage(state.theta)
    correct = state.correct_count

    growth_rate = 0.0
    if previous.assessment_count > 0:
        growth_rate = (ability - previous.ability_score) / max(1.0, days_since_previous)

    updated = previous.model_copy(
        update={
            "ability_score": ability,
            "confidence": float(confidence_from_standard_error(state.standard_error)),
            "assessment_count": previous.assessment_count + 1,
            "ability_growth_rate": growth_rate,
            "recent_improvement": growth_rate > 0,
            "success_count": previous.success_count + correct,
            "failure_count": previous.failure_count + (state.questions_answered - correct),
        }
    )
    return updated.model_copy(
        update={"potential_score": calculate_learning_potential(updated)}
    )


def classify_ability_growth(ability_scores: Sequence[float]) -> AbilityGrowth:
    """
    Trend of a subject's ability scores, oldest first.

    Improvement is the last score minus the first:
    >= 10 excellent_growth, >= 5 steady_growth, <= -10 significant_decline,
    <= -5 slight_decline, otherwise stable. Fewer than two scores is
    insufficient_data.
    """
    count = len(ability_scores)
    if count < 2:
        return AbilityGrowth(trend="insufficient_data", improvement=0.0, assessment_count=count)

    improvement = round(ability_scores[-1] - ability_scores[0], 1)
    if improvement >= EXCELLENT_GROWTH:
        trend = "excellent_growth"
    elif improvement >= STEADY_GROWTH:
        trend = "steady_growth"
    elif improvement <= SIGNIFICANT_DECLINE:
        trend = "significant_decline"
    elif improvement <= SLIGHT_DECLINE:
        trend = "slight_decline"
    else:
        trend = "stable"

    return AbilityGrowth(trend=trend, improvement=improvement, assessment_count=count)
