"""
Subject recommendation engine.

Bandit-style ranking of subjects from ability, interest and potential scores,
plus interest profiling and post-session profile updates.
"""

from .engine import (
    REASONING_DESCRIPTIONS,
    Recommendation,
    context_weight_overrides,
    contextual_recommendations,
    generate_recommendations,
    reasoning_for,
    update_recommendation_weights,
)
from .interest import (
    EngagementMetrics,
    EngagementPattern,
    SubjectInterest,
    calculate_interest_score,
    classify_interest_level,
    detect_engagement_patterns,
    discover_interests,
)
from .profile_update import (
    AbilityGrowth,
    build_profile_update,
    classify_ability_growth,
    confidence_from_standard_error,
)
from .scoring import (
    RecommendationConfidence,
    calculate_learning_potential,
    calculate_recommendation_confidence,
    exploration_bonus,
    recommendation_score,
    thompson_sampling,
)

__all__ = [
    "Recommendation",
    "REASONING_DESCRIPTIONS",
    "generate_recommendations",
    "contextual_recommendations",
    "context_weight_overrides",
    "update_recommendation_weights",
    "reasoning_for",
    "recommendation_score",
    "exploration_bonus",
    "calculate_learning_potential",
    "thompson_sampling",
    "calculate_recommendation_confidence",
    "RecommendationConfidence",
    "EngagementMetrics",
    "EngagementPattern",
    "SubjectInterest",
    "calculate_interest_score",
    "classify_interest_level",
    "discover_interests",
    "detect_engagement_patterns",
    "AbilityGrowth",
    "build_profile_update",
    "classify_ability_growth",
    "confidence_from_standard_error",
]
