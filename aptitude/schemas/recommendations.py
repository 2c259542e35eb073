"""
Pydantic schemas for recommendation weights, options, context and feedback.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

from aptitude.core.config import settings
from libs.domain_types import (
    EnergyLevel,
    FeedbackOutcome,
    PerformanceLevel,
    TimeOfDay,
)


class RecommendationWeights(BaseModel):
    """Schema for the bandit scoring weights.

    ``exploration_weight`` blends the exploration bonus into the final score;
    the ability/interest/potential weights form the exploitation term.
    """

    model_config = ConfigDict(frozen=True)

    exploration_weight: float = Field(
        default_factory=lambda: settings.RECOMMENDATION_EXPLORATION_WEIGHT,
        ge=0.0,
        le=1.0,
    )
    ability_weight: float = Field(
        default_factory=lambda: settings.RECOMMENDATION_ABILITY_WEIGHT, ge=0.0
    )
    interest_weight: float = Field(
        default_factory=lambda: settings.RECOMMENDATION_INTEREST_WEIGHT, ge=0.0
    )
    potential_weight: float = Field(
        default_factory=lambda: settings.RECOMMENDATION_POTENTIAL_WEIGHT, ge=0.0
    )

    def normalized(self) -> "RecommendationWeights":
        """Return a copy whose ability/interest/potential weights sum to 1.

        All-zero weights become equal thirds.
        """
        total = self.ability_weight + self.interest_weight + self.potential_weight
        if total <= 0:
            third = 1.0 / 3.0
            return self.model_copy(
                update={
                    "ability_weight": third,
                    "interest_weight": third,
                    "potential_weight": third,
                }
            )
        return self.model_copy(
            update={
                "ability_weight": self.ability_weight / total,
                "interest_weight": self.interest_weight / total,
                "potential_weight": self.potential_weight / total,
            }
        )


class RecommendationOptions(BaseModel):
    """Schema for recommendation generation options."""

    model_config = ConfigDict(frozen=True)

    top_n: int = Field(
        default_factory=lambda: settings.RECOMMENDATION_TOP_N,
        ge=1,
        description="Number of recommendations to return",
    )
    min_interest: float = Field(
        default_factory=lambda: settings.RECOMMENDATION_MIN_INTEREST,
        ge=0.0,
        le=100.0,
    )
    min_ability: float = Field(
        default_factory=lambda: settings.RECOMMENDATION_MIN_ABILITY,
        ge=0.0,
        le=100.0,
    )
    diversify: bool = Field(True, description="Cap the subjects taken per category")
    include_reasoning: bool = Field(
        True, description="Attach a reasoning tag to each recommendation"
    )
    weights: RecommendationWeights = Field(default_factory=RecommendationWeights)


class RecommendationContext(BaseModel):
    """Schema for the situational context of a contextual recommendation."""

    model_config = ConfigDict(frozen=True)

    time_of_day: TimeOfDay = TimeOfDay.MORNING
    energy_level: EnergyLevel = EnergyLevel.HIGH
    recent_performance: PerformanceLevel = PerformanceLevel.GOOD
    available_minutes: int = Field(60, ge=0)


class WeightFeedback(BaseModel):
    """Schema for learner feedback on a recommendation."""

    model_config = ConfigDict(frozen=True)

    accepted: bool = False
    rating: int = Field(0, ge=0, le=5, description="1-5 rating, 0 when not rated")
    outcome: Optional[FeedbackOutcome] = None
