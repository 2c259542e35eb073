"""
Engine configuration settings.
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Literal, Optional, Self

from libs.domain_types import SelectionMethod


# Tolerance for floating-point weight summation checks
_WEIGHT_SUM_TOLERANCE = 1e-6


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    # Application
    ENV: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # Adaptive test session defaults (used by TestConfig when a caller
    # does not override them)
    CAT_MIN_QUESTIONS: int = Field(default=10, ge=0)
    CAT_MAX_QUESTIONS: int = Field(default=60, ge=1)
    CAT_TARGET_QUESTIONS: Optional[int] = Field(default=20, ge=1)
    CAT_TARGET_PRECISION: float = Field(
        default=0.3,
        gt=0.0,
        description="Standard error at or below which a session may stop",
    )
    CAT_STARTING_THETA: float = Field(default=0.0, ge=-3.0, le=3.0)
    CAT_SELECTION_METHOD: SelectionMethod = SelectionMethod.MAXIMUM_INFORMATION
    # Fraction of the ranked candidate list sampled from (exposure control)
    CAT_SELECTION_RANDOMNESS: float = Field(default=0.1, ge=0.0, le=1.0)
    # First item is drawn uniformly from this many items closest to the target
    CAT_INITIAL_CANDIDATES: int = Field(default=5, ge=1)

    # Ability estimation
    # EAP is used while fewer than this many responses exist, MLE afterwards
    CAT_EAP_RESPONSE_THRESHOLD: int = Field(default=5, ge=0)
    CAT_MLE_MAX_ITERATIONS: int = Field(default=20, ge=1)
    CAT_MLE_TOLERANCE: float = Field(default=0.001, gt=0.0)
    CAT_MLE_FALLBACK_TO_EAP: bool = True
    CAT_PRIOR_MEAN: float = 0.0
    CAT_PRIOR_SD: float = Field(default=1.0, gt=0.0)

    # Item cache (hosting layer)
    ITEM_CACHE_TTL_SECONDS: float = Field(default=300.0, gt=0.0)

    # Item usage / exposure monitoring
    EXPOSURE_ALERT_THRESHOLD: float = Field(default=0.15, ge=0.0, le=1.0)

    # Recommendation engine defaults
    RECOMMENDATION_TOP_N: int = Field(default=5, ge=1)
    RECOMMENDATION_MIN_INTEREST: float = Field(default=30.0, ge=0.0, le=100.0)
    RECOMMENDATION_MIN_ABILITY: float = Field(default=0.0, ge=0.0, le=100.0)
    RECOMMENDATION_EXPLORATION_WEIGHT: float = Field(default=0.3, ge=0.0, le=1.0)
    RECOMMENDATION_ABILITY_WEIGHT: float = Field(default=0.4, ge=0.0)
    RECOMMENDATION_INTEREST_WEIGHT: float = Field(default=0.3, ge=0.0)
    RECOMMENDATION_POTENTIAL_WEIGHT: float = Field(default=0.3, ge=0.0)
    RECOMMENDATION_LEARNING_RATE: float = Field(default=0.1, gt=0.0, le=1.0)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra fields from .env not defined in Settings
    )

    @model_validator(mode="after")
    def validate_question_bounds(self) -> Self:
        """Validate CAT question bounds: min <= target <= max."""
        if self.CAT_MIN_QUESTIONS > self.CAT_MAX_QUESTIONS:
            raise ValueError(
                f"CAT_MIN_QUESTIONS ({self.CAT_MIN_QUESTIONS}) must not exceed "
                f"CAT_MAX_QUESTIONS ({self.CAT_MAX_QUESTIONS})"
            )
        target = self.CAT_TARGET_QUESTIONS
        if target is not None and target > self.CAT_MAX_QUESTIONS:
            raise ValueError(
                f"CAT_TARGET_QUESTIONS ({target}) must not exceed "
                f"CAT_MAX_QUESTIONS ({self.CAT_MAX_QUESTIONS})"
            )
        return self

    @model_validator(mode="after")
    def validate_recommendation_weights(self) -> Self:
        """Validate the default ability/interest/potential weights sum to 1.0."""
        total = (
            self.RECOMMENDATION_ABILITY_WEIGHT
            + self.RECOMMENDATION_INTEREST_WEIGHT
            + self.RECOMMENDATION_POTENTIAL_WEIGHT
        )
        if abs(total - 1.0) > _WEIGHT_SUM_TOLERANCE:
            raise ValueError(
                f"Recommendation ability/interest/potential weights must sum to 1.0, "
                f"got {total}"
            )
        return self


settings = Settings()
