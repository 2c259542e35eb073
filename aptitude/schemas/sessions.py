"""
Pydantic schemas for adaptive test session configuration.
"""
from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional, Self

from aptitude.core.config import settings
from libs.domain_types import SelectionMethod


class TestConfig(BaseModel):
    """Schema for the per-session CAT configuration.

    Every field defaults to the corresponding ``CAT_*`` setting.
    """

    model_config = ConfigDict(frozen=True)

    min_questions: int = Field(
        default_factory=lambda: settings.CAT_MIN_QUESTIONS,
        ge=0,
        description="Questions answered before any stopping rule may apply",
    )
    max_questions: int = Field(
        default_factory=lambda: settings.CAT_MAX_QUESTIONS,
        ge=1,
        description="Hard upper bound on session length",
    )
    target_questions: Optional[int] = Field(
        default_factory=lambda: settings.CAT_TARGET_QUESTIONS,
        ge=1,
        description="Preferred session length (None disables the rule)",
    )
    target_precision: float = Field(
        default_factory=lambda: settings.CAT_TARGET_PRECISION,
        gt=0.0,
        description="Standard error at or below which the session may stop",
    )
    starting_theta: float = Field(
        default_factory=lambda: settings.CAT_STARTING_THETA,
        ge=-3.0,
        le=3.0,
        description="Ability estimate before the first response",
    )
    selection_method: SelectionMethod = Field(
        default_factory=lambda: settings.CAT_SELECTION_METHOD,
        description="Item selection strategy for the session",
    )
    prior_mean: float = Field(
        default_factory=lambda: settings.CAT_PRIOR_MEAN,
        ge=-3.0,
        le=3.0,
        description="EAP prior mean (see aptitude.core.cat.priors)",
    )
    prior_sd: float = Field(
        default_factory=lambda: settings.CAT_PRIOR_SD,
        gt=0.0,
        description="EAP prior standard deviation",
    )

    @model_validator(mode="after")
    def validate_question_bounds(self) -> Self:
        """Ensure min_questions and target_questions do not exceed max_questions."""
        if self.min_questions > self.max_questions:
            raise ValueError(
                f"min_questions ({self.min_questions}) must be <= "
                f"max_questions ({self.max_questions})"
            )
        if self.target_questions is not None and self.target_questions > self.max_questions:
            raise ValueError(
                f"target_questions ({self.target_questions}) must be <= "
                f"max_questions ({self.max_questions})"
            )
        return self
