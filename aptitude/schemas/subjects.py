"""
Pydantic schemas for per-subject scores read by the recommendation engine.
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, Optional


def _clamp_percentage(value: Any) -> float:
    # Null columns count as zero
    if value is None:
        return 0.0
    try:
        number = float(value)
    except TypeError as e:
        raise ValueError(f"Score must be numeric, got {type(value).__name__}") from e
    return max(0.0, min(100.0, number))


class SubjectScoreInput(BaseModel):
    """Schema for one subject's scores in the subject profile store.

    Scores outside 0-100 are clamped rather than rejected so a stale or
    miscomputed profile row never breaks recommendation generation.
    """

    model_config = ConfigDict(frozen=True)

    ability_score: float = Field(50.0, description="Measured ability (0-100)")
    interest_score: float = Field(50.0, description="Measured interest (0-100)")
    potential_score: float = Field(50.0, description="Learning potential (0-100)")
    confidence: float = Field(50.0, description="Confidence in the scores (0-100)")
    assessment_count: int = Field(
        0, description="Number of completed assessments for this subject"
    )
    category: Optional[str] = Field(
        None, description="Content category used for diversification"
    )
    ability_growth_rate: float = Field(
        0.0, description="Recent rate of ability improvement"
    )
    recent_improvement: bool = Field(
        False, description="Whether a recent positive trend was observed"
    )
    success_count: int = Field(1, ge=0, description="Successful outcomes")
    failure_count: int = Field(1, ge=0, description="Unsuccessful outcomes")

    @field_validator(
        "ability_score", "interest_score", "potential_score", "confidence",
        mode="before",
    )
    @classmethod
    def clamp_score(cls, v: Any) -> float:
        """Clamp percentage scores to [0, 100]."""
        return _clamp_percentage(v)

    @field_validator("assessment_count", mode="before")
    @classmethod
    def clamp_assessment_count(cls, v: Any) -> int:
        """Missing or negative counts are treated as zero."""
        if v is None:
            return 0
        try:
            return max(0, int(v))
        except TypeError as e:
            raise ValueError(f"Count must be an integer, got {type(v).__name__}") from e
