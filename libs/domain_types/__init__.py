"""Shared domain types for the aptitude engine.

This package is the single source of truth for domain enums used across
the CAT core, the recommendation engine, and the hosting application.

Usage:
    from libs.domain_types import SelectionMethod, TestStatus
"""

import enum


class SelectionMethod(str, enum.Enum):
    """Item selection strategies for adaptive tests."""

    MAXIMUM_INFORMATION = "maximum_information"
    DIFFICULTY_MATCHING = "difficulty_matching"
    RANDOM = "random"


class EstimationMethod(str, enum.Enum):
    """Ability estimation methods."""

    MLE = "mle"
    EAP = "eap"


class TestStatus(str, enum.Enum):
    """Adaptive test session status."""

    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


class TerminationReason(str, enum.Enum):
    """Reason an adaptive test session stopped."""

    MAX_QUESTIONS_REACHED = "max_questions_reached"
    TARGET_QUESTIONS_REACHED = "target_questions_reached"
    SUFFICIENT_PRECISION = "sufficient_precision"


class ReasoningType(str, enum.Enum):
    """Primary reason attached to a subject recommendation."""

    STRENGTH_AND_PASSION = "strength_and_passion"
    HIGH_POTENTIAL = "high_potential"
    STRONG_INTEREST = "strong_interest"
    NATURAL_TALENT = "natural_talent"
    GROWTH_OPPORTUNITY = "growth_opportunity"
    BALANCED_FIT = "balanced_fit"


class TimeOfDay(str, enum.Enum):
    """Time-of-day bucket for contextual recommendations."""

    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"


class EnergyLevel(str, enum.Enum):
    """Self-reported energy level for contextual recommendations."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class PerformanceLevel(str, enum.Enum):
    """Recent performance category for contextual recommendations."""

    GOOD = "good"
    AVERAGE = "average"
    POOR = "poor"


class FeedbackOutcome(str, enum.Enum):
    """Reported outcome after a student followed a recommendation."""

    SUCCESSFUL = "successful"
    NEUTRAL = "neutral"
    UNSUCCESSFUL = "unsuccessful"


class InterestLevel(str, enum.Enum):
    """Interest level classification."""

    VERY_HIGH = "very_high"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    VERY_LOW = "very_low"


__all__ = [
    "SelectionMethod",
    "EstimationMethod",
    "TestStatus",
    "TerminationReason",
    "ReasoningType",
    "TimeOfDay",
    "EnergyLevel",
    "PerformanceLevel",
    "FeedbackOutcome",
    "InterestLevel",
]
