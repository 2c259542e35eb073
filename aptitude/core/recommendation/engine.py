"""
Subject recommendation engine.

Ranks subjects for a student from their per-subject ability, interest and
potential scores (see scoring.py for the bandit score) and explains each
pick with a reasoning tag.

Pipeline:
1. Score every subject
2. Keep subjects meeting the minimum interest / ability thresholds; if fewer
   than top_n survive, relax the interest threshold to 70% once
3. Sort by score (descending)
4. Optionally diversify: at most ceil(top_n / 3) subjects per category
5. Take top_n, assign rank and reasoning tag

No input ever raises: an empty subject map, or no survivors after
relaxation, yields an empty list.
"""
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from pydantic import ValidationError

from aptitude.core.config import settings
from aptitude.core.recommendation.scoring import recommendation_score
from aptitude.schemas.recommendations import (
    RecommendationContext,
    RecommendationOptions,
    RecommendationWeights,
    WeightFeedback,
)
from aptitude.schemas.subjects import SubjectScoreInput
from libs.domain_types import (
    EnergyLevel,
    FeedbackOutcome,
    PerformanceLevel,
    ReasoningType,
    TimeOfDay,
)

logger = logging.getLogger(__name__)

# Interest threshold multiplier applied once when too few subjects survive
RELAXED_INTEREST_FACTOR = 0.7

# Diversification needs at least this many categories among the candidates
MIN_CATEGORIES_FOR_DIVERSITY = 3

UNKNOWN_CATEGORY = "unknown"

# Reasoning thresholds (0-100 scale)
STRONG_SCORE = 70.0
HIGH_POTENTIAL = 75.0
GROWTH_INTEREST = 50.0
GROWTH_POTENTIAL = 60.0

# Upper bound for exploration_weight when nudged by negative feedback
MAX_EXPLORATION_WEIGHT = 0.5

REASONING_DESCRIPTIONS: Dict[ReasoningType, str] = {
    ReasoningType.STRENGTH_AND_PASSION: (
        "You excel in this subject and show strong passion for it"
    ),
    ReasoningType.HIGH_POTENTIAL: (
        "You have exceptional potential for growth in this area"
    ),
    ReasoningType.STRONG_INTEREST: (
        "Your strong interest makes this an ideal learning path"
    ),
    ReasoningType.NATURAL_TALENT: "You demonstrate natural ability in this subject",
    ReasoningType.GROWTH_OPPORTUNITY: (
        "Great opportunity to develop your skills and interest"
    ),
    ReasoningType.BALANCED_FIT: "This subject aligns well with your profile",
}

# Weight overrides per context dimension, applied in this order
TIME_OF_DAY_OVERRIDES: Dict[TimeOfDay, Dict[str, float]] = {
    TimeOfDay.MORNING: {"ability_weight": 0.5, "interest_weight": 0.3},
    TimeOfDay.EVENING: {"ability_weight": 0.3, "interest_weight": 0.5},
}
ENERGY_LEVEL_OVERRIDES: Dict[EnergyLevel, Dict[str, float]] = {
    EnergyLevel.LOW: {"interest_weight": 0.6, "ability_weight": 0.2},
}
PERFORMANCE_OVERRIDES: Dict[PerformanceLevel, Dict[str, float]] = {
    PerformanceLevel.POOR: {"ability_weight": 0.5, "potential_weight": 0.2},
}

SubjectMap = Mapping[str, Union[SubjectScoreInput, Mapping[str, Any]]]


@dataclass(frozen=True)
class Recommendation:
    """A ranked subject recommendation."""

    subject_id: str
    recommendation_score: float  # 0-100
    rank: int
    reasoning: Optional[ReasoningType]
    ability_score: float
    interest_score: float
    potential_score: float
    confidence: float
    category: str

    @property
    def description(self) -> Optional[str]:
        """English explanation of the reasoning tag."""
        if self.reasoning is None:
            return None
        return REASONING_DESCRIPTIONS[self.reasoning]


@dataclass
class _ScoredSubject:
    subject_id: str
    score: float
    subject: SubjectScoreInput

    @property
    def category(self) -> str:
        return self.subject.category or UNKNOWN_CATEGORY


def reasoning_for(
    ability: float, interest: float, potential: float
) -> ReasoningType:
    """
    Primary reason for recommending a subject, checked in priority order.

    ability>=70 and interest>=70 -> strength_and_passion
    potential>=75                -> high_potential
    interest>=70                 -> strong_interest
    ability>=70                  -> natural_talent
    interest>=50 and potential>=60 -> growth_opportunity
    otherwise                    -> balanced_fit
    """
    if ability >= STRONG_SCORE and interest >= STRONG_SCORE:
        return ReasoningType.STRENGTH_AND_PASSION
    if potential >= HIGH_POTENTIAL:
        return ReasoningType.HIGH_POTENTIAL
    if interest >= STRONG_SCORE:
        return ReasoningType.STRONG_INTEREST
    if ability >= STRONG_SCORE:
        return ReasoningType.NATURAL_TALENT
    if interest >= GROWTH_INTEREST and potential >= GROWTH_POTENTIAL:
        return ReasoningType.GROWTH_OPPORTUNITY
    return ReasoningType.BALANCED_FIT


def _as_subject(value: Union[SubjectScoreInput, Mapping[str, Any]]) -> SubjectScoreInput:
    if isinstance(value, SubjectScoreInput):
        return value
    return SubjectScoreInput.model_validate(value)


def _passes(subject: SubjectScoreInput, min_interest: float, min_ability: float) -> bool:
    return subject.interest_score >= min_interest and subject.ability_score >= min_ability


def _diversify(candidates: Sequence[_ScoredSubject], top_n: int) -> List[_ScoredSubject]:
    """
    Admit at most ceil(top_n / 3) subjects per category, in score order.

    Candidates spanning fewer than three categories are returned as ranked.
    """
    categories = {c.category for c in candidates}
    if len(categories) < MIN_CATEGORIES_FOR_DIVERSITY:
        return list(candidates)

    max_per_category = math.ceil(top_n / 3)
    counts: Dict[str, int] = {}
    diversified = []
    for candidate in candidates:
        count = counts.get(candidate.category, 0)
        if count >= max_per_category:
            continue
        diversified.append(candidate)
        counts[candidate.category] = count + 1
        if len(diversified) >= top_n:
            break

    return diversified


def generate_recommendations(
    subject_map: SubjectMap,
    options: Optional[RecommendationOptions] = None,
) -> List[Recommendation]:
    """
    Rank subjects for a student.

    Args:
        subject_map: Subject id -> SubjectScoreInput (or a mapping accepted by
            SubjectScoreInput). Rows that fail validation are skipped with a
            warning.
        options: Thresholds, top_n, diversification and weights.

    Returns:
        Up to top_n recommendations sorted by score (descending) with ranks
        1..k. Empty when no subject qualifies.
    """
    options = options or RecommendationOptions()
    if not subject_map:
        return []

    scored = []
    for subject_id, value in subject_map.items():
        try:
            subject = _as_subject(value)
        except ValidationError as e:
            logger.warning(
                f"Skipping subject {subject_id}: invalid scores "
                f"({e.error_count()} errors)"
            )
            continue
        scored.append(
            _ScoredSubject(
                subject_id=str(subject_id),
                score=recommendation_score(subject, options.weights),
                subject=subject,
            )
        )

    filtered = [
        s for s in scored if _passes(s.subject, options.min_interest, options.min_ability)
    ]
    if len(filtered) < options.top_n:
        relaxed_interest = options.min_interest * RELAXED_INTEREST_FACTOR
        filtered = [
            s for s in scored if _passes(s.subject, relaxed_interest, options.min_ability)
        ]
        logger.debug(
            f"Relaxed interest threshold to {relaxed_interest:.1f}: "
            f"{len(filtered)} of {len(scored)} subjects qualify"
        )

    filtered.sort(key=lambda s: s.score, reverse=True)

    if options.diversify:
        filtered = _diversify(filtered, options.top_n)

    selected = filtered[: options.top_n]
    if not selected:
        logger.info(
            f"No subject meets the recommendation thresholds "
            f"({len(scored)} subjects scored)"
        )
        return []

    return [
        Recommendation(
            subject_id=s.subject_id,
            recommendation_score=s.score,
            rank=rank,
            reasoning=(
                reasoning_for(
                    s.subject.ability_score,
                    s.subject.interest_score,
                    s.subject.potential_score,
                )
                if options.include_reasoning
                else None
            ),
            ability_score=s.subject.ability_score,
            interest_score=s.subject.interest_score,
            potential_score=s.subject.potential_score,
            confidence=s.subject.confidence,
            category=s.category,
        )
        for rank, s in enumerate(selected, start=1)
    ]


def context_weight_overrides(context: RecommendationContext) -> Dict[str, float]:
    """
    Weight overrides for a context.

    Applied in order time of day, energy level, recent performance; a later
    dimension overrides an earlier one for the same weight.
    """
    overrides: Dict[str, float] = {}
    overrides.update(TIME_OF_DAY_OVERRIDES.get(context.time_of_day, {}))
    overrides.update(ENERGY_LEVEL_OVERRIDES.get(context.energy_level, {}))
    overrides.update(PERFORMANCE_OVERRIDES.get(context.recent_performance, {}))
    return overrides


def contextual_recommendations(
    subject_map: SubjectMap,
    context: Optional[RecommendationContext] = None,
    options: Optional[RecommendationOptions] = None,
) -> List[Recommendation]:
    """Recommendations with weights adjusted for the student's current context."""
    context = context or RecommendationContext()
    options = options or RecommendationOptions()

    overrides = context_weight_overrides(context)
    weights = options.weights.model_copy(update=overrides)
    logger.debug(
        f"Contextual weights for {context.time_of_day.value}/"
        f"{context.energy_level.value}/{context.recent_performance.value}: {overrides}"
    )

    return generate_recommendations(
        subject_map, options.model_copy(update={"weights": weights})
    )


def update_recommendation_weights(
    weights: RecommendationWeights,
    feedback: WeightFeedback,
    learning_rate: Optional[float] = None,
) -> RecommendationWeights:
    """
    Adapt scoring weights to learner feedback.

    - Rejected, or rated 1-2: exploration_weight += learning_rate (max 0.5)
    - Outcome successful: ability_weight *= 1 + learning_rate
    - Outcome unsuccessful: interest_weight *= 1 + learning_rate

    The ability/interest/potential weights are renormalized to sum to 1.

    Args:
        weights: Current weights.
        feedback: The learner's feedback.
        learning_rate: Step size (default settings.RECOMMENDATION_LEARNING_RATE).

    Returns:
        New RecommendationWeights.
    """
    rate = settings.RECOMMENDATION_LEARNING_RATE if learning_rate is None else learning_rate
    update: Dict[str, float] = {}

    low_rating = 0 < feedback.rating <= 2
    if not feedback.accepted or low_rating:
        if weights.exploration_weight < MAX_EXPLORATION_WEIGHT:
            update["exploration_weight"] = min(
                MAX_EXPLORATION_WEIGHT, weights.exploration_weight + rate
            )

    if feedback.outcome == FeedbackOutcome.SUCCESSFUL:
        update["ability_weight"] = weights.ability_weight * (1.0 + rate)
    elif feedback.outcome == FeedbackOutcome.UNSUCCESSFUL:
        update["interest_weight"] = weights.interest_weight * (1.0 + rate)

    return weights.model_copy(update=update).normalized()
