"""
Per-subject scoring for the recommendation engine.

Subjects are treated as arms of a multi-armed bandit. The score blends an
exploitation term (what we already know the student is good at and likes)
with an exploration bonus that favours subjects with little or uncertain data:

    exploit = w_a * ability + w_i * interest + w_p * potential
    bonus   = (1 - confidence) * sqrt(2 * ln(n + 2) / (n + 1))
    score   = exploit * (1 - w_e) + bonus * w_e

All inputs are normalized from 0-100 to [0, 1]; the score is clamped to
[0, 1] and reported on 0-100.

References:
    - Auer, P., Cesa-Bianchi, N., & Fischer, P. (2002). Finite-time analysis
      of the multiarmed bandit problem. Machine Learning, 47, 235-256.
    - Chapelle, O., & Li, L. (2011). An empirical evaluation of Thompson
      sampling.
"""
import logging
import math
from dataclasses import dataclass
from typing import Dict, Optional

import numpy as np

from aptitude.schemas.recommendations import RecommendationWeights
from aptitude.schemas.subjects import SubjectScoreInput

logger = logging.getLogger(__name__)

# Learning potential
ABILITY_SHARE = 0.4
INTEREST_SHARE = 0.6
MAX_GROWTH_BONUS = 20.0
GROWTH_RATE_MULTIPLIER = 10.0
RECENT_IMPROVEMENT_BONUS = 10.0
BASE_CONFIDENCE_MULTIPLIER = 0.7

# Thompson sampling noise half-width (on the [0, 1] scale)
THOMPSON_NOISE = 0.1

# Recommendation confidence
ASSESSMENTS_FOR_FULL_DATA_CONFIDENCE = 5
CONSISTENT_GAP = 20.0


def _unit(value: float) -> float:
    return max(0.0, min(1.0, value / 100.0))


def exploration_bonus(confidence: float, assessment_count: int) -> float:
    """
    UCB-style exploration bonus on the [0, 1] confidence scale.

    Shrinks as the subject accumulates assessments and confidence.
    """
    n = max(0, assessment_count)
    return (1.0 - confidence) * math.sqrt(2.0 * math.log(n + 2) / (n + 1))


def recommendation_score(
    subject: SubjectScoreInput,
    weights: Optional[RecommendationWeights] = None,
) -> float:
    """
    Bandit recommendation score for one subject.

    Args:
        subject: The subject's scores.
        weights: Scoring weights; ability/interest/potential are normalized
            to sum to 1 before use.

    Returns:
        Score in [0, 100].
    """
    weights = (weights or RecommendationWeights()).normalized()

    exploitation = (
        _unit(subject.ability_score) * weights.ability_weight
        + _unit(subject.interest_score) * weights.interest_weight
        + _unit(subject.potential_score) * weights.potential_weight
    )
    bonus = exploration_bonus(_unit(subject.confidence), subject.assessment_count)

    score = (
        exploitation * (1.0 - weights.exploration_weight)
        + bonus * weights.exploration_weight
    )
    return max(0.0, min(1.0, score)) * 100.0


def calculate_learning_potential(subject: SubjectScoreInput) -> float:
    """
    Learning potential from current scores and growth trajectory.

    base  = 0.4 * ability + 0.6 * interest
    bonus = min(20, growth_rate * 10) for positive growth, +10 on recent
            improvement
    final = (base + bonus) * (0.7 + 0.3 * confidence), clamped to [0, 100]
    """
    base = ABILITY_SHARE * subject.ability_score + INTEREST_SHARE * subject.interest_score

    growth_bonus = 0.0
    if subject.ability_growth_rate > 0:
        growth_bonus = min(
            MAX_GROWTH_BONUS, subject.ability_growth_rate * GROWTH_RATE_MULTIPLIER
        )
    if subject.recent_improvement:
        growth_bonus += RECENT_IMPROVEMENT_BONUS

    multiplier = BASE_CONFIDENCE_MULTIPLIER + (
        1.0 - BASE_CONFIDENCE_MULTIPLIER
    ) * _unit(subject.confidence)

    return max(0.0, min(100.0, (base + growth_bonus) * multiplier))


def thompson_sampling(
    subject: SubjectScoreInput,
    rng: Optional[np.random.Generator] = None,
    posterior_draw: bool = False,
) -> float:
    """
    Thompson-sampling score from the subject's success/failure counts.

    The posterior is Beta(successes + 1, failures + 1). By default the score
    is the posterior mean plus uniform noise in [-0.1, 0.1], which is cheap
    and easy to reason about in tests; ``posterior_draw=True`` takes an actual
    draw from the Beta posterior instead.

    Args:
        subject: The subject's outcome counts.
        rng: numpy Generator (a fresh default_rng when None).
        posterior_draw: Sample the Beta posterior instead of mean + noise.

    Returns:
        Score in [0, 100].
    """
    rng = rng if rng is not None else np.random.default_rng()
    alpha = subject.success_count + 1
    beta = subject.failure_count + 1

    if posterior_draw:
        sample = float(rng.beta(alpha, beta))
    else:
        mean = alpha / (alpha + beta)
        sample = mean + float(rng.uniform(-THOMPSON_NOISE, THOMPSON_NOISE))

    return max(0.0, min(1.0, sample)) * 100.0


@dataclass(frozen=True)
class RecommendationConfidence:
    """How much to trust a recommendation."""

    score: float  # 0-100
    level: str  # "high", "medium" or "low"
    factors: Dict[str, float]


def calculate_recommendation_confidence(
    subject: SubjectScoreInput,
) -> RecommendationConfidence:
    """
    Blend data volume, score confidence and ability/interest consistency.

    data        = min(100, assessments / 5 * 100)
    consistency = 100 if |ability - interest| < 20 else 70
    overall     = 0.4 * data + 0.4 * confidence + 0.2 * consistency

    Level is high at 80 and above, medium at 60 and above, low otherwise.
    """
    data_confidence = min(
        100.0, subject.assessment_count / ASSESSMENTS_FOR_FULL_DATA_CONFIDENCE * 100.0
    )
    score_confidence = subject.confidence
    consistency_confidence = (
        100.0
        if abs(subject.ability_score - subject.interest_score) < CONSISTENT_GAP
        else 70.0
    )

    overall = (
        data_confidence * 0.4 + score_confidence * 0.4 + consistency_confidence * 0.2
    )

    if overall >= 80:
        level = "high"
    elif overall >= 60:
        level = "medium"
    else:
        level = "low"

    return RecommendationConfidence(
        score=overall,
        level=level,
        factors={
            "data_confidence": data_confidence,
            "score_confidence": score_confidence,
            "consistency_confidence": consistency_confidence,
        },
    )
