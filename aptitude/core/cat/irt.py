"""
Three-parameter logistic (3PL) IRT model.

The probability that an examinee of ability theta answers an item correctly:

    P(theta) = c + (1 - c) / (1 + exp(-a * (theta - b)))

Where:
    a = discrimination (> 0)
    b = difficulty, on the same [-3, 3] scale as theta
    c = guessing (lower asymptote, in [0, 1])

Fisher information for the 3PL item (Birnbaum, 1968):

    I(theta) = a^2 * (Q / P) * ((P - c) / (1 - c))^2,   Q = 1 - P

This replaces the simplified a^2 * (P - c)^2 / ((1 - c) * P * Q) that is
sometimes quoted for the 3PL. That form grows without bound as theta rises,
while the Birnbaum form peaks just above b and falls off on both sides.

Malformed item parameters never abort a live session: they are clamped or
replaced by defaults and a warning is logged.

References:
    - Birnbaum, A. (1968). Some latent trait models and their use in
      inferring an examinee's ability. In Lord & Novick, Statistical
      theories of mental test scores.
    - Lord, F. M. (1980). Applications of item response theory to practical
      testing problems.
"""

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Tuple

logger = logging.getLogger(__name__)

THETA_MIN = -3.0
THETA_MAX = 3.0
DEFAULT_DISCRIMINATION = 1.0
DEFAULT_GUESSING = 0.25

# z-scores for the supported confidence levels; anything else falls back to 95%
_Z_SCORES = {0.95: 1.96, 0.99: 2.58}


def clamp_theta(value: float) -> float:
    """Clamp a theta (or difficulty) value to [THETA_MIN, THETA_MAX]."""
    return max(THETA_MIN, min(THETA_MAX, value))


def normalize_item_parameters(
    theta: float,
    difficulty: float,
    discrimination: float,
    guessing: float,
) -> Tuple[float, float, float, float]:
    """
    Apply the parameter recovery rules used before any 3PL computation.

    - theta and difficulty are clamped to [-3, 3]
    - non-positive discrimination is replaced by 1.0
    - guessing outside [0, 1] is replaced by 0.25

    Each correction is logged at WARNING level.

    Returns:
        Tuple of (theta, difficulty, discrimination, guessing) safe to use.
    """
    if not THETA_MIN <= theta <= THETA_MAX:
        logger.warning(f"Theta {theta} out of range [-3, 3], clamping")
        theta = clamp_theta(theta)

    if not THETA_MIN <= difficulty <= THETA_MAX:
        logger.warning(f"Difficulty {difficulty} out of range [-3, 3], clamping")
        difficulty = clamp_theta(difficulty)

    if not discrimination > 0:
        logger.warning(
            f"Discrimination {discrimination} must be positive, "
            f"using {DEFAULT_DISCRIMINATION}"
        )
        discrimination = DEFAULT_DISCRIMINATION

    if not 0.0 <= guessing <= 1.0:
        logger.warning(
            f"Guessing {guessing} out of range [0, 1], using {DEFAULT_GUESSING}"
        )
        guessing = DEFAULT_GUESSING

    return theta, difficulty, discrimination, guessing


def _logistic(logit: float) -> float:
    """Numerically stable sigmoid."""
    if logit >= 0:
        return 1.0 / (1.0 + math.exp(-logit))
    exp_logit = math.exp(logit)
    return exp_logit / (1.0 + exp_logit)


def probability_3pl(
    theta: float,
    difficulty: float,
    discrimination: float = DEFAULT_DISCRIMINATION,
    guessing: float = DEFAULT_GUESSING,
) -> float:
    """
    Probability of a correct response under the 3PL model.

    Args:
        theta: Ability estimate.
        difficulty: Item difficulty (b).
        discrimination: Item discrimination (a).
        guessing: Item guessing parameter (c).

    Returns:
        Probability in [guessing, 1].
    """
    theta, b, a, c = normalize_item_parameters(
        theta, difficulty, discrimination, guessing
    )
    return c + (1.0 - c) * _logistic(a * (theta - b))


def information_3pl(
    theta: float,
    difficulty: float,
    discrimination: float = DEFAULT_DISCRIMINATION,
    guessing: float = DEFAULT_GUESSING,
) -> float:
    """
    Fisher information of a 3PL item at the given ability.

    Returns 0.0 instead of dividing when the denominator is numerically zero
    (P at 0 or 1, or c = 1).

    Args:
        theta: Ability level.
        difficulty: Item difficulty (b).
        discrimination: Item discrimination (a).
        guessing: Item guessing parameter (c).

    Returns:
        Information value (non-negative).
    """
    theta, b, a, c = normalize_item_parameters(
        theta, difficulty, discrimination, guessing
    )
    prob = c + (1.0 - c) * _logistic(a * (theta - b))
    q = 1.0 - prob

    denominator = (1.0 - c) ** 2 * prob
    if denominator <= 0.0 or q <= 0.0:
        return 0.0

    return (a**2) * q * (prob - c) ** 2 / denominator


def theta_to_percentage(theta: float) -> float:
    """Map theta in [-3, 3] linearly onto [0, 100] (-3 -> 0, 0 -> 50, 3 -> 100)."""
    return (clamp_theta(theta) - THETA_MIN) / (THETA_MAX - THETA_MIN) * 100.0


def percentage_to_theta(percentage: float) -> float:
    """Inverse of :func:`theta_to_percentage`."""
    percentage = max(0.0, min(100.0, percentage))
    return percentage / 100.0 * (THETA_MAX - THETA_MIN) + THETA_MIN


@dataclass(frozen=True)
class ConfidenceInterval:
    """Confidence interval for an ability estimate, bounded to the theta scale."""

    lower: float
    upper: float
    width: float


def confidence_interval(
    theta: float,
    standard_error: float,
    confidence_level: float = 0.95,
) -> ConfidenceInterval:
    """
    Normal-approximation confidence interval for a theta estimate.

    Supports 95% and 99% levels; other levels use the 95% z-score.
    """
    z_score = _Z_SCORES.get(confidence_level, _Z_SCORES[0.95])
    margin = z_score * standard_error
    return ConfidenceInterval(
        lower=max(THETA_MIN, theta - margin),
        upper=min(THETA_MAX, theta + margin),
        width=2 * margin,
    )


def is_precision_sufficient(standard_error: float, threshold: float = 0.3) -> bool:
    """Whether the standard error is at or below the target threshold."""
    return standard_error <= threshold


@dataclass(frozen=True)
class ExpectedScore:
    """Expected number-correct score for a set of items."""

    expected_score: float
    max_score: int
    percentage: float


def expected_score(
    theta: float,
    items: Iterable[Tuple[float, float, float]],
) -> ExpectedScore:
    """
    Expected number-correct score at ``theta``.

    Args:
        theta: Ability level.
        items: Iterable of (difficulty, discrimination, guessing) tuples.

    Returns:
        ExpectedScore with the raw expectation, item count and percentage.
        An empty item set yields a percentage of 0.
    """
    total = 0.0
    count = 0
    for difficulty, discrimination, guessing in items:
        total += probability_3pl(theta, difficulty, discrimination, guessing)
        count += 1

    percentage = total / count * 100.0 if count else 0.0
    return ExpectedScore(expected_score=total, max_score=count, percentage=percentage)
