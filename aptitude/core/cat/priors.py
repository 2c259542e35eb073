"""
Prior ability distributions for EAP estimation.

A session starts from the population prior N(0, 1) unless the hosting
application knows something about the examinee. The helpers here turn that
knowledge into a (prior_mean, prior_sd) pair for TestConfig:

    - compute_prior_theta: precision-weighted average of past sessions
    - grade_based_prior: expected ability by school grade
    - adaptive_prior: shift an existing prior by recent accuracy
"""
import logging
import math
from typing import Mapping, Sequence, Tuple

from aptitude.core.cat.irt import clamp_theta

logger = logging.getLogger(__name__)

POPULATION_PRIOR: Tuple[float, float] = (0.0, 1.0)

# Expected ability by grade (1-12); grades outside the map use the population mean
GRADE_TO_THETA: Mapping[int, float] = {
    1: -1.5,
    2: -1.2,
    3: -1.0,
    4: -0.8,
    5: -0.6,
    6: -0.4,
    7: -0.2,
    8: 0.0,
    9: 0.2,
    10: 0.4,
    11: 0.6,
    12: 0.8,
}

# adaptive_prior tuning
ADAPTIVE_MIN_RESPONSES = 3
HIGH_ACCURACY = 0.8
LOW_ACCURACY = 0.4
MEAN_SHIFT = 0.3
SD_REDUCTION_PER_RESPONSE = 0.03
MAX_SD_REDUCTION = 0.3
MIN_ADAPTIVE_SD = 0.5


def compute_prior_theta(
    previous_thetas: Sequence[float],
    previous_ses: Sequence[float],
) -> Tuple[float, float]:
    """
    Compute a prior ability estimate from a user's previous test sessions.

    Uses precision-weighted averaging of previous theta estimates, where
    precision = 1/SE². Sessions with lower SE get more weight.

    Args:
        previous_thetas: Final theta estimates from past sessions.
        previous_ses: Corresponding SE values; non-positive values are skipped.

    Returns:
        Tuple of (prior_mean, prior_sd). The mean is clamped to [-3, 3] and the
        SD to [0.1, 1.0]. With no usable sessions, the population prior (0.0, 1.0).

    Raises:
        ValueError: If the two sequences differ in length.
    """
    if not previous_thetas or not previous_ses:
        return POPULATION_PRIOR

    if len(previous_thetas) != len(previous_ses):
        raise ValueError(
            f"previous_thetas length ({len(previous_thetas)}) must match "
            f"previous_ses length ({len(previous_ses)})"
        )

    total_precision = 0.0
    weighted_sum = 0.0
    for theta, se in zip(previous_thetas, previous_ses):
        if se <= 0:
            logger.warning(f"Skipping session with non-positive SE: {se}")
            continue
        precision = 1.0 / (se**2)
        total_precision += precision
        weighted_sum += theta * precision

    if total_precision == 0:
        return POPULATION_PRIOR

    prior_mean = clamp_theta(weighted_sum / total_precision)
    prior_sd = max(0.1, min(1.0, 1.0 / math.sqrt(total_precision)))

    return (prior_mean, prior_sd)


def grade_based_prior(grade: int) -> Tuple[float, float]:
    """Prior for a student in ``grade`` (1-12). The SD stays at 1.0."""
    return (GRADE_TO_THETA.get(grade, 0.0), 1.0)


def adaptive_prior(
    recent_responses: Sequence,
    current_prior: Tuple[float, float] = POPULATION_PRIOR,
) -> Tuple[float, float]:
    """
    Adjust a prior by the examinee's recent accuracy.

    Accuracy above 0.8 moves the mean up by 0.3, below 0.4 down by 0.3. The
    SD shrinks by 0.03 per response (at most 0.3) but not below 0.5. Fewer
    than three responses leave the prior unchanged.

    Args:
        recent_responses: Recent responses exposing ``is_correct``.
        current_prior: (mean, sd) to adjust.
    """
    if len(recent_responses) < ADAPTIVE_MIN_RESPONSES:
        return current_prior

    mean, sd = current_prior
    accuracy = sum(1 for r in recent_responses if r.is_correct) / len(recent_responses)

    if accuracy > HIGH_ACCURACY:
        mean += MEAN_SHIFT
    elif accuracy < LOW_ACCURACY:
        mean -= MEAN_SHIFT

    sd_reduction = min(MAX_SD_REDUCTION, len(recent_responses) * SD_REDUCTION_PER_RESPONSE)
    return (clamp_theta(mean), max(MIN_ADAPTIVE_SD, sd - sd_reduction))
