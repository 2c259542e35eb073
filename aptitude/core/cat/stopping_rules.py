"""
Stopping rules for Computerized Adaptive Testing (CAT).

Stopping Rules (evaluated in this exact order):
    1. Minimum questions: never stop while fewer than min_questions answered,
       whatever the standard error
    2. Maximum questions: stop at max_questions (safety limit)
    3. Target questions: stop once a configured target length is reached
    4. Precision: stop when SE(theta) <= target_precision
    5. Otherwise continue

SE = 0.30 corresponds to reliability ~0.91 (reliability = 1 - SE^2).

References:
    - Weiss, D. J., & Kingsbury, G. G. (1984). Application of computerized
      adaptive testing to educational problems. Journal of Educational
      Measurement, 21(4), 361-375.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from libs.domain_types import TerminationReason

logger = logging.getLogger(__name__)


@dataclass
class StoppingDecision:
    """
    Result of evaluating stopping criteria for a CAT session.

    Attributes:
        should_stop: Whether the test should terminate.
        reason: Termination reason (if should_stop=True), or None.
        details: Diagnostic information:
            - questions_answered, standard_error
            - min_questions_met: minimum length satisfied
            - at_max_questions: maximum length reached
            - target_reached: configured target length reached (False if none)
            - precision_met: SE at or below the target precision
    """

    should_stop: bool
    reason: Optional[TerminationReason]
    details: Dict[str, Any]


def should_terminate_test(
    questions_answered: int,
    standard_error: float,
    min_questions: int,
    max_questions: int,
    target_questions: Optional[int],
    target_precision: float,
) -> StoppingDecision:
    """
    Decide whether a session should stop after the latest response.

    Args:
        questions_answered: Number of responses so far.
        standard_error: Current SE(theta).
        min_questions: Minimum session length.
        max_questions: Maximum session length.
        target_questions: Preferred session length, or None.
        target_precision: SE at or below which the session may stop.

    Returns:
        StoppingDecision with the first rule that applies.
    """
    min_met = questions_answered >= min_questions
    at_max = questions_answered >= max_questions
    target_reached = (
        target_questions is not None and questions_answered >= target_questions
    )
    precision_met = standard_error <= target_precision

    details: Dict[str, Any] = {
        "questions_answered": questions_answered,
        "standard_error": standard_error,
        "target_precision": target_precision,
        "min_questions_met": min_met,
        "at_max_questions": at_max,
        "target_reached": target_reached,
        "precision_met": precision_met,
    }

    # Rule 1: Minimum questions
    if not min_met:
        return StoppingDecision(should_stop=False, reason=None, details=details)

    # Rule 2: Maximum questions
    if at_max:
        logger.info(
            f"Stopping: max questions reached ({questions_answered}/{max_questions})"
        )
        return StoppingDecision(
            should_stop=True,
            reason=TerminationReason.MAX_QUESTIONS_REACHED,
            details=details,
        )

    # Rule 3: Target questions
    if target_reached:
        logger.info(
            f"Stopping: target questions reached "
            f"({questions_answered}/{target_questions})"
        )
        return StoppingDecision(
            should_stop=True,
            reason=TerminationReason.TARGET_QUESTIONS_REACHED,
            details=details,
        )

    # Rule 4: Precision
    if precision_met:
        logger.info(
            f"Stopping: SE={standard_error:.4f} <= {target_precision} "
            f"after {questions_answered} questions"
        )
        return StoppingDecision(
            should_stop=True,
            reason=TerminationReason.SUFFICIENT_PRECISION,
            details=details,
        )

    return StoppingDecision(should_stop=False, reason=None, details=details)
