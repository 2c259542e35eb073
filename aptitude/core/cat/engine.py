"""
Test controller for adaptive test sessions.

Drives one session through Initialized -> InProgress -> Complete. The
controller is stateless between calls: the hosting application persists the
returned TestState and hands it back with the next response. Every call
returns a new TestState; a complete state is terminal.

Callers must serialize process_response per session. Each call re-estimates
ability from the entire response history, so interleaved calls against the
same session would lose or duplicate a response.
"""
import logging
import random
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Dict, Hashable, Optional, Sequence, Tuple

from aptitude.core.cat.ability_estimation import (
    UNDEFINED_STANDARD_ERROR,
    AbilityEstimate,
    estimate_ability,
)
from aptitude.core.cat.content_balancing import track_content_coverage
from aptitude.core.cat.exposure_control import ItemUsageUpdate
from aptitude.core.cat.irt import (
    ConfidenceInterval,
    confidence_interval,
    theta_to_percentage,
)
from aptitude.core.cat.item_selection import (
    SelectionOptions,
    select_initial_question,
    select_next_question,
)
from aptitude.core.cat.items import Item, Response
from aptitude.core.cat.stopping_rules import should_terminate_test
from aptitude.core.datetime_utils import elapsed_seconds, utc_now
from aptitude.schemas.sessions import TestConfig
from libs.domain_types import SelectionMethod, TerminationReason, TestStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TestState:
    """Snapshot of an adaptive test session.

    ``responses`` and ``used_item_ids`` only ever grow by one entry per
    processed response, so ``questions_answered`` is derived rather than
    stored.
    """

    theta: float
    standard_error: float
    min_questions: int
    max_questions: int
    target_questions: Optional[int]
    target_precision: float
    selection_method: SelectionMethod
    started_at: datetime
    prior_mean: float = 0.0
    prior_sd: float = 1.0
    status: TestStatus = TestStatus.IN_PROGRESS
    responses: Tuple[Response, ...] = ()
    used_item_ids: Tuple[Hashable, ...] = ()
    termination_reason: Optional[TerminationReason] = None
    ended_at: Optional[datetime] = None
    last_estimate: Optional[AbilityEstimate] = None
    # Usage increment for the item answered last, for the item repository
    pending_usage_update: Optional[ItemUsageUpdate] = field(default=None, compare=False)

    @property
    def questions_answered(self) -> int:
        return len(self.responses)

    @property
    def correct_count(self) -> int:
        return sum(1 for r in self.responses if r.is_correct)

    @property
    def is_complete(self) -> bool:
        return self.status == TestStatus.COMPLETE


@dataclass
class TestStatistics:
    """Summary statistics for a session."""

    total_questions: int
    correct_count: int
    accuracy: float  # Percentage 0-100
    average_difficulty: float
    average_time_per_item: float  # Seconds
    total_time_seconds: float
    theta: float
    standard_error: float
    ability_percentage: float
    confidence_interval: ConfidenceInterval
    content_scores: Dict[str, Dict[str, float]]


def initialize_test(
    config: Optional[TestConfig] = None,
    now: Optional[datetime] = None,
) -> TestState:
    """
    Create a new session state.

    Args:
        config: Session configuration (defaults from settings when None).
        now: Start timestamp (defaults to the current UTC time).

    Returns:
        TestState with theta at the starting theta, SE=999, no responses and
        status in_progress.
    """
    config = config or TestConfig()

    state = TestState(
        theta=config.starting_theta,
        standard_error=UNDEFINED_STANDARD_ERROR,
        min_questions=config.min_questions,
        max_questions=config.max_questions,
        target_questions=config.target_questions,
        target_precision=config.target_precision,
        selection_method=config.selection_method,
        prior_mean=config.prior_mean,
        prior_sd=config.prior_sd,
        started_at=now or utc_now(),
    )

    logger.info(
        f"Initialized adaptive test: theta={state.theta:.3f}, "
        f"questions {state.min_questions}-{state.max_questions} "
        f"(target={state.target_questions}), precision={state.target_precision}, "
        f"method={state.selection_method.value}"
    )

    return state


def process_response(
    state: TestState,
    item: Item,
    selected_answer: Optional[str],
    time_taken: float = 0.0,
    now: Optional[datetime] = None,
) -> TestState:
    """
    Record one response and return the successor state.

    Steps:
    - Append a Response (correct iff selected_answer equals the item's
      correct answer)
    - Re-estimate ability over the full history (EAP below the response
      threshold, MLE above, EAP on MLE non-convergence)
    - Append the item id to the used ids
    - Evaluate the stopping rules; on stop, mark complete with a reason and
      end timestamp

    A complete state, or an item that was already used in this session, is
    returned unchanged.

    Args:
        state: Last persisted session state.
        item: The item that was answered.
        selected_answer: The examinee's answer.
        time_taken: Seconds spent on the item.
        now: Response timestamp (defaults to the current UTC time).

    Returns:
        New TestState with exactly one more response.
    """
    if state.is_complete:
        logger.warning(
            f"Ignoring response to item {item.id}: session already complete "
            f"({state.termination_reason.value if state.termination_reason else 'unknown'})",
            extra={"item_id": item.id},
        )
        return state

    if item.id in state.used_item_ids:
        logger.warning(
            f"Ignoring duplicate response to item {item.id}",
            extra={"item_id": item.id},
        )
        return state

    now = now or utc_now()
    is_correct = item.correct_answer is not None and selected_answer == item.correct_answer

    response = Response(
        item_id=item.id,
        is_correct=is_correct,
        difficulty=item.difficulty,
        discrimination=item.discrimination,
        guessing=item.guessing,
        content_tag=item.content_tag,
        selected_answer=selected_answer,
        time_taken=max(0.0, time_taken),
        timestamp=now,
    )
    responses = state.responses + (response,)

    estimate = estimate_ability(
        responses,
        initial_theta=state.theta,
        prior_mean=state.prior_mean,
        prior_sd=state.prior_sd,
    )

    decision = should_terminate_test(
        questions_answered=len(responses),
        standard_error=estimate.standard_error,
        min_questions=state.min_questions,
        max_questions=state.max_questions,
        target_questions=state.target_questions,
        target_precision=state.target_precision,
    )

    logger.debug(
        f"Response #{len(responses)} (item {item.id}, correct={is_correct}) -> "
        f"theta={estimate.theta:.3f}, SE={estimate.standard_error:.3f}, "
        f"method={estimate.method.value}, stop={decision.should_stop}",
        extra={
            "item_id": item.id,
            "theta": estimate.theta,
            "standard_error": estimate.standard_error,
        },
    )

    new_state = replace(
        state,
        responses=responses,
        used_item_ids=state.used_item_ids + (item.id,),
        theta=estimate.theta,
        standard_error=estimate.standard_error,
        last_estimate=estimate,
        pending_usage_update=ItemUsageUpdate(
            item_id=item.id, administered=1, correct=int(is_correct)
        ),
    )

    if decision.should_stop:
        new_state = replace(
            new_state,
            status=TestStatus.COMPLETE,
            termination_reason=decision.reason,
            ended_at=now,
        )
        logger.info(
            f"Adaptive test complete after {len(responses)} questions: "
            f"theta={estimate.theta:.3f}, SE={estimate.standard_error:.3f}",
            extra={"stop_reason": decision.reason.value if decision.reason else None},
        )

    return new_state


def get_test_statistics(state: TestState) -> Optional[TestStatistics]:
    """
    Summary statistics for a session.

    Accuracy is correct / total * 100. Average time per item is the mean of
    the recorded response times. Total time is the wall-clock time between
    the start and end timestamps (0 while the session is still open).

    Returns:
        TestStatistics, or None when no response has been recorded.
    """
    responses = state.responses
    if not responses:
        return None

    total = len(responses)
    correct = state.correct_count

    content_scores: Dict[str, Dict[str, float]] = {}
    for tag, count in track_content_coverage(responses).items():
        tag_correct = sum(1 for r in responses if r.content_tag == tag and r.is_correct)
        content_scores[tag] = {
            "items_administered": count,
            "correct_count": tag_correct,
            "accuracy": round(tag_correct / count * 100.0, 1),
        }

    return TestStatistics(
        total_questions=total,
        correct_count=correct,
        accuracy=correct / total * 100.0,
        average_difficulty=sum(r.difficulty for r in responses) / total,
        average_time_per_item=sum(r.time_taken for r in responses) / total,
        total_time_seconds=elapsed_seconds(state.started_at, state.ended_at),
        theta=state.theta,
        standard_error=state.standard_error,
        ability_percentage=theta_to_percentage(state.theta),
        confidence_interval=confidence_interval(state.theta, state.standard_error),
        content_scores=content_scores,
    )


def next_question(
    state: TestState,
    pool: Sequence[Item],
    options: Optional[SelectionOptions] = None,
    rng: Optional[random.Random] = None,
) -> Optional[Item]:
    """
    Choose the item to present next.

    Before any response the item is drawn from those closest to the current
    theta; afterwards the session's selection method is used.

    Returns:
        The next Item, or None when the session is complete or no unused item
        remains.
    """
    if state.is_complete:
        return None

    if not state.responses:
        return select_initial_question(
            pool,
            target_difficulty=state.theta,
            used_ids=state.used_item_ids,
            rng=rng,
        )

    return select_next_question(
        state.theta,
        pool,
        state.used_item_ids,
        options=options or SelectionOptions(method=state.selection_method),
        rng=rng,
        administered=state.responses,
    )
