"""
Interest profiling from engagement behaviour.

Interest in a subject is inferred from how a student engages with its items
rather than asked directly:

    attempt rate        30%
    completion rate     25%
    time engagement     20%  (peaks at 60 s per item)
    voluntary attempts  15%  (saturates at 3)
    success rate        10%
"""
import logging
import statistics
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from libs.domain_types import InterestLevel

logger = logging.getLogger(__name__)

ATTEMPT_WEIGHT = 30.0
COMPLETION_WEIGHT = 25.0
TIME_WEIGHT = 20.0
VOLUNTARY_WEIGHT = 15.0
SUCCESS_WEIGHT = 10.0

OPTIMAL_SECONDS_PER_ITEM = 60.0
VOLUNTARY_SATURATION = 3

# Engagement pattern analysis looks at this many most recent interactions
PATTERN_WINDOW = 5
MIN_PATTERN_INTERACTIONS = 3


@dataclass
class EngagementMetrics:
    """Engagement counters for one subject."""

    questions_attempted: int = 0
    total_questions: int = 1
    completion_rate: float = 0.0  # Percentage 0-100
    avg_time_per_question: float = 0.0  # Seconds
    voluntary_attempts: int = 0
    correct_answers: int = 0


@dataclass
class SubjectInterest:
    """Interest discovered for one subject."""

    subject_id: str
    interest_score: float
    interest_level: InterestLevel
    questions_attempted: int
    avg_time: float
    accuracy: float  # Percentage 0-100


@dataclass
class EngagementPattern:
    """Trend and regularity of recent engagement."""

    trend: str  # increasing, decreasing, stable or insufficient_data
    consistency: float  # 0-100
    peak_index: Optional[int] = None  # Index of the longest recent interaction
    avg_time: float = 0.0
    std_dev: float = 0.0


def calculate_interest_score(metrics: EngagementMetrics) -> float:
    """Weighted engagement score in [0, 100]."""
    attempt_rate = min(1.0, metrics.questions_attempted / max(1, metrics.total_questions))
    completion = max(0.0, min(100.0, metrics.completion_rate)) / 100.0
    time_deviation = (
        abs(metrics.avg_time_per_question - OPTIMAL_SECONDS_PER_ITEM)
        / OPTIMAL_SECONDS_PER_ITEM
    )
    time_engagement = max(0.0, 1.0 - time_deviation)
    voluntary = min(1.0, metrics.voluntary_attempts / VOLUNTARY_SATURATION)
    success = (
        metrics.correct_answers / metrics.questions_attempted
        if metrics.questions_attempted > 0
        else 0.0
    )

    score = (
        attempt_rate * ATTEMPT_WEIGHT
        + completion * COMPLETION_WEIGHT
        + time_engagement * TIME_WEIGHT
        + voluntary * VOLUNTARY_WEIGHT
        + success * SUCCESS_WEIGHT
    )
    return max(0.0, min(100.0, score))


def classify_interest_level(interest_score: float) -> InterestLevel:
    """Bucket an interest score at 80/60/40/20."""
    if interest_score >= 80:
        return InterestLevel.VERY_HIGH
    if interest_score >= 60:
        return InterestLevel.HIGH
    if interest_score >= 40:
        return InterestLevel.MEDIUM
    if interest_score >= 20:
        return InterestLevel.LOW
    return InterestLevel.VERY_LOW


def _field(response: Any, *names: str, default: Any = None) -> Any:
    for name in names:
        if isinstance(response, dict):
            if response.get(name) is not None:
                return response[name]
        elif getattr(response, name, None) is not None:
            return getattr(response, name)
    return default


def discover_interests(responses: Sequence[Any]) -> List[SubjectInterest]:
    """
    Rank subjects by interest from a discovery-phase response set.

    Each response needs a subject (``subject_id`` or ``content_tag``), a
    ``time_taken`` in seconds and ``is_correct``. Responses without a subject
    are skipped. Every discovery item counts as completed.

    Returns:
        SubjectInterest entries sorted by interest score (descending).
    """
    groups: Dict[str, List[Any]] = {}
    for response in responses:
        subject_id = _field(response, "subject_id", "content_tag")
        if subject_id is None:
            continue
        groups.setdefault(str(subject_id), []).append(response)

    interests = []
    for subject_id, group in groups.items():
        total_time = sum(float(_field(r, "time_taken", default=0.0)) for r in group)
        correct = sum(1 for r in group if _field(r, "is_correct", default=False))
        attempted = len(group)
        avg_time = total_time / attempted

        score = calculate_interest_score(
            EngagementMetrics(
                questions_attempted=attempted,
                total_questions=attempted,
                completion_rate=100.0,
                avg_time_per_question=avg_time,
                voluntary_attempts=0,
                correct_answers=correct,
            )
        )
        interests.append(
            SubjectInterest(
                subject_id=subject_id,
                interest_score=score,
                interest_level=classify_interest_level(score),
                questions_attempted=attempted,
                avg_time=avg_time,
                accuracy=correct / attempted * 100.0,
            )
        )

    interests.sort(key=lambda s: s.interest_score, reverse=True)
    return interests


def detect_engagement_patterns(times: Sequence[float]) -> EngagementPattern:
    """
    Trend and consistency of the last five interaction times.

    Trend counts rises and falls between consecutive times: more than one
    extra rise is ``increasing``, more than one extra fall ``decreasing``.
    Consistency is 100 minus the coefficient of variation in percent.

    Args:
        times: Seconds spent per interaction, oldest first.
    """
    if len(times) < MIN_PATTERN_INTERACTIONS:
        return EngagementPattern(trend="insufficient_data", consistency=0.0)

    recent = [float(t) for t in times[-PATTERN_WINDOW:]]
    increasing = sum(1 for prev, cur in zip(recent, recent[1:]) if cur > prev)
    decreasing = sum(1 for prev, cur in zip(recent, recent[1:]) if cur < prev)

    if increasing > decreasing + 1:
        trend = "increasing"
    elif decreasing > increasing + 1:
        trend = "decreasing"
    else:
        trend = "stable"

    avg_time = statistics.fmean(recent)
    std_dev = statistics.pstdev(recent)
    consistency = max(0.0, 100.0 - std_dev / avg_time * 100.0) if avg_time > 0 else 0.0

    return EngagementPattern(
        trend=trend,
        consistency=consistency,
        peak_index=recent.index(max(recent)),
        avg_time=avg_time,
        std_dev=std_dev,
    )
