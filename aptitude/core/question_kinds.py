"""
Question kinds for profile (personality / interest) questionnaires.

Each kind is its own frozen dataclass carrying only the fields its scoring
needs, and ``QuestionAnswer`` is the union of them. ``score_answer`` handles
every variant explicitly; adding a variant without a scoring branch is caught
by type checkers through ``assert_never``.

Scores are on a 1-10 scale per dimension:

    ScaleRating       value (11 - value when reverse scored), times weight
    MultipleChoice    option_index + 1, times weight
    OpenEnded         not scored
    ForcedChoicePair  chosen dimension 10, the other 1
    Ranking           linear from 10 (first) down to 1 (last)
"""
from dataclasses import dataclass
from typing import Dict, Iterable, Tuple, Union, assert_never

SCALE_MIN = 1
SCALE_MAX = 10

# Answers per dimension at which confidence reaches 100
FULL_CONFIDENCE_ANSWERS = 10


@dataclass(frozen=True)
class ScaleRating:
    """1-10 rating."""

    value: int
    reverse_scored: bool = False
    weight: float = 1.0

    def __post_init__(self):
        if not SCALE_MIN <= self.value <= SCALE_MAX:
            raise ValueError(
                f"Scale value must be between {SCALE_MIN} and {SCALE_MAX}, "
                f"got {self.value}"
            )


@dataclass(frozen=True)
class MultipleChoice:
    """Choice of one option by zero-based index."""

    option_index: int
    weight: float = 1.0

    def __post_init__(self):
        if self.option_index < 0:
            raise ValueError(f"option_index is invalid: {self.option_index}")


@dataclass(frozen=True)
class OpenEnded:
    """Free-text answer, stored but not scored."""

    text: str

    def __post_init__(self):
        if not self.text.strip():
            raise ValueError("Open-ended answer text is required")


@dataclass(frozen=True)
class ForcedChoicePair:
    """Choice between two statements keyed to two dimensions."""

    first_dimension: str
    second_dimension: str
    chose_first: bool

    def __post_init__(self):
        if self.first_dimension == self.second_dimension:
            raise ValueError("Forced-choice dimensions must differ")


@dataclass(frozen=True)
class Ranking:
    """Dimensions ordered from most to least preferred."""

    ordered_dimensions: Tuple[str, ...]

    def __post_init__(self):
        if not self.ordered_dimensions:
            raise ValueError("Ranking must contain at least one dimension")
        if len(set(self.ordered_dimensions)) != len(self.ordered_dimensions):
            raise ValueError("Ranking contains duplicate dimensions")


QuestionAnswer = Union[ScaleRating, MultipleChoice, OpenEnded, ForcedChoicePair, Ranking]


@dataclass(frozen=True)
class DimensionScore:
    """Aggregated score for one dimension."""

    raw_score: float  # Average on the 1-10 scale
    score: float  # 0-100
    count: int
    confidence: float  # 0-100


def score_answer(dimension_id: str, answer: QuestionAnswer) -> Dict[str, float]:
    """
    Score one answer.

    Args:
        dimension_id: Dimension the question measures. Forced-choice and
            ranking answers name their own dimensions and ignore it.
        answer: The typed answer.

    Returns:
        Dimension -> score contribution (empty for unscored answers).
    """
    if isinstance(answer, ScaleRating):
        value = SCALE_MAX + SCALE_MIN - answer.value if answer.reverse_scored else answer.value
        return {dimension_id: value * answer.weight}
    elif isinstance(answer, MultipleChoice):
        return {dimension_id: (answer.option_index + 1) * answer.weight}
    elif isinstance(answer, OpenEnded):
        return {}
    elif isinstance(answer, ForcedChoicePair):
        chosen, other = (
            (answer.first_dimension, answer.second_dimension)
            if answer.chose_first
            else (answer.second_dimension, answer.first_dimension)
        )
        return {chosen: float(SCALE_MAX), other: float(SCALE_MIN)}
    elif isinstance(answer, Ranking):
        n = len(answer.ordered_dimensions)
        if n == 1:
            return {answer.ordered_dimensions[0]: float(SCALE_MAX)}
        step = (SCALE_MAX - SCALE_MIN) / (n - 1)
        return {
            dimension: SCALE_MAX - step * position
            for position, dimension in enumerate(answer.ordered_dimensions)
        }
    else:
        assert_never(answer)


def aggregate_dimension_scores(
    scored_answers: Iterable[Dict[str, float]],
) -> Dict[str, DimensionScore]:
    """
    Average per-dimension contributions into 0-100 scores.

    score = average / 10 * 100; confidence = min(100, count / 10 * 100).
    """
    totals: Dict[str, float] = {}
    counts: Dict[str, int] = {}
    for contribution in scored_answers:
        for dimension, value in contribution.items():
            totals[dimension] = totals.get(dimension, 0.0) + value
            counts[dimension] = counts.get(dimension, 0) + 1

    results = {}
    for dimension, total in totals.items():
        count = counts[dimension]
        average = total / count
        results[dimension] = DimensionScore(
            raw_score=average,
            score=average / SCALE_MAX * 100.0,
            count=count,
            confidence=min(100.0, count / FULL_CONFIDENCE_ANSWERS * 100.0),
        )
    return results
