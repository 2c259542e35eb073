"""
Monte Carlo simulation harness for the adaptive test controller.

Simulates N examinees with known ability taking adaptive tests against a
synthetic 3PL item bank, driving the same initialize_test / next_question /
process_response loop a hosting application runs. Used to check that the
stopping rules and estimator policy give acceptable test lengths and
precision before changing defaults.

References:
    - Weiss, D. J. (2004). Computerized adaptive testing for effective and
      efficient measurement in counseling and education. Measurement and
      Evaluation in Counseling and Development, 37(2), 70-84.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from aptitude.core.cat.engine import initialize_test, next_question, process_response
from aptitude.core.cat.irt import probability_3pl
from aptitude.core.cat.item_selection import SelectionOptions
from aptitude.core.cat.items import Item
from aptitude.schemas.sessions import TestConfig
from libs.domain_types import SelectionMethod

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TAGS = ["math", "science", "language", "social_studies"]

# Synthetic item parameter distributions (Lord, 1980)
DISCRIMINATION_LOGNORMAL_MEAN = 0.0
DISCRIMINATION_LOGNORMAL_SD = 0.3
DISCRIMINATION_MIN = 0.5
DISCRIMINATION_MAX = 2.5
DIFFICULTY_NORMAL_MEAN = 0.0
DIFFICULTY_NORMAL_SD = 1.0
DIFFICULTY_MIN = -3.0
DIFFICULTY_MAX = 3.0
GUESSING = 0.25

# Answer keys for simulated items
_CORRECT_ANSWER = "A"
_WRONG_ANSWER = "B"

# Ability bands for stratified analysis
QUINTILE_BOUNDARIES = [
    ("Very Low", -3.0, -1.2),
    ("Low", -1.2, -0.4),
    ("Average", -0.4, 0.4),
    ("High", 0.4, 1.2),
    ("Very High", 1.2, 3.0),
]


@dataclass
class SimulationConfig:
    """Configuration for a simulation run."""

    n_examinees: int = 500
    theta_mean: float = 0.0  # Mean of the true theta distribution
    theta_sd: float = 1.0  # SD of the true theta distribution
    min_questions: int = 10
    max_questions: int = 60
    target_questions: Optional[int] = 20
    target_precision: float = 0.3
    selection_method: SelectionMethod = SelectionMethod.MAXIMUM_INFORMATION
    # 0 always takes the top-ranked item, which keeps runs reproducible
    randomness: float = 0.0
    content_balancing: bool = False
    seed: int = 42


@dataclass
class ExamineeResult:
    """Per-examinee simulation results."""

    true_theta: float
    estimated_theta: float
    final_se: float
    bias: float  # estimated_theta - true_theta
    items_administered: int
    stopping_reason: str
    precision_met: bool  # final SE <= target precision
    content_coverage: Dict[str, int] = field(default_factory=dict)


@dataclass
class QuintileMetrics:
    """Metrics for an ability band."""

    label: str
    theta_range: Tuple[float, float]
    n: int
    mean_items: float
    mean_se: float
    mean_bias: float
    rmse: float


@dataclass
class SimulationResult:
    """Aggregate simulation results."""

    config: SimulationConfig
    examinee_results: List[ExamineeResult]
    mean_items: float
    median_items: float
    mean_se: float
    mean_bias: float
    rmse: float
    precision_rate: float
    quintile_metrics: List[QuintileMetrics]
    stopping_reason_counts: Dict[str, int]


def generate_item_bank(
    n_items_per_tag: int = 50,
    content_tags: Optional[List[str]] = None,
    seed: int = 42,
) -> List[Item]:
    """
    Generate a synthetic item bank with realistic 3PL parameters.

    - Discrimination (a) ~ LogNormal(0.0, 0.3), clipped to [0.5, 2.5]
    - Difficulty (b) ~ Normal(0.0, 1.0), clipped to [-3.0, 3.0]
    - Guessing (c) fixed at 0.25 (four-option multiple choice)

    Args:
        n_items_per_tag: Number of items per content tag.
        content_tags: Content tags (default DEFAULT_CONTENT_TAGS).
        seed: Random seed for reproducibility.

    Returns:
        List of Items with ids 1..N.
    """
    if content_tags is None:
        content_tags = DEFAULT_CONTENT_TAGS

    rng = np.random.default_rng(seed)
    items = []
    item_id = 1

    for tag in content_tags:
        discriminations = np.clip(
            rng.lognormal(
                mean=DISCRIMINATION_LOGNORMAL_MEAN,
                sigma=DISCRIMINATION_LOGNORMAL_SD,
                size=n_items_per_tag,
            ),
            DISCRIMINATION_MIN,
            DISCRIMINATION_MAX,
        )
        difficulties = np.clip(
            rng.normal(
                loc=DIFFICULTY_NORMAL_MEAN,
                scale=DIFFICULTY_NORMAL_SD,
                size=n_items_per_tag,
            ),
            DIFFICULTY_MIN,
            DIFFICULTY_MAX,
        )
        for a, b in zip(discriminations, difficulties):
            items.append(
                Item(
                    id=item_id,
                    difficulty=float(b),
                    discrimination=float(a),
                    guessing=GUESSING,
                    content_tag=tag,
                    correct_answer=_CORRECT_ANSWER,
                )
            )
            item_id += 1

    logger.info(
        f"Generated item bank: {len(items)} items across {len(content_tags)} "
        f"content tags ({n_items_per_tag} per tag)"
    )

    return items


def simulate_response(true_theta: float, item: Item, rng: random.Random) -> bool:
    """Draw a Bernoulli response from the item's 3PL curve at ``true_theta``."""
    prob = probability_3pl(
        true_theta, item.difficulty, item.discrimination, item.guessing
    )
    return rng.random() < prob


def run_simulation(
    item_bank: Sequence[Item],
    config: Optional[SimulationConfig] = None,
) -> SimulationResult:
    """
    Run the controller loop for ``config.n_examinees`` simulated examinees.

    For each examinee:
    1. Draw true_theta from N(theta_mean, theta_sd), clipped to [-3, 3]
    2. initialize_test with the simulation's bounds
    3. Loop: next_question -> simulate_response -> process_response until
       the session completes or the bank is exhausted
    4. Record an ExamineeResult

    Returns:
        SimulationResult with per-examinee and aggregate metrics.

    Raises:
        ValueError: If n_examinees is not positive.
    """
    config = config or SimulationConfig()
    if config.n_examinees <= 0:
        raise ValueError(f"n_examinees must be positive, got {config.n_examinees}")

    logger.info(
        f"Starting CAT simulation: N={config.n_examinees}, "
        f"theta ~ N({config.theta_mean}, {config.theta_sd}^2)"
    )

    rng = random.Random(config.seed)
    np_rng = np.random.default_rng(config.seed)
    test_config = TestConfig(
        min_questions=config.min_questions,
        max_questions=config.max_questions,
        target_questions=config.target_questions,
        target_precision=config.target_precision,
        selection_method=config.selection_method,
    )
    options = SelectionOptions(
        method=config.selection_method,
        randomness=config.randomness,
        content_balancing=config.content_balancing,
    )

    true_thetas = np.clip(
        np_rng.normal(config.theta_mean, config.theta_sd, size=config.n_examinees),
        DIFFICULTY_MIN,
        DIFFICULTY_MAX,
    )

    examinee_results = []
    for examinee_id, true_theta in enumerate(true_thetas, start=1):
        true_theta = float(true_theta)
        state = initialize_test(test_config)
        stop_reason = "no_items"

        while True:
            item = next_question(state, item_bank, options=options, rng=rng)
            if item is None:
                logger.warning(
                    f"Examinee {examinee_id}: item bank exhausted after "
                    f"{state.questions_answered} items"
                )
                break

            answer = (
                _CORRECT_ANSWER
                if simulate_response(true_theta, item, rng)
                else _WRONG_ANSWER
            )
            state = process_response(state, item, answer, time_taken=0.0)

            if state.is_complete:
                stop_reason = (
                    state.termination_reason.value
                    if state.termination_reason
                    else "unknown"
                )
                break

        coverage: Dict[str, int] = {}
        for r in state.responses:
            if r.content_tag is not None:
                coverage[r.content_tag] = coverage.get(r.content_tag, 0) + 1

        examinee_results.append(
            ExamineeResult(
                true_theta=true_theta,
                estimated_theta=state.theta,
                final_se=state.standard_error,
                bias=state.theta - true_theta,
                items_administered=state.questions_answered,
                stopping_reason=stop_reason,
                precision_met=state.standard_error <= config.target_precision,
                content_coverage=coverage,
            )
        )

        if examinee_id % 100 == 0:
            logger.info(f"Completed {examinee_id}/{config.n_examinees} examinees")

    return _aggregate_results(config, examinee_results)


def _aggregate_results(
    config: SimulationConfig,
    examinee_results: List[ExamineeResult],
) -> SimulationResult:
    """Compute overall and per-band metrics."""
    if not examinee_results:
        raise ValueError("Cannot aggregate results from empty examinee list")

    items = np.array([r.items_administered for r in examinee_results], dtype=float)
    ses = np.array([r.final_se for r in examinee_results], dtype=float)
    biases = np.array([r.bias for r in examinee_results], dtype=float)

    stopping_reason_counts: Dict[str, int] = {}
    for result in examinee_results:
        reason = result.stopping_reason
        stopping_reason_counts[reason] = stopping_reason_counts.get(reason, 0) + 1

    result = SimulationResult(
        config=config,
        examinee_results=examinee_results,
        mean_items=float(np.mean(items)),
        median_items=float(np.median(items)),
        mean_se=float(np.mean(ses)),
        mean_bias=float(np.mean(biases)),
        rmse=float(np.sqrt(np.mean(biases**2))),
        precision_rate=sum(1 for r in examinee_results if r.precision_met)
        / len(examinee_results),
        quintile_metrics=compute_quintile_metrics(examinee_results),
        stopping_reason_counts=stopping_reason_counts,
    )

    logger.info(
        f"Simulation complete: mean_items={result.mean_items:.1f}, "
        f"median_items={result.median_items:.1f}, "
        f"mean_SE={result.mean_se:.3f}, RMSE={result.rmse:.3f}, "
        f"precision_rate={result.precision_rate:.1%}"
    )

    return result


def compute_quintile_metrics(
    examinee_results: List[ExamineeResult],
) -> List[QuintileMetrics]:
    """
    Stratify results by true theta.

    Bands use true (not estimated) theta; the outer bands are open-ended.
    Empty bands are reported with n=0 and zeroed metrics.
    """
    metrics = []
    last = len(QUINTILE_BOUNDARIES) - 1

    for index, (label, theta_min, theta_max) in enumerate(QUINTILE_BOUNDARIES):
        band = [
            r
            for r in examinee_results
            if (index == 0 or r.true_theta >= theta_min)
            and (index == last or r.true_theta < theta_max)
        ]

        if not band:
            metrics.append(
                QuintileMetrics(
                    label=label,
                    theta_range=(theta_min, theta_max),
                    n=0,
                    mean_items=0.0,
                    mean_se=0.0,
                    mean_bias=0.0,
                    rmse=0.0,
                )
            )
            continue

        biases = np.array([r.bias for r in band], dtype=float)
        metrics.append(
            QuintileMetrics(
                label=label,
                theta_range=(theta_min, theta_max),
                n=len(band),
                mean_items=float(np.mean([r.items_administered for r in band])),
                mean_se=float(np.mean([r.final_se for r in band])),
                mean_bias=float(np.mean(biases)),
                rmse=float(np.sqrt(np.mean(biases**2))),
            )
        )

    return metrics
