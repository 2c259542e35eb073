"""
CAT (Computerized Adaptive Testing) core for the aptitude engine.

This module provides the 3PL IRT model, ability estimation, item selection,
stopping rules and the stateless test controller.
"""

from .ability_estimation import (
    AbilityEstimate,
    PosteriorSummary,
    choose_estimation_method,
    estimate_ability,
    estimate_ability_eap,
    estimate_ability_mle,
    posterior_summary,
)
from .content_balancing import (
    balance_content_coverage,
    get_item_tag,
    track_content_coverage,
)
from .engine import (
    TestState,
    TestStatistics,
    get_test_statistics,
    initialize_test,
    next_question,
    process_response,
)
from .exposure_control import ItemUsageLedger, ItemUsageStats, ItemUsageUpdate
from .irt import (
    confidence_interval,
    expected_score,
    information_3pl,
    is_precision_sufficient,
    normalize_item_parameters,
    percentage_to_theta,
    probability_3pl,
    theta_to_percentage,
)
from .item_selection import (
    SelectionOptions,
    filter_pool,
    select_initial_question,
    select_next_question,
)
from .items import Item, Response
from .priors import adaptive_prior, compute_prior_theta, grade_based_prior
from .stopping_rules import StoppingDecision, should_terminate_test

__all__ = [
    "probability_3pl",
    "information_3pl",
    "normalize_item_parameters",
    "theta_to_percentage",
    "percentage_to_theta",
    "confidence_interval",
    "is_precision_sufficient",
    "expected_score",
    "Item",
    "Response",
    "AbilityEstimate",
    "PosteriorSummary",
    "estimate_ability_mle",
    "estimate_ability_eap",
    "estimate_ability",
    "choose_estimation_method",
    "posterior_summary",
    "SelectionOptions",
    "select_next_question",
    "select_initial_question",
    "filter_pool",
    "balance_content_coverage",
    "track_content_coverage",
    "get_item_tag",
    "StoppingDecision",
    "should_terminate_test",
    "TestState",
    "TestStatistics",
    "initialize_test",
    "process_response",
    "get_test_statistics",
    "next_question",
    "ItemUsageUpdate",
    "ItemUsageStats",
    "ItemUsageLedger",
    "compute_prior_theta",
    "grade_based_prior",
    "adaptive_prior",
]
