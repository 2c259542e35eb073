"""
Ability estimation for Computerized Adaptive Testing under the 3PL model.

Two interchangeable estimators share the same response-history input:

MLE (Newton-Raphson):
    theta_{k+1} = theta_k - l'(theta_k) / l''(theta_k)

    where l is the log-likelihood of the response vector. Each step is clamped
    to [-3, 3]; iteration stops once the applied step is below the tolerance.
    SE = 1 / sqrt(sum of item information at the final theta).

EAP (Expected A Posteriori):
    theta_hat = sum(theta_k * L(theta_k) * prior(theta_k)) / sum(L(theta_k) * prior(theta_k))

    over a fixed 41-point grid on [-3, 3]. SE is the posterior SD. EAP is
    well defined for all-correct / all-incorrect patterns where MLE runs off
    to the boundary, so it is used while evidence is sparse (Bock & Mislevy,
    1982).

The switch between them is :func:`choose_estimation_method`.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from aptitude.core.cat.irt import (
    THETA_MAX,
    THETA_MIN,
    clamp_theta,
    information_3pl,
    normalize_item_parameters,
)
from aptitude.core.cat.items import Response
from aptitude.core.config import settings
from libs.domain_types import EstimationMethod

logger = logging.getLogger(__name__)

# Quadrature configuration: 41 points over [-3, 3] (step 0.15)
QUADRATURE_POINTS = 41
QUADRATURE_RANGE = (THETA_MIN, THETA_MAX)

# Reported SE when no information is available (no responses)
UNDEFINED_STANDARD_ERROR = 999.0

# P is kept this far from 0 and 1 when forming likelihood derivatives
_PROB_EPSILON = 1e-10


@dataclass(frozen=True)
class AbilityEstimate:
    """Point estimate of ability with its uncertainty.

    ``iterations`` and ``converged`` are only meaningful for MLE; EAP leaves
    them as None because it is a closed-form quadrature.
    """

    theta: float
    standard_error: float
    method: EstimationMethod
    iterations: Optional[int] = None
    converged: Optional[bool] = None


@dataclass(frozen=True)
class PosteriorSummary:
    """Summary of the quadrature posterior over theta."""

    mean: float
    sd: float
    mode: float
    confidence: float  # 0-100, share of prior SD removed by the data


def _item_parameters(responses: Sequence[Response]) -> List[Tuple[float, float, float, bool]]:
    """Normalize each response's item parameters once: (b, a, c, is_correct)."""
    params = []
    for r in responses:
        _, b, a, c = normalize_item_parameters(
            0.0, r.difficulty, r.discrimination, r.guessing
        )
        params.append((b, a, c, bool(r.is_correct)))
    return params


def _quadrature_points() -> List[float]:
    theta_min, theta_max = QUADRATURE_RANGE
    step = (theta_max - theta_min) / (QUADRATURE_POINTS - 1)
    return [theta_min + step * i for i in range(QUADRATURE_POINTS)]


def _log_sigmoid(x: float) -> float:
    """Numerically stable log(1 / (1 + exp(-x)))."""
    if x >= 0:
        return -math.log1p(math.exp(-x))
    return x - math.log1p(math.exp(x))


def _log_likelihood(
    theta: float, params: List[Tuple[float, float, float, bool]]
) -> float:
    """Log-likelihood of the response vector at ``theta``."""
    log_lik = 0.0
    for b, a, c, is_correct in params:
        logit = a * (theta - b)
        if is_correct:
            log_sig = _log_sigmoid(logit)
            if c <= 0.0:
                log_lik += log_sig
            else:
                log_lik += math.log(c + (1.0 - c) * math.exp(log_sig))
        else:
            if c >= 1.0:
                return -math.inf
            # Q = (1 - c) * (1 - sigmoid(logit)) = (1 - c) * sigmoid(-logit)
            log_lik += math.log(1.0 - c) + _log_sigmoid(-logit)
    return log_lik


def _posterior(
    params: List[Tuple[float, float, float, bool]],
    prior_mean: float,
    prior_sd: float,
) -> Optional[Tuple[List[float], List[float]]]:
    """
    Normalized posterior probabilities on the quadrature grid.

    Returns None when the posterior collapses to zero everywhere.
    """
    theta_points = _quadrature_points()
    variance = prior_sd**2

    # Normalizing constants cancel, so only the exponent of the prior is kept
    log_posteriors = [
        -((theta - prior_mean) ** 2) / (2.0 * variance)
        + _log_likelihood(theta, params)
        for theta in theta_points
    ]

    # Normalize using log-sum-exp for numerical stability
    max_log_post = max(log_posteriors)
    if math.isinf(max_log_post):
        return None

    posteriors = [math.exp(lp - max_log_post) for lp in log_posteriors]
    posterior_sum = sum(posteriors)
    if posterior_sum == 0.0:
        return None

    return theta_points, [p / posterior_sum for p in posteriors]


def _validated_prior_sd(prior_sd: float) -> float:
    if not prior_sd > 0:
        logger.warning(f"Prior SD must be positive, got {prior_sd}; using 1.0")
        return 1.0
    return prior_sd


def estimate_ability_eap(
    responses: Sequence[Response],
    prior_mean: float = 0.0,
    prior_sd: float = 1.0,
) -> AbilityEstimate:
    """
    Estimate ability using Expected A Posteriori (EAP) with numerical quadrature.

    Args:
        responses: Response history (any objects exposing ``difficulty``,
            ``discrimination``, ``guessing`` and ``is_correct``).
        prior_mean: Mean of the Gaussian prior on theta.
        prior_sd: Standard deviation of the Gaussian prior on theta.

    Returns:
        AbilityEstimate with the posterior mean as theta and the posterior SD
        as standard error. With no responses this is exactly
        (prior_mean, prior_sd).
    """
    # Edge case: no responses, return the prior
    if not responses:
        return AbilityEstimate(
            theta=prior_mean, standard_error=prior_sd, method=EstimationMethod.EAP
        )

    prior_sd = _validated_prior_sd(prior_sd)
    posterior = _posterior(_item_parameters(responses), prior_mean, prior_sd)

    if posterior is None:
        logger.warning(
            "Posterior collapsed to zero at all quadrature points. "
            "Returning prior estimate."
        )
        return AbilityEstimate(
            theta=prior_mean, standard_error=prior_sd, method=EstimationMethod.EAP
        )

    theta_points, probs = posterior
    theta_hat = sum(theta * p for theta, p in zip(theta_points, probs))
    posterior_variance = sum(
        (theta - theta_hat) ** 2 * p for theta, p in zip(theta_points, probs)
    )

    return AbilityEstimate(
        theta=theta_hat,
        standard_error=math.sqrt(max(0.0, posterior_variance)),
        method=EstimationMethod.EAP,
    )


def posterior_summary(
    responses: Sequence[Response],
    prior_mean: float = 0.0,
    prior_sd: float = 1.0,
) -> PosteriorSummary:
    """
    Posterior mean, SD, grid mode (MAP) and a 0-100 confidence.

    Confidence is the fraction of the prior SD removed by the data:
    ``(1 - sd / prior_sd) * 100``, clamped to [0, 100].
    """
    if not responses:
        return PosteriorSummary(
            mean=prior_mean, sd=prior_sd, mode=prior_mean, confidence=0.0
        )

    prior_sd = _validated_prior_sd(prior_sd)
    posterior = _posterior(_item_parameters(responses), prior_mean, prior_sd)
    if posterior is None:
        return PosteriorSummary(
            mean=prior_mean, sd=prior_sd, mode=prior_mean, confidence=0.0
        )

    theta_points, probs = posterior
    mean = sum(theta * p for theta, p in zip(theta_points, probs))
    sd = math.sqrt(
        max(0.0, sum((theta - mean) ** 2 * p for theta, p in zip(theta_points, probs)))
    )
    mode = theta_points[max(range(len(probs)), key=probs.__getitem__)]
    confidence = max(0.0, min(100.0, (1.0 - sd / prior_sd) * 100.0))

    return PosteriorSummary(mean=mean, sd=sd, mode=mode, confidence=confidence)


def _log_likelihood_derivatives(
    theta: float, params: List[Tuple[float, float, float, bool]]
) -> Tuple[float, float]:
    """
    First and second derivatives of the 3PL log-likelihood at ``theta``.

    Uses the 3PL identities:
        P'  = a (P - c) Q / (1 - c)
        P'' = a^2 (P - c) Q (1 - 2P + c) / (1 - c)^2
    """
    first = 0.0
    second = 0.0
    for b, a, c, is_correct in params:
        if c >= 1.0:
            # Flat item: carries no information about theta
            continue

        logit = a * (theta - b)
        if logit >= 0:
            sig = 1.0 / (1.0 + math.exp(-logit))
        else:
            exp_logit = math.exp(logit)
            sig = exp_logit / (1.0 + exp_logit)

        prob = c + (1.0 - c) * sig
        prob = min(1.0 - _PROB_EPSILON, max(_PROB_EPSILON, prob))
        q = 1.0 - prob

        p_prime = a * (prob - c) * q / (1.0 - c)
        p_double_prime = (a**2) * (prob - c) * q * (1.0 - 2.0 * prob + c) / (
            (1.0 - c) ** 2
        )

        if is_correct:
            first += p_prime / prob
            second += (p_double_prime * prob - p_prime**2) / prob**2
        else:
            first -= p_prime / q
            second -= (p_double_prime * q + p_prime**2) / q**2

    return first, second


def estimate_ability_mle(
    responses: Sequence[Response],
    initial_theta: float = 0.0,
    max_iterations: int = 20,
    tolerance: float = 0.001,
) -> AbilityEstimate:
    """
    Maximum likelihood ability estimate via Newton-Raphson.

    Non-convergence is not an error: the last theta is returned with
    ``converged=False`` so the caller can fall back to EAP.

    Args:
        responses: Response history.
        initial_theta: Starting point of the iteration (clamped to [-3, 3]).
        max_iterations: Iteration cap.
        tolerance: Convergence threshold on the size of the applied step.

    Returns:
        AbilityEstimate with iterations and converged populated. SE is 999
        when the total information is zero (e.g., no responses).
    """
    if not responses:
        return AbilityEstimate(
            theta=clamp_theta(initial_theta),
            standard_error=UNDEFINED_STANDARD_ERROR,
            method=EstimationMethod.MLE,
            iterations=0,
            converged=False,
        )

    params = _item_parameters(responses)
    theta = clamp_theta(initial_theta)
    converged = False
    iterations = 0

    for iteration in range(1, max_iterations + 1):
        iterations = iteration
        first, second = _log_likelihood_derivatives(theta, params)

        if second == 0.0 or not math.isfinite(second) or not math.isfinite(first):
            logger.warning(
                f"MLE stopped at iteration {iteration}: degenerate second "
                f"derivative ({second}) at theta={theta:.3f}"
            )
            break

        new_theta = clamp_theta(theta - first / second)
        step = abs(new_theta - theta)
        theta = new_theta

        if step < tolerance:
            converged = True
            break

    information = sum(
        information_3pl(theta, b, a, c) for b, a, c, _ in params
    )
    standard_error = (
        1.0 / math.sqrt(information) if information > 0 else UNDEFINED_STANDARD_ERROR
    )

    if not converged:
        logger.debug(
            f"MLE did not converge after {iterations} iterations "
            f"(theta={theta:.3f}, n={len(responses)})"
        )

    return AbilityEstimate(
        theta=theta,
        standard_error=standard_error,
        method=EstimationMethod.MLE,
        iterations=iterations,
        converged=converged,
    )


def choose_estimation_method(
    response_count: int,
    eap_threshold: Optional[int] = None,
) -> EstimationMethod:
    """
    Estimator selection policy.

    EAP while fewer than ``eap_threshold`` responses exist (stable with sparse
    evidence), MLE afterwards.

    Args:
        response_count: Number of responses in the history.
        eap_threshold: Override for settings.CAT_EAP_RESPONSE_THRESHOLD (5).
    """
    threshold = (
        settings.CAT_EAP_RESPONSE_THRESHOLD if eap_threshold is None else eap_threshold
    )
    if response_count < threshold:
        return EstimationMethod.EAP
    return EstimationMethod.MLE


def estimate_ability(
    responses: Sequence[Response],
    initial_theta: float = 0.0,
    prior_mean: Optional[float] = None,
    prior_sd: Optional[float] = None,
    fallback_to_eap: Optional[bool] = None,
) -> AbilityEstimate:
    """
    Estimate ability using the method chosen by :func:`choose_estimation_method`.

    When MLE is chosen but does not converge and ``fallback_to_eap`` is set
    (default: settings.CAT_MLE_FALLBACK_TO_EAP), the EAP estimate is returned.

    Args:
        responses: Full response history.
        initial_theta: Starting point for Newton-Raphson.
        prior_mean: EAP prior mean (default: settings.CAT_PRIOR_MEAN).
        prior_sd: EAP prior SD (default: settings.CAT_PRIOR_SD).
        fallback_to_eap: Whether to fall back to EAP on MLE non-convergence.

    Returns:
        AbilityEstimate from the method actually used.
    """
    prior_mean = settings.CAT_PRIOR_MEAN if prior_mean is None else prior_mean
    prior_sd = settings.CAT_PRIOR_SD if prior_sd is None else prior_sd
    fallback = (
        settings.CAT_MLE_FALLBACK_TO_EAP if fallback_to_eap is None else fallback_to_eap
    )

    method = choose_estimation_method(len(responses))
    if method is EstimationMethod.EAP:
        return estimate_ability_eap(responses, prior_mean, prior_sd)

    mle = estimate_ability_mle(
        responses,
        initial_theta=initial_theta,
        max_iterations=settings.CAT_MLE_MAX_ITERATIONS,
        tolerance=settings.CAT_MLE_TOLERANCE,
    )
    if mle.converged or not fallback:
        return mle

    logger.warning(
        f"MLE did not converge after {mle.iterations} iterations "
        f"(theta={mle.theta:.3f}); falling back to EAP"
    )
    return estimate_ability_eap(responses, prior_mean, prior_sd)
