"""
Bounded convergence search.

Both adaptive searches in the pipeline (ruled grid lines and separator
bands) adjust cooperating thresholds until the number of detected features
falls in a target range. This module implements that loop once.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

P = TypeVar("P")
F = TypeVar("F")

TOO_FEW = -1
ACCEPTED = 0
TOO_MANY = 1


@dataclass
class ConvergenceResult(Generic[P, F]):
    """Outcome of a bounded convergence search."""

    params: P
    features: F
    count: int
    iterations: int
    converged: bool


def target_range(low: int, high: int) -> Callable[[int], int]:
    """Classifier accepting counts in [low, high]."""

    def classify(count: int) -> int:
        if count < low:
            return TOO_FEW
        if count > high:
            return TOO_MANY
        return ACCEPTED

    return classify


def converge(
    initial: P,
    evaluate: Callable[[P], F],
    count: Callable[[F], int],
    classify: Callable[[int], int],
    adjust: Callable[[P, int], Optional[P]],
    max_iterations: int,
    fallback: Optional[Callable[[F], Any]] = None,
    name: str = "search"
) -> ConvergenceResult:
    """
    Adjust parameters until the feature count is accepted.

    Args:
        initial: Starting parameters
        evaluate: Detects features for a parameter set
        count: Number of features detected
        classify: Maps a count to TOO_FEW, ACCEPTED or TOO_MANY
        adjust: Returns parameters moved in the given direction
            (TOO_FEW relaxes, TOO_MANY tightens), or None once a bound is
            exhausted
        max_iterations: Maximum number of evaluations
        fallback: Applied to the last features when the search fails
        name: Label used in log messages

    Returns:
        ConvergenceResult with the last evaluated parameters
    """
    if max_iterations < 1:
        raise ValueError(f"max_iterations must be positive, got {max_iterations}")

    params = initial
    features = evaluate(params)
    n = count(features)
    iterations = 1

    while True:
        verdict = classify(n)
        logger.debug("%s iteration %d: params=%s count=%d", name, iterations, params, n)

        if verdict == ACCEPTED:
            return ConvergenceResult(params, features, n, iterations, True)

        if iterations >= max_iterations:
            logger.debug("%s: iteration cap %d reached", name, max_iterations)
            break

        adjusted = adjust(params, verdict)
        if adjusted is None:
            logger.debug("%s: threshold bound exhausted after %d iterations", name, iterations)
            break

        params = adjusted
        features = evaluate(params)
        n = count(features)
        iterations += 1

    if fallback is not None:
        features = fallback(features)

    return ConvergenceResult(params, features, n, iterations, False)
