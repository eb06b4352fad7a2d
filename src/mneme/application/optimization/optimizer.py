"""
Parameter optimizer.

Fits the scheduler weights to a user's review history by gradient descent on
regularized binary cross-entropy. Gradients are forward finite differences,
and every loss evaluation replays the history with the candidate weights.

Long-running but pure: it owns no shared state and can be cancelled between
iterations through a threading.Event.
"""

import logging
import threading
from collections.abc import Sequence

from mneme.domain import constants as c
from mneme.domain.optimization.models import (
    OptimizationResult,
    OptimizationStatus,
    OptimizerConfig,
    ParameterComparison,
)
from mneme.domain.scheduling.models import ReviewEvent
from mneme.domain.scheduling.parameters import DEFAULT_PARAMETERS, SchedulerParameters

from .loss import binary_cross_entropy, l2_penalty, rmse
from .preprocessing import ReviewSequence, TrainingSample, build_sequences, replay_all

logger = logging.getLogger(__name__)


def _bounds(index: int) -> tuple[float, float]:
    if index < len(c.PARAM_BOUNDS):
        return c.PARAM_BOUNDS[index]
    return c.FALLBACK_BOUNDS


def clip_weights(weights: Sequence[float]) -> list[float]:
    """Clip each weight into its plausible range."""
    clipped = []
    for i, w in enumerate(weights):
        low, high = _bounds(i)
        clipped.append(max(low, min(high, w)))
    return clipped


def validate_weights(weights: Sequence[float]) -> bool:
    """True when the vector is long enough and every weight is within bounds."""
    if len(weights) < c.MIN_WEIGHT_COUNT:
        return False
    for i, w in enumerate(weights[: len(c.PARAM_BOUNDS)]):
        low, high = c.PARAM_BOUNDS[i]
        if w < low or w > high:
            return False
    return True


def _log_loss_and_rmse(samples: list[TrainingSample]) -> tuple[float, float]:
    predictions = [s.prediction for s in samples]
    labels = [s.passed for s in samples]
    return binary_cross_entropy(predictions, labels), rmse(predictions, labels)


def compute_loss(
    sequences: Sequence[ReviewSequence],
    weights: Sequence[float],
    params: SchedulerParameters,
    regularization: float,
) -> float:
    """Log loss of the replayed history plus the L2 penalty."""
    samples = replay_all(sequences, weights, params)
    predictions = [s.prediction for s in samples]
    labels = [s.passed for s in samples]
    return binary_cross_entropy(predictions, labels) + l2_penalty(weights, regularization)


def numerical_gradient(
    sequences: Sequence[ReviewSequence],
    weights: Sequence[float],
    params: SchedulerParameters,
    config: OptimizerConfig,
    base_loss: float | None = None,
) -> list[float]:
    """
    Forward-difference gradient: (L(w + eps * e_i) - L(w)) / eps.

    The short-term weights get a zero gradient unless that feature is enabled.
    """
    eps = config.gradient_epsilon
    if base_loss is None:
        base_loss = compute_loss(sequences, weights, params, config.regularization)

    gradient = [0.0] * len(weights)
    for i in range(len(weights)):
        if i in c.SHORT_TERM_WEIGHT_INDICES and not config.enable_short_term:
            continue
        shifted = list(weights)
        shifted[i] += eps
        loss = compute_loss(sequences, shifted, params, config.regularization)
        gradient[i] = (loss - base_loss) / eps
    return gradient


def optimize(
    reviews: Sequence[ReviewEvent],
    config: OptimizerConfig | None = None,
    params: SchedulerParameters | None = None,
    cancel_event: threading.Event | None = None,
) -> OptimizationResult:
    """
    Search for weights that better predict the observed recall outcomes.

    Args:
        reviews: Caller-owned review history, possibly spanning many cards.
        config: Optimizer knobs; defaults when omitted.
        params: Starting vector and curve constants; defaults when omitted.
        cancel_event: Checked between iterations; when set, the run stops
            and returns the weights reached so far.

    Returns:
        OptimizationResult. Sparse histories are not an error: the starting
        weights come back with iterations = 0 and a status naming the gate.
    """
    config = config or OptimizerConfig()
    params = params or DEFAULT_PARAMETERS
    start = tuple(params.w)

    if len(reviews) < config.min_reviews:
        logger.warning(
            f"Skipping optimization: {len(reviews)} reviews, need {config.min_reviews}"
        )
        return OptimizationResult(
            weights=start,
            loss=0.0,
            log_loss=0.0,
            rmse=0.0,
            sample_size=len(reviews),
            iterations=0,
            status=OptimizationStatus.INSUFFICIENT_REVIEWS,
        )

    sequences = build_sequences(reviews, enable_short_term=config.enable_short_term)
    samples = replay_all(sequences, start, params)

    if len(samples) < config.min_mature_reviews:
        logger.warning(
            f"Skipping optimization: {len(samples)} mature reviews, "
            f"need {config.min_mature_reviews}"
        )
        log_loss, error = _log_loss_and_rmse(samples)
        return OptimizationResult(
            weights=start,
            loss=log_loss,
            log_loss=log_loss,
            rmse=error,
            sample_size=len(samples),
            iterations=0,
            status=OptimizationStatus.INSUFFICIENT_MATURE_REVIEWS,
        )

    logger.info(
        f"Optimizing on {len(samples)} reviews from {len(sequences)} cards "
        f"(max {config.max_iterations} iterations)"
    )

    weights = list(start)
    learning_rate = config.learning_rate
    previous = compute_loss(sequences, weights, params, config.regularization)
    initial_loss = previous
    trace: list[float] = []
    status = OptimizationStatus.MAX_ITERATIONS

    for iteration in range(config.max_iterations):
        if cancel_event is not None and cancel_event.is_set():
            logger.info(f"Optimization cancelled after {iteration} iterations")
            status = OptimizationStatus.CANCELLED
            break

        gradient = numerical_gradient(sequences, weights, params, config, base_loss=previous)
        weights = clip_weights([w - learning_rate * g for w, g in zip(weights, gradient)])

        current = compute_loss(sequences, weights, params, config.regularization)
        trace.append(current)
        if iteration % c.TRACE_LOG_EVERY == 0:
            logger.debug(f"Iteration {iteration}: loss={current:.6f} lr={learning_rate:g}")

        if abs(previous - current) < config.convergence_threshold:
            status = OptimizationStatus.CONVERGED
            break

        if current > previous:
            learning_rate *= c.LOSS_INCREASE_SHRINK

        previous = current

    samples = replay_all(sequences, weights, params)
    log_loss, error = _log_loss_and_rmse(samples)
    loss = log_loss + l2_penalty(weights, config.regularization)

    logger.info(
        f"Optimization finished ({status.value}) after {len(trace)} iterations: "
        f"loss {initial_loss:.6f} -> {loss:.6f}, rmse={error:.4f}"
    )

    return OptimizationResult(
        weights=tuple(weights),
        loss=loss,
        log_loss=log_loss,
        rmse=error,
        sample_size=len(samples),
        iterations=len(trace),
        status=status,
        initial_loss=initial_loss,
        trace=trace,
    )


def compare_with_defaults(
    reviews: Sequence[ReviewEvent],
    weights: Sequence[float],
    params: SchedulerParameters = DEFAULT_PARAMETERS,
    baseline: Sequence[float] = c.DEFAULT_WEIGHTS,
    enable_short_term: bool | None = None,
) -> ParameterComparison:
    """
    Log loss of baseline vs. candidate weights on the same history.

    `enable_short_term` selects the training set and should match the one the
    weights were fitted on; it falls back to the flag carried by params.
    """
    if enable_short_term is None:
        enable_short_term = params.enable_short_term
    sequences = build_sequences(reviews, enable_short_term=enable_short_term)
    default_loss, _ = _log_loss_and_rmse(replay_all(sequences, baseline, params))
    optimized_loss, _ = _log_loss_and_rmse(replay_all(sequences, weights, params))
    improvement = (
        (default_loss - optimized_loss) / default_loss * 100 if default_loss > 0 else 0.0
    )
    return ParameterComparison(
        default_loss=default_loss,
        optimized_loss=optimized_loss,
        improvement_percent=improvement,
    )
