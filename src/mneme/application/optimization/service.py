"""
Personalization Service: Application layer orchestrator.

Coordinates loading a review history, fitting weights to it and deciding
whether the fitted vector should replace the current one.
"""

import logging
import threading
from dataclasses import dataclass

from mneme.domain.optimization.models import (
    OptimizationResult,
    OptimizerConfig,
    ParameterComparison,
)
from mneme.domain.optimization.ports import ReviewHistorySource
from mneme.domain.scheduling.parameters import DEFAULT_PARAMETERS, SchedulerParameters

from .optimizer import compare_with_defaults, optimize

logger = logging.getLogger(__name__)


@dataclass
class PersonalizationOutcome:
    """Parameters to use from now on, plus the evidence behind the choice."""

    parameters: SchedulerParameters
    result: OptimizationResult
    comparison: ParameterComparison | None
    applied: bool


class PersonalizationService:
    """
    Application service for fitting per-user parameters.

    Depends on the ReviewHistorySource abstraction, not on a concrete file format.
    """

    def __init__(
        self,
        history: ReviewHistorySource,
        config: OptimizerConfig | None = None,
    ):
        """
        Args:
            history: The repository (port) for fetching review events.
            config: Optional optimizer config; uses defaults if not provided.
        """
        self._history = history
        self._config = config or OptimizerConfig()

    def personalize(
        self,
        current: SchedulerParameters = DEFAULT_PARAMETERS,
        cancel_event: threading.Event | None = None,
    ) -> PersonalizationOutcome:
        """
        Fit weights to the history and keep them only if they predict better.

        The fitted vector is applied when descent actually ran (converged or
        hit max iterations) and lowered log loss relative to `current`.
        """
        reviews = self._history.load_reviews()
        result = optimize(reviews, self._config, current, cancel_event=cancel_event)

        if not result.status.ran:
            logger.info(f"Keeping current parameters: {result.status.value}")
            return PersonalizationOutcome(current, result, None, applied=False)

        comparison = compare_with_defaults(
            reviews,
            result.weights,
            current,
            baseline=current.w,
            enable_short_term=self._config.enable_short_term,
        )
        if comparison.optimized_loss >= comparison.default_loss:
            logger.info(
                f"Keeping current parameters: fitted log loss "
                f"{comparison.optimized_loss:.6f} >= {comparison.default_loss:.6f}"
            )
            return PersonalizationOutcome(current, result, comparison, applied=False)

        logger.info(f"Applying fitted parameters ({comparison.improvement_percent:.2f}% better)")
        fitted = current
        if self._config.enable_short_term:
            # Fitted w17/w18 are read only with short-term scheduling on.
            fitted = current.model_copy(update={"enable_short_term": True})
        return PersonalizationOutcome(
            fitted.with_weights(result.weights), result, comparison, applied=True
        )
