"""
Domain models for parameter optimization.

Pure data structures: the optimizer's configuration and its inspectable result.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from mneme.domain import constants as c


class OptimizerConfig(BaseModel):
    """Knobs for the gradient-descent optimizer."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    learning_rate: float = Field(default=c.LEARNING_RATE, gt=0.0)
    max_iterations: int = Field(default=c.MAX_ITERATIONS, ge=0)
    convergence_threshold: float = Field(default=c.CONVERGENCE_THRESHOLD, ge=0.0)
    min_reviews: int = Field(default=c.MIN_REVIEWS, ge=0)
    min_mature_reviews: int = Field(default=c.MIN_MATURE_REVIEWS, ge=0)
    regularization: float = Field(default=c.REGULARIZATION, ge=0.0)
    gradient_epsilon: float = Field(default=c.GRADIENT_EPSILON, gt=0.0)
    enable_short_term: bool = c.ENABLE_SHORT_TERM


class OptimizationStatus(str, Enum):
    """Why an optimizer run stopped."""

    CONVERGED = "converged"
    MAX_ITERATIONS = "max_iterations"
    CANCELLED = "cancelled"
    INSUFFICIENT_REVIEWS = "insufficient_reviews"
    INSUFFICIENT_MATURE_REVIEWS = "insufficient_mature_reviews"

    @property
    def ran(self) -> bool:
        """True when gradient descent actually produced the weights."""
        return self in (OptimizationStatus.CONVERGED, OptimizationStatus.MAX_ITERATIONS)


@dataclass
class OptimizationResult:
    """
    Outcome of an optimizer run.

    Attributes:
        weights: Final weight vector (defaults when the run was a no-op).
        loss: Final regularized objective.
        log_loss: Binary cross-entropy of the final weights.
        rmse: Root mean square error of the final weights.
        initial_loss: Regularized objective of the starting weights.
        sample_size: Raw event count for the review gate, training pairs otherwise.
        iterations: Completed descent steps.
        trace: Objective after every iteration.
        status: Why the run stopped.
    """

    weights: tuple[float, ...]
    loss: float
    log_loss: float
    rmse: float
    sample_size: int
    iterations: int
    status: OptimizationStatus
    initial_loss: float = 0.0
    trace: list[float] = field(default_factory=list)

    @property
    def converged(self) -> bool:
        return self.status is OptimizationStatus.CONVERGED

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["weights"] = list(self.weights)
        data["status"] = self.status.value
        data["converged"] = self.converged
        return data


@dataclass(frozen=True)
class ParameterComparison:
    """Log loss of the default and an optimized weight vector on the same history."""

    default_loss: float
    optimized_loss: float
    improvement_percent: float
