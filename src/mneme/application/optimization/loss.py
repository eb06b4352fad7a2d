"""
Loss functions for parameter fitting.

Pure computation over predicted recall probabilities and observed outcomes.
"""

import math
from collections.abc import Sequence

from mneme.domain import constants as c


def binary_cross_entropy(
    predictions: Sequence[float],
    labels: Sequence[bool],
    eps: float = c.LOG_LOSS_EPSILON,
) -> float:
    """
    Mean log loss.

    Loss = -mean(y * log(p) + (1 - y) * log(1 - p)), with p kept inside
    [eps, 1 - eps] so a confident miss costs a large but finite amount.
    """
    if not predictions:
        return 0.0
    total = 0.0
    for p, y in zip(predictions, labels):
        p = max(eps, min(1 - eps, p))
        total -= math.log(p) if y else math.log(1 - p)
    return total / len(predictions)


def rmse(predictions: Sequence[float], labels: Sequence[bool]) -> float:
    """Root mean square error between predicted probability and 0/1 outcome."""
    if not predictions:
        return 0.0
    squared = sum(((1.0 if y else 0.0) - p) ** 2 for p, y in zip(predictions, labels))
    return math.sqrt(squared / len(predictions))


def l2_penalty(weights: Sequence[float], strength: float) -> float:
    """strength * sum(w^2)"""
    return strength * sum(w * w for w in weights)
