"""
Memory model formulas.

Power-law forgetting curve plus the difficulty and stability update rules.
This is a pure computation module with no I/O.

Functions that clamp accept ``clamp=False`` and then return the raw formula
output, which lets callers detect whether a bound was applied.
"""

import math
from collections.abc import Sequence

from mneme.domain import constants as c
from mneme.domain.scheduling.models import Rating


def retrievability(
    elapsed_days: float,
    stability: float,
    decay: float = c.DECAY,
    factor: float = c.FACTOR,
) -> float:
    """
    Probability of recall after elapsed_days.

    R(t, S) = (1 + factor * t / S) ^ decay
    """
    if stability <= 0:
        return 0.0
    if elapsed_days <= 0:
        return 1.0
    return math.pow(1 + factor * elapsed_days / stability, decay)


def next_interval(
    stability: float,
    request_retention: float = c.REQUEST_RETENTION,
    decay: float = c.DECAY,
    factor: float = c.FACTOR,
    maximum_interval: int = c.MAXIMUM_INTERVAL,
) -> int:
    """
    Days until retrievability falls to request_retention.

    I(S) = round(S / factor * (R* ^ (1 / decay) - 1)), clamped to [1, maximum_interval].
    """
    if stability <= 0:
        raise ValueError(f"stability must be positive, got {stability}")
    if not 0 < request_retention < 1:
        raise ValueError(f"request_retention must be in (0, 1), got {request_retention}")
    interval = (stability / factor) * (math.pow(request_retention, 1 / decay) - 1)
    return max(1, min(round(interval), maximum_interval))


def clamp_difficulty(difficulty: float) -> float:
    return max(c.MIN_DIFFICULTY, min(c.MAX_DIFFICULTY, difficulty))


def init_difficulty(rating: Rating, w: Sequence[float], clamp: bool = True) -> float:
    """D0(G) = w4 - e^(w5 * (G - 1)) + 1"""
    d = w[4] - math.exp(w[5] * (int(rating) - 1)) + 1
    return clamp_difficulty(d) if clamp else d


def init_stability(rating: Rating, w: Sequence[float], clamp: bool = True) -> float:
    """S0(G) = w[G - 1], floored at 0.1."""
    s = w[int(rating) - 1]
    return max(c.MIN_INITIAL_STABILITY, s) if clamp else s


def next_difficulty(
    difficulty: float, rating: Rating, w: Sequence[float], clamp: bool = True
) -> float:
    """
    Linear grade adjustment followed by mean reversion toward D0(Good).

    D' = D - w6 * (G - 3)
    D'' = w7 * D0(3) + (1 - w7) * D'
    """
    d = difficulty - w[6] * (int(rating) - 3)
    d = w[7] * init_difficulty(Rating.GOOD, w) + (1 - w[7]) * d
    return clamp_difficulty(d) if clamp else d


def next_recall_stability(
    difficulty: float,
    stability: float,
    r: float,
    rating: Rating,
    w: Sequence[float],
    clamp: bool = True,
) -> float:
    """
    Stability after a successful recall.

    S' = S * (1 + e^w8 * (11 - D) * S^-w9 * (e^((1 - R) * w10) - 1) * hard * easy)

    Never below S: recall must not shorten the interval.
    """
    if stability <= 0:
        raise ValueError(f"stability must be positive, got {stability}")
    hard_penalty = w[15] if rating == Rating.HARD else 1.0
    easy_bonus = w[16] if rating == Rating.EASY else 1.0
    increase = (
        math.exp(w[8])
        * (11 - difficulty)
        * math.pow(stability, -w[9])
        * (math.exp((1 - r) * w[10]) - 1)
        * hard_penalty
        * easy_bonus
    )
    s = stability * (1 + increase)
    return max(stability, s) if clamp else s


def next_forget_stability(
    difficulty: float,
    stability: float,
    r: float,
    w: Sequence[float],
    clamp: bool = True,
) -> float:
    """
    Stability after a lapse.

    S' = w11 * D^-w12 * ((S + 1)^w13 - 1) * e^((1 - R) * w14)

    Capped at the pre-lapse stability. Overshoot from floating-point noise
    clamps to the previous value.
    """
    if stability <= 0:
        raise ValueError(f"stability must be positive, got {stability}")
    s = (
        w[11]
        * math.pow(difficulty, -w[12])
        * (math.pow(stability + 1, w[13]) - 1)
        * math.exp((1 - r) * w[14])
    )
    if not clamp:
        return s
    return min(stability, max(c.MIN_STABILITY, s))


def short_term_stability(
    stability: float,
    elapsed_minutes: float,
    rating: Rating,
    w: Sequence[float],
    clamp: bool = True,
) -> float:
    """
    Same-day stability update (experimental, gated by enable_short_term).

    S' = S * (1 + w17 * (t_minutes / 1440) ^ w18), halved on Again.
    """
    if stability <= 0:
        raise ValueError(f"stability must be positive, got {stability}")
    day_fraction = max(0.0, elapsed_minutes) / c.MINUTES_PER_DAY
    growth = 1 + w[17] * math.pow(day_fraction, w[18])
    if rating == Rating.AGAIN:
        s = stability * c.SHORT_TERM_LAPSE_FACTOR * growth
        return min(stability, max(c.MIN_STABILITY, s)) if clamp else s
    s = stability * growth
    return max(stability, s) if clamp else s
