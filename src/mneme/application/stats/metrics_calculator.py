"""
Metrics calculator for deriving insights from card states and review logs.

This is a pure computation module with no I/O. Presentation layers read
these numbers; nothing here feeds back into scheduling.
"""

from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta

from mneme.application.scheduling.formulas import retrievability
from mneme.application.scheduling.scheduler import current_retrievability
from mneme.domain import constants as c
from mneme.domain.scheduling.models import Card, CardState, ReviewLogEntry
from mneme.domain.scheduling.parameters import DEFAULT_PARAMETERS, SchedulerParameters


@dataclass
class CardMetrics:
    """
    Card state enriched with computed metrics.
    """

    card_id: str | None
    state: CardState
    reps: int
    lapses: int
    stability: float
    difficulty: float

    # Computed metrics
    current_retrievability: float
    lapse_rate: float | None  # lapses / reps
    days_overdue: float | None  # Negative if not yet due


@dataclass(frozen=True)
class CurvePoint:
    day: float
    retention: float  # percent


@dataclass(frozen=True)
class HourlyBucket:
    hour: int
    count: int
    retention: float  # percent


@dataclass(frozen=True)
class WorkloadDay:
    date: str
    new_cards: int
    reviews: int

    @property
    def total(self) -> int:
        return self.new_cards + self.reviews


class MetricsCalculator:
    """
    Computes derived metrics from Card objects.

    Stateless and side-effect free.
    """

    def __init__(self, params: SchedulerParameters = DEFAULT_PARAMETERS):
        self._params = params

    def enrich(self, card: Card, now: datetime) -> CardMetrics:
        """
        Enrich a card with computed metrics as of `now`.
        """
        return CardMetrics(
            card_id=card.card_id,
            state=card.state,
            reps=card.reps,
            lapses=card.lapses,
            stability=card.stability,
            difficulty=card.difficulty,
            current_retrievability=current_retrievability(card, now, self._params),
            lapse_rate=self._compute_lapse_rate(card),
            days_overdue=self._compute_days_overdue(card, now),
        )

    def _compute_lapse_rate(self, card: Card) -> float | None:
        if card.reps == 0:
            return None
        return card.lapses / card.reps

    def _compute_days_overdue(self, card: Card, now: datetime) -> float | None:
        if card.state is CardState.NEW:
            return None
        return (now - card.due).total_seconds() / c.SECONDS_PER_DAY


def forgetting_curve(
    stability: float,
    horizon_days: float = c.DEFAULT_CURVE_HORIZON,
    points: int = c.DEFAULT_CURVE_POINTS,
    params: SchedulerParameters = DEFAULT_PARAMETERS,
) -> list[CurvePoint]:
    """
    Sample retrievability(t) for t evenly spaced over [0, horizon_days].

    Returns points + 1 samples, both ends included.
    """
    if points < 1:
        raise ValueError(f"points must be at least 1, got {points}")
    curve = []
    for i in range(points + 1):
        day = i / points * horizon_days
        r = retrievability(day, stability, params.decay, params.factor)
        curve.append(CurvePoint(day=day, retention=r * 100))
    return curve


def average_retrievability(
    cards: Sequence[Card],
    now: datetime,
    params: SchedulerParameters = DEFAULT_PARAMETERS,
) -> float:
    """Mean current retrievability. New cards count as zero."""
    if not cards:
        return 0.0
    return sum(current_retrievability(card, now, params) for card in cards) / len(cards)


def true_retention(logs: Iterable[ReviewLogEntry]) -> float:
    """Pass rate over reviews of cards that were in the Review state."""
    mature = [log for log in logs if log.state is CardState.REVIEW]
    if not mature:
        return 0.0
    return sum(1 for log in mature if log.rating.passed) / len(mature)


def hourly_breakdown(logs: Iterable[ReviewLogEntry]) -> list[HourlyBucket]:
    """Review count and retention percent for each hour of the day."""
    totals: dict[int, int] = defaultdict(int)
    passed: dict[int, int] = defaultdict(int)
    for log in logs:
        hour = log.review.hour
        totals[hour] += 1
        if log.rating.passed:
            passed[hour] += 1

    return [
        HourlyBucket(
            hour=hour,
            count=totals[hour],
            retention=passed[hour] / totals[hour] * 100 if totals[hour] else 0.0,
        )
        for hour in range(24)
    ]


def forecast_workload(
    cards: Iterable[Card],
    now: datetime,
    days: int = c.DEFAULT_FORECAST_DAYS,
) -> list[WorkloadDay]:
    """
    Cards coming due on each of the next `days` calendar days.

    Overdue cards are counted on the first day. Cards due beyond the window
    are not counted.
    """
    today = now.date()
    window = [(now + timedelta(days=d)).date().isoformat() for d in range(days)]
    new_counts: dict[str, int] = defaultdict(int)
    review_counts: dict[str, int] = defaultdict(int)

    for card in cards:
        key = max(card.due.date(), today).isoformat()
        if card.state is CardState.NEW:
            new_counts[key] += 1
        else:
            review_counts[key] += 1

    return [
        WorkloadDay(date=key, new_cards=new_counts[key], reviews=review_counts[key])
        for key in window
    ]
