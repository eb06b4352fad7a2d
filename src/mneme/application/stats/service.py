"""
Card Stats Service: Application layer orchestrator.

Enriches a collection of cards with computed metrics and summarizes it.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from mneme.domain.scheduling.models import Card, CardState
from mneme.domain.scheduling.parameters import DEFAULT_PARAMETERS, SchedulerParameters

from .metrics_calculator import (
    CardMetrics,
    MetricsCalculator,
    WorkloadDay,
    average_retrievability,
    forecast_workload,
)

logger = logging.getLogger(__name__)


@dataclass
class CollectionSummary:
    total: int
    by_state: dict[str, int]
    average_retrievability: float
    due_now: int
    forecast: list[WorkloadDay]


class CardStatsService:
    """
    Application service for enriching and summarizing card collections.
    """

    def __init__(
        self,
        params: SchedulerParameters = DEFAULT_PARAMETERS,
        calculator: MetricsCalculator | None = None,
    ):
        """
        Args:
            params: Curve constants used for retrievability.
            calculator: Optional custom calculator; built from `params` if not provided.
        """
        self._params = params
        self._calc = calculator or MetricsCalculator(params)

    def get_enriched_stats(self, cards: Sequence[Card], now: datetime) -> list[CardMetrics]:
        return [self._calc.enrich(card, now) for card in cards]

    def summarize(
        self, cards: Sequence[Card], now: datetime, forecast_days: int = 7
    ) -> CollectionSummary:
        by_state = {state.value: 0 for state in CardState}
        for card in cards:
            by_state[card.state.value] += 1

        return CollectionSummary(
            total=len(cards),
            by_state=by_state,
            average_retrievability=average_retrievability(cards, now, self._params),
            due_now=sum(1 for card in cards if card.due <= now),
            forecast=forecast_workload(cards, now, forecast_days),
        )

    def get_weak_cards(
        self,
        cards: Sequence[Card],
        now: datetime,
        stability_threshold: float = 7.0,
        lapse_threshold: int = 1,
        retrievability_threshold: float = 0.7,
    ) -> list[CardMetrics]:
        """
        Identify cards that are "weak" based on configurable thresholds.

        A reviewed card is weak if:
        - stability < threshold, OR
        - lapses >= lapse_threshold, OR
        - current retrievability < retrievability_threshold

        New cards are never weak; they have no memory state yet.
        """
        weak = []
        for metrics in self.get_enriched_stats(cards, now):
            if metrics.state is CardState.NEW:
                continue

            is_weak = False

            # Low stability
            if metrics.stability < stability_threshold:
                is_weak = True

            # Has lapses
            if metrics.lapses >= lapse_threshold:
                is_weak = True

            # Low retrievability
            if metrics.current_retrievability < retrievability_threshold:
                is_weak = True

            if is_weak:
                weak.append(metrics)

        logger.debug(f"{len(weak)} of {len(cards)} cards are weak")
        return weak
