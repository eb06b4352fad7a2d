"""
Training-data preparation for the optimizer.

Turns a flat list of review events into per-card sequences that mirror the
scheduler's memory updates, then replays those sequences through the scheduler
formulas with a candidate weight vector to produce (prediction, label) pairs.
"""

import logging
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from mneme.application.scheduling.formulas import (
    init_difficulty,
    init_stability,
    next_difficulty,
    next_forget_stability,
    next_recall_stability,
    retrievability,
    short_term_stability,
)
from mneme.application.scheduling.scheduler import elapsed_days_between, is_same_day_review
from mneme.domain import constants as c
from mneme.domain.scheduling.models import CardState, Rating, ReviewEvent
from mneme.domain.scheduling.parameters import DEFAULT_PARAMETERS, SchedulerParameters

logger = logging.getLogger(__name__)

_STEP_STATES = (CardState.LEARNING, CardState.RELEARNING)


@dataclass(frozen=True)
class ReplayStep:
    rating: Rating
    elapsed_days: float
    first: bool = False
    same_day: bool = False  # short-term stability update, never scored
    scored: bool = True
    updates_difficulty: bool = True


@dataclass(frozen=True)
class ReviewSequence:
    """Chronological reviews of one card that move its memory state."""

    card_id: str
    steps: tuple[ReplayStep, ...]


@dataclass(frozen=True)
class TrainingSample:
    """Predicted recall probability and observed outcome of one review."""

    prediction: float
    passed: bool
    elapsed_days: float
    stability: float  # before the review
    difficulty: float  # before the review


def _event_gaps(history: list[ReviewEvent]) -> list[tuple[float, bool]]:
    """Elapsed days and same-day flag for each event of a card."""
    gaps: list[tuple[float, bool]] = []
    previous = None
    for event in history:
        last = previous.occurred_at if previous else None
        if event.elapsed_days is not None:
            elapsed = max(0.0, event.elapsed_days)
        else:
            elapsed = elapsed_days_between(last, event.occurred_at)
        same_day = previous is not None and (
            elapsed <= 0 or is_same_day_review(last, event.occurred_at)
        )
        gaps.append((elapsed, same_day))
        previous = event
    return gaps


def build_sequences(
    events: Iterable[ReviewEvent], enable_short_term: bool = False
) -> list[ReviewSequence]:
    """
    Group events per card and mirror the memory updates the scheduler made.

    Only inter-day Review-state reviews are scored. Learning/relearning
    reviews on a later day still update difficulty and stability, as do
    same-day Review-state reviews. Same-day ladder reviews leave the memory
    state alone unless short-term stability is enabled.
    """
    by_card: dict[str, list[ReviewEvent]] = defaultdict(list)
    for event in events:
        by_card[event.card_id].append(event)

    sequences: list[ReviewSequence] = []
    for card_id, history in by_card.items():
        history.sort(key=lambda e: e.occurred_at)
        steps: list[ReplayStep] = []

        for event, (elapsed, same_day) in zip(history, _event_gaps(history)):
            on_ladder = event.state in _STEP_STATES
            if not steps or event.state is CardState.NEW:
                steps.append(ReplayStep(event.rating, 0.0, first=True))
            elif same_day and enable_short_term:
                steps.append(
                    ReplayStep(
                        event.rating,
                        elapsed,
                        same_day=True,
                        scored=False,
                        updates_difficulty=not on_ladder,
                    )
                )
            elif same_day:
                if not on_ladder:
                    steps.append(ReplayStep(event.rating, elapsed, scored=False))
            else:
                steps.append(ReplayStep(event.rating, elapsed, scored=not on_ladder))

        sequences.append(ReviewSequence(card_id=card_id, steps=tuple(steps)))

    logger.debug(f"Built {len(sequences)} review sequences")
    return sequences


def replay(
    sequence: ReviewSequence,
    weights: Sequence[float],
    params: SchedulerParameters = DEFAULT_PARAMETERS,
) -> list[TrainingSample]:
    """
    Re-run one card's history with the given weights.

    Each scored review yields the retrievability predicted from the previous
    stability and the elapsed days, paired with rating > 1.
    """
    samples: list[TrainingSample] = []
    difficulty = 0.0
    stability = 0.0

    for step in sequence.steps:
        if step.first:
            difficulty = init_difficulty(step.rating, weights)
            stability = init_stability(step.rating, weights)
            continue

        if step.same_day:
            if step.updates_difficulty:
                difficulty = next_difficulty(difficulty, step.rating, weights)
            stability = short_term_stability(
                stability, step.elapsed_days * c.MINUTES_PER_DAY, step.rating, weights
            )
            continue

        r = retrievability(step.elapsed_days, stability, params.decay, params.factor)
        if step.scored:
            samples.append(
                TrainingSample(
                    prediction=r,
                    passed=step.rating.passed,
                    elapsed_days=step.elapsed_days,
                    stability=stability,
                    difficulty=difficulty,
                )
            )
        if step.rating == Rating.AGAIN:
            stability = next_forget_stability(difficulty, stability, r, weights)
        else:
            stability = next_recall_stability(difficulty, stability, r, step.rating, weights)
        difficulty = next_difficulty(difficulty, step.rating, weights)

    return samples


def replay_all(
    sequences: Iterable[ReviewSequence],
    weights: Sequence[float],
    params: SchedulerParameters = DEFAULT_PARAMETERS,
) -> list[TrainingSample]:
    samples: list[TrainingSample] = []
    for sequence in sequences:
        samples.extend(replay(sequence, weights, params))
    return samples


def build_training_set(
    events: Iterable[ReviewEvent],
    params: SchedulerParameters = DEFAULT_PARAMETERS,
) -> list[TrainingSample]:
    """Group, filter and replay events with the vector carried by params."""
    sequences = build_sequences(events, enable_short_term=params.enable_short_term)
    return replay_all(sequences, params.w, params)
