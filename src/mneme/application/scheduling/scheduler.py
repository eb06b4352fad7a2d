"""
Review scheduler.

Pure transformation (Card, Rating, now, SchedulerParameters) -> (Card', ReviewLogEntry).
Every (state, rating) pair has a defined transition; only a rating outside
1..4 is rejected.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from mneme.domain import constants as c
from mneme.domain.scheduling.models import (
    Card,
    CardState,
    IntervalPreview,
    Rating,
    ReviewLogEntry,
    SchedulingResult,
)
from mneme.domain.scheduling.parameters import DEFAULT_PARAMETERS, SchedulerParameters

from .formulas import (
    clamp_difficulty,
    init_difficulty,
    init_stability,
    next_difficulty,
    next_forget_stability,
    next_interval,
    next_recall_stability,
    retrievability,
    short_term_stability,
)
from .fuzz import fuzz_interval, fuzz_seed

_STEP_STATES = (CardState.LEARNING, CardState.RELEARNING)


@dataclass(frozen=True)
class _MemoryUpdate:
    difficulty: float
    stability: float
    retrievability: float  # at review time
    difficulty_clamped: bool = False
    stability_clamped: bool = False


@dataclass(frozen=True)
class _Transition:
    state: CardState
    step: int
    scheduled_days: float
    lapsed: bool = False


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc)


def is_same_day_review(last_review: datetime | None, now: datetime) -> bool:
    """True when both timestamps fall on the same (UTC) calendar day."""
    if last_review is None:
        return False
    return _as_utc(last_review).date() == _as_utc(now).date()


def elapsed_days_between(last_review: datetime | None, now: datetime) -> float:
    if last_review is None:
        return 0.0
    return max(0.0, (now - last_review).total_seconds() / c.SECONDS_PER_DAY)


def current_retrievability(
    card: Card, now: datetime, params: SchedulerParameters = DEFAULT_PARAMETERS
) -> float:
    """Recall probability of the card at `now`. New cards have none."""
    if card.state is CardState.NEW or card.last_review is None:
        return 0.0
    elapsed = elapsed_days_between(card.last_review, now)
    return retrievability(elapsed, card.stability, params.decay, params.factor)


def _update_memory(
    card: Card, rating: Rating, now: datetime, params: SchedulerParameters
) -> _MemoryUpdate:
    w = params.w

    if card.state is CardState.NEW:
        raw_d = init_difficulty(rating, w, clamp=False)
        raw_s = init_stability(rating, w, clamp=False)
        d = clamp_difficulty(raw_d)
        s = init_stability(rating, w)
        return _MemoryUpdate(d, s, 0.0, d != raw_d, s != raw_s)

    # Records written before the first review carry zeros; fall back to Good.
    difficulty = card.difficulty or init_difficulty(Rating.GOOD, w)
    stability = card.stability or init_stability(Rating.GOOD, w)
    elapsed = elapsed_days_between(card.last_review, now)
    r = retrievability(elapsed, stability, params.decay, params.factor)

    if is_same_day_review(card.last_review, now):
        if params.enable_short_term:
            d = difficulty
            raw_d = difficulty
            if card.state is CardState.REVIEW:
                raw_d = next_difficulty(difficulty, rating, w, clamp=False)
                d = clamp_difficulty(raw_d)
            minutes = elapsed * c.MINUTES_PER_DAY
            raw_s = short_term_stability(stability, minutes, rating, w, clamp=False)
            s = short_term_stability(stability, minutes, rating, w)
            return _MemoryUpdate(d, s, r, d != raw_d, s != raw_s)
        if card.state in _STEP_STATES:
            return _MemoryUpdate(difficulty, stability, r)

    raw_d = next_difficulty(difficulty, rating, w, clamp=False)
    d = clamp_difficulty(raw_d)
    if rating == Rating.AGAIN:
        raw_s = next_forget_stability(difficulty, stability, r, w, clamp=False)
        s = next_forget_stability(difficulty, stability, r, w)
    else:
        raw_s = next_recall_stability(difficulty, stability, r, rating, w, clamp=False)
        s = next_recall_stability(difficulty, stability, r, rating, w)
    return _MemoryUpdate(d, s, r, d != raw_d, s != raw_s)


def _ladder(
    state: CardState, step: int, steps: tuple[float, ...], graduate_days: float
) -> _Transition:
    """Stay on the ladder at `step`, or graduate to Review once it is exhausted."""
    if step >= len(steps):
        return _Transition(CardState.REVIEW, 0, graduate_days)
    return _Transition(state, step, steps[step] / c.MINUTES_PER_DAY)


def _next_step(card: Card, rating: Rating) -> int:
    if rating == Rating.AGAIN:
        return 0
    if rating == Rating.HARD:
        return card.step
    return card.step + 1


def _transition(
    card: Card, rating: Rating, stability: float, params: SchedulerParameters
) -> _Transition:
    max_days = params.maximum_interval
    graduating = min(params.graduating_interval, max_days)
    easy = min(params.easy_interval, max_days)
    # Relearning resumes the review cycle near the retained stability.
    resume = min(max(1, round(stability)), max_days)

    if card.state is CardState.NEW:
        if rating == Rating.EASY:
            return _Transition(CardState.REVIEW, 0, easy)
        step = 1 if rating == Rating.GOOD else 0
        return _ladder(CardState.LEARNING, step, params.learning_steps, graduating)

    if card.state is CardState.LEARNING:
        if rating == Rating.EASY:
            return _Transition(CardState.REVIEW, 0, easy)
        return _ladder(
            CardState.LEARNING, _next_step(card, rating), params.learning_steps, graduating
        )

    if card.state is CardState.RELEARNING:
        if rating == Rating.EASY:
            return _Transition(CardState.REVIEW, 0, resume)
        return _ladder(
            CardState.RELEARNING, _next_step(card, rating), params.relearning_steps, resume
        )

    if rating == Rating.AGAIN:
        lapse = _ladder(CardState.RELEARNING, 0, params.relearning_steps, resume)
        return _Transition(lapse.state, lapse.step, lapse.scheduled_days, lapsed=True)

    interval = next_interval(
        stability,
        params.request_retention,
        params.decay,
        params.factor,
        params.maximum_interval,
    )
    if params.enable_fuzz:
        interval = fuzz_interval(interval, fuzz_seed(card), params)
    return _Transition(CardState.REVIEW, 0, interval)


def schedule_review(
    card: Card,
    rating: Rating | int,
    now: datetime,
    params: SchedulerParameters = DEFAULT_PARAMETERS,
) -> SchedulingResult:
    """
    Apply one review to a card.

    Args:
        card: Current memory state; left untouched.
        rating: 1-4. Anything else raises ValueError.
        now: Review timestamp.
        params: Parameter vector for this user.

    Returns:
        SchedulingResult with the next card state and the log entry.
    """
    rating = Rating(rating)

    memory = _update_memory(card, rating, now, params)
    move = _transition(card, rating, memory.stability, params)
    elapsed = elapsed_days_between(card.last_review, now)

    next_card = card.evolve(
        state=move.state,
        step=move.step,
        difficulty=memory.difficulty,
        stability=memory.stability,
        retrievability=retrievability(0, memory.stability, params.decay, params.factor),
        due=now + timedelta(days=move.scheduled_days),
        last_review=now,
        reps=card.reps + 1,
        lapses=card.lapses + (1 if move.lapsed else 0),
        elapsed_days=elapsed,
        scheduled_days=move.scheduled_days,
    )
    log = ReviewLogEntry(
        card_id=card.card_id,
        rating=rating,
        state=card.state,
        state_after=move.state,
        due=card.due,
        review=now,
        stability=memory.stability,
        difficulty=memory.difficulty,
        retrievability=memory.retrievability,
        elapsed_days=elapsed,
        last_elapsed_days=card.elapsed_days,
        scheduled_days=move.scheduled_days,
        difficulty_clamped=memory.difficulty_clamped,
        stability_clamped=memory.stability_clamped,
    )
    return SchedulingResult(card=next_card, log=log)


def preview_schedules(
    card: Card, now: datetime, params: SchedulerParameters = DEFAULT_PARAMETERS
) -> dict[Rating, SchedulingResult]:
    """Simulate every rating without touching the card."""
    return {rating: schedule_review(card, rating, now, params) for rating in Rating}


def preview_intervals(
    card: Card, now: datetime, params: SchedulerParameters = DEFAULT_PARAMETERS
) -> IntervalPreview:
    """Scheduled days per rating, for showing next to the answer buttons."""
    results = preview_schedules(card, now, params)
    return IntervalPreview(
        again=results[Rating.AGAIN].card.scheduled_days,
        hard=results[Rating.HARD].card.scheduled_days,
        good=results[Rating.GOOD].card.scheduled_days,
        easy=results[Rating.EASY].card.scheduled_days,
    )
