import random
from datetime import datetime, timedelta, timezone

import pytest

from mneme.application.scheduling.scheduler import current_retrievability, schedule_review
from mneme.domain import constants as c
from mneme.domain.scheduling.models import Card, CardState, Rating, ReviewEvent
from mneme.domain.scheduling.parameters import SchedulerParameters

START = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)


def simulate_history(
    n_cards: int = 40,
    reviews_per_card: int = 8,
    weights=c.DEFAULT_WEIGHTS,
    seed: int = 7,
) -> list[ReviewEvent]:
    """
    Review history generated by the scheduler itself.

    Empty step ladders send every card straight to Review, so each event after
    the first is an inter-day review the optimizer learns from. Each outcome is
    drawn against the model's own retrievability at the due date.
    """
    params = SchedulerParameters(
        w=weights, learning_steps=(), relearning_steps=(), enable_fuzz=False
    )
    rng = random.Random(seed)
    events: list[ReviewEvent] = []

    for i in range(n_cards):
        now = START + timedelta(hours=i % 12)
        card = Card.new(due=now, card_id=f"card-{i}")
        for _ in range(reviews_per_card):
            if card.state is CardState.NEW:
                rating = rng.choice([Rating.AGAIN, Rating.HARD, Rating.GOOD, Rating.EASY])
            elif rng.random() < current_retrievability(card, now, params):
                rating = rng.choice([Rating.HARD, Rating.GOOD, Rating.GOOD, Rating.EASY])
            else:
                rating = Rating.AGAIN
            result = schedule_review(card, rating, now, params)
            events.append(result.log.to_review_event())
            card = result.card
            now = card.due

    return events


@pytest.fixture
def now():
    return START


@pytest.fixture
def new_card(now):
    return Card.new(due=now, card_id="card-1")


@pytest.fixture
def review_card(now):
    """A mature card last reviewed five days ago."""
    return Card(
        due=now,
        state=CardState.REVIEW,
        difficulty=5.0,
        stability=10.0,
        retrievability=1.0,
        last_review=now - timedelta(days=5),
        reps=4,
        lapses=1,
        scheduled_days=5,
        card_id="card-2",
    )


@pytest.fixture
def synthetic_history():
    return simulate_history()


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Isolate config from the real user directory
    monkeypatch.setenv("HOME", str(home))
    for var in (
        "MNEME_PARAMETERS_FILE",
        "MNEME_MAX_ITERATIONS",
        "MNEME_LEARNING_RATE",
        "MNEME_MIN_REVIEWS",
    ):
        monkeypatch.delenv(var, raising=False)
    return home
