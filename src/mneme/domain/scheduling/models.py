"""
Domain models for scheduling.

These are pure data structures with no I/O or external dependencies.
Cards are immutable values: every review produces a new Card.
"""

from dataclasses import asdict, dataclass, replace
from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import Any


class Rating(IntEnum):
    """Learner's self-reported recall outcome."""

    AGAIN = 1
    HARD = 2
    GOOD = 3
    EASY = 4

    @classmethod
    def parse(cls, value: "int | str | Rating") -> "Rating":
        """
        Coerce an int, a numeric string or a case-insensitive name to a Rating.

        Raises:
            ValueError: If the value does not name one of the four ratings.
        """
        if isinstance(value, str):
            text = value.strip()
            if text.isdigit():
                return cls(int(text))
            try:
                return cls[text.upper()]
            except KeyError:
                raise ValueError(f"{value!r} is not a valid Rating") from None
        return cls(value)

    @property
    def passed(self) -> bool:
        return self > Rating.AGAIN


class CardState(str, Enum):
    """Lifecycle stage of a card."""

    NEW = "new"
    LEARNING = "learning"
    REVIEW = "review"
    RELEARNING = "relearning"


def _parse_time(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    # Timestamps without an offset are taken as UTC.
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class Card:
    """
    Persistent memory state of a single card.

    Attributes:
        due: Timestamp of the next scheduled review.
        state: Lifecycle stage.
        step: Index into the active learning/relearning ladder.
        difficulty: 1-10 once reviewed, 0 while New.
        stability: Days until retrievability decays to 90%, 0 while New.
        retrievability: Snapshot taken right after the last review. The
            current value is derived at query time from last_review.
        last_review: Timestamp of the most recent review, None if never reviewed.
        reps: Total number of reviews.
        lapses: Number of failed reviews while in the Review state.
        elapsed_days: Gap observed at the last review (diagnostic).
        scheduled_days: Interval assigned at the last review (diagnostic).
        card_id: Optional caller identifier, carried into log entries.
    """

    due: datetime
    state: CardState = CardState.NEW
    step: int = 0
    difficulty: float = 0.0
    stability: float = 0.0
    retrievability: float = 0.0
    last_review: datetime | None = None
    reps: int = 0
    lapses: int = 0
    elapsed_days: float = 0.0
    scheduled_days: float = 0.0
    card_id: str | None = None

    @classmethod
    def new(cls, due: datetime, card_id: str | None = None) -> "Card":
        """Create a card that has never been reviewed."""
        return cls(due=due, card_id=card_id)

    def evolve(self, **changes: Any) -> "Card":
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-safe dictionary."""
        data = asdict(self)
        data["state"] = self.state.value
        data["due"] = self.due.isoformat()
        data["last_review"] = self.last_review.isoformat() if self.last_review else None
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Card":
        return cls(
            due=_parse_time(data["due"]),
            state=CardState(data.get("state", CardState.NEW.value)),
            step=int(data.get("step", 0)),
            difficulty=float(data.get("difficulty", 0.0)),
            stability=float(data.get("stability", 0.0)),
            retrievability=float(data.get("retrievability", 0.0)),
            last_review=_parse_time(data.get("last_review")),
            reps=int(data.get("reps", 0)),
            lapses=int(data.get("lapses", 0)),
            elapsed_days=float(data.get("elapsed_days", 0.0)),
            scheduled_days=float(data.get("scheduled_days", 0.0)),
            card_id=data.get("card_id"),
        )


@dataclass(frozen=True)
class ReviewEvent:
    """
    An immutable review fact, the optimizer's unit of training data.

    Attributes:
        card_id: The card that was reviewed.
        rating: Button pressed.
        state: Card state before the review.
        occurred_at: When the review happened.
        elapsed_days: Optional explicit gap since the previous review. Derived
            from the previous event of the same card when omitted.
    """

    card_id: str
    rating: Rating
    state: CardState
    occurred_at: datetime
    elapsed_days: float | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReviewEvent":
        """
        Build an event from a loosely-typed record.

        Accepts both snake_case and the camelCase keys used by review log exports.
        """
        # Empty cells (CSV) count as missing.
        card_id = data.get("card_id") or data.get("cardId")
        occurred_at = data.get("occurred_at") or data.get("reviewedAt") or data.get("review")
        elapsed = data.get("elapsed_days", data.get("elapsedDays"))
        rating = data.get("rating")
        if card_id in (None, "") or not occurred_at or rating in (None, ""):
            raise ValueError(f"Review record is missing card id, rating or timestamp: {data}")
        return cls(
            card_id=str(card_id),
            rating=Rating.parse(rating),
            state=CardState(str(data.get("state") or CardState.REVIEW.value).lower()),
            occurred_at=_parse_time(occurred_at),
            elapsed_days=float(elapsed) if elapsed not in (None, "") else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "card_id": self.card_id,
            "rating": int(self.rating),
            "state": self.state.value,
            "occurred_at": self.occurred_at.isoformat(),
            "elapsed_days": self.elapsed_days,
        }


@dataclass(frozen=True)
class ReviewLogEntry:
    """
    Record of one scheduling decision.

    difficulty_clamped / stability_clamped report whether a bound altered
    the raw formula output, so callers that care about precision can tell.
    """

    card_id: str | None
    rating: Rating
    state: CardState  # before the review
    state_after: CardState
    due: datetime  # due date before the review
    review: datetime
    stability: float
    difficulty: float
    retrievability: float  # at review time, before the update
    elapsed_days: float
    last_elapsed_days: float
    scheduled_days: float
    difficulty_clamped: bool = False
    stability_clamped: bool = False

    def to_review_event(self) -> ReviewEvent:
        return ReviewEvent(
            card_id=self.card_id or "",
            rating=self.rating,
            state=self.state,
            occurred_at=self.review,
            elapsed_days=self.elapsed_days,
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["rating"] = int(self.rating)
        data["state"] = self.state.value
        data["state_after"] = self.state_after.value
        data["due"] = self.due.isoformat()
        data["review"] = self.review.isoformat()
        return data


@dataclass(frozen=True)
class SchedulingResult:
    """Card after a review together with the log entry describing it."""

    card: Card
    log: ReviewLogEntry


@dataclass(frozen=True)
class IntervalPreview:
    """Scheduled interval in days for each possible rating."""

    again: float
    hard: float
    good: float
    easy: float

    def for_rating(self, rating: Rating) -> float:
        return getattr(self, Rating(rating).name.lower())

    def to_dict(self) -> dict[str, float]:
        return asdict(self)
