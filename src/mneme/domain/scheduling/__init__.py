# Domain Scheduling Package
from .models import (
    Card,
    CardState,
    IntervalPreview,
    Rating,
    ReviewEvent,
    ReviewLogEntry,
    SchedulingResult,
)
from .parameters import DEFAULT_PARAMETERS, SchedulerParameters

__all__ = [
    "Card",
    "CardState",
    "IntervalPreview",
    "Rating",
    "ReviewEvent",
    "ReviewLogEntry",
    "SchedulingResult",
    "SchedulerParameters",
    "DEFAULT_PARAMETERS",
]
