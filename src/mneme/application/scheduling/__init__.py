# Application Scheduling Package
from .formulas import (
    init_difficulty,
    init_stability,
    next_difficulty,
    next_forget_stability,
    next_interval,
    next_recall_stability,
    retrievability,
    short_term_stability,
)
from .fuzz import fuzz_interval, fuzz_range, fuzz_seed
from .scheduler import (
    current_retrievability,
    is_same_day_review,
    preview_intervals,
    preview_schedules,
    schedule_review,
)

__all__ = [
    "retrievability",
    "next_interval",
    "init_difficulty",
    "init_stability",
    "next_difficulty",
    "next_recall_stability",
    "next_forget_stability",
    "short_term_stability",
    "fuzz_interval",
    "fuzz_range",
    "fuzz_seed",
    "schedule_review",
    "preview_schedules",
    "preview_intervals",
    "current_retrievability",
    "is_same_day_review",
]
