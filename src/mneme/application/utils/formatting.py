from mneme.application.scheduling.fuzz import fuzz_range
from mneme.domain import constants as c
from mneme.domain.scheduling.parameters import DEFAULT_PARAMETERS, SchedulerParameters

# ---------- Intervals ----------

_DAYS_PER_MONTH = 30
_DAYS_PER_YEAR = 365


def _trim(value: float) -> str:
    """One decimal place, dropped when it is zero."""
    text = f"{value:.1f}"
    return text[:-2] if text.endswith(".0") else text


def format_interval(days: float) -> str:
    """
    Render an interval the way answer buttons show it.

    >>> format_interval(10 / 1440)
    '10m'
    >>> format_interval(4)
    '4d'
    >>> format_interval(547.5)
    '1.5y'
    """
    if days < 0:
        raise ValueError(f"interval must be non-negative, got {days}")

    minutes = days * c.MINUTES_PER_DAY
    if minutes < 60:
        return f"{max(1, round(minutes))}m"
    if days < 1:
        return f"{_trim(minutes / 60)}h"
    if days < _DAYS_PER_MONTH:
        return f"{round(days)}d"
    if days < _DAYS_PER_YEAR:
        return f"{_trim(days / _DAYS_PER_MONTH)}mo"
    return f"{_trim(days / _DAYS_PER_YEAR)}y"


def format_interval_range(
    days: int, params: SchedulerParameters = DEFAULT_PARAMETERS
) -> str:
    """Interval with its fuzz range, e.g. '9d-11d'. Unfuzzed intervals render alone."""
    low, high = fuzz_range(days, params)
    if low == high:
        return format_interval(days)
    return f"{format_interval(low)}-{format_interval(high)}"
