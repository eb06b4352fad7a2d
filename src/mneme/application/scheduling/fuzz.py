"""
Interval fuzzing.

Spreads reviews that would otherwise land on the same day. The perturbation
is drawn from a seeded PRNG so re-scheduling the same review is reproducible.
"""

from mneme.domain import constants as c
from mneme.domain.scheduling.models import Card
from mneme.domain.scheduling.parameters import DEFAULT_PARAMETERS, SchedulerParameters

_MASK32 = 0xFFFFFFFF


def mulberry32(seed: int) -> float:
    """Single draw in [0, 1) from the Mulberry32 generator."""
    t = (seed + 0x6D2B79F5) & _MASK32
    t = ((t ^ (t >> 15)) * (t | 1)) & _MASK32
    t ^= (t + ((t ^ (t >> 7)) * (t | 61))) & _MASK32
    t &= _MASK32
    return ((t ^ (t >> 14)) & _MASK32) / 4294967296


def string_hash(text: str) -> int:
    """31-multiplier string hash folded to 32 unsigned bits."""
    h = 0
    for ch in text:
        h = (h * 31 + ord(ch)) & _MASK32
    return h


def fuzz_seed(card: Card) -> int:
    """Seed derived from stable per-card data: its id and prior due timestamp."""
    return string_hash(f"{card.card_id or ''}{card.due.isoformat()}")


def fuzz_range(
    interval: int, params: SchedulerParameters = DEFAULT_PARAMETERS
) -> tuple[int, int]:
    """
    Smallest and largest interval the fuzzer may return.

    Intervals under three days are left alone.
    """
    if not params.enable_fuzz or interval < c.MIN_FUZZ_INTERVAL:
        return interval, interval
    delta = max(1, round(interval * params.fuzz_factor))
    low = max(c.MIN_FUZZED_INTERVAL, interval - delta)
    high = max(low, min(interval + delta, params.maximum_interval))
    return low, high


def fuzz_interval(
    interval: int, seed: int, params: SchedulerParameters = DEFAULT_PARAMETERS
) -> int:
    """Pick a deterministic interval inside fuzz_range for the given seed."""
    low, high = fuzz_range(interval, params)
    if low == high:
        return interval
    fuzzed = round(low + mulberry32(seed) * (high - low))
    return max(low, min(fuzzed, high))
