"""
Time Decay.

Responsibilities:
- Attenuate a signal's weight by its age using a half-life curve.

Non-Responsibilities:
- No weighting logic.
- No persistence.

Invariant:
The factor is 1.0 at age 0 (and for future timestamps) and never increases
with age.
"""

from datetime import datetime

SECONDS_PER_DAY = 86400.0


def to_naive_local(value: datetime) -> datetime:
    """Aware datetimes become naive local time, the form stored timestamps use."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def age_in_days(detected_at: datetime, now: datetime) -> float:
    """Age of a timestamp relative to now, in days, clamped at 0."""
    if (detected_at.tzinfo is None) != (now.tzinfo is None):
        detected_at, now = to_naive_local(detected_at), to_naive_local(now)
    delta = now - detected_at
    return max(0.0, delta.total_seconds() / SECONDS_PER_DAY)


def decay_factor(detected_at: datetime, now: datetime, half_life_days: float = 365.0) -> float:
    """
    0.5 ** (age_days / half_life_days).

    Args:
        detected_at: When the signal was observed
        now: Reference instant for the whole computation
        half_life_days: Days after which a signal counts half (must be > 0)

    Returns:
        Factor in (0, 1]
    """
    return 0.5 ** (age_in_days(detected_at, now) / half_life_days)
