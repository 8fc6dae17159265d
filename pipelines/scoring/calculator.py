"""
Score Calculator.

Responsibilities:
- Compute a deterministic 0-100 confidence score for one entity from its signals.
- Keep every intermediate value so the explainer can itemize the same arithmetic.

Non-Responsibilities:
- No database access.
- No persistence of scores.

Invariant:
Given identical signals, config and now, this module must always return
the same score, bit for bit. It never raises on malformed numeric input.
"""

import math
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List

from signalscore.config import ScoringConfig
from signalscore.models import SignalRecord

from .decay import age_in_days, decay_factor, to_naive_local


@dataclass(frozen=True)
class SignalContribution:
    """How much one signal added to an entity's raw total."""

    signal_id: int
    signal_type: str
    title: str
    base_weight: float
    decay_factor: float
    diminishing_factor: float
    raw_contribution: float
    contribution: float  # rounded to 2 dp for display


@dataclass(frozen=True)
class ScoreResult:
    total: float
    raw_total: float = 0.0
    diversity_bonus: float = 1.0
    recency_bonus: float = 1.0
    final_raw: float = 0.0
    unique_categories: int = 0
    most_recent_age_days: float = 0.0
    contributions: List[SignalContribution] = field(default_factory=list)


def _factor(value, default: float = 1.0) -> float:
    """Per-signal multiplier, falling back to the default when unusable."""
    if value is None or isinstance(value, bool):
        return default
    try:
        value = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(value) or value < 0:
        return default
    return value


def normalize(final_raw: float, config: ScoringConfig) -> float:
    """Logarithmic compression of the raw total into [0, max_score], 2 dp."""
    scaled = math.log10(max(final_raw, 0.0) + 1) * config.log_scale
    return round(max(0.0, min(config.max_score, scaled)), 2)


def compute_score(
    signals: Iterable[SignalRecord], config: ScoringConfig, now: datetime
) -> ScoreResult:
    """
    Score one entity's signals.

    Signals are walked most recent first; the diminishing-returns counter
    depends on that order. Equal timestamps keep their input order.
    """
    ordered = sorted(signals, key=lambda s: to_naive_local(s.detected_at), reverse=True)
    if not ordered:
        return ScoreResult(total=0.0)

    type_counts: Counter = Counter()
    contributions: List[SignalContribution] = []
    raw_total = 0.0

    for signal in ordered:
        base_weight = config.weight_for(signal.signal_type)
        decay = decay_factor(signal.detected_at, now, config.half_life_days)

        type_counts[signal.signal_type] += 1
        diminishing = 1 / math.sqrt(type_counts[signal.signal_type])

        contribution = (
            base_weight
            * _factor(signal.signal_weight)
            * _factor(signal.confidence)
            * decay
            * diminishing
        )
        raw_total += contribution

        contributions.append(
            SignalContribution(
                signal_id=signal.id,
                signal_type=signal.signal_type,
                title=signal.title,
                base_weight=base_weight,
                decay_factor=decay,
                diminishing_factor=diminishing,
                raw_contribution=contribution,
                contribution=round(contribution, 2),
            )
        )

    unique_categories = len(type_counts)
    diversity_bonus = 1 + (unique_categories - 1) * config.diversity_step

    most_recent_age = age_in_days(ordered[0].detected_at, now)
    recency_bonus = config.recency_multiplier(most_recent_age)

    final_raw = raw_total * diversity_bonus * recency_bonus

    return ScoreResult(
        total=normalize(final_raw, config),
        raw_total=raw_total,
        diversity_bonus=diversity_bonus,
        recency_bonus=recency_bonus,
        final_raw=final_raw,
        unique_categories=unique_categories,
        most_recent_age_days=most_recent_age,
        contributions=contributions,
    )


def score_signals(
    signals: Iterable[SignalRecord], config: ScoringConfig, now: datetime
) -> ScoreResult:
    """Aggregate score for one entity; see compute_score."""
    return compute_score(signals, config, now)


def needs_review(score: float, config: ScoringConfig) -> bool:
    return config.needs_review(score)
