"""
Score Explainer.

Responsibilities:
- Itemize an entity's score: per-signal contributions and both bonuses.
- Render the breakdown in a JSON-ready shape for audit and UI.

Non-Responsibilities:
- No arithmetic of its own; every number comes from compute_score.
- No persistence.

Invariant:
The explained total equals the score the calculator would store for the
same signals, config and now.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from signalscore.config import ScoringConfig
from signalscore.models import SignalRecord

from .calculator import ScoreResult, SignalContribution, compute_score


@dataclass(frozen=True)
class ScoreBreakdown:
    total: float
    needs_review: bool
    diversity_bonus: float
    recency_bonus: float
    raw_total: float
    final_raw: float
    unique_categories: int
    contributions: List[SignalContribution] = field(default_factory=list)
    entity_id: Optional[int] = None
    computed_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entity_id": self.entity_id,
            "computed_at": self.computed_at.isoformat() if self.computed_at else None,
            "total": self.total,
            "needs_review": self.needs_review,
            "diversity_bonus": round(self.diversity_bonus, 2),
            "recency_bonus": round(self.recency_bonus, 2),
            "raw_total": round(self.raw_total, 2),
            "final_raw": round(self.final_raw, 2),
            "unique_categories": self.unique_categories,
            "contributions": [
                {
                    "signal_id": c.signal_id,
                    "signal_type": c.signal_type,
                    "title": c.title,
                    "base_weight": c.base_weight,
                    "decay_factor": round(c.decay_factor, 2),
                    "diminishing_factor": round(c.diminishing_factor, 2),
                    "contribution": c.contribution,
                }
                for c in self.contributions
            ],
        }


def breakdown_from_result(
    result: ScoreResult,
    config: ScoringConfig,
    entity_id: Optional[int] = None,
    computed_at: Optional[datetime] = None,
) -> ScoreBreakdown:
    return ScoreBreakdown(
        total=result.total,
        needs_review=config.needs_review(result.total),
        diversity_bonus=result.diversity_bonus,
        recency_bonus=result.recency_bonus,
        raw_total=result.raw_total,
        final_raw=result.final_raw,
        unique_categories=result.unique_categories,
        contributions=list(result.contributions),
        entity_id=entity_id,
        computed_at=computed_at,
    )


def explain_signals(
    signals: Iterable[SignalRecord], config: ScoringConfig, now: datetime
) -> ScoreBreakdown:
    """Itemized breakdown of compute_score for a signal list."""
    return breakdown_from_result(compute_score(signals, config, now), config, computed_at=now)


def explain_entity(repository, entity_id: int, config: ScoringConfig, now: Optional[datetime] = None) -> ScoreBreakdown:
    """Fetch an entity's signals and explain its score. Storage errors propagate."""
    if now is None:
        now = datetime.now()
    signals = repository.get_signals_for_entity(entity_id)
    result = compute_score(signals, config, now)
    return breakdown_from_result(result, config, entity_id=entity_id, computed_at=now)
