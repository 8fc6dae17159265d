"""
Dashboard Aggregator.

Responsibilities:
- Summarize persisted scores and signals for the dashboard.

Non-Responsibilities:
- No scoring.
- No writes.

Invariant:
Time windows are derived from the same "now" the scorer uses, and the
high-score cut-off is the scorer's review threshold.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from signalscore.config import ScoringConfig
from signalscore.models import EntitySummary

WEEK_WINDOW_DAYS = 7
DEFAULT_TOP_N = 5


@dataclass(frozen=True)
class DashboardStats:
    total_entities: int
    high_score_entities: int
    new_signals_today: int
    new_signals_week: int
    top_signal_types: List[Tuple[str, int]] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "total_entities": self.total_entities,
            "high_score_entities": self.high_score_entities,
            "new_signals_today": self.new_signals_today,
            "new_signals_week": self.new_signals_week,
            "top_signal_types": [
                {"type": category, "count": count} for category, count in self.top_signal_types
            ],
        }


def start_of_day(now: datetime) -> datetime:
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def rank_categories(counts: Sequence[Tuple[str, int]], top_n: int) -> List[Tuple[str, int]]:
    """Top-N categories by count descending, ties by name ascending."""
    ranked = sorted(counts, key=lambda item: (-item[1], item[0]))
    return list(ranked[: max(top_n, 0)])


def count_signals_since(repository, since: datetime) -> int:
    return sum(count for _, count in repository.get_signal_counts_by_category(since=since))


def get_dashboard_stats(
    repository,
    config: ScoringConfig,
    now: Optional[datetime] = None,
    top_n: int = DEFAULT_TOP_N,
) -> DashboardStats:
    """
    Aggregate counts over the persisted state.

    Args:
        repository: ScoreRepository
        config: Scoring parameters (review threshold)
        now: Reference instant; pass the scorer's now to keep windows aligned
        top_n: Number of signal categories to report

    Returns:
        DashboardStats
    """
    if now is None:
        now = datetime.now()
    today_start = start_of_day(now)
    week_start = today_start - timedelta(days=WEEK_WINDOW_DAYS)

    return DashboardStats(
        total_entities=repository.count_entities(),
        high_score_entities=repository.count_entities(min_score=config.review_threshold),
        new_signals_today=count_signals_since(repository, today_start),
        new_signals_week=count_signals_since(repository, week_start),
        top_signal_types=rank_categories(repository.get_signal_counts_by_category(), top_n),
    )


def get_high_scoring_entities(
    repository, limit: int = 20, min_score: float = 50.0
) -> List[EntitySummary]:
    """Entities at or above min_score, highest score first."""
    return repository.get_high_scoring_entities(limit=limit, min_score=min_score)
